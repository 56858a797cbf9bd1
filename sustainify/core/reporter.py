from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import pandas as pd

from .types import QuizRecord

CSV_COLUMNS = [
    "ts",
    "name",
    "shower_min",
    "uses_bucket",
    "hours_devices",
    "num_led",
    "ac_hours",
    "uses_reusable",
    "recycles",
    "disposable_count",
    "eco",
]
CSV_FILENAME = "sustainify_records.csv"


def _cell(value: object) -> object:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def records_frame(records: Iterable[QuizRecord]) -> pd.DataFrame:
    rows = []
    for record in records:
        row = record.inputs.to_dict()
        row["ts"] = record.ts
        row["name"] = record.name
        row["eco"] = record.scores.eco if record.scores else ""
        rows.append({col: _cell(row.get(col, "")) for col in CSV_COLUMNS})
    return pd.DataFrame(rows, columns=CSV_COLUMNS, dtype=object)


def records_to_csv(records: Iterable[QuizRecord]) -> str:
    """Render the record log as CSV with the fixed export column order."""
    df = records_frame(records)
    return df.to_csv(index=False, lineterminator="\n").rstrip("\n")


def write_records_csv(path: Path, records: Iterable[QuizRecord]) -> Path:
    if path.is_dir():
        path = path / CSV_FILENAME
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(records_to_csv(records) + "\n", encoding="utf-8")
    return path
