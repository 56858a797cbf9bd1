"""Append-only quiz record log.

``append_record`` is the pure core: it takes a log and returns a new one.
``RecordLog`` is the persisted log a caller owns and injects; it is keyed by
a fixed name so every client sees the same ordered sequence.
"""

from __future__ import annotations

from collections.abc import Iterable
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
from typing import Union

from .runtime_data import get_runtime_paths
from .sqlite_store import connect, fetch_records, insert_records, replace_records
from .types import EcoScores, QuizInputs, QuizRecord

RECORDS_KEY = "sustainify_records"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def make_record(
    inputs: QuizInputs, scores: EcoScores, ts: Union[str, None] = None
) -> QuizRecord:
    return QuizRecord(
        ts=ts or utc_timestamp(),
        name=inputs.name.strip() or "-",
        inputs=inputs,
        scores=scores,
    )


def append_record(
    log: Iterable[QuizRecord], record: QuizRecord
) -> tuple[QuizRecord, ...]:
    return (*log, record)


class RecordLog:
    """SQLite-backed record log for one key."""

    def __init__(self, db_path: Union[Path, None] = None, key: str = RECORDS_KEY) -> None:
        if db_path is None:
            db_path = get_runtime_paths().db_path
        self.db_path = db_path
        self.key = key

    def load(self) -> tuple[QuizRecord, ...]:
        with closing(connect(self.db_path)) as conn:
            rows = fetch_records(conn, self.key)
        return tuple(QuizRecord.from_dict(row) for row in rows)

    def append(self, record: QuizRecord) -> tuple[QuizRecord, ...]:
        with closing(connect(self.db_path)) as conn:
            insert_records(conn, self.key, [record.to_dict()])
            rows = fetch_records(conn, self.key)
        return tuple(QuizRecord.from_dict(row) for row in rows)

    def replace(self, records: Iterable[QuizRecord]) -> tuple[QuizRecord, ...]:
        records = tuple(records)
        with closing(connect(self.db_path)) as conn:
            replace_records(conn, self.key, [r.to_dict() for r in records])
        return records

    def clear(self) -> None:
        self.replace(())
