from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterable
from pathlib import Path


def connect(db_path: Path) -> sqlite3.Connection:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    _init_db(conn)
    return conn


def _init_db(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS records (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            log_key TEXT NOT NULL,
            ts TEXT NOT NULL,
            name TEXT NOT NULL,
            inputs_json TEXT NOT NULL,
            scores_json TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_records_log_key ON records (log_key, id);
        """
    )
    conn.commit()


def _row_payload(log_key: str, row: dict) -> tuple:
    return (
        log_key,
        row["ts"],
        row.get("name") or "-",
        json.dumps(row.get("inputs") or {}, ensure_ascii=False),
        json.dumps(row.get("scores") or {}, ensure_ascii=False),
    )


def insert_records(conn: sqlite3.Connection, log_key: str, rows: Iterable[dict]) -> None:
    payload = [_row_payload(log_key, row) for row in rows]
    if payload:
        conn.executemany(
            """
            INSERT INTO records (log_key, ts, name, inputs_json, scores_json)
            VALUES (?, ?, ?, ?, ?)
            """,
            payload,
        )
        conn.commit()


def replace_records(conn: sqlite3.Connection, log_key: str, rows: Iterable[dict]) -> None:
    payload = [_row_payload(log_key, row) for row in rows]
    with conn:
        conn.execute("DELETE FROM records WHERE log_key = ?", (log_key,))
        if payload:
            conn.executemany(
                """
                INSERT INTO records (log_key, ts, name, inputs_json, scores_json)
                VALUES (?, ?, ?, ?, ?)
                """,
                payload,
            )


def fetch_records(conn: sqlite3.Connection, log_key: str) -> list[dict]:
    rows = conn.execute(
        """
        SELECT ts, name, inputs_json, scores_json
        FROM records
        WHERE log_key = ?
        ORDER BY id ASC
        """,
        (log_key,),
    ).fetchall()
    results = []
    for row in rows:
        results.append(
            {
                "ts": row["ts"],
                "name": row["name"],
                "inputs": json.loads(row["inputs_json"] or "{}"),
                "scores": json.loads(row["scores_json"] or "{}"),
            }
        )
    return results
