"""Bet event log - append-only record of every committed operation."""

from __future__ import annotations

import json
import time
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection


def append_bet_event(
    conn: DuckDBPyConnection,
    bet_id: str,
    op: str,
    actor: str,
    amount: int | None = None,
    payload: dict[str, Any] | None = None,
    ts: int | None = None,
) -> None:
    """Append a single bet event."""
    conn.execute(
        """
        INSERT INTO bet_events (bet_id, op, actor, amount, ts, payload)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        [
            bet_id,
            op,
            actor,
            amount,
            ts if ts is not None else int(time.time() * 1000),
            json.dumps(payload or {}),
        ],
    )


def list_bet_events(conn: DuckDBPyConnection, bet_id: str) -> list[dict[str, Any]]:
    """Return events for one bet in append order."""
    rows = conn.execute(
        "SELECT id, op, actor, amount, ts, payload FROM bet_events WHERE bet_id = ? ORDER BY id",
        [bet_id],
    ).fetchall()
    return [
        {
            "id": r[0],
            "bet_id": bet_id,
            "op": r[1],
            "actor": r[2],
            "amount": r[3],
            "ts": r[4],
            "payload": json.loads(r[5]) if isinstance(r[5], str) else (r[5] or {}),
        }
        for r in rows
    ]


def log_stats(conn: DuckDBPyConnection) -> dict[str, Any]:
    """Return event log statistics: total count, min/max ts, count by op."""
    total = conn.execute("SELECT COUNT(*) FROM bet_events").fetchone()[0]
    range_row = conn.execute("SELECT MIN(ts), MAX(ts) FROM bet_events").fetchone()
    by_op = conn.execute(
        "SELECT op, COUNT(*) AS cnt FROM bet_events GROUP BY op ORDER BY cnt DESC"
    ).fetchall()
    bets = conn.execute("SELECT COUNT(DISTINCT bet_id) FROM bet_events").fetchone()[0]
    return {
        "total_events": total,
        "bet_count": bets,
        "min_ts": range_row[0],
        "max_ts": range_row[1],
        "by_op": [{"op": r[0], "count": r[1]} for r in by_op],
    }
