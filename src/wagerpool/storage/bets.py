"""Bet and stake persistence."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from wagerpool.errors import BetNotFound
from wagerpool.models.bet import BetSnapshot, Phase, StakeEntry, Winner

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

_BET_COLUMNS = (
    "bet_id, owner, custody, odds, odds_denominator, owner_stake, total_public_stake, "
    "current_public_stake, owner_funded, public_funded, executed, paid, winner, draw, created_at"
)


def save_bet(conn: DuckDBPyConnection, bet: BetSnapshot) -> None:
    """Insert or update a bet and replace its stakes. Closed bets should be deleted instead."""
    now_ms = int(time.time() * 1000)
    values = [
        bet.owner,
        bet.custody,
        bet.odds,
        bet.odds_denominator,
        bet.owner_stake,
        bet.total_public_stake,
        bet.current_public_stake,
        bet.owner_funded,
        bet.public_funded,
        bet.executed,
        bet.paid,
        bet.winner.value,
        bet.draw,
    ]
    exists = conn.execute("SELECT 1 FROM bets WHERE bet_id = ?", [bet.bet_id]).fetchone()
    if exists:
        conn.execute(
            """
            UPDATE bets SET owner = ?, custody = ?, odds = ?, odds_denominator = ?, owner_stake = ?,
                total_public_stake = ?, current_public_stake = ?, owner_funded = ?, public_funded = ?,
                executed = ?, paid = ?, winner = ?, draw = ?, updated_at = ?
            WHERE bet_id = ?
            """,
            values + [now_ms, bet.bet_id],
        )
    else:
        conn.execute(
            f"INSERT INTO bets ({_BET_COLUMNS}, updated_at) VALUES ({', '.join('?' * 16)})",
            [bet.bet_id] + values + [bet.created_at or now_ms, now_ms],
        )
    _save_stakes(conn, bet.bet_id, bet.stakes)


def _save_stakes(conn: DuckDBPyConnection, bet_id: str, stakes: list[StakeEntry]) -> None:
    """Update amounts in place; new stakers get a fresh seq so first-stake order is kept."""
    existing = {
        r[0]: r[1]
        for r in conn.execute(
            "SELECT staker, amount FROM bet_stakes WHERE bet_id = ?", [bet_id]
        ).fetchall()
    }
    wanted = {s.identity: s.amount for s in stakes}
    for staker in existing.keys() - wanted.keys():
        conn.execute("DELETE FROM bet_stakes WHERE bet_id = ? AND staker = ?", [bet_id, staker])
    for entry in stakes:
        if entry.identity not in existing:
            conn.execute(
                "INSERT INTO bet_stakes (bet_id, staker, amount) VALUES (?, ?, ?)",
                [bet_id, entry.identity, entry.amount],
            )
        elif existing[entry.identity] != entry.amount:
            conn.execute(
                "UPDATE bet_stakes SET amount = ? WHERE bet_id = ? AND staker = ?",
                [entry.amount, bet_id, entry.identity],
            )


def _row_to_snapshot(row: tuple, stakes: list[StakeEntry]) -> BetSnapshot:
    (
        bet_id, owner, custody, odds, odds_denominator, owner_stake, total_public_stake,
        current_public_stake, owner_funded, public_funded, executed, paid, winner, draw, created_at,
    ) = row
    snap = BetSnapshot(
        bet_id=bet_id,
        owner=owner,
        custody=custody,
        odds=odds,
        odds_denominator=odds_denominator,
        owner_stake=owner_stake,
        total_public_stake=total_public_stake,
        current_public_stake=current_public_stake,
        owner_funded=owner_funded,
        public_funded=public_funded,
        executed=executed,
        paid=paid,
        winner=Winner(winner),
        draw=draw,
        stakes=stakes,
        created_at=created_at,
    )
    snap.phase = _phase_of(snap)
    return snap


def _phase_of(snap: BetSnapshot) -> Phase:
    if snap.paid:
        return Phase.PAID
    if snap.executed:
        return Phase.EXECUTED
    if snap.public_funded:
        return Phase.PUBLIC_FUNDED
    if snap.owner_funded:
        return Phase.OWNER_FUNDED
    return Phase.CREATED


def load_stakes(conn: DuckDBPyConnection, bet_id: str) -> list[StakeEntry]:
    rows = conn.execute(
        "SELECT staker, amount FROM bet_stakes WHERE bet_id = ? ORDER BY seq", [bet_id]
    ).fetchall()
    return [StakeEntry(identity=r[0], amount=r[1]) for r in rows]


def load_bet(conn: DuckDBPyConnection, bet_id: str) -> BetSnapshot:
    """Return the persisted bet. Raises BetNotFound."""
    row = conn.execute(f"SELECT {_BET_COLUMNS} FROM bets WHERE bet_id = ?", [bet_id]).fetchone()
    if row is None:
        raise BetNotFound(f"Bet not found: {bet_id}")
    return _row_to_snapshot(row, load_stakes(conn, bet_id))


def list_bets(conn: DuckDBPyConnection, owner: str | None = None) -> list[BetSnapshot]:
    """List live bets, newest first. Optionally filtered by owner."""
    sql = f"SELECT {_BET_COLUMNS} FROM bets"
    params: list = []
    if owner:
        sql += " WHERE owner = ?"
        params.append(owner)
    sql += " ORDER BY created_at DESC"
    return [_row_to_snapshot(r, load_stakes(conn, r[0])) for r in conn.execute(sql, params).fetchall()]


def delete_bet(conn: DuckDBPyConnection, bet_id: str) -> None:
    """Remove a closed bet and its stakes. The event log is kept."""
    conn.execute("DELETE FROM bet_stakes WHERE bet_id = ?", [bet_id])
    conn.execute("DELETE FROM bets WHERE bet_id = ?", [bet_id])
