"""DuckDB connection and schema init."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import duckdb

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

SCHEMA_SQL = """
-- Sequences for auto-increment IDs
CREATE SEQUENCE IF NOT EXISTS bet_event_seq START 1;
CREATE SEQUENCE IF NOT EXISTS bet_stake_seq START 1;

-- Live bets (row removed on close)
CREATE TABLE IF NOT EXISTS bets (
    bet_id              VARCHAR PRIMARY KEY,
    owner               VARCHAR NOT NULL,
    custody             VARCHAR NOT NULL,
    odds                INTEGER NOT NULL,
    odds_denominator    INTEGER NOT NULL,
    owner_stake         BIGINT NOT NULL,
    total_public_stake  BIGINT NOT NULL,
    current_public_stake BIGINT NOT NULL,
    owner_funded        BOOLEAN NOT NULL,
    public_funded       BOOLEAN NOT NULL,
    executed            BOOLEAN NOT NULL,
    paid                BOOLEAN NOT NULL,
    winner              VARCHAR NOT NULL,
    draw                INTEGER,
    created_at          BIGINT NOT NULL,
    updated_at          BIGINT NOT NULL
);

-- Cumulative public stake per (bet, staker) — seq preserves first-stake order
CREATE TABLE IF NOT EXISTS bet_stakes (
    seq                 BIGINT DEFAULT nextval('bet_stake_seq'),
    bet_id              VARCHAR NOT NULL,
    staker              VARCHAR NOT NULL,
    amount              BIGINT NOT NULL
);

-- Bet operation log (append-only, survives close)
CREATE TABLE IF NOT EXISTS bet_events (
    id                  BIGINT PRIMARY KEY DEFAULT nextval('bet_event_seq'),
    bet_id              VARCHAR NOT NULL,
    op                  VARCHAR NOT NULL,
    actor               VARCHAR NOT NULL,
    amount              BIGINT,
    ts                  BIGINT NOT NULL,
    payload             JSON
);

-- Reference ledger: balances and allowances
CREATE TABLE IF NOT EXISTS ledger_balances (
    account             VARCHAR PRIMARY KEY,
    amount              BIGINT NOT NULL
);

CREATE TABLE IF NOT EXISTS ledger_allowances (
    owner               VARCHAR NOT NULL,
    spender             VARCHAR NOT NULL,
    amount              BIGINT NOT NULL,
    PRIMARY KEY (owner, spender)
);
"""


def get_connection(db_path: str | Path, read_only: bool = False) -> DuckDBPyConnection:
    """Return a DuckDB connection. Caller must close or use as context manager.
    ":memory:" opens an in-memory database."""
    if str(db_path) == ":memory:":
        return duckdb.connect(":memory:")
    path = Path(db_path)
    if not read_only:
        path.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(str(path), read_only=read_only)


def init_schema(conn: DuckDBPyConnection) -> None:
    """Create tables and sequences if they do not exist."""
    for stmt in SCHEMA_SQL.split(";"):
        stmt = stmt.strip()
        if stmt:
            try:
                conn.execute(stmt)
            except duckdb.Error as e:
                if "already exists" not in str(e).lower():
                    raise
