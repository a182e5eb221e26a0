"""DuckDB-backed ledger sharing the bet store's connection."""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

import structlog

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

log = structlog.get_logger(__name__)


class DuckDBLedger:
    """Balances and allowances in ledger_balances / ledger_allowances.

    atomic() opens a transaction at the outermost level only; nested scopes join it, so a
    failure anywhere inside rolls back the whole outer operation (bet state included when the
    store writes through the same connection).
    """

    def __init__(self, conn: DuckDBPyConnection) -> None:
        self.conn = conn
        self._depth = 0

    @contextmanager
    def atomic(self) -> Iterator[None]:
        outermost = self._depth == 0
        if outermost:
            self.conn.execute("BEGIN TRANSACTION")
        self._depth += 1
        try:
            yield
        except Exception:
            self._depth -= 1
            if outermost:
                self.conn.execute("ROLLBACK")
            raise
        self._depth -= 1
        if outermost:
            self.conn.execute("COMMIT")

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def balance_of(self, identity: str) -> int:
        row = self.conn.execute(
            "SELECT amount FROM ledger_balances WHERE account = ?", [identity]
        ).fetchone()
        return int(row[0]) if row else 0

    def allowance(self, owner: str, spender: str) -> int:
        row = self.conn.execute(
            "SELECT amount FROM ledger_allowances WHERE owner = ? AND spender = ?",
            [owner, spender],
        ).fetchone()
        return int(row[0]) if row else 0

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        if amount < 0:
            return False
        with self.atomic():
            exists = self.conn.execute(
                "SELECT 1 FROM ledger_allowances WHERE owner = ? AND spender = ?", [owner, spender]
            ).fetchone()
            if exists:
                self.conn.execute(
                    "UPDATE ledger_allowances SET amount = ? WHERE owner = ? AND spender = ?",
                    [amount, owner, spender],
                )
            else:
                self.conn.execute(
                    "INSERT INTO ledger_allowances (owner, spender, amount) VALUES (?, ?, ?)",
                    [owner, spender, amount],
                )
        return True

    def mint(self, identity: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("mint amount must be non-negative")
        with self.atomic():
            self._set_balance(identity, self.balance_of(identity) + amount)
        log.info("ledger_mint", identity=identity, amount=amount)

    def transfer_from(self, src: str, dst: str, amount: int, spender: str | None = None) -> bool:
        if amount < 0:
            return False
        delegated = spender is not None and spender != src
        with self.atomic():
            if delegated:
                allowed = self.allowance(src, spender)
                if allowed < amount:
                    return False
            src_balance = self.balance_of(src)
            if src_balance < amount:
                return False
            if delegated:
                self.conn.execute(
                    "UPDATE ledger_allowances SET amount = ? WHERE owner = ? AND spender = ?",
                    [allowed - amount, src, spender],
                )
            self._set_balance(src, src_balance - amount)
            self._set_balance(dst, self.balance_of(dst) + amount)
        return True

    def _set_balance(self, identity: str, amount: int) -> None:
        exists = self.conn.execute(
            "SELECT 1 FROM ledger_balances WHERE account = ?", [identity]
        ).fetchone()
        if exists:
            self.conn.execute("UPDATE ledger_balances SET amount = ? WHERE account = ?", [amount, identity])
        else:
            self.conn.execute(
                "INSERT INTO ledger_balances (account, amount) VALUES (?, ?)", [identity, amount]
            )
