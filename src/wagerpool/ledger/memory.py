"""In-process ledger for tests and simulations."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator

TransferHook = Callable[[str, str, int], None]


class InMemoryLedger:
    """Dict-backed ledger. on_transfer fires after each successful transfer, like a token callback,
    and may call back into the engine."""

    def __init__(self, balances: dict[str, int] | None = None) -> None:
        self._balances: dict[str, int] = dict(balances or {})
        self._allowances: dict[tuple[str, str], int] = {}
        self.transfers: list[tuple[str, str, int]] = []  # journal, rolled back with atomic()
        self.on_transfer: TransferHook | None = None

    def mint(self, identity: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("mint amount must be non-negative")
        self._balances[identity] = self._balances.get(identity, 0) + amount

    def balance_of(self, identity: str) -> int:
        return self._balances.get(identity, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        if amount < 0:
            return False
        self._allowances[(owner, spender)] = amount
        return True

    def transfer_from(self, src: str, dst: str, amount: int, spender: str | None = None) -> bool:
        if amount < 0:
            return False
        delegated = spender is not None and spender != src
        if delegated and self.allowance(src, spender) < amount:
            return False
        if self.balance_of(src) < amount:
            return False
        if delegated:
            self._allowances[(src, spender)] -= amount
        self._balances[src] -= amount
        self._balances[dst] = self._balances.get(dst, 0) + amount
        self.transfers.append((src, dst, amount))
        if self.on_transfer is not None:
            self.on_transfer(src, dst, amount)
        return True

    @contextmanager
    def atomic(self) -> Iterator[None]:
        saved = (dict(self._balances), dict(self._allowances), list(self.transfers))
        try:
            yield
        except Exception:
            self._balances, self._allowances, self.transfers = saved
            raise

    def total_supply(self) -> int:
        return sum(self._balances.values())
