"""LedgerGateway protocol - the only asset-moving capability the engine depends on."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Protocol


class LedgerGateway(Protocol):
    """Balance, allowance and transfer primitives over integer amounts.

    transfer_from() returns False (does not raise) on insufficient balance or allowance.
    When spender is None or equals src, src is moving its own funds and no allowance is used.
    atomic() scopes nest; everything done inside is rolled back if the block raises.
    """

    def balance_of(self, identity: str) -> int: ...

    def allowance(self, owner: str, spender: str) -> int: ...

    def approve(self, owner: str, spender: str, amount: int) -> bool: ...

    def transfer_from(self, src: str, dst: str, amount: int, spender: str | None = None) -> bool: ...

    def atomic(self) -> AbstractContextManager[None]: ...
