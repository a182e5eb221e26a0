"""Public stake admission - capacity and funding-phase gating over the staker ledger."""

from __future__ import annotations

from wagerpool.errors import AlreadyFullyFunded, NotYetOwnerFunded, Oversubscription, ZeroAmount
from wagerpool.models.bet import StakeEntry


class StakeAdmissionController:
    """Staker ledger for one bet: cumulative stake per identity, first-stake order, running total.

    Admission is all-or-nothing: validate() rejects before anything is recorded, and a recorded
    stake whose transfer later fails is undone with revert().
    """

    __slots__ = ("capacity", "stake_by_address", "staker_order", "current")

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        self.stake_by_address: dict[str, int] = {}
        self.staker_order: list[str] = []
        self.current = 0

    @property
    def remaining(self) -> int:
        return self.capacity - self.current

    @property
    def full(self) -> bool:
        return self.current == self.capacity

    def validate(self, amount: int, owner_funded: bool) -> None:
        # Zero is rejected before any phase or capacity check.
        if amount <= 0:
            raise ZeroAmount(f"stake amount must be positive, got {amount}")
        if not owner_funded:
            raise NotYetOwnerFunded()
        if self.full:
            raise AlreadyFullyFunded()
        if amount > self.remaining:
            raise Oversubscription(f"requested {amount}, remaining capacity {self.remaining}")

    def admit(self, identity: str, amount: int) -> bool:
        """Record the stake. Returns True when this is the identity's first stake."""
        first = identity not in self.stake_by_address
        if first:
            self.staker_order.append(identity)
            self.stake_by_address[identity] = 0
        self.stake_by_address[identity] += amount
        self.current += amount
        return first

    def revert(self, identity: str, amount: int, first: bool) -> None:
        """Undo a single admit() whose transfer failed."""
        self.stake_by_address[identity] -= amount
        self.current -= amount
        if first:
            del self.stake_by_address[identity]
            self.staker_order.remove(identity)

    def stake_of(self, identity: str) -> int:
        return self.stake_by_address.get(identity, 0)

    def entries(self) -> list[StakeEntry]:
        return [StakeEntry(identity=i, amount=self.stake_by_address[i]) for i in self.staker_order]

    def load(self, entries: list[StakeEntry]) -> None:
        """Restore from persisted entries (already in first-stake order)."""
        self.stake_by_address = {}
        self.staker_order = []
        self.current = 0
        for entry in entries:
            self.admit(entry.identity, entry.amount)
        if self.current > self.capacity:
            raise ValueError(f"persisted stakes {self.current} exceed capacity {self.capacity}")
