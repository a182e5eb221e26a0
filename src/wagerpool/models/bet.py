"""BetSnapshot, StakeEntry, Payout - canonical bet state."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class Winner(str, Enum):
    UNDETERMINED = "undetermined"
    OWNER = "owner"
    PUBLIC = "public"


class Phase(str, Enum):
    """Lifecycle phase, derived from the bet's one-way flags."""

    CREATED = "created"
    OWNER_FUNDED = "owner_funded"
    PUBLIC_FUNDED = "public_funded"
    EXECUTED = "executed"
    PAID = "paid"
    CLOSED = "closed"


class StakeEntry(BaseModel):
    """Cumulative stake of one public staker."""

    identity: str
    amount: int = Field(..., gt=0)


class Payout(BaseModel):
    """Single settlement transfer out of pool custody."""

    recipient: str
    amount: int = Field(..., ge=0)
    kind: str = Field(..., pattern="^(owner|share|remainder)$")


class BetSnapshot(BaseModel):
    """Full persisted state of one bet. Stakes are in first-stake order."""

    bet_id: str
    owner: str
    custody: str
    odds: int
    odds_denominator: int = 100
    owner_stake: int
    total_public_stake: int
    current_public_stake: int = 0
    owner_funded: bool = False
    public_funded: bool = False
    executed: bool = False
    paid: bool = False
    closed: bool = False
    winner: Winner = Winner.UNDETERMINED
    draw: int | None = None  # entropy value drawn at resolution
    stakes: list[StakeEntry] = Field(default_factory=list)
    phase: Phase = Phase.CREATED
    created_at: int | None = None  # ms epoch

    @property
    def pool(self) -> int:
        return self.owner_stake + self.total_public_stake

    def stake_of(self, identity: str) -> int:
        for entry in self.stakes:
            if entry.identity == identity:
                return entry.amount
        return 0
