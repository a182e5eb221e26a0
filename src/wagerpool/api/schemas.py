"""Pydantic schemas for API request/response consistency and OpenAPI docs."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from wagerpool.models.bet import BetSnapshot, Payout


# --- Health ---
class HealthResponse(BaseModel):
    status: str = "ok"


# --- Error (consistent shape for 4xx/5xx) ---
class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Human-readable message")
    code: str | None = Field(None, description="Machine-readable code, e.g. oversubscription, bet_not_found")


# --- Bet operations ---
class CreateBetRequest(BaseModel):
    caller: str = Field(..., min_length=1, description="Identity creating the bet; becomes its owner")
    odds: int = Field(..., description="Owner win probability numerator over odds_denominator")
    owner_stake: int


class CallerRequest(BaseModel):
    caller: str = Field(..., min_length=1)


class StakeRequest(BaseModel):
    caller: str = Field(..., min_length=1)
    amount: int


class BetsListResponse(BaseModel):
    bets: list[BetSnapshot]
    total: int


class SettleResponse(BaseModel):
    bet: BetSnapshot
    payouts: list[Payout]


class CloseResponse(BaseModel):
    bet_id: str
    returned_to_owner: int


class StakeAmountResponse(BaseModel):
    bet_id: str
    identity: str
    amount: int


class BetEventItem(BaseModel):
    id: int
    bet_id: str
    op: str
    actor: str
    amount: int | None = None
    ts: int
    payload: dict[str, Any] = Field(default_factory=dict)


class BetEventsResponse(BaseModel):
    bet_id: str
    events: list[BetEventItem]


# --- Ledger ---
class MintRequest(BaseModel):
    identity: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0)


class ApproveRequest(BaseModel):
    owner: str = Field(..., min_length=1)
    spender: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0)


class BalanceResponse(BaseModel):
    identity: str
    balance: int


class AllowanceResponse(BaseModel):
    owner: str
    spender: str
    amount: int
