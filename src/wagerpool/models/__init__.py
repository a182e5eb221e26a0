"""Canonical schema (Pydantic) - Bet snapshot, stakes, payouts."""

from wagerpool.models.bet import BetSnapshot, Payout, Phase, StakeEntry, Winner

__all__ = [
    "BetSnapshot",
    "Payout",
    "Phase",
    "StakeEntry",
    "Winner",
]
