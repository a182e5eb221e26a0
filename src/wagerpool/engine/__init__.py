"""Staking-pool accounting, admission, resolution and settlement."""

from wagerpool.engine.lifecycle import Bet
from wagerpool.engine.resolution import FixedEntropy, SeededEntropy, SystemEntropy
from wagerpool.engine.sizing import ODDS_DENOMINATOR, pool_capacity

__all__ = [
    "Bet",
    "FixedEntropy",
    "ODDS_DENOMINATOR",
    "SeededEntropy",
    "SystemEntropy",
    "pool_capacity",
]
