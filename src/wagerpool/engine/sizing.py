"""Public pool sizing from owner stake and odds.

Capacity is ``(odds_denominator // odds) * owner_stake``. The integer division truncates, so the
public pool can be undersized relative to the true odds (odds=30 gives a 3x pool instead of 3.33x).
This bias is part of the payout contract: changing it changes what every staker receives.
"""

from __future__ import annotations

from wagerpool.errors import InvalidOdds, ZeroAmount

ODDS_DENOMINATOR = 100


def pool_capacity(odds: int, owner_stake: int, odds_denominator: int = ODDS_DENOMINATOR) -> int:
    """Return total public stake capacity. Raises InvalidOdds / ZeroAmount on bad input."""
    if odds_denominator <= 0:
        raise InvalidOdds(f"odds_denominator must be positive, got {odds_denominator}")
    if odds <= 0 or odds > odds_denominator:
        raise InvalidOdds(f"odds must be in (0, {odds_denominator}], got {odds}")
    if owner_stake <= 0:
        raise ZeroAmount(f"owner_stake must be positive, got {owner_stake}")
    return (odds_denominator // odds) * owner_stake
