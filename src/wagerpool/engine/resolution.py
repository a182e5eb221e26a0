"""Winner resolution from an injected entropy source."""

from __future__ import annotations

import random
import secrets
from typing import Iterable, Protocol

import structlog

from wagerpool.models.bet import Winner

log = structlog.get_logger(__name__)


class EntropySource(Protocol):
    """Draws one integer uniformly from [0, upper). Must be unpredictable to both sides before the draw."""

    def draw(self, upper: int) -> int: ...


class SystemEntropy:
    """OS CSPRNG via secrets. Default for live bets."""

    def draw(self, upper: int) -> int:
        return secrets.randbelow(upper)


class SeededEntropy:
    """Reproducible draws for simulations. Predictable by anyone who knows the seed."""

    def __init__(self, seed: int) -> None:
        self.seed = seed
        self._rng = random.Random(seed)

    def draw(self, upper: int) -> int:
        return self._rng.randrange(upper)


class FixedEntropy:
    """Returns preset values in order (last one repeats). For tests."""

    def __init__(self, values: int | Iterable[int]) -> None:
        self._values = [values] if isinstance(values, int) else list(values)
        if not self._values:
            raise ValueError("FixedEntropy needs at least one value")
        self._idx = 0

    def draw(self, upper: int) -> int:
        value = self._values[min(self._idx, len(self._values) - 1)]
        self._idx += 1
        return value


def entropy_from_name(name: str, seed: int | None = None) -> EntropySource:
    """Build an entropy source from config ("system" or "seeded")."""
    if name == "system":
        return SystemEntropy()
    if name == "seeded":
        if seed is None:
            raise ValueError("seeded entropy requires entropy_seed")
        return SeededEntropy(seed)
    raise ValueError(f"Unknown entropy source: {name}")


class ResolutionEngine:
    """Draws r in [0, odds_denominator); owner wins when r < odds."""

    def __init__(self, entropy: EntropySource) -> None:
        self.entropy = entropy

    def resolve(self, odds: int, odds_denominator: int) -> tuple[int, Winner]:
        r = self.entropy.draw(odds_denominator)
        if not 0 <= r < odds_denominator:
            raise ValueError(f"entropy draw {r} outside [0, {odds_denominator})")
        winner = Winner.OWNER if r < odds else Winner.PUBLIC
        log.debug("entropy_draw", r=r, odds=odds, odds_denominator=odds_denominator, winner=winner.value)
        return r, winner
