"""Resolution and entropy source tests."""

import pytest

from wagerpool.engine.resolution import (
    FixedEntropy,
    ResolutionEngine,
    SeededEntropy,
    SystemEntropy,
    entropy_from_name,
)
from wagerpool.models.bet import Winner


def test_owner_wins_below_odds():
    eng = ResolutionEngine(FixedEntropy(40))
    assert eng.resolve(50, 100) == (40, Winner.OWNER)


def test_public_wins_at_or_above_odds():
    assert ResolutionEngine(FixedEntropy(50)).resolve(50, 100) == (50, Winner.PUBLIC)
    assert ResolutionEngine(FixedEntropy(99)).resolve(50, 100) == (99, Winner.PUBLIC)


def test_out_of_range_draw_rejected():
    with pytest.raises(ValueError):
        ResolutionEngine(FixedEntropy(100)).resolve(50, 100)


def test_fixed_entropy_sequence_repeats_last():
    src = FixedEntropy([3, 7])
    assert [src.draw(10) for _ in range(4)] == [3, 7, 7, 7]


def test_seeded_entropy_reproducible():
    a = SeededEntropy(42)
    b = SeededEntropy(42)
    assert [a.draw(100) for _ in range(20)] == [b.draw(100) for _ in range(20)]


def test_system_entropy_in_range():
    src = SystemEntropy()
    assert all(0 <= src.draw(100) < 100 for _ in range(200))


def test_entropy_from_name():
    assert isinstance(entropy_from_name("system"), SystemEntropy)
    seeded = entropy_from_name("seeded", 7)
    assert isinstance(seeded, SeededEntropy) and seeded.seed == 7
    with pytest.raises(ValueError):
        entropy_from_name("seeded")
    with pytest.raises(ValueError):
        entropy_from_name("blockhash")
