"""WagerPool - two-sided pari-mutuel wager settlement engine."""

__version__ = "0.1.0"
