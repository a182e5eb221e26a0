"""Asset ledger gateway and reference adapters."""

from wagerpool.ledger.base import LedgerGateway
from wagerpool.ledger.duckdb_ledger import DuckDBLedger
from wagerpool.ledger.memory import InMemoryLedger

__all__ = ["DuckDBLedger", "InMemoryLedger", "LedgerGateway"]
