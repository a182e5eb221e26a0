"""DuckDB persistence - bets, stakes, ledger tables and the bet event log."""
