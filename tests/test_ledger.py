"""Reference ledger adapters: transfers, allowances, atomic rollback."""

import pytest

from wagerpool.ledger.duckdb_ledger import DuckDBLedger
from wagerpool.ledger.memory import InMemoryLedger
from wagerpool.storage.db import get_connection, init_schema


@pytest.fixture
def temp_db(tmp_path):
    conn = get_connection(tmp_path / "ledger.duckdb")
    init_schema(conn)
    yield conn
    conn.close()


@pytest.fixture(params=["memory", "duckdb"])
def ledger(request, temp_db):
    if request.param == "memory":
        return InMemoryLedger()
    return DuckDBLedger(temp_db)


def test_own_transfer_needs_no_allowance(ledger):
    ledger.mint("a", 10)
    assert ledger.transfer_from("a", "b", 4)
    assert ledger.balance_of("a") == 6
    assert ledger.balance_of("b") == 4


def test_delegated_transfer_consumes_allowance(ledger):
    ledger.mint("a", 10)
    assert not ledger.transfer_from("a", "c", 5, spender="s")
    assert ledger.approve("a", "s", 7)
    assert ledger.transfer_from("a", "c", 5, spender="s")
    assert ledger.allowance("a", "s") == 2
    assert not ledger.transfer_from("a", "c", 3, spender="s")
    assert ledger.balance_of("c") == 5


def test_insufficient_balance_returns_false(ledger):
    ledger.mint("a", 3)
    assert not ledger.transfer_from("a", "b", 4)
    assert ledger.balance_of("a") == 3
    assert ledger.balance_of("b") == 0


def test_atomic_rolls_back_on_error(ledger):
    ledger.mint("a", 10)
    with pytest.raises(RuntimeError):
        with ledger.atomic():
            ledger.transfer_from("a", "b", 4)
            with ledger.atomic():
                ledger.transfer_from("a", "c", 1)
            raise RuntimeError("boom")
    assert ledger.balance_of("a") == 10
    assert ledger.balance_of("b") == 0
    assert ledger.balance_of("c") == 0


def test_atomic_commits_on_success(ledger):
    ledger.mint("a", 10)
    with ledger.atomic():
        ledger.transfer_from("a", "b", 4)
    assert ledger.balance_of("b") == 4


def test_negative_amounts_rejected(ledger):
    ledger.mint("a", 10)
    assert not ledger.transfer_from("a", "b", -1)
    assert not ledger.approve("a", "s", -1)
    with pytest.raises(ValueError):
        ledger.mint("a", -1)


def test_memory_journal_and_hook():
    ledger = InMemoryLedger({"a": 5})
    calls = []
    ledger.on_transfer = lambda src, dst, amount: calls.append((src, dst, amount))
    ledger.transfer_from("a", "b", 2)
    assert calls == [("a", "b", 2)]
    assert ledger.transfers == [("a", "b", 2)]
    assert ledger.total_supply() == 5


def test_duckdb_ledger_persists_across_connections(tmp_path):
    path = tmp_path / "persist.duckdb"
    conn = get_connection(path)
    init_schema(conn)
    DuckDBLedger(conn).mint("a", 42)
    conn.close()
    conn = get_connection(path)
    try:
        assert DuckDBLedger(conn).balance_of("a") == 42
    finally:
        conn.close()
