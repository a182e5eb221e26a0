"""BetService over DuckDB: persistence, event log, transactional rollback."""

import threading

import pytest

from wagerpool.engine.resolution import FixedEntropy
from wagerpool.errors import (
    AlreadyFullyFunded,
    BetNotFound,
    Oversubscription,
    TransferFailed,
    Unauthorized,
)
from wagerpool.models.bet import Phase, Winner
from wagerpool.service import BetService
from wagerpool.storage.bets import list_bets, load_bet
from wagerpool.storage.db import get_connection, init_schema
from wagerpool.storage.event_log import list_bet_events, log_stats


@pytest.fixture
def temp_db(tmp_path):
    conn = get_connection(tmp_path / "test.duckdb")
    init_schema(conn)
    yield conn
    conn.close()


def _funded(svc, odds=25, owner_stake=40):
    svc.mint("owner", owner_stake)
    bet = svc.create_bet("owner", odds, owner_stake)
    svc.approve("owner", bet.custody, owner_stake)
    svc.fund(bet.bet_id, "owner")
    return bet


def _stake(svc, bet, who, amount):
    svc.mint(who, amount)
    svc.approve(who, bet.custody, amount)
    return svc.stake(bet.bet_id, who, amount)


def test_full_lifecycle_persisted(temp_db):
    svc = BetService(temp_db, entropy=FixedEntropy(80))
    bet = _funded(svc)
    _stake(svc, bet, "s1", 60)
    snap = _stake(svc, bet, "s2", 100)
    assert snap.phase is Phase.PUBLIC_FUNDED

    stored = load_bet(temp_db, bet.bet_id)
    assert [(e.identity, e.amount) for e in stored.stakes] == [("s1", 60), ("s2", 100)]
    assert stored.public_funded and stored.phase is Phase.PUBLIC_FUNDED

    resolved = svc.resolve(bet.bet_id, "owner")
    assert resolved.winner is Winner.PUBLIC and resolved.draw == 80
    settled, payouts = svc.settle(bet.bet_id, "s1")
    assert settled.paid
    assert {p.recipient: p.amount for p in payouts} == {"s1": 75, "s2": 125}
    assert svc.balance("s1") == 75
    assert svc.balance(bet.custody) == 0

    closed, returned = svc.close(bet.bet_id, "owner")
    assert closed.phase is Phase.CLOSED and returned == 0
    with pytest.raises(BetNotFound):
        svc.get_bet(bet.bet_id)

    ops = [e["op"] for e in list_bet_events(temp_db, bet.bet_id)]
    assert ops == ["create", "fund", "stake", "stake", "resolve", "settle", "close"]
    settle_event = list_bet_events(temp_db, bet.bet_id)[5]
    assert settle_event["payload"]["payouts"][0]["recipient"] == "s1"


def test_rejected_operation_leaves_no_trace(temp_db):
    svc = BetService(temp_db)
    bet = _funded(svc, odds=50, owner_stake=100)
    svc.mint("bob", 200)
    svc.approve("bob", bet.custody, 200)
    with pytest.raises(Oversubscription):
        svc.stake(bet.bet_id, "bob", 101)
    with pytest.raises(Unauthorized):
        svc.resolve(bet.bet_id, "bob")
    assert load_bet(temp_db, bet.bet_id).current_public_stake == 0
    assert svc.balance("bob") == 200
    assert [e["op"] for e in svc.events(bet.bet_id)] == ["create", "fund"]


def test_failed_transfer_rolls_back_transaction(temp_db):
    svc = BetService(temp_db)
    bet = _funded(svc, odds=50, owner_stake=100)
    svc.approve("carol", bet.custody, 50)  # no balance
    with pytest.raises(TransferFailed):
        svc.stake(bet.bet_id, "carol", 50)
    stored = svc.get_bet(bet.bet_id)
    assert stored.current_public_stake == 0
    assert stored.stakes == []
    assert svc.allowance("carol", bet.custody) == 50


def test_repeat_stake_updates_row_in_place(temp_db):
    svc = BetService(temp_db)
    bet = _funded(svc, odds=50, owner_stake=100)
    _stake(svc, bet, "bob", 10)
    _stake(svc, bet, "alice", 10)
    _stake(svc, bet, "bob", 15)
    stored = svc.get_bet(bet.bet_id)
    assert [(e.identity, e.amount) for e in stored.stakes] == [("bob", 25), ("alice", 10)]
    assert svc.get_stake(bet.bet_id, "bob") == 25
    assert svc.get_stake(bet.bet_id, "nobody") == 0


def test_list_bets_and_stats(temp_db):
    svc = BetService(temp_db)
    svc.create_bet("owner", 50, 10)
    svc.create_bet("other", 20, 5)
    assert len(list_bets(temp_db)) == 2
    assert [b.owner for b in svc.list_bets(owner="other")] == ["other"]
    stats = log_stats(temp_db)
    assert stats["total_events"] == 2
    assert stats["bet_count"] == 2
    assert stats["by_op"] == [{"op": "create", "count": 2}]


def test_unknown_bet(temp_db):
    svc = BetService(temp_db)
    with pytest.raises(BetNotFound):
        svc.fund("missing", "owner")


def test_concurrent_service_stakes_are_serialized(temp_db):
    svc = BetService(temp_db)
    bet = _funded(svc, odds=50, owner_stake=100)
    stakers = [f"s{i}" for i in range(8)]
    for who in stakers:
        svc.mint(who, 25)
        svc.approve(who, bet.custody, 25)
    barrier = threading.Barrier(len(stakers))
    errors = []

    def worker(who):
        barrier.wait()
        try:
            svc.stake(bet.bet_id, who, 25)
        except (Oversubscription, AlreadyFullyFunded) as e:
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(who,)) for who in stakers]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    stored = svc.get_bet(bet.bet_id)
    assert stored.current_public_stake == 100
    assert stored.public_funded
    assert len(stored.stakes) == 4
    assert sum(e.amount for e in stored.stakes) == 100
    assert len(errors) == 4
    assert svc.balance(bet.custody) == 200
    assert [e["op"] for e in svc.events(bet.bet_id)].count("stake") == 4
