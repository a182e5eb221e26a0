"""REST API tests (FastAPI TestClient)."""

import pytest
from fastapi.testclient import TestClient

from wagerpool.api.main import create_app
from wagerpool.config import Settings
from wagerpool.engine.resolution import FixedEntropy


@pytest.fixture
def client(tmp_path):
    app = create_app(settings=Settings(), db_path=str(tmp_path / "api.duckdb"))
    with TestClient(app) as c:
        c.app.state.service.entropy = FixedEntropy(40)
        yield c


def _prepare(client, identity, spender, amount):
    assert client.post("/ledger/mint", json={"identity": identity, "amount": amount}).status_code == 200
    r = client.post("/ledger/approve", json={"owner": identity, "spender": spender, "amount": amount})
    assert r.json()["amount"] == amount


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_owner_wins_flow(client):
    r = client.post("/bets", json={"caller": "owner", "odds": 50, "owner_stake": 100})
    assert r.status_code == 201
    bet = r.json()
    bet_id, custody = bet["bet_id"], bet["custody"]
    assert bet["total_public_stake"] == 100
    assert bet["phase"] == "created"

    _prepare(client, "owner", custody, 100)
    assert client.post(f"/bets/{bet_id}/fund", json={"caller": "owner"}).json()["phase"] == "owner_funded"

    _prepare(client, "alice", custody, 100)
    r = client.post(f"/bets/{bet_id}/stake", json={"caller": "alice", "amount": 100})
    assert r.json()["public_funded"] is True
    assert client.get(f"/bets/{bet_id}/stakes/alice").json()["amount"] == 100

    r = client.post(f"/bets/{bet_id}/resolve", json={"caller": "owner"})
    assert r.json()["winner"] == "owner"
    assert r.json()["draw"] == 40

    r = client.post(f"/bets/{bet_id}/settle", json={"caller": "alice"})
    assert r.status_code == 200
    assert r.json()["payouts"] == [{"recipient": "owner", "amount": 200, "kind": "owner"}]
    assert client.get("/ledger/owner").json()["balance"] == 200

    r = client.post(f"/bets/{bet_id}/close", json={"caller": "owner"})
    assert r.json() == {"bet_id": bet_id, "returned_to_owner": 0}
    assert client.get(f"/bets/{bet_id}").status_code == 404
    ops = [e["op"] for e in client.get(f"/bets/{bet_id}/events").json()["events"]]
    assert ops == ["create", "fund", "stake", "resolve", "settle", "close"]


def test_error_mapping(client):
    r = client.post("/bets", json={"caller": "owner", "odds": 0, "owner_stake": 100})
    assert r.status_code == 400
    assert r.json()["code"] == "invalid_odds"

    bet = client.post("/bets", json={"caller": "owner", "odds": 50, "owner_stake": 100}).json()
    bet_id = bet["bet_id"]

    r = client.post(f"/bets/{bet_id}/stake", json={"caller": "alice", "amount": 10})
    assert r.status_code == 409
    assert r.json()["code"] == "not_yet_owner_funded"

    r = client.post(f"/bets/{bet_id}/stake", json={"caller": "alice", "amount": 0})
    assert r.status_code == 400
    assert r.json()["code"] == "zero_amount"

    r = client.post(f"/bets/{bet_id}/fund", json={"caller": "mallory"})
    assert r.status_code == 403
    assert r.json()["code"] == "unauthorized"

    r = client.post(f"/bets/{bet_id}/fund", json={"caller": "owner"})
    assert r.status_code == 400
    assert r.json()["code"] == "insufficient_allowance"

    r = client.post("/bets/nope/settle", json={"caller": "owner"})
    assert r.status_code == 404
    assert r.json()["code"] == "bet_not_found"


def test_list_bets(client):
    client.post("/bets", json={"caller": "a", "odds": 50, "owner_stake": 1})
    client.post("/bets", json={"caller": "b", "odds": 50, "owner_stake": 1})
    assert client.get("/bets").json()["total"] == 2
    assert [b["owner"] for b in client.get("/bets", params={"owner": "b"}).json()["bets"]] == ["b"]
