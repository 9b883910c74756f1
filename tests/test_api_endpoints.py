import pytest
from fastapi.testclient import TestClient

from ledger_node.core.block import GENESIS_HASH, genesis_block
from ledger_node.ledger_api import create_app
from ledger_node.node import LedgerNode


@pytest.fixture
def node():
    return LedgerNode()


@pytest.fixture
def client(node):
    # no `with`: lifespan (peer server) stays off
    return TestClient(create_app(node))


def test_health(client):
    body = client.get("/health").json()
    assert body == {"ok": True, "height": 0, "peers": 0}


def test_blocks_starts_with_genesis(client):
    resp = client.get("/blocks")
    assert resp.status_code == 200
    assert resp.json() == [genesis_block().to_dict()]


def test_mine_block_appends_and_returns_it(client, node):
    resp = client.post("/mineBlock", json={"data": "hello"})
    assert resp.status_code == 200
    block = resp.json()
    assert block["index"] == 1
    assert block["previousHash"] == GENESIS_HASH
    assert block["data"] == "hello"

    blocks = client.get("/blocks").json()
    assert len(blocks) == 2
    assert blocks[-1] == block
    assert node.store.tail().hash == block["hash"]


def test_mine_block_requires_data(client):
    assert client.post("/mineBlock", json={}).status_code == 422


def test_mine_block_broadcasts_new_tip(client, node, monkeypatch):
    sent = []
    monkeypatch.setattr(node.links, "broadcast", sent.append)
    client.post("/mineBlock", json={"data": "a"})
    assert len(sent) == 1
    assert sent[0].blocks == (node.store.tail(),)


def test_peers_and_add_peer(client, node, monkeypatch):
    dialed = []
    monkeypatch.setattr(node, "add_peer", dialed.append)

    assert client.get("/peers").json() == []
    resp = client.post("/addPeer", json={"peer": " ws://10.0.0.2:6001 "})
    assert resp.status_code == 202
    assert resp.json() == {"ok": True, "peer": "ws://10.0.0.2:6001"}
    assert dialed == ["ws://10.0.0.2:6001"]


def test_add_peer_rejects_blank(client):
    assert client.post("/addPeer", json={"peer": "  "}).status_code == 400


def test_create_app_builds_node_from_config(tmp_path, monkeypatch):
    monkeypatch.setenv("LEDGER_CONFIG", str(tmp_path / "missing.yaml"))
    monkeypatch.setenv("P2P_PORT", "6101")
    monkeypatch.setenv("PEERS", "ws://10.0.0.3:6001")
    app = create_app()
    settings = app.state.node.settings
    assert settings.p2p_port == 6101
    assert settings.peers == ["ws://10.0.0.3:6001"]
