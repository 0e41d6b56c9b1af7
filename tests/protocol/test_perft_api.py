from __future__ import annotations

from fastapi.testclient import TestClient

from mailbox_chess.config import Settings
from mailbox_chess.protocol.http.app import create_app


KIWIPETE = "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1"


def _client() -> TestClient:
    return TestClient(create_app(Settings(hash_mb=1)))


def test_perft_startpos_defaults() -> None:
    r = _client().post("/api/perft", json={"depth": 3})
    assert r.status_code == 200
    assert r.json() == {"nodes": 8902}


def test_perft_divide() -> None:
    r = _client().post("/api/perft", json={"fen": KIWIPETE, "depth": 2, "divide": True})
    body = r.json()
    assert body["nodes"] == 2039
    assert len(body["divide"]) == 48
    assert body["divide"]["e1g1"] == 43
    assert sum(body["divide"].values()) == 2039


def test_perft_depth_zero_counts_root() -> None:
    assert _client().post("/api/perft", json={"depth": 0}).json() == {"nodes": 1}


def test_perft_rejects_bad_input() -> None:
    client = _client()
    assert client.post("/api/perft", json={"depth": 9}).status_code == 422
    r = client.post("/api/perft", json={"fen": "not a fen", "depth": 1})
    assert r.status_code == 400
    assert r.json()["error"]["type"] == "FenParseError"
