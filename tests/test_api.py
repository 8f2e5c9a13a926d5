"""
HTTP surface: reads, metadata, transaction building and preflight, for both
configured route variants.
"""

from __future__ import annotations

import pytest
import rlp
from eth_utils import decode_hex, function_signature_to_4byte_selector, to_canonical_address

from wallet_reputation.config import Settings

ADDR_1 = "0x1111111111111111111111111111111111111111"
ADDR_2 = "0x2222222222222222222222222222222222222222"
MIXED = "0xABCDEFABCDEFABCDEFABCDEFABCDEFABCDEFABCD"
BAD_CHECKSUM = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAeD"  # EIP-55 vector, last char flipped
LIKE_SELECTOR = function_signature_to_4byte_selector("like(address)")


# --- reads ---

def test_read_count(client, gateways):
    gateways["wallet-reputation"].counts[ADDR_1] = 5
    resp = client.get("/api/wallet-reputation", params={"address": ADDR_1})
    assert resp.status_code == 200
    assert resp.json() == {"address": ADDR_1, "reputation": "5"}
    assert gateways["wallet-reputation"].reads == [("likeCounts", [ADDR_1])]
    assert gateways["fuji-reputation"].reads == []


def test_read_large_count_is_exact(client, gateways):
    gateways["fuji-reputation"].counts[ADDR_2] = 2**256 - 1
    resp = client.get("/api/fuji-reputation", params={"address": ADDR_2})
    assert resp.json()["reputation"] == str(2**256 - 1)


@pytest.mark.parametrize("address", ["0x1234", "hello", ADDR_1[2:], "0xAbcdefabcdefabcdefabcdefabcdefabcdefabcd", BAD_CHECKSUM])
def test_read_rejects_malformed(client, gateways, address):
    resp = client.get("/api/wallet-reputation", params={"address": address})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid Ethereum address provided."}
    assert gateways["wallet-reputation"].reads == []


def test_read_failure_is_generic_500(client, gateways):
    gateways["wallet-reputation"].fail_reads = True
    resp = client.get("/api/wallet-reputation", params={"address": ADDR_1})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to fetch reputation count from the blockchain."}
    assert "refused" not in resp.text


# --- metadata ---

def test_metadata_without_address(client):
    resp = client.get("/api/wallet-reputation", headers={"x-forwarded-proto": "https"})
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"
    body = resp.json()
    assert body["baseUrl"] == "https://testserver"
    assert body["actions"][0]["path"] == "/api/wallet-reputation"
    assert body["actions"][0]["params"][0]["name"] == "contentCreator"


@pytest.mark.parametrize("proto,expected", [
    ("https,http", "https://testserver"),
    ("HTTPS", "https://testserver"),
    ("foo", "http://testserver"),
])
def test_metadata_forwarded_proto(client, proto, expected):
    resp = client.get("/api/wallet-reputation", headers={"x-forwarded-proto": proto})
    assert resp.status_code == 200
    assert resp.json()["baseUrl"] == expected


def test_empty_address_falls_through_to_metadata(client):
    resp = client.get("/api/wallet-reputation?address=")
    assert resp.status_code == 200
    assert "actions" in resp.json()


def test_metadata_failure_is_500(settings, gateways):
    from fastapi.testclient import TestClient

    from wallet_reputation.api import create_app

    bad = Settings(deployments=settings.deployments, icon_url="not-a-url")
    client = TestClient(create_app(bad, gateway_factory=lambda d: gateways[d.route]))
    resp = client.get("/api/wallet-reputation")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to create metadata"}


# --- transaction builder ---

def _post(client, route="wallet-reputation", creator=ADDR_2, body=None, **kw):
    params = {"contentCreator": creator} if creator is not None else {}
    if body is None and "content" not in kw:
        body = {"account": ADDR_1}
    return client.post(f"/api/{route}", params=params, json=body, **kw)


@pytest.mark.parametrize("route,contract,chain_id,chain_name", [
    ("wallet-reputation", "0xeBCeE50B5Cd15907Cd77D89bCE87823D4d30250F", 84532, "Base Sepolia"),
    ("fuji-reputation", "0x" + "ab" * 20, 43113, "Avalanche Fuji"),
])
def test_build_like_tx(client, route, contract, chain_id, chain_name):
    resp = _post(client, route=route)
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"
    body = resp.json()
    assert body["chainId"] == chain_name
    fields = rlp.decode(decode_hex(body["serializedTransaction"]))
    assert fields[3] == to_canonical_address(contract)
    assert fields[5][:4] == LIKE_SELECTOR
    assert fields[5][4:] == b"\x00" * 12 + to_canonical_address(ADDR_2)
    assert int.from_bytes(fields[6], "big") == chain_id


def test_self_like_any_casing(client):
    resp = _post(client, creator=MIXED, body={"account": MIXED.lower()})
    assert resp.status_code == 400
    assert resp.json() == {"error": "You cannot give reputation to yourself."}


def test_self_like_example(client):
    resp = _post(client, creator=ADDR_2, body={"account": ADDR_2})
    assert resp.status_code == 400
    assert resp.json() == {"error": "You cannot give reputation to yourself."}


@pytest.mark.parametrize("creator,account", [
    ("0x1234", ADDR_1),
    (ADDR_2, "0xnot-an-address"),
    (BAD_CHECKSUM, ADDR_1),
    (ADDR_2, BAD_CHECKSUM),
])
def test_malformed_addresses_rejected_before_encoding(client, gateways, creator, account):
    resp = _post(client, creator=creator, body={"account": account})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid Ethereum address provided."}
    assert gateways["wallet-reputation"].encodes == 0


def test_missing_fields(client):
    resp = _post(client, body={})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Connected account address is required."}
    resp = _post(client, creator=None)
    assert resp.status_code == 400
    assert resp.json() == {"error": "The contentCreator address parameter is required."}


@pytest.mark.parametrize("content", [b"", b"{not json", b"[1, 2]", b"null"])
def test_malformed_body(client, gateways, content):
    resp = _post(client, content=content, headers={"content-type": "application/json"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid JSON body."}
    assert gateways["wallet-reputation"].encodes == 0


def test_encode_failure_is_generic_500(client, gateways, monkeypatch):
    def boom(method, args):
        raise RuntimeError("codec exploded")

    monkeypatch.setattr(gateways["wallet-reputation"], "encode_call", boom)
    resp = _post(client)
    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal Server Error"}


# --- preflight, routing, page ---

@pytest.mark.parametrize("route", ["wallet-reputation", "fuji-reputation"])
def test_preflight(client, route):
    resp = client.options(f"/api/{route}")
    assert resp.status_code == 204
    assert resp.content == b""
    assert resp.headers["access-control-allow-origin"] == "*"
    assert resp.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
    assert resp.headers["access-control-allow-headers"] == "Content-Type, Authorization"


def test_unknown_route(client):
    assert client.get("/api/nope").status_code == 404
    assert _post(client, route="nope").status_code == 404


def test_page(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    assert '"apiPath": "/api/wallet-reputation"' in resp.text
    assert f'"likeSelector": "0x{LIKE_SELECTOR.hex()}"' in resp.text
    # the like target is only switched once its count has loaded
    assert resp.text.index("await fetchCount(address);\n    queried = address;") > resp.text.index("queried = null;")
    assert "Base Sepolia" in resp.text

    resp = client.get("/ui/fuji-reputation")
    assert '"chainId": 43113' in resp.text
    assert client.get("/ui/nope").status_code == 404


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok", "deployments": ["wallet-reputation", "fuji-reputation"]}
