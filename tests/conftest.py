"""
Shared fixtures: a two-route Settings and a gateway that encodes for real
(web3 + rlp, no network) but answers reads from a dict.
"""

from __future__ import annotations

import pytest

from wallet_reputation.config import Settings, make_deployment
from wallet_reputation.web3_client import ReputationReadError, Web3Gateway

BASE_CONTRACT = "0xeBCeE50B5Cd15907Cd77D89bCE87823D4d30250F"
FUJI_CONTRACT = "0x" + "ab" * 20


class FakeGateway:
    def __init__(self, deployment, counts=None):
        self._real = Web3Gateway.for_deployment(deployment)
        self.counts = counts if counts is not None else {}
        self.fail_reads = False
        self.reads = []
        self.encodes = 0

    def read_uint(self, method, args):
        self.reads.append((method, list(args)))
        if self.fail_reads:
            raise ReputationReadError("connection refused")
        return self.counts.get(args[0].lower(), 0)

    def encode_call(self, method, args):
        self.encodes += 1
        return self._real.encode_call(method, args)

    def serialize_legacy_tx(self, tx):
        return self._real.serialize_legacy_tx(tx)


@pytest.fixture
def settings():
    return Settings(
        deployments=[
            make_deployment(route="wallet-reputation", contract_address=BASE_CONTRACT, chain_id=84532),
            make_deployment(route="fuji-reputation", contract_address=FUJI_CONTRACT, chain_id=43113),
        ]
    )


@pytest.fixture
def gateways(settings):
    return {d.route: FakeGateway(d) for d in settings.deployments}


@pytest.fixture
def client(settings, gateways):
    """FastAPI TestClient wired to FakeGateway instances."""
    from fastapi.testclient import TestClient

    from wallet_reputation.api import create_app

    app = create_app(settings, gateway_factory=lambda d: gateways[d.route])
    return TestClient(app)
