"""
FastAPI application: one route group per configured deployment.

Endpoints:
    GET     /api/{route}?address=0x..         -- like count for an address
    GET     /api/{route}                      -- mini-app action metadata
    POST    /api/{route}?contentCreator=0x..  -- serialized unsigned like() tx
    OPTIONS /api/{route}                      -- CORS preflight
    GET     /  and  /ui/{route}               -- browser page
    GET     /healthz

Run:
    uvicorn wallet_reputation.api:create_app --factory --port 8000
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, JSONResponse, Response

from wallet_reputation.addresses import is_well_formed_address
from wallet_reputation.config import Deployment, Settings, load_settings
from wallet_reputation.logger import get_logger
from wallet_reputation.metadata import build_action_metadata, server_url
from wallet_reputation.page import render_page
from wallet_reputation.transactions import (
    COUNT_METHOD,
    INVALID_ADDRESS,
    build_like_transaction,
    check_like_request,
    like_selector,
)
from wallet_reputation.web3_client import ChainGateway, Web3Gateway

logger = get_logger(__name__)

ALLOW_ORIGIN = {"Access-Control-Allow-Origin": "*"}
PREFLIGHT_HEADERS = {
    **ALLOW_ORIGIN,
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

GatewayFactory = Callable[[Deployment], ChainGateway]


def _json(payload: dict, status_code: int = 200) -> JSONResponse:
    return JSONResponse(payload, status_code=status_code, headers=ALLOW_ORIGIN)


def _error(message: str, status_code: int) -> JSONResponse:
    return _json({"error": message}, status_code)


def create_app(
    settings: Optional[Settings] = None,
    gateway_factory: Optional[GatewayFactory] = None,
) -> FastAPI:
    """
    Build the app. Gateways are created up front (no network access) so a
    bad ABI or contract address fails at startup rather than per request.
    """
    settings = settings or load_settings()
    if gateway_factory is None:
        def gateway_factory(d: Deployment) -> ChainGateway:
            return Web3Gateway.for_deployment(
                d, abi_path=settings.abi_path, request_timeout_sec=settings.rpc_timeout_sec
            )

    gateways: Dict[str, ChainGateway] = {d.route: gateway_factory(d) for d in settings.deployments}

    app = FastAPI(
        title="Wallet Reputation API",
        description="Read and give on-chain reputation (likes) for Ethereum addresses",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.gateways = gateways

    logger.info(
        "app_configured",
        routes=[d.route for d in settings.deployments],
        chains=[d.chain_name for d in settings.deployments],
    )

    def _lookup(route: str) -> Optional[Deployment]:
        try:
            return settings.deployment(route)
        except KeyError:
            return None

    # API
    @app.options("/api/{route}")
    async def preflight(route: str):
        return Response(status_code=204, headers=PREFLIGHT_HEADERS)

    @app.get("/api/{route}")
    async def get_reputation_or_metadata(route: str, request: Request):
        deployment = _lookup(route)
        if deployment is None:
            return _error("Not found", 404)

        address = request.query_params.get("address")
        if address:
            return await _read_reputation(deployment, gateways[route], address)

        try:
            base_url = server_url(request.headers.get("host"), request.headers.get("x-forwarded-proto"))
            metadata = build_action_metadata(deployment, settings, base_url)
        except Exception:
            logger.exception("metadata_build_failed", route=route)
            return _error("Failed to create metadata", 500)
        return _json(metadata.to_dict())

    @app.post("/api/{route}")
    async def build_like(route: str, request: Request):
        deployment = _lookup(route)
        if deployment is None:
            return _error("Not found", 404)

        try:
            body = await request.json()
        except ValueError:
            body = None
        creator = request.query_params.get("contentCreator")

        rejection = check_like_request(body, creator)
        if rejection is not None:
            logger.info("like_tx_rejected", route=route, kind=rejection.kind.value)
            return _error(rejection.message, 400)

        try:
            payload = build_like_transaction(
                gateways[route],
                contract_address=deployment.contract_address,
                chain_id=deployment.chain_id,
                chain_name=deployment.chain_name,
                creator=creator,
            )
        except Exception:
            logger.exception("like_tx_build_failed", route=route)
            return _error("Internal Server Error", 500)

        logger.info("like_tx_built", route=route, chain_id=deployment.chain_id, creator=creator)
        return _json(payload.to_dict())

    # Browser page
    @app.get("/", response_class=HTMLResponse)
    async def index():
        return _page(settings.deployments[0])

    @app.get("/ui/{route}", response_class=HTMLResponse)
    async def page_for_route(route: str):
        deployment = _lookup(route)
        if deployment is None:
            return HTMLResponse("<html><body>Not found</body></html>", status_code=404)
        return _page(deployment)

    def _page(deployment: Deployment) -> HTMLResponse:
        return HTMLResponse(render_page(deployment, like_selector(gateways[deployment.route])))

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok", "deployments": [d.route for d in settings.deployments]}

    return app


async def _read_reputation(deployment: Deployment, gateway: ChainGateway, address: str) -> JSONResponse:
    if not is_well_formed_address(address):
        return _error(INVALID_ADDRESS.message, 400)
    try:
        count = await run_in_threadpool(gateway.read_uint, COUNT_METHOD, [address])
    except Exception:
        logger.exception("reputation_read_failed", route=deployment.route, address=address)
        return _error("Failed to fetch reputation count from the blockchain.", 500)
    return _json({"address": address, "reputation": str(count)})
