# wallet_reputation/config.py
# -----------------------------------------------------------------------------
# Deployment configuration
#
# Each route variant (/api/<route>) is pinned to one contract on one chain.
# A deployment comes either from env (single route) or from a JSON file named
# by DEPLOYMENTS_PATH:
#
#   {"deployments": [{"route": "wallet-reputation",
#                     "contract_address": "0x...",
#                     "chain_id": 84532}, ...]}
#
# chain_name / rpc_url / explorer_url fall back to the known-chain table when
# omitted. Anything missing or malformed raises RuntimeError at startup.
# -----------------------------------------------------------------------------

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from wallet_reputation.addresses import checksum, is_well_formed_address

DEFAULT_CONTRACT_ADDRESS = "0xeBCeE50B5Cd15907Cd77D89bCE87823D4d30250F"
DEFAULT_CHAIN_ID = 84532  # Base Sepolia
DEFAULT_ROUTE = "wallet-reputation"
DEFAULT_APP_URL = "https://mini-app-sherry-wallet-reputation.vercel.app/"
DEFAULT_ICON_URL = "https://mini-app-sherry-wallet-reputation.vercel.app/icon-reputation.jpeg"

ROUTE_RE = re.compile(r"^[a-z0-9][a-z0-9-]*$")


@dataclass(frozen=True)
class ChainInfo:
    name: str
    rpc_url: str
    explorer_url: str
    source_chain: str


# chain_id -> (display name, public RPC, block explorer, mini-app chain label)
KNOWN_CHAINS: Dict[int, ChainInfo] = {
    1: ChainInfo("Ethereum", "https://eth.merkle.io", "https://etherscan.io", "ethereum"),
    11155111: ChainInfo("Sepolia", "https://sepolia.drpc.org", "https://sepolia.etherscan.io", "sepolia"),
    8453: ChainInfo("Base", "https://mainnet.base.org", "https://basescan.org", "base"),
    84532: ChainInfo("Base Sepolia", "https://sepolia.base.org", "https://sepolia.basescan.org", "sepolia"),
    43114: ChainInfo("Avalanche", "https://api.avax.network/ext/bc/C/rpc", "https://snowtrace.io", "avalanche"),
    43113: ChainInfo("Avalanche Fuji", "https://api.avax-test.network/ext/bc/C/rpc", "https://testnet.snowtrace.io", "fuji"),
    42220: ChainInfo("Celo", "https://forno.celo.org", "https://celoscan.io", "celo"),
    44787: ChainInfo("Alfajores", "https://alfajores-forno.celo-testnet.org", "https://alfajores.celoscan.io", "alfajores"),
}


@dataclass(frozen=True)
class Deployment:
    """One contract on one chain, served under /api/<route>."""
    route: str
    contract_address: str
    chain_id: int
    chain_name: str
    rpc_url: str
    explorer_url: str = ""
    source_chain: str = ""

    @property
    def api_path(self) -> str:
        return f"/api/{self.route}"


@dataclass(frozen=True)
class Settings:
    deployments: List[Deployment]
    abi_path: Optional[str] = None
    app_url: str = DEFAULT_APP_URL
    icon_url: str = DEFAULT_ICON_URL
    rpc_timeout_sec: int = 30
    host: str = "127.0.0.1"
    port: int = 8000

    def deployment(self, route: str) -> Deployment:
        for d in self.deployments:
            if d.route == route:
                return d
        raise KeyError(route)


def make_deployment(
    *,
    route: str,
    contract_address: str,
    chain_id: Any,
    chain_name: Optional[str] = None,
    rpc_url: Optional[str] = None,
    explorer_url: Optional[str] = None,
    source_chain: Optional[str] = None,
) -> Deployment:
    """Validate one deployment and fill chain details from KNOWN_CHAINS."""
    if not route or not ROUTE_RE.match(route):
        raise RuntimeError(f"Invalid route {route!r} (lowercase letters, digits and '-')")
    if not is_well_formed_address(contract_address):
        raise RuntimeError(f"Invalid contract address for route {route!r}: {contract_address!r}")
    try:
        chain_id = int(chain_id)
    except (TypeError, ValueError) as e:
        raise RuntimeError(f"chain_id for route {route!r} must be an integer") from e
    if chain_id <= 0:
        raise RuntimeError(f"chain_id for route {route!r} must be positive")

    known = KNOWN_CHAINS.get(chain_id)
    chain_name = chain_name or (known.name if known else "")
    rpc_url = rpc_url or (known.rpc_url if known else "")
    if not chain_name:
        raise RuntimeError(f"Unknown chain {chain_id} for route {route!r}; set chain_name")
    if not rpc_url:
        raise RuntimeError(f"Unknown chain {chain_id} for route {route!r}; set rpc_url")

    return Deployment(
        route=route,
        contract_address=checksum(contract_address),
        chain_id=chain_id,
        chain_name=chain_name,
        rpc_url=rpc_url,
        explorer_url=explorer_url or (known.explorer_url if known else ""),
        source_chain=source_chain or (known.source_chain if known else chain_name.lower().replace(" ", "-")),
    )


def load_settings(*, env_file: Optional[str] = None) -> Settings:
    """
    Build Settings from environment variables (after loading .env).

    Env variables used:
        - DEPLOYMENTS_PATH (optional; JSON list of deployments, overrides the rest)
        - ROUTE, CONTRACT_ADDRESS, CHAIN_ID, CHAIN_NAME, RPC_URL, EXPLORER_URL,
          SOURCE_CHAIN (single deployment, all optional)
        - ABI_PATH, APP_URL, ICON_URL, RPC_TIMEOUT_SEC, HOST, PORT
    """
    load_dotenv(env_file)

    deployments_path = os.getenv("DEPLOYMENTS_PATH") or ""
    if deployments_path:
        deployments = _load_deployments_json(deployments_path)
    else:
        deployments = [
            make_deployment(
                route=os.getenv("ROUTE") or DEFAULT_ROUTE,
                contract_address=os.getenv("CONTRACT_ADDRESS") or DEFAULT_CONTRACT_ADDRESS,
                chain_id=os.getenv("CHAIN_ID") or DEFAULT_CHAIN_ID,
                chain_name=os.getenv("CHAIN_NAME"),
                rpc_url=os.getenv("RPC_URL"),
                explorer_url=os.getenv("EXPLORER_URL"),
                source_chain=os.getenv("SOURCE_CHAIN"),
            )
        ]

    return Settings(
        deployments=deployments,
        abi_path=os.getenv("ABI_PATH") or None,
        app_url=os.getenv("APP_URL") or DEFAULT_APP_URL,
        icon_url=os.getenv("ICON_URL") or DEFAULT_ICON_URL,
        rpc_timeout_sec=_int_env("RPC_TIMEOUT_SEC", 30),
        host=os.getenv("HOST") or "127.0.0.1",
        port=_int_env("PORT", 8000),
    )


# Internal helpers
def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name) or ""
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise RuntimeError(f"{name} must be an integer") from e


def _load_deployments_json(path: str) -> List[Deployment]:
    """
    Accepts either {"deployments": [...]} or a bare list of deployment objects.
    """
    p = Path(path)
    if not p.exists():
        raise RuntimeError(f"Deployments file not found at {path}")
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise RuntimeError(f"Deployments file at {path} is not valid JSON") from e

    if isinstance(data, dict):
        data = data.get("deployments")
    if not isinstance(data, list) or not data:
        raise RuntimeError(f"{path} must hold a non-empty list of deployments")

    deployments: List[Deployment] = []
    seen = set()
    for entry in data:
        if not isinstance(entry, dict):
            raise RuntimeError(f"{path}: every deployment must be a JSON object")
        try:
            d = make_deployment(
                route=entry.get("route", ""),
                contract_address=entry.get("contract_address", ""),
                chain_id=entry.get("chain_id"),
                chain_name=entry.get("chain_name"),
                rpc_url=entry.get("rpc_url"),
                explorer_url=entry.get("explorer_url"),
                source_chain=entry.get("source_chain"),
            )
        except RuntimeError as e:
            raise RuntimeError(f"{path}: {e}") from e
        if d.route in seen:
            raise RuntimeError(f"{path}: duplicate route {d.route!r}")
        seen.add(d.route)
        deployments.append(d)
    return deployments
