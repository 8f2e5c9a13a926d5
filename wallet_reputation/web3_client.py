# wallet_reputation/web3_client.py
# -----------------------------------------------------------------------------
# Web3 gateway for the PermanentLike contract
#
# Responsibilities
# - Connect to a deployment's RPC and bind the contract (one per route)
# - Load the contract ABI (wallet_reputation/artifacts/PermanentLike.abi.json by
#   default, or ABI_PATH)
# - Expose the three operations the service needs:
#     read_uint(method, args)     -> int     (one eth_call, no retry)
#     encode_call(method, args)   -> bytes   (calldata, no network)
#     serialize_legacy_tx(tx)     -> bytes   (EIP-155 unsigned RLP, no network)
#
# Error handling
# - Clear RuntimeError messages for a missing/invalid ABI
# - RPC failures surface as ReputationReadError; callers map it to a 500
#
# NOTE: this module never signs or broadcasts. The serialized transaction is
#       handed to an external signer.
# -----------------------------------------------------------------------------

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Protocol, Sequence

import rlp
from eth_utils import decode_hex, to_canonical_address
from web3 import Web3
from web3.contract import Contract

from wallet_reputation.config import Deployment
from wallet_reputation.transactions import UnsignedTransaction

ABI_DEFAULT_PATH = Path(__file__).resolve().parent / "artifacts" / "PermanentLike.abi.json"

REQUIRED_FUNCTIONS = ("likeCounts", "like")


class ReputationReadError(RuntimeError):
    """A contract read failed (transport, RPC or decoding error)."""


class ChainGateway(Protocol):
    def read_uint(self, method: str, args: Sequence[Any]) -> int: ...

    def encode_call(self, method: str, args: Sequence[Any]) -> bytes: ...

    def serialize_legacy_tx(self, tx: UnsignedTransaction) -> bytes: ...


def serialize_legacy_tx(tx: UnsignedTransaction) -> bytes:
    """
    Canonical unsigned legacy encoding (EIP-155 signing payload):
        rlp([nonce, gasPrice, gas, to, value, data, chainId, 0, 0])
    Zero-valued integers encode as the empty string, as signers expect.
    """
    if tx.type != "legacy":
        raise ValueError(f"unsupported transaction type {tx.type!r}")
    return rlp.encode([
        tx.nonce,
        tx.gas_price,
        tx.gas,
        to_canonical_address(tx.to),
        tx.value,
        tx.data,
        tx.chain_id,
        0,
        0,
    ])


@dataclass
class Web3Gateway:
    """Thin wrapper around web3 + the contract bound for one deployment"""
    w3: Web3
    deployment: Deployment
    contract: Contract

    # Constructors
    @staticmethod
    def for_deployment(
        deployment: Deployment,
        *,
        abi_path: Optional[str] = None,
        request_timeout_sec: int = 30,
    ) -> "Web3Gateway":
        """
        Build a gateway for one deployment. Does not touch the network: the
        provider connects lazily on the first read.
        """
        w3 = Web3(Web3.HTTPProvider(deployment.rpc_url, request_kwargs={"timeout": request_timeout_sec}))
        abi = load_abi(abi_path or str(ABI_DEFAULT_PATH))
        contract = w3.eth.contract(address=Web3.to_checksum_address(deployment.contract_address), abi=abi)
        return Web3Gateway(w3=w3, deployment=deployment, contract=contract)

    # Gateway operations
    def read_uint(self, method: str, args: Sequence[Any]) -> int:
        """
        One eth_call against the bound contract, e.g.
            gateway.read_uint("likeCounts", [creator])
        """
        fn = getattr(self.contract.functions, method)
        try:
            value = fn(*_checksum_args(args)).call()
        except Exception as e:
            raise ReputationReadError(f"{method} call failed on {self.deployment.chain_name}: {e}") from e
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ReputationReadError(f"{method} returned a non-uint value: {value!r}")
        return value

    def encode_call(self, method: str, args: Sequence[Any]) -> bytes:
        return decode_hex(self.contract.encode_abi(method, args=_checksum_args(args)))

    def serialize_legacy_tx(self, tx: UnsignedTransaction) -> bytes:
        return serialize_legacy_tx(tx)


# Internal helpers
def _checksum_args(args: Sequence[Any]) -> list:
    out = []
    for a in args:
        if isinstance(a, str) and Web3.is_address(a):
            a = Web3.to_checksum_address(a)
        out.append(a)
    return out


def load_abi(abi_path: str):
    """
    Loads the ABI. Accepts either:
        - a file containing the ABI array
        - a full Hardhat artifact JSON
    The ABI must expose likeCounts(address) and like(address).
    """
    p = Path(abi_path)
    if not p.exists():
        raise RuntimeError(f"ABI file not found at {abi_path}")
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise RuntimeError(f"ABI file at {abi_path} is not valid JSON") from e

    if isinstance(data, dict) and "abi" in data:
        data = data["abi"]
    if not isinstance(data, list):
        raise RuntimeError(f"ABI at {abi_path} did not look like an ABI array or a Hardhat artifact with 'abi' key")

    names = {item.get("name") for item in data if isinstance(item, dict) and item.get("type") == "function"}
    missing = [name for name in REQUIRED_FUNCTIONS if name not in names]
    if missing:
        raise RuntimeError(f"ABI at {abi_path} is missing required functions: {', '.join(missing)}")
    return data
