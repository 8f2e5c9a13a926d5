"""
Validation and encoding for the "give reputation" write path.

check_like_request() runs the request checks in a fixed order and returns a
tagged Rejection for the first one that fails. build_like_transaction() turns
an accepted (caller, creator) pair into the serialized unsigned legacy
transaction calling like(creator). Nothing here touches the network; the
gateway only encodes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from eth_utils import encode_hex

from wallet_reputation.addresses import checksum, is_well_formed_address, same_address

if TYPE_CHECKING:
    from wallet_reputation.web3_client import ChainGateway

LIKE_METHOD = "like"
COUNT_METHOD = "likeCounts"
ZERO_ADDRESS = "0x" + "00" * 20


class ErrorKind(str, Enum):
    MALFORMED_REQUEST = "malformed_request"
    MISSING_FIELD = "missing_field"
    INVALID_ADDRESS = "invalid_address"
    SELF_ACTION = "self_action"


@dataclass(frozen=True)
class Rejection:
    kind: ErrorKind
    message: str


MALFORMED_BODY = Rejection(ErrorKind.MALFORMED_REQUEST, "Invalid JSON body.")
MISSING_ACCOUNT = Rejection(ErrorKind.MISSING_FIELD, "Connected account address is required.")
MISSING_CREATOR = Rejection(ErrorKind.MISSING_FIELD, "The contentCreator address parameter is required.")
INVALID_ADDRESS = Rejection(ErrorKind.INVALID_ADDRESS, "Invalid Ethereum address provided.")
SELF_LIKE = Rejection(ErrorKind.SELF_ACTION, "You cannot give reputation to yourself.")


@dataclass(frozen=True)
class UnsignedTransaction:
    """Legacy transaction without a signature; the signer fills nonce and fees."""
    to: str
    data: bytes
    chain_id: int
    type: str = "legacy"
    nonce: int = 0
    gas_price: int = 0
    gas: int = 0
    value: int = 0


@dataclass(frozen=True)
class LikePayload:
    serialized_transaction: str
    chain_name: str

    def to_dict(self) -> dict:
        return {"serializedTransaction": self.serialized_transaction, "chainId": self.chain_name}


def check_like_request(body: Any, creator: Optional[str]) -> Optional[Rejection]:
    """
    Returns None when the request may be encoded. Checks, in order:
    body is a JSON object, account present, contentCreator present, both
    well-formed, and account != contentCreator ignoring case.
    """
    if not isinstance(body, dict):
        return MALFORMED_BODY
    account = body.get("account")
    if not account:
        return MISSING_ACCOUNT
    if not creator:
        return MISSING_CREATOR
    if not is_well_formed_address(creator) or not is_well_formed_address(account):
        return INVALID_ADDRESS
    if same_address(creator, account):
        return SELF_LIKE
    return None


def build_like_transaction(
    gateway: "ChainGateway",
    *,
    contract_address: str,
    chain_id: int,
    chain_name: str,
    creator: str,
) -> LikePayload:
    """
    Encode like(creator) for the given contract/chain and serialize it as an
    unsigned legacy transaction. Callers run check_like_request() first.
    """
    data = gateway.encode_call(LIKE_METHOD, [checksum(creator)])
    tx = UnsignedTransaction(to=checksum(contract_address), data=data, chain_id=chain_id)
    raw = gateway.serialize_legacy_tx(tx)
    return LikePayload(serialized_transaction=encode_hex(raw), chain_name=chain_name)


def like_selector(gateway: "ChainGateway") -> str:
    """0x-prefixed 4-byte selector of like(address), taken from the gateway's encoder."""
    return encode_hex(gateway.encode_call(LIKE_METHOD, [ZERO_ADDRESS])[:4])
