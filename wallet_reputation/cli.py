# wallet_reputation/cli.py
# Command line entry point.
#
# Env: see wallet_reputation/config.py (RPC_URL, CHAIN_ID, CONTRACT_ADDRESS, ...)
#
# Usage:
#   wallet-reputation serve [--host 0.0.0.0] [--port 8000]
#   wallet-reputation read 0xCreator [--route wallet-reputation]
#   wallet-reputation build --account 0xCaller --creator 0xCreator [--route ...]

import argparse
import json
import sys
from typing import List, Optional

import uvicorn

from wallet_reputation.addresses import is_well_formed_address
from wallet_reputation.config import Deployment, Settings, load_settings
from wallet_reputation.transactions import COUNT_METHOD, build_like_transaction, check_like_request
from wallet_reputation.web3_client import ReputationReadError, Web3Gateway


def _pick(settings: Settings, route: Optional[str]) -> Deployment:
    if not route:
        return settings.deployments[0]
    try:
        return settings.deployment(route)
    except KeyError:
        sys.exit(f"Unknown route {route!r}; configured: {', '.join(d.route for d in settings.deployments)}")


def _gateway(settings: Settings, deployment: Deployment) -> Web3Gateway:
    return Web3Gateway.for_deployment(
        deployment, abi_path=settings.abi_path, request_timeout_sec=settings.rpc_timeout_sec
    )


def cmd_serve(args, settings: Settings) -> int:
    from wallet_reputation.api import create_app

    app = create_app(settings)
    uvicorn.run(app, host=args.host or settings.host, port=args.port or settings.port, log_config=None)
    return 0


def cmd_read(args, settings: Settings) -> int:
    if not is_well_formed_address(args.address):
        sys.exit(f"Invalid Ethereum address: {args.address}")
    deployment = _pick(settings, args.route)
    try:
        count = _gateway(settings, deployment).read_uint(COUNT_METHOD, [args.address])
    except ReputationReadError as e:
        sys.exit(f"Read failed: {e}")
    print(json.dumps({"address": args.address, "reputation": str(count)}))
    return 0


def cmd_build(args, settings: Settings) -> int:
    rejection = check_like_request({"account": args.account}, args.creator)
    if rejection is not None:
        sys.exit(rejection.message)
    deployment = _pick(settings, args.route)
    payload = build_like_transaction(
        _gateway(settings, deployment),
        contract_address=deployment.contract_address,
        chain_id=deployment.chain_id,
        chain_name=deployment.chain_name,
        creator=args.creator,
    )
    print(json.dumps(payload.to_dict()))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wallet-reputation", description="On-chain wallet reputation service.")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.set_defaults(func=cmd_serve)

    read = sub.add_parser("read", help="Print the like count of an address")
    read.add_argument("address")
    read.add_argument("--route", default=None)
    read.set_defaults(func=cmd_read)

    build = sub.add_parser("build", help="Print a serialized unsigned like() transaction")
    build.add_argument("--account", required=True, help="Caller address (the signer)")
    build.add_argument("--creator", required=True, help="Address receiving reputation")
    build.add_argument("--route", default=None)
    build.set_defaults(func=cmd_build)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings()
    except RuntimeError as e:
        sys.exit(f"Configuration error: {e}")
    return args.func(args, settings)


if __name__ == "__main__":
    sys.exit(main())
