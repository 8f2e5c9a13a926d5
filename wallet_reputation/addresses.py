from eth_utils import (
    is_address,
    is_checksum_address,
    is_checksum_formatted_address,
    to_checksum_address,
)


def is_well_formed_address(value) -> bool:
    """
    True for a 0x-prefixed, 40 hex char address. Mixed-case input must carry
    a valid EIP-55 checksum; all-lower and all-upper hex are accepted as is.
    """
    if not isinstance(value, str) or not value.startswith("0x"):
        return False
    if not is_address(value):
        return False
    if is_checksum_formatted_address(value):
        return is_checksum_address(value)
    return True


def same_address(a: str, b: str) -> bool:
    return a.lower() == b.lower()


def checksum(value: str) -> str:
    if not is_well_formed_address(value):
        raise ValueError(f"not a well-formed address: {value!r}")
    return to_checksum_address(value)


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Check an Ethereum address and print its checksum form.")
    parser.add_argument("address", help="0x-prefixed address")
    args = parser.parse_args()

    if not is_well_formed_address(args.address):
        raise SystemExit(f"Invalid Ethereum address: {args.address}")
    print("Checksum:", checksum(args.address))
