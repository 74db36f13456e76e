"""
EVM address validation and normalization (web3.py helpers).
"""

from __future__ import annotations

from web3 import Web3

from backend_alpacalotto.core.exceptions import InvalidInput


def is_address(value: object) -> bool:
    """True for a 20-byte hex address (lowercase, uppercase or valid EIP-55 checksum)."""
    if not isinstance(value, str):
        return False
    return Web3.is_address(value.strip())


def checksum(value: str, field: str = "address") -> str:
    """Return the EIP-55 form of value. Raises InvalidInput if it is not an address."""
    if not is_address(value):
        raise InvalidInput(f"Invalid {field}")
    return Web3.to_checksum_address(value.strip())


def same_address(a: str | None, b: str | None) -> bool:
    if not a or not b:
        return False
    return a.strip().lower() == b.strip().lower()
