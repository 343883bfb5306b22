"""Principal and hash primitives shared across the registry.

Principals are opaque strings (account addresses, DIDs, service names).
The empty string and :data:`ZERO_ADDRESS` both denote the null principal.
Hashes are raw ``bytes``; an empty or all-zero hash is the null hash.
"""
from __future__ import annotations

ZERO_ADDRESS: str = "0x" + "0" * 40
ZERO_HASH: bytes = bytes(32)


def is_null_principal(principal: str | None) -> bool:
    """Return True if *principal* is missing, blank, or the zero address."""
    if principal is None:
        return True
    stripped = principal.strip()
    return stripped == "" or stripped.lower() == ZERO_ADDRESS


def is_zero_hash(value: bytes | None) -> bool:
    """Return True if *value* is missing, empty, or made only of zero bytes."""
    return not value or not any(value)


def parse_hash(value: str | bytes) -> bytes:
    """Decode a hex string (with or without ``0x``) into bytes.

    ``bytes`` input is returned unchanged.

    Raises
    ------
    ValueError
        If *value* is not valid hexadecimal.
    """
    if isinstance(value, bytes):
        return value
    text = value.strip()
    if text.startswith(("0x", "0X")):
        text = text[2:]
    return bytes.fromhex(text)


def format_hash(value: bytes) -> str:
    """Render *value* as a ``0x``-prefixed lowercase hex string."""
    return "0x" + value.hex()
