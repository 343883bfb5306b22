"""Name syntax validation and canonical hashing.

A valid name is 3–32 bytes drawn from ``a-z``, ``0-9`` and ``-``, and
neither starts nor ends with a hyphen. Interior hyphens, including runs of
them, are allowed. The name-hash (SHA3-256 of the exact UTF-8 bytes) is
the storage key used by every registry table.
"""
from __future__ import annotations

import hashlib

from agent_names.errors import (
    InvalidCharacterError,
    LeadingHyphenError,
    NameTooLongError,
    NameTooShortError,
    TrailingHyphenError,
)

MIN_NAME_LENGTH: int = 3
MAX_NAME_LENGTH: int = 32

_HYPHEN = ord("-")
_ALLOWED_BYTES: frozenset[int] = frozenset(
    b"abcdefghijklmnopqrstuvwxyz0123456789-"
)


def name_hash(name: str) -> bytes:
    """Return the SHA3-256 digest of *name*'s UTF-8 bytes (no validation).

    Lone surrogates are encoded with ``surrogatepass`` so that lookups of
    malformed names miss instead of raising. Such names never validate,
    so they can never collide with a stored key.
    """
    return hashlib.sha3_256(name.encode("utf-8", "surrogatepass")).digest()


class NameValidator:
    """Stateless name checker.

    Parameters
    ----------
    min_length:
        Minimum byte length (inclusive).
    max_length:
        Maximum byte length (inclusive).
    """

    def __init__(
        self,
        min_length: int = MIN_NAME_LENGTH,
        max_length: int = MAX_NAME_LENGTH,
    ) -> None:
        if min_length < 1 or max_length < min_length:
            raise ValueError(
                f"Invalid length bounds: min={min_length}, max={max_length}."
            )
        self.min_length = min_length
        self.max_length = max_length

    def validate(self, name: str) -> bytes:
        """Validate *name* and return its name-hash.

        Checks run in a fixed order: length, then every byte, then the
        leading and trailing hyphen rules.

        Raises
        ------
        NameTooShortError, NameTooLongError
            If the byte length is outside ``[min_length, max_length]``.
        InvalidCharacterError
            If any byte is outside ``[a-z0-9-]``, or *name* cannot be
            encoded as UTF-8 (a lone surrogate).
        LeadingHyphenError, TrailingHyphenError
            If the name starts or ends with ``-``.
        """
        try:
            raw = name.encode("utf-8")
        except UnicodeEncodeError as exc:
            position = len(name[: exc.start].encode("utf-8"))
            raise InvalidCharacterError(name, position) from exc
        if len(raw) < self.min_length:
            raise NameTooShortError(name, self.min_length)
        if len(raw) > self.max_length:
            raise NameTooLongError(name, self.max_length)

        for position, byte in enumerate(raw):
            if byte not in _ALLOWED_BYTES:
                raise InvalidCharacterError(name, position)

        if raw[0] == _HYPHEN:
            raise LeadingHyphenError(name)
        if raw[-1] == _HYPHEN:
            raise TrailingHyphenError(name)

        return hashlib.sha3_256(raw).digest()

    def is_valid(self, name: str) -> bool:
        """Return True if *name* passes :meth:`validate`."""
        try:
            self.validate(name)
        except ValueError:
            return False
        return True


_DEFAULT_VALIDATOR = NameValidator()


def validate_name(name: str) -> bytes:
    """Validate *name* with the default bounds and return its name-hash."""
    return _DEFAULT_VALIDATOR.validate(name)
