"""EncryptedBlobStore — opaque per-name byte payloads.

Blobs are keyed by name-hash and stored independently of identity
liveness. The registry never decrypts, parses or validates them.
"""
from __future__ import annotations


class EncryptedBlobStore:
    """name-hash → bytes table.

    Not thread-safe on its own; the owning registry serializes access.
    """

    def __init__(self) -> None:
        self._blobs: dict[bytes, bytes] = {}

    def store(self, key: bytes, data: bytes) -> None:
        """Replace the blob for *key*."""
        self._blobs[key] = bytes(data)

    def get(self, key: bytes) -> bytes:
        """Return the blob for *key*, or ``b""`` if none is stored."""
        return self._blobs.get(key, b"")

    def delete(self, key: bytes) -> bool:
        """Remove the blob for *key*. Returns True if one was present."""
        return self._blobs.pop(key, None) is not None

    def items(self) -> dict[bytes, bytes]:
        return dict(self._blobs)

    def load(self, blobs: dict[bytes, bytes]) -> None:
        self._blobs = dict(blobs)

    def __len__(self) -> int:
        return len(self._blobs)
