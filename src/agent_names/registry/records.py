"""IdentityRecord and the hash-keyed IdentityStore.

The store is the canonical index behind the registry:

* name-hash → :class:`IdentityRecord`
* name-hash → original name string
* token id → name-hash (only for tokens that have not been retired)

It enforces no policy. Lease rules live in
:mod:`agent_names.registry.lifecycle`.
"""
from __future__ import annotations

import dataclasses
import datetime
from dataclasses import dataclass

from agent_names.primitives import format_hash, parse_hash

#: Token id meaning "never registered".
NO_TOKEN: int = 0


@dataclass
class IdentityRecord:
    """Registration state for one name-hash.

    Parameters
    ----------
    token_id:
        Surrogate id of the ownership token; :data:`NO_TOKEN` is never a
        real registration.
    owner:
        Principal that owns the identity (mirrors the live token's holder).
    soul_hash:
        Opaque content hash of the off-system agent document.
    payment_address:
        Principal that receives off-system payments for the agent.
    registered_at:
        Time of the registration that minted ``token_id``.
    expires_at:
        End of the current lease (inclusive).
    """

    token_id: int
    owner: str
    soul_hash: bytes
    payment_address: str
    registered_at: datetime.datetime
    expires_at: datetime.datetime

    def is_live(self, now: datetime.datetime) -> bool:
        """Return True while ``now <= expires_at``."""
        return now <= self.expires_at

    def copy(self) -> "IdentityRecord":
        return dataclasses.replace(self)

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {
            "token_id": self.token_id,
            "owner": self.owner,
            "soul_hash": format_hash(self.soul_hash),
            "payment_address": self.payment_address,
            "registered_at": self.registered_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "IdentityRecord":
        return cls(
            token_id=int(data["token_id"]),  # type: ignore[arg-type]
            owner=str(data["owner"]),
            soul_hash=parse_hash(str(data["soul_hash"])),
            payment_address=str(data["payment_address"]),
            registered_at=datetime.datetime.fromisoformat(str(data["registered_at"])),
            expires_at=datetime.datetime.fromisoformat(str(data["expires_at"])),
        )


class IdentityStore:
    """Hash index of identity records.

    Not thread-safe on its own; the owning registry serializes access.
    """

    def __init__(self) -> None:
        self._records: dict[bytes, IdentityRecord] = {}
        self._names: dict[bytes, str] = {}
        self._token_index: dict[int, bytes] = {}
        self._last_token_id: int = NO_TOKEN

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, key: bytes) -> IdentityRecord | None:
        """Return the stored record (live or not) for *key*, or None."""
        return self._records.get(key)

    def token_id_of(self, key: bytes) -> int:
        """Return the token id for *key*, or :data:`NO_TOKEN`."""
        record = self._records.get(key)
        return record.token_id if record is not None else NO_TOKEN

    def name_of(self, key: bytes) -> str | None:
        return self._names.get(key)

    def key_for_token(self, token_id: int) -> bytes | None:
        """Return the name-hash *token_id* is indexed under, or None once retired."""
        return self._token_index.get(token_id)

    def is_current_token(self, token_id: int) -> bool:
        """Return True if *token_id* is the token bound to its name right now."""
        key = self._token_index.get(token_id)
        if key is None:
            return False
        record = self._records.get(key)
        return record is not None and record.token_id == token_id

    @property
    def last_token_id(self) -> int:
        return self._last_token_id

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def next_token_id(self) -> int:
        """Allocate and return the next token id."""
        self._last_token_id += 1
        return self._last_token_id

    def put(self, key: bytes, name: str, record: IdentityRecord) -> None:
        """Store *record* under *key* and index its token."""
        self._records[key] = record
        self._names[key] = name
        self._token_index[record.token_id] = key

    def retire_token(self, token_id: int) -> None:
        """Drop *token_id* from the token index."""
        self._token_index.pop(token_id, None)

    def load(
        self,
        records: dict[bytes, IdentityRecord],
        names: dict[bytes, str],
        last_token_id: int,
    ) -> None:
        """Replace all contents (snapshot restore)."""
        self._records = dict(records)
        self._names = dict(names)
        self._token_index = {r.token_id: k for k, r in self._records.items()}
        self._last_token_id = last_token_id

    # ------------------------------------------------------------------
    # Iteration
    # ------------------------------------------------------------------

    def items(self) -> list[tuple[str, bytes, IdentityRecord]]:
        """Return ``(name, key, record)`` triples sorted by name."""
        return sorted(
            ((self._names[k], k, r) for k, r in self._records.items()),
            key=lambda item: item[0],
        )

    def __len__(self) -> int:
        return len(self._records)
