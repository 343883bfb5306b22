"""LeaseLifecycle — register, renew, resolve and reclaim-on-expiry.

Expiry is evaluated lazily against the ``now`` passed into each call; there
is no background sweep. An expired record stays in the store, unreadable
through :meth:`LeaseLifecycle.resolve`, until a new registration reclaims
the name or a renewal brings it back.

Every method runs all of its checks, then records its audit events, and
only then writes. A rejected call, or one whose audit write fails, leaves
the store, ledger and blob table exactly as they were.
Access gating and locking are the caller's job (see
:class:`~agent_names.registry.name_registry.NameRegistry`).
"""
from __future__ import annotations

import datetime
import logging

from agent_names.audit.log import AuditLog, EventType, PendingEvent
from agent_names.errors import (
    NameNotAvailableError,
    NameNotRegisteredError,
    ZeroAddressError,
    ZeroHashError,
)
from agent_names.ledger.token_ledger import TokenLedger
from agent_names.naming.validator import NameValidator, name_hash
from agent_names.primitives import format_hash, is_null_principal, is_zero_hash
from agent_names.registry.blobs import EncryptedBlobStore
from agent_names.registry.records import NO_TOKEN, IdentityRecord, IdentityStore

logger = logging.getLogger(__name__)

DEFAULT_LEASE: datetime.timedelta = datetime.timedelta(days=365)


class LeaseLifecycle:
    """Lease state machine over an :class:`IdentityStore`.

    Parameters
    ----------
    store:
        Identity records and indexes.
    ledger:
        Token ledger; tokens are minted on registration and burned on reclaim.
    blobs:
        Blob table; a reclaimed name loses its blob.
    audit:
        Log receiving lifecycle events.
    validator:
        Name syntax checker.
    lease_duration:
        Length of one lease period.
    """

    def __init__(
        self,
        store: IdentityStore,
        ledger: TokenLedger,
        blobs: EncryptedBlobStore,
        audit: AuditLog,
        validator: NameValidator | None = None,
        lease_duration: datetime.timedelta = DEFAULT_LEASE,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._blobs = blobs
        self._audit = audit
        self._validator = validator or NameValidator()
        self._lease = lease_duration

    @property
    def lease_duration(self) -> datetime.timedelta:
        return self._lease

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_available(self, name: str, now: datetime.datetime) -> bool:
        """Return True if *name* is valid and has no record or an expired one.

        Raises
        ------
        NameValidationError
            If *name* fails syntax validation.
        """
        key = self._validator.validate(name)
        record = self._store.get(key)
        return record is None or record.expires_at < now

    def resolve(self, name: str, now: datetime.datetime) -> IdentityRecord:
        """Return a copy of the live record for *name*.

        Raises
        ------
        NameNotRegisteredError
            If *name* was never registered or its lease has lapsed.
        """
        record = self._store.get(name_hash(name))
        if record is None or not record.is_live(now):
            raise NameNotRegisteredError(name)
        return record.copy()

    def existing(self, name: str) -> tuple[bytes, IdentityRecord]:
        """Return ``(key, record)`` for *name* regardless of liveness.

        Raises
        ------
        NameNotRegisteredError
            If *name* has no record.
        """
        key = name_hash(name)
        record = self._store.get(key)
        if record is None or record.token_id == NO_TOKEN:
            raise NameNotRegisteredError(name)
        return key, record

    # ------------------------------------------------------------------
    # Register / renew
    # ------------------------------------------------------------------

    def register(
        self,
        actor: str,
        name: str,
        owner: str,
        soul_hash: bytes,
        payment_address: str,
        now: datetime.datetime,
    ) -> int:
        """Register *name* for *owner* and return the newly minted token id.

        If an expired record exists for the name it is reclaimed first: its
        token is removed from the token index and burned, and its blob is
        deleted. The new registration always gets a fresh token id.

        Raises
        ------
        NameValidationError
            If *name* fails syntax validation.
        NameNotAvailableError
            If *name* is currently live.
        ZeroAddressError
            If *owner* or *payment_address* is the null principal.
        ZeroHashError
            If *soul_hash* is empty or all-zero.
        """
        key = self._validator.validate(name)
        previous = self._store.get(key)
        if previous is not None and not previous.expires_at < now:
            raise NameNotAvailableError(name)
        if is_null_principal(owner):
            raise ZeroAddressError("owner")
        if is_null_principal(payment_address):
            raise ZeroAddressError("payment_address")
        if is_zero_hash(soul_hash):
            raise ZeroHashError("soul_hash")

        token_id = self._store.last_token_id + 1
        record = IdentityRecord(
            token_id=token_id,
            owner=owner,
            soul_hash=bytes(soul_hash),
            payment_address=payment_address,
            registered_at=now,
            expires_at=now + self._lease,
        )

        pending: list[PendingEvent] = []
        if previous is not None:
            pending.append(
                PendingEvent(
                    EventType.TOKEN_RETIRED,
                    name,
                    actor,
                    now,
                    {
                        "token_id": previous.token_id,
                        "previous_owner": previous.owner,
                        "expired_at": previous.expires_at.isoformat(),
                    },
                )
            )
        pending.append(
            PendingEvent(
                EventType.NAME_REGISTERED,
                name,
                actor,
                now,
                {
                    "token_id": token_id,
                    "owner": owner,
                    "soul_hash": format_hash(record.soul_hash),
                    "payment_address": payment_address,
                    "expires_at": record.expires_at.isoformat(),
                },
            )
        )
        self._audit.append_all(pending)

        if previous is not None:
            self._reclaim(name, key, previous)
        self._store.next_token_id()
        self._store.put(key, name, record)
        self._ledger.mint(token_id, owner)
        logger.info("Registered %r as token %d for %r", name, token_id, owner)
        return token_id

    def _reclaim(self, name: str, key: bytes, previous: IdentityRecord) -> None:
        old_token = previous.token_id
        self._store.retire_token(old_token)
        self._blobs.delete(key)
        if self._ledger.exists(old_token):
            self._ledger.burn(old_token)
        logger.info("Reclaimed expired name %r (retired token %d)", name, old_token)

    def renew(self, actor: str, name: str, now: datetime.datetime) -> datetime.datetime:
        """Extend the lease on *name* by one period and return the new expiry.

        The period is added to ``max(now, expires_at)``: a live lease is
        extended from its current end, a lapsed one restarts from *now*.
        Renewal keeps the existing token id, even for a lapsed record.

        Raises
        ------
        NameNotRegisteredError
            If *name* has no record.
        """
        _, record = self.existing(name)
        previous_expiry = record.expires_at
        new_expiry = max(now, previous_expiry) + self._lease

        self._audit.append(
            EventType.NAME_RENEWED,
            name=name,
            actor_id=actor,
            timestamp=now,
            token_id=record.token_id,
            previous_expires_at=previous_expiry.isoformat(),
            expires_at=new_expiry.isoformat(),
        )
        record.expires_at = new_expiry
        logger.info("Renewed %r until %s", name, record.expires_at.isoformat())
        return record.expires_at

    # ------------------------------------------------------------------
    # In-place updates (existence only, no liveness check)
    # ------------------------------------------------------------------

    def update_soul(
        self, actor: str, name: str, soul_hash: bytes, now: datetime.datetime
    ) -> None:
        """Overwrite the soul hash of *name*.

        Raises
        ------
        NameNotRegisteredError
            If *name* has no record.
        ZeroHashError
            If *soul_hash* is empty or all-zero.
        """
        _, record = self.existing(name)
        if is_zero_hash(soul_hash):
            raise ZeroHashError("soul_hash")
        self._audit.append(
            EventType.SOUL_UPDATED,
            name=name,
            actor_id=actor,
            timestamp=now,
            previous_soul_hash=format_hash(record.soul_hash),
            soul_hash=format_hash(soul_hash),
        )
        record.soul_hash = bytes(soul_hash)
        logger.info("Updated soul hash of %r", name)

    def update_payment_address(
        self, actor: str, name: str, address: str, now: datetime.datetime
    ) -> None:
        """Overwrite the payment address of *name*.

        Raises
        ------
        NameNotRegisteredError
            If *name* has no record.
        ZeroAddressError
            If *address* is the null principal.
        """
        _, record = self.existing(name)
        if is_null_principal(address):
            raise ZeroAddressError("payment_address")
        self._audit.append(
            EventType.PAYMENT_ADDRESS_UPDATED,
            name=name,
            actor_id=actor,
            timestamp=now,
            previous_payment_address=record.payment_address,
            payment_address=address,
        )
        record.payment_address = address
        logger.info("Updated payment address of %r", name)
