"""NameRegistry — the public entry points of the agent name registry.

Every mutating call runs the same pipeline:

    CircuitBreaker → AccessControl → LeaseLifecycle / blob table

Operator mutations (register, renew, update_soul, update_payment_address,
store_blob) go through all three stages. Admin operations skip the
breaker. Reads skip both.

Each call holds the registry lock for its whole duration and reads the
clock exactly once, so calls are atomic and totally ordered.
"""
from __future__ import annotations

import contextlib
import datetime
import logging
import threading
from pathlib import Path
from typing import Iterator

from agent_names.access.breaker import CircuitBreaker
from agent_names.access.roles import AccessControl
from agent_names.audit.log import AuditEvent, AuditLog, EventType
from agent_names.clock import Clock, SystemClock
from agent_names.config import RegistrySettings
from agent_names.errors import (
    InsufficientFundsError,
    InvalidAmountError,
    InvalidPrincipalError,
    InvalidRecipientError,
    TokenNotFoundError,
)
from agent_names.ledger.token_ledger import TokenLedger
from agent_names.naming.pricing import PricingPolicy
from agent_names.naming.validator import NameValidator, name_hash
from agent_names.primitives import is_null_principal
from agent_names.registry.blobs import EncryptedBlobStore
from agent_names.registry.lifecycle import LeaseLifecycle
from agent_names.registry.ownership import OwnershipSync
from agent_names.registry.records import IdentityRecord, IdentityStore

logger = logging.getLogger(__name__)


class NameRegistry:
    """Registry binding agent names to leased, tokenized identity records.

    Parameters
    ----------
    roles:
        Admin/operator role table.
    clock:
        Time source, read once per call. Defaults to :class:`SystemClock`.
    settings:
        Lease length, name bounds and price table. Defaults to
        ``RegistrySettings()``.
    audit:
        Audit log. Defaults to an in-memory log, mirrored to
        ``settings.audit_log_path`` when that is set.
    breaker:
        Circuit breaker. Defaults to a fresh, unpaused breaker.
    balance:
        Opening treasury balance.

    Example
    -------
    ::

        from agent_names import AccessControl, NameRegistry

        registry = NameRegistry(AccessControl(admin="0xadmin", operators=["0xop"]))
        token_id = registry.register(
            "0xop", "alice", owner="0xalice", soul_hash=b"\\x01" * 32,
            payment_address="0xalice",
        )
        print(registry.resolve("alice").owner)
    """

    def __init__(
        self,
        roles: AccessControl,
        clock: Clock | None = None,
        settings: RegistrySettings | None = None,
        audit: AuditLog | None = None,
        breaker: CircuitBreaker | None = None,
        balance: int = 0,
    ) -> None:
        self._settings = settings or RegistrySettings()
        self._roles = roles
        self._clock: Clock = clock or SystemClock()
        self._breaker = breaker or CircuitBreaker()
        if audit is None:
            log_path = self._settings.audit_log_path
            audit = AuditLog(Path(log_path) if log_path else None)
        self._audit = audit

        self._lock = threading.RLock()
        self._call_time: datetime.datetime | None = None

        self._validator: NameValidator = self._settings.validator()
        self._pricing: PricingPolicy = self._settings.pricing()
        self._store = IdentityStore()
        self._blobs = EncryptedBlobStore()
        self._ledger = TokenLedger(lock=self._lock)
        self._lifecycle = LeaseLifecycle(
            store=self._store,
            ledger=self._ledger,
            blobs=self._blobs,
            audit=self._audit,
            validator=self._validator,
            lease_duration=self._settings.lease_duration,
        )
        self._ledger.subscribe(OwnershipSync(self._store, self._audit, self._current_time))
        self._balance: int = balance

    # ------------------------------------------------------------------
    # Call context
    # ------------------------------------------------------------------

    @contextlib.contextmanager
    def _call(self) -> Iterator[datetime.datetime]:
        """Serialize a call and pin its clock reading."""
        with self._lock:
            outer = self._call_time
            now = outer if outer is not None else self._clock.now()
            self._call_time = now
            try:
                yield now
            finally:
                self._call_time = outer

    def _current_time(self) -> datetime.datetime:
        with self._lock:
            if self._call_time is not None:
                return self._call_time
            return self._clock.now()

    def _operator_gate(self, caller: str) -> None:
        self._breaker.require_not_paused()
        self._roles.require_operator(caller)

    # ------------------------------------------------------------------
    # Operator mutations
    # ------------------------------------------------------------------

    def register(
        self,
        caller: str,
        name: str,
        owner: str,
        soul_hash: bytes,
        payment_address: str,
    ) -> int:
        """Register *name* and mint its ownership token to *owner*.

        Returns
        -------
        int
            The new token id.

        Raises
        ------
        RegistryPausedError, NotOperatorError
            Gate failures.
        NameValidationError
            If *name* fails syntax validation.
        NameNotAvailableError
            If *name* is live.
        ZeroAddressError, ZeroHashError
            For null owner/payment address or an all-zero soul hash.
        """
        with self._call() as now:
            self._operator_gate(caller)
            return self._lifecycle.register(
                caller, name, owner, soul_hash, payment_address, now
            )

    def renew(self, caller: str, name: str) -> datetime.datetime:
        """Extend the lease on *name*; works on lapsed, un-reclaimed records too.

        Raises
        ------
        RegistryPausedError, NotOperatorError
            Gate failures.
        NameNotRegisteredError
            If *name* has no record.
        """
        with self._call() as now:
            self._operator_gate(caller)
            return self._lifecycle.renew(caller, name, now)

    def update_soul(self, caller: str, name: str, soul_hash: bytes) -> None:
        """Replace the soul hash of *name* (no liveness check)."""
        with self._call() as now:
            self._operator_gate(caller)
            self._lifecycle.update_soul(caller, name, soul_hash, now)

    def update_payment_address(self, caller: str, name: str, address: str) -> None:
        """Replace the payment address of *name* (no liveness check)."""
        with self._call() as now:
            self._operator_gate(caller)
            self._lifecycle.update_payment_address(caller, name, address, now)

    def store_blob(self, caller: str, name: str, data: bytes) -> None:
        """Attach an opaque blob to *name*.

        Only existence of a record is required, so a blob can be stored
        against an expired record that has not yet been reclaimed.

        Raises
        ------
        RegistryPausedError, NotOperatorError
            Gate failures.
        NameNotRegisteredError
            If *name* has no record.
        """
        with self._call() as now:
            self._operator_gate(caller)
            key, _ = self._lifecycle.existing(name)
            self._audit.append(
                EventType.BLOB_STORED,
                name=name,
                actor_id=caller,
                timestamp=now,
                size=len(data),
            )
            self._blobs.store(key, data)
            logger.info("Stored %d-byte blob for %r", len(data), name)

    # ------------------------------------------------------------------
    # Token ledger surface
    # ------------------------------------------------------------------

    def transfer(self, caller: str, token_id: int, to: str) -> None:
        """Move a token; the identity owner follows if it is the live token.

        Raises
        ------
        TokenNotFoundError
            If the token does not exist or was retired.
        NotTokenHolderError
            If *caller* neither holds nor is approved for the token.
        InvalidRecipientError
            If *to* is the null principal.
        """
        with self._call():
            self._ledger.transfer(caller, token_id, to)

    def approve(self, caller: str, token_id: int, spender: str) -> None:
        """Approve *spender* to transfer *token_id* on the holder's behalf."""
        with self._call():
            self._ledger.approve(caller, token_id, spender)

    def owner_of(self, token_id: int) -> str:
        """Return the current holder of *token_id*."""
        with self._lock:
            return self._ledger.owner_of(token_id)

    # ------------------------------------------------------------------
    # Admin operations (not subject to the circuit breaker)
    # ------------------------------------------------------------------

    def set_operator(self, caller: str, principal: str, enabled: bool) -> None:
        """Flag or unflag *principal* as an operator.

        Raises
        ------
        NotAdminError
            If *caller* is not the admin.
        InvalidPrincipalError
            If *principal* is the null principal.
        """
        with self._call() as now:
            self._roles.require_admin(caller)
            if is_null_principal(principal):
                raise InvalidPrincipalError("operator")
            self._audit.append(
                EventType.OPERATOR_CHANGED,
                name="",
                actor_id=caller,
                timestamp=now,
                operator=principal,
                enabled=bool(enabled),
            )
            self._roles.set_operator(principal, enabled)
            logger.info("Operator %r set to %s", principal, bool(enabled))

    def transfer_admin(self, caller: str, new_admin: str) -> None:
        """Hand admin rights to *new_admin*."""
        with self._call() as now:
            self._roles.require_admin(caller)
            if is_null_principal(new_admin):
                raise InvalidPrincipalError("new_admin")
            previous = self._roles.admin
            self._audit.append(
                EventType.ADMIN_TRANSFERRED,
                name="",
                actor_id=caller,
                timestamp=now,
                previous_admin=previous,
                new_admin=new_admin,
            )
            self._roles.transfer_admin(new_admin)
            logger.info("Admin transferred from %r to %r", previous, new_admin)

    def pause(self, caller: str) -> None:
        """Trip the circuit breaker. Pausing twice is a no-op."""
        with self._call() as now:
            self._roles.require_admin(caller)
            if not self._breaker.paused:
                self._audit.append(EventType.PAUSED, name="", actor_id=caller, timestamp=now)
                self._breaker.pause()
                logger.warning("Registry paused by %r", caller)

    def unpause(self, caller: str) -> None:
        """Reset the circuit breaker. Unpausing a running registry is a no-op."""
        with self._call() as now:
            self._roles.require_admin(caller)
            if self._breaker.paused:
                self._audit.append(EventType.UNPAUSED, name="", actor_id=caller, timestamp=now)
                self._breaker.unpause()
                logger.info("Registry unpaused by %r", caller)

    def deposit(self, sender: str, amount: int) -> int:
        """Credit *amount* to the treasury and return the new balance.

        Raises
        ------
        InvalidAmountError
            If *amount* is not positive.
        """
        if amount <= 0:
            raise InvalidAmountError(amount)
        with self._call() as now:
            self._audit.append(
                EventType.FUNDS_DEPOSITED,
                name="",
                actor_id=sender,
                timestamp=now,
                amount=amount,
            )
            self._balance += amount
            return self._balance

    def withdraw(self, caller: str, recipient: str, amount: int) -> int:
        """Send *amount* from the treasury to *recipient*; return the new balance.

        Raises
        ------
        NotAdminError
            If *caller* is not the admin.
        InvalidRecipientError
            If *recipient* is the null principal.
        InvalidAmountError
            If *amount* is not positive.
        InsufficientFundsError
            If *amount* exceeds the balance.
        """
        with self._call() as now:
            self._roles.require_admin(caller)
            if is_null_principal(recipient):
                raise InvalidRecipientError("recipient")
            if amount <= 0:
                raise InvalidAmountError(amount)
            if amount > self._balance:
                raise InsufficientFundsError(amount, self._balance)
            self._audit.append(
                EventType.FUNDS_WITHDRAWN,
                name="",
                actor_id=caller,
                timestamp=now,
                recipient=recipient,
                amount=amount,
            )
            self._balance -= amount
            logger.info("Withdrew %d to %r", amount, recipient)
            return self._balance

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def resolve(self, name: str) -> IdentityRecord:
        """Return the live identity record for *name*.

        Raises
        ------
        NameNotRegisteredError
            If *name* was never registered or has expired.
        """
        with self._call() as now:
            return self._lifecycle.resolve(name, now)

    def is_available(self, name: str) -> bool:
        """Return True if *name* can be registered right now.

        Raises
        ------
        NameValidationError
            If *name* fails syntax validation.
        """
        with self._call() as now:
            return self._lifecycle.is_available(name, now)

    def get_price(self, name: str) -> int:
        """Return the advisory fee for *name*."""
        return self._pricing.price_for(name)

    def name_to_token(self, name: str) -> int:
        """Return the token id bound to *name* (live or lapsed).

        Raises
        ------
        NameNotRegisteredError
            If *name* has no record.
        """
        with self._lock:
            _, record = self._lifecycle.existing(name)
            return record.token_id

    def token_to_name(self, token_id: int) -> str:
        """Return the name *token_id* is bound to.

        Raises
        ------
        TokenNotFoundError
            If the token was never minted or has been retired by reclaim.
        """
        with self._lock:
            key = self._store.key_for_token(token_id)
            name = self._store.name_of(key) if key is not None else None
            if name is None:
                raise TokenNotFoundError(token_id)
            return name

    def get_blob(self, name: str) -> bytes:
        """Return the stored blob for *name*, or ``b""``. Never fails."""
        with self._lock:
            return self._blobs.get(name_hash(name))

    def list_names(self, include_expired: bool = False) -> list[tuple[str, IdentityRecord]]:
        """Return ``(name, record)`` pairs sorted by name.

        Parameters
        ----------
        include_expired:
            If True, lapsed, un-reclaimed records are included.
        """
        with self._call() as now:
            return [
                (name, record.copy())
                for name, _, record in self._store.items()
                if include_expired or record.is_live(now)
            ]

    def events(
        self,
        event_type: EventType | None = None,
        name: str | None = None,
        since: int = 0,
    ) -> list[AuditEvent]:
        """Return audit events in commit order."""
        return self._audit.events(event_type=event_type, name=name, since=since)

    def is_operator(self, principal: str) -> bool:
        return self._roles.is_operator(principal)

    @property
    def admin(self) -> str:
        return self._roles.admin

    @property
    def paused(self) -> bool:
        return self._breaker.paused

    @property
    def balance(self) -> int:
        with self._lock:
            return self._balance

    @property
    def settings(self) -> RegistrySettings:
        return self._settings

    @property
    def clock(self) -> Clock:
        return self._clock

    # Internals exposed for snapshots and tests.

    @property
    def roles(self) -> AccessControl:
        return self._roles

    @property
    def store(self) -> IdentityStore:
        return self._store

    @property
    def ledger(self) -> TokenLedger:
        return self._ledger

    @property
    def blobs(self) -> EncryptedBlobStore:
        return self._blobs

    @property
    def audit(self) -> AuditLog:
        return self._audit

    def __len__(self) -> int:
        """Return the number of stored records, live or lapsed."""
        with self._lock:
            return len(self._store)

    def __contains__(self, name: object) -> bool:
        """``"alice" in registry`` is True while *alice* resolves."""
        if not isinstance(name, str):
            return False
        with self._call() as now:
            record = self._store.get(name_hash(name))
            return record is not None and record.is_live(now)
