"""OwnershipSync — keeps identity ownership in step with the live token.

Subscribed to :class:`~agent_names.ledger.token_ledger.TokenLedger`. Mints
and burns are ignored; on a genuine transfer the identity owner is updated
only if the token is still the one bound to its name. A token retired by
reclaim can never overwrite the current registration's owner.
"""
from __future__ import annotations

import datetime
import logging
from typing import Callable

from agent_names.audit.log import AuditLog, EventType
from agent_names.registry.records import IdentityStore

logger = logging.getLogger(__name__)


class OwnershipSync:
    """Ledger hook that mirrors token holder changes into identity records.

    Parameters
    ----------
    store:
        The identity store to update.
    audit:
        Log receiving ``ownership_transferred`` events.
    timestamp:
        Returns the clock reading of the call in progress.
    """

    def __init__(
        self,
        store: IdentityStore,
        audit: AuditLog,
        timestamp: Callable[[], datetime.datetime],
    ) -> None:
        self._store = store
        self._audit = audit
        self._timestamp = timestamp

    def __call__(self, token_id: int, previous: str, new: str) -> None:
        self.on_transfer(token_id, previous, new)

    def on_transfer(self, token_id: int, previous: str, new: str) -> bool:
        """Handle a holder change. Returns True if an identity was updated."""
        if not previous or not new:
            return False

        key = self._store.key_for_token(token_id)
        record = self._store.get(key) if key is not None else None
        if key is None or record is None or record.token_id != token_id:
            logger.debug("Ignoring transfer of retired token %d", token_id)
            return False

        name = self._store.name_of(key) or ""

        old_owner = record.owner
        self._audit.append(
            EventType.OWNERSHIP_TRANSFERRED,
            name=name,
            actor_id=previous,
            timestamp=self._timestamp(),
            token_id=token_id,
            previous_owner=old_owner,
            new_owner=new,
        )
        record.owner = new
        logger.info("Owner of %r changed from %r to %r", name, old_owner, new)
        return True
