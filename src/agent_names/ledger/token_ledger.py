"""TokenLedger — who holds each ownership token.

The ledger knows nothing about names. It mints, transfers and burns integer
token ids, enforces holder/approval rules on transfers, and notifies
subscribed hooks on every holder change. The registry subscribes an
:class:`~agent_names.registry.ownership.OwnershipSync` hook so that
identity ownership follows the live token.

Token ids are never reused: once burned, an id cannot be minted again.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, ContextManager

from agent_names.errors import (
    InvalidArgumentError,
    InvalidRecipientError,
    NotTokenHolderError,
    TokenNotFoundError,
)
from agent_names.primitives import is_null_principal

logger = logging.getLogger(__name__)

# (token_id, previous_holder, new_holder); "" stands for "none" on mint/burn.
TransferHook = Callable[[int, str, str], None]


class TokenLedger:
    """In-memory ownership ledger.

    Parameters
    ----------
    lock:
        Lock guarding ledger state. Pass the owning registry's re-entrant
        lock so hook callbacks run inside the registry's atomic section.
        Defaults to a private ``threading.RLock``.
    """

    def __init__(self, lock: ContextManager[bool] | None = None) -> None:
        self._holders: dict[int, str] = {}
        self._approvals: dict[int, str] = {}
        self._burned: set[int] = set()
        self._hooks: list[TransferHook] = []
        self._lock = lock if lock is not None else threading.RLock()

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def subscribe(self, hook: TransferHook) -> None:
        """Register *hook* to be called on every holder change."""
        with self._lock:
            self._hooks.append(hook)

    def _notify(self, token_id: int, previous: str, new: str) -> None:
        for hook in list(self._hooks):
            hook(token_id, previous, new)

    # ------------------------------------------------------------------
    # Mint / burn
    # ------------------------------------------------------------------

    def mint(self, token_id: int, to: str) -> None:
        """Create *token_id* held by *to*.

        Raises
        ------
        InvalidArgumentError
            If *token_id* is not positive, already exists, or was burned.
        InvalidRecipientError
            If *to* is the null principal.
        """
        if is_null_principal(to):
            raise InvalidRecipientError("to")
        with self._lock:
            if token_id <= 0:
                raise InvalidArgumentError(f"Token id must be positive, got {token_id}.")
            if token_id in self._holders or token_id in self._burned:
                raise InvalidArgumentError(f"Token {token_id} has already been minted.")
            self._holders[token_id] = to
            logger.debug("Minted token %d to %r", token_id, to)
            self._notify(token_id, "", to)

    def burn(self, token_id: int) -> str:
        """Destroy *token_id* and return its last holder.

        Raises
        ------
        TokenNotFoundError
            If the token does not exist.
        """
        with self._lock:
            if token_id not in self._holders:
                raise TokenNotFoundError(token_id)
            holder = self._holders.pop(token_id)
            self._approvals.pop(token_id, None)
            self._burned.add(token_id)
            logger.debug("Burned token %d (last holder %r)", token_id, holder)
            self._notify(token_id, holder, "")
            return holder

    # ------------------------------------------------------------------
    # Transfer / approval
    # ------------------------------------------------------------------

    def approve(self, caller: str, token_id: int, spender: str) -> None:
        """Let *spender* transfer *token_id* once. Empty *spender* clears it.

        Raises
        ------
        TokenNotFoundError
            If the token does not exist.
        NotTokenHolderError
            If *caller* does not hold the token.
        """
        with self._lock:
            holder = self._holder_or_raise(token_id)
            if caller != holder:
                raise NotTokenHolderError(caller, token_id)
            if is_null_principal(spender):
                self._approvals.pop(token_id, None)
            else:
                self._approvals[token_id] = spender

    def get_approved(self, token_id: int) -> str:
        """Return the approved spender for *token_id*, or ``""``."""
        with self._lock:
            self._holder_or_raise(token_id)
            return self._approvals.get(token_id, "")

    def transfer(self, caller: str, token_id: int, to: str) -> str:
        """Move *token_id* to *to* and return the previous holder.

        *caller* must be the holder or the approved spender. Any approval
        is cleared by the transfer. Hooks run before the holder changes, so
        a hook that raises aborts the transfer with the ledger untouched.

        Raises
        ------
        TokenNotFoundError
            If the token does not exist.
        NotTokenHolderError
            If *caller* may not move the token.
        InvalidRecipientError
            If *to* is the null principal.
        """
        if is_null_principal(to):
            raise InvalidRecipientError("to")
        with self._lock:
            holder = self._holder_or_raise(token_id)
            if caller != holder and self._approvals.get(token_id) != caller:
                raise NotTokenHolderError(caller, token_id)
            self._notify(token_id, holder, to)
            self._approvals.pop(token_id, None)
            self._holders[token_id] = to
            logger.info("Transferred token %d from %r to %r", token_id, holder, to)
            return holder

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def owner_of(self, token_id: int) -> str:
        """Return the holder of *token_id*.

        Raises
        ------
        TokenNotFoundError
            If the token does not exist (never minted or burned).
        """
        with self._lock:
            return self._holder_or_raise(token_id)

    def exists(self, token_id: int) -> bool:
        with self._lock:
            return token_id in self._holders

    def was_burned(self, token_id: int) -> bool:
        with self._lock:
            return token_id in self._burned

    def tokens_of(self, principal: str) -> list[int]:
        """Return sorted token ids currently held by *principal*."""
        with self._lock:
            return sorted(t for t, h in self._holders.items() if h == principal)

    def balance_of(self, principal: str) -> int:
        return len(self.tokens_of(principal))

    def holders(self) -> dict[int, str]:
        """Return a copy of the token → holder table."""
        with self._lock:
            return dict(self._holders)

    def burned(self) -> set[int]:
        with self._lock:
            return set(self._burned)

    def load(self, holders: dict[int, str], burned: set[int]) -> None:
        """Replace ledger contents without notifying hooks (snapshot restore)."""
        with self._lock:
            self._holders = dict(holders)
            self._burned = set(burned)
            self._approvals.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._holders)

    def _holder_or_raise(self, token_id: int) -> str:
        holder = self._holders.get(token_id)
        if holder is None:
            raise TokenNotFoundError(token_id)
        return holder
