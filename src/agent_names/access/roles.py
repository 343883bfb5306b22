"""AccessControl — single admin plus an admin-managed operator set.

Operators stand in for the off-platform payment verifier: any call from a
flagged operator is trusted unconditionally. The admin manages the operator
set, the circuit breaker and treasury withdrawals; admin rights can be
handed to another principal but there is always exactly one admin.
"""
from __future__ import annotations

import logging
import threading

from agent_names.errors import InvalidPrincipalError, NotAdminError, NotOperatorError
from agent_names.primitives import is_null_principal

logger = logging.getLogger(__name__)


class AccessControl:
    """Two-tier role table.

    Parameters
    ----------
    admin:
        The initial admin principal. Must not be null.
    operators:
        Optional iterable of principals to flag as operators up front.

    Raises
    ------
    InvalidPrincipalError
        If *admin* or any initial operator is the null principal.
    """

    def __init__(self, admin: str, operators: list[str] | None = None) -> None:
        if is_null_principal(admin):
            raise InvalidPrincipalError("admin")
        self._admin = admin
        self._operators: dict[str, bool] = {}
        self._lock = threading.Lock()
        for operator in operators or []:
            if is_null_principal(operator):
                raise InvalidPrincipalError("operator")
            self._operators[operator] = True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def admin(self) -> str:
        """The current admin principal."""
        with self._lock:
            return self._admin

    def is_admin(self, principal: str) -> bool:
        with self._lock:
            return principal == self._admin

    def is_operator(self, principal: str) -> bool:
        with self._lock:
            return self._operators.get(principal, False)

    def list_operators(self) -> list[str]:
        """Return sorted principals whose operator flag is currently True."""
        with self._lock:
            return sorted(p for p, flag in self._operators.items() if flag)

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def require_operator(self, caller: str) -> None:
        """Raise NotOperatorError unless *caller* is a flagged operator."""
        if not self.is_operator(caller):
            logger.warning("Rejected operator call from %r", caller)
            raise NotOperatorError(caller)

    def require_admin(self, caller: str) -> None:
        """Raise NotAdminError unless *caller* is the admin."""
        if not self.is_admin(caller):
            logger.warning("Rejected admin call from %r", caller)
            raise NotAdminError(caller)

    # ------------------------------------------------------------------
    # Mutation (callers must already have passed require_admin)
    # ------------------------------------------------------------------

    def set_operator(self, principal: str, enabled: bool) -> None:
        """Set or clear the operator flag for *principal*.

        Raises
        ------
        InvalidPrincipalError
            If *principal* is the null principal.
        """
        if is_null_principal(principal):
            raise InvalidPrincipalError("operator")
        with self._lock:
            self._operators[principal] = bool(enabled)

    def transfer_admin(self, new_admin: str) -> str:
        """Hand admin rights to *new_admin* and return the previous admin.

        Raises
        ------
        InvalidPrincipalError
            If *new_admin* is the null principal.
        """
        if is_null_principal(new_admin):
            raise InvalidPrincipalError("new_admin")
        with self._lock:
            previous = self._admin
            self._admin = new_admin
        return previous

    def operator_flags(self) -> dict[str, bool]:
        """Return a copy of the raw operator flag table."""
        with self._lock:
            return dict(self._operators)
