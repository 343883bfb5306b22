"""Role-gated access and the global circuit breaker.

Quick start
-----------
::

    from agent_names.access import AccessControl, CircuitBreaker

    roles = AccessControl(admin="0xadmin", operators=["0xpayments"])
    roles.require_operator("0xpayments")
    breaker = CircuitBreaker()
    breaker.require_not_paused()
"""
from __future__ import annotations

from agent_names.access.breaker import CircuitBreaker
from agent_names.access.roles import AccessControl

__all__ = ["AccessControl", "CircuitBreaker"]
