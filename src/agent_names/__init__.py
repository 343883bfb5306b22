"""agent-names — leased, tokenized name registry for autonomous-agent identities.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import agent_names
>>> agent_names.__version__
'0.1.0'

Quick start
-----------
::

    from agent_names import AccessControl, ManualClock, NameRegistry

    registry = NameRegistry(
        AccessControl(admin="0xadmin", operators=["0xpayments"]),
        clock=ManualClock(),
    )
    token_id = registry.register(
        "0xpayments",
        "alice",
        owner="0xalice",
        soul_hash=bytes.fromhex("ab" * 32),
        payment_address="0xalice",
    )
    print(registry.resolve("alice").expires_at)
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ------------------------------------------------------------------
# Errors
# ------------------------------------------------------------------
from agent_names.errors import (
    InvalidArgumentError,
    NameNotAvailableError,
    NameNotRegisteredError,
    NameValidationError,
    NotAdminError,
    NotOperatorError,
    RegistryError,
    RegistryPausedError,
    TokenNotFoundError,
    UnauthorizedError,
    ZeroAddressError,
    ZeroHashError,
)

# ------------------------------------------------------------------
# Names, pricing, roles
# ------------------------------------------------------------------
from agent_names.naming import NameValidator, PricingPolicy, name_hash, validate_name
from agent_names.access import AccessControl, CircuitBreaker

# ------------------------------------------------------------------
# Time, config, audit, ledger
# ------------------------------------------------------------------
from agent_names.clock import ManualClock, SystemClock
from agent_names.config import RegistrySettings
from agent_names.audit import AuditEvent, AuditLog, EventType
from agent_names.ledger import TokenLedger

# ------------------------------------------------------------------
# Registry
# ------------------------------------------------------------------
from agent_names.registry import IdentityRecord, NameRegistry, dump_state, load_state

__all__ = [
    "__version__",
    # errors
    "InvalidArgumentError",
    "NameNotAvailableError",
    "NameNotRegisteredError",
    "NameValidationError",
    "NotAdminError",
    "NotOperatorError",
    "RegistryError",
    "RegistryPausedError",
    "TokenNotFoundError",
    "UnauthorizedError",
    "ZeroAddressError",
    "ZeroHashError",
    # names / roles
    "AccessControl",
    "CircuitBreaker",
    "NameValidator",
    "PricingPolicy",
    "name_hash",
    "validate_name",
    # time / config / audit / ledger
    "AuditEvent",
    "AuditLog",
    "EventType",
    "ManualClock",
    "RegistrySettings",
    "SystemClock",
    "TokenLedger",
    # registry
    "IdentityRecord",
    "NameRegistry",
    "dump_state",
    "load_state",
]
