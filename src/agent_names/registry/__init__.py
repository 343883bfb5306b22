"""Agent name registry.

Quick start
-----------
::

    from agent_names.access import AccessControl
    from agent_names.registry import NameRegistry

    registry = NameRegistry(AccessControl(admin="0xadmin", operators=["0xop"]))
    token_id = registry.register(
        "0xop",
        "alice",
        owner="0xalice",
        soul_hash=bytes.fromhex("11" * 32),
        payment_address="0xalice",
    )
    assert registry.token_to_name(token_id) == "alice"
"""
from __future__ import annotations

from agent_names.registry.blobs import EncryptedBlobStore
from agent_names.registry.lifecycle import DEFAULT_LEASE, LeaseLifecycle
from agent_names.registry.name_registry import NameRegistry
from agent_names.registry.ownership import OwnershipSync
from agent_names.registry.records import NO_TOKEN, IdentityRecord, IdentityStore
from agent_names.registry.snapshot import SCHEMA_VERSION, dump_state, load_state

__all__ = [
    "DEFAULT_LEASE",
    "EncryptedBlobStore",
    "IdentityRecord",
    "IdentityStore",
    "LeaseLifecycle",
    "NO_TOKEN",
    "NameRegistry",
    "OwnershipSync",
    "SCHEMA_VERSION",
    "dump_state",
    "load_state",
]
