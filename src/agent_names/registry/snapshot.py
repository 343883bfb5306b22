"""Versioned JSON snapshots of registry state.

A snapshot captures everything needed to rebuild a registry: settings,
roles, pause flag, treasury balance, identity records, token ledger, blobs
and the audit history. ``schema_version`` is checked on load so that a
newer layout is never half-read by older code.
"""
from __future__ import annotations

import json
from pathlib import Path

from agent_names.access.breaker import CircuitBreaker
from agent_names.access.roles import AccessControl
from agent_names.audit.log import AuditEvent, AuditLog
from agent_names.clock import Clock
from agent_names.config import RegistrySettings
from agent_names.errors import SchemaVersionError
from agent_names.naming.validator import name_hash
from agent_names.registry.name_registry import NameRegistry
from agent_names.registry.records import IdentityRecord

SCHEMA_VERSION: int = 1


def dump_state(registry: NameRegistry) -> dict[str, object]:
    """Return a JSON-serializable snapshot of *registry*."""
    records = [
        {"name": name, **record.to_dict()}
        for name, _, record in registry.store.items()
    ]
    names_by_key = {key: name for name, key, _ in registry.store.items()}
    return {
        "schema_version": SCHEMA_VERSION,
        "settings": registry.settings.model_dump(),
        "admin": registry.admin,
        "operators": registry.roles.operator_flags(),
        "paused": registry.paused,
        "balance": registry.balance,
        "last_token_id": registry.store.last_token_id,
        "records": records,
        "ledger": {
            "holders": {str(t): h for t, h in sorted(registry.ledger.holders().items())},
            "burned": sorted(registry.ledger.burned()),
        },
        "blobs": {
            names_by_key[key]: data.hex()
            for key, data in registry.blobs.items().items()
        },
        "events": [event.to_dict() for event in registry.events()],
    }


def load_state(
    data: dict[str, object],
    clock: Clock | None = None,
    audit: AuditLog | None = None,
) -> NameRegistry:
    """Rebuild a registry from a snapshot produced by :func:`dump_state`.

    Raises
    ------
    SchemaVersionError
        If the snapshot's ``schema_version`` is not supported.
    """
    version = data.get("schema_version")
    if version != SCHEMA_VERSION:
        raise SchemaVersionError(version)

    settings = RegistrySettings.model_validate(data.get("settings") or {})
    operator_flags: dict[str, bool] = dict(data.get("operators") or {})  # type: ignore[call-overload]
    roles = AccessControl(admin=str(data["admin"]))
    for principal, enabled in operator_flags.items():
        roles.set_operator(principal, bool(enabled))

    registry = NameRegistry(
        roles,
        clock=clock,
        settings=settings,
        audit=audit,
        breaker=CircuitBreaker(paused=bool(data.get("paused", False))),
        balance=int(data.get("balance", 0)),  # type: ignore[arg-type]
    )

    records: dict[bytes, IdentityRecord] = {}
    names: dict[bytes, str] = {}
    for entry in data.get("records") or []:  # type: ignore[union-attr]
        name = str(entry["name"])
        key = name_hash(name)
        records[key] = IdentityRecord.from_dict(entry)
        names[key] = name
    registry.store.load(records, names, int(data.get("last_token_id", 0)))  # type: ignore[arg-type]

    ledger_data: dict[str, object] = dict(data.get("ledger") or {})  # type: ignore[call-overload]
    holders = {int(t): str(h) for t, h in dict(ledger_data.get("holders") or {}).items()}  # type: ignore[call-overload]
    burned = {int(t) for t in ledger_data.get("burned") or []}  # type: ignore[union-attr]
    registry.ledger.load(holders, burned)

    blobs = {
        name_hash(name): bytes.fromhex(hex_data)
        for name, hex_data in dict(data.get("blobs") or {}).items()  # type: ignore[call-overload]
    }
    registry.blobs.load(blobs)

    events = [AuditEvent.from_dict(e) for e in data.get("events") or []]  # type: ignore[union-attr]
    registry.audit.restore(events)
    return registry


def save_file(registry: NameRegistry, path: Path | str) -> None:
    """Write a snapshot of *registry* to *path* as indented JSON."""
    Path(path).write_text(json.dumps(dump_state(registry), indent=2), encoding="utf-8")


def load_file(
    path: Path | str,
    clock: Clock | None = None,
    audit: AuditLog | None = None,
) -> NameRegistry:
    """Read a snapshot written by :func:`save_file`."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return load_state(data, clock=clock, audit=audit)
