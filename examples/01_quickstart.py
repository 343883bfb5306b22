#!/usr/bin/env python3
"""Example: Quickstart

Registers a name, renews it, lets it lapse and shows another owner
reclaiming it, using a manual clock to move time forward.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install agent-names
"""
from __future__ import annotations

import datetime

import agent_names
from agent_names import AccessControl, ManualClock, NameRegistry


def main() -> None:
    print(f"agent-names version: {agent_names.__version__}")

    clock = ManualClock()
    registry = NameRegistry(AccessControl(admin="0xadmin", operators=["0xop"]), clock=clock)
    soul = bytes.fromhex("ab" * 32)

    # Step 1: Register a name
    first = registry.register("0xop", "alice", owner="0xalice", soul_hash=soul, payment_address="0xalice")
    record = registry.resolve("alice")
    print(f"Registered alice as token {first}, expires {record.expires_at:%Y-%m-%d}")
    print(f"Fee for 'alice': {registry.get_price('alice')}")

    # Step 2: Renew early; the new period stacks on the old one
    expires = registry.renew("0xop", "alice")
    print(f"Renewed alice until {expires:%Y-%m-%d}")

    # Step 3: Let the lease lapse
    clock.advance(datetime.timedelta(days=2 * 365 + 1))
    print(f"alice available after lapse: {registry.is_available('alice')}")

    # Step 4: Someone else registers it and gets a fresh token
    second = registry.register("0xop", "alice", owner="0xbob", soul_hash=soul, payment_address="0xbob")
    print(f"Reclaimed alice as token {second} for {registry.resolve('alice').owner}")

    print("\nAudit trail:")
    for event in registry.events():
        print(f"  #{event.sequence} {event.event_type.value} {event.name}")

    print("\nQuickstart complete.")


if __name__ == "__main__":
    main()
