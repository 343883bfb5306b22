"""Append-only audit trail of registry mutations."""
from __future__ import annotations

from agent_names.audit.log import AuditEvent, AuditLog, EventType, PendingEvent

__all__ = ["AuditEvent", "AuditLog", "EventType", "PendingEvent"]
