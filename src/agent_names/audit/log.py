"""AuditLog — append-only, typed record of committed registry mutations.

Every successful mutation appends exactly one :class:`AuditEvent` (a
reclaiming registration appends two: ``token_retired`` then
``name_registered``). Event order equals commit order and sequence numbers
are gap-free, so the log is the canonical feed for external indexers.

Events are kept in memory as typed objects. If a ``log_path`` is
configured each event is also appended as a single JSON line, giving a
human-readable trail that survives restarts.
"""
from __future__ import annotations

import datetime
import json
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import NamedTuple, Sequence


class EventType(str, Enum):
    """Kinds of audit events."""

    NAME_REGISTERED = "name_registered"
    NAME_RENEWED = "name_renewed"
    SOUL_UPDATED = "soul_updated"
    PAYMENT_ADDRESS_UPDATED = "payment_address_updated"
    OWNERSHIP_TRANSFERRED = "ownership_transferred"
    TOKEN_RETIRED = "token_retired"
    BLOB_STORED = "blob_stored"
    OPERATOR_CHANGED = "operator_changed"
    ADMIN_TRANSFERRED = "admin_transferred"
    PAUSED = "paused"
    UNPAUSED = "unpaused"
    FUNDS_DEPOSITED = "funds_deposited"
    FUNDS_WITHDRAWN = "funds_withdrawn"


@dataclass(frozen=True)
class AuditEvent:
    """A single committed mutation.

    Parameters
    ----------
    sequence:
        1-based position in the log.
    event_type:
        What happened.
    name:
        The affected name, or ``""`` for registry-wide events (operator
        changes, pause, withdrawals).
    actor_id:
        The principal whose call produced the event.
    timestamp:
        Clock reading of the call that committed the event.
    details:
        The changed fields.
    """

    sequence: int
    event_type: EventType
    name: str
    actor_id: str
    timestamp: datetime.datetime
    details: dict[str, object] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary suitable for JSON encoding."""
        return {
            "sequence": self.sequence,
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "name": self.name,
            "actor_id": self.actor_id,
            "details": dict(self.details),
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "AuditEvent":
        return cls(
            sequence=int(data["sequence"]),  # type: ignore[arg-type]
            event_type=EventType(str(data["event_type"])),
            name=str(data.get("name", "")),
            actor_id=str(data.get("actor_id", "")),
            timestamp=datetime.datetime.fromisoformat(str(data["timestamp"])),
            details=dict(data.get("details") or {}),  # type: ignore[call-overload]
        )


class PendingEvent(NamedTuple):
    """An event that has been built but not yet given a sequence number."""

    event_type: EventType
    name: str
    actor_id: str
    timestamp: datetime.datetime
    details: dict[str, object]


class AuditLog:
    """Append-only audit log.

    Thread-safe.

    Parameters
    ----------
    log_path:
        Optional JSONL mirror. The file is created if it does not exist;
        parent directories are created automatically.

    Raises
    ------
    OSError
        If *log_path* cannot be opened for appending.
    """

    def __init__(self, log_path: Path | None = None) -> None:
        self._log_path = log_path
        self._events: list[AuditEvent] = []
        self._lock = threading.Lock()

        if log_path is not None:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            with log_path.open("a", encoding="utf-8"):
                pass

    # ------------------------------------------------------------------
    # Appending
    # ------------------------------------------------------------------

    def append(
        self,
        event_type: EventType,
        name: str,
        actor_id: str,
        timestamp: datetime.datetime,
        **details: object,
    ) -> AuditEvent:
        """Record a new event and return it."""
        pending = PendingEvent(event_type, name, actor_id, timestamp, dict(details))
        return self.append_all([pending])[0]

    def append_all(self, pending: Sequence[PendingEvent]) -> list[AuditEvent]:
        """Record *pending* as one unit and return the sequenced events.

        The JSONL mirror is written first, in a single write. If that write
        fails the error propagates and the in-memory history is unchanged.
        """
        with self._lock:
            start = len(self._events)
            events = [
                AuditEvent(
                    sequence=start + offset + 1,
                    event_type=item.event_type,
                    name=item.name,
                    actor_id=item.actor_id,
                    timestamp=item.timestamp,
                    details=dict(item.details),
                )
                for offset, item in enumerate(pending)
            ]
            if self._log_path is not None and events:
                lines = "".join(
                    json.dumps(event.to_dict(), separators=(",", ":"), default=str) + "\n"
                    for event in events
                )
                with self._log_path.open("a", encoding="utf-8") as fh:
                    fh.write(lines)
            self._events.extend(events)
        return events

    def restore(self, events: list[AuditEvent]) -> None:
        """Replace in-memory history (used when loading a state snapshot).

        The JSONL mirror is not rewritten.
        """
        with self._lock:
            self._events = list(events)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def events(
        self,
        event_type: EventType | None = None,
        name: str | None = None,
        since: int = 0,
    ) -> list[AuditEvent]:
        """Return events in commit order, optionally filtered.

        Parameters
        ----------
        event_type:
            Only events of this type.
        name:
            Only events affecting this name.
        since:
            Only events with ``sequence > since``.
        """
        with self._lock:
            events = list(self._events)
        return [
            e
            for e in events
            if e.sequence > since
            and (event_type is None or e.event_type is event_type)
            and (name is None or e.name == name)
        ]

    def read_log(self, tail: int | None = None) -> list[dict[str, object]]:
        """Read events back from the JSONL mirror, or from memory if none.

        Parameters
        ----------
        tail:
            If provided, return only the last *tail* events.
        """
        if self._log_path is None or not self._log_path.exists():
            parsed = [e.to_dict() for e in self.events()]
        else:
            with self._lock:
                lines = self._log_path.read_text(encoding="utf-8").splitlines()
            parsed = []
            for line in lines:
                stripped = line.strip()
                if not stripped:
                    continue
                try:
                    parsed.append(json.loads(stripped))
                except json.JSONDecodeError:
                    continue

        if tail is not None:
            return parsed[-tail:]
        return parsed

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
