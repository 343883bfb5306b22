"""CircuitBreaker — global pause flag for operator mutations."""
from __future__ import annotations

import logging
import threading

from agent_names.errors import RegistryPausedError

logger = logging.getLogger(__name__)


class CircuitBreaker:
    """A single boolean ``paused`` flag.

    Only operator-gated mutations consult the breaker; admin operations and
    reads ignore it. There is no automatic un-pausing.
    """

    def __init__(self, paused: bool = False) -> None:
        self._paused = paused
        self._lock = threading.Lock()

    @property
    def paused(self) -> bool:
        with self._lock:
            return self._paused

    def pause(self) -> bool:
        """Set the flag. Returns True if the state changed."""
        with self._lock:
            changed = not self._paused
            self._paused = True
        return changed

    def unpause(self) -> bool:
        """Clear the flag. Returns True if the state changed."""
        with self._lock:
            changed = self._paused
            self._paused = False
        return changed

    def require_not_paused(self) -> None:
        """Raise RegistryPausedError while the breaker is tripped."""
        if self.paused:
            logger.warning("Rejected operator mutation while paused")
            raise RegistryPausedError()
