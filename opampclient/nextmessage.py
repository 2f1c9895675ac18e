"""The next agent-to-server message being assembled."""

from __future__ import annotations

import threading
from typing import Callable, Optional

from .messages import AgentToServer, clone

__all__ = ["NextMessage"]


class NextMessage:
    """Thread-safe holder of the message that will be sent next."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._message = AgentToServer()
        self._sending = threading.Event()
        self._pending = False

    def update(self, modifier: Callable[[AgentToServer], None]) -> threading.Event:
        """Apply ``modifier`` to the next message and mark it pending.

        The returned event is set when this message is popped for sending.
        """
        with self._lock:
            modifier(self._message)
            self._pending = True
            return self._sending

    def pop_pending(self) -> Optional[AgentToServer]:
        """Return a copy of the pending message and start a new one, or None."""
        with self._lock:
            if not self._pending:
                return None
            to_send = clone(self._message)
            self._pending = False
            self._message = AgentToServer(
                instance_uid=self._message.instance_uid,
                sequence_num=self._message.sequence_num + 1,
                capabilities=self._message.capabilities,
            )
            sending = self._sending
            self._sending = threading.Event()
            sending.set()
            return to_send