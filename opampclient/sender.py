"""The sending side of the protocol shared by all transports."""

from __future__ import annotations

import abc
import threading
import uuid
from typing import Optional, Union

from .errors import InvalidInstanceUidError
from .messages import AgentToServer
from .nextmessage import NextMessage
from .types import validate_instance_uid

__all__ = ["Sender", "SenderCommon"]


class Sender(abc.ABC):
    """Holds the next message and sends it when told to."""

    @property
    @abc.abstractmethod
    def next_message(self) -> NextMessage:
        """The message that will be sent next."""

    @abc.abstractmethod
    def schedule_send(self) -> None:
        """Signal that the next message is ready to be sent."""

    @abc.abstractmethod
    def set_instance_uid(self, instance_uid: Union[bytes, bytearray, uuid.UUID]) -> None:
        """Use a new instance UID for all later messages."""

    @abc.abstractmethod
    def set_heartbeat_interval(self, seconds: float) -> None:
        """Set the interval between heartbeats."""


class SenderCommon(Sender):
    """Part of a sender shared by the transports; heartbeats are left to them."""

    def __init__(self) -> None:
        self._next_message = NextMessage()
        self._pending = threading.Condition()
        self._has_pending = False

    @property
    def next_message(self) -> NextMessage:
        return self._next_message

    def schedule_send(self) -> None:
        """Flag that a message is pending; repeated calls coalesce."""
        with self._pending:
            self._has_pending = True
            self._pending.notify_all()

    def wait_pending(self, timeout: Optional[float]) -> bool:
        """Wait until a send is scheduled and consume the signal.

        Returns False if ``timeout`` seconds passed without one.
        """
        with self._pending:
            if not self._pending.wait_for(lambda: self._has_pending, timeout):
                return False
            self._has_pending = False
            return True

    def set_instance_uid(self, instance_uid: Union[bytes, bytearray, uuid.UUID]) -> None:
        uid = validate_instance_uid(instance_uid)
        if not any(uid):
            raise InvalidInstanceUidError()

        def apply(msg: AgentToServer) -> None:
            msg.instance_uid = uid

        self._next_message.update(apply)