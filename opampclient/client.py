"""The interface of an OpAMP client."""

from __future__ import annotations

import abc
import threading
from typing import Optional

from .messages import (
    AgentDescription,
    AvailableComponents,
    ComponentHealth,
    ConnectionSettingsRequest,
    CustomCapabilities,
    CustomMessage,
    PackageStatuses,
    RemoteConfigStatus,
)
from .types import StartSettings

__all__ = ["OpAMPClient"]


class OpAMPClient(abc.ABC):
    """Client side of the OpAMP protocol.

    ``set_agent_description`` must be called before ``start``. Errors are
    raised as subclasses of ``OpAMPClientError``.
    """

    @abc.abstractmethod
    def start(self, settings: StartSettings) -> None:
        """Begin connecting to the server in the background.

        Raises at once on invalid settings; does not wait for a connection.
        May be called only once.
        """

    @abc.abstractmethod
    def stop(self, timeout: Optional[float]) -> None:
        """Stop the client and wait up to ``timeout`` seconds for callbacks to finish.

        No callbacks run after this returns; a stopped client cannot be restarted.
        """

    @abc.abstractmethod
    def set_agent_description(self, description: AgentDescription) -> None:
        """Set the agent attributes included in the next status report."""

    @abc.abstractmethod
    def agent_description(self) -> AgentDescription:
        """The last description successfully set."""

    @abc.abstractmethod
    def set_health(self, health: ComponentHealth) -> None:
        """Set the agent health included in the next status report."""

    @abc.abstractmethod
    def update_effective_config(self) -> None:
        """Fetch the effective config through the callback and send it."""

    @abc.abstractmethod
    def set_remote_config_status(self, status: RemoteConfigStatus) -> None:
        """Set the remote config status; its last config hash must be set."""

    @abc.abstractmethod
    def set_package_statuses(self, statuses: PackageStatuses) -> None:
        """Set the package statuses; the server-provided hash must be set."""

    @abc.abstractmethod
    def request_connection_settings(self, request: ConnectionSettingsRequest) -> None:
        """Include a connection settings request in the next message."""

    @abc.abstractmethod
    def set_custom_capabilities(self, custom_capabilities: CustomCapabilities) -> None:
        """Replace the set of custom capabilities announced to the server."""

    @abc.abstractmethod
    def set_flags(self, flags: int) -> None:
        """Replace the agent-to-server flags."""

    @abc.abstractmethod
    def send_custom_message(self, message: CustomMessage) -> threading.Event:
        """Queue a custom message; the returned event is set once it is sent.

        Raises ``CustomMessagePendingError`` while an earlier one is still queued.
        """

    @abc.abstractmethod
    def set_available_components(self, components: AvailableComponents) -> None:
        """Set the components available for configuration on the agent."""