"""Agent state that the client keeps in sync with the server."""

from __future__ import annotations

import threading
from typing import Optional

from .errors import (
    AgentDescriptionMissingError,
    AgentDescriptionNoAttributesError,
    AvailableComponentsMissingError,
    CustomCapabilitiesMissingError,
    HealthMissingError,
    PackageStatusesMissingError,
    RemoteConfigStatusMissingError,
)
from .messages import (
    AgentDescription,
    AgentToServerFlags,
    AvailableComponents,
    ComponentHealth,
    CustomCapabilities,
    PackageStatuses,
    RemoteConfigStatus,
    clone,
)

__all__ = ["ClientSyncedState"]


class ClientSyncedState:
    """Thread-safe store of the status messages reported to the server.

    Every stored message is a private copy of what was handed in. The effective
    config is deliberately not kept here; it is fetched on demand through the
    ``get_effective_config`` callback.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._agent_description: Optional[AgentDescription] = None
        self._health: Optional[ComponentHealth] = None
        self._remote_config_status: Optional[RemoteConfigStatus] = None
        self._package_statuses: Optional[PackageStatuses] = None
        self._custom_capabilities: Optional[CustomCapabilities] = None
        self._available_components: Optional[AvailableComponents] = None
        self._flags = AgentToServerFlags.UNSPECIFIED

    @property
    def agent_description(self) -> Optional[AgentDescription]:
        with self._lock:
            return self._agent_description

    @property
    def health(self) -> Optional[ComponentHealth]:
        with self._lock:
            return self._health

    @property
    def remote_config_status(self) -> Optional[RemoteConfigStatus]:
        with self._lock:
            return self._remote_config_status

    @property
    def package_statuses(self) -> Optional[PackageStatuses]:
        with self._lock:
            return self._package_statuses

    @property
    def custom_capabilities(self) -> Optional[CustomCapabilities]:
        with self._lock:
            return self._custom_capabilities

    @property
    def available_components(self) -> Optional[AvailableComponents]:
        with self._lock:
            return self._available_components

    @property
    def flags(self) -> int:
        with self._lock:
            return int(self._flags)

    def set_agent_description(self, description: Optional[AgentDescription]) -> None:
        """Store a copy of the agent description; it must carry some attributes."""
        if description is None:
            raise AgentDescriptionMissingError()
        if (
            description.identifying_attributes is None
            and description.non_identifying_attributes is None
        ):
            raise AgentDescriptionNoAttributesError()
        copied = clone(description)
        with self._lock:
            self._agent_description = copied

    def set_health(self, health: Optional[ComponentHealth]) -> None:
        if health is None:
            raise HealthMissingError()
        copied = clone(health)
        with self._lock:
            self._health = copied

    def set_remote_config_status(self, status: Optional[RemoteConfigStatus]) -> None:
        if status is None:
            raise RemoteConfigStatusMissingError()
        copied = clone(status)
        with self._lock:
            self._remote_config_status = copied

    def set_package_statuses(self, statuses: Optional[PackageStatuses]) -> None:
        if statuses is None:
            raise PackageStatusesMissingError()
        copied = clone(statuses)
        with self._lock:
            self._package_statuses = copied

    def set_custom_capabilities(self, capabilities: Optional[CustomCapabilities]) -> None:
        if capabilities is None:
            raise CustomCapabilitiesMissingError()
        copied = clone(capabilities)
        with self._lock:
            self._custom_capabilities = copied

    def has_custom_capability(self, capability: str) -> bool:
        """True if ``capability`` is among the stored custom capabilities."""
        with self._lock:
            if self._custom_capabilities is None:
                return False
            return capability in self._custom_capabilities.capabilities

    def set_available_components(self, components: Optional[AvailableComponents]) -> None:
        if components is None:
            raise AvailableComponentsMissingError("AvailableComponents is not set")
        copied = clone(components)
        with self._lock:
            self._available_components = copied

    def set_flags(self, flags: int) -> None:
        with self._lock:
            self._flags = AgentToServerFlags(flags)

    def clear_flags(self, flags: int) -> None:
        """Reset the given bits in the stored flags."""
        with self._lock:
            self._flags = AgentToServerFlags(self._flags & ~AgentToServerFlags(flags))