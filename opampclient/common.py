"""Client logic shared by the WebSocket and plain HTTP transports."""

from __future__ import annotations

import threading
from typing import Callable, Optional

from .errors import (
    AcceptsPackagesNotSetError,
    AgentDescriptionMissingError,
    AlreadyStartedError,
    AvailableComponentsMissingError,
    CustomCapabilityNotSupportedError,
    CustomMessageMissingError,
    CustomMessagePendingError,
    HealthMissingError,
    LastRemoteConfigHashMissingError,
    NoAvailableComponentHashError,
    NotStartedError,
    OpAMPClientError,
    PackagesStateProviderNotSetError,
    PackageStatusesMissingError,
    RemoteConfigStatusMissingError,
    ReportsAvailableComponentsNotSetError,
    ReportsEffectiveConfigNotSetError,
    ReportsPackageStatusesNotSetError,
    ReportsRemoteConfigNotSetError,
)
from .messages import (
    AgentCapabilities,
    AgentDescription,
    AgentToServer,
    AvailableComponents,
    ComponentHealth,
    ConnectionSettingsRequest,
    CustomCapabilities,
    CustomMessage,
    PackageStatuses,
    RemoteConfigStatus,
    RemoteConfigStatuses,
    clone,
)
from .sender import Sender
from .state import ClientSyncedState
from .types import Callbacks, Logger, PackagesStateProvider, StartSettings

__all__ = ["ClientCommon"]


class ClientCommon:
    """State and operations of a client that do not depend on the transport.

    The transport-specific loop is handed to ``start_connect_and_run`` as a
    callable that receives a stop event and returns once that event is set.
    """

    def __init__(self, logger: Logger, sender: Sender) -> None:
        self.logger = logger
        self.callbacks = Callbacks()
        self.capabilities = AgentCapabilities.UNSPECIFIED
        self.client_synced_state = ClientSyncedState()
        self.packages_state_provider: Optional[PackagesStateProvider] = None
        self.package_sync_lock = threading.Lock()
        self._sender = sender
        self._is_started = False
        self._run_stop: Optional[threading.Event] = None
        self._stopping = False
        self._stopping_lock = threading.Lock()
        self._stopped = threading.Event()

    def _has(self, capability: AgentCapabilities) -> bool:
        return bool(self.capabilities & capability)

    def prepare_start(self, settings: StartSettings) -> None:
        """Validate ``settings`` and prepare the state for starting."""
        if self._is_started:
            raise AlreadyStartedError()

        # Every agent must report its status.
        self.capabilities = AgentCapabilities(
            settings.capabilities | AgentCapabilities.REPORTS_STATUS
        )
        state = self.client_synced_state

        if state.agent_description is None:
            raise AgentDescriptionMissingError()
        if self._has(AgentCapabilities.REPORTS_HEALTH) and state.health is None:
            raise HealthMissingError()
        if (
            self._has(AgentCapabilities.REPORTS_AVAILABLE_COMPONENTS)
            and state.available_components is None
        ):
            raise AvailableComponentsMissingError()

        remote_config_status = settings.remote_config_status
        if remote_config_status is None:
            remote_config_status = RemoteConfigStatus(status=RemoteConfigStatuses.UNSET)
        state.set_remote_config_status(remote_config_status)

        self.packages_state_provider = settings.packages_state_provider
        package_statuses: Optional[PackageStatuses] = None
        accepts = self._has(AgentCapabilities.ACCEPTS_PACKAGES)
        reports = self._has(AgentCapabilities.REPORTS_PACKAGE_STATUSES)
        if settings.packages_state_provider is not None:
            if not (accepts and reports):
                raise AcceptsPackagesNotSetError()
            package_statuses = settings.packages_state_provider.last_reported_statuses()
        elif accepts or reports:
            raise PackagesStateProviderNotSetError()

        if package_statuses is None:
            package_statuses = PackageStatuses()
        state.set_package_statuses(package_statuses)

        self.callbacks = settings.callbacks

        if (
            self._has(AgentCapabilities.REPORTS_HEARTBEAT)
            and settings.heartbeat_interval is not None
        ):
            self._sender.set_heartbeat_interval(settings.heartbeat_interval)

        self._sender.set_instance_uid(settings.instance_uid)

    def stop(self, timeout: Optional[float]) -> None:
        """Signal the background loop to stop and wait for it to finish."""
        if not self._is_started:
            raise NotStartedError()

        with self._stopping_lock:
            stop_event = self._run_stop
            self._stopping = True
        if stop_event is not None:
            stop_event.set()

        if not self._stopped.wait(timeout):
            raise TimeoutError("timed out waiting for the client to stop")

    def is_stopping(self) -> bool:
        """True once ``stop`` has been called."""
        with self._stopping_lock:
            return self._stopping

    def start_connect_and_run(self, runner: Callable[[threading.Event], None]) -> None:
        """Run ``runner`` in a background thread until the client is stopped."""
        stop_event = threading.Event()
        with self._stopping_lock:
            if self._stopping:
                stop_event.set()
                return
            self._run_stop = stop_event
            self._is_started = True

        def run() -> None:
            try:
                runner(stop_event)
            finally:
                self._stopped.set()

        threading.Thread(target=run, name="opamp-client", daemon=True).start()

    def prepare_first_message(self) -> None:
        """Fill the next message with the full state sent on connecting."""
        config = self.callbacks.get_effective_config()
        state = self.client_synced_state

        # Only the hash is sent at first; the server can ask for the rest.
        available: Optional[AvailableComponents] = None
        if self._has(AgentCapabilities.REPORTS_AVAILABLE_COMPONENTS):
            current = state.available_components
            available = AvailableComponents(hash=current.hash if current else b"")

        capabilities = int(self.capabilities)

        def apply(msg: AgentToServer) -> None:
            msg.agent_description = state.agent_description
            msg.effective_config = config
            msg.remote_config_status = state.remote_config_status
            msg.package_statuses = state.package_statuses
            msg.capabilities = capabilities
            msg.custom_capabilities = state.custom_capabilities
            msg.flags = state.flags
            msg.available_components = available

        self._sender.next_message.update(apply)

    def agent_description(self) -> Optional[AgentDescription]:
        """A copy of the current agent description."""
        return clone(self.client_synced_state.agent_description)

    def set_agent_description(self, description: AgentDescription) -> None:
        state = self.client_synced_state
        state.set_agent_description(description)

        def apply(msg: AgentToServer) -> None:
            msg.agent_description = state.agent_description

        self._sender.next_message.update(apply)
        self._sender.schedule_send()

    def request_connection_settings(self, request: ConnectionSettingsRequest) -> None:
        def apply(msg: AgentToServer) -> None:
            msg.connection_settings_request = request

        self._sender.next_message.update(apply)
        self._sender.schedule_send()

    def set_health(self, health: ComponentHealth) -> None:
        state = self.client_synced_state
        state.set_health(health)

        def apply(msg: AgentToServer) -> None:
            msg.health = state.health

        self._sender.next_message.update(apply)
        self._sender.schedule_send()

    def update_effective_config(self) -> None:
        """Fetch the effective config through the callback and queue it."""
        if not self._has(AgentCapabilities.REPORTS_EFFECTIVE_CONFIG):
            raise ReportsEffectiveConfigNotSetError()
        try:
            config = self.callbacks.get_effective_config()
        except Exception as exc:
            raise OpAMPClientError(f"GetEffectiveConfig failed: {exc}") from exc

        def apply(msg: AgentToServer) -> None:
            msg.effective_config = config

        self._sender.next_message.update(apply)
        self._sender.schedule_send()

    def set_remote_config_status(self, status: RemoteConfigStatus) -> None:
        """Store the status and report it if it changed."""
        if not self._has(AgentCapabilities.REPORTS_REMOTE_CONFIG):
            raise ReportsRemoteConfigNotSetError()
        if status is None:
            raise RemoteConfigStatusMissingError()
        if status.last_remote_config_hash is None:
            raise LastRemoteConfigHashMissingError()

        state = self.client_synced_state
        changed = state.remote_config_status != status
        state.set_remote_config_status(status)

        if changed:

            def apply(msg: AgentToServer) -> None:
                msg.remote_config_status = state.remote_config_status

            self._sender.next_message.update(apply)
            self._sender.schedule_send()

    def set_package_statuses(self, statuses: PackageStatuses) -> None:
        """Store the statuses and report them if they changed."""
        if not self._has(AgentCapabilities.REPORTS_PACKAGE_STATUSES):
            raise ReportsPackageStatusesNotSetError()
        if statuses is None:
            raise PackageStatusesMissingError()
        if statuses.server_provided_all_packages_hash is None:
            from .errors import ServerProvidedAllPackagesHashMissingError

            raise ServerProvidedAllPackagesHashMissingError()

        state = self.client_synced_state
        changed = state.package_statuses != statuses
        state.set_package_statuses(statuses)

        if changed:

            def apply(msg: AgentToServer) -> None:
                msg.package_statuses = state.package_statuses

            self._sender.next_message.update(apply)
            self._sender.schedule_send()

    def set_custom_capabilities(self, custom_capabilities: CustomCapabilities) -> None:
        state = self.client_synced_state
        state.set_custom_capabilities(custom_capabilities)

        def apply(msg: AgentToServer) -> None:
            msg.custom_capabilities = state.custom_capabilities

        self._sender.next_message.update(apply)
        self._sender.schedule_send()

    def set_flags(self, flags: int) -> None:
        self.client_synced_state.set_flags(flags)
        value = int(flags)

        def apply(msg: AgentToServer) -> None:
            msg.flags = value

        self._sender.next_message.update(apply)
        self._sender.schedule_send()

    def send_custom_message(self, message: CustomMessage) -> threading.Event:
        """Queue ``message``; the returned event is set once it is sent."""
        if message is None:
            raise CustomMessageMissingError()
        if not self.client_synced_state.has_custom_capability(message.capability):
            raise CustomCapabilityNotSupportedError()

        already_pending = False

        def apply(msg: AgentToServer) -> None:
            nonlocal already_pending
            if msg.custom_message is not None:
                already_pending = True
            else:
                msg.custom_message = message

        sending = self._sender.next_message.update(apply)
        if already_pending:
            raise CustomMessagePendingError(sending)

        self._sender.schedule_send()
        return sending

    def set_available_components(self, components: AvailableComponents) -> None:
        """Store the components; once started, report their hash if they changed."""
        state = self.client_synced_state
        if not self._is_started:
            state.set_available_components(components)
            return

        if not self._has(AgentCapabilities.REPORTS_AVAILABLE_COMPONENTS):
            raise ReportsAvailableComponentsNotSetError()
        if components is None:
            raise AvailableComponentsMissingError()
        if not components.hash:
            raise NoAvailableComponentHashError()

        if state.available_components == components:
            return

        state.set_available_components(components)
        current = state.available_components
        available = AvailableComponents(hash=current.hash if current else b"")

        def apply(msg: AgentToServer) -> None:
            msg.available_components = available

        self._sender.next_message.update(apply)
        self._sender.schedule_send()