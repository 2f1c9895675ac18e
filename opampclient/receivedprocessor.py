"""Processing of messages received from the server."""

from __future__ import annotations

import threading
from typing import Optional

from .messages import (
    AgentCapabilities,
    AgentIdentification,
    AgentToServer,
    AgentToServerFlags,
    ConnectionSettingsOffers,
    ServerToAgent,
    ServerToAgentFlags,
)
from .packagessyncer import PackageSyncProcess
from .sender import Sender
from .state import ClientSyncedState
from .types import (
    INSTANCE_UID_LENGTH,
    Callbacks,
    Logger,
    MessageData,
    PackagesStateProvider,
)

__all__ = ["ReceivedProcessor"]


class ReceivedProcessor:
    """Examines server messages and calls the matching callbacks.

    Parts of a message the agent has no capability for are ignored.
    """

    def __init__(
        self,
        logger: Logger,
        callbacks: Callbacks,
        sender: Optional[Sender],
        client_synced_state: ClientSyncedState,
        packages_state_provider: Optional[PackagesStateProvider],
        capabilities: int,
        package_sync_lock: threading.Lock,
    ) -> None:
        self._logger = logger
        self._callbacks = callbacks
        self._sender = sender
        self._client_synced_state = client_synced_state
        self._packages_state_provider = packages_state_provider
        self._capabilities = int(capabilities)
        self._package_sync_lock = package_sync_lock

    def has_capability(self, capability: int) -> bool:
        return self._capabilities & int(capability) != 0

    def process_received_message(self, msg: ServerToAgent) -> None:
        """Handle every field set in ``msg``; a command excludes everything else."""
        if msg.command is not None:
            if self.has_capability(AgentCapabilities.ACCEPTS_RESTART_COMMAND):
                try:
                    self._callbacks.on_command(msg.command)
                except Exception as exc:
                    self._logger.error(f"OnCommand failed: {exc}")
                return
            self._logger.debug(
                "Ignoring Command, agent does not have AcceptsCommands capability"
            )

        scheduled = self._rcv_flags(int(msg.flags))
        data = MessageData()

        if msg.remote_config is not None:
            if self.has_capability(AgentCapabilities.ACCEPTS_REMOTE_CONFIG):
                data.remote_config = msg.remote_config
            else:
                self._logger.debug(
                    "Ignoring RemoteConfig, agent does not have AcceptsRemoteConfig capability"
                )

        settings = msg.connection_settings
        if settings is not None:
            if settings.own_metrics is not None:
                if self.has_capability(AgentCapabilities.REPORTS_OWN_METRICS):
                    data.own_metrics_conn_settings = settings.own_metrics
                else:
                    self._logger.debug(
                        "Ignoring OwnMetrics, agent does not have ReportsOwnMetrics capability"
                    )
            if settings.own_traces is not None:
                if self.has_capability(AgentCapabilities.REPORTS_OWN_TRACES):
                    data.own_traces_conn_settings = settings.own_traces
                else:
                    self._logger.debug(
                        "Ignoring OwnTraces, agent does not have ReportsOwnTraces capability"
                    )
            if settings.own_logs is not None:
                if self.has_capability(AgentCapabilities.REPORTS_OWN_LOGS):
                    data.own_logs_conn_settings = settings.own_logs
                else:
                    self._logger.debug(
                        "Ignoring OwnLogs, agent does not have ReportsOwnLogs capability"
                    )
            if settings.other_connections is not None:
                if self.has_capability(AgentCapabilities.ACCEPTS_OTHER_CONNECTION_SETTINGS):
                    data.other_conn_settings = settings.other_connections
                else:
                    self._logger.debug(
                        "Ignoring OtherConnections, agent does not have "
                        "AcceptsOtherConnectionSettings capability"
                    )

        if msg.packages_available is not None:
            if self.has_capability(AgentCapabilities.ACCEPTS_PACKAGES):
                data.packages_available = msg.packages_available
                data.package_syncer = PackageSyncProcess(
                    self._logger,
                    msg.packages_available,
                    self._sender,
                    self._client_synced_state,
                    self._packages_state_provider,
                    self._package_sync_lock,
                )
            else:
                self._logger.debug(
                    "Ignoring PackagesAvailable, agent does not have AcceptsPackages capability"
                )

        if msg.agent_identification is not None:
            try:
                self._rcv_agent_identification(msg.agent_identification)
            except Exception as exc:
                self._logger.error(f"Failed to set agent ID: {exc}")
            else:
                data.agent_identification = msg.agent_identification

        if msg.custom_capabilities is not None:
            data.custom_capabilities = msg.custom_capabilities

        if msg.custom_message is not None:
            capability = msg.custom_message.capability
            if self._client_synced_state.has_custom_capability(capability):
                data.custom_message = msg.custom_message
            else:
                self._logger.debug(
                    f"Ignoring CustomMessage, agent does not have {capability} capability"
                )

        self._callbacks.on_message(data)

        self._rcv_opamp_connection_settings(msg.connection_settings)

        if scheduled and self._sender is not None:
            self._sender.schedule_send()

        if msg.error_response is not None:
            self._callbacks.on_error(msg.error_response)

    def _rcv_flags(self, flags: int) -> bool:
        schedule = False
        state = self._client_synced_state

        if flags & ServerToAgentFlags.REPORT_FULL_STATE:
            try:
                config = self._callbacks.get_effective_config()
            except Exception as exc:
                self._logger.error(f"Cannot GetEffectiveConfig: {exc}")
                config = None

            def report_full(msg: AgentToServer) -> None:
                msg.agent_description = state.agent_description
                msg.health = state.health
                msg.remote_config_status = state.remote_config_status
                msg.package_statuses = state.package_statuses
                msg.custom_capabilities = state.custom_capabilities
                msg.flags = state.flags
                msg.available_components = state.available_components
                msg.effective_config = config

            self._require_sender().next_message.update(report_full)
            schedule = True

        if flags & ServerToAgentFlags.REPORT_AVAILABLE_COMPONENTS:

            def report_components(msg: AgentToServer) -> None:
                msg.available_components = state.available_components

            self._require_sender().next_message.update(report_components)
            schedule = True

        return schedule

    def _require_sender(self) -> Sender:
        if self._sender is None:
            raise RuntimeError("no sender to report state with")
        return self._sender

    def _rcv_opamp_connection_settings(
        self, settings: Optional[ConnectionSettingsOffers]
    ) -> None:
        if settings is None or settings.opamp is None:
            return

        if self.has_capability(AgentCapabilities.REPORTS_HEARTBEAT):
            try:
                self._require_sender().set_heartbeat_interval(
                    settings.opamp.heartbeat_interval_seconds
                )
            except Exception as exc:
                self._logger.error(f"Failed to set heartbeat interval: {exc}")

        if self.has_capability(AgentCapabilities.ACCEPTS_OPAMP_CONNECTION_SETTINGS):
            try:
                self._callbacks.on_opamp_connection_settings(settings.opamp)
            except Exception as exc:
                self._logger.error(f"Failed to process OpAMPConnectionSettings: {exc}")
        else:
            self._logger.debug(
                "Ignoring Opamp, agent does not have AcceptsOpAMPConnectionSettings capability"
            )

    def _rcv_agent_identification(self, identification: AgentIdentification) -> None:
        uid = identification.new_instance_uid
        if len(uid) != INSTANCE_UID_LENGTH:
            message = (
                f"instance uid must be {INSTANCE_UID_LENGTH} bytes "
                f"but is {len(uid)} bytes long"
            )
            self._logger.debug(message)
            raise ValueError(message)
        try:
            self._require_sender().set_instance_uid(uid)
        except Exception as exc:
            self._logger.error(f"Error while setting instance uid: {exc}")
            raise
        self._client_synced_state.clear_flags(AgentToServerFlags.REQUEST_INSTANCE_UID)