"""Message types exchanged between an OpAMP agent and server."""

from __future__ import annotations

import copy
import enum
from dataclasses import dataclass, field
from typing import List, Optional, TypeVar, Union

__all__ = [
    "AgentCapabilities",
    "AgentToServerFlags",
    "ServerToAgentFlags",
    "RemoteConfigStatuses",
    "PackageStatusEnum",
    "PackageType",
    "CommandType",
    "AnyValue",
    "KeyValue",
    "AgentDescription",
    "ComponentHealth",
    "RemoteConfigStatus",
    "PackageStatus",
    "PackageStatuses",
    "CustomCapabilities",
    "CustomMessage",
    "ComponentDetails",
    "AvailableComponents",
    "AgentConfigFile",
    "AgentConfigMap",
    "EffectiveConfig",
    "ConnectionSettingsRequest",
    "AgentToServer",
    "AgentRemoteConfig",
    "Header",
    "Headers",
    "TelemetryConnectionSettings",
    "OtherConnectionSettings",
    "OpAMPConnectionSettings",
    "ConnectionSettingsOffers",
    "DownloadableFile",
    "PackageAvailable",
    "PackagesAvailable",
    "AgentIdentification",
    "ServerToAgentCommand",
    "ServerErrorResponse",
    "ServerToAgent",
    "clone",
]


class AgentCapabilities(enum.IntFlag):
    """Capabilities an agent announces to the server."""

    UNSPECIFIED = 0
    REPORTS_STATUS = 0x00000001
    ACCEPTS_REMOTE_CONFIG = 0x00000002
    REPORTS_EFFECTIVE_CONFIG = 0x00000004
    ACCEPTS_PACKAGES = 0x00000008
    REPORTS_PACKAGE_STATUSES = 0x00000010
    REPORTS_OWN_TRACES = 0x00000020
    REPORTS_OWN_METRICS = 0x00000040
    REPORTS_OWN_LOGS = 0x00000080
    ACCEPTS_OPAMP_CONNECTION_SETTINGS = 0x00000100
    ACCEPTS_OTHER_CONNECTION_SETTINGS = 0x00000200
    ACCEPTS_RESTART_COMMAND = 0x00000400
    REPORTS_HEALTH = 0x00000800
    REPORTS_REMOTE_CONFIG = 0x00001000
    REPORTS_HEARTBEAT = 0x00002000
    REPORTS_AVAILABLE_COMPONENTS = 0x00004000


class AgentToServerFlags(enum.IntFlag):
    """Flags carried by agent-to-server messages."""

    UNSPECIFIED = 0
    REQUEST_INSTANCE_UID = 0x00000001


class ServerToAgentFlags(enum.IntFlag):
    """Flags carried by server-to-agent messages."""

    UNSPECIFIED = 0
    REPORT_FULL_STATE = 0x00000001
    REPORT_AVAILABLE_COMPONENTS = 0x00000002


class RemoteConfigStatuses(enum.IntEnum):
    UNSET = 0
    APPLIED = 1
    APPLYING = 2
    FAILED = 3


class PackageStatusEnum(enum.IntEnum):
    INSTALLED = 0
    INSTALL_PENDING = 1
    INSTALLING = 2
    INSTALL_FAILED = 3
    DOWNLOADING = 4


class PackageType(enum.IntEnum):
    TOP_LEVEL = 0
    ADDON = 1


class CommandType(enum.IntEnum):
    RESTART = 0


@dataclass
class AnyValue:
    """A value of any attribute type: scalar, bytes, list of values or key/value list."""

    value: Union[str, bool, int, float, bytes, List["AnyValue"], List["KeyValue"], None] = None


@dataclass
class KeyValue:
    key: str = ""
    value: Optional[AnyValue] = None


@dataclass
class AgentDescription:
    identifying_attributes: Optional[List[KeyValue]] = None
    non_identifying_attributes: Optional[List[KeyValue]] = None


@dataclass
class ComponentHealth:
    healthy: bool = False
    start_time_unix_nano: int = 0
    last_error: str = ""
    status: str = ""
    status_time_unix_nano: int = 0
    component_health_map: dict[str, "ComponentHealth"] = field(default_factory=dict)


@dataclass
class RemoteConfigStatus:
    last_remote_config_hash: Optional[bytes] = None
    status: RemoteConfigStatuses = RemoteConfigStatuses.UNSET
    error_message: str = ""


@dataclass
class PackageStatus:
    name: str = ""
    agent_has_version: str = ""
    agent_has_hash: bytes = b""
    server_offered_version: str = ""
    server_offered_hash: bytes = b""
    status: PackageStatusEnum = PackageStatusEnum.INSTALLED
    error_message: str = ""


@dataclass
class PackageStatuses:
    packages: Optional[dict[str, PackageStatus]] = None
    server_provided_all_packages_hash: Optional[bytes] = None
    error_message: str = ""


@dataclass
class CustomCapabilities:
    capabilities: list[str] = field(default_factory=list)


@dataclass
class CustomMessage:
    capability: str = ""
    type: str = ""
    data: bytes = b""


@dataclass
class ComponentDetails:
    metadata: list[KeyValue] = field(default_factory=list)
    sub_component_map: dict[str, "ComponentDetails"] = field(default_factory=dict)


@dataclass
class AvailableComponents:
    components: Optional[dict[str, ComponentDetails]] = None
    hash: bytes = b""


@dataclass
class AgentConfigFile:
    body: bytes = b""
    content_type: str = ""


@dataclass
class AgentConfigMap:
    config_map: dict[str, AgentConfigFile] = field(default_factory=dict)


@dataclass
class EffectiveConfig:
    config_map: Optional[AgentConfigMap] = None


@dataclass
class ConnectionSettingsRequest:
    """Client-initiated request for connection settings; ``csr`` is a certificate signing request."""

    csr: bytes = b""


@dataclass
class AgentToServer:
    instance_uid: bytes = b""
    sequence_num: int = 0
    agent_description: Optional[AgentDescription] = None
    capabilities: int = 0
    health: Optional[ComponentHealth] = None
    effective_config: Optional[EffectiveConfig] = None
    remote_config_status: Optional[RemoteConfigStatus] = None
    package_statuses: Optional[PackageStatuses] = None
    flags: int = 0
    connection_settings_request: Optional[ConnectionSettingsRequest] = None
    custom_capabilities: Optional[CustomCapabilities] = None
    custom_message: Optional[CustomMessage] = None
    available_components: Optional[AvailableComponents] = None

    def is_empty(self) -> bool:
        """True if no field differs from its default."""
        return self == AgentToServer()


@dataclass
class AgentRemoteConfig:
    config: Optional[AgentConfigMap] = None
    config_hash: bytes = b""


@dataclass
class Header:
    key: str = ""
    value: str = ""


@dataclass
class Headers:
    headers: list[Header] = field(default_factory=list)


@dataclass
class TelemetryConnectionSettings:
    destination_endpoint: str = ""
    headers: Optional[Headers] = None


@dataclass
class OtherConnectionSettings:
    destination_endpoint: str = ""
    headers: Optional[Headers] = None
    other_settings: dict[str, str] = field(default_factory=dict)


@dataclass
class OpAMPConnectionSettings:
    destination_endpoint: str = ""
    headers: Optional[Headers] = None
    heartbeat_interval_seconds: int = 0


@dataclass
class ConnectionSettingsOffers:
    hash: bytes = b""
    opamp: Optional[OpAMPConnectionSettings] = None
    own_metrics: Optional[TelemetryConnectionSettings] = None
    own_traces: Optional[TelemetryConnectionSettings] = None
    own_logs: Optional[TelemetryConnectionSettings] = None
    other_connections: Optional[dict[str, OtherConnectionSettings]] = None


@dataclass
class DownloadableFile:
    download_url: str = ""
    content_hash: bytes = b""
    signature: bytes = b""
    headers: Optional[Headers] = None


@dataclass
class PackageAvailable:
    type: PackageType = PackageType.TOP_LEVEL
    version: str = ""
    file: Optional[DownloadableFile] = None
    hash: bytes = b""


@dataclass
class PackagesAvailable:
    packages: dict[str, PackageAvailable] = field(default_factory=dict)
    all_packages_hash: bytes = b""


@dataclass
class AgentIdentification:
    new_instance_uid: bytes = b""


@dataclass
class ServerToAgentCommand:
    type: int = CommandType.RESTART


@dataclass
class ServerErrorResponse:
    type: int = 0
    error_message: str = ""
    retry_after_nanoseconds: Optional[int] = None


@dataclass
class ServerToAgent:
    instance_uid: bytes = b""
    error_response: Optional[ServerErrorResponse] = None
    remote_config: Optional[AgentRemoteConfig] = None
    connection_settings: Optional[ConnectionSettingsOffers] = None
    packages_available: Optional[PackagesAvailable] = None
    flags: int = 0
    capabilities: int = 0
    agent_identification: Optional[AgentIdentification] = None
    command: Optional[ServerToAgentCommand] = None
    custom_capabilities: Optional[CustomCapabilities] = None
    custom_message: Optional[CustomMessage] = None


_M = TypeVar("_M")


def clone(message: _M) -> _M:
    """Return a deep, independent copy of a message."""
    return copy.deepcopy(message)