"""Public types used to configure and drive the OpAMP client."""

from __future__ import annotations

import abc
import logging
import ssl
import threading
import uuid
from dataclasses import dataclass, field, fields
from typing import Any, BinaryIO, Callable, Optional, Union

from .errors import InvalidInstanceUidError
from .messages import (
    AgentCapabilities,
    AgentIdentification,
    AgentRemoteConfig,
    CustomCapabilities,
    CustomMessage,
    EffectiveConfig,
    OpAMPConnectionSettings,
    OtherConnectionSettings,
    PackageStatuses,
    PackagesAvailable,
    PackageType,
    RemoteConfigStatus,
    ServerErrorResponse,
    ServerToAgentCommand,
    TelemetryConnectionSettings,
)

__all__ = [
    "Logger",
    "NopLogger",
    "MessageData",
    "Callbacks",
    "PackageState",
    "PackagesStateProvider",
    "PackagesSyncer",
    "StartSettings",
    "validate_instance_uid",
]

INSTANCE_UID_LENGTH = 16


class Logger:
    """Logger used by the client; writes to a standard library logger."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger if logger is not None else logging.getLogger("opampclient")

    def debug(self, message: str) -> None:
        self._logger.debug(message)

    def error(self, message: str) -> None:
        self._logger.error(message)


class NopLogger(Logger):
    """Logger that discards everything."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        discard = logging.getLogger("opampclient.nop")
        discard.disabled = True
        discard.propagate = False
        super().__init__(discard)

    def debug(self, message: str) -> None:
        self._logger.disabled = True

    def error(self, message: str) -> None:
        self._logger.disabled = True


class PackagesSyncer(abc.ABC):
    """Syncs packages offered by the server into local storage."""

    @abc.abstractmethod
    def sync(self) -> None:
        """Start syncing; usually returns at once and continues in the background."""

    @abc.abstractmethod
    def done(self) -> threading.Event:
        """Event that is set once syncing has finished."""


@dataclass
class MessageData:
    """Data from a server message that the agent needs to process."""

    remote_config: Optional[AgentRemoteConfig] = None
    own_metrics_conn_settings: Optional[TelemetryConnectionSettings] = None
    own_traces_conn_settings: Optional[TelemetryConnectionSettings] = None
    own_logs_conn_settings: Optional[TelemetryConnectionSettings] = None
    other_conn_settings: Optional[dict[str, OtherConnectionSettings]] = None
    packages_available: Optional[PackagesAvailable] = None
    package_syncer: Optional[PackagesSyncer] = None
    agent_identification: Optional[AgentIdentification] = None
    custom_capabilities: Optional[CustomCapabilities] = None
    custom_message: Optional[CustomMessage] = None


class _Constant:
    """Callable that ignores its arguments and returns a fixed value."""

    __slots__ = ("value",)

    def __init__(self, value: Any = None) -> None:
        self.value = value

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self.value

    def __repr__(self) -> str:
        return f"_Constant({self.value!r})"


_DEFAULTED_CALLBACKS = frozenset(
    {
        "on_connect",
        "on_connect_failed",
        "on_error",
        "on_message",
        "on_opamp_connection_settings",
        "on_command",
        "get_effective_config",
        "save_remote_config_status",
    }
)


@dataclass
class Callbacks:
    """Functions the client calls on events.

    Any callback left as None is replaced by one that does nothing and returns
    None, so ``get_effective_config`` then returns None.
    ``on_opamp_connection_settings`` rejects an offer by raising.
    ``check_redirect`` stays None unless given.
    """

    on_connect: Optional[Callable[[], None]] = None
    on_connect_failed: Optional[Callable[[BaseException], None]] = None
    on_error: Optional[Callable[[ServerErrorResponse], None]] = None
    on_message: Optional[Callable[[MessageData], None]] = None
    on_opamp_connection_settings: Optional[Callable[[OpAMPConnectionSettings], None]] = None
    save_remote_config_status: Optional[Callable[[RemoteConfigStatus], None]] = None
    get_effective_config: Optional[Callable[[], Optional[EffectiveConfig]]] = None
    on_command: Optional[Callable[[ServerToAgentCommand], None]] = None
    check_redirect: Optional[Callable[..., None]] = None

    def __post_init__(self) -> None:
        for f in fields(self):
            if getattr(self, f.name) is None and f.name in _DEFAULTED_CALLBACKS:
                setattr(self, f.name, _Constant(None))


@dataclass
class PackageState:
    """State of one package in local storage; other fields are meaningless unless ``exists``."""

    exists: bool = False
    type: PackageType = PackageType.TOP_LEVEL
    hash: bytes = b""
    version: str = ""


class PackagesStateProvider(abc.ABC):
    """Access to the agent's local package storage."""

    @abc.abstractmethod
    def all_packages_hash(self) -> Optional[bytes]:
        """Hash last stored by set_all_packages_hash."""

    @abc.abstractmethod
    def set_all_packages_hash(self, hash_: Optional[bytes]) -> None:
        """Remember the hash of all packages."""

    @abc.abstractmethod
    def packages(self) -> list[str]:
        """Names of all locally stored packages."""

    @abc.abstractmethod
    def package_state(self, package_name: str) -> PackageState:
        """State of a package; ``exists`` is False if it is not stored."""

    @abc.abstractmethod
    def set_package_state(self, package_name: str, state: PackageState) -> None:
        """Remember the state of a package."""

    @abc.abstractmethod
    def create_package(self, package_name: str, package_type: PackageType) -> None:
        """Create a package locally."""

    @abc.abstractmethod
    def file_content_hash(self, package_name: str) -> Optional[bytes]:
        """Content hash of the package file, or None if absent."""

    @abc.abstractmethod
    def update_content(
        self,
        package_name: str,
        data: BinaryIO,
        content_hash: bytes,
        signature: bytes,
    ) -> None:
        """Replace the package content with everything read from ``data``."""

    @abc.abstractmethod
    def delete_package(self, package_name: str) -> None:
        """Delete a package from local storage."""

    @abc.abstractmethod
    def last_reported_statuses(self) -> Optional[PackageStatuses]:
        """Statuses last stored by set_last_reported_statuses."""

    @abc.abstractmethod
    def set_last_reported_statuses(self, statuses: PackageStatuses) -> None:
        """Save the most recently reported statuses."""


@dataclass
class StartSettings:
    """Parameters for starting the client.

    ``heartbeat_interval`` is in seconds; None keeps the default.
    """

    opamp_server_url: str = ""
    header: Optional[dict[str, str]] = None
    header_func: Optional[Callable[[dict[str, str]], dict[str, str]]] = None
    tls_context: Optional[ssl.SSLContext] = None
    instance_uid: bytes = bytes(INSTANCE_UID_LENGTH)
    callbacks: Callbacks = field(default_factory=Callbacks)
    remote_config_status: Optional[RemoteConfigStatus] = None
    last_connection_settings_hash: Optional[bytes] = None
    packages_state_provider: Optional[PackagesStateProvider] = None
    capabilities: AgentCapabilities = AgentCapabilities.UNSPECIFIED
    enable_compression: bool = False
    heartbeat_interval: Optional[float] = None


def validate_instance_uid(instance_uid: Union[bytes, bytearray, uuid.UUID]) -> bytes:
    """Return the instance UID as 16 bytes, raising InvalidInstanceUidError otherwise."""
    if isinstance(instance_uid, uuid.UUID):
        return instance_uid.bytes
    if not isinstance(instance_uid, (bytes, bytearray)):
        raise InvalidInstanceUidError(
            f"instance uid must be bytes, not {type(instance_uid).__name__}"
        )
    if len(instance_uid) != INSTANCE_UID_LENGTH:
        raise InvalidInstanceUidError(
            f"instance uid must be {INSTANCE_UID_LENGTH} bytes "
            f"but is {len(instance_uid)} bytes long"
        )
    return bytes(instance_uid)