"""Exceptions raised by the OpAMP client."""

from __future__ import annotations

import threading
from typing import Optional

__all__ = [
    "OpAMPClientError",
    "AgentDescriptionMissingError",
    "AgentDescriptionNoAttributesError",
    "HealthMissingError",
    "ReportsEffectiveConfigNotSetError",
    "ReportsRemoteConfigNotSetError",
    "PackagesStateProviderNotSetError",
    "AcceptsPackagesNotSetError",
    "AvailableComponentsMissingError",
    "AlreadyStartedError",
    "NotStartedError",
    "ReportsPackageStatusesNotSetError",
    "RemoteConfigStatusMissingError",
    "LastRemoteConfigHashMissingError",
    "PackageStatusesMissingError",
    "ServerProvidedAllPackagesHashMissingError",
    "CustomCapabilitiesMissingError",
    "CustomMessageMissingError",
    "CustomCapabilityNotSupportedError",
    "CustomMessagePendingError",
    "ReportsAvailableComponentsNotSetError",
    "NoAvailableComponentHashError",
    "InvalidInstanceUidError",
    "InvalidHeartbeatIntervalError",
]


class OpAMPClientError(Exception):
    """Base class of all client errors."""

    default_message = "OpAMP client error"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message if message is not None else self.default_message)


class AgentDescriptionMissingError(OpAMPClientError, ValueError):
    default_message = "AgentDescription is nil"


class AgentDescriptionNoAttributesError(OpAMPClientError, ValueError):
    default_message = "AgentDescription has no attributes defined"


class HealthMissingError(OpAMPClientError, ValueError):
    default_message = "health is nil"


class ReportsEffectiveConfigNotSetError(OpAMPClientError):
    default_message = "ReportsEffectiveConfig capability is not set"


class ReportsRemoteConfigNotSetError(OpAMPClientError):
    default_message = "ReportsRemoteConfig capability is not set"


class PackagesStateProviderNotSetError(OpAMPClientError):
    default_message = "PackagesStateProvider must be set"


class AcceptsPackagesNotSetError(OpAMPClientError):
    default_message = "AcceptsPackages and ReportsPackageStatuses must be set"


class AvailableComponentsMissingError(OpAMPClientError, ValueError):
    default_message = "AvailableComponents is nil"


class AlreadyStartedError(OpAMPClientError):
    default_message = "already started"


class NotStartedError(OpAMPClientError):
    default_message = "cannot stop because not started"


class ReportsPackageStatusesNotSetError(OpAMPClientError):
    default_message = "ReportsPackageStatuses capability is not set"


class RemoteConfigStatusMissingError(OpAMPClientError, ValueError):
    default_message = "RemoteConfigStatus is not set"


class LastRemoteConfigHashMissingError(OpAMPClientError, ValueError):
    default_message = "LastRemoteConfigHash is nil"


class PackageStatusesMissingError(OpAMPClientError, ValueError):
    default_message = "PackageStatuses is not set"


class ServerProvidedAllPackagesHashMissingError(OpAMPClientError, ValueError):
    default_message = "ServerProvidedAllPackagesHash is nil"


class CustomCapabilitiesMissingError(OpAMPClientError, ValueError):
    default_message = "CustomCapabilities is not set"


class CustomMessageMissingError(OpAMPClientError, ValueError):
    default_message = "CustomMessage is nil"


class CustomCapabilityNotSupportedError(OpAMPClientError):
    default_message = "CustomCapability of CustomMessage is not supported"


class CustomMessagePendingError(OpAMPClientError):
    """A custom message is already queued; ``sent`` is set once it has gone out."""

    default_message = "custom message already set"

    def __init__(self, sent: threading.Event) -> None:
        super().__init__()
        self.sent = sent


class ReportsAvailableComponentsNotSetError(OpAMPClientError):
    default_message = "ReportsAvailableComponents capability is not set"


class NoAvailableComponentHashError(OpAMPClientError, ValueError):
    default_message = "AvailableComponents.Hash is empty"


class InvalidInstanceUidError(OpAMPClientError, ValueError):
    default_message = "cannot set instance uid to empty value"


class InvalidHeartbeatIntervalError(OpAMPClientError, ValueError):
    default_message = "invalid heartbeat interval"