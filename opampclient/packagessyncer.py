"""Syncing of packages offered by the server into local storage."""

from __future__ import annotations

import threading
import urllib.error
import urllib.request
from typing import Optional

from .errors import OpAMPClientError, PackagesStateProviderNotSetError
from .messages import (
    AgentToServer,
    DownloadableFile,
    PackageAvailable,
    PackageStatus,
    PackageStatusEnum,
    PackageStatuses,
    PackagesAvailable,
)
from .sender import Sender
from .state import ClientSyncedState
from .types import Logger, PackagesStateProvider, PackagesSyncer

__all__ = ["PackageSyncProcess"]


def _same_hash(a: Optional[bytes], b: Optional[bytes]) -> bool:
    return (a or b"") == (b or b"")


class PackageSyncProcess(PackagesSyncer):
    """Syncs one offer of available packages.

    ``lock`` is shared by all sync processes of a client so that only one runs
    at a time. ``sync`` takes it and the background work releases it when done.
    """

    def __init__(
        self,
        logger: Logger,
        available: PackagesAvailable,
        sender: Sender,
        client_synced_state: ClientSyncedState,
        packages_state_provider: Optional[PackagesStateProvider],
        lock: threading.Lock,
    ) -> None:
        self._logger = logger
        self._available = available
        self._sender = sender
        self._client_synced_state = client_synced_state
        self._local_state = packages_state_provider
        self._lock = lock
        self._statuses: Optional[PackageStatuses] = None
        self._done = threading.Event()

    def sync(self) -> None:
        """Prepare statuses and continue syncing in a background thread."""
        try:
            self._lock.acquire()
            try:
                self._init_statuses()
                self._client_synced_state.set_package_statuses(self._statuses)
                threading.Thread(
                    target=self._do_sync, name="opamp-package-sync", daemon=True
                ).start()
            except BaseException:
                self._lock.release()
                raise
        finally:
            self._done.set()

    def done(self) -> threading.Event:
        """Event set once ``sync`` has returned."""
        return self._done

    def _init_statuses(self) -> None:
        if self._local_state is None:
            raise PackagesStateProviderNotSetError(
                "cannot sync packages because PackagesStateProvider is not provided"
            )
        statuses = self._local_state.last_reported_statuses()
        if statuses is None:
            statuses = PackageStatuses()
        if statuses.packages is None:
            statuses.packages = {}
        statuses.server_provided_all_packages_hash = self._available.all_packages_hash
        self._statuses = statuses

    def _do_sync(self) -> None:
        try:
            self._run_sync()
        finally:
            self._lock.release()

    def _run_sync(self) -> None:
        assert self._local_state is not None
        try:
            current_hash = self._local_state.all_packages_hash()
        except Exception as exc:
            self._logger.error(f"Package syncing failed: {exc}")
            return
        if _same_hash(current_hash, self._available.all_packages_hash):
            self._logger.debug("All packages are already up to date.")
            return

        failed = False
        try:
            self._delete_unneeded_local_packages()
        except Exception as exc:
            self._logger.error(f"Cannot delete unneeded packages: {exc}")
            failed = True

        for name, package in self._available.packages.items():
            try:
                self._sync_package(name, package)
            except Exception as exc:
                self._logger.error(f"Cannot sync package {name}: {exc}")
                failed = True

        if failed:
            self._logger.error("Package syncing was not successful.")
        else:
            try:
                self._local_state.set_all_packages_hash(self._available.all_packages_hash)
            except Exception as exc:
                self._logger.error(f"SetAllPackagesHash failed: {exc}")
            else:
                self._logger.debug("All packages are synced and up to date.")

        self._report_statuses(send_immediately=True)

    def _sync_package(self, name: str, available: PackageAvailable) -> None:
        assert self._statuses is not None and self._statuses.packages is not None
        assert self._local_state is not None
        status = self._statuses.packages.get(name)
        if status is None:
            status = PackageStatus(name=name)
            self._statuses.packages[name] = status
        status.server_offered_version = available.version
        status.server_offered_hash = available.hash

        local = self._local_state.package_state(name)
        must_create = not local.exists
        if local.exists:
            if _same_hash(local.hash, available.hash):
                self._logger.debug(f"Package {name} hash is unchanged, skipping")
                return
            if local.type != available.type:
                try:
                    self._local_state.delete_package(name)
                except Exception as exc:
                    message = f"cannot delete existing version of package {name}: {exc}"
                    status.status = PackageStatusEnum.INSTALL_FAILED
                    status.error_message = message
                    raise OpAMPClientError(message) from exc
                must_create = True

        status.status = PackageStatusEnum.INSTALLING
        self._report_statuses(send_immediately=True)

        if must_create:
            try:
                self._local_state.create_package(name, available.type)
            except Exception as exc:
                message = f"cannot create package {name}: {exc}"
                status.status = PackageStatusEnum.INSTALL_FAILED
                status.error_message = message
                raise OpAMPClientError(message) from exc

        try:
            self._sync_package_file(name, available.file)
        except Exception as exc:
            status.status = PackageStatusEnum.INSTALL_FAILED
            status.error_message = str(exc)
            self._report_statuses(send_immediately=True)
            raise

        local.hash = available.hash
        local.version = available.version
        try:
            self._local_state.set_package_state(name, local)
        except Exception as exc:
            self._logger.error(f"Cannot save state of package {name}: {exc}")
        else:
            status.status = PackageStatusEnum.INSTALLED
            status.agent_has_hash = available.hash
            status.agent_has_version = available.version
        self._report_statuses(send_immediately=True)

    def _sync_package_file(self, name: str, file: Optional[DownloadableFile]) -> None:
        if file is None:
            raise OpAMPClientError(f"package {name} offers no file")
        if self._should_download_file(name, file):
            self._download_file(name, file)

    def _should_download_file(self, name: str, file: DownloadableFile) -> bool:
        assert self._local_state is not None
        try:
            local_hash = self._local_state.file_content_hash(name)
        except Exception as exc:
            self._logger.error(f"cannot calculate checksum of {name}: {exc}")
            return True
        if not _same_hash(local_hash, file.content_hash):
            self._logger.debug(f"Package {name}: file hash mismatch, will download.")
            return True
        return False

    def _download_file(self, name: str, file: DownloadableFile) -> None:
        assert self._local_state is not None
        url = file.download_url
        self._logger.debug(f"Downloading package {name} file from {url}")
        try:
            request = urllib.request.Request(url, method="GET")
        except ValueError as exc:
            raise OpAMPClientError(f"cannot download file from {url}: {exc}") from exc
        if file.headers is not None:
            for header in file.headers.headers:
                request.add_header(header.key, header.value)

        try:
            response = urllib.request.urlopen(request)
        except urllib.error.HTTPError as exc:
            code = exc.code
            exc.close()
            raise OpAMPClientError(
                f"cannot download file from {url}, HTTP response={code}"
            ) from exc
        except (urllib.error.URLError, OSError, ValueError) as exc:
            raise OpAMPClientError(f"cannot download file from {url}: {exc}") from exc

        with response:
            if response.status != 200:
                raise OpAMPClientError(
                    f"cannot download file from {url}, HTTP response={response.status}"
                )
            try:
                self._local_state.update_content(
                    name, response, file.content_hash, file.signature
                )
            except Exception as exc:
                raise OpAMPClientError(
                    f"failed to install/update the package {name} downloaded from {url}: {exc}"
                ) from exc

    def _delete_unneeded_local_packages(self) -> None:
        assert self._local_state is not None and self._statuses is not None
        offered = self._available.packages
        last_error: Optional[Exception] = None
        for local_name in self._local_state.packages():
            if local_name not in offered:
                self._logger.debug(f"Package {local_name} is no longer needed, deleting.")
                try:
                    self._local_state.delete_package(local_name)
                except Exception as exc:
                    last_error = exc

        packages = self._statuses.packages or {}
        for name in [name for name in packages if name not in offered]:
            del packages[name]

        if last_error is not None:
            raise last_error

    def _report_statuses(self, send_immediately: bool) -> None:
        assert self._local_state is not None and self._statuses is not None
        try:
            self._local_state.set_last_reported_statuses(self._statuses)
        except Exception as exc:
            self._logger.error(f"Cannot save last reported statuses: {exc}")
            return
        try:
            self._client_synced_state.set_package_statuses(self._statuses)
        except Exception as exc:
            self._logger.error(f"Cannot save client state: {exc}")
            return

        def apply(msg: AgentToServer) -> None:
            msg.package_statuses = self._client_synced_state.package_statuses

        self._sender.next_message.update(apply)
        if send_immediately:
            self._sender.schedule_send()