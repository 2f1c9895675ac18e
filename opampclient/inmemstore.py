"""A package store that keeps everything in memory."""

from __future__ import annotations

import dataclasses
from typing import BinaryIO, Callable, Optional

from .messages import PackageStatuses, PackageType
from .types import PackageState, PackagesStateProvider

__all__ = ["InMemPackagesStore"]


class InMemPackagesStore(PackagesStateProvider):
    """Package storage held in memory, mainly for tests.

    ``on_all_packages_hash``, if set, is called each time the all-packages
    hash is read.
    """

    def __init__(self) -> None:
        self._all_packages_hash: Optional[bytes] = None
        self._package_states: dict[str, PackageState] = {}
        self.file_contents: dict[str, bytes] = {}
        self.file_signatures: dict[str, bytes] = {}
        self._file_hashes: dict[str, bytes] = {}
        self._last_reported_statuses: Optional[PackageStatuses] = None
        self.on_all_packages_hash: Optional[Callable[[], None]] = None

    def all_packages_hash(self) -> Optional[bytes]:
        if self.on_all_packages_hash is not None:
            self.on_all_packages_hash()
        return self._all_packages_hash

    def set_all_packages_hash(self, hash_: Optional[bytes]) -> None:
        self._all_packages_hash = hash_

    def packages(self) -> list[str]:
        return list(self._package_states)

    def package_state(self, package_name: str) -> PackageState:
        state = self._package_states.get(package_name)
        if state is None:
            return PackageState(exists=False)
        return dataclasses.replace(state)

    def set_package_state(self, package_name: str, state: PackageState) -> None:
        self._package_states[package_name] = dataclasses.replace(state)

    def create_package(self, package_name: str, package_type: PackageType) -> None:
        self._package_states[package_name] = PackageState(exists=True, type=package_type)

    def file_content_hash(self, package_name: str) -> Optional[bytes]:
        return self._file_hashes.get(package_name)

    def update_content(
        self,
        package_name: str,
        data: BinaryIO,
        content_hash: bytes,
        signature: bytes,
    ) -> None:
        content = data.read()
        self.file_contents[package_name] = content
        self.file_signatures[package_name] = signature
        self._file_hashes[package_name] = content_hash

    def delete_package(self, package_name: str) -> None:
        self._package_states.pop(package_name, None)

    def last_reported_statuses(self) -> Optional[PackageStatuses]:
        return self._last_reported_statuses

    def set_last_reported_statuses(self, statuses: PackageStatuses) -> None:
        self._last_reported_statuses = statuses