# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Install-state resolution for packages.

This module answers "is this package already installed, and is the
installed copy older, the same, or newer than the candidate?" across the
per-machine and per-user install roots.

Resolution Order:
    1. The AllUsers family folder is always checked first, whatever root the
       package prefers.
    2. If anything is installed there (older, same or newer), that state is
       returned and the per-user root is never consulted.
    3. Otherwise the package's preferred per-user root (local or roaming
       profile) is checked and its state is returned, which may itself be
       NOT_INSTALLED.

The family folder for each root comes from a caller-supplied resolver
(``InstallRoot -> Path``). The engine neither knows nor cares how those
paths are built; see rhiexec.layout for the config-driven default.

Example:
    ```python
    from rhiexec.install_state import InstallRoot, resolve_install_state
    from rhiexec.layout import InstallLayout
    from rhiexec.versioning import Version

    layout = InstallLayout.from_config(cfg)
    result = resolve_install_state(
        Version.parse("2.0.0.0"),
        InstallRoot.CURRENT_USER_ROAMING_PROFILE,
        layout.resolver_for("abc", "Marmoset"),
    )
    print(result.state, result.root)
    ```

Note:
    The InstallState names end in "AllUsers" for historical reasons. The
    root that actually produced a state is carried separately in
    InstallStateResult.root.

"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, IntEnum
from pathlib import Path

from rhiexec.logging import Logger, emit
from rhiexec.versioning.keys import Version
from rhiexec.versioning.scanner import newest_version


class InstallRoot(Enum):
    """Where a package can be installed."""

    ALL_USERS = "AllUsers"
    CURRENT_USER_LOCAL_PROFILE = "CurrentUserLocalProfile"
    CURRENT_USER_ROAMING_PROFILE = "CurrentUserRoamingProfile"

    @property
    def is_per_user(self) -> bool:
        return self is not InstallRoot.ALL_USERS

    @classmethod
    def from_label(cls, label: str) -> InstallRoot:
        """Look up a root by its label, ignoring case.

        Raises:
            ValueError: If label names no install root.

        """
        for root in cls:
            if root.value.lower() == label.strip().lower():
                return root
        raise ValueError(f"unknown install root: {label!r}")

    def __str__(self) -> str:
        return self.value


class InstallState(IntEnum):
    """Relationship between the candidate and the installed package.

    Members are ordered by "more installed" precedence. Anything above
    NOT_INSTALLED means some version is present.
    """

    UNKNOWN = 0
    NOT_INSTALLED = 1
    NEWER_VERSION_INSTALLED_ALL_USERS = 2
    SAME_VERSION_INSTALLED_ALL_USERS = 3
    OLDER_VERSION_INSTALLED_ALL_USERS = 4

    @property
    def label(self) -> str:
        return _STATE_LABELS[self]

    @classmethod
    def from_label(cls, label: str | None) -> InstallState:
        """Parse a persisted label, falling back to UNKNOWN."""
        if not label:
            return cls.UNKNOWN
        for state, text in _STATE_LABELS.items():
            if text.lower() == label.strip().lower():
                return state
        return cls.UNKNOWN

    def __str__(self) -> str:
        return self.label

    def __format__(self, format_spec: str) -> str:
        # IntEnum would otherwise format as the bare number
        return format(self.label, format_spec)


_STATE_LABELS: dict[InstallState, str] = {
    InstallState.UNKNOWN: "Unknown",
    InstallState.NOT_INSTALLED: "NotInstalled",
    InstallState.NEWER_VERSION_INSTALLED_ALL_USERS: "NewerVersionInstalledAllUsers",
    InstallState.SAME_VERSION_INSTALLED_ALL_USERS: "SameVersionInstalledAllUsers",
    InstallState.OLDER_VERSION_INSTALLED_ALL_USERS: "OlderVersionInstalledAllUsers",
}

FamilyFolderResolver = Callable[[InstallRoot], Path]


@dataclass(frozen=True)
class InstallStateResult:
    """Outcome of an install-state query.

    Attributes:
        state: Relationship between candidate and installed version.
        root: Install root whose folder produced the state, or None when
            nothing is installed anywhere.
        installed_version: Newest version found at that root, or None.
        folder: Family folder that was scanned last.

    """

    state: InstallState
    root: InstallRoot | None = None
    installed_version: Version | None = None
    folder: Path | None = None

    @property
    def is_installed(self) -> bool:
        return self.state > InstallState.NOT_INSTALLED


def compare_versions(
    candidate: Version,
    installed: Version | None,
    logger: Logger | None = None,
) -> InstallState:
    """Classify the installed version relative to the candidate.

    Args:
        candidate: Version of the package about to be installed.
        installed: Newest installed version, or None if nothing is installed.
        logger: Optional logger; the global logger is used when omitted.

    Returns:
        NOT_INSTALLED when installed is None, otherwise OLDER, SAME or NEWER
            ..._VERSION_INSTALLED_ALL_USERS.

    """
    if installed is None:
        emit(logger, "debug", "STATE", "Not installed.")
        return InstallState.NOT_INSTALLED

    if installed < candidate:
        emit(logger, "debug", "STATE", f"Older version installed ({installed}).")
        return InstallState.OLDER_VERSION_INSTALLED_ALL_USERS
    if installed == candidate:
        emit(logger, "debug", "STATE", f"Same version installed ({installed}).")
        return InstallState.SAME_VERSION_INSTALLED_ALL_USERS

    emit(logger, "debug", "STATE", f"Newer version installed ({installed}).")
    return InstallState.NEWER_VERSION_INSTALLED_ALL_USERS


def _check_root(
    candidate: Version,
    root: InstallRoot,
    family_folder_for: FamilyFolderResolver,
    logger: Logger | None,
) -> InstallStateResult:
    folder = family_folder_for(root)
    emit(logger, "verbose", "STATE", f"Checking install state for {root}: {folder}")
    installed = newest_version(folder, logger=logger)
    state = compare_versions(candidate, installed, logger=logger)
    if state == InstallState.NOT_INSTALLED:
        return InstallStateResult(state=state, folder=folder)
    return InstallStateResult(
        state=state, root=root, installed_version=installed, folder=folder
    )


def resolve_install_state(
    candidate: Version,
    preferred_root: InstallRoot,
    family_folder_for: FamilyFolderResolver,
    logger: Logger | None = None,
) -> InstallStateResult:
    """Determine how the candidate relates to what is already installed.

    Args:
        candidate: Version of the package about to be installed.
        preferred_root: Root the package installs to by default. Only its
            per-user value matters; AllUsers is always checked first.
        family_folder_for: Maps an install root to the folder holding the
            package's version subfolders for that root.
        logger: Optional logger; the global logger is used when omitted.

    Returns:
        InstallStateResult with the state and the root that produced it.

    Raises:
        InspectionError: If an existing family folder cannot be listed.

    Note:
        family_folder_for is called at most once per root, and never for the
        per-user root when the AllUsers root already has the package.

    """
    emit(logger, "verbose", "STATE", f"Getting install state for version {candidate}")

    result = _check_root(candidate, InstallRoot.ALL_USERS, family_folder_for, logger)
    if result.is_installed:
        emit(logger, "verbose", "STATE", f"Install state: {result.state} ({result.root})")
        return result

    if not preferred_root.is_per_user:
        # Nothing else to look at for packages that only install per-machine
        return result

    result = _check_root(candidate, preferred_root, family_folder_for, logger)
    emit(logger, "verbose", "STATE", f"Install state: {result.state}")
    return result
