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

"""Public API return types for rhiexec.

All dataclasses are frozen (immutable) to prevent accidental mutation of
return values.

Example:
    Using result types:
        ```python
        from pathlib import Path
        from rhiexec.core import inspect_package
        from rhiexec.results import InspectionResult

        result: InspectionResult = inspect_package(Path("Marmoset.rhp.yaml"))
        print(result.install_state)  # Attribute access, not dict access
        ```

Note:
    Only public API return types belong in this module. Domain types
    (like InstallStateResult) remain co-located with their related logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from rhiexec.compatibility import HostSearchState
from rhiexec.facts import HostDescriptor, PackageCompatibilityFacts, TargetPlatform
from rhiexec.install_state import InstallRoot, InstallState
from rhiexec.versioning.keys import Version


@dataclass(frozen=True)
class InspectionResult:
    """Result from inspecting one package.

    Attributes:
        package: Facts loaded from the package manifest.
        manifest_path: Manifest the facts were loaded from.
        install_state: Relationship between the package and what is installed.
        install_root: Root that produced install_state, or None if nothing
            is installed.
        installed_version: Newest installed version at that root, or None.
        host_search: UNKNOWN when no hosts were checked, otherwise FOUND or
            NOT_FOUND.
        compatible_hosts: Hosts that can load the package, in input order.
        hosts_checked: Number of hosts checked.
        target_platforms: Host builds the package targets.
        state_written: True if the install state was saved to the manifest.
        status: Always "success" for a completed inspection.
    """

    package: PackageCompatibilityFacts
    manifest_path: Path
    install_state: InstallState
    install_root: InstallRoot | None
    installed_version: Version | None
    host_search: HostSearchState
    compatible_hosts: list[HostDescriptor]
    hosts_checked: int
    target_platforms: frozenset[TargetPlatform]
    state_written: bool
    status: str
