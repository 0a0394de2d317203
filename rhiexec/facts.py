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

"""Package and host facts consumed by the compatibility resolver.

The engine never opens a plug-in binary. An introspection step (or a
cached manifest, see rhiexec.manifest) extracts a flat set of facts about
the package, and a host enumerator does the same for every host
installation on the machine. Both are frozen dataclasses here.

SDK Facets:
    - Native SDK: ``sdk_version`` and ``sdk_service_release`` markers,
      numeric strings whose trailing digit encodes the SDK generation
      ("0" = generation A, "5" = generation B).
    - Managed-runtime binding: ``managed_binding_version``, a dotted
      version string whose last component is >= 100 for generation B.
    - Common binding: ``common_binding_version``, a dotted version string.

Example:
    ```python
    from rhiexec.facts import BinaryClass, PackageCompatibilityFacts
    from rhiexec.versioning import Version

    facts = PackageCompatibilityFacts(
        package_id="0b1c5a5e-2f8c-4a4e-9e66-8f3b1c0d2a11",
        title="Marmoset",
        version=Version.parse("2.0.0.0"),
        common_binding_version="5.1.30000.16",
        binary_class=BinaryClass.MANAGED_ANY_CPU,
    )
    facts.target_platforms  # {GEN_B_WIN32, GEN_B_WIN64}
    ```

"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

from rhiexec.install_state import InstallRoot, InstallState
from rhiexec.versioning.keys import Version

PackageKind = Literal["native", "managed_binding", "common_binding"]
OSPlatform = Literal["x86", "x64", "any", "unknown"]


class Generation(Enum):
    """Coarse SDK generation inferred from a marker's trailing digit."""

    A = "0"
    B = "5"


def generation_of(marker: str) -> Generation | None:
    """Classify a native SDK marker by its trailing digit.

    Returns None for empty markers and for any trailing character other
    than "0" or "5".
    """
    marker = marker.strip()
    if marker.endswith(Generation.A.value):
        return Generation.A
    if marker.endswith(Generation.B.value):
        return Generation.B
    return None


class BinaryClass(Enum):
    """How the package binary was built, as reported by introspection."""

    UNKNOWN = "unknown"
    NATIVE_32 = "native32"
    NATIVE_64 = "native64"
    MANAGED_ANY_CPU = "managed"
    MANAGED_32 = "managed32"
    MANAGED_64 = "managed64"

    @property
    def is_managed(self) -> bool:
        return self in (
            BinaryClass.MANAGED_ANY_CPU,
            BinaryClass.MANAGED_32,
            BinaryClass.MANAGED_64,
        )

    @property
    def os_platform(self) -> OSPlatform:
        if self in (BinaryClass.NATIVE_32, BinaryClass.MANAGED_32):
            return "x86"
        if self in (BinaryClass.NATIVE_64, BinaryClass.MANAGED_64):
            return "x64"
        if self is BinaryClass.MANAGED_ANY_CPU:
            return "any"
        return "unknown"


class HostSearchState(Enum):
    """Whether a compatible host was found on the machine."""

    UNKNOWN = "Unknown"
    FOUND = "Found"
    NOT_FOUND = "NotFound"


def is_declared(marker: str) -> bool:
    """Return True if a package or host marker holds anything but whitespace."""
    return bool(marker and marker.strip())


class TargetPlatform(Enum):
    """Host builds a package can be loaded by."""

    GEN_A_WIN32 = "gen_a-win32"
    GEN_B_WIN32 = "gen_b-win32"
    GEN_B_WIN64 = "gen_b-win64"


@dataclass(frozen=True)
class HostDescriptor:
    """Facts about one host installation found on the machine.

    Attributes:
        sdk_version: Native SDK version marker (numeric string, may be empty).
        sdk_service_release: Native SDK service release marker (may be empty).
        managed_binding_version: Managed-runtime binding version (may be empty).
        common_binding_version: Common binding version (may be empty).
        is_valid: False when the enumerator could not fully identify the host.
        name: Display name used in log messages.
        exe_path: Host executable path used in log messages.

    """

    sdk_version: str = ""
    sdk_service_release: str = ""
    managed_binding_version: str = ""
    common_binding_version: str = ""
    is_valid: bool = True
    name: str = ""
    exe_path: str = ""

    @property
    def display_name(self) -> str:
        return self.exe_path or self.name or "<unnamed host>"


@dataclass(frozen=True)
class PackageCompatibilityFacts:
    """Facts about a candidate package.

    Attributes:
        package_id: Unique package identifier (GUID string).
        title: Human-readable package title.
        version: Package version.
        sdk_version: Native SDK version marker (empty if not native).
        sdk_service_release: Native SDK service release marker.
        managed_binding_version: Managed-runtime binding the package references.
        common_binding_version: Common binding the package references.
        binary_class: Architecture class of the package binary.
        install_root: Root the package installs to by default.
        path: Location of the package binary (informational).

    """

    package_id: str
    title: str
    version: Version
    sdk_version: str = ""
    sdk_service_release: str = ""
    managed_binding_version: str = ""
    common_binding_version: str = ""
    binary_class: BinaryClass = BinaryClass.UNKNOWN
    install_root: InstallRoot = InstallRoot.CURRENT_USER_ROAMING_PROFILE
    path: str = ""

    @property
    def kinds(self) -> frozenset[PackageKind]:
        return package_kinds(self)

    @property
    def os_platform(self) -> OSPlatform:
        return self.binary_class.os_platform

    @property
    def target_platforms(self) -> frozenset[TargetPlatform]:
        """Host builds this package can target.

        Managed packages only exist for generation-B hosts and follow the
        binary's architecture (any-CPU targets both). Native generation-A
        packages are 32-bit and load in both generations; native
        generation-B packages follow their own bitness.
        """
        platforms: set[TargetPlatform] = set()

        if is_declared(self.managed_binding_version) or is_declared(self.common_binding_version):
            if self.binary_class in (BinaryClass.MANAGED_32, BinaryClass.MANAGED_ANY_CPU):
                platforms.add(TargetPlatform.GEN_B_WIN32)
            if self.binary_class in (BinaryClass.MANAGED_64, BinaryClass.MANAGED_ANY_CPU):
                platforms.add(TargetPlatform.GEN_B_WIN64)

        generation = generation_of(self.sdk_version)
        if generation is Generation.A:
            platforms.update({TargetPlatform.GEN_A_WIN32, TargetPlatform.GEN_B_WIN32})
        elif generation is Generation.B:
            if self.binary_class is BinaryClass.NATIVE_32:
                platforms.add(TargetPlatform.GEN_B_WIN32)
            elif self.binary_class is BinaryClass.NATIVE_64:
                platforms.add(TargetPlatform.GEN_B_WIN64)

        return frozenset(platforms)


def package_kinds(facts: PackageCompatibilityFacts) -> frozenset[PackageKind]:
    """Return the SDK facets a package is built against.

    A native package must carry both SDK markers; a lone SDK version without
    a service release does not make a package recognizable.
    """
    kinds: set[PackageKind] = set()
    if is_declared(facts.sdk_version) and is_declared(facts.sdk_service_release):
        kinds.add("native")
    if is_declared(facts.managed_binding_version):
        kinds.add("managed_binding")
    if is_declared(facts.common_binding_version):
        kinds.add("common_binding")
    return frozenset(kinds)


def compare_ordinal_ignore_case(a: str, b: str) -> int:
    """Compare two strings the way an ordinal, case-insensitive sort would."""
    aa, bb = a.upper(), b.upper()
    return (aa > bb) - (aa < bb)


def compare_packages(a: PackageCompatibilityFacts, b: PackageCompatibilityFacts | None) -> int:
    """Order two packages by version, then by their SDK markers.

    Each marker takes part only when at least one side declares it, and is
    compared case-insensitively as text.

    Returns:
        -1 if a < b, 0 if equal, 1 if a > b. Any package sorts after None.

    """
    if b is None:
        return 1

    result = (a.version > b.version) - (a.version < b.version)
    if result:
        return result

    for field in (
        "sdk_version",
        "sdk_service_release",
        "managed_binding_version",
        "common_binding_version",
    ):
        mine, theirs = getattr(a, field), getattr(b, field)
        if mine or theirs:
            result = compare_ordinal_ignore_case(mine, theirs)
            if result:
                return result
    return 0


def describe(
    facts: PackageCompatibilityFacts,
    install_state: InstallState | None = None,
    host_search: HostSearchState | None = None,
) -> str:
    """Render a multi-line summary of a package for debug output.

    States that have not been computed yet show as Unknown.
    """
    if install_state is None:
        install_state = InstallState.UNKNOWN
    if host_search is None:
        host_search = HostSearchState.UNKNOWN
    platforms = ", ".join(sorted(p.value for p in facts.target_platforms)) or "none"
    lines = [
        "Package:",
        facts.title,
        str(facts.version),
        facts.os_platform,
        f"InstallState: {install_state}",
        f"Compatible Host: {host_search.value}",
        f"InstallRoot: {facts.install_root}",
        f"PackagePath: {facts.path}",
        f"SDK Version: {facts.sdk_version}",
        f"SDK Service Release: {facts.sdk_service_release}",
        f"Common Binding Version: {facts.common_binding_version}",
        f"Managed Binding Version: {facts.managed_binding_version}",
        f"Target Platforms: {platforms}",
    ]
    return "\n".join(lines) + "\n"
