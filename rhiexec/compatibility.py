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

"""Package/host compatibility rules.

Decides whether a package can be loaded by one host installation. The
decision is a logical AND over independent facet rules, evaluated in a fixed
order and stopping at the first rejection:

1. Host validity: an invalid host accepts nothing.
2. Managed-runtime binding (if the package references one):
   - the last numeric component of both binding versions must parse;
   - a host whose last component is < 100 cannot load a package whose last
     component is >= 100 (newer generation);
   - the host binding string must sort at or above the package's
     (case-insensitive ordinal comparison).
3. Common binding (if the package references one): the host must have one
   and it must sort at or above the package's.
4. Native SDK version (if declared): trailing "0" is generation A, "5" is
   generation B. Generation-A hosts accept only generation-A packages;
   generation-B hosts accept both. Within one generation the host marker
   must be numerically at or above the package marker.
5. Native SDK service release (if declared): generation-A hosts accept
   trailing "0"; generation-B hosts accept "0" or "5". Unrecognized host or
   package markers reject.

A rule whose package marker is empty does not apply. A package that
declares no marker at all is therefore compatible with every valid host;
refusing such packages is the job of the calling layer (see
rhiexec.core.inspect_package).

Every rejection logs a warning naming the facet and both compared values.
Malformed markers reject the rule they belong to and never raise.

Example:
    ```python
    from rhiexec.compatibility import is_compatible
    from rhiexec.facts import HostDescriptor

    host = HostDescriptor(sdk_version="201005025", sdk_service_release="201005025")
    if is_compatible(package, host):
        print("can install")
    ```

"""

from __future__ import annotations

from collections.abc import Callable, Iterable
import re

from rhiexec.facts import (
    Generation,
    HostDescriptor,
    HostSearchState,
    PackageCompatibilityFacts,
    compare_ordinal_ignore_case,
    generation_of,
    is_declared,
)
from rhiexec.logging import Logger, emit

_LAST_COMPONENT_RE = re.compile(r"\.(\d+)\Z", re.ASCII)

# Managed-runtime binding revisions at or above this belong to generation B
_MANAGED_GENERATION_B_REVISION = 100


def _last_component(version: str) -> int | None:
    m = _LAST_COMPONENT_RE.search(version.strip())
    if not m:
        return None
    return int(m.group(1))


def _reject(logger: Logger | None, facet: str, host_value: str, package_value: str) -> bool:
    emit(
        logger,
        "warning",
        "COMPAT",
        f"{facet} incompatibility: host: {host_value or 'not found'}, "
        f"package: {package_value}",
    )
    return False


def _check_managed_binding(
    package: PackageCompatibilityFacts, host: HostDescriptor, logger: Logger | None
) -> bool:
    host_version = host.managed_binding_version
    package_version = package.managed_binding_version

    host_rev = _last_component(host_version)
    package_rev = _last_component(package_version)
    if host_rev is None or package_rev is None:
        return _reject(logger, "Managed binding", host_version, package_version)

    if host_rev < _MANAGED_GENERATION_B_REVISION <= package_rev:
        # Generation-B package on a generation-A host
        return _reject(logger, "Managed binding", host_version, package_version)

    if compare_ordinal_ignore_case(host_version, package_version) < 0:
        return _reject(logger, "Managed binding", host_version, package_version)

    emit(
        logger,
        "debug",
        "COMPAT",
        f"Managed binding accepted: host: {host_version}, package: {package_version}",
    )
    return True


def _check_common_binding(
    package: PackageCompatibilityFacts, host: HostDescriptor, logger: Logger | None
) -> bool:
    host_version = host.common_binding_version
    package_version = package.common_binding_version

    if not host_version:
        return _reject(logger, "Common binding", host_version, package_version)

    if compare_ordinal_ignore_case(host_version, package_version) < 0:
        return _reject(logger, "Common binding", host_version, package_version)

    emit(
        logger,
        "debug",
        "COMPAT",
        f"Common binding accepted: host: {host_version}, package: {package_version}",
    )
    return True


def _check_sdk_version(
    package: PackageCompatibilityFacts, host: HostDescriptor, logger: Logger | None
) -> bool:
    host_marker = host.sdk_version.strip()
    package_marker = package.sdk_version.strip()

    host_gen = generation_of(host_marker)
    package_gen = generation_of(package_marker)
    if host_gen is None or package_gen is None:
        return _reject(logger, "SDK version", host_marker, package_marker)

    if host_gen is Generation.A and package_gen is Generation.B:
        return _reject(logger, "SDK version", host_marker, package_marker)

    if host_gen is package_gen:
        if not (host_marker.isdecimal() and package_marker.isdecimal()):
            return _reject(logger, "SDK version", host_marker, package_marker)
        if int(host_marker) < int(package_marker):
            return _reject(logger, "SDK version", host_marker, package_marker)

    emit(
        logger,
        "debug",
        "COMPAT",
        f"SDK version accepted: host: {host_marker}, package: {package_marker}",
    )
    return True


def _check_sdk_service_release(
    package: PackageCompatibilityFacts, host: HostDescriptor, logger: Logger | None
) -> bool:
    host_marker = host.sdk_service_release.strip()
    package_marker = package.sdk_service_release.strip()

    host_gen = generation_of(host_marker)
    package_gen = generation_of(package_marker)
    if host_gen is None or package_gen is None:
        return _reject(logger, "SDK service release", host_marker, package_marker)

    if host_gen is Generation.A and package_gen is not Generation.A:
        return _reject(logger, "SDK service release", host_marker, package_marker)

    emit(
        logger,
        "debug",
        "COMPAT",
        f"SDK service release accepted: host: {host_marker}, package: {package_marker}",
    )
    return True


Rule = Callable[[PackageCompatibilityFacts, HostDescriptor, Logger | None], bool]

# (facet name, package field that enables the rule, rule)
_RULES: tuple[tuple[str, str, Rule], ...] = (
    ("Managed binding", "managed_binding_version", _check_managed_binding),
    ("Common binding", "common_binding_version", _check_common_binding),
    ("SDK version", "sdk_version", _check_sdk_version),
    ("SDK service release", "sdk_service_release", _check_sdk_service_release),
)


def is_compatible(
    package: PackageCompatibilityFacts,
    host: HostDescriptor,
    logger: Logger | None = None,
) -> bool:
    """Decide whether host can load package.

    Args:
        package: Facts extracted from the candidate package.
        host: Facts about one host installation.
        logger: Optional logger; the global logger is used when omitted.

    Returns:
        True if every applicable facet rule passes, False at the first one
            that fails.

    """
    if not host.is_valid:
        emit(
            logger,
            "warning",
            "COMPAT",
            f"Host is not valid: {host.display_name}; cannot check {package.title}",
        )
        return False

    for facet, field, rule in _RULES:
        if not is_declared(getattr(package, field)):
            emit(logger, "debug", "COMPAT", f"{facet}: not used by package, skipped")
            continue
        if not rule(package, host, logger):
            return False

    emit(logger, "verbose", "COMPAT", f"Compatible host found: {host.display_name}")
    return True


def find_compatible_hosts(
    package: PackageCompatibilityFacts,
    hosts: Iterable[HostDescriptor],
    logger: Logger | None = None,
) -> tuple[HostSearchState, list[HostDescriptor]]:
    """Check a package against every enumerated host.

    Args:
        package: Facts extracted from the candidate package.
        hosts: Host installations found on the machine.
        logger: Optional logger; the global logger is used when omitted.

    Returns:
        A tuple (state, compatible), where state is UNKNOWN if no hosts were
            given, FOUND if at least one host accepts the package and
            NOT_FOUND otherwise, and compatible lists the accepting hosts in
            input order.

    """
    hosts = list(hosts)
    if not hosts:
        emit(logger, "verbose", "COMPAT", "No hosts to check")
        return HostSearchState.UNKNOWN, []

    compatible = [h for h in hosts if is_compatible(package, h, logger=logger)]
    state = HostSearchState.FOUND if compatible else HostSearchState.NOT_FOUND
    emit(
        logger,
        "verbose",
        "COMPAT",
        f"{len(compatible)} of {len(hosts)} host(s) compatible with {package.title}",
    )
    return state, compatible
