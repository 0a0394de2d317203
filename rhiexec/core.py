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

"""Core orchestration for rhiexec.

This module ties the engine pieces together for one package: it loads the
configuration and the package manifest, resolves the install state against
the configured install roots, checks the package against the host inventory
and optionally records the install state back into the manifest.

Design Principles:

- Each function has a single, clear responsibility
- Functions return structured data (dataclasses) for easy testing and extension
- Error handling uses exceptions; CLI layer formats for user display
- The install-state and compatibility engines know nothing about config
  files or manifests; this module supplies both

Example:
    Programmatic usage:
        ```python
        from pathlib import Path
        from rhiexec.core import inspect_package

        result = inspect_package(
            Path("Marmoset.rhp.yaml"),
            hosts_path=Path("hosts.yaml"),
        )

        print(f"Package: {result.package.title} {result.package.version}")
        print(f"Install state: {result.install_state}")
        print(f"Compatible hosts: {len(result.compatible_hosts)}")
        ```

"""

from __future__ import annotations

from pathlib import Path

from rhiexec.compatibility import HostSearchState, find_compatible_hosts
from rhiexec.config.loader import load_effective_config
from rhiexec.exceptions import PackageNotCompatibleError, PackageNotRecognizedError
from rhiexec.facts import PackageCompatibilityFacts, describe
from rhiexec.install_state import InstallStateResult, resolve_install_state
from rhiexec.layout import InstallLayout
from rhiexec.logging import Logger, get_global_logger
from rhiexec.manifest import (
    load_host_descriptors,
    load_package_facts,
    save_package_manifest,
)
from rhiexec.results import InspectionResult


def ensure_recognized(facts: PackageCompatibilityFacts) -> None:
    """Refuse packages that declare none of the known SDK facets.

    The compatibility rules skip every facet a package does not declare, so
    a package without any marker would be accepted by every host. Callers
    must reject such packages before asking about compatibility.

    Raises:
        PackageNotRecognizedError: If facts has no package kind.

    """
    if not facts.kinds:
        raise PackageNotRecognizedError(
            f"{facts.title} ({facts.path or facts.package_id}) does not declare a "
            "native SDK version, a managed binding or a common binding"
        )


def resolve_package_state(
    facts: PackageCompatibilityFacts,
    layout: InstallLayout,
    logger: Logger | None = None,
) -> InstallStateResult:
    """Resolve the install state of a package using the configured layout."""
    return resolve_install_state(
        facts.version,
        facts.install_root,
        layout.resolver_for(facts.package_id, facts.title),
        logger=logger,
    )


def inspect_package(
    manifest_path: Path,
    *,
    hosts_path: Path | None = None,
    config_path: Path | None = None,
    write_state: bool = False,
    require_compatible: bool = False,
    logger: Logger | None = None,
) -> InspectionResult:
    """Inspect one package: install state, compatible hosts and platforms.

    This is the main entry point for the 'rhiexec inspect' command.

    Steps
      1) Load the effective configuration (defaults, config file, env).
      2) Load the package manifest and refuse unrecognized packages.
      3) Resolve the install state across the install roots.
      4) If a host inventory is given, check the package against every host.
      5) If requested, write the install state back into the manifest.

    Args:
        manifest_path: Package manifest (YAML sidecar next to the binary).
        hosts_path: Optional host inventory. Without it no compatibility
            check runs and host_search is UNKNOWN.
        config_path: Optional YAML config file with install roots.
        write_state: If True, persist the install state in the manifest.
        require_compatible: If True, raise when hosts were checked and none
            of them accepts the package.
        logger: Optional logger; the global logger is used when omitted.

    Returns:
        InspectionResult with the package facts, the install state and the
            root that produced it, and the compatible hosts.

    Raises:
        ConfigError: On config, manifest or host inventory errors.
        PackageNotRecognizedError: If the package declares no SDK facet.
        InspectionError: If an existing install folder cannot be listed.
        PackageNotCompatibleError: If require_compatible is set and no
            checked host accepts the package.

    Example:
        ```python
        result = inspect_package(Path("Marmoset.rhp.yaml"), write_state=True)
        if result.install_state.label == "NotInstalled":
            print("ready to install")
        ```

    """
    if logger is None:
        logger = get_global_logger()

    total = 5 if write_state else 4

    # 1. Configuration
    logger.step(1, total, "Loading configuration...")
    config = load_effective_config(config_path, logger=logger)
    layout = InstallLayout.from_config(config)

    # 2. Package facts
    logger.step(2, total, "Loading package manifest...")
    facts = load_package_facts(manifest_path, logger=logger)
    ensure_recognized(facts)
    logger.verbose("INSPECT", f"Package kinds: {', '.join(sorted(facts.kinds))}")

    # 3. Install state
    logger.step(3, total, "Resolving install state...")
    state = resolve_package_state(facts, layout, logger=logger)

    # 4. Host compatibility
    logger.step(4, total, "Checking host compatibility...")
    hosts = []
    if hosts_path is not None:
        hosts = load_host_descriptors(hosts_path, logger=logger)
    else:
        logger.verbose("INSPECT", "No host inventory given, skipping compatibility check")
    host_search, compatible = find_compatible_hosts(facts, hosts, logger=logger)
    logger.debug("INSPECT", describe(facts, state.state, host_search).rstrip("\n"))

    if require_compatible and host_search is HostSearchState.NOT_FOUND:
        raise PackageNotCompatibleError(
            f"None of the {len(hosts)} host(s) can load {facts.title} {facts.version}"
        )

    # 5. Persist
    state_written = False
    if write_state:
        logger.step(5, total, "Writing install state...")
        save_package_manifest(
            manifest_path,
            facts,
            state.state,
            install_root=state.root,
            installed_version=state.installed_version,
            logger=logger,
        )
        state_written = True

    return InspectionResult(
        package=facts,
        manifest_path=manifest_path,
        install_state=state.state,
        install_root=state.root,
        installed_version=state.installed_version,
        host_search=host_search,
        compatible_hosts=compatible,
        hosts_checked=len(hosts),
        target_platforms=facts.target_platforms,
        state_written=state_written,
        status="success",
    )
