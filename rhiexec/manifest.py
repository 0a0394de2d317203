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

"""YAML manifests for package facts and host inventories.

Introspecting a plug-in binary is slow and platform specific, so the facts
extracted from it are cached in a sidecar manifest next to the binary
(``Marmoset.rhp`` -> ``Marmoset.rhp.yaml``). The engine reads its package
facts from that manifest and writes the computed install state and target
platform back into it.

Package manifest (flat mapping):

    id: 0b1c5a5e-2f8c-4a4e-9e66-8f3b1c0d2a11
    title: Marmoset
    version: 2.0.0.0
    sdk_version: "201005025"
    sdk_service_release: "201005025"
    managed_binding_version: ""
    common_binding_version: ""
    binary_class: native64
    install_root: CurrentUserRoamingProfile
    install_state: NotInstalled      # written by the engine
    install_state_root: AllUsers      # written when a copy is installed
    installed_version: 1.0.0.0        # written when a copy is installed
    platform: x64                     # written by the engine

Host inventory:

    hosts:
      - name: Host 5.0 (64-bit)
        exe_path: C:/Program Files/Rhinoceros 5/System/Rhino.exe
        sdk_version: "201005025"
        sdk_service_release: "201005025"
        managed_binding_version: 5.0.20693.150
        common_binding_version: 5.1.30000.16
        valid: true

Every scalar is read as text, so unquoted markers keep their spelling
(``sdk_version: 0100`` stays ``"0100"``, ``5.10`` stays ``"5.10"``). Missing
markers are empty strings. ``path`` is only written when the manifest
already has one; otherwise it is derived from the manifest name on load.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
import re
from typing import Any

import yaml

from rhiexec.config.loader import load_yaml_file
from rhiexec.exceptions import ConfigError
from rhiexec.facts import BinaryClass, HostDescriptor, PackageCompatibilityFacts
from rhiexec.install_state import InstallRoot, InstallState, InstallStateResult
from rhiexec.logging import Logger, get_global_logger
from rhiexec.versioning.keys import Version, try_parse_version

MANIFEST_SUFFIX = ".yaml"

_MARKER_FIELDS = (
    "sdk_version",
    "sdk_service_release",
    "managed_binding_version",
    "common_binding_version",
)

# Keys written only while a copy is installed
_INSTALLED_KEYS = ("install_state_root", "installed_version")


class _TextLoader(yaml.BaseLoader):
    """Loads every scalar as a string, except null."""


_TextLoader.add_implicit_resolver(
    "tag:yaml.org,2002:null",
    re.compile(r"^(?:~|null|Null|NULL|)$"),
    ["~", "n", "N", ""],
)
_TextLoader.add_constructor("tag:yaml.org,2002:null", lambda loader, node: None)


def manifest_path_for(binary_path: Path) -> Path:
    """Return the sidecar manifest path for a package binary."""
    return binary_path.with_name(binary_path.name + MANIFEST_SUFFIX)


def _read_mapping(path: Path) -> dict[str, Any]:
    data = load_yaml_file(path, loader=_TextLoader)
    if not isinstance(data, dict):
        raise ConfigError(f"top-level YAML must be a mapping (dict): {path}")
    return data


def _text(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    return str(value).strip()


def _markers(data: dict[str, Any]) -> dict[str, str]:
    return {field: _text(data, field) for field in _MARKER_FIELDS}


def package_facts_from_dict(data: dict[str, Any], *, source: str = "") -> PackageCompatibilityFacts:
    """Build package facts from a parsed manifest mapping.

    Args:
        data: Parsed manifest.
        source: Where the mapping came from, for error messages.

    Raises:
        ConfigError: If id, title or version is missing or invalid, or if
            binary_class or install_root is not recognized.

    """
    where = f" in {source}" if source else ""

    package_id = _text(data, "id")
    title = _text(data, "title")
    if not package_id:
        raise ConfigError(f"Missing required field 'id'{where}")
    if not title:
        raise ConfigError(f"Missing required field 'title'{where}")

    raw_version = _text(data, "version")
    version = try_parse_version(raw_version)
    if version is None:
        raise ConfigError(
            f"Field 'version' must be a four-part version number{where}: {raw_version!r}"
        )

    raw_class = _text(data, "binary_class") or BinaryClass.UNKNOWN.value
    try:
        binary_class = BinaryClass(raw_class.lower())
    except ValueError as err:
        allowed = ", ".join(c.value for c in BinaryClass)
        raise ConfigError(
            f"Unknown binary_class {raw_class!r}{where} (expected one of: {allowed})"
        ) from err

    raw_root = _text(data, "install_root") or InstallRoot.CURRENT_USER_ROAMING_PROFILE.value
    try:
        install_root = InstallRoot.from_label(raw_root)
    except ValueError as err:
        raise ConfigError(f"Unknown install_root {raw_root!r}{where}") from err

    return PackageCompatibilityFacts(
        package_id=package_id,
        title=title,
        version=version,
        binary_class=binary_class,
        install_root=install_root,
        path=_text(data, "path"),
        **_markers(data),
    )


def load_package_facts(path: Path, logger: Logger | None = None) -> PackageCompatibilityFacts:
    """Load package facts from a manifest file.

    When the manifest does not name the binary it describes, the path is
    derived from the manifest name (``X.rhp.yaml`` -> ``X.rhp``).

    Raises:
        ConfigError: If the file is missing, unparseable or invalid.

    """
    if logger is None:
        logger = get_global_logger()

    logger.verbose("MANIFEST", f"Loading package manifest: {path}")
    facts = package_facts_from_dict(_read_mapping(path), source=str(path))
    if not facts.path and path.name.endswith(MANIFEST_SUFFIX):
        facts = replace(facts, path=str(path.with_name(path.name[: -len(MANIFEST_SUFFIX)])))
    logger.debug("MANIFEST", f"Loaded {facts.title} {facts.version} ({facts.binary_class.value})")
    return facts


def read_install_state(path: Path) -> InstallState:
    """Read the persisted install state from a manifest.

    Returns:
        The stored state, or UNKNOWN if it is missing or not recognized.

    Raises:
        ConfigError: If the file is missing or unparseable.

    """
    return InstallState.from_label(_text(_read_mapping(path), "install_state"))


def read_install_state_result(path: Path) -> InstallStateResult:
    """Read the persisted install state, root and installed version.

    Unrecognized roots and versions read back as None.

    Raises:
        ConfigError: If the file is missing or unparseable.

    """
    data = _read_mapping(path)
    try:
        root = InstallRoot.from_label(_text(data, "install_state_root"))
    except ValueError:
        root = None
    return InstallStateResult(
        state=InstallState.from_label(_text(data, "install_state")),
        root=root,
        installed_version=try_parse_version(_text(data, "installed_version")),
    )


def package_facts_to_dict(
    facts: PackageCompatibilityFacts,
    install_state: InstallState | None = None,
    *,
    install_root: InstallRoot | None = None,
    installed_version: Version | None = None,
) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": facts.package_id,
        "title": facts.title,
        "version": str(facts.version),
        **{field: getattr(facts, field) for field in _MARKER_FIELDS},
        "binary_class": facts.binary_class.value,
        "install_root": facts.install_root.value,
        "platform": facts.os_platform,
    }
    if install_state is not None:
        data["install_state"] = install_state.label
    if install_root is not None:
        data["install_state_root"] = install_root.value
    if installed_version is not None:
        data["installed_version"] = str(installed_version)
    return data


def save_package_manifest(
    path: Path,
    facts: PackageCompatibilityFacts,
    install_state: InstallState | None = None,
    *,
    install_root: InstallRoot | None = None,
    installed_version: Version | None = None,
    logger: Logger | None = None,
) -> Path:
    """Write package facts (and optionally the install state) to path.

    Keys already present in an existing manifest that this module does not
    manage are preserved. When install_state is given, the root and
    installed version from any earlier save are replaced by the ones given
    here, or removed. The package path is only rewritten when the existing
    manifest already records one.

    Raises:
        ConfigError: If an existing manifest at path cannot be parsed.
        OSError: If the file cannot be written.

    """
    if logger is None:
        logger = get_global_logger()

    existing: dict[str, Any] = {}
    if path.exists():
        existing = _read_mapping(path)

    if install_state is not None:
        for key in _INSTALLED_KEYS:
            existing.pop(key, None)

    data = {
        **existing,
        **package_facts_to_dict(
            facts,
            install_state,
            install_root=install_root,
            installed_version=installed_version,
        ),
    }
    if "path" in existing and facts.path:
        data["path"] = facts.path
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

    logger.verbose("MANIFEST", f"Manifest written to: {path}")
    return path


def host_from_dict(data: dict[str, Any]) -> HostDescriptor:
    valid = data.get("valid", True)
    if isinstance(valid, str):
        valid = valid.strip().lower() in ("1", "true", "yes")
    return HostDescriptor(
        is_valid=bool(valid),
        name=_text(data, "name"),
        exe_path=_text(data, "exe_path"),
        **_markers(data),
    )


def load_host_descriptors(path: Path, logger: Logger | None = None) -> list[HostDescriptor]:
    """Load the host installations listed in a host inventory file.

    Raises:
        ConfigError: If the file is missing or unparseable, or if "hosts" is
            not a list of mappings.

    """
    if logger is None:
        logger = get_global_logger()

    data = _read_mapping(path)
    entries = data.get("hosts")
    if not isinstance(entries, list):
        raise ConfigError(f"Field 'hosts' must be a list: {path}")

    hosts: list[HostDescriptor] = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ConfigError(f"hosts[{i}] must be a mapping: {path}")
        hosts.append(host_from_dict(entry))

    logger.verbose("MANIFEST", f"Loaded {len(hosts)} host(s) from {path}")
    return hosts
