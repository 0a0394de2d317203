"""
Pytest configuration and shared fixtures for rhiexec tests.

This module provides reusable fixtures and test utilities used across
the test suite.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import pytest
import yaml

from rhiexec.config.loader import ROOT_ENV_VARS
from rhiexec.facts import BinaryClass, HostDescriptor, PackageCompatibilityFacts
from rhiexec.install_state import InstallRoot
from rhiexec.logging import SilentLogger, set_global_logger
from rhiexec.versioning import Version

PACKAGE_ID = "0b1c5a5e-2f8c-4a4e-9e66-8f3b1c0d2a11"


class RecordingLogger:
    """Logger that keeps every message for later assertions."""

    def __init__(self) -> None:
        self.records: list[tuple[str, str, str]] = []

    def step(self, step: int, total: int, message: str) -> None:
        self.records.append(("step", f"{step}/{total}", message))

    def verbose(self, prefix: str, message: str) -> None:
        self.records.append(("verbose", prefix, message))

    def debug(self, prefix: str, message: str) -> None:
        self.records.append(("debug", prefix, message))

    def warning(self, prefix: str, message: str) -> None:
        self.records.append(("warning", prefix, message))

    def messages(self, level: str) -> list[str]:
        return [message for lvl, _, message in self.records if lvl == level]


class ExplodingLogger:
    """Logger whose every method raises."""

    def step(self, step: int, total: int, message: str) -> None:
        raise RuntimeError("sink down")

    def verbose(self, prefix: str, message: str) -> None:
        raise RuntimeError("sink down")

    def debug(self, prefix: str, message: str) -> None:
        raise RuntimeError("sink down")

    def warning(self, prefix: str, message: str) -> None:
        raise RuntimeError("sink down")


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path: Path):
    """
    Keep tests independent of the machine they run on.

    Gives each test its own copy of the environment (load_dotenv writes to
    os.environ directly), removes RHIEXEC_* overrides, runs each test from
    its own temporary directory so no stray .env file is picked up, and
    resets the global logger afterwards.
    """
    monkeypatch.setattr(os, "environ", os.environ.copy())
    for env_var in ROOT_ENV_VARS.values():
        monkeypatch.delenv(env_var, raising=False)
    monkeypatch.chdir(tmp_path)
    yield
    set_global_logger(SilentLogger())


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary directory for test artifacts.

    Automatically cleaned up after test completion.
    """
    return tmp_path


@pytest.fixture
def recording_logger() -> RecordingLogger:
    """Provide a logger that records messages."""
    return RecordingLogger()


@pytest.fixture
def exploding_logger() -> ExplodingLogger:
    """Provide a logger that raises on every call."""
    return ExplodingLogger()


@pytest.fixture
def create_yaml_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary YAML files.

    Usage:
        yaml_path = create_yaml_file("test.yaml", {"key": "value"})
    """

    def _create(filename: str, data: Any) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(data, f)
        return path

    return _create


@pytest.fixture
def make_version_dirs():
    """
    Factory fixture for creating a family folder with child folders.

    Usage:
        folder = make_version_dirs(tmp_path / "Pkg", "1.0.0.0", "logs")
    """

    def _make(folder: Path, *names: str) -> Path:
        folder.mkdir(parents=True, exist_ok=True)
        for name in names:
            (folder / name).mkdir()
        return folder

    return _make


@pytest.fixture
def make_facts():
    """
    Factory fixture for package facts with sensible defaults.

    Usage:
        facts = make_facts(sdk_version="201005025", version="2.0.0.0")
    """

    def _make(**overrides: Any) -> PackageCompatibilityFacts:
        values: dict[str, Any] = {
            "package_id": PACKAGE_ID,
            "title": "Marmoset",
            "version": Version(2, 0, 0, 0),
            "binary_class": BinaryClass.UNKNOWN,
            "install_root": InstallRoot.CURRENT_USER_ROAMING_PROFILE,
        }
        values.update(overrides)
        if isinstance(values["version"], str):
            values["version"] = Version.parse(values["version"])
        return PackageCompatibilityFacts(**values)

    return _make


@pytest.fixture
def sample_manifest_data() -> dict[str, Any]:
    """Provide a complete native package manifest."""
    return {
        "id": PACKAGE_ID,
        "title": "Marmoset",
        "version": "2.0.0.0",
        "sdk_version": "201005025",
        "sdk_service_release": "201005025",
        "managed_binding_version": "",
        "common_binding_version": "",
        "binary_class": "native64",
        "install_root": "CurrentUserRoamingProfile",
    }


@pytest.fixture
def sample_hosts_data() -> dict[str, Any]:
    """Provide a host inventory with one generation-A and one generation-B host."""
    return {
        "hosts": [
            {
                "name": "Host 4.0",
                "exe_path": "C:/Program Files/Rhinoceros 4.0/System/Rhino4.exe",
                "sdk_version": "200712180",
                "sdk_service_release": "200712180",
                "valid": True,
            },
            {
                "name": "Host 5.0 (64-bit)",
                "exe_path": "C:/Program Files/Rhinoceros 5/System/Rhino.exe",
                "sdk_version": "201005025",
                "sdk_service_release": "201005025",
                "managed_binding_version": "5.0.20693.150",
                "common_binding_version": "5.1.30000.16",
                "valid": True,
            },
        ]
    }


@pytest.fixture
def gen_b_host() -> HostDescriptor:
    """Provide a fully identified generation-B host."""
    return HostDescriptor(
        sdk_version="201005025",
        sdk_service_release="201005025",
        managed_binding_version="5.0.20693.150",
        common_binding_version="5.1.30000.16",
        name="Host 5.0",
    )


@pytest.fixture
def config_file(create_yaml_file, tmp_test_dir: Path) -> Path:
    """Provide a config file whose install roots live under the test directory."""
    return create_yaml_file(
        "rhiexec.yaml",
        {
            "install_roots": {
                "all_users": "roots/all-users",
                "local_profile": "roots/local",
                "roaming_profile": "roots/roaming",
            }
        },
    )
