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

"""Configuration loading and merging for rhiexec.

This module builds the effective engine configuration from three layers,
last one wins:

Configuration Layers:
    1. **Built-in defaults**
       - Install roots derived from the standard Windows environment
         variables (ProgramData, LOCALAPPDATA, APPDATA), falling back to
         folders under the user's home directory elsewhere.

    2. **Config file** (optional, e.g. rhiexec.yaml)
       - Organization or machine specific overrides.

    3. **Environment variables** (optionally read from a .env file)
       - RHIEXEC_ALL_USERS_ROOT
       - RHIEXEC_LOCAL_PROFILE_ROOT
       - RHIEXEC_ROAMING_PROFILE_ROOT

Merge Behavior:
    The loader performs deep merging with "last wins" semantics:

    - **Dicts**: Recursively merged (keys from overlay override base)
    - **Lists**: Completely replaced (NOT appended/extended)
    - **Scalars**: Overwritten (strings, numbers, booleans)

Path Resolution:
    Relative install root paths from the config file are resolved against
    the CONFIG FILE location, so a config can ship alongside a test tree.

Error Handling:
    - ConfigError: Config file doesn't exist, YAML parse errors, empty files,
        or invalid structure
    - All errors are chained with "from err" for better debugging

Example:
    Basic usage:
        ```python
        from pathlib import Path
        from rhiexec.config import load_effective_config

        cfg = load_effective_config(Path("rhiexec.yaml"))
        print(cfg["install_roots"]["all_users"])
        ```
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv
import yaml

from rhiexec.exceptions import ConfigError
from rhiexec.logging import Logger, get_global_logger

# Config key -> environment variable override
ROOT_ENV_VARS: dict[str, str] = {
    "all_users": "RHIEXEC_ALL_USERS_ROOT",
    "local_profile": "RHIEXEC_LOCAL_PROFILE_ROOT",
    "roaming_profile": "RHIEXEC_ROAMING_PROFILE_ROOT",
}

# Folder appended to every base root, e.g. C:/ProgramData/<this>
DEFAULT_APP_FOLDER = "McNeel/Rhinoceros/Plug-ins"


# -------------------------------
# YAML helpers
# -------------------------------


def load_yaml_file(p: Path, loader: type = yaml.SafeLoader) -> Any:
    """Load a YAML file and return the parsed Python object.

    Args:
        p: File to read.
        loader: PyYAML loader class. Defaults to SafeLoader.

    Raises:
        ConfigError: When the file does not exist, cannot be parsed, or is
            empty.

    """
    if not p.exists():
        raise ConfigError(f"file not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.load(f, Loader=loader)
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {p}: {err}") from err
    if data is None:
        raise ConfigError(f"YAML file is empty: {p}")
    return data


# -------------------------------
# Merge logic
# -------------------------------


def _deep_merge_dicts(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge two dicts with "overlay wins".

    Rules:
      - dict + dict -> deep merge
      - list + list -> overlay REPLACES base (not concatenated)
      - everything else -> overlay overwrites base

    This function does not mutate inputs; returns a new dict.
    """
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge_dicts(result[k], v)
        else:
            result[k] = v
    return result


# -------------------------------
# Defaults
# -------------------------------


def default_config() -> dict[str, Any]:
    """Return the built-in configuration for the current environment."""
    home = Path.home()
    all_users = os.environ.get("ProgramData") or str(home / ".rhiexec" / "all-users")
    local = os.environ.get("LOCALAPPDATA") or str(home / ".rhiexec" / "local")
    roaming = os.environ.get("APPDATA") or str(home / ".rhiexec" / "roaming")
    return {
        "install_roots": {
            "all_users": str(Path(all_users) / DEFAULT_APP_FOLDER),
            "local_profile": str(Path(local) / DEFAULT_APP_FOLDER),
            "roaming_profile": str(Path(roaming) / DEFAULT_APP_FOLDER),
        },
    }


# -------------------------------
# Path resolution and env overrides
# -------------------------------


def _resolve_known_paths(cfg: dict[str, Any], config_dir: Path) -> None:
    """Resolve relative install root paths against config_dir in place."""
    roots = cfg.get("install_roots")
    if not isinstance(roots, dict):
        return
    for key, raw_path in roots.items():
        if isinstance(raw_path, str) and raw_path:
            p = Path(raw_path)
            if not p.is_absolute():
                roots[key] = str((config_dir / p).resolve())


def _apply_env_overrides(cfg: dict[str, Any], logger: Logger) -> None:
    """Override install roots from RHIEXEC_* environment variables in place."""
    roots = cfg.setdefault("install_roots", {})
    if not isinstance(roots, dict):
        return
    for key, env_var in ROOT_ENV_VARS.items():
        value = os.environ.get(env_var)
        if value:
            logger.verbose("CONFIG", f"{env_var} overrides install_roots.{key}")
            roots[key] = value


def _validate(cfg: dict[str, Any]) -> None:
    roots = cfg.get("install_roots")
    if not isinstance(roots, dict):
        raise ConfigError("'install_roots' must be a mapping")
    for key in ROOT_ENV_VARS:
        value = roots.get(key)
        if not isinstance(value, str) or not value.strip():
            raise ConfigError(f"install_roots.{key} must be a non-empty path string")


# -------------------------------
# Public API
# -------------------------------


def load_effective_config(
    config_path: Path | None = None,
    *,
    env_file: Path | None = None,
    logger: Logger | None = None,
) -> dict[str, Any]:
    """Load and merge the effective engine configuration.

    Steps
      1) Start from the built-in defaults.
      2) If config_path is given, read it and deep-merge it on top,
         resolving relative paths against its directory.
      3) Load a .env file (env_file, or one found from the working
         directory) without overriding variables that are already set.
      4) Apply RHIEXEC_* environment overrides.
      5) Validate the install roots.

    Args:
        config_path: Optional YAML config file.
        env_file: Optional .env file to read environment overrides from.
        logger: Optional logger; the global logger is used when omitted.

    Returns:
        A merged configuration dict.

    Raises:
        ConfigError: On a missing config file, YAML parse errors, empty
            files, a non-mapping document, or invalid install roots.

    """
    if logger is None:
        logger = get_global_logger()

    merged = default_config()
    layers_merged = 1

    if config_path is not None:
        config_path = config_path.resolve()
        logger.verbose("CONFIG", f"Loading: {config_path}")
        file_cfg = load_yaml_file(config_path)
        if not isinstance(file_cfg, dict):
            raise ConfigError(f"top-level YAML must be a mapping (dict): {config_path}")
        _resolve_known_paths(file_cfg, config_path.parent)
        merged = _deep_merge_dicts(merged, file_cfg)
        layers_merged += 1

    if env_file is not None:
        load_dotenv(env_file, override=False)
    else:
        load_dotenv(find_dotenv(usecwd=True), override=False)
    _apply_env_overrides(merged, logger)
    _validate(merged)

    logger.verbose("CONFIG", f"Deep merged {layers_merged} layer(s)")
    for key, value in merged["install_roots"].items():
        logger.debug("CONFIG", f"install_roots.{key}: {value}")

    return merged
