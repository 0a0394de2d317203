"""
rhiexec - plug-in installer engine

A Python library and CLI that answers the two questions a plug-in installer
has to settle before copying any file:

  - Is this package already installed, and is the installed copy older,
    the same, or newer? (per-machine and per-user install roots)
  - Which of the host installations on this machine can load it?
    (native SDK, managed-runtime binding and common binding rules)

rhiexec provides:
  - Version-folder scanning of family folders
  - Install-state resolution across the AllUsers and per-user roots
  - Facet-based host compatibility checks with warning diagnostics
  - YAML package manifests and host inventories
  - Layered YAML / environment configuration of install roots

Quick Start
-----------
Show the install state of a package:

    $ rhiexec state plugins/Marmoset.rhp.yaml

Check it against the installed hosts:

    $ rhiexec check plugins/Marmoset.rhp.yaml --hosts hosts.yaml

For full CLI documentation:

    $ rhiexec --help

Package Structure
-----------------
cli : module
    Command-line interface with argparse.
core : module
    High-level orchestration functions.
config : package
    YAML configuration loading and merging.
versioning : package
    Four-part versions and version-folder scanning.
install_state : module
    Install-state resolution across install roots.
compatibility : module
    Package/host compatibility rules.
facts : module
    Package and host fact types.
manifest : module
    YAML package manifests and host inventories.
layout : module
    Config-driven install folder layout.

Public API
----------
The primary interface is the CLI, but key functions are exported for
programmatic use:

    from rhiexec.core import inspect_package
    from rhiexec.install_state import resolve_install_state
    from rhiexec.compatibility import is_compatible
    from rhiexec.versioning import newest_version

For more details, see the individual module docstrings.

Project Information
-------------------
Author: Roger Cibrian
License: Apache-2.0
"""

__version__ = "0.1.0"
__author__ = "Roger Cibrian"
__license__ = "Apache-2.0"
__description__ = "Plug-in installer engine: install state and host compatibility"

# Re-export commonly used functions for convenience
from rhiexec.compatibility import find_compatible_hosts, is_compatible
from rhiexec.config import load_effective_config
from rhiexec.core import inspect_package
from rhiexec.install_state import InstallRoot, InstallState, resolve_install_state
from rhiexec.versioning import Version, newest_version

__all__ = [
    "__version__",
    "find_compatible_hosts",
    "inspect_package",
    "is_compatible",
    "load_effective_config",
    "newest_version",
    "resolve_install_state",
    "InstallRoot",
    "InstallState",
    "Version",
]
