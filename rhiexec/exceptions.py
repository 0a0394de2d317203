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

"""Exception hierarchy for rhiexec.

This module defines the exceptions raised by the installer engine so that
callers can tell apart the different ways an inspection can fail:

- ConfigError: Configuration or manifest problems (YAML parse, missing
  fields, invalid values)
- InspectionError: Fatal I/O failures while looking at install roots
- PackageNotRecognizedError: The package declares none of the known SDK facets
- PackageNotCompatibleError: No host on the machine accepts the package

All exceptions inherit from RhiExecError, allowing users to catch every
engine error with a single except clause.

Note that a missing install folder and a malformed compatibility marker are
NOT errors. The first yields "nothing installed", the second rejects the
compatibility rule it belongs to.

Example:
    Catching specific error types:
        ```python
        from rhiexec.core import inspect_package
        from rhiexec.exceptions import ConfigError, InspectionError

        try:
            result = inspect_package(Path("Marmoset.rhp.yaml"))
        except ConfigError as e:
            print(f"Manifest error: {e}")
        except InspectionError as e:
            print(f"Inspection failed: {e}")
        ```
"""

from __future__ import annotations

__all__ = [
    "RhiExecError",
    "ConfigError",
    "InspectionError",
    "PackageNotRecognizedError",
    "PackageNotCompatibleError",
]


class RhiExecError(Exception):
    """Base exception for all rhiexec errors."""

    pass


class ConfigError(RhiExecError):
    """Raised for configuration and manifest errors.

    This exception is raised when there are problems with:

    - YAML parsing (syntax errors, empty documents, non-mapping documents)
    - Missing config, manifest or host inventory files
    - Invalid version strings, install roots or binary classes in a manifest
    """

    pass


class InspectionError(RhiExecError):
    """Raised when an install root cannot be inspected.

    A folder that does not exist is reported as "nothing installed" and
    never raises. This exception covers everything else the operating
    system can refuse while listing a folder that does exist (permission
    denied, disk errors).
    """

    pass


class PackageNotRecognizedError(InspectionError):
    """Raised when a package advertises none of the known SDK facets.

    A recognized package links either the native SDK (both version and
    service release markers), the managed-runtime binding, or the common
    binding.
    """

    pass


class PackageNotCompatibleError(RhiExecError):
    """Raised when none of the enumerated hosts can load the package."""

    pass
