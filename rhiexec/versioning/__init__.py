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

"""Package version parsing and installed-version discovery for rhiexec.

Modules:
    keys
        The four-part Version type and strict parsing helpers.
    scanner
        Listing of version-named folders and newest-version lookup.

Example:
    ```python
    from pathlib import Path
    from rhiexec.versioning import Version, newest_version

    installed = newest_version(Path("Plug-ins/Marmoset (abc)"))
    candidate = Version.parse("2.0.0.0")
    if installed is not None and installed >= candidate:
        print("already up to date")
    ```

Notes:
    Nothing found is always reported as None, never as a placeholder
    version such as 1.0.0.0.
"""

from .keys import Version, is_version_string, try_parse_version
from .scanner import list_version_directories, newest_version

__all__ = [
    "Version",
    "is_version_string",
    "try_parse_version",
    "list_version_directories",
    "newest_version",
]
