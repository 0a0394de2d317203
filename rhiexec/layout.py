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

"""On-disk install layout for packages.

Packages are installed as::

    <install root>/<family folder>/<major.minor.build.revision>/...

where the install root is one of the configured base folders (all users,
local profile, roaming profile) and the family folder is derived from the
package title and id. The version folder name is a contract with the
scanner in rhiexec.versioning.scanner: installers must write exactly four
dot-separated integers.

Example:
    ```python
    from rhiexec.config import load_effective_config
    from rhiexec.install_state import InstallRoot
    from rhiexec.layout import InstallLayout

    layout = InstallLayout.from_config(load_effective_config())
    layout.family_folder(InstallRoot.ALL_USERS, "abc", "Marmoset")
    # Path('C:/ProgramData/McNeel/Rhinoceros/Plug-ins/Marmoset (abc)')
    ```

"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import re
from typing import Any

from rhiexec.exceptions import ConfigError
from rhiexec.install_state import FamilyFolderResolver, InstallRoot
from rhiexec.versioning.keys import Version

# Characters Windows refuses in file names, plus ASCII control characters
_INVALID_PATH_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')

_CONFIG_KEYS: dict[InstallRoot, str] = {
    InstallRoot.ALL_USERS: "all_users",
    InstallRoot.CURRENT_USER_LOCAL_PROFILE: "local_profile",
    InstallRoot.CURRENT_USER_ROAMING_PROFILE: "roaming_profile",
}


def remove_invalid_path_chars(name: str) -> str:
    """Strip characters that are not allowed in a Windows file name.

    Example:
        ```python
        remove_invalid_path_chars("Marmoset: Toolkit")  # "Marmoset Toolkit"
        remove_invalid_path_chars("a<b>c")              # "abc"
        ```

    """
    return _INVALID_PATH_CHARS.sub("", name)


def family_folder_name(package_id: str, title: str) -> str:
    """Return the folder name holding all versions of one package.

    Falls back to the bare package id when the title has no usable
    characters left after sanitizing.
    """
    clean_title = remove_invalid_path_chars(title).strip().rstrip(".")
    clean_id = remove_invalid_path_chars(package_id).strip()
    if not clean_title:
        return clean_id or "package"
    if not clean_id:
        return clean_title
    return f"{clean_title} ({clean_id})"


@dataclass(frozen=True)
class InstallLayout:
    """Base folders for each install root.

    Attributes:
        all_users: Per-machine install base folder.
        local_profile: Per-user, non-roaming install base folder.
        roaming_profile: Per-user, roaming install base folder.

    """

    all_users: Path
    local_profile: Path
    roaming_profile: Path

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> InstallLayout:
        """Build a layout from the "install_roots" section of a config.

        Raises:
            ConfigError: If any of the three roots is missing.

        """
        roots = config.get("install_roots") or {}
        try:
            return cls(
                all_users=Path(roots["all_users"]),
                local_profile=Path(roots["local_profile"]),
                roaming_profile=Path(roots["roaming_profile"]),
            )
        except (KeyError, TypeError) as err:
            raise ConfigError(f"incomplete install_roots configuration: {err}") from err

    def root_folder(self, root: InstallRoot) -> Path:
        return Path(getattr(self, _CONFIG_KEYS[root]))

    def family_folder(self, root: InstallRoot, package_id: str, title: str) -> Path:
        """Folder under which the package's version folders live for root."""
        return self.root_folder(root) / family_folder_name(package_id, title)

    def install_folder(
        self, root: InstallRoot, package_id: str, title: str, version: Version
    ) -> Path:
        """Folder a specific version of the package installs into."""
        return self.family_folder(root, package_id, title) / str(version)

    def resolver_for(self, package_id: str, title: str) -> FamilyFolderResolver:
        """Return an InstallRoot -> family folder callable for one package."""

        def _resolve(root: InstallRoot) -> Path:
            return self.family_folder(root, package_id, title)

        return _resolve
