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

"""Discovery of installed package versions from version-named folders.

Installers lay packages out as ``<family folder>/<major.minor.build.revision>``.
This module lists the version folders under a family folder and picks the
newest one. It only reads directories; it never creates, deletes or modifies
anything.

Rules:

- A family folder that does not exist means "nothing installed here" and
  returns an empty result, not an error.
- Only immediate child directories whose names are exactly four
  dot-separated integers count. Files and other folders (logs, readme
  folders, arbitrary names) are ignored.
- Two folder names that parse to the same Version ("1.02.0.0" and
  "1.2.0.0") are one installed version; the first in name order wins.
- Any other OS error while listing an existing folder raises
  InspectionError.

Example:
    ```python
    from pathlib import Path
    from rhiexec.versioning.scanner import newest_version

    newest = newest_version(Path(r"C:/ProgramData/Plug-ins/Marmoset (abc)"))
    if newest is None:
        print("not installed")
    ```

"""

from __future__ import annotations

from pathlib import Path

from rhiexec.exceptions import InspectionError
from rhiexec.logging import Logger, emit
from rhiexec.versioning.keys import Version, try_parse_version


def _child_directories(folder: Path) -> list[Path] | None:
    """Return the child directories of folder, or None if it is absent."""
    try:
        if not folder.is_dir():
            return None
        return [p for p in folder.iterdir() if p.is_dir()]
    except FileNotFoundError:
        # Removed between the is_dir() check and the listing
        return None
    except OSError as err:
        raise InspectionError(f"Failed to list install folder {folder}: {err}") from err


def list_version_directories(
    folder: Path, logger: Logger | None = None
) -> list[tuple[Version, Path]]:
    """List version-named child directories sorted by ascending version.

    Args:
        folder: Family folder to scan.
        logger: Optional logger; the global logger is used when omitted.

    Returns:
        A list of (Version, path) pairs, oldest first. Empty when the folder
            does not exist or contains no version folders.

    Raises:
        InspectionError: If the folder exists but cannot be listed.

    """
    children = _child_directories(folder)
    if children is None:
        emit(logger, "debug", "SCAN", f"Package folder not found: {folder}")
        return []

    found: dict[Version, Path] = {}
    for child in sorted(children, key=lambda p: p.name):
        version = try_parse_version(child.name)
        if version is None:
            emit(logger, "debug", "SCAN", f"Ignoring non-version folder: {child.name}")
            continue
        if version in found:
            emit(
                logger,
                "debug",
                "SCAN",
                f"Duplicate version folder {child.name} (already have "
                f"{found[version].name})",
            )
            continue
        found[version] = child

    return sorted(found.items())


def newest_version(folder: Path, logger: Logger | None = None) -> Version | None:
    """Return the newest installed version under folder.

    Args:
        folder: Family folder to scan.
        logger: Optional logger; the global logger is used when omitted.

    Returns:
        The highest Version among the version folders, or None when nothing
            is installed there.

    Raises:
        InspectionError: If the folder exists but cannot be listed.

    """
    emit(logger, "debug", "SCAN", f"Getting newest version of installed package in {folder}")
    entries = list_version_directories(folder, logger=logger)
    if not entries:
        return None
    newest = entries[-1][0]
    emit(logger, "debug", "SCAN", f"Newest installed version: {newest}")
    return newest
