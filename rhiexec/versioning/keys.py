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

"""Four-part package version numbers.

This module is format-agnostic: it does NOT read files or folders. It only
parses and orders the ``major.minor.build.revision`` numbers that packages
carry and that installers use to name version folders on disk.
"""

from __future__ import annotations

from dataclasses import dataclass
import re

# Exactly four dot-separated non-negative integers, nothing else.
_VERSION_RE = re.compile(r"(\d+)\.(\d+)\.(\d+)\.(\d+)", re.ASCII)


@dataclass(frozen=True, order=True)
class Version:
    """Immutable package version ``(major, minor, build, revision)``.

    Versions compare component by component, so ``1.10.0.0`` is newer than
    ``1.9.0.0``. Two versions are equal only if all four components match.

    Attributes:
        major: Major version component.
        minor: Minor version component.
        build: Build component.
        revision: Revision component.

    Example:
        ```python
        v = Version.parse("5.1.20927.143")
        v > Version(5, 0, 0, 0)  # True
        str(v)                   # "5.1.20927.143"
        ```

    """

    major: int
    minor: int
    build: int
    revision: int

    def __post_init__(self) -> None:
        for name in ("major", "minor", "build", "revision"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"version component {name} must be an int: {value!r}")
            if value < 0:
                raise ValueError(f"version component {name} must be >= 0: {value}")

    @classmethod
    def parse(cls, text: str) -> Version:
        """Parse a strict four-part version string.

        Args:
            text: Version string such as "1.2.0.0".

        Returns:
            The parsed Version.

        Raises:
            ValueError: If text is not four dot-separated non-negative
                integers.

        """
        version = try_parse_version(text)
        if version is None:
            raise ValueError(f"not a four-part version number: {text!r}")
        return version

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.major, self.minor, self.build, self.revision)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.build}.{self.revision}"


def is_version_string(text: str) -> bool:
    """Return True if text is exactly four dot-separated integers."""
    return _VERSION_RE.fullmatch(text) is not None


def try_parse_version(text: str | None) -> Version | None:
    """Parse a four-part version string, returning None when it isn't one.

    Leading zeros are accepted ("1.02.0.0" parses as 1.2.0.0). Anything
    with fewer or more parts, signs, letters, whitespace or empty
    components is rejected rather than padded or truncated.
    """
    if text is None:
        return None
    m = _VERSION_RE.fullmatch(text)
    if not m:
        return None
    major, minor, build, revision = (int(g) for g in m.groups())
    return Version(major, minor, build, revision)
