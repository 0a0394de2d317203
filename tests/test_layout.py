"""
Tests for rhiexec.layout module.

Tests the on-disk install layout including:
- File name sanitizing
- Family folder naming
- Building a layout from configuration
- Resolvers used by install-state resolution
"""

from __future__ import annotations

from pathlib import Path

import pytest

from rhiexec.exceptions import ConfigError
from rhiexec.install_state import InstallRoot
from rhiexec.layout import InstallLayout, family_folder_name, remove_invalid_path_chars
from rhiexec.versioning import Version

pytestmark = pytest.mark.unit


class TestRemoveInvalidPathChars:
    """Tests for remove_invalid_path_chars."""

    def test_strips_reserved_characters(self):
        """Test that Windows-reserved characters are dropped."""
        assert remove_invalid_path_chars('a<b>c:d"e/f\\g|h?i*j') == "abcdefghij"

    def test_strips_control_characters(self):
        """Test that control characters are dropped."""
        assert remove_invalid_path_chars("Mar\tmo\x00set") == "Marmoset"

    def test_keeps_ordinary_names(self):
        """Test that ordinary names are untouched."""
        assert remove_invalid_path_chars("Marmoset (v2) - Tools") == "Marmoset (v2) - Tools"


class TestFamilyFolderName:
    """Tests for family_folder_name."""

    def test_title_and_id(self):
        """Test the default title-and-id folder name."""
        assert family_folder_name("abc", "Marmoset: Tools") == "Marmoset Tools (abc)"

    def test_falls_back_to_id(self):
        """Test that an unusable title leaves only the id."""
        assert family_folder_name("abc", "???") == "abc"

    def test_trailing_dots_removed(self):
        """Test that trailing dots are removed from the title."""
        assert family_folder_name("abc", "Marmoset...") == "Marmoset (abc)"

    def test_nothing_usable(self):
        """Test the last-resort folder name."""
        assert family_folder_name("", "") == "package"


class TestInstallLayout:
    """Tests for InstallLayout."""

    @pytest.fixture
    def layout(self, tmp_test_dir: Path) -> InstallLayout:
        return InstallLayout(
            all_users=tmp_test_dir / "all",
            local_profile=tmp_test_dir / "local",
            roaming_profile=tmp_test_dir / "roaming",
        )

    def test_from_config(self):
        """Test building a layout from a configuration dict."""
        layout = InstallLayout.from_config(
            {"install_roots": {"all_users": "/a", "local_profile": "/l", "roaming_profile": "/r"}}
        )
        assert layout.root_folder(InstallRoot.ALL_USERS) == Path("/a")
        assert layout.root_folder(InstallRoot.CURRENT_USER_LOCAL_PROFILE) == Path("/l")
        assert layout.root_folder(InstallRoot.CURRENT_USER_ROAMING_PROFILE) == Path("/r")

    def test_from_incomplete_config_raises(self):
        """Test that a missing root raises ConfigError."""
        with pytest.raises(ConfigError, match="install_roots"):
            InstallLayout.from_config({"install_roots": {"all_users": "/a"}})

    def test_install_folder(self, layout, tmp_test_dir):
        """Test the folder a version installs into."""
        folder = layout.install_folder(InstallRoot.ALL_USERS, "abc", "Marmoset", Version(2, 0, 0, 0))
        assert folder == tmp_test_dir / "all" / "Marmoset (abc)" / "2.0.0.0"

    def test_resolver_for(self, layout, tmp_test_dir):
        """Test that the resolver maps each root to its family folder."""
        resolve = layout.resolver_for("abc", "Marmoset")
        assert resolve(InstallRoot.CURRENT_USER_ROAMING_PROFILE) == tmp_test_dir / "roaming" / "Marmoset (abc)"
        assert resolve(InstallRoot.ALL_USERS) == tmp_test_dir / "all" / "Marmoset (abc)"
