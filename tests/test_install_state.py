"""
Tests for rhiexec.install_state module.

Tests install-state resolution including:
- Version classification (older, same, newer, not installed)
- AllUsers-first precedence over the per-user root
- Per-user fallback when AllUsers has nothing
- The root that produced a state
- Label round-trips for persisted states
"""

from __future__ import annotations

from pathlib import Path

import pytest

from rhiexec.exceptions import InspectionError
from rhiexec.install_state import (
    InstallRoot,
    InstallState,
    compare_versions,
    resolve_install_state,
)
from rhiexec.versioning import Version

pytestmark = pytest.mark.unit

V2 = Version(2, 0, 0, 0)


@pytest.fixture
def roots(tmp_test_dir: Path) -> dict[InstallRoot, Path]:
    """Provide a family folder per install root (not created)."""
    return {
        InstallRoot.ALL_USERS: tmp_test_dir / "all" / "Pkg",
        InstallRoot.CURRENT_USER_LOCAL_PROFILE: tmp_test_dir / "local" / "Pkg",
        InstallRoot.CURRENT_USER_ROAMING_PROFILE: tmp_test_dir / "roaming" / "Pkg",
    }


@pytest.fixture
def resolver(roots):
    """Provide a resolver that records which roots were asked for."""
    calls: list[InstallRoot] = []

    def _resolve(root: InstallRoot) -> Path:
        calls.append(root)
        return roots[root]

    _resolve.calls = calls
    return _resolve


class TestCompareVersions:
    """Tests for compare_versions."""

    def test_not_installed(self):
        """Test that None means nothing installed."""
        assert compare_versions(V2, None) == InstallState.NOT_INSTALLED

    def test_older_same_newer(self):
        """Test the three installed relationships."""
        assert compare_versions(V2, Version(1, 0, 0, 0)) == InstallState.OLDER_VERSION_INSTALLED_ALL_USERS
        assert compare_versions(V2, Version(2, 0, 0, 0)) == InstallState.SAME_VERSION_INSTALLED_ALL_USERS
        assert compare_versions(V2, Version(3, 0, 0, 0)) == InstallState.NEWER_VERSION_INSTALLED_ALL_USERS

    def test_revision_difference_is_not_same(self):
        """Test that versions differing only in revision are not the same."""
        assert compare_versions(V2, Version(2, 0, 0, 1)) == InstallState.NEWER_VERSION_INSTALLED_ALL_USERS


class TestResolveInstallState:
    """Tests for resolve_install_state."""

    def test_all_users_older(self, roots, resolver, make_version_dirs):
        """Test an older version installed for all users."""
        make_version_dirs(roots[InstallRoot.ALL_USERS], "1.0.0.0")

        result = resolve_install_state(V2, InstallRoot.CURRENT_USER_ROAMING_PROFILE, resolver)

        assert result.state == InstallState.OLDER_VERSION_INSTALLED_ALL_USERS
        assert result.root is InstallRoot.ALL_USERS
        assert result.installed_version == Version(1, 0, 0, 0)
        assert result.is_installed

    def test_all_users_hit_skips_per_user_root(self, roots, resolver, make_version_dirs):
        """Test that the per-user root is never consulted after an AllUsers hit."""
        make_version_dirs(roots[InstallRoot.ALL_USERS], "2.0.0.0")
        make_version_dirs(roots[InstallRoot.CURRENT_USER_ROAMING_PROFILE], "9.0.0.0")

        result = resolve_install_state(V2, InstallRoot.CURRENT_USER_ROAMING_PROFILE, resolver)

        assert result.state == InstallState.SAME_VERSION_INSTALLED_ALL_USERS
        assert resolver.calls == [InstallRoot.ALL_USERS]

    def test_all_users_newer_wins_over_per_user(self, roots, resolver, make_version_dirs):
        """Test AllUsers precedence even when the per-user copy differs."""
        make_version_dirs(roots[InstallRoot.ALL_USERS], "3.0.0.0")
        make_version_dirs(roots[InstallRoot.CURRENT_USER_LOCAL_PROFILE], "1.0.0.0")

        result = resolve_install_state(V2, InstallRoot.CURRENT_USER_LOCAL_PROFILE, resolver)

        assert result.state == InstallState.NEWER_VERSION_INSTALLED_ALL_USERS
        assert result.root is InstallRoot.ALL_USERS

    def test_falls_back_to_preferred_per_user_root(self, roots, resolver, make_version_dirs):
        """Test that the preferred per-user root is checked when AllUsers is empty."""
        make_version_dirs(roots[InstallRoot.CURRENT_USER_ROAMING_PROFILE], "2.0.0.0")

        result = resolve_install_state(V2, InstallRoot.CURRENT_USER_ROAMING_PROFILE, resolver)

        assert result.state == InstallState.SAME_VERSION_INSTALLED_ALL_USERS
        assert result.root is InstallRoot.CURRENT_USER_ROAMING_PROFILE
        assert resolver.calls == [InstallRoot.ALL_USERS, InstallRoot.CURRENT_USER_ROAMING_PROFILE]

    def test_only_preferred_per_user_root_is_checked(self, roots, resolver, make_version_dirs):
        """Test that the other per-user root is ignored."""
        make_version_dirs(roots[InstallRoot.CURRENT_USER_LOCAL_PROFILE], "1.0.0.0")

        result = resolve_install_state(V2, InstallRoot.CURRENT_USER_ROAMING_PROFILE, resolver)

        assert result.state == InstallState.NOT_INSTALLED
        assert InstallRoot.CURRENT_USER_LOCAL_PROFILE not in resolver.calls

    def test_not_installed_anywhere(self, resolver):
        """Test that missing family folders mean not installed."""
        result = resolve_install_state(V2, InstallRoot.CURRENT_USER_LOCAL_PROFILE, resolver)

        assert result.state == InstallState.NOT_INSTALLED
        assert result.root is None
        assert result.installed_version is None
        assert not result.is_installed

    def test_all_users_preference_does_not_rescan(self, resolver):
        """Test that an AllUsers package only checks the AllUsers root."""
        result = resolve_install_state(V2, InstallRoot.ALL_USERS, resolver)

        assert result.state == InstallState.NOT_INSTALLED
        assert resolver.calls == [InstallRoot.ALL_USERS]

    def test_per_user_resolver_not_called_after_hit(self, roots, make_version_dirs):
        """Test that a per-user resolver failure cannot mask an AllUsers hit."""
        make_version_dirs(roots[InstallRoot.ALL_USERS], "1.0.0.0")

        def _resolve(root: InstallRoot) -> Path:
            if root.is_per_user:
                raise AssertionError("per-user root must not be resolved")
            return roots[root]

        result = resolve_install_state(V2, InstallRoot.CURRENT_USER_ROAMING_PROFILE, _resolve)
        assert result.root is InstallRoot.ALL_USERS

    def test_unreadable_folder_raises(self, roots, resolver, make_version_dirs, monkeypatch):
        """Test that a listing failure propagates as InspectionError."""
        make_version_dirs(roots[InstallRoot.ALL_USERS], "1.0.0.0")

        def _denied(self):
            raise PermissionError(13, "Access is denied", str(self))

        monkeypatch.setattr(Path, "iterdir", _denied)

        with pytest.raises(InspectionError):
            resolve_install_state(V2, InstallRoot.CURRENT_USER_ROAMING_PROFILE, resolver)

    def test_logs_decisions(self, roots, resolver, make_version_dirs, recording_logger):
        """Test that the resolution is logged under the STATE prefix."""
        make_version_dirs(roots[InstallRoot.ALL_USERS], "1.0.0.0")

        resolve_install_state(V2, InstallRoot.CURRENT_USER_ROAMING_PROFILE, resolver, logger=recording_logger)

        prefixes = {prefix for _, prefix, _ in recording_logger.records}
        assert "STATE" in prefixes
        assert any("Older version installed" in m for m in recording_logger.messages("debug"))


class TestLabels:
    """Tests for InstallRoot and InstallState labels."""

    def test_install_root_from_label_ignores_case(self):
        """Test case-insensitive root lookup."""
        assert InstallRoot.from_label("allusers") is InstallRoot.ALL_USERS
        assert InstallRoot.from_label(" CurrentUserLocalProfile ") is InstallRoot.CURRENT_USER_LOCAL_PROFILE

    def test_install_root_unknown_label_raises(self):
        """Test that unknown roots are refused."""
        with pytest.raises(ValueError):
            InstallRoot.from_label("Everywhere")

    def test_install_state_label_round_trip(self):
        """Test that every state survives label conversion."""
        for state in InstallState:
            assert InstallState.from_label(state.label) is state

    def test_install_state_unknown_label_falls_back(self):
        """Test that unrecognized persisted states read as UNKNOWN."""
        assert InstallState.from_label("Installed?") is InstallState.UNKNOWN
        assert InstallState.from_label(None) is InstallState.UNKNOWN
        assert InstallState.from_label("") is InstallState.UNKNOWN

    def test_state_precedence(self):
        """Test that installed states rank above NOT_INSTALLED."""
        assert InstallState.OLDER_VERSION_INSTALLED_ALL_USERS > InstallState.NOT_INSTALLED
        assert InstallState.NOT_INSTALLED > InstallState.UNKNOWN
