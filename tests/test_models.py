"""
Tests for Pydantic models and the permission lattice.
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from obscura_share.models.audit import AuditEvent
from obscura_share.models.config import ServerConfig
from obscura_share.models.remote import RemoteLibraryConnection, parse_remote_token
from obscura_share.models.user import (
    ALL_PERMISSIONS,
    Permission,
    SharedUser,
    has_permission,
    toggle_permission,
)


class TestPermissions:
    """Tests for permission toggling and checks."""

    def test_toggle_full_on_grants_all(self):
        """Test turning FULL on grants every permission."""
        assert toggle_permission([Permission.READ_ONLY], Permission.FULL) == list(ALL_PERMISSIONS)

    def test_toggle_full_off_keeps_others(self):
        """Test turning FULL off removes only FULL."""
        result = toggle_permission(list(ALL_PERMISSIONS), Permission.FULL)
        assert result == [Permission.READ_ONLY, Permission.DOWNLOAD, Permission.UPLOAD, Permission.EDIT]

    def test_toggle_other_off_drops_full(self):
        """Test removing any permission also removes FULL."""
        result = toggle_permission(list(ALL_PERMISSIONS), Permission.UPLOAD)
        assert Permission.FULL not in result
        assert Permission.UPLOAD not in result
        assert Permission.EDIT in result

    def test_toggle_other_on(self):
        """Test adding a permission leaves the rest alone."""
        result = toggle_permission([Permission.READ_ONLY], Permission.EDIT)
        assert result == [Permission.READ_ONLY, Permission.EDIT]

    def test_toggle_accepts_strings(self):
        """Test raw values are coerced to permissions."""
        assert toggle_permission(["READ_ONLY"], "DOWNLOAD") == [Permission.READ_ONLY, Permission.DOWNLOAD]

    def test_has_permission(self):
        """Test any one required permission suffices."""
        assert has_permission([Permission.DOWNLOAD], Permission.READ_ONLY, Permission.DOWNLOAD)
        assert not has_permission([Permission.DOWNLOAD], Permission.EDIT)
        assert not has_permission([], Permission.READ_ONLY)

    def test_full_passes_everything(self):
        """Test FULL satisfies any requirement."""
        assert has_permission([Permission.FULL], Permission.EDIT)
        assert has_permission([Permission.FULL])


class TestSharedUserModel:
    """Tests for the shared user model."""

    def test_camel_case_input(self):
        """Test on-disk camelCase keys are accepted."""
        user = SharedUser.model_validate({
            "id": "u1",
            "userToken": "ut",
            "accessToken": "at",
            "isActive": False,
            "lastAccessAt": "2024-05-01T12:00:00Z",
        })
        assert user.user_token == "ut"
        assert user.is_active is False
        assert user.last_access_at == datetime(2024, 5, 1, 12, tzinfo=timezone.utc)

    def test_to_dict_uses_aliases(self):
        """Test serialization writes camelCase keys."""
        data = SharedUser(id="u1", user_token="ut", access_token="at").to_dict()
        assert data["userToken"] == "ut"
        assert data["permissions"] == ["READ_ONLY"]
        assert "user_token" not in data

    def test_permissions_deduplicated(self):
        """Test the permission list behaves as a set."""
        user = SharedUser(
            id="u1", user_token="ut", access_token="at",
            permissions=["DOWNLOAD", "DOWNLOAD", "READ_ONLY"],
        )
        assert user.permissions == [Permission.DOWNLOAD, Permission.READ_ONLY]

    def test_tokens_required(self):
        """Test empty tokens are rejected."""
        with pytest.raises(ValidationError):
            SharedUser(id="u1", user_token="", access_token="at")

    def test_unknown_permission(self):
        """Test unknown permission values are rejected."""
        with pytest.raises(ValidationError):
            SharedUser(id="u1", user_token="ut", access_token="at", permissions=["ADMIN"])

    def test_normalize_updates(self):
        """Test updates map aliases to field names and reject unknown keys."""
        assert SharedUser.normalize_updates({"isActive": False, "nickname": "x"}) == {
            "is_active": False,
            "nickname": "x",
        }
        with pytest.raises(ValueError):
            SharedUser.normalize_updates({"password": "x"})


class TestServerConfigModel:
    """Tests for the server config model."""

    def test_defaults(self):
        """Test default values."""
        config = ServerConfig()
        assert config.port == 8765
        assert config.max_connections == 10
        assert config.max_upload_size == 5120
        assert config.allowed_ips == []
        assert len(config.host_secret) == 64

    def test_allowed_ips_alias(self):
        """Test the allowlist uses the allowedIPs key."""
        config = ServerConfig.model_validate({"allowedIPs": ["10.0.0.1", " 10.0.0.1 ", ""]})
        assert config.allowed_ips == ["10.0.0.1"]
        assert "allowedIPs" in config.to_dict()

    def test_port_range(self):
        """Test out-of-range ports are rejected."""
        with pytest.raises(ValidationError):
            ServerConfig(port=0)
        with pytest.raises(ValidationError):
            ServerConfig(port=65536)


class TestAuditEventModel:
    """Tests for audit events."""

    def test_defaults(self):
        """Test unidentified callers are recorded as unknown."""
        event = AuditEvent(action="auth_failed")
        assert event.user_id == "unknown"
        assert event.ip_address == "unknown"
        assert event.success is True

    def test_action_required(self):
        """Test an event needs an action."""
        with pytest.raises(ValidationError):
            AuditEvent()


class TestRemoteModels:
    """Tests for the remote connection models."""

    def test_url_trailing_slash_stripped(self):
        """Test registered URLs are normalized."""
        remote = RemoteLibraryConnection(url="https://host:8765/", token="t")
        assert remote.url == "https://host:8765"

    def test_parse_combined_token(self):
        """Test 'user:access' tokens are split on the first colon."""
        pair = parse_remote_token(" user : access:with:colons", "fallback")
        assert pair.user_token == "user"
        assert pair.access_token == "access:with:colons"

    def test_parse_bare_token(self):
        """Test bare access tokens use the fallback user token."""
        pair = parse_remote_token("access", "mine")
        assert pair.user_token == "mine"
        assert pair.access_token == "access"

    def test_auth_headers(self):
        """Test the headers presented to a remote host."""
        pair = parse_remote_token("u:a", "")
        assert pair.auth_headers() == {"Authorization": "Bearer a", "X-User-Token": "u"}
        assert pair.combined() == "u:a"
