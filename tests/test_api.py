"""
Tests for the FastAPI REST API endpoints.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from obscura_share import __version__
from obscura_share.api.app import create_app
from obscura_share.models.user import Permission
from obscura_share.share import SharedLibrary


async def _prepare(share: SharedLibrary):
    await share.initialize()
    reader = await share.users.enroll("alice", icon_url="http://alice/icon.png")
    downloader = await share.users.enroll("bob", permissions=[Permission.DOWNLOAD])
    return reader, downloader


@pytest.fixture
def share(tmp_path):
    """Create a shared library on disk."""
    return SharedLibrary(tmp_path)


@pytest.fixture
def users(share):
    """Enroll a read-only user and a download-only user."""
    return asyncio.run(_prepare(share))


@pytest.fixture
def client(share, users):
    """Create test client."""
    with TestClient(create_app(share)) as test_client:
        yield test_client


def _headers(user) -> dict:
    return {"Authorization": f"Bearer {user.access_token}", "X-User-Token": user.user_token}


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_health_check(self, client):
        """Test the health check needs no credentials."""
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["version"] == __version__
        assert "serverTime" in data


class TestProfileEndpoint:
    """Tests for the authenticated profile endpoint."""

    def test_requires_tokens(self, client):
        """Test requests without tokens get a 401 error body."""
        response = client.get("/api/profile")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_TOKEN"

    def test_header_auth(self, client, users):
        """Test header credentials return the caller's profile."""
        reader, _ = users
        response = client.get("/api/profile", headers=_headers(reader))

        assert response.status_code == 200
        assert response.json() == {
            "id": reader.id,
            "nickname": "alice",
            "iconUrl": "http://alice/icon.png",
            "permissions": ["READ_ONLY"],
        }

    def test_query_auth(self, client, users):
        """Test query-string credentials for clients that can't set headers."""
        reader, _ = users
        response = client.get(
            "/api/profile",
            params={"accessToken": reader.access_token, "userToken": reader.user_token},
        )
        assert response.status_code == 200
        assert response.json()["id"] == reader.id

    def test_wrong_token(self, client, users):
        """Test a mismatched pair is rejected."""
        reader, _ = users
        response = client.get(
            "/api/profile",
            headers={"Authorization": "Bearer " + "0" * 64, "X-User-Token": reader.user_token},
        )
        assert response.status_code == 401

    def test_insufficient_permission(self, client, users, share):
        """Test a user without READ_ONLY is refused and audited."""
        _, downloader = users
        response = client.get("/api/profile", headers=_headers(downloader))

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "INSUFFICIENT_PERMISSION"
        assert share.audit.get_logs(1)[0].action == "permission_denied"

    def test_last_access_recorded(self, client, users, share):
        """Test a successful request updates the user's last access."""
        reader, _ = users
        client.get("/api/profile", headers=_headers(reader))

        assert share.users.get_user_by_id(reader.id).ip_address == "testclient"


class TestProfileUpdate:
    """Tests for updating the caller's own profile."""

    def test_update_nickname_and_icon(self, client, users, share):
        """Test both fields are stored and the change is audited."""
        reader, _ = users
        response = client.put(
            "/api/profile",
            headers=_headers(reader),
            json={"nickname": "alice2", "iconUrl": "http://alice/new.png"},
        )

        assert response.status_code == 200
        assert response.json()["success"] is True

        stored = share.users.get_user_by_id(reader.id)
        assert stored.nickname == "alice2"
        assert stored.icon_url == "http://alice/new.png"

        entry = share.audit.get_logs(1)[0]
        assert entry.action == "profile_update"
        assert entry.resource_type == "user"
        assert entry.nickname == "alice2"
        assert entry.details == {"nickname": "alice2", "iconUrl": "http://alice/new.png", "userId": reader.id}

    def test_partial_update_keeps_other_fields(self, client, users, share):
        """Test omitted fields are left alone."""
        reader, _ = users
        response = client.put("/api/profile", headers=_headers(reader), json={"nickname": "ally"})

        assert response.status_code == 200
        stored = share.users.get_user_by_id(reader.id)
        assert stored.nickname == "ally"
        assert stored.icon_url == "http://alice/icon.png"

    def test_update_visible_in_profile(self, client, users):
        """Test the new nickname is returned by the next GET."""
        reader, _ = users
        client.put("/api/profile", headers=_headers(reader), json={"nickname": "renamed"})

        assert client.get("/api/profile", headers=_headers(reader)).json()["nickname"] == "renamed"

    def test_nickname_too_long(self, client, users, share):
        """Test a nickname over 50 characters is refused."""
        reader, _ = users
        response = client.put("/api/profile", headers=_headers(reader), json={"nickname": "x" * 51})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_INPUT"
        assert share.users.get_user_by_id(reader.id).nickname == "alice"

    def test_nickname_at_limit(self, client, users, share):
        """Test a 50-character nickname is accepted."""
        reader, _ = users
        response = client.put("/api/profile", headers=_headers(reader), json={"nickname": "x" * 50})

        assert response.status_code == 200
        assert share.users.get_user_by_id(reader.id).nickname == "x" * 50

    @pytest.mark.parametrize("nickname", [42, None, ["alice"]])
    def test_nickname_not_a_string(self, client, users, nickname):
        """Test non-string nicknames are refused."""
        reader, _ = users
        response = client.put("/api/profile", headers=_headers(reader), json={"nickname": nickname})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_INPUT"

    def test_requires_tokens(self, client):
        """Test updates without tokens get a 401."""
        response = client.put("/api/profile", json={"nickname": "mallory"})
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_TOKEN"

    def test_requires_read_only(self, client, users, share):
        """Test a user without READ_ONLY can't change their profile."""
        _, downloader = users
        response = client.put("/api/profile", headers=_headers(downloader), json={"nickname": "bobby"})

        assert response.status_code == 403
        assert share.users.get_user_by_id(downloader.id).nickname == "bob"


class TestIpAllowlist:
    """Tests for the IP allowlist."""

    def test_address_not_allowed(self, share, users):
        """Test clients outside the allowlist get a 403."""
        reader, _ = users
        asyncio.run(share.config.update_config(allowed_ips=["10.0.0.1"]))

        with TestClient(create_app(share)) as client:
            response = client.get("/api/profile", headers=_headers(reader))

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"
