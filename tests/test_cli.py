"""Tests for the command line interface."""

import json
import re
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from obscura_share import __version__
from obscura_share.cli import app
from obscura_share.core.config import get_settings


runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_home(monkeypatch, tmp_path):
    """Point the data directory at a temp dir and reset cached settings."""
    monkeypatch.setenv("OBSCURA_HOME", str(tmp_path))
    monkeypatch.delenv("OBSCURA_DATA_DIR", raising=False)
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()


def _user_token(output: str) -> str:
    return re.search(r"\d+\.[0-9a-f]{32}\.[0-9a-f]{64}", output).group(0)


def _users(home) -> list:
    return json.loads((home / "shared-users.json").read_text())


class TestCli:
    """Tests for the CLI commands."""

    def test_version(self):
        """Test --version prints the version."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_config_show_creates_defaults(self, isolated_home):
        """Test showing the config writes the default file."""
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "8765" in result.output
        assert (isolated_home / "server-config.json").exists()

    def test_set_port(self, isolated_home):
        """Test changing the port."""
        result = runner.invoke(app, ["config", "set-port", "9100"])
        assert result.exit_code == 0
        assert json.loads((isolated_home / "server-config.json").read_text())["port"] == 9100

    def test_set_port_out_of_range(self):
        """Test invalid ports are refused by the CLI."""
        result = runner.invoke(app, ["config", "set-port", "70000"])
        assert result.exit_code != 0

    def test_audit_toggle(self, isolated_home):
        """Test turning auditing off."""
        result = runner.invoke(app, ["config", "audit", "off"])
        assert result.exit_code == 0
        assert json.loads((isolated_home / "server-config.json").read_text())["enableAuditLog"] is False

    def test_allow_ip(self, isolated_home):
        """Test replacing and clearing the allowlist."""
        runner.invoke(app, ["config", "allow-ip", "10.0.0.1", "10.0.0.2"])
        assert json.loads((isolated_home / "server-config.json").read_text())["allowedIPs"] == ["10.0.0.1", "10.0.0.2"]

        runner.invoke(app, ["config", "allow-ip"])
        assert json.loads((isolated_home / "server-config.json").read_text())["allowedIPs"] == []

    def test_reset_secret(self, isolated_home):
        """Test resetting the host secret with confirmation skipped."""
        runner.invoke(app, ["config", "show"])
        before = json.loads((isolated_home / "server-config.json").read_text())["hostSecret"]

        result = runner.invoke(app, ["config", "reset-secret", "--yes"])

        assert result.exit_code == 0
        assert json.loads((isolated_home / "server-config.json").read_text())["hostSecret"] != before

    def test_user_lifecycle(self, isolated_home):
        """Test adding, toggling, disabling and removing a user."""
        result = runner.invoke(app, ["user", "add", "alice", "-p", "DOWNLOAD"])
        assert result.exit_code == 0
        user_id = _users(isolated_home)[0]["id"]
        assert _users(isolated_home)[0]["permissions"] == ["DOWNLOAD"]

        result = runner.invoke(app, ["user", "toggle", user_id, "FULL"])
        assert result.exit_code == 0
        assert "FULL" in _users(isolated_home)[0]["permissions"]

        result = runner.invoke(app, ["user", "disable", user_id])
        assert result.exit_code == 0
        assert _users(isolated_home)[0]["isActive"] is False

        result = runner.invoke(app, ["user", "list"])
        assert "alice" in result.output

        result = runner.invoke(app, ["user", "remove", user_id])
        assert result.exit_code == 0
        assert _users(isolated_home) == []

    def test_unknown_user(self):
        """Test commands on a missing user exit with an error."""
        assert runner.invoke(app, ["user", "remove", "nope"]).exit_code == 1
        assert runner.invoke(app, ["user", "enable", "nope"]).exit_code == 1

    def test_data_dir_option(self, tmp_path):
        """Test --data-dir overrides the default location."""
        other = tmp_path / "elsewhere"
        result = runner.invoke(app, ["user", "add", "carol", "--data-dir", str(other)])
        assert result.exit_code == 0
        assert (other / "shared-users.json").exists()

    def test_audit_clear(self, isolated_home):
        """Test clearing the audit log."""
        result = runner.invoke(app, ["audit", "clear", "--yes"])
        assert result.exit_code == 0
        assert json.loads((isolated_home / "audit-log.json").read_text()) == []

        result = runner.invoke(app, ["audit", "list"])
        assert "No audit entries" in result.output

    def test_probe_unreachable(self):
        """Test probing an unreachable host exits with an error."""
        result = runner.invoke(app, ["probe", "http://127.0.0.1:1", "u:a", "--retries", "1", "--delay", "0"])
        assert result.exit_code == 1
        assert "Could not connect" in result.output

    def test_https_keeps_unset_paths(self, isolated_home):
        """Test changing one HTTPS option leaves the others alone."""
        result = runner.invoke(app, ["config", "https", "--cert", "c.pem", "--key", "k.pem"])
        assert result.exit_code == 0

        result = runner.invoke(app, ["config", "https", "--require"])
        assert result.exit_code == 0

        stored = json.loads((isolated_home / "server-config.json").read_text())
        assert stored["sslCertPath"] == "c.pem"
        assert stored["sslKeyPath"] == "k.pem"
        assert stored["requireHttps"] is True

        runner.invoke(app, ["config", "https", "--key", "other.pem"])
        stored = json.loads((isolated_home / "server-config.json").read_text())
        assert stored["sslCertPath"] == "c.pem"
        assert stored["sslKeyPath"] == "other.pem"
        assert stored["requireHttps"] is True

    def test_user_add_prints_combined_token(self, isolated_home):
        """Test the printed token is the 'user:access' pair that was stored."""
        result = runner.invoke(app, ["user", "add", "dave", "--user-token", "ab" * 16])
        assert result.exit_code == 0
        assert ("ab" * 16) + ":" in result.output


class TestClientCommands:
    """Tests for this installation's identity and remote libraries."""

    def test_token_is_stable(self, isolated_home):
        """Test the user token is generated once and reused."""
        first = runner.invoke(app, ["token"])
        second = runner.invoke(app, ["token"])

        assert first.exit_code == 0
        assert _user_token(first.output) == _user_token(second.output)
        stored = json.loads((isolated_home / "client-config.json").read_text())
        assert stored["myUserToken"] == _user_token(first.output)

    def test_remote_lifecycle(self, isolated_home):
        """Test adding, listing and removing a remote library."""
        result = runner.invoke(app, ["remote", "add", "friend", "https://friend:8765", "u:a"])
        assert result.exit_code == 0

        remote_id = json.loads((isolated_home / "client-config.json").read_text())["remoteLibraries"][0]["id"]
        assert remote_id in result.output

        result = runner.invoke(app, ["remote", "list"])
        assert "friend" in result.output

        result = runner.invoke(app, ["remote", "add", "again", "https://friend:8765", "u:b"])
        assert result.exit_code == 1

        result = runner.invoke(app, ["remote", "remove", remote_id])
        assert result.exit_code == 0
        assert runner.invoke(app, ["remote", "remove", remote_id]).exit_code == 1
        assert "No remote libraries" in runner.invoke(app, ["remote", "list"]).output

    def test_check_registered_remote(self, isolated_home):
        """Test a registered remote is checked with the stored user token and marked connected."""
        runner.invoke(app, ["remote", "add", "friend", "https://friend:8765", "access-only"])
        before = json.loads((isolated_home / "client-config.json").read_text())["remoteLibraries"][0]
        my_token = _user_token(runner.invoke(app, ["token"]).output)

        checker = AsyncMock(return_value="http://friend:8765")
        with patch("obscura_share.commands.remote.probe_health", checker):
            result = runner.invoke(app, ["probe", "friend", "--retries", "1"])

        assert result.exit_code == 0
        remote, user_token = checker.call_args.args
        assert remote.id == before["id"]
        assert remote.token == "access-only"
        assert user_token == my_token

        after = json.loads((isolated_home / "client-config.json").read_text())["remoteLibraries"][0]
        assert after["url"] == "http://friend:8765"
        assert after["id"] == before["id"]

    def test_unregistered_target_needs_token(self):
        """Test a target that isn't registered must come with a token."""
        result = runner.invoke(app, ["probe", "nobody"])
        assert result.exit_code == 2
