"""
Centralized path management for Obscura Share.

All share state lives in the application's per-user data directory:

1. OBSCURA_HOME environment variable (if set)
2. %APPDATA%/obscura on Windows
3. ~/Library/Application Support/obscura on macOS
4. $XDG_DATA_HOME/obscura or ~/.local/share/obscura elsewhere
"""

import os
import sys
from pathlib import Path


APP_DIR_NAME = "obscura"

# Standard directory names
CONFIG_DIR = "config"

# Standard file names
SERVER_CONFIG_FILE = "server-config.json"
SHARED_USERS_FILE = "shared-users.json"
AUDIT_LOG_FILE = "audit-log.json"
CLIENT_CONFIG_FILE = "client-config.json"


def get_data_dir() -> Path:
    """Get the per-user data directory."""
    if env_home := os.getenv("OBSCURA_HOME"):
        return Path(env_home).expanduser()

    if sys.platform == "win32":
        base = Path(os.getenv("APPDATA") or Path.home() / "AppData" / "Roaming")
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.getenv("XDG_DATA_HOME") or Path.home() / ".local" / "share")

    return base / APP_DIR_NAME


def get_config_dir() -> Path:
    """Get the directory holding the optional obscura.yaml settings file."""
    return get_data_dir() / CONFIG_DIR


def get_server_config_file(data_dir: Path) -> Path:
    return data_dir / SERVER_CONFIG_FILE


def get_shared_users_file(data_dir: Path) -> Path:
    return data_dir / SHARED_USERS_FILE


def get_audit_log_file(data_dir: Path) -> Path:
    return data_dir / AUDIT_LOG_FILE


def get_client_config_file(data_dir: Path) -> Path:
    return data_dir / CLIENT_CONFIG_FILE
