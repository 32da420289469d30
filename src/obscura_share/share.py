"""
Owner of the shared-library stores.

One SharedLibrary is created at application startup, initialized once, and
injected into the HTTP layer and the CLI.
"""

from pathlib import Path
from typing import Optional

from .core.config import Settings, get_settings
from .core.logging import get_logger
from .paths import (
    get_audit_log_file,
    get_client_config_file,
    get_server_config_file,
    get_shared_users_file,
)
from .repositories import AuditLog, ClientStore, CredentialStore, UserDirectory


logger = get_logger(__name__)


class SharedLibrary:
    """Config, user directory, audit log and client settings of one installation."""

    def __init__(self, data_dir: Path):
        """
        Initialize the stores.

        Args:
            data_dir: Directory holding the share files
        """
        self.data_dir = data_dir
        self.config = CredentialStore(get_server_config_file(data_dir))
        self.users = UserDirectory(get_shared_users_file(data_dir), self.config)
        self.audit = AuditLog(get_audit_log_file(data_dir), self.config)
        self.client = ClientStore(get_client_config_file(data_dir))
        self._initialized = False

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SharedLibrary":
        settings = settings or get_settings()
        return cls(settings.resolve_data_dir())

    async def initialize(self) -> None:
        """
        Load every store.

        The config loads first so a regenerated host secret is in place
        before any token is decrypted.
        """
        if self._initialized:
            return

        await self.config.load()
        await self.users.load()
        await self.audit.load()
        await self.client.load()
        self._initialized = True
        logger.info("Shared library initialized", data_dir=str(self.data_dir))
