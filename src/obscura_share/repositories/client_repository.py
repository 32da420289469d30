"""
Client-side store: this installation's identity token and the remote
libraries it connects to.
"""

import uuid
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ..core.logging import get_logger
from ..crypto import generate_user_token, get_hardware_id
from ..errors import StorageError
from ..models.base import utcnow
from ..models.remote import ClientConfig, RemoteLibraryConnection
from .base import JsonFileStore


logger = get_logger(__name__)


class ClientStore(JsonFileStore):
    """
    Store for the client configuration.

    The user token is generated on first use and never changes afterwards,
    so every host keeps seeing the same identity.
    """

    def __init__(self, config_file: Path):
        super().__init__(config_file)
        self._config = ClientConfig()

    def _serialize(self) -> dict:
        return self._config.to_dict()

    async def load(self) -> ClientConfig:
        """
        Load the client configuration, keeping defaults for anything missing.

        Returns:
            Copy of the loaded configuration
        """
        try:
            data = await self._read()
        except StorageError as e:
            logger.error("Failed to load client config", error=str(e), category="database")
            self._config = ClientConfig()
            return self.get_config()

        if data is None:
            self._config = ClientConfig()
            return self.get_config()

        try:
            self._config = ClientConfig.model_validate(data)
        except ValidationError as e:
            logger.error("Invalid client config, using defaults", error=str(e), category="database")
            self._config = ClientConfig()

        logger.info("Loaded client config", remotes=len(self._config.remote_libraries))
        return self.get_config()

    def get_config(self) -> ClientConfig:
        """Get a copy of the client configuration."""
        return self._config.model_copy(deep=True)

    async def get_user_token(self, hardware_id: Optional[str] = None) -> str:
        """
        Get this installation's user token, generating and saving it once.

        Args:
            hardware_id: Key for a newly generated token; read from the
                machine when not given
        """
        if self._config.my_user_token:
            return self._config.my_user_token

        token = generate_user_token(hardware_id or get_hardware_id())
        self._config = self._config.model_copy(update={"my_user_token": token})
        await self._save()
        logger.info("Generated user token for this installation")
        return token

    # Remote libraries

    def get_remotes(self) -> list[RemoteLibraryConnection]:
        """Get copies of every registered remote library."""
        return [remote.model_copy(deep=True) for remote in self._config.remote_libraries]

    def find_remote(self, key: str) -> Optional[RemoteLibraryConnection]:
        """Find a remote library by id or name."""
        for remote in self._config.remote_libraries:
            if remote.id == key or remote.name == key:
                return remote.model_copy(deep=True)
        return None

    async def add_remote(self, name: str, url: str, token: str) -> RemoteLibraryConnection:
        """
        Register a remote library.

        Raises:
            ValueError: If a library with the same URL is already registered
        """
        remote = RemoteLibraryConnection(
            id=str(uuid.uuid4()),
            name=name,
            url=url,
            token=token,
            last_connected_at=utcnow(),
        )
        if any(existing.url == remote.url for existing in self._config.remote_libraries):
            raise ValueError("This remote library is already registered")

        self._config.remote_libraries.append(remote)
        await self._save()
        logger.info("Added remote library", remote_id=remote.id, name=name)
        return remote.model_copy(deep=True)

    async def remove_remote(self, remote_id: str) -> bool:
        """
        Remove a remote library.

        Returns:
            True if a library was removed
        """
        remaining = [r for r in self._config.remote_libraries if r.id != remote_id]
        if len(remaining) == len(self._config.remote_libraries):
            return False

        self._config.remote_libraries = remaining
        await self._save()
        logger.info("Removed remote library", remote_id=remote_id)
        return True

    async def mark_connected(self, remote_id: str, working_url: str) -> Optional[RemoteLibraryConnection]:
        """
        Record a successful connection.

        The stored URL is replaced by the one that answered, so a protocol
        switch found by the health check sticks.
        """
        for index, remote in enumerate(self._config.remote_libraries):
            if remote.id == remote_id:
                updated = RemoteLibraryConnection(**{
                    **remote.model_dump(),
                    "url": working_url,
                    "last_connected_at": utcnow(),
                })
                self._config.remote_libraries[index] = updated
                await self._save()
                return updated.model_copy(deep=True)
        return None
