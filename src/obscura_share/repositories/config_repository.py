"""
Credential store for the shared server configuration.

Owns the single ServerConfig of this installation, including the host secret
that keys token encryption. Configuration problems never crash the process:
read and write failures are logged and defaults apply in memory.
"""

from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from ..core.logging import get_logger
from ..crypto import generate_host_secret, is_strong_secret
from ..errors import StorageError
from ..models.config import ServerConfig
from .base import JsonFileStore


logger = get_logger(__name__)

_ALIASES = frozenset(
    info.alias for info in ServerConfig.model_fields.values() if info.alias
)


def _alias_of(name: str) -> Optional[str]:
    info = ServerConfig.model_fields.get(name)
    return info.alias if info else None


class CredentialStore(JsonFileStore):
    """
    Store for the shared server configuration.

    Must be loaded before the user directory, since an invalid host secret
    is regenerated here and the directory decrypts tokens with it.
    """

    def __init__(self, config_file: Path):
        super().__init__(config_file)
        self._config = ServerConfig()
        self.loaded = False

    def _serialize(self) -> dict:
        return self._config.to_dict()

    async def load(self) -> ServerConfig:
        """
        Load the configuration from disk.

        Writes defaults on first run. A missing or short host secret is
        regenerated and persisted immediately; tokens encrypted under the
        old secret become unreadable.

        Returns:
            Copy of the loaded configuration
        """
        try:
            data = await self._read()
        except StorageError as e:
            logger.error("Failed to load server config", error=str(e), category="database")
            self._config = ServerConfig()
            self.loaded = True
            return self.get_config()

        if data is None:
            self._config = ServerConfig()
            await self._save()
            logger.info("Created default server config", file=str(self.path))
            self.loaded = True
            return self.get_config()

        try:
            if not isinstance(data, dict):
                raise ValueError("Server config must be a JSON object")

            updates = {
                key: value for key, value in data.items()
                if key in ServerConfig.model_fields or key in _ALIASES
            }
            updates = ServerConfig.normalize_updates(updates)

            if not is_strong_secret(updates.get("host_secret")):
                logger.warning("Regenerating host secret due to insufficient length")
                updates["host_secret"] = generate_host_secret()

            self._config = self._build_config(updates)
        except ValueError as e:
            logger.error("Invalid server config, using defaults", error=str(e), category="database")
            self._config = ServerConfig()

        # Persist any correction (new secret, dropped fields) right away
        await self._save()
        self.loaded = True
        logger.info("Loaded server config", port=self._config.port, enabled=self._config.is_enabled)
        return self.get_config()

    @staticmethod
    def _build_config(fields: dict[str, Any]) -> ServerConfig:
        """Build a config, falling back to defaults for fields that fail validation."""
        try:
            return ServerConfig(**fields)
        except ValidationError as e:
            invalid = {str(err["loc"][0]) for err in e.errors() if err["loc"]}
            logger.warning("Dropping invalid server config fields", fields=sorted(invalid))
            return ServerConfig(**{
                name: value for name, value in fields.items()
                if name not in invalid and _alias_of(name) not in invalid
            })

    @property
    def host_secret(self) -> str:
        return self._config.host_secret

    @property
    def audit_enabled(self) -> bool:
        return self._config.enable_audit_log

    def get_config(self) -> ServerConfig:
        """Get a copy of the current configuration."""
        return self._config.model_copy(deep=True)

    async def update_config(
        self,
        updates: Optional[Mapping[str, Any]] = None,
        **fields: Any
    ) -> ServerConfig:
        """
        Merge fields into the configuration and persist it.

        Args:
            updates: Partial configuration (field names or camelCase keys)
            **fields: Additional fields by name

        Returns:
            Copy of the updated configuration

        Raises:
            ValueError: If a key is unknown or a value is invalid
        """
        changes = ServerConfig.normalize_updates({**(updates or {}), **fields})
        data = self._config.model_dump()
        data.update(changes)
        self._config = ServerConfig(**data)

        await self._save()
        logger.info("Updated server config", fields=sorted(changes))
        return self.get_config()

    async def reset_host_secret(self) -> str:
        """
        Replace the host secret with a new random one.

        Callers should warn that previously encrypted tokens may no longer
        be readable.

        Returns:
            The new secret
        """
        secret = generate_host_secret()
        self._config = self._config.model_copy(update={"host_secret": secret})
        await self._save()
        logger.warning("Host secret reset; previously encrypted tokens may be unreadable")
        return secret
