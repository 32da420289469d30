"""
Obscura Share application settings using Pydantic Settings.

These settings describe how the process runs (where data lives, how it logs,
how remote probes behave). The shared-server configuration itself is owned by
the credential store and persisted as JSON next to the other share files.

Environment variables use OBSCURA_ prefix:
- OBSCURA_DATA_DIR (per-user data directory)
- OBSCURA_LOG_LEVEL, OBSCURA_LOG_FORMAT, OBSCURA_LOG_FILE
- OBSCURA_PROBE_MAX_RETRIES, OBSCURA_PROBE_RETRY_DELAY, OBSCURA_PROBE_TIMEOUT
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..paths import get_config_dir, get_data_dir


class LogSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="OBSCURA_LOG_",
        extra="ignore",
    )

    level: str = Field(
        default="INFO",
        description="Log level"
    )
    format: str = Field(
        default="console",
        description="Log format (json, console)"
    )
    file: Optional[str] = Field(
        default=None,
        description="Log file path"
    )

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator('format')
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v not in ("json", "console"):
            raise ValueError(f"Invalid log format: {v}. Must be json or console")
        return v


class ProbeSettings(BaseSettings):
    """Remote health probe settings."""

    model_config = SettingsConfigDict(
        env_prefix="OBSCURA_PROBE_",
        extra="ignore",
    )

    max_retries: int = Field(
        default=5,
        ge=1,
        description="Attempts before a remote library is reported unreachable"
    )
    retry_delay: float = Field(
        default=1.0,
        ge=0,
        description="Delay between attempts in seconds"
    )
    timeout: float = Field(
        default=3.0,
        gt=0,
        description="Per-request deadline in seconds"
    )


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from:
    1. Environment variables (OBSCURA_* prefix)
    2. YAML config file (config/obscura.yaml under the data directory)
    3. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="OBSCURA_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    data_dir: Optional[Path] = Field(
        default=None,
        description="Directory holding server-config.json, shared-users.json and audit-log.json"
    )
    log: LogSettings = Field(default_factory=LogSettings)
    probe: ProbeSettings = Field(default_factory=ProbeSettings)

    @classmethod
    def load_from_yaml(cls, config_file: Path) -> "Settings":
        """Load settings from YAML file with environment overrides."""
        data = {}

        if config_file.exists():
            with open(config_file, 'r') as f:
                data = yaml.safe_load(f) or {}

        settings_dict = {}

        if data.get('data_dir'):
            settings_dict['data_dir'] = Path(data['data_dir'])
        if 'log' in data:
            settings_dict['log'] = LogSettings(**data['log'])
        if 'probe' in data:
            settings_dict['probe'] = ProbeSettings(**data['probe'])

        return cls(**settings_dict)

    def resolve_data_dir(self) -> Path:
        """Get the directory the share files live in."""
        if self.data_dir is not None:
            return self.data_dir.expanduser()
        return get_data_dir()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached singleton).

    First attempts to load from config/obscura.yaml, then applies
    environment variable overrides.
    """
    config_file = get_config_dir() / "obscura.yaml"

    if config_file.exists():
        return Settings.load_from_yaml(config_file)

    return Settings()
