"""
Shared server configuration model.
"""

from typing import Optional

from pydantic import Field, field_validator

from ..crypto import generate_host_secret
from .base import ShareModel


DEFAULT_PORT = 8765


class ServerConfig(ShareModel):
    """
    Configuration of the library-sharing server.

    One instance per installation, owned by the credential store.
    """

    is_enabled: bool = Field(
        default=False,
        description="Whether the sharing server should run"
    )
    port: int = Field(
        default=DEFAULT_PORT,
        ge=1,
        le=65535,
        description="Port the sharing server listens on"
    )
    host_secret: str = Field(
        default_factory=generate_host_secret,
        description="Hex secret used to encrypt tokens at rest"
    )
    allowed_ips: list[str] = Field(
        default_factory=list,
        alias="allowedIPs",
        description="Client addresses allowed to connect (empty = any)"
    )
    max_connections: int = Field(
        default=10,
        ge=1,
        description="Maximum concurrent connections"
    )
    max_upload_size: int = Field(
        default=5120,
        ge=0,
        description="Maximum upload size in MB"
    )
    max_upload_rate: float = Field(
        default=10,
        ge=0,
        description="Upload rate limit in MB/s (0 = unlimited)"
    )
    enable_audit_log: bool = Field(
        default=True,
        description="Record security-relevant actions"
    )
    require_https: bool = Field(
        default=False,
        description="Only serve over HTTPS"
    )
    ssl_cert_path: Optional[str] = Field(
        default=None,
        description="Certificate file handed to the HTTPS server"
    )
    ssl_key_path: Optional[str] = Field(
        default=None,
        description="Private key file handed to the HTTPS server"
    )
    publish_library_path: Optional[str] = Field(
        default=None,
        description="Library exposed to remote users"
    )

    @field_validator('allowed_ips')
    @classmethod
    def dedupe_ips(cls, v: list[str]) -> list[str]:
        """Treat the allowlist as a set while keeping its order."""
        return list(dict.fromkeys(ip.strip() for ip in v if ip and ip.strip()))
