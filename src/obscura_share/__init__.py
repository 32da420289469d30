"""
Obscura Share - Secure remote sharing for the Obscura media library

Lets one installation expose its library to other installations:
- Server configuration with an encrypted-at-rest host secret
- Directory of shared users with token-pair authentication and permissions
- Audit log of security-relevant actions
- Client-side health probing of remote libraries
"""

__version__ = "1.0.0"

from .share import SharedLibrary
from .repositories import AuditLog, CredentialStore, UserDirectory
from .models import (
    AuditEvent,
    AuditLogEntry,
    Permission,
    RemoteLibraryConnection,
    ServerConfig,
    SharedUser,
    SharedUserCreate,
)
from .client import HealthProber, probe_health

__all__ = [
    "SharedLibrary",
    "CredentialStore",
    "UserDirectory",
    "AuditLog",
    "AuditEvent",
    "AuditLogEntry",
    "Permission",
    "RemoteLibraryConnection",
    "ServerConfig",
    "SharedUser",
    "SharedUserCreate",
    "HealthProber",
    "probe_health",
]
