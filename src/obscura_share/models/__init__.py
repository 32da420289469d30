"""
Obscura Share Domain Models

Strongly typed Pydantic models for the shared library.
"""

from .base import ShareModel, utcnow
from .config import ServerConfig
from .user import (
    Permission,
    ALL_PERMISSIONS,
    SharedUserCreate,
    SharedUser,
    ProfileUpdate,
    toggle_permission,
    has_permission,
)
from .audit import AuditEvent, AuditLogEntry
from .remote import (
    ClientConfig,
    RemoteLibraryConnection,
    TokenPair,
    parse_remote_token,
)

__all__ = [
    "ShareModel",
    "utcnow",
    # Config
    "ServerConfig",
    # User models
    "Permission",
    "ALL_PERMISSIONS",
    "SharedUserCreate",
    "SharedUser",
    "ProfileUpdate",
    "toggle_permission",
    "has_permission",
    # Audit models
    "AuditEvent",
    "AuditLogEntry",
    # Client models
    "ClientConfig",
    "RemoteLibraryConnection",
    "TokenPair",
    "parse_remote_token",
]
