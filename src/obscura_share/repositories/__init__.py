"""
Obscura Share Repositories

JSON-file stores for the server configuration, shared users and audit log.
"""

from .base import JsonFileStore
from .config_repository import CredentialStore
from .user_repository import UserDirectory
from .audit_repository import AuditLog, MAX_ENTRIES, RETENTION
from .client_repository import ClientStore

__all__ = [
    "JsonFileStore",
    "CredentialStore",
    "UserDirectory",
    "AuditLog",
    "MAX_ENTRIES",
    "RETENTION",
    "ClientStore",
]
