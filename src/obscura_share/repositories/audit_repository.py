"""
Append-only audit log of security-relevant actions.
"""

import uuid
from datetime import timedelta
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ..core.logging import get_logger
from ..errors import StorageError
from ..models.audit import AuditEvent, AuditLogEntry
from ..models.base import utcnow
from .base import JsonFileStore
from .config_repository import CredentialStore


logger = get_logger(__name__)


MAX_ENTRIES = 10_000
RETENTION = timedelta(days=90)


class AuditLog(JsonFileStore):
    """
    Audit log store.

    Entries older than the retention period are dropped once, when the log
    is loaded; entries that age out while the process runs stay visible
    until the next start. The log never holds more than MAX_ENTRIES.
    """

    def __init__(self, log_file: Path, config_store: CredentialStore):
        super().__init__(log_file)
        self._config_store = config_store
        self._entries: list[AuditLogEntry] = []

    def _serialize(self) -> list[dict]:
        return [entry.to_dict() for entry in self._entries]

    async def load(self) -> int:
        """
        Load the log from disk, pruning expired entries.

        Returns:
            Number of entries kept
        """
        try:
            data = await self._read()
        except StorageError as e:
            logger.error("Failed to load audit logs", error=str(e), category="database")
            self._entries = []
            return 0

        if not isinstance(data, list):
            if data is not None:
                logger.error("Audit log file is not a list, ignoring it", category="database")
            self._entries = []
            return 0

        cutoff = utcnow() - RETENTION
        entries = []
        for record in data:
            try:
                entry = AuditLogEntry.model_validate(record)
            except ValidationError:
                continue
            if entry.timestamp > cutoff:
                entries.append(entry)

        self._entries = entries[-MAX_ENTRIES:]
        pruned = len(data) - len(self._entries)
        logger.info("Loaded audit logs", count=len(self._entries), pruned=pruned)
        return len(self._entries)

    def count(self) -> int:
        """Number of entries currently held."""
        return len(self._entries)

    async def add_log(self, event: AuditEvent) -> Optional[AuditLogEntry]:
        """
        Record an event.

        Does nothing when auditing is disabled in the server config.

        Returns:
            The stored entry, or None if auditing is disabled
        """
        if not self._config_store.audit_enabled:
            return None

        entry = AuditLogEntry(
            **event.model_dump(),
            id=str(uuid.uuid4()),
            timestamp=utcnow(),
        )
        self._entries.append(entry)

        if len(self._entries) > MAX_ENTRIES:
            self._entries = self._entries[-MAX_ENTRIES:]

        await self._save()
        return entry.model_copy(deep=True)

    def get_logs(self, limit: int = 100) -> list[AuditLogEntry]:
        """Get up to ``limit`` most recent entries, newest first."""
        if limit <= 0:
            return []
        return [entry.model_copy(deep=True) for entry in reversed(self._entries[-limit:])]

    def get_logs_by_user(self, user_id: str, limit: int = 100) -> list[AuditLogEntry]:
        """Get up to ``limit`` most recent entries for one user, newest first."""
        if limit <= 0:
            return []
        matching = [entry for entry in self._entries if entry.user_id == user_id]
        return [entry.model_copy(deep=True) for entry in reversed(matching[-limit:])]

    async def clear_logs(self) -> None:
        """Remove every entry."""
        self._entries = []
        await self._save()
        logger.info("Cleared audit logs")
