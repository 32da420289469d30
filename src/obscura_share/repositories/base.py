"""
Base class for stores persisted as a single JSON file.

The in-memory state is authoritative and the file is a write-through copy,
rewritten wholesale on every mutation. Writes to one file are serialized with
a per-store lock, and each write snapshots the state only once it holds the
lock, so the last write to land always carries the latest state.
"""

import asyncio
import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from ..core.logging import get_logger
from ..errors import StorageError


logger = get_logger(__name__)


class JsonFileStore(ABC):
    """
    Abstract JSON-file store.

    Subclasses own their in-memory state and describe how to serialize it.
    """

    def __init__(self, path: Path):
        """
        Initialize the store.

        Args:
            path: File the store persists to
        """
        self.path = path
        self._write_lock = asyncio.Lock()

    @abstractmethod
    def _serialize(self) -> Any:
        """Return the JSON-compatible payload for the current state."""

    def _read_sync(self) -> Optional[Any]:
        if not self.path.exists():
            return None
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to read {self.path}: {e}") from e

    def _write_sync(self, payload: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_name(self.path.name + ".tmp")
            tmp_path.write_text(payload, encoding="utf-8")

            # Restrict permissions before the file becomes visible
            if os.name != 'nt':
                os.chmod(tmp_path, 0o600)

            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageError(f"Failed to write {self.path}: {e}") from e

    async def _read(self) -> Optional[Any]:
        """
        Read and parse the file.

        Returns:
            Parsed JSON, or None if the file does not exist

        Raises:
            StorageError: If the file exists but cannot be read or parsed
        """
        return await asyncio.to_thread(self._read_sync)

    async def _save(self) -> bool:
        """
        Persist the current state.

        Failures are logged and the in-memory state is kept.

        Returns:
            True if the file was written
        """
        async with self._write_lock:
            try:
                payload = json.dumps(self._serialize(), indent=2, ensure_ascii=False)
                await asyncio.to_thread(self._write_sync, payload)
            except StorageError as e:
                logger.error("Failed to save store", file=str(self.path), error=str(e), category="database")
                return False
        return True
