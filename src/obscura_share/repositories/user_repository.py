"""
User directory for shared-library access.

Keeps the list of remote identities allowed to use this installation's
library. Tokens are encrypted at rest with the host secret when it is strong
enough; with a weak secret they are written in plaintext so older
installations keep working. That fallback is a compatibility trade-off.
"""

import secrets
import uuid
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from pydantic import ValidationError

from ..core.logging import get_logger
from ..crypto import (
    decrypt,
    encrypt,
    generate_access_token,
    is_strong_secret,
    is_triplet,
)
from ..errors import StorageError
from ..models.base import utcnow
from ..models.user import (
    Permission,
    SharedUser,
    SharedUserCreate,
    toggle_permission,
)
from .base import JsonFileStore
from .config_repository import CredentialStore


logger = get_logger(__name__)

_TOKEN_FIELDS = ("userToken", "accessToken")
_IMMUTABLE_FIELDS = frozenset({"id", "created_at"})


def _tokens_equal(a: str, b: str) -> bool:
    return secrets.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


class UserDirectory(JsonFileStore):
    """
    Directory of shared users.

    Lookups are linear scans over the in-memory list, which is fine for
    the tens to low hundreds of users a library is shared with.
    """

    def __init__(self, users_file: Path, config_store: CredentialStore):
        """
        Initialize the user directory.

        Args:
            users_file: Path to the shared users file
            config_store: Source of the host secret
        """
        super().__init__(users_file)
        self._config_store = config_store
        self._users: list[SharedUser] = []

    @property
    def can_encrypt(self) -> bool:
        """Whether the current host secret is strong enough to encrypt tokens."""
        return is_strong_secret(self._config_store.host_secret)

    def _serialize(self) -> list[dict]:
        encrypt_tokens = self.can_encrypt
        secret = self._config_store.host_secret
        records = []
        for user in self._users:
            data = user.to_dict()
            if encrypt_tokens:
                for key in _TOKEN_FIELDS:
                    data[key] = encrypt(data[key], secret)
            records.append(data)
        return records

    def _open_token(self, value: Any) -> Any:
        """Decrypt a stored token, leaving it untouched if it cannot be opened."""
        if not is_triplet(value):
            return value
        decrypted = decrypt(value, self._config_store.host_secret)
        return decrypted if decrypted is not None else value

    async def load(self) -> int:
        """
        Load users from disk.

        Returns:
            Number of users loaded
        """
        try:
            data = await self._read()
        except StorageError as e:
            logger.error("Failed to load shared users", error=str(e), category="database")
            self._users = []
            return 0

        if data is None:
            logger.info("No shared users file found, starting fresh")
            self._users = []
            return 0

        if not isinstance(data, list):
            logger.error("Shared users file is not a list, ignoring it", category="database")
            self._users = []
            return 0

        users = []
        for record in data:
            if not isinstance(record, dict):
                continue
            record = dict(record)
            for key in _TOKEN_FIELDS:
                if key in record:
                    record[key] = self._open_token(record[key])
            try:
                users.append(SharedUser.model_validate(record))
            except ValidationError as e:
                logger.warning("Skipping invalid shared user", user_id=record.get("id"), error=str(e))

        self._users = users
        logger.info("Loaded shared users", count=len(self._users), encrypted=self.can_encrypt)
        return len(self._users)

    # Queries

    def _find(self, user_id: str) -> Optional[int]:
        for index, user in enumerate(self._users):
            if user.id == user_id:
                return index
        return None

    def get_all_users(self) -> list[SharedUser]:
        """Get copies of all users."""
        return [user.model_copy(deep=True) for user in self._users]

    def get_user_by_token(self, user_token: str) -> Optional[SharedUser]:
        """Get the first user presenting ``user_token``."""
        for user in self._users:
            if user.user_token == user_token:
                return user.model_copy(deep=True)
        return None

    def get_user_by_id(self, user_id: str) -> Optional[SharedUser]:
        """Get a user by id."""
        index = self._find(user_id)
        if index is None:
            return None
        return self._users[index].model_copy(deep=True)

    def verify_token_pair(self, user_token: str, access_token: str) -> Optional[SharedUser]:
        """
        Authenticate a token pair.

        Both tokens must match exactly (compared in constant time) and the
        user must be active.

        Returns:
            The matching user, or None
        """
        if not user_token or not access_token:
            return None

        for user in self._users:
            user_match = _tokens_equal(user.user_token, user_token)
            access_match = _tokens_equal(user.access_token, access_token)
            if user_match and access_match and user.is_active:
                return user.model_copy(deep=True)
        return None

    # Mutations

    async def add_user(self, candidate: SharedUserCreate) -> SharedUser:
        """
        Add a user.

        Assigns a new id and stamps the creation and last-access times.

        Returns:
            The stored user with plaintext tokens, for one-time display
        """
        now = utcnow()
        user = SharedUser(
            **candidate.model_dump(),
            id=str(uuid.uuid4()),
            created_at=now,
            last_access_at=now,
        )
        self._users.append(user)
        await self._save()
        logger.info("Added shared user", user_id=user.id, nickname=user.nickname)
        return user.model_copy(deep=True)

    async def enroll(
        self,
        nickname: str,
        permissions: Iterable[Permission] = (Permission.READ_ONLY,),
        user_token: Optional[str] = None,
        hardware_id: str = "",
        icon_url: Optional[str] = None,
    ) -> SharedUser:
        """
        Issue credentials for a new remote user.

        The access token is always freshly generated. A user token is
        generated too when the remote peer did not supply one.
        """
        candidate = SharedUserCreate(
            user_token=user_token or secrets.token_hex(16),
            access_token=generate_access_token(),
            nickname=nickname,
            icon_url=icon_url,
            hardware_id=hardware_id,
            permissions=list(permissions),
            is_active=True,
        )
        return await self.add_user(candidate)

    async def update_user(self, user_id: str, updates: Mapping[str, Any]) -> Optional[SharedUser]:
        """
        Merge fields into a user and persist.

        Returns:
            The updated user, or None if not found

        Raises:
            ValueError: If a key is unknown or a value is invalid
        """
        index = self._find(user_id)
        if index is None:
            return None

        changes = SharedUser.normalize_updates(updates)
        for name in _IMMUTABLE_FIELDS & changes.keys():
            logger.warning("Ignoring update to immutable field", user_id=user_id, field=name)
            del changes[name]

        data = self._users[index].model_dump()
        data.update(changes)
        self._users[index] = SharedUser(**data)

        await self._save()
        logger.info("Updated shared user", user_id=user_id, fields=sorted(changes))
        return self._users[index].model_copy(deep=True)

    async def update_last_access(self, user_id: str, ip_address: str) -> None:
        """Record an authenticated request."""
        index = self._find(user_id)
        if index is None:
            return

        # TODO: debounce these writes; every authenticated request rewrites the file
        self._users[index] = self._users[index].model_copy(
            update={"last_access_at": utcnow(), "ip_address": ip_address}
        )
        await self._save()

    async def delete_user(self, user_id: str) -> bool:
        """
        Delete a user.

        Returns:
            True if a user was removed
        """
        remaining = [user for user in self._users if user.id != user_id]
        if len(remaining) == len(self._users):
            return False

        self._users = remaining
        await self._save()
        logger.info("Deleted shared user", user_id=user_id)
        return True

    async def set_active(self, user_id: str, active: bool) -> Optional[SharedUser]:
        """Enable or disable a user."""
        return await self.update_user(user_id, {"is_active": active})

    async def toggle_permission(self, user_id: str, permission: Permission) -> Optional[list[Permission]]:
        """
        Flip one permission of a user, applying the FULL rules.

        Returns:
            The resulting permission list, or None if the user was not found
        """
        user = self.get_user_by_id(user_id)
        if user is None:
            return None

        permissions = toggle_permission(user.permissions, permission)
        updated = await self.update_user(user_id, {"permissions": permissions})
        return updated.permissions if updated else None
