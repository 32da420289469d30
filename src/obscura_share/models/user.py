"""
Shared user models and the permission lattice.
"""

from enum import Enum
from typing import Iterable, Optional

from pydantic import Field, field_validator

from .base import ShareModel, UTCDateTime, utcnow


class Permission(str, Enum):
    """Permission levels a shared user can hold."""
    READ_ONLY = "READ_ONLY"
    DOWNLOAD = "DOWNLOAD"
    UPLOAD = "UPLOAD"
    EDIT = "EDIT"
    FULL = "FULL"


ALL_PERMISSIONS: tuple[Permission, ...] = tuple(Permission)


def _dedupe(permissions: Iterable[Permission]) -> list[Permission]:
    return list(dict.fromkeys(Permission(p) for p in permissions))


def toggle_permission(
    permissions: Iterable[Permission],
    permission: Permission,
) -> list[Permission]:
    """
    Flip one permission and apply the FULL implication rules.

    - FULL on grants every permission.
    - FULL off removes only FULL.
    - Any other permission off also drops FULL, which no longer holds.
    - Any other permission on is simply added.
    """
    current = _dedupe(permissions)
    permission = Permission(permission)

    if permission is Permission.FULL:
        if Permission.FULL in current:
            return [p for p in current if p is not Permission.FULL]
        return list(ALL_PERMISSIONS)

    if permission in current:
        return [p for p in current if p is not permission and p is not Permission.FULL]
    return _dedupe([*current, permission])


def has_permission(granted: Iterable[Permission], *required: Permission) -> bool:
    """FULL passes everything; otherwise any one of ``required`` suffices."""
    granted = set(granted)
    if Permission.FULL in granted:
        return True
    return any(Permission(p) in granted for p in required)


class SharedUserBase(ShareModel):
    """Fields supplied when a remote user is enrolled."""

    user_token: str = Field(
        ...,
        min_length=1,
        description="Identity token presented by the remote peer"
    )
    access_token: str = Field(
        ...,
        min_length=1,
        description="Secret issued by the host at enrollment"
    )
    nickname: str = Field(
        default="",
        description="Display name"
    )
    icon_url: Optional[str] = Field(
        default=None,
        description="Avatar URL"
    )
    hardware_id: str = Field(
        default="",
        description="Hardware id reported by the remote peer"
    )
    permissions: list[Permission] = Field(
        default_factory=lambda: [Permission.READ_ONLY],
        description="Granted permission set"
    )
    is_active: bool = Field(
        default=True,
        description="Inactive users cannot authenticate"
    )
    ip_address: Optional[str] = Field(
        default=None,
        description="Address of the most recent request"
    )

    @field_validator('permissions')
    @classmethod
    def dedupe_permissions(cls, v: list[Permission]) -> list[Permission]:
        return _dedupe(v)


class SharedUserCreate(SharedUserBase):
    """Candidate record passed to the user directory."""


class SharedUser(SharedUserBase):
    """A remote identity authorized to use the shared library."""

    id: str = Field(
        ...,
        description="Opaque unique identifier"
    )
    created_at: UTCDateTime = Field(
        default_factory=utcnow,
        description="When the user was enrolled"
    )
    last_access_at: Optional[UTCDateTime] = Field(
        default=None,
        description="Last authenticated request"
    )


class ProfileUpdate(ShareModel):
    """Fields a remote user may change on their own profile."""

    nickname: str = Field(
        default="",
        max_length=50,
        description="Display name"
    )
    icon_url: Optional[str] = Field(
        default=None,
        description="Avatar URL; null clears it"
    )
