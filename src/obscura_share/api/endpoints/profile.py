"""
Profile endpoints for the authenticated remote user.
"""

from fastapi import APIRouter, Depends

from ...errors import AuthenticationError, InvalidInput
from ...models.audit import AuditEvent
from ...models.user import Permission, ProfileUpdate
from ...services.auth_service import AuthenticatedUser
from ...share import SharedLibrary
from ..deps import get_share, require_permission

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("")
async def get_profile(
    user: AuthenticatedUser = Depends(require_permission(Permission.READ_ONLY))
) -> dict:
    """Return who the caller is authenticated as and what they may do."""
    return {
        "id": user.id,
        "nickname": user.nickname or None,
        "iconUrl": user.icon_url,
        "permissions": [p.value for p in user.permissions],
    }


@router.put("")
async def update_profile(
    profile: ProfileUpdate,
    user: AuthenticatedUser = Depends(require_permission(Permission.READ_ONLY)),
    share: SharedLibrary = Depends(get_share),
) -> dict:
    """
    Update the caller's nickname and avatar.

    Only the fields present in the body change.
    """
    updates = profile.model_dump(exclude_unset=True)

    try:
        updated = await share.users.update_user(user.id, updates)
    except ValueError as e:
        raise InvalidInput(str(e), reason="invalid_profile")
    if updated is None:
        raise AuthenticationError("User not found", reason="user_not_found")

    await share.audit.add_log(AuditEvent(
        user_id=user.id,
        nickname=updates.get("nickname") or user.nickname,
        action="profile_update",
        resource_type="user",
        details={
            "nickname": updates.get("nickname"),
            "iconUrl": updates.get("icon_url"),
            "userId": user.id,
        },
        ip_address=user.ip_address,
        success=True,
    ))

    return {"success": True, "message": "Profile updated"}
