"""
Authentication service for shared-library requests.

Checks the client address against the allowlist, authenticates the token
pair, enforces permissions and records the outcome in the audit log.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from ..core.logging import get_logger
from ..crypto import validate_access_token, validate_user_token
from ..errors import AccessDenied, AuthenticationError, PermissionDenied
from ..models.audit import AuditEvent
from ..models.user import Permission, has_permission
from ..share import SharedLibrary


logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "


@dataclass
class AuthenticatedUser:
    """The identity attached to an authenticated request."""
    id: str
    nickname: str
    permissions: list[Permission] = field(default_factory=list)
    ip_address: str = "unknown"
    icon_url: Optional[str] = None


def normalize_ip(ip_address: Optional[str]) -> str:
    """Strip the IPv4-mapped IPv6 prefix from a client address."""
    if not ip_address:
        return "unknown"
    if ip_address.startswith("::ffff:"):
        return ip_address[len("::ffff:"):]
    return ip_address


class AuthService:
    """
    Request authentication against the shared user directory.

    Every rejection is recorded in the audit log (when auditing is enabled)
    before the corresponding error is raised.
    """

    def __init__(self, share: SharedLibrary):
        self._share = share

    async def _reject(self, reason: str, ip_address: str, **details: Any) -> None:
        await self._share.audit.add_log(AuditEvent(
            action="auth_failed",
            resource_type="auth",
            details={"reason": reason, **details},
            ip_address=ip_address,
            success=False,
        ))
        logger.warning("Authentication failed", reason=reason, ip=ip_address)

    async def authenticate(
        self,
        client_ip: Optional[str],
        authorization: Optional[str] = None,
        user_token_header: Optional[str] = None,
        query_access_token: Optional[str] = None,
        query_user_token: Optional[str] = None,
    ) -> AuthenticatedUser:
        """
        Authenticate a request.

        Tokens come from the Authorization / X-User-Token headers, or from
        the accessToken / userToken query parameters for clients that cannot
        set headers (media elements).

        Returns:
            The authenticated user

        Raises:
            AccessDenied: The client address is not allowed
            AuthenticationError: Tokens are missing, malformed or unknown
        """
        ip_address = normalize_ip(client_ip)

        allowed_ips = self._share.config.get_config().allowed_ips
        if allowed_ips and ip_address not in allowed_ips:
            await self._reject("ip_not_allowed", ip_address, ip=ip_address)
            raise AccessDenied("Access from this IP address is not allowed", reason="ip_not_allowed")

        if authorization and user_token_header:
            access_token = authorization
            if access_token.startswith(BEARER_PREFIX):
                access_token = access_token[len(BEARER_PREFIX):]
            user_token = user_token_header
        elif query_access_token and query_user_token:
            access_token = query_access_token
            user_token = query_user_token
        else:
            await self._reject("missing_tokens", ip_address)
            raise AuthenticationError("No tokens were provided", reason="missing_tokens")

        access_token = access_token.strip()
        user_token = user_token.strip()

        if not validate_user_token(user_token).valid or not validate_access_token(access_token).valid:
            await self._reject("invalid_token_format", ip_address)
            raise AuthenticationError("Tokens are invalid", reason="invalid_token_format")

        user = self._share.users.verify_token_pair(user_token, access_token)
        if user is None:
            await self._reject("token_pair_mismatch", ip_address)
            raise AuthenticationError("Token pair does not match", reason="token_pair_mismatch")

        await self._share.users.update_last_access(user.id, ip_address)

        return AuthenticatedUser(
            id=user.id,
            nickname=user.nickname,
            permissions=list(user.permissions),
            ip_address=ip_address,
            icon_url=user.icon_url,
        )

    async def require_permission(self, user: AuthenticatedUser, *required: Permission) -> None:
        """
        Ensure a user holds at least one of ``required``.

        Raises:
            PermissionDenied: If none of the permissions is held
        """
        if has_permission(user.permissions, *required):
            return

        await self._share.audit.add_log(AuditEvent(
            user_id=user.id,
            nickname=user.nickname,
            action="permission_denied",
            resource_type="permission",
            details={
                "required": [p.value for p in required],
                "has": [p.value for p in user.permissions],
            },
            ip_address=user.ip_address,
            success=False,
        ))
        logger.warning("Permission denied", user_id=user.id, required=[p.value for p in required])
        raise PermissionDenied("Insufficient permission", reason="permission_denied")
