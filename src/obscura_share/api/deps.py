"""
FastAPI dependency injection.

Provides the shared library, the auth service and request authentication.
"""

from typing import Optional

from fastapi import Depends, Header, Query, Request

from ..models.user import Permission
from ..services.auth_service import AuthService, AuthenticatedUser
from ..share import SharedLibrary


def get_share(request: Request) -> SharedLibrary:
    """Get the shared library the app was created with."""
    return request.app.state.share


def get_auth_service(
    share: SharedLibrary = Depends(get_share)
) -> AuthService:
    """Get auth service with the shared library injected."""
    return AuthService(share)


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    x_user_token: Optional[str] = Header(default=None),
    access_token: Optional[str] = Query(default=None, alias="accessToken"),
    user_token: Optional[str] = Query(default=None, alias="userToken"),
    auth: AuthService = Depends(get_auth_service),
) -> AuthenticatedUser:
    """Authenticate the request's token pair."""
    client_ip = request.client.host if request.client else None
    return await auth.authenticate(
        client_ip,
        authorization=authorization,
        user_token_header=x_user_token,
        query_access_token=access_token,
        query_user_token=user_token,
    )


def require_permission(*required: Permission):
    """Build a dependency that authenticates and checks ``required``."""

    async def dependency(
        user: AuthenticatedUser = Depends(get_current_user),
        auth: AuthService = Depends(get_auth_service),
    ) -> AuthenticatedUser:
        await auth.require_permission(user, *required)
        return user

    return dependency
