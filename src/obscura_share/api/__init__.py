"""
Obscura Share HTTP API

FastAPI routes the library-sharing server exposes to remote installations.
"""

from .app import create_app
from .deps import get_auth_service, get_current_user, require_permission

__all__ = [
    "create_app",
    "get_auth_service",
    "get_current_user",
    "require_permission",
]
