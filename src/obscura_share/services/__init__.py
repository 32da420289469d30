"""
Obscura Share Services
"""

from .auth_service import AuthService, AuthenticatedUser, normalize_ip

__all__ = [
    "AuthService",
    "AuthenticatedUser",
    "normalize_ip",
]
