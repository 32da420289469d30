"""
Obscura Share API Endpoints
"""

from . import health, profile

__all__ = [
    "health",
    "profile",
]
