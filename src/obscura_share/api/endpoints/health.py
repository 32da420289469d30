"""
Health check endpoint probed by remote clients.
"""

from fastapi import APIRouter

from ... import __version__
from ...models.base import utcnow

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
@router.get("/")
async def health_check() -> dict:
    """
    Health check endpoint.

    Public: clients call it before they know whether their tokens work.
    """
    return {
        "status": "ok",
        "version": __version__,
        "serverTime": utcnow().isoformat(),
    }
