"""
Audit log models.
"""

from typing import Any, Optional, Union

from pydantic import ConfigDict, Field

from .base import ShareModel, UTCDateTime, utcnow


class AuditEvent(ShareModel):
    """A security-relevant action about to be recorded."""

    user_id: str = Field(
        default="unknown",
        description="Id of the acting user"
    )
    nickname: str = Field(
        default="unknown",
        description="Nickname of the acting user at the time"
    )
    action: str = Field(
        ...,
        description="What happened (auth_failed, permission_denied, ...)"
    )
    resource_type: str = Field(
        default="",
        description="Kind of resource acted on"
    )
    resource_id: Optional[Union[int, str]] = Field(
        default=None,
        description="Resource identifier, if any"
    )
    details: Any = Field(
        default=None,
        description="Arbitrary structured payload"
    )
    ip_address: str = Field(
        default="unknown",
        description="Client address"
    )
    success: bool = Field(
        default=True,
        description="Whether the action succeeded"
    )


class AuditLogEntry(AuditEvent):
    """A recorded audit event. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique entry id")
    timestamp: UTCDateTime = Field(
        default_factory=utcnow,
        description="When the event was recorded"
    )
