"""
Client-side models for connecting to another installation's shared library.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .base import ShareModel, UTCDateTime


TOKEN_PAIR_SEPARATOR = ":"
USER_TOKEN_HEADER = "X-User-Token"


class RemoteLibraryConnection(ShareModel):
    """A registered remote library."""

    id: Optional[str] = Field(default=None, description="Local registration id")
    name: str = Field(default="", description="Display name")
    url: str = Field(..., min_length=1, description="Base URL of the remote host")
    token: str = Field(
        ...,
        description="Combined 'user:access' token or a bare access token"
    )
    last_connected_at: Optional[UTCDateTime] = Field(default=None)

    @field_validator('url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        v = v.strip()
        return v[:-1] if v.endswith("/") else v


class ClientConfig(ShareModel):
    """This installation's client-side settings."""

    my_user_token: Optional[str] = Field(
        default=None,
        description="Identity token presented to every host; generated once"
    )
    remote_libraries: list[RemoteLibraryConnection] = Field(
        default_factory=list,
        description="Remote libraries this installation connects to"
    )


class TokenPair(BaseModel):
    """Credentials presented to a remote host."""

    user_token: str
    access_token: str

    def auth_headers(self) -> dict[str, str]:
        """Headers expected by the remote host's API."""
        return {
            "Authorization": f"Bearer {self.access_token}",
            USER_TOKEN_HEADER: self.user_token,
        }

    def combined(self) -> str:
        return f"{self.user_token}{TOKEN_PAIR_SEPARATOR}{self.access_token}"


def parse_remote_token(token: str, fallback_user_token: str) -> TokenPair:
    """
    Split a stored remote token into its user and access halves.

    A token containing ':' is taken as 'user:access'; anything else is a bare
    access token used with ``fallback_user_token``.
    """
    if token and TOKEN_PAIR_SEPARATOR in token:
        user_token, access_token = token.split(TOKEN_PAIR_SEPARATOR, 1)
        return TokenPair(user_token=user_token.strip(), access_token=access_token.strip())
    return TokenPair(user_token=fallback_user_token, access_token=token)
