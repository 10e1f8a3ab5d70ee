"""
Domain model for persisted Spotify OAuth credentials.
"""

from pydantic import BaseModel, ConfigDict, Field


class CredentialRecord(BaseModel):
    """Token pair stored per user in the credential file.

    Serialized with the camelCase keys the file has always used, e.g.
    ``{"accessToken": "...", "refreshToken": "..."}``.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    access_token: str = Field(..., alias="accessToken")
    refresh_token: str = Field(..., alias="refreshToken")

    def with_access_token(
        self, access_token: str, refresh_token: str | None = None
    ) -> "CredentialRecord":
        """Return a copy carrying a refreshed access token."""
        return self.model_copy(
            update={
                "access_token": access_token,
                "refresh_token": refresh_token or self.refresh_token,
            }
        )


__all__ = ["CredentialRecord"]
