"""Request schemas for the caller's own account."""

from pydantic import AliasChoices, Field

from scooterbooter.schemas.common import CamelModel


class ProfileUpdate(CamelModel):
    full_name: str | None = None
    handle: str | None = Field(
        None,
        validation_alias=AliasChoices("handle", "username", "userHandle", "user_handle"),
    )


class HandleClaim(CamelModel):
    handle: str | None = Field(None, validation_alias=AliasChoices("handle", "username"))


class AvatarUpdate(CamelModel):
    key: str | None = None


class PushRegistration(CamelModel):
    token: str | None = None
    platform: str = "expo"


class InviteRequest(CamelModel):
    uses: int | None = None


class UploadRequest(CamelModel):
    content_type: str | None = None
