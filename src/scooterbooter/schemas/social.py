"""Relationship request schemas."""

from scooterbooter.schemas.common import CamelModel


class HandleTarget(CamelModel):
    """Follow, unfollow, request and cancel address the target by handle."""

    handle: str | None = None


class RequesterTarget(CamelModel):
    """Accept and decline address the requester by id."""

    from_user_id: str | None = None


class UserTarget(CamelModel):
    user_id: str | None = None
