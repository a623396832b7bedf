"""Post, comment and reaction request schemas."""

from pydantic import Field

from scooterbooter.models.content import PostImage
from scooterbooter.schemas.common import CamelModel


class PostCreate(CamelModel):
    """Schema for creating a post: text, a legacy single image, or an image list."""

    text: str | None = Field(None, description="Post text, at most 500 characters")
    image_key: str | None = None
    image_aspect_ratio: float | None = None
    images: list[PostImage] | None = None


class PostUpdate(CamelModel):
    text: str | None = None
    image_key: str | None = None
    delete_image: bool = False


class CommentCreate(CamelModel):
    text: str | None = None
    parent_comment_id: str | None = Field(None, description="Comment being replied to")


class CommentUpdate(CamelModel):
    id: str | None = None
    text: str | None = None


class CommentDelete(CamelModel):
    id: str | None = None


class ReactionToggle(CamelModel):
    emoji: str | None = None
