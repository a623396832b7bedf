"""Post endpoints."""

from typing import Any

from fastapi import APIRouter

from scooterbooter.api.v1.dependencies import ContainerDep, CurrentIdentityDep
from scooterbooter.schemas import PostCreate, PostUpdate

router = APIRouter(prefix="/posts", tags=["posts"])


@router.post("")
async def create_post(
    body: PostCreate,
    identity: CurrentIdentityDep,
    container: ContainerDep,
) -> dict[str, Any]:
    """Create a post after moderation; mentioned users are notified."""
    post = await container.posts.create(
        identity.user_id,
        text=body.text,
        image_key=body.image_key,
        image_aspect_ratio=body.image_aspect_ratio,
        images=body.images,
        fallback_name=identity.email or None,
    )
    return post.public()


@router.get("/{post_id}")
async def get_post(post_id: str, identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, Any]:
    return await container.posts.get_for_viewer(identity.user_id, post_id)


@router.patch("/{post_id}")
async def update_post(
    post_id: str,
    body: PostUpdate,
    identity: CurrentIdentityDep,
    container: ContainerDep,
) -> dict[str, Any]:
    post = await container.posts.update(
        identity.user_id,
        post_id,
        text=body.text,
        image_key=body.image_key,
        delete_image=body.delete_image,
    )
    return {"ok": True, "post": post.public()}


@router.delete("/{post_id}")
async def delete_post(post_id: str, identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, bool]:
    """Delete a post with its comments, reactions, media and notifications."""
    await container.posts.delete(identity.user_id, post_id)
    return {"ok": True}
