"""Comment endpoints, addressed by the post they belong to."""

from typing import Any

from fastapi import APIRouter

from scooterbooter.api.v1.dependencies import ContainerDep, CurrentIdentityDep
from scooterbooter.schemas import CommentCreate, CommentDelete, CommentUpdate

router = APIRouter(prefix="/comments", tags=["comments"])


@router.get("/{post_id}")
async def list_comments(post_id: str, identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, Any]:
    return {"items": await container.comments.list_for_post(post_id)}


@router.post("/{post_id}")
async def create_comment(
    post_id: str,
    body: CommentCreate,
    identity: CurrentIdentityDep,
    container: ContainerDep,
) -> dict[str, Any]:
    comment = await container.comments.create(
        identity.user_id, post_id, body.text, parent_comment_id=body.parent_comment_id
    )
    return comment.public()


@router.patch("/{post_id}")
async def update_comment(
    post_id: str,
    body: CommentUpdate,
    identity: CurrentIdentityDep,
    container: ContainerDep,
) -> dict[str, bool]:
    await container.comments.update(identity.user_id, post_id, body.id or "", body.text)
    return {"success": True}


@router.delete("/{post_id}")
async def delete_comment(
    post_id: str,
    body: CommentDelete,
    identity: CurrentIdentityDep,
    container: ContainerDep,
) -> dict[str, Any]:
    removed = await container.comments.delete(identity.user_id, post_id, body.id or "")
    return {"success": True, "deleted": removed}
