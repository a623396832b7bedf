"""Presigned upload and media deletion endpoints."""

from fastapi import APIRouter

from scooterbooter.api.v1.dependencies import ContainerDep, CurrentIdentityDep
from scooterbooter.schemas import UploadRequest

router = APIRouter(tags=["media"])


@router.post("/upload-url")
async def upload_url(body: UploadRequest, identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, str]:
    return await container.media.upload_url(identity.user_id, body.content_type)


@router.post("/avatar-url")
async def avatar_url(body: UploadRequest, identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, str]:
    return await container.media.upload_url(identity.user_id, body.content_type, avatar=True)


@router.delete("/media/{key:path}")
async def delete_media(key: str, identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, object]:
    """Delete an object under one of the caller's own prefixes."""
    deleted = await container.media.delete_owned(identity.user_id, key)
    return {"deleted": True, "key": deleted}
