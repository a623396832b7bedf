"""Public profile surfaces addressed by handle."""

from typing import Any

from fastapi import APIRouter, Query

from scooterbooter.api.v1.dependencies import ContainerDep, CurrentIdentityDep

router = APIRouter(prefix="/u", tags=["users"])


@router.get("/{handle}")
async def get_profile(
    handle: str,
    identity: CurrentIdentityDep,
    container: ContainerDep,
    limit: int | None = Query(None, ge=0),
    offset: int | None = Query(None, ge=0),
) -> dict[str, Any]:
    return await container.profiles.profile(identity.user_id, handle, limit=limit, offset=offset)


@router.get("/{handle}/posts")
async def get_profile_posts(
    handle: str,
    identity: CurrentIdentityDep,
    container: ContainerDep,
    limit: int | None = Query(None, ge=0),
    offset: int | None = Query(None, ge=0),
) -> dict[str, Any]:
    return await container.profiles.posts_of(identity.user_id, handle, limit=limit, offset=offset)


@router.get("/{handle}/followers")
async def get_followers(handle: str, identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, Any]:
    return {"items": await container.profiles.followers(identity.user_id, handle)}


@router.get("/{handle}/following")
async def get_following(handle: str, identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, Any]:
    return {"items": await container.profiles.following(identity.user_id, handle)}
