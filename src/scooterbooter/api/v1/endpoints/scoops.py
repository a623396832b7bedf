"""Scoop endpoints: short-lived media that expires after a day."""

from typing import Any

from fastapi import APIRouter

from scooterbooter.api.v1.dependencies import ContainerDep, CurrentIdentityDep
from scooterbooter.models.scoop import TextOverlay
from scooterbooter.schemas import ScoopCreate

router = APIRouter(prefix="/scoops", tags=["scoops"])


@router.post("")
async def create_scoop(body: ScoopCreate, identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, Any]:
    scoop = await container.scoops.create(
        identity.user_id,
        media_key=body.media_key,
        media_type=body.media_type,
        media_aspect_ratio=body.media_aspect_ratio,
        text_overlays=[TextOverlay.model_validate(overlay) for overlay in body.text_overlays or []],
    )
    return container.scoops.present(scoop)


@router.get("/feed")
async def scoop_feed(identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, Any]:
    return {"items": await container.scoops.feed(identity.user_id)}


@router.get("/me")
async def my_scoops(identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, Any]:
    return {"items": await container.scoops.mine(identity.user_id)}


@router.get("/user/{user_id}")
async def user_scoops(user_id: str, identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, Any]:
    return {"items": await container.scoops.of_user(identity.user_id, user_id)}


@router.get("/{scoop_id}")
async def get_scoop(scoop_id: str, identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, Any]:
    return await container.scoops.get(identity.user_id, scoop_id)


@router.delete("/{scoop_id}")
async def delete_scoop(scoop_id: str, identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, bool]:
    await container.scoops.delete(identity.user_id, scoop_id)
    return {"success": True}


@router.post("/{scoop_id}/view")
async def view_scoop(scoop_id: str, identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, bool]:
    """Record a view; the owner's own views and repeat views are ignored."""
    await container.scoops.mark_viewed(identity.user_id, scoop_id)
    return {"success": True}


@router.get("/{scoop_id}/viewers")
async def scoop_viewers(scoop_id: str, identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, Any]:
    return {"items": await container.scoops.viewers(identity.user_id, scoop_id)}
