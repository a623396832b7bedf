"""Reaction endpoints."""

from typing import Any

from fastapi import APIRouter, Query

from scooterbooter.api.v1.dependencies import ContainerDep, CurrentIdentityDep
from scooterbooter.schemas import ReactionToggle

router = APIRouter(prefix="/reactions", tags=["reactions"])


@router.get("/{post_id}")
async def get_reactions(
    post_id: str,
    identity: CurrentIdentityDep,
    container: ContainerDep,
    who: int = Query(0, description="1 to include reacting users grouped by emoji"),
) -> dict[str, Any]:
    return await container.reactions.summary(post_id, identity.user_id, who=bool(who))


@router.post("/{post_id}")
async def toggle_reaction(
    post_id: str,
    body: ReactionToggle,
    identity: CurrentIdentityDep,
    container: ContainerDep,
) -> dict[str, Any]:
    """Add, switch or remove the caller's reaction; returns the caller's current emoji."""
    mine = await container.reactions.toggle(identity.user_id, post_id, body.emoji)
    return {"ok": True, "my": mine}
