"""Home feed endpoint."""

from typing import Any

from fastapi import APIRouter, Query

from scooterbooter.api.v1.dependencies import ContainerDep, CurrentIdentityDep

router = APIRouter(tags=["feed"])


@router.get("/feed")
async def get_feed(
    identity: CurrentIdentityDep,
    container: ContainerDep,
    limit: int | None = Query(None, ge=0, description="Page size, clamped to the configured maximum"),
    offset: int | None = Query(None, ge=0),
) -> dict[str, Any]:
    """Return the viewer's posts and those of the users they follow, newest first."""
    items = await container.feed.feed(identity.user_id, limit=limit, offset=offset)
    return {"items": items}
