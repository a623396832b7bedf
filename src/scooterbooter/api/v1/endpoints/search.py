"""User search endpoint."""

from typing import Any

from fastapi import APIRouter, Query

from scooterbooter.api.v1.dependencies import ContainerDep, CurrentIdentityDep

router = APIRouter(tags=["search"])


@router.get("/search")
async def search_users(
    identity: CurrentIdentityDep,
    container: ContainerDep,
    q: str = Query("", description="Handle or display-name fragment; a leading @ is ignored"),
) -> dict[str, Any]:
    return {"items": await container.search.search(identity.user_id, q)}
