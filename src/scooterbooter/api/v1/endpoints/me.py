"""Endpoints acting on the caller's own account."""

from typing import Any

from fastapi import APIRouter, Body

from scooterbooter.api.v1.dependencies import ContainerDep, CurrentIdentityDep
from scooterbooter.core.errors import ValidationError
from scooterbooter.core.outcome import attempt, failed
from scooterbooter.schemas import AvatarUpdate, HandleClaim, ProfileUpdate


router = APIRouter(tags=["me"])


@router.get("/me")
async def get_me(identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, Any]:
    """Return the caller's profile, issuing a personal invite code on first read."""
    user = await container.identity.require_user(identity.user_id)
    invite_code = user.invite_code
    if not invite_code and container.invites.enabled:
        outcome = await attempt("me-invite", container.invites.personal_code(identity.user_id))
        if outcome.ok:
            invite_code = outcome.value.code
    return {
        "userId": user.user_id,
        "handle": user.handle,
        "email": identity.email or user.email,
        "avatarKey": user.avatar_key,
        "fullName": user.full_name,
        "termsAccepted": user.terms_accepted,
        "inviteCode": invite_code,
    }


@router.patch("/me")
async def update_me(body: ProfileUpdate, identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, Any]:
    """Update the display name and optionally move to a new handle."""
    handle = None
    if body.handle:
        handle = await container.identity.claim_handle(identity.user_id, body.handle)
    user = await container.identity.require_user(identity.user_id)
    if "full_name" in body.model_fields_set:
        user = await container.identity.update_profile(identity.user_id, full_name=body.full_name)
    return {"ok": True, "fullName": user.full_name, "handle": handle or user.handle}


@router.post("/me")
async def update_me_name(body: ProfileUpdate, identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, Any]:
    user = await container.identity.update_profile(identity.user_id, full_name=body.full_name)
    return {"ok": True, "fullName": user.full_name}


@router.post("/me/avatar")
async def set_avatar(body: AvatarUpdate, identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, Any]:
    if not body.key:
        raise ValidationError("Missing key")
    await container.identity.set_avatar(identity.user_id, body.key)
    return {"success": True, "avatarKey": body.key}


@router.post("/me/accept-terms")
async def accept_terms(identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, bool]:
    await container.identity.accept_terms(identity.user_id)
    return {"success": True, "termsAccepted": True}


@router.get("/me/notification-preferences")
async def get_preferences(identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, bool]:
    prefs = await container.notifications.preferences(identity.user_id)
    return prefs.model_dump()


@router.patch("/me/notification-preferences")
async def update_preferences(
    identity: CurrentIdentityDep,
    container: ContainerDep,
    body: dict[str, Any] = Body(default_factory=dict),
) -> dict[str, bool]:
    """Merge the boolean ``mentions``, ``comments`` and ``reactions`` flags given."""
    prefs = await container.identity.update_preferences(identity.user_id, body)
    return prefs.model_dump()


@router.delete("/me")
async def delete_me(identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, Any]:
    """Delete the caller's account and everything derived from it."""
    outcomes = await container.accounts.delete_account(identity.user_id, identity.username)
    errors = failed(outcomes)
    return {
        "success": not errors,
        "failedSteps": [outcome.label for outcome in errors],
    }


@router.post("/username")
async def claim_username(body: HandleClaim, identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, str]:
    handle = await container.identity.claim_handle(identity.user_id, body.handle)
    return {"handle": handle}


@router.get("/me/invite")
async def get_invite(identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, Any]:
    invite = await container.invites.personal_code(identity.user_id)
    return {"code": invite.code, "usesRemaining": invite.uses_remaining, "inviteCode": invite.code}


@router.post("/me/invite")
async def create_invite(identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, Any]:
    invite = await container.invites.personal_code(identity.user_id)
    return {"code": invite.code, "uses": invite.uses_remaining, "inviteCode": invite.code}


@router.get("/me/invites")
async def list_invites(identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, Any]:
    invites = await container.invites.list_mine(identity.user_id)
    if not invites:
        invites = [await container.invites.personal_code(identity.user_id)]
    items = [
        {"code": invite.code, "usesRemaining": invite.uses_remaining, "createdAt": invite.created_at}
        for invite in invites
    ]
    return {"items": items, "inviteCode": items[0]["code"]}
