"""Shared API dependencies for authentication and service access."""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from scooterbooter.core.errors import Forbidden, Unauthorized
from scooterbooter.core.security import Identity, decode_identity
from scooterbooter.services.container import ServiceContainer

# Missing credentials are reported as 401 with the standard error body
bearer_scheme = HTTPBearer(auto_error=False)


def get_container(request: Request) -> ServiceContainer:
    """Return the service container built at startup."""
    return request.app.state.container


ContainerDep = Annotated[ServiceContainer, Depends(get_container)]


async def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    container: ContainerDep,
) -> Identity:
    """Verify the bearer token and make sure the caller has a profile.

    Raises:
        Unauthorized: If the token is missing or invalid.
        Forbidden: If the account has been banned.
    """
    if credentials is None or not credentials.credentials:
        raise Unauthorized()
    identity = decode_identity(credentials.credentials)
    user = await container.identity.ensure_user(identity)
    if user.banned:
        raise Forbidden("Account suspended")
    return identity


CurrentIdentityDep = Annotated[Identity, Depends(get_current_identity)]


def require_admin(identity: CurrentIdentityDep) -> Identity:
    if not identity.is_admin:
        raise Forbidden("Forbidden - Admin only")
    return identity


AdminIdentityDep = Annotated[Identity, Depends(require_admin)]
