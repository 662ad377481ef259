"""
Bearer token authentication dependencies.

Three request policies share one verification path
(``IAuthService.resolve_user``):

- ``get_current_user``: mandatory, rejects with 401 (500 on store failure)
- ``require_role(*roles)``: mandatory plus an exact-match role allow-list, 403
- ``get_request_context``: optional, never rejects

plus ``get_current_admin`` for the admin surface, which verifies with the
admin secret and requires the role to be exactly ``admin``.
"""

import logging
from typing import Iterable, Optional, Union

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from modules.auth.exceptions import InsufficientPermissionsError, MissingTokenError
from modules.auth.interfaces import IAuthService
from shared.models import AuthenticatedUser, RequestContext, UserRole

from ..dependencies import get_auth_service

logger = logging.getLogger(__name__)

# Bearer token extractor
bearer_scheme = HTTPBearer(auto_error=False)


def _token(credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    return credentials.credentials if credentials else None


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth: IAuthService = Depends(get_auth_service),
) -> AuthenticatedUser:
    """
    Dependency that requires authentication.

    Use this for endpoints that require a logged-in user.

    Usage:
        @router.get("/protected")
        async def protected_route(user: AuthenticatedUser = Depends(get_current_user)):
            return {"user_id": user.id}
    """
    return await auth.resolve_user(_token(credentials))


def check_role(
    user: Optional[AuthenticatedUser],
    allowed: Iterable[str],
) -> AuthenticatedUser:
    """
    Gate an identity on an allow-list of roles.

    Raises:
        MissingTokenError: No identity attached
        InsufficientPermissionsError: Role not in the allow-list
    """
    if user is None:
        raise MissingTokenError("Authentication required")

    allowed = list(allowed)
    if user.role.value not in allowed:
        raise InsufficientPermissionsError(allowed, user.role.value)
    return user


def require_role(*roles: Union[UserRole, str]):
    """
    Build a dependency that admits only the listed roles.

    Matching is exact: ``admin`` does not satisfy ``require_role("pastor")``.

    Usage:
        @router.delete("/{id}", dependencies=[Depends(require_role("pastor", "admin"))])
    """
    allowed = [role.value if isinstance(role, UserRole) else str(role) for role in roles]

    async def role_dependency(
        user: AuthenticatedUser = Depends(get_current_user),
    ) -> AuthenticatedUser:
        return check_role(user, allowed)

    return role_dependency


async def resolve_request_context(
    auth: IAuthService,
    token: Optional[str],
) -> RequestContext:
    """
    Identify the caller if possible, never raising.

    Every failure (invalid, expired, deactivated, store error) is logged
    and downgraded to an anonymous context.
    """
    if not token:
        return RequestContext()

    try:
        user = await auth.resolve_user(token)
    except Exception as e:
        logger.info("Optional auth failed: %s", e)
        return RequestContext()

    return RequestContext(user=user)


async def get_request_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth: IAuthService = Depends(get_auth_service),
) -> RequestContext:
    """
    Dependency that optionally identifies the caller.

    Use this for endpoints that serve both anonymous and signed-in views.

    Usage:
        @router.get("/events")
        async def list_events(context: RequestContext = OptionalAuth):
            if context.is_authenticated:
                ...
    """
    return await resolve_request_context(auth, _token(credentials))


async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """Raw bearer token, if any, for services that apply their own policy."""
    return _token(credentials)


async def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth: IAuthService = Depends(get_auth_service),
) -> AuthenticatedUser:
    """Dependency for the admin surface: admin-scoped token and role ``admin``."""
    return await auth.resolve_admin(_token(credentials))


# Type aliases for cleaner route definitions
RequireAuth = Depends(get_current_user)
OptionalAuth = Depends(get_request_context)
RequireAdmin = Depends(get_current_admin)
