from collections.abc import Awaitable, Callable, Coroutine, Iterable
from typing import TYPE_CHECKING, Annotated, Any, TypeVar

from fastapi import Depends, Request
from loguru import logger

from fastapi_scoped_rbac.exceptions import Forbidden
from fastapi_scoped_rbac.models import AccessContext, FieldPermissions
from fastapi_scoped_rbac.permissions import covered_by_set, validate_required_permissions

if TYPE_CHECKING:
    from fastapi_scoped_rbac.config import AuthzSettings
    from fastapi_scoped_rbac.core import ScopedAuthz

UserT = TypeVar("UserT")


def AuthzUser(request: Request) -> Any:
    """Get the current authenticated user stored by create_auth_dependency().

    Returns:
        The authenticated user object from request.state.user.

    Raises:
        Forbidden: If no user is found in request state.
    """
    user = getattr(request.state, "user", None)
    if user is None:
        raise Forbidden("User not authenticated")
    return user


def create_auth_dependency(
    user_dependency: Callable[..., UserT] | Callable[..., Awaitable[UserT]],
) -> Callable[..., Coroutine[Any, Any, UserT]]:
    """Create a typed auth dependency for use in endpoints.

    The returned dependency runs ``user_dependency`` and stores the user in
    request.state.user so AuthzUser and the placeholder fallback can read it.
    """

    async def auth_dependency(
        request: Request,
        user: Annotated[UserT, Depends(user_dependency)],
    ) -> UserT:
        request.state.user = user
        return user

    return auth_dependency


async def _authz_user_dependency_placeholder(request: Request) -> Any:
    """Placeholder dependency for user authentication.

    Replaced through FastAPI's dependency_overrides when ScopedAuthz is
    initialized with a user_dependency. Otherwise falls back to
    request.state.user, which the application's own auth must set.
    """
    return getattr(request.state, "user", None)


def _get_authz(request: Request) -> "ScopedAuthz[Any]":
    authz = getattr(request.app.state, "authz", None)
    if authz is None:
        raise RuntimeError("ScopedAuthz not configured. Make sure to create a ScopedAuthz instance with your app.")
    return authz


async def _request_value(request: Request, name: str) -> str | None:
    """Read a context parameter from path params, then query params, then a JSON body."""
    value: Any = request.path_params.get(name)
    if value is None:
        value = request.query_params.get(name)
    if value is None and request.headers.get("content-type", "").startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            value = body.get(name)
    return str(value) if value else None


async def extract_context(request: Request, settings: "AuthzSettings") -> AccessContext:
    """Build the access context of a request from its leaf and parent group parameters."""
    return AccessContext(
        leaf_group_id=await _request_value(request, settings.leaf_group_param),
        parent_group_id=await _request_value(request, settings.parent_group_param),
    )


async def evaluate_permissions(
    user: Any,
    authz: "ScopedAuthz[Any]",
    required_permissions: Iterable[str],
    context: AccessContext | None = None,
    require_all: bool = True,
) -> None:
    """Directly evaluate permissions without FastAPI dependency injection.

    A failure of the membership resolver denies access rather than
    propagating as a server error.

    Raises:
        Forbidden: If the user does not hold the required permissions.
    """
    required = list(required_permissions)
    user_id = authz.get_user_id(user)
    try:
        granted = await authz.resolver.resolve(user_id, context)
    except Exception as exc:
        logger.exception(f"Permission resolution failed for user {user_id}, denying access")
        raise Forbidden() from exc

    if require_all:
        for permission in required:
            if not covered_by_set(permission, granted):
                raise Forbidden(permission=permission)
    elif not any(covered_by_set(permission, granted) for permission in required):
        raise Forbidden()


def require_permissions(
    *permissions: str,
    require_all: bool = True,
) -> Callable[..., Coroutine[Any, Any, None]]:
    """Create a dependency that denies the request unless the user holds the permissions.

    Usage:
        @app.post(
            "/workspaces/{workspace_id}/entities",
            dependencies=[Depends(require_permissions("workspace:entity:create"))],
        )

    Args:
        *permissions: Concrete permission strings required for access.
        require_all: Require every permission (default) or any one of them.

    Raises:
        RuntimeError: If no permission is given or one contains a wildcard.
    """
    if not permissions:
        raise RuntimeError("Endpoint must be protected with at least one permission")
    validate_required_permissions(permissions, "endpoint permissions")
    required = tuple(permissions)

    async def permission_dependency(
        request: Request,
        user: Annotated[Any, Depends(_authz_user_dependency_placeholder)],
    ) -> None:
        authz = _get_authz(request)
        if user is None:
            raise Forbidden("User not authenticated")

        context = await extract_context(request, authz.settings)
        await evaluate_permissions(user, authz, required, context, require_all=require_all)

    return permission_dependency


def field_permissions_dependency() -> Callable[..., Coroutine[Any, Any, FieldPermissions]]:
    """Create a dependency returning the user's field permissions for the leaf group in the request."""

    async def dependency(
        request: Request,
        user: Annotated[Any, Depends(_authz_user_dependency_placeholder)],
    ) -> FieldPermissions:
        authz = _get_authz(request)
        if user is None:
            raise Forbidden("User not authenticated")

        context = await extract_context(request, authz.settings)
        if context.leaf_group_id is None:
            raise Forbidden(f"Missing '{authz.settings.leaf_group_param}' context")

        user_id = authz.get_user_id(user)
        try:
            return await authz.resolver.field_permissions(user_id, context.leaf_group_id)
        except Exception as exc:
            logger.exception(f"Field permission resolution failed for user {user_id}, denying access")
            raise Forbidden() from exc

    return dependency
