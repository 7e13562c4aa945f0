from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from fastapi import FastAPI

from fastapi_scoped_rbac.config import AuthzSettings, get_settings
from fastapi_scoped_rbac.dependencies import _authz_user_dependency_placeholder
from fastapi_scoped_rbac.models import AccessContext, FieldPermissions
from fastapi_scoped_rbac.resolver import PermissionResolver

UserT = TypeVar("UserT")


class ScopedAuthz(Generic[UserT]):
    """Scoped RBAC authorization configuration.

    Attaches to a FastAPI application so the dependencies created by
    ``require_permissions`` and ``field_permissions_dependency`` can find the
    resolver and the current user.

    Args:
        app: The FastAPI application instance.
        resolver: Resolver computing effective permissions.
        get_user_id: Callable that extracts the user id from a user object.
        user_dependency: Optional FastAPI dependency that returns the authenticated user.
            When provided, protected endpoints run this dependency to obtain the user;
            otherwise the user is read from request.state.user.
        settings: Settings naming the request parameters that carry the context.
            Defaults to the environment-driven settings.
    """

    def __init__(
        self,
        app: FastAPI,
        resolver: PermissionResolver,
        get_user_id: Callable[[UserT], str],
        user_dependency: Callable[..., UserT] | Callable[..., Awaitable[UserT]] | None = None,
        settings: AuthzSettings | None = None,
    ) -> None:
        self.app = app
        self.resolver = resolver
        self.get_user_id = get_user_id
        self.user_dependency = user_dependency
        self.settings = settings or get_settings()

        # Attach to app state for access from dependencies
        app.state.authz = self

        # Replace the placeholder so every protected endpoint resolves the user
        # through the application's own auth dependency
        if user_dependency is not None:
            app.dependency_overrides[_authz_user_dependency_placeholder] = user_dependency

    async def has_permission(self, user: UserT, permission: str, context: AccessContext | None = None) -> bool:
        return await self.resolver.has_permission(self.get_user_id(user), permission, context)

    async def field_permissions(self, user: UserT, leaf_group_id: str) -> FieldPermissions:
        return await self.resolver.field_permissions(self.get_user_id(user), leaf_group_id)

    async def invalidate_user(self, user_id: str) -> None:
        """Call after a membership or global role assignment of ``user_id`` changed."""
        await self.resolver.invalidate_user(user_id)

    async def invalidate_all(self) -> None:
        """Call after a role's permissions were replaced or a role was deleted."""
        await self.resolver.invalidate_all()
