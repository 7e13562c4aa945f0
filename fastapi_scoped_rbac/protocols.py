"""Interfaces of the collaborators the resolver depends on."""

from collections.abc import Hashable
from typing import Protocol, runtime_checkable

from fastapi_scoped_rbac.models import Role


@runtime_checkable
class RoleStore(Protocol):
    """Read access to role definitions."""

    async def get_by_id(self, role_id: str) -> Role | None: ...

    async def get_by_slug(self, slug: str) -> Role | None: ...


@runtime_checkable
class MembershipResolver(Protocol):
    """Role assignments of a user at each scope of the hierarchy."""

    async def global_role_of(self, user_id: str) -> Role | None: ...

    async def parent_group_role_of(self, parent_group_id: str, user_id: str) -> Role | None: ...

    async def leaf_group_role_of(self, leaf_group_id: str, user_id: str) -> Role | None: ...

    async def parent_of_leaf_group(self, leaf_group_id: str) -> str | None:
        """Return the parent group a leaf group belongs to, if any."""
        ...

    async def leaf_groups_of(self, user_id: str) -> list[str]:
        """Return the leaf groups the user holds a membership in."""
        ...

    async def all_leaf_groups(self) -> list[str]:
        """Return every leaf group visible to an unrestricted administrator."""
        ...


@runtime_checkable
class PermissionCache(Protocol):
    """Storage for resolved permission sets keyed by user and context key.

    Implementations must be safe to call from several threads at once.
    """

    async def get(self, user_id: str, context_key: str) -> frozenset[str] | None: ...

    async def put(
        self,
        user_id: str,
        context_key: str,
        permissions: frozenset[str],
        version: Hashable | None = None,
    ) -> None:
        """Store a resolved set.

        When ``version`` is given and an invalidation affecting ``user_id``
        happened since it was taken with :meth:`version`, the write is dropped.
        """
        ...

    async def version(self, user_id: str) -> Hashable: ...

    async def invalidate_user(self, user_id: str) -> None: ...

    async def invalidate_all(self) -> None: ...
