"""Effective permission resolution across the global, parent-group and leaf-group scopes."""

import asyncio
from collections.abc import Awaitable, Iterable

from loguru import logger

from fastapi_scoped_rbac.fields import FieldPermissionDeriver
from fastapi_scoped_rbac.models import AccessContext, FieldPermissions, Role, RoleScope
from fastapi_scoped_rbac.permissions import WILDCARD, covered_by_set
from fastapi_scoped_rbac.protocols import MembershipResolver, PermissionCache


class PermissionResolver:
    """Resolve and check a user's effective permissions in a context.

    The effective set is the union of the patterns of the user's global role,
    the parent-group role and the leaf-group role that apply to the context.
    When only a leaf group is given, the role held in that leaf's parent group
    is included as well.

    Args:
        membership: Source of the user's role assignments.
        cache: Optional cache of resolved sets. Without one every call resolves
            from the membership resolver.
        field_deriver: Deriver used by :meth:`field_permissions`.
    """

    def __init__(
        self,
        membership: MembershipResolver,
        cache: PermissionCache | None = None,
        field_deriver: FieldPermissionDeriver | None = None,
    ) -> None:
        self.membership = membership
        self.cache = cache
        self.field_deriver = field_deriver or FieldPermissionDeriver()

    async def resolve(self, user_id: str, context: AccessContext | None = None) -> frozenset[str]:
        """Return the effective permission set, served from the cache when possible."""
        context = context or AccessContext()
        if self.cache is None:
            return await self.compute(user_id, context)

        context_key = context.cache_key
        cached = await self.cache.get(user_id, context_key)
        if cached is not None:
            return cached

        logger.debug(f"Permission cache miss for user {user_id} in context {context_key}")
        version = await self.cache.version(user_id)
        permissions = await self.compute(user_id, context)
        await self.cache.put(user_id, context_key, permissions, version=version)
        return permissions

    async def compute(self, user_id: str, context: AccessContext | None = None) -> frozenset[str]:
        """Resolve the effective permission set without touching the cache.

        Missing roles, memberships or parent links contribute nothing.
        Errors raised by the membership resolver propagate unchanged.
        """
        context = context or AccessContext()
        lookups: list[Awaitable[Role | None]] = [self.membership.global_role_of(user_id)]
        expected = [RoleScope.GLOBAL]

        if context.parent_group_id is not None:
            lookups.append(self.membership.parent_group_role_of(context.parent_group_id, user_id))
            expected.append(RoleScope.PARENT_GROUP)

        if context.leaf_group_id is not None:
            lookups.append(self.membership.leaf_group_role_of(context.leaf_group_id, user_id))
            expected.append(RoleScope.LEAF_GROUP)
            if context.parent_group_id is None:
                lookups.append(self._implied_parent_group_role(context.leaf_group_id, user_id))
                expected.append(RoleScope.PARENT_GROUP)

        roles = await asyncio.gather(*lookups)

        permissions: set[str] = set()
        for role, scope in zip(roles, expected):
            if role is None:
                continue
            if role.scope != scope:
                logger.warning(
                    f"Role '{role.slug}' has scope '{role.scope}' but is assigned to user {user_id} at scope '{scope}'"
                )
            permissions.update(role.permissions)

        return frozenset(permissions)

    async def _implied_parent_group_role(self, leaf_group_id: str, user_id: str) -> Role | None:
        parent_group_id = await self.membership.parent_of_leaf_group(leaf_group_id)
        if parent_group_id is None:
            return None
        return await self.membership.parent_group_role_of(parent_group_id, user_id)

    async def has_permission(self, user_id: str, required: str, context: AccessContext | None = None) -> bool:
        """Check if the user holds a permission covering ``required`` in the context."""
        return covered_by_set(required, await self.resolve(user_id, context))

    async def has_all_permissions(
        self,
        user_id: str,
        required: Iterable[str],
        context: AccessContext | None = None,
    ) -> bool:
        permissions = await self.resolve(user_id, context)
        return all(covered_by_set(r, permissions) for r in required)

    async def has_any_permission(
        self,
        user_id: str,
        required: Iterable[str],
        context: AccessContext | None = None,
    ) -> bool:
        permissions = await self.resolve(user_id, context)
        return any(covered_by_set(r, permissions) for r in required)

    async def accessible_leaf_group_ids(self, user_id: str) -> list[str]:
        """Return the leaf groups the user can enter.

        A user whose global role grants ``*`` reaches every leaf group; anyone
        else only the leaf groups they are a member of. Not cached.
        """
        global_role = await self.membership.global_role_of(user_id)
        if global_role is not None and WILDCARD in global_role.permissions:
            return await self.membership.all_leaf_groups()
        return await self.membership.leaf_groups_of(user_id)

    async def field_permissions(self, user_id: str, leaf_group_id: str) -> FieldPermissions:
        """Return which fields of a leaf group's records the user may read and write."""
        permissions = await self.resolve(user_id, AccessContext(leaf_group_id=leaf_group_id))
        return self.field_deriver.derive(permissions)

    async def invalidate_user(self, user_id: str) -> None:
        """Forget every cached set of a user. Call after changing their memberships."""
        if self.cache is not None:
            await self.cache.invalidate_user(user_id)

    async def invalidate_all(self) -> None:
        """Forget every cached set. Call after changing or deleting a role."""
        if self.cache is not None:
            await self.cache.invalidate_all()
