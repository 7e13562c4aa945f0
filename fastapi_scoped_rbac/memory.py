"""In-memory role store and membership resolver.

Useful for tests, prototypes and applications whose role configuration lives
in code. Both classes satisfy the protocols in :mod:`fastapi_scoped_rbac.protocols`.
Writes here do not invalidate any cache; callers must invalidate the resolver
after mutating roles or memberships.
"""

from collections.abc import Iterable

from fastapi_scoped_rbac.models import Role
from fastapi_scoped_rbac.protocols import RoleStore


class InMemoryRoleStore:
    def __init__(self, roles: Iterable[Role] = ()) -> None:
        self._by_id: dict[str, Role] = {}
        for role in roles:
            self.add(role)

    def add(self, role: Role) -> None:
        existing = self._find_slug(role.slug)
        if existing is not None and existing.id != role.id:
            raise ValueError(f"Role with slug '{role.slug}' already exists")
        self._by_id[role.id] = role

    def remove(self, role_id: str) -> None:
        self._by_id.pop(role_id, None)

    def replace_permissions(self, role_id: str, permissions: Iterable[str]) -> Role:
        role = self._by_id.get(role_id)
        if role is None:
            raise KeyError(role_id)
        updated = role.with_permissions(permissions)
        self._by_id[role_id] = updated
        return updated

    def _find_slug(self, slug: str) -> Role | None:
        return next((r for r in self._by_id.values() if r.slug == slug), None)

    async def get_by_id(self, role_id: str) -> Role | None:
        return self._by_id.get(role_id)

    async def get_by_slug(self, slug: str) -> Role | None:
        return self._find_slug(slug)


class InMemoryMembershipResolver:
    """Membership records referencing roles by id.

    Role ids are looked up in ``role_store`` on every call, so a dangling id
    (role deleted after assignment) resolves to ``None``.
    """

    def __init__(self, role_store: RoleStore) -> None:
        self.role_store = role_store
        self._global: dict[str, str] = {}
        self._parent_groups: dict[tuple[str, str], str] = {}
        self._leaf_groups: dict[tuple[str, str], str] = {}
        self._leaf_parents: dict[str, str] = {}
        # Known leaf groups in registration order
        self._leaf_group_ids: dict[str, None] = {}

    def assign_global_role(self, user_id: str, role_id: str) -> None:
        self._global[user_id] = role_id

    def assign_parent_group_role(self, parent_group_id: str, user_id: str, role_id: str) -> None:
        self._parent_groups[(parent_group_id, user_id)] = role_id

    def assign_leaf_group_role(self, leaf_group_id: str, user_id: str, role_id: str) -> None:
        self._leaf_group_ids.setdefault(leaf_group_id)
        self._leaf_groups[(leaf_group_id, user_id)] = role_id

    def link_leaf_group(self, leaf_group_id: str, parent_group_id: str | None) -> None:
        """Register a leaf group and set or clear the parent group it belongs to."""
        self._leaf_group_ids.setdefault(leaf_group_id)
        if parent_group_id is None:
            self._leaf_parents.pop(leaf_group_id, None)
        else:
            self._leaf_parents[leaf_group_id] = parent_group_id

    def revoke_global_role(self, user_id: str) -> None:
        self._global.pop(user_id, None)

    def revoke_parent_group_role(self, parent_group_id: str, user_id: str) -> None:
        self._parent_groups.pop((parent_group_id, user_id), None)

    def revoke_leaf_group_role(self, leaf_group_id: str, user_id: str) -> None:
        self._leaf_groups.pop((leaf_group_id, user_id), None)

    async def _role(self, role_id: str | None) -> Role | None:
        if role_id is None:
            return None
        return await self.role_store.get_by_id(role_id)

    async def global_role_of(self, user_id: str) -> Role | None:
        return await self._role(self._global.get(user_id))

    async def parent_group_role_of(self, parent_group_id: str, user_id: str) -> Role | None:
        return await self._role(self._parent_groups.get((parent_group_id, user_id)))

    async def leaf_group_role_of(self, leaf_group_id: str, user_id: str) -> Role | None:
        return await self._role(self._leaf_groups.get((leaf_group_id, user_id)))

    async def parent_of_leaf_group(self, leaf_group_id: str) -> str | None:
        return self._leaf_parents.get(leaf_group_id)

    async def leaf_groups_of(self, user_id: str) -> list[str]:
        return [leaf for leaf, member in self._leaf_groups if member == user_id]

    async def all_leaf_groups(self) -> list[str]:
        return list(self._leaf_group_ids)
