import pytest
from fastapi import FastAPI

from fastapi_scoped_rbac import (
    InMemoryMembershipResolver,
    InMemoryRoleStore,
    Role,
    RoleScope,
)


class CountingMembership(InMemoryMembershipResolver):
    """Membership resolver that counts how many times a user's global role was looked up.

    Every resolution performs exactly one global lookup, so the count equals
    the number of uncached resolutions.
    """

    def __init__(self, role_store: InMemoryRoleStore) -> None:
        super().__init__(role_store)
        self.resolutions = 0

    async def global_role_of(self, user_id: str) -> Role | None:
        self.resolutions += 1
        return await super().global_role_of(user_id)


ROLES = [
    Role(id="r-super", name="Super admin", slug="super", scope=RoleScope.GLOBAL, permissions=frozenset({"*"}), is_system=True),
    Role(
        id="r-employee",
        name="Employee",
        slug="employee",
        scope=RoleScope.GLOBAL,
        permissions=frozenset({"global:analytics:read"}),
        is_system=True,
        is_default=True,
    ),
    Role(
        id="r-section-viewer",
        name="Section viewer",
        slug="section_viewer",
        scope=RoleScope.PARENT_GROUP,
        permissions=frozenset({"section:read"}),
        is_default=True,
    ),
    Role(
        id="r-ws-viewer",
        name="Workspace viewer",
        slug="ws_viewer",
        scope=RoleScope.LEAF_GROUP,
        permissions=frozenset({"workspace:entity:read", "workspace:comment:read"}),
    ),
    Role(
        id="r-ws-editor",
        name="Workspace editor",
        slug="ws_editor",
        scope=RoleScope.LEAF_GROUP,
        permissions=frozenset({"workspace:*"}),
    ),
]


@pytest.fixture
def app() -> FastAPI:
    return FastAPI()


@pytest.fixture
def role_store() -> InMemoryRoleStore:
    return InMemoryRoleStore(ROLES)


@pytest.fixture
def membership(role_store: InMemoryRoleStore) -> CountingMembership:
    return CountingMembership(role_store)
