"""
Basic example demonstrating fastapi-scoped-rbac usage.

Run with:
    uvicorn examples.basic_app:app --reload

Then try:
    curl -H 'X-Token: editor-token' localhost:18000/workspaces/ws-support/entities/1
    curl -H 'X-Token: clerk-token' localhost:18000/workspaces/ws-support/entities/1
    curl -H 'X-Token: manager-token' localhost:18000/sections/sec-ops
    curl -H 'X-Token: clerk-token' localhost:18000/workspaces
"""

from typing import Annotated, Any

import uvicorn
from fastapi import Depends, FastAPI, Header, HTTPException

from fastapi_scoped_rbac import (
    FieldPermissions,
    InMemoryMembershipResolver,
    InMemoryRoleStore,
    Role,
    RoleScope,
    ScopedAuthz,
    build_resolver,
    create_auth_dependency,
    field_permissions_dependency,
    require_permissions,
)


# =============================================================================
# User Model
# =============================================================================
class User:
    def __init__(self, user_id: str):
        self.user_id = user_id


# Fake user database
USERS = {
    "admin-token": User(user_id="admin-1"),
    "manager-token": User(user_id="manager-1"),
    "editor-token": User(user_id="editor-1"),
    "clerk-token": User(user_id="clerk-1"),
}

# Fake entity database (workspace_id -> entity_id -> record)
ENTITIES: dict[str, dict[int, dict[str, Any]]] = {
    "ws-support": {
        1: {"title": "Printer on fire", "priority": "high", "budget": 300},
        2: {"title": "Password reset", "priority": "low", "budget": 0},
    },
}


# =============================================================================
# Roles and Memberships
# =============================================================================
roles = InMemoryRoleStore(
    [
        Role(id="1", name="Administrator", slug="admin", scope=RoleScope.GLOBAL, permissions={"*"}, is_system=True),
        Role(
            id="2",
            name="Section manager",
            slug="section_manager",
            scope=RoleScope.PARENT_GROUP,
            permissions={"section:*", "workspace:entity:read"},
        ),
        Role(id="3", name="Editor", slug="ws_editor", scope=RoleScope.LEAF_GROUP, permissions={"workspace:*"}),
        Role(
            id="4",
            name="Clerk",
            slug="ws_clerk",
            scope=RoleScope.LEAF_GROUP,
            permissions={
                "workspace:entity:read",
                "workspace:entity:update",
                "workspace:entity.field.title:read",
                "workspace:entity.field.priority:read",
                "workspace:entity.field.priority:update",
            },
        ),
    ]
)

memberships = InMemoryMembershipResolver(roles)
memberships.link_leaf_group("ws-support", "sec-ops")
memberships.assign_global_role("admin-1", "1")
memberships.assign_parent_group_role("sec-ops", "manager-1", "2")
memberships.assign_leaf_group_role("ws-support", "editor-1", "3")
memberships.assign_leaf_group_role("ws-support", "clerk-1", "4")


# =============================================================================
# Authentication Dependency
# =============================================================================
async def get_current_user(x_token: Annotated[str, Header()]) -> User:
    """Simulate authentication via X-Token header."""
    user = USERS.get(x_token)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid token")
    return user


# =============================================================================
# Application Setup
# =============================================================================
app = FastAPI(
    title="Scoped RBAC Example",
    description="Example app demonstrating fastapi-scoped-rbac",
)

authz = ScopedAuthz(
    app,
    resolver=build_resolver(memberships),
    get_user_id=lambda user: user.user_id,
    user_dependency=get_current_user,
)

EntityFields = Annotated[FieldPermissions, Depends(field_permissions_dependency())]
CurrentUser = Annotated[User, Depends(create_auth_dependency(get_current_user))]


# =============================================================================
# Routes
# =============================================================================
@app.get("/workspaces")
async def list_workspaces(user: CurrentUser):
    """Workspaces the caller can enter. Administrators see all of them."""
    return {"workspaces": await authz.resolver.accessible_leaf_group_ids(user.user_id)}


@app.get(
    "/workspaces/{workspace_id}/entities/{entity_id}",
    dependencies=[Depends(require_permissions("workspace:entity:read"))],
)
async def get_entity(workspace_id: str, entity_id: int, fields: EntityFields):
    """Get an entity, exposing only the fields the caller may read."""
    entity = ENTITIES.get(workspace_id, {}).get(entity_id)
    if entity is None:
        raise HTTPException(status_code=404, detail="Entity not found")
    return {"id": entity_id, **fields.filter_readable(entity)}


@app.patch(
    "/workspaces/{workspace_id}/entities/{entity_id}",
    dependencies=[Depends(require_permissions("workspace:entity:update"))],
)
async def update_entity(workspace_id: str, entity_id: int, changes: dict[str, Any], fields: EntityFields):
    """Update an entity, ignoring fields the caller may not write."""
    entity = ENTITIES.get(workspace_id, {}).get(entity_id)
    if entity is None:
        raise HTTPException(status_code=404, detail="Entity not found")
    entity.update(fields.filter_writable(changes))
    return {"id": entity_id, **fields.filter_readable(entity)}


@app.get("/sections/{section_id}", dependencies=[Depends(require_permissions("section:read"))])
async def get_section(section_id: str):
    """Requires section:read in the section itself."""
    return {"id": section_id, "workspaces": [ws for ws in ENTITIES]}


@app.put("/roles/{role_id}/permissions", dependencies=[Depends(require_permissions("global:role:manage"))])
async def replace_role_permissions(role_id: str, permissions: list[str]):
    """Replace a role's patterns. Every cached permission set may now be stale."""
    try:
        role = roles.replace_permissions(role_id, permissions)
    except KeyError:
        raise HTTPException(status_code=404, detail="Role not found")
    await authz.invalidate_all()
    return {"id": role.id, "permissions": sorted(role.permissions)}


# =============================================================================
# Health Check (no auth required)
# =============================================================================
@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run(app, port=18_000)
