"""Catalogue of the permissions an application knows about.

The resolver never needs it; it exists for role editors and for checking role
definitions against the permissions the application actually enforces.
"""

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict

from fastapi_scoped_rbac.models import RoleScope
from fastapi_scoped_rbac.permissions import matches


class PermissionDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    scope: RoleScope
    category: str
    label: str
    description: str = ""


def _leaf(key: str, category: str, label: str, description: str = "") -> PermissionDefinition:
    return PermissionDefinition(
        key=key, scope=RoleScope.LEAF_GROUP, category=category, label=label, description=description
    )


def _parent(key: str, label: str, description: str = "") -> PermissionDefinition:
    return PermissionDefinition(
        key=key, scope=RoleScope.PARENT_GROUP, category="section", label=label, description=description
    )


def _global(key: str, label: str, description: str = "") -> PermissionDefinition:
    return PermissionDefinition(
        key=key, scope=RoleScope.GLOBAL, category="administration", label=label, description=description
    )


DEFAULT_REGISTRY: tuple[PermissionDefinition, ...] = (
    # workspace: entities
    _leaf("workspace:entity:create", "entities", "Create entities"),
    _leaf("workspace:entity:read", "entities", "View entities"),
    _leaf("workspace:entity:update", "entities", "Edit entities"),
    _leaf("workspace:entity:delete", "entities", "Delete entities"),
    _leaf("workspace:entity.field.*:read", "entities", "View all fields", "View every custom field of an entity"),
    _leaf("workspace:entity.field.*:update", "entities", "Edit all fields", "Edit every custom field of an entity"),
    # workspace: comments
    _leaf("workspace:comment:create", "comments", "Add comments"),
    _leaf("workspace:comment:read", "comments", "View comments"),
    _leaf("workspace:comment:delete", "comments", "Delete comments of other users"),
    # workspace: settings
    _leaf("workspace:settings:read", "settings", "View settings"),
    _leaf("workspace:settings:update", "settings", "Change settings"),
    _leaf("workspace:settings.fields:manage", "settings", "Manage the field builder"),
    _leaf("workspace:settings.members:manage", "settings", "Manage members"),
    _leaf("workspace:settings.automation:manage", "settings", "Manage automation rules"),
    # workspace: analytics & export
    _leaf("workspace:analytics:read", "analytics", "View analytics"),
    _leaf("workspace:export:manage", "analytics", "Export data"),
    # section
    _parent("section:read", "View section", "View the section and its workspaces"),
    _parent("section:update", "Edit section"),
    _parent("section:members:manage", "Manage section members"),
    # global
    _global("global:workspace:create", "Create workspaces"),
    _global("global:workspace:delete", "Delete workspaces"),
    _global("global:section:create", "Create sections"),
    _global("global:section:delete", "Delete sections"),
    _global("global:user:manage", "Manage users"),
    _global("global:role:manage", "Manage roles"),
    _global("global:system:manage", "System settings"),
)


def permissions_by_category(
    registry: Iterable[PermissionDefinition] = DEFAULT_REGISTRY,
) -> dict[str, list[PermissionDefinition]]:
    """Group permission definitions by category, keeping registry order."""
    grouped: dict[str, list[PermissionDefinition]] = {}
    for definition in registry:
        grouped.setdefault(definition.category, []).append(definition)
    return grouped


def permissions_for_scope(
    scope: RoleScope,
    registry: Iterable[PermissionDefinition] = DEFAULT_REGISTRY,
) -> list[PermissionDefinition]:
    return [d for d in registry if d.scope == scope]


def expand_pattern(pattern: str, registry: Iterable[PermissionDefinition] = DEFAULT_REGISTRY) -> list[str]:
    """List the registered permission keys a granted pattern covers."""
    return [d.key for d in registry if matches(d.key, pattern)]


def unknown_patterns(
    patterns: Iterable[str],
    registry: Iterable[PermissionDefinition] = DEFAULT_REGISTRY,
) -> set[str]:
    """Return the patterns that neither cover nor are covered by a registered permission.

    Field-specific patterns such as 'workspace:entity.field.title:read' are
    known through the registered 'workspace:entity.field.*:read'. Anything
    returned is usually a typo in a role definition.
    """
    definitions = tuple(registry)
    return {
        p
        for p in patterns
        if not any(matches(d.key, p) or matches(p, d.key) for d in definitions)
    }
