"""FastAPI Scoped RBAC - hierarchical wildcard permissions with cached resolution."""

__version__ = "0.1.0"

from fastapi_scoped_rbac.cache import InMemoryPermissionCache
from fastapi_scoped_rbac.config import AuthzSettings, build_resolver, get_settings
from fastapi_scoped_rbac.core import ScopedAuthz
from fastapi_scoped_rbac.dependencies import (
    AuthzUser,
    create_auth_dependency,
    evaluate_permissions,
    extract_context,
    field_permissions_dependency,
    require_permissions,
)
from fastapi_scoped_rbac.exceptions import Forbidden
from fastapi_scoped_rbac.fields import FieldPermissionDeriver
from fastapi_scoped_rbac.memory import InMemoryMembershipResolver, InMemoryRoleStore
from fastapi_scoped_rbac.models import AccessContext, FieldPermissions, Role, RoleScope
from fastapi_scoped_rbac.permissions import (
    PermissionPattern,
    covered_by_set,
    matches,
    parse_permission,
)
from fastapi_scoped_rbac.protocols import MembershipResolver, PermissionCache, RoleStore
from fastapi_scoped_rbac.registry import (
    DEFAULT_REGISTRY,
    PermissionDefinition,
    expand_pattern,
    permissions_by_category,
    permissions_for_scope,
    unknown_patterns,
)
from fastapi_scoped_rbac.resolver import PermissionResolver

__all__ = [
    "ScopedAuthz",
    "DEFAULT_REGISTRY",
    "AuthzSettings",
    "AuthzUser",
    "AccessContext",
    "FieldPermissions",
    "FieldPermissionDeriver",
    "Forbidden",
    "InMemoryMembershipResolver",
    "InMemoryPermissionCache",
    "InMemoryRoleStore",
    "MembershipResolver",
    "PermissionCache",
    "PermissionDefinition",
    "PermissionPattern",
    "PermissionResolver",
    "Role",
    "RoleScope",
    "RoleStore",
    "build_resolver",
    "covered_by_set",
    "create_auth_dependency",
    "evaluate_permissions",
    "expand_pattern",
    "extract_context",
    "field_permissions_dependency",
    "get_settings",
    "matches",
    "parse_permission",
    "permissions_by_category",
    "permissions_for_scope",
    "require_permissions",
    "unknown_patterns",
]
