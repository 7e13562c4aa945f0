"""Authorizer settings loaded from environment variables."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from fastapi_scoped_rbac.cache import DEFAULT_TTL_SECONDS, InMemoryPermissionCache
from fastapi_scoped_rbac.fields import FieldPermissionDeriver
from fastapi_scoped_rbac.protocols import MembershipResolver
from fastapi_scoped_rbac.resolver import PermissionResolver


class AuthzSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SCOPED_RBAC_")

    # Cache
    cache_enabled: bool = True
    cache_ttl_seconds: float = Field(default=DEFAULT_TTL_SECONDS, gt=0)

    # Field-level permissions
    field_scope: str = "workspace"
    field_resource: str = "entity"

    # Request parameters carrying the context
    leaf_group_param: str = "workspace_id"
    parent_group_param: str = "section_id"


@lru_cache
def get_settings() -> AuthzSettings:
    return AuthzSettings()


def build_resolver(membership: MembershipResolver, settings: AuthzSettings | None = None) -> PermissionResolver:
    """Create a resolver wired with the cache and field deriver the settings describe."""
    settings = settings or get_settings()
    cache = InMemoryPermissionCache(ttl=settings.cache_ttl_seconds) if settings.cache_enabled else None
    return PermissionResolver(
        membership,
        cache=cache,
        field_deriver=FieldPermissionDeriver(scope=settings.field_scope, resource=settings.field_resource),
    )
