import pytest
from conftest import CountingMembership
from pydantic import ValidationError

from fastapi_scoped_rbac import AuthzSettings, InMemoryPermissionCache, build_resolver


class TestAuthzSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("CACHE_ENABLED", "CACHE_TTL_SECONDS", "FIELD_SCOPE", "LEAF_GROUP_PARAM"):
            monkeypatch.delenv(f"SCOPED_RBAC_{name}", raising=False)
        settings = AuthzSettings()
        assert settings.cache_enabled is True
        assert settings.cache_ttl_seconds == 300
        assert settings.field_scope == "workspace"
        assert settings.field_resource == "entity"
        assert settings.leaf_group_param == "workspace_id"
        assert settings.parent_group_param == "section_id"

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SCOPED_RBAC_CACHE_TTL_SECONDS", "60")
        monkeypatch.setenv("SCOPED_RBAC_LEAF_GROUP_PARAM", "project_id")
        settings = AuthzSettings()
        assert settings.cache_ttl_seconds == 60
        assert settings.leaf_group_param == "project_id"

    def test_rejects_non_positive_ttl(self) -> None:
        with pytest.raises(ValidationError):
            AuthzSettings(cache_ttl_seconds=0)


class TestBuildResolver:
    def test_cache_from_settings(self, membership: CountingMembership) -> None:
        resolver = build_resolver(membership, AuthzSettings(cache_ttl_seconds=42))
        assert isinstance(resolver.cache, InMemoryPermissionCache)
        assert resolver.cache.ttl == 42

    def test_cache_disabled(self, membership: CountingMembership) -> None:
        resolver = build_resolver(membership, AuthzSettings(cache_enabled=False))
        assert resolver.cache is None

    def test_field_deriver_from_settings(self, membership: CountingMembership) -> None:
        resolver = build_resolver(membership, AuthzSettings(field_scope="project", field_resource="task"))
        assert resolver.field_deriver.scope == "project"
        assert resolver.field_deriver.resource == "task"
