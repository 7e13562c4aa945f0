from fastapi_scoped_rbac import (
    DEFAULT_REGISTRY,
    PermissionDefinition,
    RoleScope,
    expand_pattern,
    permissions_by_category,
    permissions_for_scope,
    unknown_patterns,
)


class TestRegistry:
    def test_keys_are_unique(self) -> None:
        keys = [d.key for d in DEFAULT_REGISTRY]
        assert len(keys) == len(set(keys))

    def test_group_by_category_keeps_order(self) -> None:
        grouped = permissions_by_category()
        assert [d.key for d in grouped["comments"]] == [
            "workspace:comment:create",
            "workspace:comment:read",
            "workspace:comment:delete",
        ]

    def test_permissions_for_scope(self) -> None:
        section = permissions_for_scope(RoleScope.PARENT_GROUP)
        assert {d.key for d in section} == {"section:read", "section:update", "section:members:manage"}
        assert all(d.scope == RoleScope.GLOBAL for d in permissions_for_scope(RoleScope.GLOBAL))

    def test_custom_registry(self) -> None:
        registry = [PermissionDefinition(key="project:task:read", scope=RoleScope.LEAF_GROUP, category="tasks", label="Read")]
        assert list(permissions_by_category(registry)) == ["tasks"]


class TestExpandPattern:
    def test_resource_wildcard(self) -> None:
        assert expand_pattern("workspace:comment:*") == [
            "workspace:comment:create",
            "workspace:comment:read",
            "workspace:comment:delete",
        ]

    def test_global_wildcard_covers_whole_registry(self) -> None:
        assert len(expand_pattern("*")) == len(DEFAULT_REGISTRY)

    def test_dot_wildcard(self) -> None:
        assert expand_pattern("workspace:settings.*:manage") == [
            "workspace:settings.fields:manage",
            "workspace:settings.members:manage",
            "workspace:settings.automation:manage",
        ]


class TestUnknownPatterns:
    def test_known_patterns(self) -> None:
        assert unknown_patterns({"workspace:*", "section:read", "global:user:manage"}) == set()

    def test_field_specific_patterns_are_known(self) -> None:
        assert unknown_patterns({"workspace:entity.field.title:read"}) == set()

    def test_typos_are_reported(self) -> None:
        assert unknown_patterns({"workspace:entity:raed", "section:read"}) == {"workspace:entity:raed"}
