import pytest
from conftest import CountingMembership

from fastapi_scoped_rbac import (
    FieldPermissionDeriver,
    FieldPermissions,
    InMemoryRoleStore,
    PermissionResolver,
    Role,
    RoleScope,
)


@pytest.fixture
def deriver() -> FieldPermissionDeriver:
    return FieldPermissionDeriver()


class TestFieldPermissionDeriver:
    def test_scope_wildcard_is_unrestricted(self, deriver: FieldPermissionDeriver) -> None:
        assert deriver.derive({"workspace:*"}) == FieldPermissions(readable=None, writable=None)

    def test_global_wildcard_is_unrestricted(self, deriver: FieldPermissionDeriver) -> None:
        assert deriver.derive({"*"}).unrestricted is True

    def test_resource_wildcard_is_unrestricted(self, deriver: FieldPermissionDeriver) -> None:
        assert deriver.derive({"workspace:entity:*"}).unrestricted is True

    def test_field_wildcards_are_unrestricted(self, deriver: FieldPermissionDeriver) -> None:
        result = deriver.derive({"workspace:entity.field.*:read", "workspace:entity.field.*:update"})
        assert result.unrestricted is True

    def test_field_action_wildcard_covers_both_axes(self, deriver: FieldPermissionDeriver) -> None:
        assert deriver.derive({"workspace:entity.field.*:*"}).unrestricted is True

    def test_explicit_fields(self, deriver: FieldPermissionDeriver) -> None:
        result = deriver.derive({"workspace:entity.field.title:read", "workspace:entity.field.title:update"})
        assert result.readable == {"title"}
        assert result.writable == {"title"}

    def test_no_field_patterns(self, deriver: FieldPermissionDeriver) -> None:
        result = deriver.derive({"workspace:entity:read", "section:read"})
        assert result.readable == frozenset()
        assert result.writable == frozenset()

    def test_read_all_with_explicit_writes(self, deriver: FieldPermissionDeriver) -> None:
        result = deriver.derive(
            {
                "workspace:entity.field.*:read",
                "workspace:entity.field.title:read",
                "workspace:entity.field.status:update",
            }
        )
        assert result.readable is None
        assert result.writable == {"status"}

    def test_other_scope_or_resource_ignored(self, deriver: FieldPermissionDeriver) -> None:
        result = deriver.derive({"section:entity.field.title:read", "workspace:comment.field.body:read"})
        assert result.readable == frozenset()

    def test_wildcard_field_id_not_collected(self, deriver: FieldPermissionDeriver) -> None:
        result = deriver.derive({"workspace:entity.field.*:update", "workspace:entity.field.due:read"})
        assert result.readable == {"due"}
        assert result.writable is None

    def test_custom_scope_and_resource(self) -> None:
        deriver = FieldPermissionDeriver(scope="project", resource="task")
        result = deriver.derive({"project:task.field.estimate:read", "workspace:*"})
        assert result.readable == {"estimate"}
        assert result.writable == frozenset()


class TestFieldPermissions:
    def test_filter_readable(self) -> None:
        permissions = FieldPermissions(readable=frozenset({"title"}), writable=frozenset())
        assert permissions.filter_readable({"title": "A", "budget": 10}) == {"title": "A"}
        assert permissions.filter_writable({"title": "B"}) == {}

    def test_unrestricted_keeps_everything(self) -> None:
        permissions = FieldPermissions(readable=None, writable=None)
        record = {"title": "A", "budget": 10}
        assert permissions.filter_readable(record) == record
        assert permissions.can_write("anything") is True


class TestResolverFieldPermissions:
    @pytest.mark.asyncio
    async def test_field_permissions_through_resolver(self, role_store: InMemoryRoleStore) -> None:
        role_store.add(
            Role(
                id="r-ws-field",
                name="Field editor",
                slug="ws_field",
                scope=RoleScope.LEAF_GROUP,
                permissions=frozenset({"workspace:entity.field.title:read", "workspace:entity.field.title:update"}),
            )
        )
        membership = CountingMembership(role_store)
        membership.assign_leaf_group_role("ws-1", "u1", "r-ws-field")
        membership.assign_leaf_group_role("ws-2", "u1", "r-ws-editor")
        resolver = PermissionResolver(membership)

        restricted = await resolver.field_permissions("u1", "ws-1")
        assert restricted.readable == {"title"}
        assert restricted.writable == {"title"}

        assert (await resolver.field_permissions("u1", "ws-2")).unrestricted is True

    @pytest.mark.asyncio
    async def test_parent_group_grants_apply_to_fields(self, role_store: InMemoryRoleStore) -> None:
        role_store.add(
            Role(
                id="r-sec-admin",
                name="Section admin",
                slug="section_admin",
                scope=RoleScope.PARENT_GROUP,
                permissions=frozenset({"workspace:*"}),
            )
        )
        membership = CountingMembership(role_store)
        membership.link_leaf_group("ws-1", "sec-1")
        membership.assign_parent_group_role("sec-1", "u1", "r-sec-admin")

        resolver = PermissionResolver(membership)
        assert (await resolver.field_permissions("u1", "ws-1")).unrestricted is True
