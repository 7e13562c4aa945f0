from collections.abc import Iterable, Mapping
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

CONTEXT_KEY_SENTINEL = "_"


class RoleScope(StrEnum):
    GLOBAL = "global"
    PARENT_GROUP = "parent_group"
    LEAF_GROUP = "leaf_group"


class Role(BaseModel):
    """A role definition as read from the role store.

    ``scope`` constrains which membership may reference the role; that rule is
    enforced by whoever assigns roles, not by the resolver.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    slug: str
    description: str | None = None
    scope: RoleScope
    permissions: frozenset[str] = frozenset()
    is_system: bool = False
    is_default: bool = False

    def with_permissions(self, permissions: Iterable[str]) -> "Role":
        """Return a copy of this role with its permission patterns replaced."""
        return self.model_copy(update={"permissions": frozenset(permissions)})


class AccessContext(BaseModel):
    """The optional hierarchy position an authorization check is made in. Empty ids count as absent."""

    model_config = ConfigDict(frozen=True)

    leaf_group_id: str | None = None
    parent_group_id: str | None = None

    @field_validator("leaf_group_id", "parent_group_id", mode="before")
    @classmethod
    def _empty_id_is_absent(cls, value: Any) -> Any:
        return value or None

    @property
    def cache_key(self) -> str:
        leaf = self.leaf_group_id if self.leaf_group_id is not None else CONTEXT_KEY_SENTINEL
        parent = self.parent_group_id if self.parent_group_id is not None else CONTEXT_KEY_SENTINEL
        return f"{leaf}:{parent}"


class FieldPermissions(BaseModel):
    """Per-field read/write access. ``None`` on an axis means every field."""

    model_config = ConfigDict(frozen=True)

    readable: frozenset[str] | None
    writable: frozenset[str] | None

    @property
    def unrestricted(self) -> bool:
        return self.readable is None and self.writable is None

    def can_read(self, field_id: str) -> bool:
        return self.readable is None or field_id in self.readable

    def can_write(self, field_id: str) -> bool:
        return self.writable is None or field_id in self.writable

    def filter_readable(self, record: Mapping[str, Any]) -> dict[str, Any]:
        """Drop the fields of a record the caller may not read."""
        return {k: v for k, v in record.items() if self.can_read(k)}

    def filter_writable(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Drop the fields of an inbound payload the caller may not write."""
        return {k: v for k, v in payload.items() if self.can_write(k)}
