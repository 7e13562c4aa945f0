import re
from collections.abc import Iterable

from fastapi_scoped_rbac.models import FieldPermissions
from fastapi_scoped_rbac.permissions import WILDCARD, covered_by_set


class FieldPermissionDeriver:
    """Derive per-field read/write access from a resolved permission set.

    Coarse grants ('workspace:*', 'workspace:entity:*' or
    'workspace:entity.field.*:read') make an axis unrestricted. Otherwise the
    field ids named by patterns shaped 'workspace:entity.field.<id>:read'
    (or ':update') form an allowlist.

    Args:
        scope: First segment of the field patterns.
        resource: Resource whose fields are controlled.
        read_action: Action granting read access to a field.
        write_action: Action granting write access to a field.
    """

    def __init__(
        self,
        scope: str = "workspace",
        resource: str = "entity",
        read_action: str = "read",
        write_action: str = "update",
    ) -> None:
        self.scope = scope
        self.resource = resource
        self.read_action = read_action
        self.write_action = write_action

        field_prefix = f"{scope}:{resource}.field.{WILDCARD}"
        coarse = [f"{scope}:{resource}:{WILDCARD}", f"{scope}:{WILDCARD}"]
        self._read_all_probes = [f"{field_prefix}:{read_action}", *coarse]
        self._write_all_probes = [f"{field_prefix}:{write_action}", f"{field_prefix}:{WILDCARD}", *coarse]
        self._read_pattern = self._field_regex(read_action)
        self._write_pattern = self._field_regex(write_action)

    def _field_regex(self, action: str) -> re.Pattern[str]:
        return re.compile(rf"^{re.escape(self.scope)}:{re.escape(self.resource)}\.field\.([^:]+):{re.escape(action)}$")

    def derive(self, permissions: Iterable[str]) -> FieldPermissions:
        granted = frozenset(permissions)
        can_read_all = WILDCARD in granted or any(covered_by_set(p, granted) for p in self._read_all_probes)
        can_write_all = WILDCARD in granted or any(covered_by_set(p, granted) for p in self._write_all_probes)

        if can_read_all and can_write_all:
            return FieldPermissions(readable=None, writable=None)

        readable: set[str] = set()
        writable: set[str] = set()
        for perm in granted:
            read_match = self._read_pattern.match(perm)
            if read_match and read_match.group(1) != WILDCARD:
                readable.add(read_match.group(1))
            write_match = self._write_pattern.match(perm)
            if write_match and write_match.group(1) != WILDCARD:
                writable.add(write_match.group(1))

        return FieldPermissions(
            readable=None if can_read_all else frozenset(readable),
            writable=None if can_write_all else frozenset(writable),
        )
