from collections.abc import Iterable
from functools import lru_cache

WILDCARD = "*"
SEPARATOR = ":"
DOT_SEPARATOR = "."


class PermissionPattern:
    """A permission string split once into colon segments and dot sub-segments.

    Malformed patterns (empty string, empty segment or empty dot sub-segment)
    are kept with ``well_formed=False`` and never match anything.
    """

    __slots__ = ("raw", "segments", "dotted", "well_formed")

    def __init__(self, raw: str) -> None:
        self.raw = raw
        self.segments: tuple[str, ...] = tuple(raw.split(SEPARATOR))
        self.dotted: tuple[tuple[str, ...], ...] = tuple(tuple(s.split(DOT_SEPARATOR)) for s in self.segments)
        self.well_formed = bool(raw) and all(part for dots in self.dotted for part in dots)

    @property
    def is_global_wildcard(self) -> bool:
        return self.raw == WILDCARD

    def covers(self, required: "PermissionPattern") -> bool:
        """Check if this (granted) pattern covers a required permission."""
        if self.is_global_wildcard:
            return True
        if not (self.well_formed and required.well_formed):
            return False

        for i, required_segment in enumerate(required.segments):
            if i >= len(self.segments):
                return False
            granted_segment = self.segments[i]
            if granted_segment == WILDCARD:
                return True
            if granted_segment != required_segment:
                if WILDCARD in granted_segment and _dots_cover(self.dotted[i], required.dotted[i]):
                    continue
                return False

        return len(self.segments) == len(required.segments)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PermissionPattern):
            return NotImplemented
        return self.raw == other.raw

    def __hash__(self) -> int:
        return hash(self.raw)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.raw!r})"


def _dots_cover(granted: tuple[str, ...], required: tuple[str, ...]) -> bool:
    for j, required_part in enumerate(required):
        if j >= len(granted):
            return False
        if granted[j] == WILDCARD:
            return True
        if granted[j] != required_part:
            return False
    return len(granted) == len(required)


@lru_cache(maxsize=4096)
def parse_permission(permission: str) -> PermissionPattern:
    return PermissionPattern(permission)


def matches(required: str, granted: str) -> bool:
    """Check if a granted permission covers a required permission.

    Supports wildcards at every level:
    - '*' covers everything
    - 'workspace:*' covers 'workspace:entity:read', 'workspace:settings.sla:manage', ...
    - 'workspace:entity.field.*:read' covers 'workspace:entity.field.title:read'
    """
    if granted == WILDCARD:
        return True
    return parse_permission(granted).covers(parse_permission(required))


def covered_by_set(required: str, granted: Iterable[str]) -> bool:
    """Check if any granted permission covers the required permission."""
    required_pattern = parse_permission(required)
    return any(parse_permission(g).covers(required_pattern) for g in granted)


def contains_wildcard(permission: str) -> bool:
    """Check if a permission contains a wildcard."""
    return WILDCARD in permission


def validate_required_permissions(permissions: Iterable[str], location: str) -> None:
    """Validate that required permissions are concrete.

    Args:
        permissions: Permission strings an endpoint requires.
        location: Description of where the permissions are declared (for error message).

    Raises:
        RuntimeError: If any permission contains a wildcard or is malformed.
    """
    for perm in permissions:
        if contains_wildcard(perm):
            raise RuntimeError(
                f"Wildcard permissions are not allowed in {location}. "
                f"Found '{perm}'. Wildcards should only be used in role grants."
            )
        if not parse_permission(perm).well_formed:
            raise RuntimeError(f"Malformed permission '{perm}' in {location}.")
