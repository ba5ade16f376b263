# models/permissions.py

from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Iterator, List, Mapping, NewType, Tuple, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from core.errors import PermissionConfigError
from models.enums import UserRole


# Opaque, case-sensitive identifiers. Distinct names keep
# (resource, action, scope) from being swapped silently at call sites.
Resource = NewType("Resource", str)
Action = NewType("Action", str)
Scope = NewType("Scope", str)

WILDCARD = "*"
DEFAULT_SCOPE = "all"


# ===============================================================
# PERMISSION ENTRY
# ===============================================================

class PermissionEntry(BaseModel):
    """
    One atomic grant: role may perform action on resource within scope.

    resource / action may be "*" (whole-field wildcard). Nothing else is
    pattern-matched: "tasks" never matches "tasks-archive".
    """
    model_config = ConfigDict(frozen=True)

    role: UserRole
    resource: Resource
    action: Action
    scope: Scope = Scope(DEFAULT_SCOPE)

    @field_validator("role")
    @classmethod
    def _grantable_role(cls, value: UserRole) -> UserRole:
        if value is UserRole.unknown:
            raise ValueError("the unknown role cannot hold grants")
        return value

    @field_validator("resource", "action", "scope")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("must be a non-empty string")
        return value

    def matches(self, resource: Resource, action: Action) -> bool:
        return (
            (self.resource == WILDCARD or self.resource == resource)
            and (self.action == WILDCARD or self.action == action)
        )

    @classmethod
    def parse(cls, role: str, grant: Union[str, Mapping]) -> "PermissionEntry":
        """
        Accepts "resource:action:scope", "resource:action" (scope "all")
        or a {"resource", "action", "scope"} mapping.
        """
        if isinstance(grant, str):
            parts = grant.rsplit(":", 2) if grant.count(":") >= 2 else grant.split(":")
            if len(parts) == 2:
                resource, action = parts
                scope = DEFAULT_SCOPE
            elif len(parts) == 3:
                resource, action, scope = parts
            else:
                raise PermissionConfigError(f"Malformed permission '{grant}' for role '{role}'")
            grant = {"resource": resource, "action": action, "scope": scope}

        try:
            return cls(role=role, **dict(grant))
        except (ValidationError, TypeError) as e:
            raise PermissionConfigError(f"Invalid permission {grant!r} for role '{role}': {e}") from e


# ===============================================================
# PERMISSION MATRIX
# ===============================================================

class PermissionMatrix:
    """
    Immutable set of grants, indexed by role.

    Built once at startup; the index is a read-only mapping of tuples so one
    instance can be shared by every request without locking.
    """

    __slots__ = ("_by_role", "_size")

    def __init__(self, entries: Iterable[PermissionEntry]):
        by_role: Dict[UserRole, List[PermissionEntry]] = {}
        for entry in entries:
            bucket = by_role.setdefault(entry.role, [])
            if entry not in bucket:
                bucket.append(entry)

        self._by_role = MappingProxyType({role: tuple(items) for role, items in by_role.items()})
        self._size = sum(len(items) for items in self._by_role.values())

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Iterable[Union[str, Mapping]]]) -> "PermissionMatrix":
        entries = []
        for role, grants in mapping.items():
            if UserRole.parse(role) is UserRole.unknown:
                raise PermissionConfigError(f"Unknown role '{role}' in permission matrix")
            entries.extend(PermissionEntry.parse(role, grant) for grant in grants)
        return cls(entries)

    def for_role(self, role: UserRole) -> Tuple[PermissionEntry, ...]:
        return self._by_role.get(role, ())

    @property
    def roles(self) -> FrozenSet[UserRole]:
        return frozenset(self._by_role)

    def __iter__(self) -> Iterator[PermissionEntry]:
        for items in self._by_role.values():
            yield from items

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        return f"PermissionMatrix(roles={len(self._by_role)}, entries={self._size})"


# ===============================================================
# FEATURE CAPABILITIES
# ===============================================================

class FeatureCapabilities:
    """Coarse-grained feature key -> roles allowed to use it."""

    __slots__ = ("_features",)

    def __init__(self, features: Mapping[str, Iterable[Union[str, UserRole]]]):
        resolved = {}
        for key, roles in features.items():
            allowed = set()
            for raw in roles:
                role = UserRole.parse(raw)
                if role is UserRole.unknown:
                    raise PermissionConfigError(f"Unknown role '{raw}' for feature '{key}'")
                allowed.add(role)
            resolved[key] = frozenset(allowed)
        self._features = MappingProxyType(resolved)

    def roles_for(self, feature_key: str) -> FrozenSet[UserRole]:
        return self._features.get(feature_key, frozenset())

    def __contains__(self, feature_key) -> bool:
        return feature_key in self._features

    def __iter__(self) -> Iterator[str]:
        return iter(self._features)

    def __len__(self) -> int:
        return len(self._features)


# ===============================================================
# JSON CONFIG FILE SHAPE
# ===============================================================

class PermissionConfigFile(BaseModel):
    """
    {
        "permissions": {"member": ["tasks:read:own", {"resource": ...}]},
        "features": {"financial-dashboard": ["admin", "manager"]}
    }
    """
    permissions: Dict[str, List[Union[str, Dict[str, str]]]]
    features: Dict[str, List[str]] = {}
