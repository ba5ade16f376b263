# core/evaluator.py

"""
Permission evaluator.

Answers "is this allowed" and "which scopes are allowed" against an
injected, immutable PermissionMatrix. Every method is pure and total:
an unrecognised role, resource, action or scope is answered with a deny,
never an exception. The only raising path is has_any_role() called
without a candidate list, which is a bug in the calling code.
"""

from functools import lru_cache
from typing import Any, FrozenSet, Iterable, Optional, Tuple

from core.errors import ContractViolationError
from models.enums import UserRole
from models.permissions import FeatureCapabilities, PermissionEntry, PermissionMatrix, Scope


class PermissionEvaluator:

    __slots__ = ("_matrix", "_features")

    def __init__(self, matrix: PermissionMatrix, features: Optional[FeatureCapabilities] = None):
        self._matrix = matrix
        self._features = features if features is not None else FeatureCapabilities({})

    @property
    def matrix(self) -> PermissionMatrix:
        return self._matrix

    @property
    def features(self) -> FeatureCapabilities:
        return self._features

    # -----------------------------------------------------
    # Internal: entries for role+resource(+action)
    # -----------------------------------------------------
    def _entries(self, role: Any, resource: Any, action: Any = None) -> Iterable[PermissionEntry]:
        parsed = UserRole.parse(role)
        if parsed is UserRole.unknown or not isinstance(resource, str):
            return ()
        if action is not None and not isinstance(action, str):
            return ()

        return (
            entry for entry in self._matrix.for_role(parsed)
            if (entry.resource == "*" or entry.resource == resource)
            and (action is None or entry.action == "*" or entry.action == action)
        )

    # -----------------------------------------------------
    # Permission evaluation
    # -----------------------------------------------------
    def has_permission(self, role: Any, resource: Any, action: Any, scope: Any = None) -> bool:
        """
        True iff role holds resource:action and, when a scope is given,
        that exact scope. None / "" scope means "any recorded scope".
        """
        if action is None:
            return False
        if scope is not None and not isinstance(scope, str):
            return False

        for entry in self._entries(role, resource, action):
            if not scope or entry.scope == scope:
                return True
        return False

    def can_access(self, role: Any, feature_key: Any) -> bool:
        if not isinstance(feature_key, str):
            return False
        parsed = UserRole.parse(role)
        if parsed is UserRole.unknown:
            return False
        return parsed in self._features.roles_for(feature_key)

    def can_access_resource(self, role: Any, resource: Any) -> bool:
        return any(True for _ in self._entries(role, resource))

    def get_allowed_scopes(self, role: Any, resource: Any) -> FrozenSet[Scope]:
        return frozenset(entry.scope for entry in self._entries(role, resource))

    def get_action_scopes(self, role: Any, resource: Any, action: str) -> FrozenSet[Scope]:
        if action is None:
            return frozenset()
        return frozenset(entry.scope for entry in self._entries(role, resource, action))

    def get_role_permissions(self, role: Any) -> Tuple[PermissionEntry, ...]:
        parsed = UserRole.parse(role)
        if parsed is UserRole.unknown:
            return ()
        return self._matrix.for_role(parsed)

    # -----------------------------------------------------
    # Role membership
    # -----------------------------------------------------
    def has_any_role(self, role: Any, candidate_roles: Optional[Iterable[Any]]) -> bool:
        """
        Exact membership test. An empty list is a legal "nobody" answer;
        a missing list is a programming error and raises.
        """
        if candidate_roles is None:
            raise ContractViolationError("has_any_role() requires a list of candidate roles, got None")
        if isinstance(candidate_roles, (str, bytes)):
            raise ContractViolationError("has_any_role() expects a list of roles, not a single string")

        parsed = UserRole.parse(role)
        if parsed is UserRole.unknown:
            return False
        return any(UserRole.parse(candidate) is parsed for candidate in candidate_roles)


# ============================================================
# Process-wide evaluator (built once from settings)
# ============================================================

@lru_cache(maxsize=1)
def get_evaluator() -> PermissionEvaluator:
    """
    Shared evaluator for the process. Usable directly or as a FastAPI
    dependency (Depends(get_evaluator)); tests override it or build their
    own PermissionEvaluator with a fixture matrix.
    """
    from core.config import settings
    from core.permissions import load_permission_config

    matrix, features = load_permission_config(settings.PERMISSION_MATRIX_FILE)
    return PermissionEvaluator(matrix, features)
