# core/scoping.py

"""
Per-entity visibility rules.

Each predicate turns a (role, user_id, assigned ids) decision into a
boolean test over one record. Records are Supabase rows (dicts) or plain
objects; predicates read only their declared ownership fields and compare
identifiers with strict equality. They never serialize, copy or walk the
record, so deeply nested or self-referencing rows are fine.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Callable, Collection, FrozenSet, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from core.errors import ContractViolationError
from core.evaluator import PermissionEvaluator, get_evaluator
from models.enums import ScopeLevel, UserRole
from models.permissions import Scope


# ============================================================
# Context
# ============================================================

class ScopingContext(BaseModel):
    """Per-request input to a predicate. Built fresh for every call."""
    model_config = ConfigDict(frozen=True)

    role: UserRole = UserRole.unknown
    user_id: Optional[Any] = None
    assigned_ids: FrozenSet[Any] = frozenset()

    @field_validator("role", mode="before")
    @classmethod
    def _parse_role(cls, value: Any) -> UserRole:
        return UserRole.parse(value)

    @field_validator("assigned_ids", mode="before")
    @classmethod
    def _freeze_ids(cls, value: Any) -> FrozenSet[Any]:
        if value is None:
            return frozenset()
        return frozenset(v for v in value if v is not None)

    @classmethod
    def build(cls, role: Any, user_id: Any = None, assigned_ids: Optional[Iterable[Any]] = None) -> "ScopingContext":
        return cls(role=role, user_id=user_id, assigned_ids=assigned_ids)


# ============================================================
# Field helpers
# ============================================================

def read_field(record: Any, name: str) -> Any:
    """Read one field from a row dict or an object. Missing -> None."""
    if record is None:
        raise ContractViolationError(f"Cannot read '{name}' from a None record")
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def same_id(value: Any, user_id: Any) -> bool:
    """Strict identifier match: no None, no empty string, no cross-type coercion (1 == True)."""
    if value is None or user_id is None or user_id == "":
        return False
    return type(value) is type(user_id) and value == user_id


# ============================================================
# Predicates
# ============================================================

RecordTest = Callable[[Any], bool]

ALL = ScopeLevel.all.value
OWN = ScopeLevel.own.value
ASSIGNED = ScopeLevel.assigned.value
PUBLIC = ScopeLevel.public.value


def _never(record: Any) -> bool:
    if record is None:
        raise ContractViolationError("Cannot scope a None record")
    return False


def _always(record: Any) -> bool:
    if record is None:
        raise ContractViolationError("Cannot scope a None record")
    return True


class ScopingPredicate(ABC):
    """
    Visibility rule for one entity family.

    resource / action name the matrix grant that decides the scope.
    scope_params maps each ownership scope to the caller params it reads
    (`own` -> user_id, `assigned` -> assigned_ids); `all` and role-gated
    rules read none. missing_params() uses it so the dispatcher only falls
    back when the caller's scopes genuinely cannot be evaluated.

    bind() resolves the caller's scopes once and returns a per-record
    test, so filtering a listing costs one matrix lookup, not one per row.
    """

    resource: str = ""
    action: str = "read"
    scope_params: Mapping = {}

    def __init__(self, evaluator: Optional[PermissionEvaluator] = None):
        self._evaluator = evaluator

    @property
    def evaluator(self) -> PermissionEvaluator:
        return self._evaluator if self._evaluator is not None else get_evaluator()

    def scopes(self, role: UserRole) -> FrozenSet[Scope]:
        return self.evaluator.get_action_scopes(role, self.resource, self.action)

    def missing_params(self, role: Any, supplied: Collection[str]) -> List[str]:
        """
        Params the caller must add before this rule can be evaluated for `role`.

        Empty when the role holds `all`, holds no ownership scope (deny needs
        no input), or supplied everything at least one of its scopes reads.
        """
        scopes = self.scopes(UserRole.parse(role))
        if ALL in scopes:
            return []

        needed = [self.scope_params[scope] for scope in sorted(scopes) if scope in self.scope_params]
        if not needed:
            return []
        if any(all(name in supplied for name in names) for names in needed):
            return []
        return sorted({name for names in needed for name in names if name not in supplied})

    @abstractmethod
    def bind(self, context: ScopingContext) -> RecordTest:
        ...

    def visible(self, record: Any, context: ScopingContext) -> bool:
        return self.bind(context)(record)

    def __call__(self, record: Any, role: Any, user_id: Any = None, assigned_ids: Optional[Iterable[Any]] = None) -> bool:
        return self.visible(record, ScopingContext.build(role, user_id, assigned_ids))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(resource={self.resource!r})"


class TaskScope(ScopingPredicate):
    """`own`: assigned to the caller OR created by the caller. `all`: everything."""

    resource = "tasks"
    scope_params = {OWN: ("user_id",)}

    def bind(self, context: ScopingContext) -> RecordTest:
        scopes = self.scopes(context.role)
        if ALL in scopes:
            return _always
        if OWN not in scopes:
            return _never

        user_id = context.user_id

        def owns_task(record: Any) -> bool:
            return (
                same_id(read_field(record, "assigned_to"), user_id)
                or same_id(read_field(record, "user_id"), user_id)
            )

        return owns_task


class NotificationScope(ScopingPredicate):
    """`own`: addressed to the caller. `all`: everything."""

    resource = "notifications"
    scope_params = {OWN: ("user_id",)}

    def bind(self, context: ScopingContext) -> RecordTest:
        scopes = self.scopes(context.role)
        if ALL in scopes:
            return _always
        if OWN not in scopes:
            return _never

        user_id = context.user_id

        def addressed_to_caller(record: Any) -> bool:
            return same_id(read_field(record, "user_id"), user_id)

        return addressed_to_caller


class LoftScope(ScopingPredicate):
    """
    `assigned`: loft id is in the caller's assigned ids (members working the loft).
    `own`: caller is the loft's owner (partners).
    `public`: the loft is published (`is_published is True`), for clients browsing.
    `all`: everything.
    """

    resource = "lofts"
    scope_params = {ASSIGNED: ("assigned_ids",), OWN: ("user_id",)}

    def bind(self, context: ScopingContext) -> RecordTest:
        scopes = self.scopes(context.role)
        if ALL in scopes:
            return _always

        check_assigned = ASSIGNED in scopes
        check_owner = OWN in scopes
        check_published = PUBLIC in scopes
        if not (check_assigned or check_owner or check_published):
            return _never

        assigned_ids = context.assigned_ids
        user_id = context.user_id

        def loft_visible(record: Any) -> bool:
            if check_assigned:
                loft_id = read_field(record, "id")
                if any(same_id(loft_id, assigned) for assigned in assigned_ids):
                    return True
            if check_owner and same_id(read_field(record, "owner_id"), user_id):
                return True
            if check_published:
                return read_field(record, "is_published") is True
            return False

        return loft_visible


class RoleGatedScope(ScopingPredicate):
    """
    Visible for every role holding any grant on the resource, hidden otherwise.
    Financial data is role-gated, not ownership-gated: the record is never inspected.
    """

    def bind(self, context: ScopingContext) -> RecordTest:
        if self.evaluator.can_access_resource(context.role, self.resource):
            return _always
        return _never


class FinancialScope(RoleGatedScope):
    resource = "financial"


class TransactionScope(RoleGatedScope):
    resource = "transactions"
