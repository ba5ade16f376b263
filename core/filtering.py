# core/filtering.py

"""
Generic list filtering entry points.

filter_data() applies any predicate to a list. with_role_based_filtering()
looks a scoping predicate up by its string key ("tasks", "lofts", ...) for
callers that only know the entity type at runtime.

Fallback policy for with_role_based_filtering():
  * unregistered filter type      -> data returned unfiltered
  * params the caller's scopes read are missing (user_id for `own`,
    assigned_ids for `assigned`) -> data returned unfiltered
Both are logged at WARNING. STRICT_FILTERING / strict=True returns [] instead.
A non-list `data` is a caller bug and raises ContractViolationError.
"""

from functools import lru_cache
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence

from core.config import settings
from core.errors import ContractViolationError
from core.evaluator import PermissionEvaluator
from core.logging_config import logger
from core.scoping import (
    FinancialScope,
    LoftScope,
    NotificationScope,
    ScopingContext,
    ScopingPredicate,
    TaskScope,
    TransactionScope,
)


def _require_sequence(data: Any, name: str = "data") -> None:
    # str / bytes are sequences too, but never a record list
    if not isinstance(data, (list, tuple)):
        raise ContractViolationError(
            f"{name} must be a list of records, got {type(data).__name__}"
        )


def filter_data(items: Sequence[Any], predicate: Callable[[Any], bool]) -> List[Any]:
    """Keep the items the predicate accepts, in their original order."""
    _require_sequence(items, "items")
    return [item for item in items if predicate(item)]


# ============================================================
# Registry
# ============================================================

class FilterRegistry:
    """
    Filter type key -> scoping predicate. Keys are exact and case-sensitive.
    Populate at startup; lookups afterwards are read-only.
    """

    def __init__(self, predicates: Optional[Mapping[str, ScopingPredicate]] = None):
        self._predicates: Dict[str, ScopingPredicate] = {}
        for key, predicate in (predicates or {}).items():
            self.register(key, predicate)

    def register(self, filter_type: str, predicate: ScopingPredicate) -> None:
        if not isinstance(filter_type, str) or not filter_type:
            raise ValueError("filter_type must be a non-empty string")
        if not isinstance(predicate, ScopingPredicate):
            raise TypeError(f"{predicate!r} is not a ScopingPredicate")
        self._predicates[filter_type] = predicate

    def get(self, filter_type: Any) -> Optional[ScopingPredicate]:
        if not isinstance(filter_type, str):
            return None
        return self._predicates.get(filter_type)

    def __contains__(self, filter_type: Any) -> bool:
        return self.get(filter_type) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(self._predicates)


def build_registry(evaluator: Optional[PermissionEvaluator] = None) -> FilterRegistry:
    """Registry with the built-in entity families bound to `evaluator` (process default if None)."""
    return FilterRegistry({
        "tasks": TaskScope(evaluator),
        "lofts": LoftScope(evaluator),
        "notifications": NotificationScope(evaluator),
        "financial": FinancialScope(evaluator),
        "transactions": TransactionScope(evaluator),
    })


@lru_cache(maxsize=1)
def get_default_registry() -> FilterRegistry:
    return build_registry()


# ============================================================
# Dispatcher
# ============================================================

def with_role_based_filtering(
    data: Sequence[Any],
    role: Any,
    filter_type: Any,
    params: Optional[Mapping[str, Any]] = None,
    *,
    evaluator: Optional[PermissionEvaluator] = None,
    registry: Optional[FilterRegistry] = None,
    strict: Optional[bool] = None,
) -> Sequence[Any]:
    """
    Filter `data` with the predicate registered under `filter_type`.

    params: {"user_id": ..., "assigned_ids": [...]}
    evaluator: decide with this matrix instead of the process default
    registry: look filter types up here (takes precedence over evaluator)

    Returns the original `data` object when it cannot filter
    (see module docstring), or a new list otherwise.
    """
    _require_sequence(data)
    if params is not None and not isinstance(params, Mapping):
        raise ContractViolationError(f"params must be a mapping, got {type(params).__name__}")

    fail_closed = settings.STRICT_FILTERING if strict is None else strict
    if registry is None:
        registry = build_registry(evaluator) if evaluator is not None else get_default_registry()
    params = params or {}

    predicate = registry.get(filter_type)
    if predicate is None:
        logger.warning(
            f"Unknown filter type {filter_type!r}; "
            f"{'returning no records' if fail_closed else 'returning data unfiltered'}"
        )
        return [] if fail_closed else data

    supplied = {name for name, value in params.items() if value is not None and value != ""}
    missing = predicate.missing_params(role, supplied)
    if missing:
        logger.warning(
            f"Filter '{filter_type}' missing params {missing}; "
            f"{'returning no records' if fail_closed else 'returning data unfiltered'}"
        )
        return [] if fail_closed else data

    context = ScopingContext.build(
        role,
        user_id=params.get("user_id"),
        assigned_ids=params.get("assigned_ids"),
    )
    return filter_data(data, predicate.bind(context))
