# tests/test_filtering.py

"""
Tests for filter_data() and the with_role_based_filtering() dispatcher.
"""

import logging
import time

import pytest

from core.config import settings
from core.errors import ContractViolationError
from core.evaluator import PermissionEvaluator
from core.filtering import (
    FilterRegistry,
    build_registry,
    filter_data,
    get_default_registry,
    with_role_based_filtering,
)
from core.scoping import TaskScope
from models.permissions import PermissionMatrix


def test_filter_data_keeps_order():
    items = [5, 1, 4, 2, 3]
    assert filter_data(items, lambda n: n % 2 == 1) == [5, 1, 3]
    assert filter_data([], lambda n: True) == []


def test_filter_data_rejects_non_lists():
    for bad in [None, "abc", {"a": 1}, 42]:
        with pytest.raises(ContractViolationError):
            filter_data(bad, lambda item: True)


def test_registry_contents():
    registry = get_default_registry()
    assert set(registry) == {"tasks", "lofts", "notifications", "financial", "transactions"}
    assert "tasks" in registry
    assert "Tasks" not in registry
    assert None not in registry
    assert registry.get(["tasks"]) is None


def test_registry_rejects_bad_registrations():
    registry = FilterRegistry()
    with pytest.raises(ValueError):
        registry.register("", TaskScope())
    with pytest.raises(TypeError):
        registry.register("tasks", lambda record: True)


# ============================================================
# Dispatcher
# ============================================================

def test_member_task_filtering(evaluator, tasks):
    registry = build_registry(evaluator)
    result = with_role_based_filtering(tasks, "member", "tasks", {"user_id": "user-123"}, registry=registry)
    assert [t["id"] for t in result] == ["1", "4"]
    assert result is not tasks


def test_financial_filtering_needs_no_params(evaluator, transactions):
    registry = build_registry(evaluator)
    assert with_role_based_filtering(transactions, "member", "financial", registry=registry) == []
    assert with_role_based_filtering(transactions, "executive", "financial", registry=registry) == transactions


def test_loft_filtering_uses_assigned_ids(evaluator, lofts):
    registry = build_registry(evaluator)
    params = {"user_id": "user-123", "assigned_ids": ["loft-2"]}
    result = with_role_based_filtering(lofts, "member", "lofts", params, registry=registry)
    assert [l["id"] for l in result] == ["loft-2"]


def test_member_lofts_need_only_assigned_ids(evaluator, lofts):
    registry = build_registry(evaluator)
    result = with_role_based_filtering(lofts, "member", "lofts", {"assigned_ids": ["loft-1"]}, registry=registry)
    assert [l["id"] for l in result] == ["loft-1"]


def test_partner_lofts_need_only_user_id(evaluator, lofts):
    registry = build_registry(evaluator)
    result = with_role_based_filtering(lofts, "partner", "lofts", {"user_id": "owner-2"}, registry=registry)
    assert [l["id"] for l in result] == ["loft-2"]


def test_member_lofts_without_assigned_ids_fall_back(lofts):
    assert with_role_based_filtering(lofts, "member", "lofts", {"user_id": "user-123"}) is lofts
    assert with_role_based_filtering(lofts, "member", "lofts", {"user_id": "user-123"}, strict=True) == []


def test_roles_without_a_grant_need_no_params(tasks):
    assert with_role_based_filtering(tasks, "guest", "tasks") == []


def test_evaluator_keyword_builds_a_registry(tiny_evaluator, tasks):
    result = with_role_based_filtering(tasks, "member", "tasks", {"user_id": "nobody"}, evaluator=tiny_evaluator)
    assert result == tasks
    assert result is not tasks


@pytest.mark.parametrize("params", [None, {}, {"user_id": None}])
def test_missing_user_id_returns_data_unfiltered(tasks, params):
    assert with_role_based_filtering(tasks, "member", "tasks", params) is tasks


@pytest.mark.parametrize("filter_type", ["unknown", "Tasks", "TASKS", "tasks-special", "", None, 42])
def test_unknown_filter_type_returns_data_unfiltered(tasks, filter_type):
    assert with_role_based_filtering(tasks, "member", filter_type, {"user_id": "user-123"}) is tasks


def test_fallback_is_logged(tasks, caplog):
    with caplog.at_level(logging.WARNING, logger="loft_access"):
        with_role_based_filtering(tasks, "member", "tasks-special", {"user_id": "user-123"})
    assert "tasks-special" in caplog.text


def test_strict_mode_fails_closed(tasks):
    assert with_role_based_filtering(tasks, "member", "unknown", {"user_id": "user-123"}, strict=True) == []
    assert with_role_based_filtering(tasks, "member", "tasks", {}, strict=True) == []


def test_strict_setting_is_the_default(tasks, monkeypatch):
    monkeypatch.setattr(settings, "STRICT_FILTERING", True)
    assert with_role_based_filtering(tasks, "member", "unknown") == []
    # an explicit argument still wins
    assert with_role_based_filtering(tasks, "member", "unknown", strict=False) is tasks


@pytest.mark.parametrize("bad", [None, "not-an-array", {"id": "1"}, 123])
def test_non_list_data_is_a_contract_violation(bad):
    with pytest.raises(ContractViolationError):
        with_role_based_filtering(bad, "member", "tasks", {"user_id": "user-123"})
    # contract violations are also TypeErrors
    with pytest.raises(TypeError):
        with_role_based_filtering(bad, "member", "unknown")


def test_non_mapping_params_is_a_contract_violation(tasks):
    with pytest.raises(ContractViolationError):
        with_role_based_filtering(tasks, "member", "tasks", ["user-123"])


def test_none_entry_raises_when_filtering(tasks):
    with pytest.raises(ContractViolationError):
        with_role_based_filtering(tasks + [None], "member", "tasks", {"user_id": "user-123"})


def test_widening_scope_never_shrinks_results(tasks):
    """A role with `all` on a resource sees a superset of what `own` yields."""
    own = PermissionEvaluator(PermissionMatrix.from_mapping({"member": ["tasks:read:own"]}))
    everything = PermissionEvaluator(PermissionMatrix.from_mapping({"member": ["tasks:read:all"]}))
    params = {"user_id": "user-123"}

    narrow = with_role_based_filtering(tasks, "member", "tasks", params, registry=build_registry(own))
    wide = with_role_based_filtering(tasks, "member", "tasks", params, registry=build_registry(everything))

    assert len(narrow) <= len(wide)
    assert all(item in wide for item in narrow)


def test_large_listing_filters_quickly(evaluator):
    records = [
        {"id": str(i), "assigned_to": "user-123" if i % 10 == 0 else f"user-{i}", "user_id": f"user-{i}"}
        for i in range(100_000)
    ]
    registry = build_registry(evaluator)

    start = time.perf_counter()
    result = with_role_based_filtering(records, "member", "tasks", {"user_id": "user-123"}, registry=registry)
    elapsed = time.perf_counter() - start

    # user-123 also authored record 123
    assert len(result) == 10_001
    assert elapsed < 1.0
