from fastapi import Depends

from core.data_filter import DataFilterService
from core.evaluator import PermissionEvaluator, get_evaluator
from core.filtering import FilterRegistry, build_registry


# ============================================================
# Engine dependencies
# ============================================================
# No identity resolution happens here: callers send the already
# resolved role / user id in the request body.

def get_permission_evaluator() -> PermissionEvaluator:
    """Process-wide evaluator. Override in tests via app.dependency_overrides."""
    return get_evaluator()


def get_filter_registry(
    evaluator: PermissionEvaluator = Depends(get_permission_evaluator),
) -> FilterRegistry:
    return build_registry(evaluator)


def get_data_filter_service(
    evaluator: PermissionEvaluator = Depends(get_permission_evaluator),
) -> DataFilterService:
    return DataFilterService(evaluator)
