from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from core.data_filter import DASHBOARD_SECTIONS, DataFilterService, FilterConfig
from core.errors import ContractViolationError, contract_violation
from core.evaluator import PermissionEvaluator
from core.filtering import FilterRegistry, with_role_based_filtering
from dependencies.access import (
    get_data_filter_service,
    get_filter_registry,
    get_permission_evaluator,
)

router = APIRouter(
    prefix="/access",
    tags=["Access Decisions"],
)


# ============================================================
# Pydantic Models
# ============================================================
class PermissionCheckRequest(BaseModel):
    role: Any = None
    resource: str
    action: str
    scope: Optional[str] = None


class FeatureCheckRequest(BaseModel):
    role: Any = None
    feature: str


class FilterRequest(BaseModel):
    role: Any = None
    filter_type: str
    params: Dict[str, Any] = Field(default_factory=dict)
    # validated by the engine so a non-list is reported as a contract violation
    data: Any = None
    strict: Optional[bool] = None


class DashboardRequest(BaseModel):
    role: Any = None
    user_id: Optional[str] = None
    assigned_loft_ids: List[str] = Field(default_factory=list)

    tasks: Optional[List[Dict[str, Any]]] = None
    lofts: Optional[List[Dict[str, Any]]] = None
    notifications: Optional[List[Dict[str, Any]]] = None
    transactions: Optional[List[Dict[str, Any]]] = None


class DecisionResponse(BaseModel):
    allowed: bool


# ============================================================
# Permission checks
# ============================================================
@router.post(
    "/check",
    summary="Check a resource/action/scope permission",
    response_model=DecisionResponse,
)
def check_permission(
    payload: PermissionCheckRequest,
    evaluator: PermissionEvaluator = Depends(get_permission_evaluator),
):
    allowed = evaluator.has_permission(payload.role, payload.resource, payload.action, payload.scope)
    return {"allowed": allowed}


@router.post(
    "/features",
    summary="Check a coarse feature capability",
    response_model=DecisionResponse,
)
def check_feature(
    payload: FeatureCheckRequest,
    evaluator: PermissionEvaluator = Depends(get_permission_evaluator),
):
    return {"allowed": evaluator.can_access(payload.role, payload.feature)}


@router.get(
    "/scopes",
    summary="List the scopes a role holds on a resource",
)
def list_scopes(
    role: Optional[str] = Query(None),
    resource: str = Query(...),
    evaluator: PermissionEvaluator = Depends(get_permission_evaluator),
):
    scopes = evaluator.get_allowed_scopes(role, resource)
    return {
        "role": role,
        "resource": resource,
        "scopes": sorted(scopes),
    }


# ============================================================
# Record filtering
# ============================================================
@router.post(
    "/filter",
    summary="Filter a record list by filter type",
    description="Unknown filter types and missing params return the data unfiltered unless strict is set.",
)
def filter_records(
    payload: FilterRequest,
    registry: FilterRegistry = Depends(get_filter_registry),
):
    try:
        data = with_role_based_filtering(
            payload.data,
            payload.role,
            payload.filter_type,
            payload.params,
            registry=registry,
            strict=payload.strict,
        )
    except ContractViolationError as e:
        raise contract_violation(e)

    return {
        "success": True,
        "total_count": len(payload.data),
        "returned_count": len(data),
        "data": list(data),
    }


@router.post(
    "/dashboard",
    summary="Filter every dashboard section for one caller",
)
def filter_dashboard(
    payload: DashboardRequest,
    service: DataFilterService = Depends(get_data_filter_service),
):
    config = FilterConfig(
        user_role=payload.role,
        user_id=payload.user_id,
        assigned_loft_ids=payload.assigned_loft_ids,
    )
    sections = {
        name: getattr(payload, name)
        for name in DASHBOARD_SECTIONS
        if getattr(payload, name) is not None
    }

    try:
        results = service.filter_dashboard_data(sections, config)
    except ContractViolationError as e:
        raise contract_violation(e)

    audit = service.get_security_audit_log(results.values(), payload.role, payload.user_id)
    return {
        "success": True,
        "data": {name: result.model_dump() for name, result in results.items()},
        "audit": audit.model_dump(mode="json"),
    }
