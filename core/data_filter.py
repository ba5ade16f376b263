# core/data_filter.py

"""
Dashboard data filtering.

Wraps the scoping predicates with the bookkeeping dashboards need:
how many rows were withheld, whether any security filtering happened,
loft sanitising for members and an audit summary per request.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from core.evaluator import PermissionEvaluator, get_evaluator
from core.filtering import filter_data
from core.logging_config import logger
from core.scoping import (
    FinancialScope,
    LoftScope,
    NotificationScope,
    ScopingContext,
    ScopingPredicate,
    TaskScope,
    TransactionScope,
    ALL,
    OWN,
    read_field,
    same_id,
)
from core.notification_filter import (
    filter_by_assignment_relevance,
    is_executive_relevant_notification,
    is_member_relevant,
    sort_by_relevance,
)
from models.enums import UserRole


# Loft fields a member may receive. Everything else (pricing, owner split,
# utility accounts, correspondents, payment schedules, owner_name) is dropped.
LOFT_MEMBER_FIELDS = (
    "id",
    "name",
    "address",
    "description",
    "status",
    "zone_area_id",
    "phone_number",
    "internet_connection_type_id",
)
# kept only when it has a value (joined from zone_areas)
LOFT_MEMBER_OPTIONAL_FIELDS = ("zone_area_name",)

# Extra rule ANDed with ownership (narrow) or ORed with it (widen) for roles
# holding only `own` notification scope.
NOTIFICATION_NARROWING_BY_ROLE = {
    UserRole.member: is_member_relevant,
}
NOTIFICATION_WIDENING_BY_ROLE = {
    UserRole.executive: is_executive_relevant_notification,
}

DASHBOARD_SECTIONS = ("tasks", "lofts", "notifications", "transactions")


# ============================================================
# Models
# ============================================================

class FilterConfig(BaseModel):
    user_role: Any = None
    user_id: Optional[Any] = None
    assigned_loft_ids: List[Any] = Field(default_factory=list)

    @property
    def role(self) -> UserRole:
        return UserRole.parse(self.user_role)

    def context(self) -> ScopingContext:
        return ScopingContext.build(self.user_role, self.user_id, self.assigned_loft_ids)


class FilterResult(BaseModel):
    data: List[Any]
    filtered_count: int
    total_count: int
    has_security_filtering: bool

    @classmethod
    def from_filter(cls, kept: List[Any], total: int) -> "FilterResult":
        filtered = total - len(kept)
        return cls(
            data=kept,
            filtered_count=filtered,
            total_count=total,
            has_security_filtering=filtered > 0,
        )


class FilterSummary(BaseModel):
    total_count: int
    filtered_count: int
    returned_count: int
    has_security_filtering: bool


class SecurityAuditLog(BaseModel):
    timestamp: datetime
    user_role: str
    user_id: Optional[str] = None
    total_items_filtered: int
    total_items: int
    has_security_filtering: bool
    filter_results: List[FilterSummary]


# ============================================================
# Service
# ============================================================

class DataFilterService:
    """Per-entity filtering with counts. One instance can serve every request."""

    def __init__(self, evaluator: Optional[PermissionEvaluator] = None):
        self._evaluator = evaluator
        self._tasks = TaskScope(evaluator)
        self._lofts = LoftScope(evaluator)
        self._notifications = NotificationScope(evaluator)
        self._financial = FinancialScope(evaluator)
        self._transactions = TransactionScope(evaluator)

    @property
    def evaluator(self) -> PermissionEvaluator:
        return self._evaluator if self._evaluator is not None else get_evaluator()

    def _apply(self, items: Sequence[Any], predicate: ScopingPredicate, config: FilterConfig) -> FilterResult:
        kept = filter_data(items, predicate.bind(config.context()))
        return FilterResult.from_filter(kept, len(items))

    # -----------------------------------------------------
    # Entity filters
    # -----------------------------------------------------
    def filter_tasks(self, tasks: Sequence[Any], config: FilterConfig) -> FilterResult:
        return self._apply(tasks, self._tasks, config)

    def filter_lofts(self, lofts: Sequence[Any], config: FilterConfig) -> FilterResult:
        return self._apply(lofts, self._lofts, config)

    def filter_notifications(self, notifications: Sequence[Any], config: FilterConfig) -> FilterResult:
        """
        Roles with `all` notification scope see everything. Otherwise the
        ownership rule applies, narrowed (member: task-related only) or
        widened (executive: plus finance / board notifications) per role.
        """
        context = config.context()
        owner_test = self._notifications.bind(context)
        scopes = self._notifications.scopes(context.role)

        narrow = NOTIFICATION_NARROWING_BY_ROLE.get(context.role)
        widen = NOTIFICATION_WIDENING_BY_ROLE.get(context.role)

        if ALL in scopes or OWN not in scopes:
            test = owner_test
        elif narrow is not None:
            def test(record: Any) -> bool:
                return owner_test(record) and narrow(record)
        elif widen is not None:
            def test(record: Any) -> bool:
                return owner_test(record) or widen(record)
        else:
            test = owner_test

        kept = filter_data(notifications, test)
        return FilterResult.from_filter(kept, len(notifications))

    def filter_notifications_with_assignments(
        self,
        notifications: Sequence[Any],
        config: FilterConfig,
        assigned_task_ids: Optional[Iterable[Any]] = None,
    ) -> FilterResult:
        """
        filter_notifications(), then for members with assigned tasks drop
        notifications about other tasks. Result is sorted by relevance
        (unread, priority, newest) for every role.
        """
        result = self.filter_notifications(notifications, config)
        data = result.data

        task_ids = list(assigned_task_ids or [])
        if config.role is UserRole.member and task_ids:
            data = filter_by_assignment_relevance(data, config.user_id, task_ids)

        return FilterResult.from_filter(sort_by_relevance(data), len(notifications))

    def filter_financial_data(self, rows: Sequence[Any], config: FilterConfig) -> FilterResult:
        return self._apply(rows, self._financial, config)

    def filter_transactions(self, transactions: Sequence[Any], config: FilterConfig) -> FilterResult:
        return self._apply(transactions, self._transactions, config)

    # -----------------------------------------------------
    # Sanitising / helpers
    # -----------------------------------------------------
    @staticmethod
    def sanitize_loft_for_member(loft: Mapping[str, Any]) -> Dict[str, Any]:
        """New dict holding only the operational loft fields a member may see."""
        sanitized = {key: loft[key] for key in LOFT_MEMBER_FIELDS if key in loft}
        for key in LOFT_MEMBER_OPTIONAL_FIELDS:
            if loft.get(key):
                sanitized[key] = loft[key]
        return sanitized

    @staticmethod
    def get_assigned_loft_ids(user_id: Any, tasks: Iterable[Any]) -> List[Any]:
        """
        Loft ids of the tasks the user is assigned to or created,
        de-duplicated in first-seen order. Tasks without a loft are skipped.
        """
        seen = []
        for task in tasks:
            if not (
                same_id(read_field(task, "assigned_to"), user_id)
                or same_id(read_field(task, "user_id"), user_id)
            ):
                continue
            loft_id = read_field(task, "loft_id")
            if loft_id is not None and loft_id not in seen:
                seen.append(loft_id)
        return seen

    def filter_dashboard_data(self, data: Mapping[str, Sequence[Any]], config: FilterConfig) -> Dict[str, FilterResult]:
        """Filter every dashboard section present in `data`. Member lofts come back sanitised."""
        results: Dict[str, FilterResult] = {}

        if data.get("tasks") is not None:
            results["tasks"] = self.filter_tasks(data["tasks"], config)

        if data.get("lofts") is not None:
            lofts = self.filter_lofts(data["lofts"], config)
            if config.role is UserRole.member:
                lofts.data = [self.sanitize_loft_for_member(loft) for loft in lofts.data]
            results["lofts"] = lofts

        if data.get("notifications") is not None:
            results["notifications"] = self.filter_notifications(data["notifications"], config)

        if data.get("transactions") is not None:
            results["transactions"] = self.filter_transactions(data["transactions"], config)

        return results

    def can_access_data(self, role: Any, resource: str, action: Optional[str] = None) -> bool:
        if action:
            return self.evaluator.has_permission(role, resource, action)
        return self.evaluator.can_access_resource(role, resource)

    # -----------------------------------------------------
    # Audit
    # -----------------------------------------------------
    @staticmethod
    def get_security_audit_log(results: Iterable[FilterResult], role: Any, user_id: Any) -> SecurityAuditLog:
        summaries = [
            FilterSummary(
                total_count=r.total_count,
                filtered_count=r.filtered_count,
                returned_count=len(r.data),
                has_security_filtering=r.has_security_filtering,
            )
            for r in results
        ]

        audit = SecurityAuditLog(
            timestamp=datetime.now(timezone.utc),
            user_role=role if isinstance(role, str) else UserRole.unknown.value,
            user_id=None if user_id is None else str(user_id),
            total_items_filtered=sum(s.filtered_count for s in summaries),
            total_items=sum(s.total_count for s in summaries),
            has_security_filtering=any(s.has_security_filtering for s in summaries),
            filter_results=summaries,
        )

        logger.info(
            f"Data filter audit: role={audit.user_role} user={audit.user_id} "
            f"filtered={audit.total_items_filtered}/{audit.total_items}"
        )
        return audit
