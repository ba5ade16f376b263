# core/notification_filter.py

"""
Notification relevance rules.

Type allow-lists per role, keyword checks on title + message,
task-assignment narrowing and the relevance sort used by dashboards.
"""

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Iterable, List

from core.scoping import read_field, same_id
from models.enums import UserRole


# ============================================================
# Type allow-lists
# ============================================================
# Roles missing from the map may not receive any notification type.
NOTIFICATION_TYPES_BY_ROLE = {
    UserRole.admin: frozenset({"*"}),
    UserRole.manager: frozenset({
        "task_assigned",
        "task_completed",
        "financial_report",
        "system_alert",
        "user_created",
    }),
    UserRole.executive: frozenset({
        "financial_report",
        "system_alert",
        "executive_summary",
    }),
    UserRole.member: frozenset({
        "task_assigned",
        "task_completed",
        "task_updated",
        "info",
        "success",
        "warning",
    }),
    UserRole.guest: frozenset({
        "info",
        "public_announcement",
    }),
}

# Generic member types that only pass when their content is about tasks
GENERIC_NOTIFICATION_TYPES = frozenset({"info", "success", "warning"})

TASK_KEYWORDS = ("task", "assignment", "deadline", "completion", "progress")
EXECUTIVE_KEYWORDS = ("financial", "revenue", "profit", "executive", "board", "quarterly")

PRIORITY_RANK = {"high": 0, "medium": 1, "low": 2}


def is_notification_type_allowed(notification_type: Any, role: Any) -> bool:
    allowed = NOTIFICATION_TYPES_BY_ROLE.get(UserRole.parse(role), frozenset())
    if "*" in allowed:
        return True
    return isinstance(notification_type, str) and notification_type in allowed


def _content(notification: Any) -> str:
    title = read_field(notification, "title")
    message = read_field(notification, "message")
    parts = [value for value in (title, message) if isinstance(value, str)]
    return " ".join(parts).lower()


def is_task_related_content(notification: Any) -> bool:
    content = _content(notification)
    return any(keyword in content for keyword in TASK_KEYWORDS)


def is_executive_relevant(notification: Any) -> bool:
    content = _content(notification)
    return any(keyword in content for keyword in EXECUTIVE_KEYWORDS)


# ============================================================
# Role relevance
# ============================================================

def is_member_relevant(notification: Any) -> bool:
    """Member types only; info / success / warning must talk about tasks."""
    notification_type = read_field(notification, "type")
    if not is_notification_type_allowed(notification_type, UserRole.member):
        return False
    if notification_type in GENERIC_NOTIFICATION_TYPES:
        return is_task_related_content(notification)
    return True


def is_executive_relevant_notification(notification: Any) -> bool:
    """Executive types, or any notification whose content is about finance / the board."""
    return (
        is_notification_type_allowed(read_field(notification, "type"), UserRole.executive)
        or is_executive_relevant(notification)
    )


# ============================================================
# Assignment narrowing / sorting
# ============================================================

def _task_id(notification: Any) -> Any:
    metadata = read_field(notification, "metadata")
    if isinstance(metadata, Mapping):
        return metadata.get("task_id")
    return None


def filter_by_assignment_relevance(
    notifications: Iterable[Any],
    user_id: Any,
    assigned_task_ids: Iterable[Any],
) -> List[Any]:
    """
    Notifications about a task must be about one of `assigned_task_ids`;
    notifications without a task reference must be addressed to the user.
    Missing, null or empty metadata counts as "no task reference".
    """
    assigned = [task_id for task_id in assigned_task_ids if task_id is not None]
    kept = []
    for notification in notifications:
        task_id = _task_id(notification)
        if task_id is not None:
            if any(same_id(task_id, assigned_id) for assigned_id in assigned):
                kept.append(notification)
        elif same_id(read_field(notification, "user_id"), user_id):
            kept.append(notification)
    return kept


def _created_at(notification: Any) -> float:
    value = read_field(notification, "created_at")
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return float("-inf")
    else:
        return float("-inf")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def _priority_rank(notification: Any) -> int:
    priority = read_field(notification, "priority")
    if not isinstance(priority, str):
        return PRIORITY_RANK["low"]
    return PRIORITY_RANK.get(priority, PRIORITY_RANK["low"])


def sort_by_relevance(notifications: Iterable[Any]) -> List[Any]:
    """
    New list ordered unread first, then high / medium / low priority,
    then newest first. Unknown priorities rank as low; unparseable
    dates sort last. The input is not modified.
    """
    return sorted(
        notifications,
        key=lambda n: (
            read_field(n, "is_read") is True,
            _priority_rank(n),
            -_created_at(n),
        ),
    )
