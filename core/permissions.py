# ============================================
# CENTRALIZED ROLE → PERMISSIONS MAP
# ============================================
# Entries are "resource:action:scope". Absence of an entry means deny.
# "*" is a whole-field wildcard and only the admin role holds it.
from pathlib import Path
from typing import Optional, Tuple

from pydantic import ValidationError

from core.errors import PermissionConfigError
from core.logging_config import logger
from models.permissions import FeatureCapabilities, PermissionConfigFile, PermissionMatrix


ROLE_PERMISSIONS = {

    # =====================================================
    # ADMIN — Full access to everything
    # =====================================================
    "admin": [
        "*:*:all",
    ],

    # =====================================================
    # MANAGER — operations + finance, team-level user edits
    # =====================================================
    "manager": [
        "dashboard:read:all",

        "tasks:read:all", "tasks:write:all",
        "tasks:create:all", "tasks:delete:all",

        "lofts:read:all", "lofts:write:all", "lofts:create:all",

        "reservations:read:all", "reservations:write:all",

        "notifications:read:all",

        "financial:read:all",
        "transactions:read:all", "transactions:write:all", "transactions:create:all",
        "reports:read:all",

        # can see everyone, can only edit their own team
        "users:read:all",
        "users:write:team",
    ],

    # =====================================================
    # EXECUTIVE — read-only finance, no task management
    # =====================================================
    "executive": [
        "dashboard:read:all",
        "dashboard-financial:read:all",

        "financial:read:all",
        "transactions:read:all",
        "reports:read:all",

        "lofts:read:all",

        "notifications:read:own",
    ],

    # =====================================================
    # MEMBER — own tasks, assigned lofts, no finance
    # =====================================================
    "member": [
        "dashboard:read:own",

        "tasks:read:own", "tasks:write:own",

        "lofts:read:assigned",

        "notifications:read:own",
    ],

    # =====================================================
    # CLIENT — guests booking lofts
    # =====================================================
    "client": [
        "lofts:read:public",

        "reservations:read:own", "reservations:create:own",
        "reservations:write:own",

        "notifications:read:own",
    ],

    # =====================================================
    # PARTNER — property owners listing their lofts
    # =====================================================
    "partner": [
        "dashboard:read:own",

        "lofts:read:own", "lofts:write:own", "lofts:create:own",

        "reservations:read:own",

        "notifications:read:own",
    ],

    # =====================================================
    # FALLBACK — public pages only
    # =====================================================
    "guest": [
        "public:read:all",
        "help:read:all",
    ],
}


# ============================================
# FEATURE → ROLES (coarse UI gates)
# ============================================
FEATURE_CAPABILITIES = {
    "admin-panel": ["admin"],
    "system-settings": ["admin"],
    "audit-logs": ["admin"],
    "user-management": ["admin", "manager"],

    "financial-dashboard": ["admin", "manager", "executive"],
    "executive-dashboard": ["admin", "executive"],
    "reports": ["admin", "manager", "executive"],

    "task-management": ["admin", "manager", "member"],
    "loft-management": ["admin", "manager"],

    "reservations": ["admin", "manager", "client", "partner"],
    "partner-dashboard": ["admin", "partner"],
    "client-dashboard": ["admin", "client"],
}


def build_default_config() -> Tuple[PermissionMatrix, FeatureCapabilities]:
    return (
        PermissionMatrix.from_mapping(ROLE_PERMISSIONS),
        FeatureCapabilities(FEATURE_CAPABILITIES),
    )


def load_permission_config(path: Optional[str] = None) -> Tuple[PermissionMatrix, FeatureCapabilities]:
    """
    Load the matrix + feature map from a JSON file, or the built-in
    defaults when no path is given. Raises PermissionConfigError.
    """
    if not path:
        return build_default_config()

    file_path = Path(path)
    try:
        raw = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise PermissionConfigError(f"Cannot read permission matrix '{file_path}': {e}") from e

    try:
        parsed = PermissionConfigFile.model_validate_json(raw)
    except ValidationError as e:
        raise PermissionConfigError(f"Invalid permission matrix '{file_path}': {e}") from e

    matrix = PermissionMatrix.from_mapping(parsed.permissions)
    features = FeatureCapabilities(parsed.features)
    logger.info(
        f"Loaded permission matrix from {file_path} "
        f"({len(matrix)} entries, {len(features)} features)"
    )
    return matrix, features
