# -------------------------
# Enums
# -------------------------
from .enums import (
    BaseStrEnum,
    UserRole,
    ScopeLevel,
)

# -------------------------
# Permission Models
# -------------------------
from .permissions import (
    Resource,
    Action,
    Scope,
    PermissionEntry,
    PermissionMatrix,
    FeatureCapabilities,
    PermissionConfigFile,
)

__all__ = [
    # enums
    "BaseStrEnum",
    "UserRole",
    "ScopeLevel",

    # permissions
    "Resource",
    "Action",
    "Scope",
    "PermissionEntry",
    "PermissionMatrix",
    "FeatureCapabilities",
    "PermissionConfigFile",
]
