from enum import Enum
from typing import Any


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]


# -----------------------------------------------------
# USER ROLE
# -----------------------------------------------------
class UserRole(BaseStrEnum):
    """
    Caller's assigned role.

    `unknown` stands for anything the identity layer hands us that is not
    one of the real roles (None, "", "ADMIN", "admin,member", 123, ...).
    It has no grants, so every check against it denies.
    """

    admin = "admin"
    manager = "manager"
    executive = "executive"
    member = "member"
    client = "client"
    partner = "partner"
    guest = "guest"
    unknown = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "UserRole":
        """Resolve a raw role value. Never raises."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.unknown
        # exact, case-sensitive; "unknown" itself is not a grantable role
        member = cls._value2member_map_.get(value)
        if member is None or member is cls.unknown:
            return cls.unknown
        return member

    @classmethod
    def known(cls):
        return [item for item in cls if item is not cls.unknown]


# -----------------------------------------------------
# SCOPE
# -----------------------------------------------------
class ScopeLevel(BaseStrEnum):
    """Scopes the built-in predicates understand. Matrix scopes stay open strings."""

    own = "own"
    assigned = "assigned"
    all = "all"
    public = "public"
