"""
Actor Roles

Closed enumeration of the roles an authenticated actor can hold.
Values match what the remote `user_profiles.role` column stores.
"""

from enum import Enum
from typing import Any, Optional


class Role(str, Enum):
    """Actor role used for authorization"""
    ADMIN = "admin"
    COMMUNICATIONS_LEAD = "charge_communication"
    PROJECT_LEAD = "chef_projet"
    PARTNER = "partenaire"
    MEMBER = "membre"  # Lowest privilege

    @property
    def label(self) -> str:
        return ROLE_LABELS[self]


ROLE_LABELS = {
    Role.ADMIN: "Admin",
    Role.COMMUNICATIONS_LEAD: "Communications lead",
    Role.PROJECT_LEAD: "Project lead",
    Role.PARTNER: "Partner",
    Role.MEMBER: "Member",
}

# Role granted when a profile is missing or cannot be fetched
DEFAULT_ROLE = Role.MEMBER


def parse_role(value: Any) -> Optional[Role]:
    """
    Convert a raw value into a Role.

    Returns None for anything that is not one of the enumerated roles,
    so callers never carry an unrecognized string around.
    """
    if value is None:
        return None
    if isinstance(value, Role):
        return value
    if isinstance(value, str):
        try:
            return Role(value.strip())
        except ValueError:
            return None
    return None
