"""
Capability Matrix

Static lookup table mapping (resource, role) to the mutations that role
may perform on that resource.

Every mutating UI action gates on `CapabilityMatrix.permit()` before it
calls into a ResourceStore. The table is data, not logic: adding a
resource or changing a grant means editing DEFAULT_GRANTS (or passing an
override table from configuration), never adding a branch.

Any (resource, role) pair absent from the table is treated as
{create: False, edit: False, delete: False}.
"""

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from .roles import Role, parse_role

logger = logging.getLogger(__name__)


class Action(str, Enum):
    """Mutations that can be gated"""
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"


@dataclass(frozen=True)
class CapabilityGrant:
    """Permitted mutations for one (resource, role) pair"""
    can_create: bool = False
    can_edit: bool = False
    can_delete: bool = False

    def allows(self, action: Action) -> bool:
        if action == Action.CREATE:
            return self.can_create
        if action == Action.EDIT:
            return self.can_edit
        if action == Action.DELETE:
            return self.can_delete
        return False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CapabilityGrant":
        """Build a grant from {create, edit, delete} or {can_create, ...} keys"""
        def flag(name: str) -> bool:
            return bool(data.get(name, data.get(f"can_{name}", False)))

        return cls(can_create=flag("create"), can_edit=flag("edit"), can_delete=flag("delete"))

    def to_dict(self) -> Dict[str, bool]:
        return {"create": self.can_create, "edit": self.can_edit, "delete": self.can_delete}


NO_GRANT = CapabilityGrant()
FULL_GRANT = CapabilityGrant(can_create=True, can_edit=True, can_delete=True)

GrantTable = Dict[str, Dict[Role, CapabilityGrant]]


# Roles not listed for a resource get NO_GRANT.
DEFAULT_GRANTS: GrantTable = {
    "projects": {
        Role.ADMIN: FULL_GRANT,
        Role.PROJECT_LEAD: FULL_GRANT,
    },
    "reports": {
        Role.ADMIN: FULL_GRANT,
        Role.COMMUNICATIONS_LEAD: FULL_GRANT,
        Role.PROJECT_LEAD: FULL_GRANT,
    },
    "videos": {
        Role.ADMIN: FULL_GRANT,
        Role.COMMUNICATIONS_LEAD: FULL_GRANT,
    },
    "news": {
        Role.ADMIN: FULL_GRANT,
        Role.COMMUNICATIONS_LEAD: FULL_GRANT,
    },
    "team": {
        Role.ADMIN: FULL_GRANT,
    },
    "faq": {
        Role.ADMIN: FULL_GRANT,
        Role.COMMUNICATIONS_LEAD: FULL_GRANT,
    },
    "submissions": {
        Role.ADMIN: FULL_GRANT,
        Role.COMMUNICATIONS_LEAD: FULL_GRANT,
    },
    "newsletter": {
        Role.ADMIN: FULL_GRANT,
        Role.COMMUNICATIONS_LEAD: FULL_GRANT,
    },
    "documents": {
        Role.ADMIN: FULL_GRANT,
        Role.COMMUNICATIONS_LEAD: FULL_GRANT,
        Role.PROJECT_LEAD: FULL_GRANT,
        # Partners only see documents shared with them; visibility is not a mutation
    },
    "users": {
        Role.ADMIN: FULL_GRANT,
    },
    "actions": {
        Role.ADMIN: FULL_GRANT,
        Role.PROJECT_LEAD: FULL_GRANT,
    },
}


def _parse_action(action: Union[Action, str, None]) -> Optional[Action]:
    if isinstance(action, Action):
        return action
    if isinstance(action, str):
        # Accept the "canCreate"/"can_create" spellings UI code tends to use
        normalized = action.strip().lower().replace("_", "")
        if normalized.startswith("can"):
            normalized = normalized[3:]
        try:
            return Action(normalized)
        except ValueError:
            return None
    return None


class CapabilityMatrix:
    """
    Single source of truth for who may mutate what.

    Pure lookups only; no I/O and no state beyond the grant table.
    """

    def __init__(self, grants: Optional[GrantTable] = None):
        table = DEFAULT_GRANTS if grants is None else grants
        self._grants: GrantTable = {
            resource: dict(role_grants) for resource, role_grants in table.items()
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[str, Mapping[str, Any]]]) -> "CapabilityMatrix":
        """
        Build a matrix from a plain nested mapping (e.g. parsed YAML).

        Format:
            {resource: {role: {create: bool, edit: bool, delete: bool}}}

        Unknown role names are skipped with a warning.
        """
        return cls(_table_from_dict(data))

    def with_overrides(self, data: Mapping[str, Mapping[str, Mapping[str, Any]]]) -> "CapabilityMatrix":
        """Return a new matrix where entries from `data` replace existing ones"""
        merged: GrantTable = {resource: dict(grants) for resource, grants in self._grants.items()}
        for resource, role_grants in _table_from_dict(data).items():
            merged.setdefault(resource, {}).update(role_grants)
        return CapabilityMatrix(merged)

    def resources(self) -> List[str]:
        """Resource names the matrix knows about"""
        return sorted(self._grants)

    def grant_for(self, role: Union[Role, str, None], resource: str) -> CapabilityGrant:
        """Grant for one (resource, role) pair; NO_GRANT when absent"""
        parsed = parse_role(role)
        if parsed is None:
            return NO_GRANT
        return self._grants.get(resource, {}).get(parsed, NO_GRANT)

    def permit(
        self,
        role: Union[Role, str, None],
        resource: str,
        action: Union[Action, str],
    ) -> bool:
        """
        Check whether `role` may perform `action` on `resource`.

        A null role, an unknown resource, an unknown role or an unknown
        action all result in False.
        """
        parsed_action = _parse_action(action)
        if parsed_action is None:
            return False
        return self.grant_for(role, resource).allows(parsed_action)

    def to_dict(self) -> Dict[str, Dict[str, Dict[str, bool]]]:
        """Dump the full table, including explicit denials for every role"""
        return {
            resource: {
                role.value: self.grant_for(role, resource).to_dict()
                for role in Role
            }
            for resource in self.resources()
        }


def _table_from_dict(data: Mapping[str, Mapping[str, Mapping[str, Any]]]) -> GrantTable:
    table: GrantTable = {}
    for resource, role_grants in (data or {}).items():
        entries: Dict[Role, CapabilityGrant] = {}
        for role_name, grant_data in (role_grants or {}).items():
            role = parse_role(role_name)
            if role is None:
                logger.warning(f"Ignoring grant for unknown role '{role_name}' on '{resource}'")
                continue
            entries[role] = CapabilityGrant.from_dict(grant_data or {})
        table[resource] = entries
    return table


default_matrix = CapabilityMatrix()


def permit(role: Union[Role, str, None], resource: str, action: Union[Action, str]) -> bool:
    """Check a permission against the default matrix"""
    return default_matrix.permit(role, resource, action)
