"""
Actor Profile

The per-actor record the role is read from. Fetched lazily when a
session is established; a missing profile is a valid state.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict

from ...core.roles import DEFAULT_ROLE, Role, parse_role


class ActorProfile(BaseModel):
    """Identity and role of one actor"""
    model_config = ConfigDict(frozen=True)

    actor_id: str
    role: Role = DEFAULT_ROLE
    display_name: Optional[str] = None

    @classmethod
    def from_row(
        cls,
        actor_id: str,
        row: Mapping[str, Any],
        role_column: str = "role",
        display_name_column: str = "full_name",
        default_role: Role = DEFAULT_ROLE,
    ) -> "ActorProfile":
        """
        Build a profile from a raw profile row.

        An empty or unrecognized role value resolves to `default_role`.
        """
        role = parse_role(row.get(role_column)) or default_role
        display_name = row.get(display_name_column) or row.get("email")
        return cls(actor_id=actor_id, role=role, display_name=display_name)
