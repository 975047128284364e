"""
Profile Repository

Looks up the ActorProfile for an authenticated actor.
"""

from __future__ import annotations

import logging
from typing import Optional

from ...core.errors import RemoteError, RemoteErrorKind, classify_error
from ...core.roles import DEFAULT_ROLE, Role
from ..models.profile import ActorProfile
from .base import RemoteCollection

logger = logging.getLogger(__name__)


class ProfileRepository:
    """Reads actor profiles from the profile table"""

    def __init__(
        self,
        collection: RemoteCollection,
        role_column: str = "role",
        display_name_column: str = "full_name",
        default_role: Role = DEFAULT_ROLE,
    ):
        self.collection = collection
        self.role_column = role_column
        self.display_name_column = display_name_column
        self.default_role = default_role

    async def fetch(self, actor_id: str) -> Optional[ActorProfile]:
        """
        Fetch the profile for `actor_id`.

        Returns None when the actor has no profile row. Other failures are
        raised as classified StoreErrors.
        """
        try:
            row = await self.collection.select_one({"id": actor_id})
        except RemoteError as e:
            if e.kind == RemoteErrorKind.NOT_FOUND:
                return None
            raise classify_error(e, "profiles", "load") from e
        except Exception as e:
            raise classify_error(e, "profiles", "load") from e

        return ActorProfile.from_row(
            actor_id,
            row,
            role_column=self.role_column,
            display_name_column=self.display_name_column,
            default_role=self.default_role,
        )
