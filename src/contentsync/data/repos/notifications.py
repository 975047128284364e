"""
Notification Inbox

Per-actor view over the `notifications` collection: newest first,
unread counter, mark-as-read. Built on ResourceStore so the same
cache-after-success rule applies.
"""

from __future__ import annotations

import logging
from typing import Optional

from ...core.errors import classify_error
from ...core.roles import Role
from ..models.resources import Notification, RowId
from .base import RemoteCollection
from .store import Ordering, ResourceStore

logger = logging.getLogger(__name__)


class NotificationStore(ResourceStore[Notification]):
    """Notifications addressed to one actor"""

    def __init__(self, collection: RemoteCollection, user_id: str):
        super().__init__(
            collection,
            Notification,
            resource="notifications",
            filters={"user_id": user_id},
            ordering=Ordering(primary="created_at", fallback="id"),
        )
        self.user_id = user_id

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.rows if not n.read)

    async def mark_as_read(self, id: RowId) -> Optional[Notification]:
        return await self.update(id, {"read": True})

    async def mark_all_as_read(self) -> int:
        """Mark every unread notification as read; returns how many changed"""
        self._set_error(None)
        try:
            updated = await self.collection.update({"read": True}, {"user_id": self.user_id, "read": False})
        except Exception as e:
            raise self._fail(e, "update") from e

        changed = {row["id"] for row in updated}
        self._commit([n if n.read else n.model_copy(update={"read": True}) for n in self._rows])
        logger.info(f"Marked {len(changed)} notification(s) read for {self.user_id}")
        return len(changed)

    async def notify(
        self,
        recipient_id: str,
        title: str,
        message: str,
        type: str = "info",
        link: Optional[str] = None,
        actor_id: Optional[str] = None,
        actor_name: Optional[str] = None,
        actor_role: Optional[Role] = None,
    ) -> None:
        """
        Send a notification to another actor.

        Writes straight to the collection: the row belongs to the
        recipient's inbox, not this one, so the local cache is unchanged
        unless the recipient is the current actor.
        """
        payload = {
            "user_id": recipient_id,
            "actor_id": actor_id,
            "actor_name": actor_name,
            "actor_role": actor_role.value if actor_role else None,
            "type": type,
            "title": title,
            "message": message,
            "link": link,
            "read": False,
        }
        if recipient_id == self.user_id:
            await self.create(payload)
            return
        try:
            await self.collection.insert(payload)
        except Exception as e:
            raise classify_error(e, self.resource, "create") from e
