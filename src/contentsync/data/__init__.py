"""
Data layer for contentsync.

Record types for each content collection and the stores that keep a
local cache of them in sync with the remote backend.
"""

from .models import ActorProfile, Row
from .repos import (
    RemoteCollection,
    InMemoryCollection,
    ResourceStore,
    ResourceRegistry,
    ProfileRepository,
    NotificationStore,
)

__all__ = [
    "ActorProfile",
    "Row",
    "RemoteCollection",
    "InMemoryCollection",
    "ResourceStore",
    "ResourceRegistry",
    "ProfileRepository",
    "NotificationStore",
]
