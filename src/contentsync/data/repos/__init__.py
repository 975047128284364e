"""Remote collections, resource stores and profile lookup."""

from .base import RemoteCollection, InMemoryCollection
from .store import (
    Ordering,
    ResourceStore,
    ResourceSpec,
    ResourceRegistry,
    DEFAULT_RESOURCES,
    clean_payload,
)
from .profiles import ProfileRepository
from .notifications import NotificationStore

__all__ = [
    "RemoteCollection",
    "InMemoryCollection",
    "Ordering",
    "ResourceStore",
    "ResourceSpec",
    "ResourceRegistry",
    "DEFAULT_RESOURCES",
    "clean_payload",
    "ProfileRepository",
    "NotificationStore",
]
