"""
contentsync

Capability-resolving, self-healing resource synchronizer for the
association's content admin console.
"""

__version__ = "0.1.0"

from .core import (
    Action,
    CapabilityMatrix,
    Role,
    SessionRoleResolver,
    StoreError,
)
from .data import ResourceRegistry, ResourceStore

__all__ = [
    "__version__",
    "Action",
    "CapabilityMatrix",
    "Role",
    "SessionRoleResolver",
    "StoreError",
    "ResourceRegistry",
    "ResourceStore",
]
