"""
contentsync core

Capability matrix, role resolution, error taxonomy and the derived
aggregates computed over cached rows.
"""

from .roles import Role, DEFAULT_ROLE, parse_role
from .capability_matrix import (
    Action,
    CapabilityGrant,
    CapabilityMatrix,
    DEFAULT_GRANTS,
    permit,
)
from .errors import (
    RemoteErrorKind,
    RemoteError,
    StoreError,
    SchemaMissingError,
    PermissionDeniedError,
    UniqueConflictError,
    NotFoundError,
    ConstraintViolationError,
    UnknownStoreError,
)
from .session import (
    AuthSession,
    SessionProvider,
    LocalSessionProvider,
    ResolverState,
    SessionRoleResolver,
)
from .aggregates import completion_ratio, ratio, project_progress, dashboard_counts
from .attachments import decode_attachments, encode_attachments
from .wizard import WizardStep, WizardError, ProjectCreationWizard

__all__ = [
    # Roles
    "Role",
    "DEFAULT_ROLE",
    "parse_role",
    # Capabilities
    "Action",
    "CapabilityGrant",
    "CapabilityMatrix",
    "DEFAULT_GRANTS",
    "permit",
    # Errors
    "RemoteErrorKind",
    "RemoteError",
    "StoreError",
    "SchemaMissingError",
    "PermissionDeniedError",
    "UniqueConflictError",
    "NotFoundError",
    "ConstraintViolationError",
    "UnknownStoreError",
    # Session
    "AuthSession",
    "SessionProvider",
    "LocalSessionProvider",
    "ResolverState",
    "SessionRoleResolver",
    # Aggregates
    "completion_ratio",
    "ratio",
    "project_progress",
    "dashboard_counts",
    "decode_attachments",
    "encode_attachments",
    # Wizard
    "WizardStep",
    "WizardError",
    "ProjectCreationWizard",
]
