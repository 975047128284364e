"""
Error Taxonomy

Two layers:
- RemoteError: what a RemoteCollection raises, carrying a machine
  classification (RemoteErrorKind) set by the backend adapter.
- StoreError: what ResourceStore and the resolver surface to UI code,
  with a human-readable message naming the resource.

All classification keys off `kind`, never off message text.
"""

from enum import Enum
from typing import Optional, Type


class RemoteErrorKind(str, Enum):
    """Machine classification of a remote failure"""
    SCHEMA_MISSING_TABLE = "schema_missing_table"
    SCHEMA_MISSING_COLUMN = "schema_missing_column"
    PERMISSION_DENIED = "permission_denied"
    UNIQUE_CONFLICT = "unique_conflict"
    NOT_FOUND = "not_found"
    CONSTRAINT_VIOLATION = "constraint_violation"
    UNKNOWN = "unknown"

    @property
    def is_schema_missing(self) -> bool:
        return self in (RemoteErrorKind.SCHEMA_MISSING_TABLE, RemoteErrorKind.SCHEMA_MISSING_COLUMN)


class RemoteError(Exception):
    """Failure reported by the remote store"""

    def __init__(
        self,
        kind: RemoteErrorKind,
        message: str = "",
        code: Optional[str] = None,
    ):
        super().__init__(message or kind.value)
        self.kind = kind
        self.message = message
        self.code = code

    def __repr__(self) -> str:
        return f"RemoteError(kind={self.kind.value!r}, code={self.code!r}, message={self.message!r})"


class StoreError(Exception):
    """
    Classified, user-presentable failure.

    `str(err)` is always the human message; the raw backend code is kept
    on `.code` for logs only.
    """
    kind: RemoteErrorKind = RemoteErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        resource: Optional[str] = None,
        code: Optional[str] = None,
        remote_kind: Optional[RemoteErrorKind] = None,
    ):
        super().__init__(message)
        self.message = message
        self.resource = resource
        self.code = code
        self.remote_kind = remote_kind or self.kind


class SchemaMissingError(StoreError):
    """Table or ordering column absent"""
    kind = RemoteErrorKind.SCHEMA_MISSING_TABLE


class PermissionDeniedError(StoreError):
    """Authorization rejected by the remote layer"""
    kind = RemoteErrorKind.PERMISSION_DENIED


class UniqueConflictError(StoreError):
    """Duplicate-key insert or update"""
    kind = RemoteErrorKind.UNIQUE_CONFLICT


class NotFoundError(StoreError):
    """Requested row does not exist"""
    kind = RemoteErrorKind.NOT_FOUND


class ConstraintViolationError(StoreError):
    """Required column missing or dangling reference"""
    kind = RemoteErrorKind.CONSTRAINT_VIOLATION


class UnknownStoreError(StoreError):
    """Anything else"""
    kind = RemoteErrorKind.UNKNOWN


_ERROR_CLASSES: dict[RemoteErrorKind, Type[StoreError]] = {
    RemoteErrorKind.SCHEMA_MISSING_TABLE: SchemaMissingError,
    RemoteErrorKind.SCHEMA_MISSING_COLUMN: SchemaMissingError,
    RemoteErrorKind.PERMISSION_DENIED: PermissionDeniedError,
    RemoteErrorKind.UNIQUE_CONFLICT: UniqueConflictError,
    RemoteErrorKind.NOT_FOUND: NotFoundError,
    RemoteErrorKind.CONSTRAINT_VIOLATION: ConstraintViolationError,
    RemoteErrorKind.UNKNOWN: UnknownStoreError,
}


def _message_for(kind: RemoteErrorKind, resource: str, operation: str) -> str:
    if kind == RemoteErrorKind.SCHEMA_MISSING_TABLE:
        return f'The table for "{resource}" does not exist in the database'
    if kind == RemoteErrorKind.SCHEMA_MISSING_COLUMN:
        return f'A column used to {operation} "{resource}" does not exist'
    if kind == RemoteErrorKind.PERMISSION_DENIED:
        return f'You are not allowed to {operation} "{resource}"'
    if kind == RemoteErrorKind.UNIQUE_CONFLICT:
        return f'This entry already exists in "{resource}"'
    if kind == RemoteErrorKind.NOT_FOUND:
        return f'No matching entry was found in "{resource}"'
    if kind == RemoteErrorKind.CONSTRAINT_VIOLATION:
        return (
            f'Could not {operation} "{resource}": a required field is missing '
            f"or a reference does not match an existing entry"
        )
    return f'Could not {operation} "{resource}"'


def classify_error(exc: BaseException, resource: str, operation: str) -> StoreError:
    """
    Map any exception raised by a remote call to a StoreError.

    Non-RemoteError exceptions (transport failures, bugs in an adapter)
    become UnknownStoreError.
    """
    if isinstance(exc, StoreError):
        return exc
    if isinstance(exc, RemoteError):
        kind, code = exc.kind, exc.code
    else:
        kind, code = RemoteErrorKind.UNKNOWN, None
    error_class = _ERROR_CLASSES.get(kind, UnknownStoreError)
    return error_class(_message_for(kind, resource, operation), resource=resource, code=code, remote_kind=kind)


def classify_list_error(exc: BaseException, resource: str) -> StoreError:
    """
    Classify a failure of the whole list() fallback chain.

    Only SchemaMissingError or UnknownStoreError are surfaced; the
    original classification stays available on `.remote_kind`.
    """
    kind = exc.kind if isinstance(exc, RemoteError) else RemoteErrorKind.UNKNOWN
    code = exc.code if isinstance(exc, RemoteError) else None
    if kind.is_schema_missing:
        return SchemaMissingError(_message_for(kind, resource, "load"), resource=resource, code=code, remote_kind=kind)
    return UnknownStoreError(
        f'Could not load "{resource}"', resource=resource, code=code, remote_kind=kind
    )
