"""
Supabase Backend

Adapters that put the hosted Supabase project behind the interfaces the
synchronizer consumes:
- SupabaseCollection: RemoteCollection over one PostgREST table
- SupabaseSessionProvider: SessionProvider over Supabase Auth

PostgREST / Postgres error codes are translated into RemoteErrorKind
here, so nothing downstream inspects backend messages.

Environment Variables:
    SUPABASE_URL: Your Supabase project URL
    SUPABASE_KEY: Your Supabase API key (anon key for the admin console)
"""

from __future__ import annotations

import inspect
import logging
import os
from typing import Any, Callable, Dict, List, Optional

from postgrest.exceptions import APIError

from ...core.errors import RemoteError, RemoteErrorKind
from ...core.roles import Role
from ...core.session import AuthSession, SessionChangeCallback, SessionProvider
from .base import Filters, RemoteCollection, RowData

logger = logging.getLogger(__name__)

# Supabase client (lazy initialized)
_supabase_client = None


def get_supabase_client(url: Optional[str] = None, key: Optional[str] = None):
    """Get or create the shared Supabase client"""
    global _supabase_client
    if _supabase_client is None:
        from supabase import create_client

        url = url or os.environ.get("SUPABASE_URL")
        key = key or os.environ.get("SUPABASE_KEY")

        if not url:
            raise ValueError("SUPABASE_URL is missing. Set it in the environment or in contentsync.yaml")
        if not key:
            raise ValueError("SUPABASE_KEY is missing. Set it in the environment or in contentsync.yaml")

        _supabase_client = create_client(url, key)
        logger.info("Supabase client initialized")

    return _supabase_client


# PostgREST / Postgres error code -> classification
ERROR_CODE_KINDS: Dict[str, RemoteErrorKind] = {
    "42P01": RemoteErrorKind.SCHEMA_MISSING_TABLE,     # undefined_table
    "PGRST205": RemoteErrorKind.SCHEMA_MISSING_TABLE,  # table not in schema cache
    "42703": RemoteErrorKind.SCHEMA_MISSING_COLUMN,    # undefined_column
    "PGRST204": RemoteErrorKind.SCHEMA_MISSING_COLUMN, # column not in schema cache
    "PGRST100": RemoteErrorKind.SCHEMA_MISSING_COLUMN, # unparsable order/filter
    "42501": RemoteErrorKind.PERMISSION_DENIED,        # insufficient_privilege / RLS
    "PGRST301": RemoteErrorKind.PERMISSION_DENIED,     # invalid JWT
    "PGRST302": RemoteErrorKind.PERMISSION_DENIED,     # anonymous access disabled
    "23505": RemoteErrorKind.UNIQUE_CONFLICT,          # unique_violation
    "PGRST116": RemoteErrorKind.NOT_FOUND,             # .single() matched no rows
    "23502": RemoteErrorKind.CONSTRAINT_VIOLATION,     # not_null_violation
    "23503": RemoteErrorKind.CONSTRAINT_VIOLATION,     # foreign_key_violation
}


def classify_api_error(error: APIError) -> RemoteError:
    """Translate a PostgREST APIError into a classified RemoteError"""
    code = getattr(error, "code", None)
    message = getattr(error, "message", None) or str(error)
    kind = ERROR_CODE_KINDS.get(str(code), RemoteErrorKind.UNKNOWN) if code else RemoteErrorKind.UNKNOWN
    return RemoteError(kind, message, code=code)


async def _execute(query) -> Any:
    """Run a PostgREST query; works with both the sync and async clients"""
    try:
        response = query.execute()
        if inspect.isawaitable(response):
            response = await response
        return response
    except APIError as e:
        raise classify_api_error(e) from e


class SupabaseCollection(RemoteCollection):
    """RemoteCollection backed by a Supabase table"""

    def __init__(self, name: str, client: Any = None):
        super().__init__(name)
        self._client = client

    @property
    def client(self):
        """Lazy-load Supabase client"""
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    def _table(self):
        return self.client.table(self.name)

    @staticmethod
    def _apply_filters(query, filters: Optional[Filters]):
        for key, value in (filters or {}).items():
            query = query.is_(key, "null") if value is None else query.eq(key, value)
        return query

    async def select(
        self,
        filters: Optional[Filters] = None,
        order_by: Optional[str] = None,
        descending: bool = True,
    ) -> List[RowData]:
        query = self._apply_filters(self._table().select("*"), filters)
        if order_by is not None:
            query = query.order(order_by, desc=descending)
        response = await _execute(query)
        return response.data or []

    async def select_one(self, filters: Filters, columns: str = "*") -> RowData:
        query = self._apply_filters(self._table().select(columns), filters).single()
        response = await _execute(query)
        if not response.data:
            raise RemoteError(RemoteErrorKind.NOT_FOUND, f"No row in {self.name}", code="PGRST116")
        return response.data

    async def insert(self, values: RowData) -> Optional[RowData]:
        response = await _execute(self._table().insert(values))
        return response.data[0] if response.data else None

    async def update(self, values: RowData, filters: Filters) -> List[RowData]:
        query = self._apply_filters(self._table().update(values), filters)
        response = await _execute(query)
        return response.data or []

    async def delete(self, filters: Filters) -> int:
        query = self._apply_filters(self._table().delete(), filters)
        response = await _execute(query)
        return len(response.data or [])

    async def count(self, filters: Optional[Filters] = None) -> int:
        query = self._apply_filters(self._table().select("id", count="exact", head=True), filters)
        response = await _execute(query)
        return response.count or 0


def _to_auth_session(session: Any) -> Optional[AuthSession]:
    if session is None or getattr(session, "user", None) is None:
        return None
    return AuthSession(access_token=session.access_token, actor_id=str(session.user.id))


def _auth_error(exc: Exception) -> RemoteError:
    status = getattr(exc, "status", None)
    if status in (400, 401, 403, 422):
        kind = RemoteErrorKind.PERMISSION_DENIED
    else:
        kind = RemoteErrorKind.UNKNOWN
    return RemoteError(kind, getattr(exc, "message", None) or str(exc), code=str(status) if status else None)


class SupabaseSessionProvider(SessionProvider):
    """SessionProvider backed by Supabase Auth"""

    def __init__(self, client: Any = None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    async def get_session(self) -> Optional[AuthSession]:
        result = self.client.auth.get_session()
        if inspect.isawaitable(result):
            result = await result
        return _to_auth_session(result)

    def on_session_change(self, callback: SessionChangeCallback) -> Callable[[], None]:
        def handler(event, session):
            callback(str(getattr(event, "value", event)), _to_auth_session(session))

        subscription = self.client.auth.on_auth_state_change(handler)
        return subscription.unsubscribe

    async def sign_in(self, email: str, password: str) -> Optional[AuthSession]:
        try:
            result = self.client.auth.sign_in_with_password({"email": email, "password": password})
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.error(f"Sign-in failed for {email}: {e}")
            raise _auth_error(e) from e
        return _to_auth_session(result.session)

    async def sign_up(self, email: str, password: str, role: Role) -> Optional[AuthSession]:
        credentials = {
            "email": email,
            "password": password,
            "options": {"data": {"role": role.value}},
        }
        try:
            result = self.client.auth.sign_up(credentials)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.error(f"Sign-up failed for {email}: {e}")
            raise _auth_error(e) from e
        return _to_auth_session(result.session)

    async def sign_out(self) -> None:
        result = self.client.auth.sign_out()
        if inspect.isawaitable(result):
            await result
