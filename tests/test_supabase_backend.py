"""
Test Supabase Backend

PostgREST error codes are classified at the adapter, and the store's
ordering fallback works through it. The client is mocked; no network.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from postgrest.exceptions import APIError

from contentsync.core.errors import RemoteError, RemoteErrorKind, SchemaMissingError
from contentsync.core.roles import Role
from contentsync.data.models import NewsArticle
from contentsync.data.repos import supabase_backend
from contentsync.data.repos.store import ResourceStore
from contentsync.data.repos.supabase_backend import (
    SupabaseCollection,
    SupabaseSessionProvider,
    classify_api_error,
    get_supabase_client,
)


class FakeQuery:
    """Chainable stand-in for a PostgREST request builder"""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def __getattr__(self, name):
        def record(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self
        return record

    def execute(self):
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def make_collection(*outcomes, name="news"):
    query = FakeQuery(outcomes)
    client = MagicMock()
    client.table.return_value = query
    return SupabaseCollection(name, client), query, client


def api_error(code, message="boom"):
    return APIError({"code": code, "message": message, "hint": None, "details": None})


class TestClassification:

    @pytest.mark.parametrize("code,kind", [
        ("42P01", RemoteErrorKind.SCHEMA_MISSING_TABLE),
        ("PGRST205", RemoteErrorKind.SCHEMA_MISSING_TABLE),
        ("42703", RemoteErrorKind.SCHEMA_MISSING_COLUMN),
        ("PGRST204", RemoteErrorKind.SCHEMA_MISSING_COLUMN),
        ("42501", RemoteErrorKind.PERMISSION_DENIED),
        ("23505", RemoteErrorKind.UNIQUE_CONFLICT),
        ("PGRST116", RemoteErrorKind.NOT_FOUND),
        ("23503", RemoteErrorKind.CONSTRAINT_VIOLATION),
        ("XX000", RemoteErrorKind.UNKNOWN),
    ])
    def test_codes(self, code, kind):
        error = classify_api_error(api_error(code))
        assert error.kind == kind
        assert error.code == code

    def test_message_kept(self):
        error = classify_api_error(api_error("42P01", 'relation "public.faq" does not exist'))
        assert error.message == 'relation "public.faq" does not exist'


class TestSupabaseCollection:

    @pytest.mark.asyncio
    async def test_select_with_filters_and_order(self):
        collection, query, client = make_collection(SimpleNamespace(data=[{"id": 2}, {"id": 1}]))

        rows = await collection.select({"user_id": "me", "archived_at": None}, order_by="id")

        assert rows == [{"id": 2}, {"id": 1}]
        client.table.assert_called_with("news")
        assert ("select", ("*",), {}) in query.calls
        assert ("eq", ("user_id", "me"), {}) in query.calls
        assert ("is_", ("archived_at", "null"), {}) in query.calls
        assert ("order", ("id",), {"desc": True}) in query.calls

    @pytest.mark.asyncio
    async def test_api_error_becomes_remote_error(self):
        collection, _, _ = make_collection(api_error("42501"))

        with pytest.raises(RemoteError) as exc_info:
            await collection.insert({"title": "x"})

        assert exc_info.value.kind == RemoteErrorKind.PERMISSION_DENIED

    @pytest.mark.asyncio
    async def test_select_one_not_found(self):
        collection, _, _ = make_collection(api_error("PGRST116", "JSON object requested, multiple (or no) rows returned"))

        with pytest.raises(RemoteError) as exc_info:
            await collection.select_one({"id": "u-1"})

        assert exc_info.value.kind == RemoteErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_count_uses_head_request(self):
        collection, query, _ = make_collection(SimpleNamespace(data=[], count=7))

        assert await collection.count() == 7
        assert ("select", ("id",), {"count": "exact", "head": True}) in query.calls

    @pytest.mark.asyncio
    async def test_insert_update_delete(self):
        collection, query, _ = make_collection(
            SimpleNamespace(data=[{"id": 5, "title": "x"}]),
            SimpleNamespace(data=[{"id": 5, "title": "y"}]),
            SimpleNamespace(data=[{"id": 5}]),
        )

        assert await collection.insert({"title": "x"}) == {"id": 5, "title": "x"}
        assert await collection.update({"title": "y"}, {"id": 5}) == [{"id": 5, "title": "y"}]
        assert await collection.delete({"id": 5}) == 1
        assert ("eq", ("id", 5), {}) in query.calls

    @pytest.mark.asyncio
    async def test_store_fallback_through_adapter(self):
        collection, query, _ = make_collection(
            api_error("42703", "column news.id does not exist"),
            SimpleNamespace(data=[{"id": "b"}, {"id": "a"}]),
        )
        store = ResourceStore(collection, NewsArticle)

        rows = await store.list()

        assert [r.id for r in rows] == ["b", "a"]
        assert ("order", ("created_at",), {"desc": True}) in query.calls

    @pytest.mark.asyncio
    async def test_store_missing_table_through_adapter(self):
        collection, _, _ = make_collection(api_error("42P01"), api_error("42P01"))
        store = ResourceStore(collection, NewsArticle)

        with pytest.raises(SchemaMissingError):
            await store.list()


class TestSupabaseSessionProvider:

    @pytest.mark.asyncio
    async def test_get_session(self):
        client = MagicMock()
        client.auth.get_session.return_value = SimpleNamespace(
            access_token="jwt", user=SimpleNamespace(id="uuid-1")
        )

        session = await SupabaseSessionProvider(client).get_session()

        assert session.actor_id == "uuid-1"
        assert session.access_token == "jwt"

    @pytest.mark.asyncio
    async def test_no_session(self):
        client = MagicMock()
        client.auth.get_session.return_value = None

        assert await SupabaseSessionProvider(client).get_session() is None

    def test_session_change_forwarded(self):
        client = MagicMock()
        provider = SupabaseSessionProvider(client)
        seen = []

        unsubscribe = provider.on_session_change(lambda event, session: seen.append((event, session)))
        handler = client.auth.on_auth_state_change.call_args[0][0]
        handler("SIGNED_OUT", None)

        assert seen == [("SIGNED_OUT", None)]
        assert unsubscribe is client.auth.on_auth_state_change.return_value.unsubscribe

    @pytest.mark.asyncio
    async def test_bad_credentials(self):
        class AuthFailure(Exception):
            status = 400
            message = "Invalid login credentials"

        client = MagicMock()
        client.auth.sign_in_with_password.side_effect = AuthFailure()

        with pytest.raises(RemoteError) as exc_info:
            await SupabaseSessionProvider(client).sign_in("a@example.org", "wrong")

        assert exc_info.value.kind == RemoteErrorKind.PERMISSION_DENIED
        assert exc_info.value.message == "Invalid login credentials"

    @pytest.mark.asyncio
    async def test_sign_up_sends_role_metadata(self):
        client = MagicMock()
        client.auth.sign_up.return_value = SimpleNamespace(session=None)

        result = await SupabaseSessionProvider(client).sign_up("p@example.org", "pw", Role.PARTNER)

        assert result is None
        credentials = client.auth.sign_up.call_args[0][0]
        assert credentials["options"]["data"]["role"] == "partenaire"


class TestClientFactory:

    def test_missing_url_raises(self, monkeypatch):
        monkeypatch.setattr(supabase_backend, "_supabase_client", None)
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_KEY", raising=False)

        with pytest.raises(ValueError):
            get_supabase_client()
