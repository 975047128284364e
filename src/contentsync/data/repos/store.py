"""
Resource Store

One ResourceStore per named collection. It mirrors the remote rows into
a local ordered cache and keeps that cache consistent with what the
remote store has confirmed:

- list() replaces the cache wholesale, falling back through weaker
  orderings (id desc -> created_at desc -> unordered) to tolerate
  schema variance
- create() prepends, update() replaces in place, delete() removes
- the cache only changes after the remote call succeeds; a failed
  mutation leaves it exactly as it was

Concurrent calls are allowed. Two updates of the same row race at the
cache: whichever reply arrives last wins. There is no sequencing token
to do better.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    List,
    Mapping,
    Optional,
    Tuple,
    Type,
    TypeVar,
    Union,
)

from pydantic import BaseModel

from ...core.errors import (
    RemoteError,
    RemoteErrorKind,
    StoreError,
    classify_error,
    classify_list_error,
)
from ..models.resources import (
    ActionEntry,
    Document,
    Faq,
    NewsArticle,
    NewsletterSubscriber,
    Notification,
    Project,
    ProjectDocument,
    ProjectTask,
    Report,
    Row,
    RowId,
    Submission,
    TeamMember,
    UserProfile,
    Video,
)
from .base import Filters, RemoteCollection, RowData

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Row)

Partial = Union[Mapping[str, Any], BaseModel]
StoreListener = Callable[["ResourceStore"], None]


@dataclass(frozen=True)
class Ordering:
    """Ordering columns tried by list()"""
    primary: str = "id"
    fallback: str = "created_at"


def clean_payload(partial: Partial) -> RowData:
    """
    Prepare a partial row for the remote store.

    Unset fields are dropped and empty strings become None, so optional
    text columns are stored as NULL rather than ''.
    """
    if isinstance(partial, BaseModel):
        data = partial.model_dump(exclude_unset=True)
    else:
        data = dict(partial)
    return {key: (None if value == "" else value) for key, value in data.items()}


class ResourceStore(Generic[T]):
    """
    Local cache of one remote collection.

    Exposed state: `rows`, `is_loading`, `last_error`.
    """

    def __init__(
        self,
        collection: RemoteCollection,
        model: Type[T],
        resource: Optional[str] = None,
        filters: Optional[Filters] = None,
        ordering: Optional[Ordering] = None,
    ):
        self.collection = collection
        self.model = model
        self.resource = resource or collection.name
        self.filters = dict(filters or {})
        self.ordering = ordering or Ordering()

        self._rows: List[T] = []
        self._loads_in_flight = 0
        self._last_error: Optional[str] = None
        self._closed = False
        self._listeners: List[StoreListener] = []

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def rows(self) -> Tuple[T, ...]:
        """Immutable snapshot of the cache"""
        return tuple(self._rows)

    @property
    def is_loading(self) -> bool:
        """True while any list() call is in flight"""
        return self._loads_in_flight > 0

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._rows)

    def get(self, id: RowId) -> Optional[T]:
        """Cached row with this id, if any"""
        for row in self._rows:
            if row.id == id:
                return row
        return None

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Call `listener(store)` after every cache change"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """
        Detach the store from its owner.

        Calls still in flight may complete remotely, but their results
        are no longer written into this cache.
        """
        self._closed = True
        self._listeners.clear()
        self._rows = []

    def _commit(self, rows: List[T]) -> bool:
        if self._closed:
            logger.debug(f"Dropping late result for closed store {self.resource}")
            return False
        self._rows = rows
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.error(f"Store listener for {self.resource} failed: {e}")
        return True

    def _set_error(self, message: Optional[str]) -> None:
        if not self._closed:
            self._last_error = message

    def _to_model(self, data: RowData) -> T:
        return self.model.model_validate(data)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def _fetch_with_fallback(self) -> List[RowData]:
        primary, fallback = self.ordering.primary, self.ordering.fallback
        try:
            return await self.collection.select(self.filters or None, order_by=primary, descending=True)
        except RemoteError as e:
            if e.kind != RemoteErrorKind.SCHEMA_MISSING_COLUMN:
                logger.warning(f"Ordered fetch of {self.resource} failed ({e.kind.value}), retrying unordered")
                return await self.collection.select(self.filters or None)
            logger.warning(f"Cannot order {self.resource} by '{primary}', retrying with '{fallback}'")

        try:
            return await self.collection.select(self.filters or None, order_by=fallback, descending=True)
        except RemoteError as e:
            logger.warning(f"Cannot order {self.resource} by '{fallback}' ({e.kind.value}), retrying unordered")

        return await self.collection.select(self.filters or None)

    async def list(self) -> List[T]:
        """
        Fetch all rows and replace the cache.

        Raises SchemaMissingError or UnknownStoreError when every fallback
        failed; the previous cache is kept in that case.
        """
        self._loads_in_flight += 1
        self._set_error(None)
        try:
            data = await self._fetch_with_fallback()
            rows = [self._to_model(r) for r in data]
        except Exception as e:
            error = classify_list_error(e, self.resource)
            self._set_error(error.message)
            logger.error(f"Error fetching {self.resource}: {e!r}")
            raise error from e
        finally:
            self._loads_in_flight -= 1

        self._commit(rows)
        logger.info(f"Loaded {len(rows)} row(s) from {self.resource}")
        return list(rows)

    async def refresh(self) -> List[T]:
        """Alias for list()"""
        return await self.list()

    async def count(self) -> int:
        """Count-only query; does not touch the cache"""
        try:
            return await self.collection.count(self.filters or None)
        except Exception as e:
            raise classify_error(e, self.resource, "count") from e

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def _fail(self, exc: Exception, operation: str, payload: Optional[RowData] = None) -> StoreError:
        error = classify_error(exc, self.resource, operation)
        self._set_error(error.message)
        logger.error(f"Error during {operation} on {self.resource}: {exc!r}")
        if payload is not None:
            logger.debug(f"Payload for failed {operation} on {self.resource}: {payload}")
        return error

    async def create(self, partial: Partial) -> Optional[T]:
        """Insert a row; on success the stored row is prepended to the cache"""
        payload = clean_payload(partial)
        payload.update({k: v for k, v in self.filters.items() if k not in payload})
        self._set_error(None)
        try:
            data = await self.collection.insert(payload)
            created = self._to_model(data) if data else None
        except Exception as e:
            raise self._fail(e, "create", payload) from e

        if created is None:
            return None
        self._commit([created, *self._rows])
        logger.info(f"Created {self.resource} row {created.id}")
        return created

    async def update(self, id: RowId, partial: Partial) -> Optional[T]:
        """Update a row by id; on success the cached entry is replaced"""
        payload = clean_payload(partial)
        payload.pop("id", None)
        self._set_error(None)
        try:
            data = await self.collection.update(payload, {"id": id})
            updated = self._to_model(data[0]) if data else None
        except Exception as e:
            raise self._fail(e, "update", payload) from e

        if updated is None:
            logger.warning(f"Update of {self.resource} row {id} matched nothing")
            return None
        self._commit([updated if row.id == id else row for row in self._rows])
        logger.info(f"Updated {self.resource} row {id}")
        return updated

    async def delete(self, id: RowId) -> bool:
        """Delete a row by id; on success the cached entry is removed"""
        self._set_error(None)
        try:
            await self.collection.delete({"id": id})
        except Exception as e:
            raise self._fail(e, "delete") from e

        self._commit([row for row in self._rows if row.id != id])
        logger.info(f"Deleted {self.resource} row {id}")
        return True


@dataclass(frozen=True)
class ResourceSpec:
    """Where a resource lives and how its rows are typed"""
    name: str
    table: str
    model: Type[Row]


DEFAULT_RESOURCES: Dict[str, ResourceSpec] = {
    spec.name: spec
    for spec in (
        ResourceSpec("projects", "projects", Project),
        ResourceSpec("project_tasks", "project_tasks", ProjectTask),
        ResourceSpec("project_documents", "project_documents", ProjectDocument),
        ResourceSpec("reports", "reports", Report),
        ResourceSpec("videos", "videos", Video),
        ResourceSpec("news", "news", NewsArticle),
        ResourceSpec("team", "team_members", TeamMember),
        ResourceSpec("faq", "faq", Faq),
        ResourceSpec("submissions", "form_submissions", Submission),
        ResourceSpec("newsletter", "newsletter_subscribers", NewsletterSubscriber),
        ResourceSpec("documents", "documents", Document),
        ResourceSpec("users", "user_profiles", UserProfile),
        ResourceSpec("actions", "actions", ActionEntry),
        ResourceSpec("notifications", "notifications", Notification),
    )
}


class ResourceRegistry:
    """
    Catalogue of resources and the factory for their stores.

    `collection_factory(table_name)` builds the backend collection, e.g.
    `lambda table: SupabaseCollection(table, client)`.
    """

    def __init__(
        self,
        collection_factory: Callable[[str], RemoteCollection],
        resources: Optional[Dict[str, ResourceSpec]] = None,
        ordering: Optional[Ordering] = None,
    ):
        self.collection_factory = collection_factory
        self.resources = dict(resources or DEFAULT_RESOURCES)
        self.ordering = ordering or Ordering()
        self._collections: Dict[str, RemoteCollection] = {}

    def names(self) -> List[str]:
        return sorted(self.resources)

    def spec(self, name: str) -> ResourceSpec:
        try:
            return self.resources[name]
        except KeyError:
            raise KeyError(f"Unknown resource: {name}") from None

    def collection(self, name: str) -> RemoteCollection:
        spec = self.spec(name)
        if spec.table not in self._collections:
            self._collections[spec.table] = self.collection_factory(spec.table)
        return self._collections[spec.table]

    def store_for(self, name: str, filters: Optional[Filters] = None) -> ResourceStore:
        """New store for a resource; each UI surface owns its own"""
        spec = self.spec(name)
        return ResourceStore(
            self.collection(name),
            spec.model,
            resource=name,
            filters=filters,
            ordering=self.ordering,
        )
