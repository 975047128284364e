"""
Remote Collection

Abstract per-table query interface the synchronizer consumes, plus an
in-memory backend. Supports both Supabase (see `supabase_backend.py`) and the
in-memory store used for local runs and tests.

Backends raise `RemoteError` with a machine classification; callers
never have to parse backend messages.
"""

from __future__ import annotations

import copy
import itertools
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

from ...core.errors import RemoteError, RemoteErrorKind

logger = logging.getLogger(__name__)

Filters = Dict[str, Any]
RowData = Dict[str, Any]


class RemoteCollection(ABC):
    """
    Query interface for one remote table.

    Operations:
    - select: filtered/unfiltered, optional single-column ordering
    - select_one: exactly one row or RemoteError(NOT_FOUND)
    - insert: returns the server-assigned row
    - update: by filter, returns updated rows
    - delete: by filter
    - count: count-only query
    """

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    async def select(
        self,
        filters: Optional[Filters] = None,
        order_by: Optional[str] = None,
        descending: bool = True,
    ) -> List[RowData]:
        """Fetch rows matching all `filters` (equality)."""

    @abstractmethod
    async def select_one(self, filters: Filters, columns: str = "*") -> RowData:
        """Fetch exactly one row; raises RemoteError(NOT_FOUND) when none match."""

    @abstractmethod
    async def insert(self, values: RowData) -> Optional[RowData]:
        """Insert a row and return it as stored."""

    @abstractmethod
    async def update(self, values: RowData, filters: Filters) -> List[RowData]:
        """Update rows matching `filters` and return them as stored."""

    @abstractmethod
    async def delete(self, filters: Filters) -> int:
        """Delete rows matching `filters`; returns how many were removed when known."""

    @abstractmethod
    async def count(self, filters: Optional[Filters] = None) -> int:
        """Count rows matching `filters` without fetching them."""


@dataclass
class InjectedFailure:
    """A failure the in-memory backend raises on a future call"""
    operation: str
    kind: RemoteErrorKind
    message: str = ""
    order_by: Optional[str] = None  # Only fail selects ordered by this column
    remaining: int = 1


# Called with (operation, payload) before a response is returned
ResponseHook = Callable[[str, Dict[str, Any]], Awaitable[None]]


class InMemoryCollection(RemoteCollection):
    """
    In-memory table with auto-increment ids.

    Schema variance can be simulated:
    - `columns`: when set, ordering by a column outside it fails with
      SCHEMA_MISSING_COLUMN
    - `exists=False`: every call fails with SCHEMA_MISSING_TABLE
    - `unique`: columns whose values must be unique (UNIQUE_CONFLICT)
    - `fail_next()`: queue a classified failure for a specific operation
    - `response_hook`: awaited before each response, to reorder replies
    """

    def __init__(
        self,
        name: str,
        rows: Optional[List[RowData]] = None,
        columns: Optional[Set[str]] = None,
        unique: Optional[Set[str]] = None,
        exists: bool = True,
        response_hook: Optional[ResponseHook] = None,
    ):
        super().__init__(name)
        self._rows: List[RowData] = [dict(r) for r in rows or []]
        self.columns = set(columns) if columns is not None else None
        self.unique = set(unique or ())
        self.exists = exists
        self.response_hook = response_hook
        self.calls: List[tuple[str, Dict[str, Any]]] = []
        self._failures: List[InjectedFailure] = []
        start = max((r["id"] for r in self._rows if isinstance(r.get("id"), int)), default=0)
        self._ids = itertools.count(start + 1)

    # -------------------------------------------------------------------------
    # Test helpers
    # -------------------------------------------------------------------------

    @property
    def rows(self) -> List[RowData]:
        return copy.deepcopy(self._rows)

    def fail_next(
        self,
        operation: str,
        kind: RemoteErrorKind,
        message: str = "",
        order_by: Optional[str] = None,
        times: int = 1,
    ) -> None:
        """Make the next `times` calls of `operation` fail with `kind`"""
        self._failures.append(InjectedFailure(operation, kind, message, order_by, times))

    def _check_failure(self, operation: str, order_by: Optional[str] = None) -> None:
        if not self.exists:
            raise RemoteError(
                RemoteErrorKind.SCHEMA_MISSING_TABLE,
                f'relation "{self.name}" does not exist',
                code="42P01",
            )
        for failure in self._failures:
            if failure.operation != operation or failure.remaining <= 0:
                continue
            if failure.order_by is not None and failure.order_by != order_by:
                continue
            failure.remaining -= 1
            raise RemoteError(failure.kind, failure.message or f"injected {operation} failure")

    async def _respond(self, operation: str, payload: Dict[str, Any]) -> None:
        self.calls.append((operation, payload))
        if self.response_hook is not None:
            await self.response_hook(operation, payload)

    def _matches(self, row: RowData, filters: Optional[Filters]) -> bool:
        return all(row.get(k) == v for k, v in (filters or {}).items())

    # -------------------------------------------------------------------------
    # RemoteCollection
    # -------------------------------------------------------------------------

    async def select(
        self,
        filters: Optional[Filters] = None,
        order_by: Optional[str] = None,
        descending: bool = True,
    ) -> List[RowData]:
        self._check_failure("select", order_by)
        if order_by is not None and self.columns is not None and order_by not in self.columns:
            raise RemoteError(
                RemoteErrorKind.SCHEMA_MISSING_COLUMN,
                f'column {self.name}.{order_by} does not exist',
                code="42703",
            )

        rows = [copy.deepcopy(r) for r in self._rows if self._matches(r, filters)]
        if order_by is not None:
            present = [r for r in rows if r.get(order_by) is not None]
            absent = [r for r in rows if r.get(order_by) is None]
            present.sort(key=lambda r: r[order_by], reverse=descending)
            # Postgres puts NULLs first on DESC, last on ASC
            rows = absent + present if descending else present + absent

        await self._respond("select", {"filters": filters, "order_by": order_by})
        return rows

    async def select_one(self, filters: Filters, columns: str = "*") -> RowData:
        self._check_failure("select_one")
        matches = [r for r in self._rows if self._matches(r, filters)]
        if len(matches) != 1:
            raise RemoteError(
                RemoteErrorKind.NOT_FOUND,
                f"expected 1 row from {self.name}, found {len(matches)}",
                code="PGRST116",
            )
        row = copy.deepcopy(matches[0])
        if columns != "*":
            wanted = {c.strip() for c in columns.split(",")}
            row = {k: v for k, v in row.items() if k in wanted}
        await self._respond("select_one", {"filters": filters})
        return row

    def _check_unique(self, values: RowData, ignore: Optional[RowData] = None) -> None:
        for column in self.unique:
            if column not in values:
                continue
            for row in self._rows:
                if row is not ignore and row.get(column) == values[column]:
                    raise RemoteError(
                        RemoteErrorKind.UNIQUE_CONFLICT,
                        f'duplicate key value violates unique constraint "{self.name}_{column}_key"',
                        code="23505",
                    )

    async def insert(self, values: RowData) -> Optional[RowData]:
        self._check_failure("insert")
        self._check_unique(values)
        row = dict(values)
        row.setdefault("id", next(self._ids))
        row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        self._rows.append(row)
        result = copy.deepcopy(row)
        await self._respond("insert", {"values": values})
        return result

    async def update(self, values: RowData, filters: Filters) -> List[RowData]:
        self._check_failure("update")
        targets = [r for r in self._rows if self._matches(r, filters)]
        for row in targets:
            self._check_unique(values, ignore=row)
        for row in targets:
            row.update(values)
        # Snapshot now: the reply reflects this call's write even if delayed
        result = [copy.deepcopy(r) for r in targets]
        await self._respond("update", {"values": values, "filters": filters})
        return result

    async def delete(self, filters: Filters) -> int:
        self._check_failure("delete")
        before = len(self._rows)
        self._rows = [r for r in self._rows if not self._matches(r, filters)]
        removed = before - len(self._rows)
        await self._respond("delete", {"filters": filters})
        return removed

    async def count(self, filters: Optional[Filters] = None) -> int:
        self._check_failure("count")
        total = sum(1 for r in self._rows if self._matches(r, filters))
        await self._respond("count", {"filters": filters})
        return total
