"""
Derived Aggregates

Read-only facts computed from rows already held by ResourceStores.
Nothing here does I/O except `dashboard_counts()`, which issues
count-only queries. Results are recomputed on every call, never cached.
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, Mapping, TYPE_CHECKING

if TYPE_CHECKING:
    from ..data.repos.store import ResourceStore

logger = logging.getLogger(__name__)

DONE_STATUS = "terminee"


def ratio(done: int, total: int) -> int:
    """Integer percentage in [0, 100]; 0 when total is 0"""
    if total <= 0:
        return 0
    done = max(0, min(done, total))
    return int(done * 100 / total + 0.5)


def completion_ratio(
    children: Iterable[Any],
    parent_id: Any,
    parent_field: str = "project_id",
    status_field: str = "status",
    done_status: str = DONE_STATUS,
) -> int:
    """
    Percentage of a parent's children whose status is `done_status`.

    `children` is any iterable of records (e.g. `task_store.rows`).
    """
    total = 0
    done = 0
    for child in children:
        if getattr(child, parent_field, None) != parent_id:
            continue
        total += 1
        if getattr(child, status_field, None) == done_status:
            done += 1
    return ratio(done, total)


def project_progress(
    project_store: "ResourceStore",
    task_store: "ResourceStore",
    done_status: str = DONE_STATUS,
) -> Dict[Any, int]:
    """Completion ratio for every cached project, from the current task cache"""
    tasks = task_store.rows
    return {
        project.id: completion_ratio(tasks, project.id, done_status=done_status)
        for project in project_store.rows
    }


async def dashboard_counts(stores: Mapping[str, "ResourceStore"]) -> Dict[str, int]:
    """
    Row totals per resource using count-only queries.

    A resource whose count fails is reported as 0 and logged; one
    missing table should not blank the whole dashboard.
    """
    names = list(stores)
    results = await asyncio.gather(
        *(stores[name].count() for name in names),
        return_exceptions=True,
    )
    counts: Dict[str, int] = {}
    for name, result in zip(names, results):
        if isinstance(result, BaseException):
            logger.warning(f"Count for {name} failed: {result}")
            counts[name] = 0
        else:
            counts[name] = result
    return counts
