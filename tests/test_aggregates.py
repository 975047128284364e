"""
Test Derived Aggregates

Completion ratios over cached child rows, and dashboard counts.
"""

import pytest

from contentsync.core.aggregates import (
    completion_ratio,
    dashboard_counts,
    project_progress,
    ratio,
)
from contentsync.data.models import NewsArticle, Project, ProjectTask
from contentsync.data.repos.base import InMemoryCollection
from contentsync.data.repos.store import ResourceStore


def task(id, project_id, status):
    return ProjectTask(id=id, project_id=project_id, status=status)


class TestRatio:

    @pytest.mark.parametrize("done,total,expected", [
        (0, 0, 0),
        (0, 4, 0),
        (1, 3, 33),
        (2, 3, 67),
        (1, 2, 50),
        (1, 8, 13),
        (3, 3, 100),
    ])
    def test_rounds_half_up(self, done, total, expected):
        assert ratio(done, total) == expected

    def test_bounded(self):
        assert ratio(5, 3) == 100
        assert ratio(-1, 3) == 0


class TestCompletionRatio:

    def test_no_children_is_zero(self):
        assert completion_ratio([], parent_id=1) == 0

    def test_only_parent_children_counted(self):
        tasks = [
            task(1, 1, "terminee"),
            task(2, 1, "en_cours"),
            task(3, 1, "en_cours"),
            task(4, 2, "terminee"),
        ]
        assert completion_ratio(tasks, parent_id=1) == 33
        assert completion_ratio(tasks, parent_id=2) == 100
        assert completion_ratio(tasks, parent_id=3) == 0

    def test_custom_done_status(self):
        tasks = [task(1, 1, "done"), task(2, 1, "terminee")]
        assert completion_ratio(tasks, parent_id=1, done_status="done") == 50

    @pytest.mark.asyncio
    async def test_project_progress_from_stores(self):
        projects = ResourceStore(
            InMemoryCollection("projects", rows=[{"id": 1, "title": "Well"}, {"id": 2, "title": "School"}]),
            Project,
        )
        tasks = ResourceStore(
            InMemoryCollection("project_tasks", rows=[
                {"id": 1, "project_id": 1, "status": "terminee"},
                {"id": 2, "project_id": 1, "status": "terminee"},
                {"id": 3, "project_id": 1, "status": "en_cours"},
                {"id": 4, "project_id": 1, "status": "en_cours"},
            ]),
            ProjectTask,
        )
        await projects.list()
        await tasks.list()

        assert project_progress(projects, tasks) == {1: 50, 2: 0}

        # Recomputed from the cache on every call
        await tasks.update(3, {"status": "terminee"})
        assert project_progress(projects, tasks)[1] == 75


class TestDashboardCounts:

    @pytest.mark.asyncio
    async def test_counts_per_resource(self):
        stores = {
            "news": ResourceStore(InMemoryCollection("news", rows=[{"id": 1}, {"id": 2}]), NewsArticle),
            "projects": ResourceStore(InMemoryCollection("projects", rows=[{"id": 1}]), Project),
        }

        assert await dashboard_counts(stores) == {"news": 2, "projects": 1}

    @pytest.mark.asyncio
    async def test_failed_count_reported_as_zero(self):
        stores = {
            "news": ResourceStore(InMemoryCollection("news", rows=[{"id": 1}]), NewsArticle),
            "projects": ResourceStore(InMemoryCollection("projects", exists=False), Project),
        }

        assert await dashboard_counts(stores) == {"news": 1, "projects": 0}
