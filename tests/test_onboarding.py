"""
Tests for applying onboarding templates to clients and for onboarding progress.

Uses a temporary DB file.
Run with: python -m pytest tests/test_onboarding.py -v
"""
from __future__ import annotations

import asyncio
import itertools
import os
import tempfile
from datetime import datetime, timezone

import pytest

from personal_os.container import AppServices, build_services
from personal_os.domain.common.errors import NotFoundError, PartialFailureError
from personal_os.domain.onboarding.service import OnboardingProgress, OnboardingService, onboarding_progress
from personal_os.domain.ports import Clock, IdGenerator
from personal_os.infra.db.connection import Database
from personal_os.infra.db.schema_version import apply_migrations
from personal_os.models import Client, Task, Template, TemplateTask

NOW = datetime(2026, 5, 1, 9, 0, tzinfo=timezone.utc)
NOW_ISO = "2026-05-01T09:00:00+00:00"


class FixedClock(Clock):
    def now(self) -> datetime:
        return NOW


class SequentialIds(IdGenerator):
    def __init__(self) -> None:
        self._counter = itertools.count(1)

    def new_id(self) -> str:
        return f"id-{next(self._counter)}"


def _temp_db_path() -> str:
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    return path


async def _run_with_services(test_fn):
    path = _temp_db_path()
    try:
        db = Database(path)
        await apply_migrations(db, NOW_ISO)
        await test_fn(build_services(db, FixedClock(), SequentialIds()))
    finally:
        for suffix in ("", "-wal", "-shm"):
            if os.path.exists(path + suffix):
                os.unlink(path + suffix)


async def _seed_client(services: AppServices, client_id: str = "c1") -> None:
    await services.clients_repo.create_client(Client(id=client_id, name="Acme", created_at=NOW_ISO))


def _template(template_id: str, n_tasks: int) -> Template:
    return Template(
        id=template_id,
        name=f"Template {template_id}",
        created_at=NOW_ISO,
        template_tasks=tuple(
            TemplateTask(
                id=f"{template_id}-tt{i}",
                template_id=template_id,
                title=f"Step {i}",
                default_leverage=4,
                default_urgency=2,
                default_effort=1 + i,
                sort_order=i,
            )
            for i in range(n_tasks)
        ),
    )


def test_apply_template_creates_todo_tasks_and_marks_client():
    async def run(services: AppServices):
        await _seed_client(services)
        await services.templates_repo.create_template(_template("tpl", 3))

        created = await services.onboarding_service.apply_template("tpl", "c1")

        assert [t.title for t in created] == ["Step 0", "Step 1", "Step 2"]
        stored = await services.tasks_repo.list_tasks(client_id="c1")
        assert len(stored) == 3
        assert all(t.status == "todo" for t in stored)
        assert {t.template_task_id for t in stored} == {"tpl-tt0", "tpl-tt1", "tpl-tt2"}
        assert {t.effort for t in stored} == {1, 2, 3}
        assert all(t.leverage == 4 and t.urgency == 2 for t in stored)

        client = await services.clients_repo.get_client("c1")
        assert client.status == "onboarding"
        assert client.onboarded_at == NOW_ISO

    asyncio.run(_run_with_services(run))


def test_apply_empty_template_changes_nothing():
    async def run(services: AppServices):
        await _seed_client(services)
        await services.templates_repo.create_template(_template("empty", 0))

        assert await services.onboarding_service.apply_template("empty", "c1") == []
        assert await services.onboarding_service.apply_template("missing", "c1") == []

        client = await services.clients_repo.get_client("c1")
        assert client.status == "active"
        assert client.onboarded_at is None
        assert await services.tasks_repo.list_tasks() == []

    asyncio.run(_run_with_services(run))


def test_apply_template_to_missing_client():
    async def run(services: AppServices):
        await services.templates_repo.create_template(_template("tpl", 2))
        with pytest.raises(NotFoundError):
            await services.onboarding_service.apply_template("tpl", "ghost")
        assert await services.tasks_repo.list_tasks() == []

    asyncio.run(_run_with_services(run))


class FailingUpdateClients:
    """Wraps the real clients repo; update_client always fails."""

    def __init__(self, real) -> None:
        self._real = real

    def __getattr__(self, name: str):
        return getattr(self._real, name)

    async def update_client(self, client_id, updates):
        raise RuntimeError("disk full")


def test_client_update_failure_reports_created_tasks():
    async def run(services: AppServices):
        await _seed_client(services)
        await services.templates_repo.create_template(_template("tpl", 2))
        service = OnboardingService(
            templates=services.templates_repo,
            tasks=services.tasks_repo,
            clients=FailingUpdateClients(services.clients_repo),
            clock=FixedClock(),
            ids=SequentialIds(),
        )

        with pytest.raises(PartialFailureError) as exc_info:
            await service.apply_template("tpl", "c1")

        assert len(exc_info.value.applied) == 2
        assert isinstance(exc_info.value.cause, RuntimeError)
        # the tasks were written, the client was not touched
        assert len(await services.tasks_repo.list_tasks(client_id="c1")) == 2
        assert (await services.clients_repo.get_client("c1")).status == "active"

    asyncio.run(_run_with_services(run))


def test_progress_after_completing_template_tasks():
    async def run(services: AppServices):
        await _seed_client(services)
        await services.templates_repo.create_template(_template("tpl", 3))
        created = await services.onboarding_service.apply_template("tpl", "c1")
        await services.task_service.set_status(created[0].id, "done")
        # a task that did not come from a template does not count
        await services.task_service.create_task("Ad-hoc", client_id="c1", status="done")

        progress = await services.onboarding_service.progress("c1")
        assert progress == OnboardingProgress(total=3, completed=1)
        assert progress.percent == 33

    asyncio.run(_run_with_services(run))


def test_progress_percent_rounding():
    assert onboarding_progress([]).percent == 0
    assert OnboardingProgress(total=8, completed=1).percent == 13
    assert OnboardingProgress(total=3, completed=2).percent == 67
    assert OnboardingProgress(total=4, completed=4).percent == 100


def test_progress_counts_only_template_tasks():
    tasks = [
        Task(id="a", title="A", template_task_id="tt1", status="done"),
        Task(id="b", title="B", template_task_id="tt2"),
        Task(id="c", title="C", status="done"),
    ]
    assert onboarding_progress(tasks) == OnboardingProgress(total=2, completed=1)
