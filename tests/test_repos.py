"""
Tests for the SQLite repositories and migrations.

Uses a temporary DB file (in-memory SQLite would use a new DB per connection).
Run with: python -m pytest tests/test_repos.py -v
"""
from __future__ import annotations

import asyncio
import os
import tempfile

import pytest

from personal_os.domain.common.errors import StorageError, ValidationError
from personal_os.infra.db.connection import Database
from personal_os.infra.db.repo.clients_sqlite import ClientsSqliteRepo
from personal_os.infra.db.repo.custom_fields_sqlite import CustomFieldsSqliteRepo
from personal_os.infra.db.repo.domains_sqlite import DomainsSqliteRepo
from personal_os.infra.db.repo.inbox_sqlite import InboxSqliteRepo
from personal_os.infra.db.repo.projects_sqlite import ProjectsSqliteRepo
from personal_os.infra.db.repo.stats_sqlite import StatsSqliteRepo
from personal_os.infra.db.repo.tasks_sqlite import TasksSqliteRepo
from personal_os.infra.db.repo.templates_sqlite import TemplatesSqliteRepo
from personal_os.infra.db.repo.views_sqlite import ViewsSqliteRepo
from personal_os.domain.tasks.query import TaskQuery, run_query
from personal_os.infra.db.schema_version import apply_migrations
from personal_os.infra.ids.uuid_gen import UuidGenerator
from personal_os.models import (
    Client,
    CustomFieldDef,
    Domain,
    InboxItem,
    Project,
    Task,
    Template,
    TemplateTask,
    View,
    ViewColumn,
    ViewFilter,
    ViewSort,
)

NOW = "2026-05-01T09:00:00+00:00"


def _temp_db_path() -> str:
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    return path


async def _run_with_db(test_fn):
    path = _temp_db_path()
    try:
        db = Database(path)
        await apply_migrations(db, NOW)
        await test_fn(db)
    finally:
        for suffix in ("", "-wal", "-shm"):
            if os.path.exists(path + suffix):
                os.unlink(path + suffix)


def test_migrations_apply_once():
    async def run(db: Database):
        # _run_with_db already applied everything
        assert await apply_migrations(db, NOW) == []
        row = await db.fetchone("SELECT COUNT(*) AS n FROM schema_migrations;")
        assert row["n"] == 1

    asyncio.run(_run_with_db(run))


def test_task_round_trip_with_related_records():
    async def run(db: Database):
        domains = DomainsSqliteRepo(db)
        clients = ClientsSqliteRepo(db)
        projects = ProjectsSqliteRepo(db)
        tasks = TasksSqliteRepo(db)

        await domains.create_domain(Domain(id="d1", name="Work", created_at=NOW))
        await clients.create_client(Client(id="c1", name="Acme", created_at=NOW))
        await projects.create_project(Project(id="p1", name="Website", client_id="c1", created_at=NOW))
        await tasks.create_task(
            Task(
                id="t1",
                title="Draft homepage",
                domain_id="d1",
                client_id="c1",
                project_id="p1",
                leverage=4,
                urgency=2,
                effort=2,
                custom_fields={"channel": "email"},
                created_at=NOW,
            )
        )

        task = await tasks.get_task("t1")
        assert task is not None
        assert task.domain.name == "Work"
        assert task.client.name == "Acme"
        assert task.project.name == "Website"
        assert task.custom_fields == {"channel": "email"}
        assert task.priority_score == 5.0

    asyncio.run(_run_with_db(run))


def test_get_missing_task_returns_none():
    async def run(db: Database):
        assert await TasksSqliteRepo(db).get_task("nope") is None
        assert await ClientsSqliteRepo(db).get_client("nope") is None
        assert await ViewsSqliteRepo(db).get_view("nope") is None

    asyncio.run(_run_with_db(run))


def test_list_tasks_sorted_by_score_and_filtered():
    async def run(db: Database):
        tasks = TasksSqliteRepo(db)
        await tasks.create_task(Task(id="low", title="Low", leverage=1, urgency=1, effort=5, created_at=NOW))
        await tasks.create_task(Task(id="high", title="High", leverage=5, urgency=5, effort=1, created_at=NOW))
        await tasks.create_task(Task(id="done", title="Done", status="done", created_at=NOW))

        assert [t.id for t in await tasks.list_tasks()] == ["high", "done", "low"]
        assert [t.id for t in await tasks.list_tasks(status="done")] == ["done"]

    asyncio.run(_run_with_db(run))


def test_update_strips_derived_and_nested_keys():
    async def run(db: Database):
        tasks = TasksSqliteRepo(db)
        await tasks.create_task(Task(id="t1", title="Old", created_at=NOW))

        await tasks.update_task(
            "t1",
            {
                "title": "New",
                "priority_score": 99,
                "client": {"name": "ignored"},
                "domain": None,
                "custom_fields": {"hours": 2},
            },
        )
        task = await tasks.get_task("t1")
        assert task.title == "New"
        assert task.custom_fields == {"hours": 2}
        assert task.priority_score == 3.0

    asyncio.run(_run_with_db(run))


def test_update_rejects_bad_values():
    async def run(db: Database):
        tasks = TasksSqliteRepo(db)
        await tasks.create_task(Task(id="t1", title="T", created_at=NOW))
        with pytest.raises(ValidationError):
            await tasks.update_task("t1", {"leverage": 9})
        with pytest.raises(ValidationError):
            await tasks.update_task("t1", {"no_such_column": 1})
        with pytest.raises(ValidationError):
            await tasks.update_task("t1", {"title": "   "})

    asyncio.run(_run_with_db(run))


def test_storage_errors_are_wrapped():
    async def run(db: Database):
        tasks = TasksSqliteRepo(db)
        await tasks.create_task(Task(id="t1", title="T", created_at=NOW))
        with pytest.raises(StorageError):
            await tasks.create_task(Task(id="t1", title="Duplicate", created_at=NOW))
        with pytest.raises(StorageError):
            # unknown client violates the foreign key
            await tasks.create_task(Task(id="t2", title="T", client_id="ghost", created_at=NOW))

    asyncio.run(_run_with_db(run))


def test_create_tasks_is_all_or_nothing():
    async def run(db: Database):
        tasks = TasksSqliteRepo(db)
        batch = [
            Task(id="a", title="A", created_at=NOW),
            Task(id="b", title="B", client_id="ghost", created_at=NOW),
        ]
        with pytest.raises(StorageError):
            await tasks.create_tasks(batch)
        assert await tasks.list_tasks() == []

    asyncio.run(_run_with_db(run))


def test_deleting_client_cascades_to_tasks():
    async def run(db: Database):
        clients = ClientsSqliteRepo(db)
        tasks = TasksSqliteRepo(db)
        await clients.create_client(Client(id="c1", name="Acme", created_at=NOW))
        await tasks.create_task(Task(id="t1", title="T", client_id="c1", created_at=NOW))

        await clients.delete_client("c1")
        assert await tasks.get_task("t1") is None

    asyncio.run(_run_with_db(run))


def test_find_client_by_name_ignores_case():
    async def run(db: Database):
        clients = ClientsSqliteRepo(db)
        await clients.create_client(Client(id="c1", name="Acme Corp", created_at=NOW))
        found = await clients.find_by_name("  acme corp ")
        assert found is not None and found.id == "c1"
        assert await clients.find_by_name("Other") is None

    asyncio.run(_run_with_db(run))


def test_domains_with_children():
    async def run(db: Database):
        domains = DomainsSqliteRepo(db)
        await domains.create_domain(Domain(id="work", name="Work", sort_order=0, created_at=NOW))
        await domains.create_domain(Domain(id="life", name="Life", sort_order=1, created_at=NOW))
        await domains.create_domain(Domain(id="sales", name="Sales", parent_id="work", created_at=NOW))
        await domains.create_domain(Domain(id="leads", name="Leads", parent_id="sales", created_at=NOW))

        tree = await domains.list_with_children()
        assert [d.id for d in tree] == ["work", "life"]
        assert [c.id for c in tree[0].children] == ["sales"]
        assert tree[1].children == ()

        with pytest.raises(ValidationError):
            await domains.create_domain(Domain(id="x", name="  ", created_at=NOW))

    asyncio.run(_run_with_db(run))


def test_view_json_round_trip_and_single_default():
    async def run(db: Database):
        views = ViewsSqliteRepo(db)
        first = View(
            id="v1",
            name="Open work",
            columns=(ViewColumn(key="title", label="Title"), ViewColumn(key="hours", label="Hours", type="custom")),
            filters=(ViewFilter(field="status", operator="in", value=["todo", "in_progress"]),),
            sort=ViewSort(field="due_date", direction="asc"),
            is_default=True,
            created_at=NOW,
        )
        await views.create_view(first)
        await views.create_view(View(id="v2", name="Second", is_default=True, sort_order=1, created_at=NOW))

        loaded = await views.get_view("v1")
        assert loaded.columns == first.columns
        assert loaded.filters == first.filters
        assert loaded.sort == first.sort
        # the newer default replaced the old one
        assert loaded.is_default is False
        assert [v.id for v in await views.list_views() if v.is_default] == ["v2"]

        await views.set_default("v1")
        assert [v.id for v in await views.list_views() if v.is_default] == ["v1"]

        await views.replace_sort("v1", None)
        await views.replace_filters("v1", [])
        loaded = await views.get_view("v1")
        assert loaded.sort is None
        assert loaded.filters == ()

    asyncio.run(_run_with_db(run))


def test_inbox_status_and_link():
    async def run(db: Database):
        inbox = InboxSqliteRepo(db)
        tasks = TasksSqliteRepo(db)
        await inbox.create_item(
            InboxItem(id="i1", source="email", subject="Invoice", received_at=NOW, created_at=NOW)
        )
        await tasks.create_task(Task(id="t1", title="Pay invoice", created_at=NOW))

        assert [i.id for i in await inbox.list_items("unread")] == ["i1"]
        await inbox.set_status("i1", "actioned", linked_task_id="t1")
        item = await inbox.get_item("i1")
        assert item.status == "actioned"
        assert item.linked_task_id == "t1"
        assert await inbox.list_items("unread") == []

        with pytest.raises(ValidationError):
            await inbox.set_status("i1", "snoozed")

    asyncio.run(_run_with_db(run))


def test_custom_field_defs():
    async def run(db: Database):
        defs = CustomFieldsSqliteRepo(db)
        await defs.create_def(
            CustomFieldDef(id="f1", name="Channel", field_key="channel", field_type="select",
                           options=("email", "slack"), created_at=NOW)
        )
        loaded = await defs.get_def("f1")
        assert loaded.options == ("email", "slack")
        with pytest.raises(ValidationError):
            await defs.create_def(CustomFieldDef(id="f2", name="X", field_key="x", field_type="color", created_at=NOW))

    asyncio.run(_run_with_db(run))


def test_dashboard_stats():
    async def run(db: Database):
        tasks = TasksSqliteRepo(db)
        await ClientsSqliteRepo(db).create_client(Client(id="c1", name="Acme", created_at=NOW))
        await tasks.create_task(Task(id="a", title="A", created_at=NOW))
        await tasks.create_task(Task(id="b", title="B", status="in_progress", created_at=NOW))
        await tasks.create_task(Task(id="c", title="C", status="done", created_at=NOW))
        await tasks.create_task(Task(id="d", title="D", status="archived", created_at=NOW))
        await InboxSqliteRepo(db).create_item(InboxItem(id="i1", source="slack", received_at=NOW, created_at=NOW))

        stats = await StatsSqliteRepo(db).get_dashboard_stats()
        assert stats.total_tasks == 4
        assert stats.active_tasks == 2
        assert stats.done_tasks == 1
        assert stats.total_clients == 1
        assert stats.unread_inbox == 1

    asyncio.run(_run_with_db(run))


def test_projects_crud():
    async def run(db: Database):
        await ClientsSqliteRepo(db).create_client(Client(id="c1", name="Acme", created_at=NOW))
        await DomainsSqliteRepo(db).create_domain(Domain(id="d1", name="Work", created_at=NOW))
        projects = ProjectsSqliteRepo(db)
        await projects.create_project(Project(id="p1", name="Website", client_id="c1", domain_id="d1", created_at=NOW))

        project = await projects.get_project("p1")
        assert project.client.name == "Acme"
        assert project.domain.name == "Work"

        await projects.update_project("p1", {"status": "paused", "client": None})
        assert (await projects.get_project("p1")).status == "paused"
        assert [p.id for p in await projects.list_projects(client_id="c1")] == ["p1"]
        with pytest.raises(ValidationError):
            await projects.update_project("p1", {"owner": "me"})

        await projects.delete_project("p1")
        assert await projects.get_project("p1") is None

    asyncio.run(_run_with_db(run))


def test_project_page_lists_only_its_tasks_and_survives_deletion():
    async def run(db: Database):
        projects = ProjectsSqliteRepo(db)
        tasks = TasksSqliteRepo(db)
        await projects.create_project(Project(id="p1", name="Website", created_at=NOW))
        await projects.create_project(Project(id="p2", name="Launch", created_at=NOW))
        await tasks.create_task(Task(id="low", title="Copy", project_id="p1", leverage=1, created_at=NOW))
        await tasks.create_task(Task(id="high", title="Design", project_id="p1", leverage=5, created_at=NOW))
        await tasks.create_task(Task(id="other", title="Ads", project_id="p2", created_at=NOW))
        await tasks.create_task(Task(id="loose", title="Email", created_at=NOW))

        listed = run_query(await tasks.list_tasks(), TaskQuery(scope={"project_id": "p1"}))
        assert [t.id for t in listed] == ["high", "low"]

        await projects.delete_project("p1")
        assert (await tasks.get_task("high")).project_id is None
        assert run_query(await tasks.list_tasks(), TaskQuery(scope={"project_id": "p1"})) == []

    asyncio.run(_run_with_db(run))


def test_task_writes_report_affected_rows():
    async def run(db: Database):
        tasks = TasksSqliteRepo(db)
        await tasks.create_task(Task(id="t1", title="Call", created_at=NOW))

        assert await tasks.update_task("t1", {"status": "done"}) == 1
        assert await tasks.update_task("ghost", {"status": "done"}) == 0
        assert await tasks.delete_task("ghost") == 0
        assert await tasks.delete_task("t1") == 1

    asyncio.run(_run_with_db(run))


def test_uuid_generator_yields_distinct_canonical_ids():
    ids = UuidGenerator()
    generated = {ids.new_id() for _ in range(50)}
    assert len(generated) == 50
    assert all(len(i) == 36 and i.count("-") == 4 for i in generated)


def test_domains_update_and_delete_cascade_to_children():
    async def run(db: Database):
        domains = DomainsSqliteRepo(db)
        tasks = TasksSqliteRepo(db)
        await domains.create_domain(Domain(id="work", name="Work", created_at=NOW))
        await domains.create_domain(Domain(id="sales", name="Sales", parent_id="work", created_at=NOW))
        await tasks.create_task(Task(id="t1", title="Call", domain_id="sales", created_at=NOW))

        await domains.update_domain("work", {"color": "#3366ff"})
        assert (await domains.get_domain("work")).color == "#3366ff"
        with pytest.raises(ValidationError):
            await domains.update_domain("work", {"owner": "me"})

        await domains.delete_domain("work")
        assert await domains.get_domain("sales") is None
        # tasks survive with no domain
        assert (await tasks.get_task("t1")).domain_id is None

    asyncio.run(_run_with_db(run))


def test_template_tasks_are_ordered_and_deletable():
    async def run(db: Database):
        templates = TemplatesSqliteRepo(db)
        await templates.create_template(Template(id="tpl", name="Onboarding", created_at=NOW))
        await templates.add_template_task(TemplateTask(id="b", template_id="tpl", title="Second", sort_order=1))
        await templates.add_template_task(
            TemplateTask(id="a", template_id="tpl", title="First", default_leverage=5, sort_order=0)
        )

        template = await templates.get_template("tpl")
        assert [tt.id for tt in template.template_tasks] == ["a", "b"]
        assert template.template_tasks[0].default_leverage == 5
        assert [t.id for t in await templates.list_templates()] == ["tpl"]

        await templates.delete_template_task("b")
        assert [tt.id for tt in (await templates.get_template("tpl")).template_tasks] == ["a"]

        await templates.delete_template("tpl")
        assert await templates.get_template("tpl") is None
        assert await templates.list_templates() == []

    asyncio.run(_run_with_db(run))


def test_view_columns_replaced():
    async def run(db: Database):
        views = ViewsSqliteRepo(db)
        await views.create_view(View(id="v1", name="V", created_at=NOW))
        columns = [ViewColumn(key="title", label="Title"), ViewColumn(key="effort", label="Effort", visible=False)]
        await views.replace_columns("v1", columns)
        assert (await views.get_view("v1")).columns == tuple(columns)

        await views.delete_view("v1")
        assert await views.list_views() == []

    asyncio.run(_run_with_db(run))


def test_custom_field_defs_list_and_delete():
    async def run(db: Database):
        defs = CustomFieldsSqliteRepo(db)
        await defs.create_def(CustomFieldDef(id="f1", name="Hours", field_key="hours", field_type="number", created_at=NOW))
        await defs.create_def(CustomFieldDef(id="f2", name="Link", field_key="link", field_type="url", sort_order=1,
                                             created_at=NOW))
        assert [d.field_key for d in await defs.list_defs()] == ["hours", "link"]
        with pytest.raises(StorageError):
            # field keys are unique
            await defs.create_def(CustomFieldDef(id="f3", name="H", field_key="hours", field_type="text", created_at=NOW))

        await defs.delete_def("f1")
        assert [d.id for d in await defs.list_defs()] == ["f2"]

    asyncio.run(_run_with_db(run))
