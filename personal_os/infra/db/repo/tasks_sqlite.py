from __future__ import annotations

import json
from typing import Any, Mapping, Optional, Sequence

from personal_os.domain.common.errors import ValidationError
from personal_os.domain.ports import TaskRepository
from personal_os.domain.tasks.rules import sanitize_updates
from personal_os.infra.db.connection import Database
from personal_os.models import Client, Domain, Project, Task

# tasks joined with their related domain / client / project
_SELECT = """
SELECT t.*,
       d.name AS d_name, d.parent_id AS d_parent_id, d.color AS d_color,
       d.sort_order AS d_sort_order, d.created_at AS d_created_at,
       c.name AS c_name, c.status AS c_status, c.onboarded_at AS c_onboarded_at,
       c.notes AS c_notes, c.avatar_url AS c_avatar_url, c.created_at AS c_created_at,
       p.name AS p_name, p.client_id AS p_client_id, p.domain_id AS p_domain_id,
       p.status AS p_status, p.description AS p_description, p.created_at AS p_created_at
FROM tasks t
LEFT JOIN domains d ON d.id = t.domain_id
LEFT JOIN clients c ON c.id = t.client_id
LEFT JOIN projects p ON p.id = t.project_id
"""

_INSERT = """
INSERT INTO tasks(
  id, title, description, project_id, client_id, domain_id,
  leverage, urgency, effort, status, due_date, template_task_id,
  custom_fields_json, created_at, completed_at
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""


def _insert_params(task: Task) -> tuple:
    return (
        task.id,
        task.title,
        task.description,
        task.project_id,
        task.client_id,
        task.domain_id,
        task.leverage,
        task.urgency,
        task.effort,
        task.status,
        task.due_date,
        task.template_task_id,
        json.dumps(task.custom_fields or {}, ensure_ascii=False),
        task.created_at,
        task.completed_at,
    )


class TasksSqliteRepo(TaskRepository):
    def __init__(self, db: Database) -> None:
        self._db = db

    async def list_tasks(
        self,
        status: Optional[str] = None,
        domain_id: Optional[str] = None,
        client_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> list[Task]:
        """Tasks with related records attached, highest priority score first."""
        clauses: list[str] = []
        params: list[Any] = []
        for column, value in (
            ("t.status", status),
            ("t.domain_id", domain_id),
            ("t.client_id", client_id),
            ("t.project_id", project_id),
        ):
            if value is not None:
                clauses.append(f"{column} = ?")
                params.append(value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = await self._db.fetchall(f"{_SELECT} {where} ORDER BY t.created_at DESC;", params)
        tasks = [self._row_to_task(r) for r in rows]
        # score is derived, so the ordering happens here and not in SQL
        tasks.sort(key=lambda t: t.priority_score, reverse=True)
        return tasks

    async def get_task(self, task_id: str) -> Optional[Task]:
        row = await self._db.fetchone(f"{_SELECT} WHERE t.id = ?;", (task_id,))
        return self._row_to_task(row) if row else None

    async def create_task(self, task: Task) -> None:
        await self._db.execute(_INSERT, _insert_params(task))

    async def create_tasks(self, tasks: Sequence[Task]) -> None:
        if not tasks:
            return
        await self._db.executemany(_INSERT, [_insert_params(t) for t in tasks])

    async def update_task(self, task_id: str, updates: Mapping[str, Any]) -> int:
        clean = sanitize_updates(updates)
        if not clean:
            return 0
        if "custom_fields" in clean:
            clean["custom_fields_json"] = json.dumps(clean.pop("custom_fields") or {}, ensure_ascii=False)
        assignments = ", ".join(f"{column} = ?" for column in clean)
        return await self._db.execute(
            f"UPDATE tasks SET {assignments} WHERE id = ?;",
            (*clean.values(), task_id),
        )

    async def delete_task(self, task_id: str) -> int:
        return await self._db.execute("DELETE FROM tasks WHERE id = ?;", (task_id,))

    def _row_to_task(self, row) -> Task:
        raw_custom = row["custom_fields_json"]
        try:
            custom = json.loads(raw_custom) if raw_custom else {}
        except ValueError:
            raise ValidationError(f"Task {row['id']} has malformed custom fields.") from None

        domain = None
        if row["domain_id"] and row["d_name"] is not None:
            domain = Domain(
                id=row["domain_id"],
                name=row["d_name"],
                parent_id=row["d_parent_id"],
                color=row["d_color"],
                sort_order=int(row["d_sort_order"] or 0),
                created_at=row["d_created_at"],
            )
        client = None
        if row["client_id"] and row["c_name"] is not None:
            client = Client(
                id=row["client_id"],
                name=row["c_name"],
                status=row["c_status"],
                onboarded_at=row["c_onboarded_at"],
                notes=row["c_notes"],
                avatar_url=row["c_avatar_url"],
                created_at=row["c_created_at"],
            )
        project = None
        if row["project_id"] and row["p_name"] is not None:
            project = Project(
                id=row["project_id"],
                name=row["p_name"],
                client_id=row["p_client_id"],
                domain_id=row["p_domain_id"],
                status=row["p_status"],
                description=row["p_description"],
                created_at=row["p_created_at"],
            )

        return Task(
            id=row["id"],
            title=row["title"],
            description=row["description"],
            project_id=row["project_id"],
            client_id=row["client_id"],
            domain_id=row["domain_id"],
            leverage=int(row["leverage"]),
            urgency=int(row["urgency"]),
            effort=int(row["effort"]),
            status=row["status"],
            due_date=row["due_date"],
            template_task_id=row["template_task_id"],
            created_at=row["created_at"],
            completed_at=row["completed_at"],
            custom_fields=custom if isinstance(custom, dict) else {},
            domain=domain,
            client=client,
            project=project,
        )
