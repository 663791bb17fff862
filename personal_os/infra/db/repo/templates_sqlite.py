from __future__ import annotations

from typing import Optional

from personal_os.domain.ports import TemplateRepository
from personal_os.infra.db.connection import Database
from personal_os.models import Template, TemplateTask


class TemplatesSqliteRepo(TemplateRepository):
    def __init__(self, db: Database) -> None:
        self._db = db

    async def list_templates(self) -> list[Template]:
        rows = await self._db.fetchall("SELECT * FROM templates ORDER BY name;")
        task_rows = await self._db.fetchall("SELECT * FROM template_tasks ORDER BY sort_order, title;")
        by_template: dict[str, list[TemplateTask]] = {}
        for r in task_rows:
            by_template.setdefault(r["template_id"], []).append(self._row_to_template_task(r))
        return [self._row_to_template(r, by_template.get(r["id"], [])) for r in rows]

    async def get_template(self, template_id: str) -> Optional[Template]:
        row = await self._db.fetchone("SELECT * FROM templates WHERE id = ?;", (template_id,))
        if not row:
            return None
        task_rows = await self._db.fetchall(
            "SELECT * FROM template_tasks WHERE template_id = ? ORDER BY sort_order, title;",
            (template_id,),
        )
        return self._row_to_template(row, [self._row_to_template_task(r) for r in task_rows])

    async def create_template(self, template: Template) -> None:
        """Template row and its template tasks, committed together."""
        async with self._db.transaction() as conn:
            await conn.execute(
                "INSERT INTO templates(id, name, description, created_at) VALUES (?, ?, ?, ?);",
                (template.id, template.name, template.description, template.created_at),
            )
            await conn.executemany(
                """
                INSERT INTO template_tasks(
                  id, template_id, title, description, domain_id,
                  default_urgency, default_leverage, default_effort, sort_order
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
                """,
                [
                    (
                        tt.id,
                        template.id,
                        tt.title,
                        tt.description,
                        tt.domain_id,
                        tt.default_urgency,
                        tt.default_leverage,
                        tt.default_effort,
                        tt.sort_order,
                    )
                    for tt in template.template_tasks
                ],
            )

    async def add_template_task(self, tt: TemplateTask) -> None:
        await self._db.execute(
            """
            INSERT INTO template_tasks(
              id, template_id, title, description, domain_id,
              default_urgency, default_leverage, default_effort, sort_order
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                tt.id,
                tt.template_id,
                tt.title,
                tt.description,
                tt.domain_id,
                tt.default_urgency,
                tt.default_leverage,
                tt.default_effort,
                tt.sort_order,
            ),
        )

    async def delete_template_task(self, template_task_id: str) -> None:
        await self._db.execute("DELETE FROM template_tasks WHERE id = ?;", (template_task_id,))

    async def delete_template(self, template_id: str) -> None:
        # template_tasks cascade; tasks created from them keep existing with a null back-reference
        await self._db.execute("DELETE FROM templates WHERE id = ?;", (template_id,))

    def _row_to_template(self, row, template_tasks: list[TemplateTask]) -> Template:
        return Template(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            created_at=row["created_at"],
            template_tasks=tuple(template_tasks),
        )

    def _row_to_template_task(self, row) -> TemplateTask:
        return TemplateTask(
            id=row["id"],
            template_id=row["template_id"],
            title=row["title"],
            description=row["description"],
            domain_id=row["domain_id"],
            default_urgency=int(row["default_urgency"]),
            default_leverage=int(row["default_leverage"]),
            default_effort=int(row["default_effort"]),
            sort_order=int(row["sort_order"] or 0),
        )
