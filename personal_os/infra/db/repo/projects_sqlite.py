from __future__ import annotations

from typing import Any, Mapping, Optional

from personal_os.domain.common.errors import ValidationError
from personal_os.infra.db.connection import Database
from personal_os.models import Client, Domain, Project

_PROJECT_COLUMNS = ("name", "client_id", "domain_id", "status", "description")

_SELECT = """
SELECT p.*,
       c.name AS c_name, c.status AS c_status, c.created_at AS c_created_at,
       d.name AS d_name, d.color AS d_color, d.created_at AS d_created_at
FROM projects p
LEFT JOIN clients c ON c.id = p.client_id
LEFT JOIN domains d ON d.id = p.domain_id
"""


class ProjectsSqliteRepo:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def list_projects(self, client_id: Optional[str] = None, status: Optional[str] = None) -> list[Project]:
        clauses: list[str] = []
        params: list[Any] = []
        if client_id is not None:
            clauses.append("p.client_id = ?")
            params.append(client_id)
        if status is not None:
            clauses.append("p.status = ?")
            params.append(status)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = await self._db.fetchall(f"{_SELECT} {where} ORDER BY p.created_at DESC;", params)
        return [self._row_to_project(r) for r in rows]

    async def get_project(self, project_id: str) -> Optional[Project]:
        row = await self._db.fetchone(f"{_SELECT} WHERE p.id = ?;", (project_id,))
        return self._row_to_project(row) if row else None

    async def create_project(self, project: Project) -> None:
        await self._db.execute(
            """
            INSERT INTO projects(id, name, client_id, domain_id, status, description, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?);
            """,
            (
                project.id,
                project.name,
                project.client_id,
                project.domain_id,
                project.status,
                project.description,
                project.created_at,
            ),
        )

    async def update_project(self, project_id: str, updates: Mapping[str, Any]) -> None:
        clean = {k: v for k, v in updates.items() if k not in ("id", "created_at", "client", "domain")}
        unknown = set(clean) - set(_PROJECT_COLUMNS)
        if unknown:
            raise ValidationError(f"Unknown project field: {', '.join(sorted(unknown))}")
        if not clean:
            return
        assignments = ", ".join(f"{column} = ?" for column in clean)
        await self._db.execute(f"UPDATE projects SET {assignments} WHERE id = ?;", (*clean.values(), project_id))

    async def delete_project(self, project_id: str) -> None:
        await self._db.execute("DELETE FROM projects WHERE id = ?;", (project_id,))

    def _row_to_project(self, row) -> Project:
        client = None
        if row["client_id"] and row["c_name"] is not None:
            client = Client(id=row["client_id"], name=row["c_name"], status=row["c_status"], created_at=row["c_created_at"])
        domain = None
        if row["domain_id"] and row["d_name"] is not None:
            domain = Domain(id=row["domain_id"], name=row["d_name"], color=row["d_color"], created_at=row["d_created_at"])
        return Project(
            id=row["id"],
            name=row["name"],
            client_id=row["client_id"],
            domain_id=row["domain_id"],
            status=row["status"],
            description=row["description"],
            created_at=row["created_at"],
            client=client,
            domain=domain,
        )
