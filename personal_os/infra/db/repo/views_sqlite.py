from __future__ import annotations

import json
from typing import Optional, Sequence

from personal_os.infra.db.connection import Database
from personal_os.models import View, ViewColumn, ViewFilter, ViewSort


class ViewsSqliteRepo:
    """Saved table views. Columns, filters and sort are stored as JSON."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def list_views(self) -> list[View]:
        rows = await self._db.fetchall("SELECT * FROM views ORDER BY sort_order, created_at;")
        return [self._row_to_view(r) for r in rows]

    async def get_view(self, view_id: str) -> Optional[View]:
        row = await self._db.fetchone("SELECT * FROM views WHERE id = ?;", (view_id,))
        return self._row_to_view(row) if row else None

    async def create_view(self, view: View) -> None:
        async with self._db.transaction() as conn:
            if view.is_default:
                # at most one default
                await conn.execute("UPDATE views SET is_default = 0;")
            await conn.execute(
                """
                INSERT INTO views(
                  id, name, description, columns_json, filters_json, sort_json,
                  group_by, is_default, sort_order, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    view.id,
                    view.name,
                    view.description,
                    json.dumps([c.to_dict() for c in view.columns], ensure_ascii=False),
                    json.dumps([f.to_dict() for f in view.filters], ensure_ascii=False),
                    json.dumps(view.sort.to_dict()) if view.sort else None,
                    view.group_by,
                    1 if view.is_default else 0,
                    view.sort_order,
                    view.created_at,
                ),
            )

    async def replace_filters(self, view_id: str, filters: Sequence[ViewFilter]) -> None:
        await self._db.execute(
            "UPDATE views SET filters_json = ? WHERE id = ?;",
            (json.dumps([f.to_dict() for f in filters], ensure_ascii=False), view_id),
        )

    async def replace_sort(self, view_id: str, sort: Optional[ViewSort]) -> None:
        await self._db.execute(
            "UPDATE views SET sort_json = ? WHERE id = ?;",
            (json.dumps(sort.to_dict()) if sort else None, view_id),
        )

    async def replace_columns(self, view_id: str, columns: Sequence[ViewColumn]) -> None:
        await self._db.execute(
            "UPDATE views SET columns_json = ? WHERE id = ?;",
            (json.dumps([c.to_dict() for c in columns], ensure_ascii=False), view_id),
        )

    async def set_default(self, view_id: str) -> None:
        async with self._db.transaction() as conn:
            await conn.execute("UPDATE views SET is_default = 0;")
            await conn.execute("UPDATE views SET is_default = 1 WHERE id = ?;", (view_id,))

    async def delete_view(self, view_id: str) -> None:
        await self._db.execute("DELETE FROM views WHERE id = ?;", (view_id,))

    def _row_to_view(self, row) -> View:
        columns = json.loads(row["columns_json"] or "[]")
        filters = json.loads(row["filters_json"] or "[]")
        sort = json.loads(row["sort_json"]) if row["sort_json"] else None
        return View(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            columns=tuple(ViewColumn.from_dict(c) for c in columns),
            filters=tuple(ViewFilter.from_dict(f) for f in filters),
            sort=ViewSort.from_dict(sort) if sort else None,
            group_by=row["group_by"],
            is_default=bool(row["is_default"]),
            sort_order=int(row["sort_order"] or 0),
            created_at=row["created_at"],
        )
