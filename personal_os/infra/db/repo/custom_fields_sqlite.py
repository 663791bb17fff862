from __future__ import annotations

import json
from typing import Optional

from personal_os.constants import CUSTOM_FIELD_TYPES
from personal_os.domain.common.errors import ValidationError
from personal_os.domain.ports import CustomFieldRepository
from personal_os.infra.db.connection import Database
from personal_os.models import CustomFieldDef


class CustomFieldsSqliteRepo(CustomFieldRepository):
    def __init__(self, db: Database) -> None:
        self._db = db

    async def list_defs(self) -> list[CustomFieldDef]:
        rows = await self._db.fetchall("SELECT * FROM custom_field_defs ORDER BY sort_order, name;")
        return [self._row_to_def(r) for r in rows]

    async def get_def(self, def_id: str) -> Optional[CustomFieldDef]:
        row = await self._db.fetchone("SELECT * FROM custom_field_defs WHERE id = ?;", (def_id,))
        return self._row_to_def(row) if row else None

    async def create_def(self, field_def: CustomFieldDef) -> None:
        if field_def.field_type not in CUSTOM_FIELD_TYPES:
            raise ValidationError(f"Unknown field type: {field_def.field_type}")
        await self._db.execute(
            """
            INSERT INTO custom_field_defs(id, name, field_key, field_type, options_json, color, sort_order, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                field_def.id,
                field_def.name,
                field_def.field_key,
                field_def.field_type,
                json.dumps(list(field_def.options), ensure_ascii=False),
                field_def.color,
                field_def.sort_order,
                field_def.created_at,
            ),
        )

    async def delete_def(self, def_id: str) -> None:
        # values already stored on tasks stay in their custom_fields mapping
        await self._db.execute("DELETE FROM custom_field_defs WHERE id = ?;", (def_id,))

    def _row_to_def(self, row) -> CustomFieldDef:
        return CustomFieldDef(
            id=row["id"],
            name=row["name"],
            field_key=row["field_key"],
            field_type=row["field_type"],
            options=tuple(json.loads(row["options_json"] or "[]")),
            color=row["color"],
            sort_order=int(row["sort_order"] or 0),
            created_at=row["created_at"],
        )
