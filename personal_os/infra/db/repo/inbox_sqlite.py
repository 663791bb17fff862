from __future__ import annotations

from typing import Optional

from personal_os.constants import FILTER_ALL, INBOX_STATUSES
from personal_os.domain.common.errors import ValidationError
from personal_os.infra.db.connection import Database
from personal_os.models import InboxItem


class InboxSqliteRepo:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def list_items(self, status: str = FILTER_ALL, limit: int = 50) -> list[InboxItem]:
        """Newest first. status="all" returns every item."""
        if status and status != FILTER_ALL:
            rows = await self._db.fetchall(
                "SELECT * FROM inbox_items WHERE status = ? ORDER BY received_at DESC LIMIT ?;",
                (status, limit),
            )
        else:
            rows = await self._db.fetchall(
                "SELECT * FROM inbox_items ORDER BY received_at DESC LIMIT ?;",
                (limit,),
            )
        return [self._row_to_item(r) for r in rows]

    async def get_item(self, item_id: str) -> Optional[InboxItem]:
        row = await self._db.fetchone("SELECT * FROM inbox_items WHERE id = ?;", (item_id,))
        return self._row_to_item(row) if row else None

    async def create_item(self, item: InboxItem) -> None:
        await self._db.execute(
            """
            INSERT INTO inbox_items(id, source, sender, subject, content, received_at, status, linked_task_id, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                item.id,
                item.source,
                item.sender,
                item.subject,
                item.content,
                item.received_at,
                item.status,
                item.linked_task_id,
                item.created_at,
            ),
        )

    async def set_status(self, item_id: str, status: str, linked_task_id: Optional[str] = None) -> None:
        if status not in INBOX_STATUSES:
            raise ValidationError(f"Unknown inbox status: {status}")
        if linked_task_id is not None:
            await self._db.execute(
                "UPDATE inbox_items SET status = ?, linked_task_id = ? WHERE id = ?;",
                (status, linked_task_id, item_id),
            )
            return
        await self._db.execute("UPDATE inbox_items SET status = ? WHERE id = ?;", (status, item_id))

    async def delete_item(self, item_id: str) -> None:
        await self._db.execute("DELETE FROM inbox_items WHERE id = ?;", (item_id,))

    def _row_to_item(self, row) -> InboxItem:
        return InboxItem(
            id=row["id"],
            source=row["source"],
            sender=row["sender"],
            subject=row["subject"],
            content=row["content"],
            received_at=row["received_at"],
            status=row["status"],
            linked_task_id=row["linked_task_id"],
            created_at=row["created_at"],
        )
