from __future__ import annotations

from typing import Any, Mapping, Optional

from personal_os.domain.common.errors import ValidationError
from personal_os.domain.ports import ClientRepository
from personal_os.infra.db.connection import Database
from personal_os.models import Client

_CLIENT_COLUMNS = ("name", "status", "onboarded_at", "notes", "avatar_url")


class ClientsSqliteRepo(ClientRepository):
    def __init__(self, db: Database) -> None:
        self._db = db

    async def list_clients(self, status: Optional[str] = None) -> list[Client]:
        if status:
            rows = await self._db.fetchall("SELECT * FROM clients WHERE status = ? ORDER BY name;", (status,))
        else:
            rows = await self._db.fetchall("SELECT * FROM clients ORDER BY name;")
        return [self._row_to_client(r) for r in rows]

    async def get_client(self, client_id: str) -> Optional[Client]:
        row = await self._db.fetchone("SELECT * FROM clients WHERE id = ?;", (client_id,))
        return self._row_to_client(row) if row else None

    async def find_by_name(self, name: str) -> Optional[Client]:
        row = await self._db.fetchone(
            "SELECT * FROM clients WHERE lower(name) = lower(?) ORDER BY created_at LIMIT 1;",
            (name.strip(),),
        )
        return self._row_to_client(row) if row else None

    async def create_client(self, client: Client) -> None:
        await self._db.execute(
            """
            INSERT INTO clients(id, name, status, onboarded_at, notes, avatar_url, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?);
            """,
            (client.id, client.name, client.status, client.onboarded_at, client.notes, client.avatar_url, client.created_at),
        )

    async def update_client(self, client_id: str, updates: Mapping[str, Any]) -> None:
        clean = {k: v for k, v in updates.items() if k not in ("id", "created_at")}
        unknown = set(clean) - set(_CLIENT_COLUMNS)
        if unknown:
            raise ValidationError(f"Unknown client field: {', '.join(sorted(unknown))}")
        if not clean:
            return
        assignments = ", ".join(f"{column} = ?" for column in clean)
        await self._db.execute(f"UPDATE clients SET {assignments} WHERE id = ?;", (*clean.values(), client_id))

    async def delete_client(self, client_id: str) -> None:
        # tasks and projects of the client go with it (ON DELETE CASCADE)
        await self._db.execute("DELETE FROM clients WHERE id = ?;", (client_id,))

    def _row_to_client(self, row) -> Client:
        return Client(
            id=row["id"],
            name=row["name"],
            status=row["status"],
            onboarded_at=row["onboarded_at"],
            notes=row["notes"],
            avatar_url=row["avatar_url"],
            created_at=row["created_at"],
        )
