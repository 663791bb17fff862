from __future__ import annotations

from typing import Any, Mapping, Optional

from personal_os.domain.common.errors import ValidationError
from personal_os.infra.db.connection import Database
from personal_os.models import Domain

_DOMAIN_COLUMNS = ("name", "parent_id", "color", "sort_order")


class DomainsSqliteRepo:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def list_domains(self) -> list[Domain]:
        rows = await self._db.fetchall("SELECT * FROM domains ORDER BY sort_order, name;")
        return [self._row_to_domain(r) for r in rows]

    async def list_with_children(self) -> list[Domain]:
        """Top-level domains, each with its direct children. Grandchildren are not attached."""
        domains = await self.list_domains()
        children: dict[str, list[Domain]] = {}
        for d in domains:
            if d.parent_id:
                children.setdefault(d.parent_id, []).append(d)
        return [
            Domain(
                id=d.id,
                name=d.name,
                parent_id=None,
                color=d.color,
                sort_order=d.sort_order,
                created_at=d.created_at,
                children=tuple(children.get(d.id, ())),
            )
            for d in domains
            if not d.parent_id
        ]

    async def get_domain(self, domain_id: str) -> Optional[Domain]:
        row = await self._db.fetchone("SELECT * FROM domains WHERE id = ?;", (domain_id,))
        return self._row_to_domain(row) if row else None

    async def create_domain(self, domain: Domain) -> None:
        if not domain.name.strip():
            raise ValidationError("Domain name is required.")
        await self._db.execute(
            "INSERT INTO domains(id, name, parent_id, color, sort_order, created_at) VALUES (?, ?, ?, ?, ?, ?);",
            (domain.id, domain.name.strip(), domain.parent_id, domain.color, domain.sort_order, domain.created_at),
        )

    async def update_domain(self, domain_id: str, updates: Mapping[str, Any]) -> None:
        clean = {k: v for k, v in updates.items() if k not in ("id", "created_at", "children")}
        unknown = set(clean) - set(_DOMAIN_COLUMNS)
        if unknown:
            raise ValidationError(f"Unknown domain field: {', '.join(sorted(unknown))}")
        if not clean:
            return
        assignments = ", ".join(f"{column} = ?" for column in clean)
        await self._db.execute(f"UPDATE domains SET {assignments} WHERE id = ?;", (*clean.values(), domain_id))

    async def delete_domain(self, domain_id: str) -> None:
        await self._db.execute("DELETE FROM domains WHERE id = ?;", (domain_id,))

    def _row_to_domain(self, row) -> Domain:
        return Domain(
            id=row["id"],
            name=row["name"],
            parent_id=row["parent_id"],
            color=row["color"],
            sort_order=int(row["sort_order"] or 0),
            created_at=row["created_at"],
        )
