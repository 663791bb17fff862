# -*- coding: utf-8 -*-
"""Aggregate counts for the dashboard."""
from __future__ import annotations

from personal_os.infra.db.connection import Database
from personal_os.models import DashboardStats


class StatsSqliteRepo:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def get_dashboard_stats(self) -> DashboardStats:
        row = await self._db.fetchone(
            """
            SELECT
              (SELECT COUNT(*) FROM tasks) AS total_tasks,
              (SELECT COUNT(*) FROM tasks WHERE status IN ('todo', 'in_progress')) AS active_tasks,
              (SELECT COUNT(*) FROM tasks WHERE status = 'done') AS done_tasks,
              (SELECT COUNT(*) FROM clients) AS total_clients,
              (SELECT COUNT(*) FROM inbox_items WHERE status = 'unread') AS unread_inbox;
            """
        )
        if not row:
            return DashboardStats()
        return DashboardStats(
            total_tasks=int(row["total_tasks"] or 0),
            active_tasks=int(row["active_tasks"] or 0),
            done_tasks=int(row["done_tasks"] or 0),
            total_clients=int(row["total_clients"] or 0),
            unread_inbox=int(row["unread_inbox"] or 0),
        )
