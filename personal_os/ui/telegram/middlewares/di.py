from __future__ import annotations

from dataclasses import fields
from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from personal_os.container import AppServices


class DIMiddleware(BaseMiddleware):
    """
    Inject dependencies to handlers via `data` dict.

    Handlers can request args by name, e.g.
      async def handler(message: Message, task_service: TaskService, tasks_repo: TasksSqliteRepo): ...
    Names are the AppServices field names.
    """

    def __init__(self, services: AppServices, timezone: str) -> None:
        self._services = services
        self._tz = timezone

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        for f in fields(self._services):
            data[f.name] = getattr(self._services, f.name)
        data["timezone"] = self._tz

        return await handler(event, data)
