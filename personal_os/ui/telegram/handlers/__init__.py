"""
Handlers module - combines all handler routers.
"""
from __future__ import annotations

from aiogram import Router

from personal_os.ui.telegram.handlers import (
    cancel,
    clients,
    inbox,
    matrix,
    projects,
    settings,
    start,
    tasks,
    templates,
    views,
)

router = Router()

# cancel first so "cancel" escapes any input flow
router.include_router(cancel.router)
router.include_router(start.router)
router.include_router(tasks.router)
router.include_router(matrix.router)
router.include_router(clients.router)
router.include_router(projects.router)
router.include_router(templates.router)
router.include_router(inbox.router)
router.include_router(views.router)
router.include_router(settings.router)

__all__ = ["router"]
