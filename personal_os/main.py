from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import ExceptionTypeFilter
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.types import BotCommand, ErrorEvent

from personal_os.config import Settings, load_settings
from personal_os.container import build_services
from personal_os.domain.common.time import to_iso
from personal_os.infra.clock.system_clock import SystemClock
from personal_os.infra.db.connection import Database
from personal_os.infra.db.schema_version import apply_migrations
from personal_os.infra.ids.uuid_gen import UuidGenerator
from personal_os.ui.telegram.handlers import router
from personal_os.ui.telegram.middlewares.auth import OwnerOnlyMiddleware
from personal_os.ui.telegram.middlewares.di import DIMiddleware

logger = logging.getLogger(__name__)

BOT_COMMANDS = [
    BotCommand(command="start", description="Dashboard"),
    BotCommand(command="tasks", description="Task table"),
    BotCommand(command="add", description="Add task: Title | l u e"),
    BotCommand(command="find", description="Search tasks"),
    BotCommand(command="edit", description="Edit a task field"),
    BotCommand(command="matrix", description="Priority matrix"),
    BotCommand(command="clients", description="Clients"),
    BotCommand(command="client", description="Open or create a client"),
    BotCommand(command="templates", description="Onboarding templates"),
    BotCommand(command="newtemplate", description="Create a template: Name | step; step"),
    BotCommand(command="projects", description="Projects"),
    BotCommand(command="newproject", description="Create a project: Name | description"),
    BotCommand(command="inbox", description="Inbox"),
    BotCommand(command="note", description="Save a note to the inbox"),
    BotCommand(command="views", description="Saved views"),
    BotCommand(command="newview", description="Save current table as a view"),
    BotCommand(command="settings", description="Domains and custom fields"),
    BotCommand(command="newdomain", description="Add a domain: Parent / Name #color"),
    BotCommand(command="newfield", description="Add a custom field: Name | type | options"),
    BotCommand(command="cancel", description="Cancel current input"),
]


def resolve_db_path(settings: Settings, repo_root: Path) -> Path:
    db_path = settings.db_path
    if not db_path.is_absolute():
        db_path = repo_root / db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return db_path


async def main() -> None:
    """
    Main entry point for the Telegram bot.

    Only run ONE instance at a time: a second poller causes
    TelegramConflictError ("terminated by other getUpdates request").
    """
    settings = load_settings()

    logging.basicConfig(
        level=settings.log_level_value,
        format='%(asctime)s - %(name)s - %(levelname)s - [PID:%(process)d] - %(message)s'
    )
    logger.info("Bot starting - PID: %s", os.getpid())

    repo_root = Path(__file__).resolve().parents[1]  # .../personal_os/main.py -> repo root
    db_path = resolve_db_path(settings, repo_root)
    logger.info("DB_PATH: %s", db_path)

    db = Database(str(db_path))
    clock = SystemClock(settings.timezone)
    ids = UuidGenerator()

    applied = await apply_migrations(db=db, now_iso=to_iso(clock.now()))
    if applied:
        logger.info("Migrations applied: %s", applied)

    services = build_services(db, clock, ids)

    bot = Bot(
        token=settings.bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )
    dp = Dispatcher(storage=MemoryStorage())

    # --- middlewares ---
    dp.message.middleware(OwnerOnlyMiddleware(settings.owner_telegram_id))
    dp.callback_query.middleware(OwnerOnlyMiddleware(settings.owner_telegram_id))

    dp.message.middleware(DIMiddleware(services, settings.timezone))
    dp.callback_query.middleware(DIMiddleware(services, settings.timezone))

    # --- routers ---
    dp.include_router(router)

    @dp.error(ExceptionTypeFilter(TelegramBadRequest))
    async def handle_old_callback_query(event: ErrorEvent) -> None:
        """Ignore TelegramBadRequest for old/invalid callback queries (e.g. after bot restart)."""
        msg = str(event.exception).lower()
        if "query is too old" in msg or "query id is invalid" in msg or "response timeout expired" in msg:
            logger.debug("Ignoring old/invalid callback query: %s", event.exception)
            return
        raise event.exception

    await bot.set_my_commands(BOT_COMMANDS)

    logger.info("Starting polling - PID: %s", os.getpid())
    try:
        await dp.start_polling(bot)
    finally:
        await bot.session.close()
        logger.info("Bot stopped - PID: %s", os.getpid())


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
