from __future__ import annotations

import logging

from aiogram import F, Router
from aiogram.filters import Command, CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from personal_os.constants import TASK_STATUS_TODO
from personal_os.infra.db.repo.clients_sqlite import ClientsSqliteRepo
from personal_os.infra.db.repo.stats_sqlite import StatsSqliteRepo
from personal_os.infra.db.repo.tasks_sqlite import TasksSqliteRepo
from personal_os.models import DashboardStats
from personal_os.ui.telegram.handlers._common import show
from personal_os.ui.telegram.keyboards.common import main_menu_kb
from personal_os.ui.telegram.render import render_dashboard

logger = logging.getLogger(__name__)

router = Router()

TOP_TASKS = 5


async def send_dashboard(
    message: Message,
    tasks_repo: TasksSqliteRepo,
    clients_repo: ClientsSqliteRepo,
    stats_repo: StatsSqliteRepo,
    edit: bool = False,
) -> None:
    try:
        stats = await stats_repo.get_dashboard_stats()
    except Exception:
        # counters are supplementary; the lists below still render
        logger.warning("Dashboard stats unavailable", exc_info=True)
        stats = DashboardStats()

    todo = await tasks_repo.list_tasks(status=TASK_STATUS_TODO)
    clients = await clients_repo.list_clients()
    text = render_dashboard(stats, todo[:TOP_TASKS], clients[:5])
    await show(message, text, main_menu_kb(), edit=edit)


@router.message(CommandStart())
async def start_cmd(
    message: Message,
    state: FSMContext,
    tasks_repo: TasksSqliteRepo,
    clients_repo: ClientsSqliteRepo,
    stats_repo: StatsSqliteRepo,
):
    await state.set_state(None)
    await send_dashboard(message, tasks_repo, clients_repo, stats_repo)


@router.message(Command("menu"))
async def menu_cmd(
    message: Message,
    state: FSMContext,
    tasks_repo: TasksSqliteRepo,
    clients_repo: ClientsSqliteRepo,
    stats_repo: StatsSqliteRepo,
):
    await state.set_state(None)
    await send_dashboard(message, tasks_repo, clients_repo, stats_repo)


@router.callback_query(F.data == "nav:home")
async def home_cb(
    cb: CallbackQuery,
    state: FSMContext,
    tasks_repo: TasksSqliteRepo,
    clients_repo: ClientsSqliteRepo,
    stats_repo: StatsSqliteRepo,
):
    await cb.answer()
    await state.set_state(None)
    await send_dashboard(cb.message, tasks_repo, clients_repo, stats_repo, edit=True)
