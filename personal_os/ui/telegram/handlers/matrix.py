from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, InlineKeyboardMarkup, Message
from aiogram.utils.keyboard import InlineKeyboardBuilder

from personal_os.constants import FILTER_ALL
from personal_os.infra.db.repo.domains_sqlite import DomainsSqliteRepo
from personal_os.infra.db.repo.tasks_sqlite import TasksSqliteRepo
from personal_os.priority import build_matrix
from personal_os.ui.telegram.handlers._common import show
from personal_os.ui.telegram.render import render_matrix

router = Router()

MATRIX_DOMAIN_KEY = "matrix_domain"


def matrix_kb() -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="Domain filter", callback_data="mx:dom")
    kb.button(text="📋 Table", callback_data="nav:tasks")
    kb.button(text="🏠 Home", callback_data="nav:home")
    kb.adjust(1, 2)
    return kb.as_markup()


async def show_matrix(
    message: Message,
    state: FSMContext,
    tasks_repo: TasksSqliteRepo,
    domains_repo: DomainsSqliteRepo,
    edit: bool = False,
) -> None:
    domain_id = (await state.get_data()).get(MATRIX_DOMAIN_KEY, FILTER_ALL)
    domains = await domains_repo.list_domains()
    domain_name = next((d.name for d in domains if d.id == domain_id), None)
    buckets = build_matrix(await tasks_repo.list_tasks(), domain_id=domain_id)
    await show(message, render_matrix(buckets, domain_name), matrix_kb(), edit=edit)


@router.message(Command("matrix"))
async def matrix_cmd(message: Message, state: FSMContext, tasks_repo: TasksSqliteRepo, domains_repo: DomainsSqliteRepo):
    await show_matrix(message, state, tasks_repo, domains_repo)


@router.callback_query(F.data == "nav:matrix")
async def matrix_cb(cb: CallbackQuery, state: FSMContext, tasks_repo: TasksSqliteRepo, domains_repo: DomainsSqliteRepo):
    await cb.answer()
    await show_matrix(cb.message, state, tasks_repo, domains_repo, edit=True)


@router.callback_query(F.data == "mx:dom")
async def matrix_domain_cb(cb: CallbackQuery, state: FSMContext, tasks_repo: TasksSqliteRepo, domains_repo: DomainsSqliteRepo):
    await cb.answer()
    order = [FILTER_ALL] + [d.id for d in await domains_repo.list_domains()]
    current = (await state.get_data()).get(MATRIX_DOMAIN_KEY, FILTER_ALL)
    idx = order.index(current) if current in order else 0
    await state.update_data(**{MATRIX_DOMAIN_KEY: order[(idx + 1) % len(order)]})
    await show_matrix(cb.message, state, tasks_repo, domains_repo, edit=True)
