from __future__ import annotations

import logging
from html import escape

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from personal_os.constants import FILTER_ALL, OP_EQ
from personal_os.domain.common.time import to_iso
from personal_os.domain.ports import Clock, IdGenerator
from personal_os.domain.tasks.columns import columns_for_new_view
from personal_os.infra.db.repo.domains_sqlite import DomainsSqliteRepo
from personal_os.infra.db.repo.tasks_sqlite import TasksSqliteRepo
from personal_os.infra.db.repo.views_sqlite import ViewsSqliteRepo
from personal_os.models import View, ViewFilter
from personal_os.ui.telegram.handlers._common import callback_arg, show
from personal_os.ui.telegram.handlers.tasks import show_table
from personal_os.ui.telegram.keyboards.common import back_kb, confirm_kb
from personal_os.ui.telegram.keyboards.views import views_kb
from personal_os.ui.telegram.render import render_views
from personal_os.ui.telegram.texts.common import CONFIRM_DELETE_VIEW, NEWVIEW_USAGE, NOT_FOUND
from personal_os.ui.telegram.utils.navigation import command_args
from personal_os.ui.telegram.utils.table_state import BUILTIN_VIEW, TableState

logger = logging.getLogger(__name__)

router = Router()


async def show_views(message: Message, state: FSMContext, views_repo: ViewsSqliteRepo, edit: bool = False) -> None:
    views = await views_repo.list_views()
    selection = TableState.from_data(await state.get_data()).selection(views)
    await show(
        message,
        render_views(views, selection.active_view_id),
        views_kb(views, selection.active_view_id),
        edit=edit,
    )


def filters_from_table(ts: TableState) -> tuple[ViewFilter, ...]:
    """The table's interactive filters, frozen into view clauses."""
    filters = []
    if ts.status != FILTER_ALL:
        filters.append(ViewFilter(field="status", operator=OP_EQ, value=ts.status))
    if ts.domain_id != FILTER_ALL:
        filters.append(ViewFilter(field="domain_id", operator=OP_EQ, value=ts.domain_id))
    return tuple(filters)


@router.message(Command("views"))
async def views_cmd(message: Message, state: FSMContext, views_repo: ViewsSqliteRepo):
    await show_views(message, state, views_repo)


@router.callback_query(F.data == "nav:views")
async def views_cb(cb: CallbackQuery, state: FSMContext, views_repo: ViewsSqliteRepo):
    await cb.answer()
    await show_views(cb.message, state, views_repo, edit=True)


@router.callback_query(F.data.startswith("vw:sel:"))
async def view_select_cb(
    cb: CallbackQuery,
    state: FSMContext,
    tasks_repo: TasksSqliteRepo,
    views_repo: ViewsSqliteRepo,
    domains_repo: DomainsSqliteRepo,
):
    await cb.answer()
    view_id = callback_arg(cb.data)
    ts = TableState.from_data(await state.get_data())
    ts = ts.with_view(BUILTIN_VIEW if view_id == "none" else view_id)
    await show_table(cb.message, state, tasks_repo, views_repo, domains_repo, ts=ts, edit=True)


@router.callback_query(F.data.startswith("vw:def:"))
async def view_default_cb(cb: CallbackQuery, state: FSMContext, views_repo: ViewsSqliteRepo):
    await views_repo.set_default(callback_arg(cb.data))
    await cb.answer("Default view set ⭐")
    await show_views(cb.message, state, views_repo, edit=True)


@router.message(Command("newview"))
async def newview_cmd(
    message: Message,
    state: FSMContext,
    views_repo: ViewsSqliteRepo,
    clock: Clock,
    ids: IdGenerator,
):
    """/newview Name: save the table's current filters and sort as a view."""
    name = command_args(message.text)
    if not name:
        await message.answer(NEWVIEW_USAGE)
        return

    ts = TableState.from_data(await state.get_data())
    views = await views_repo.list_views()
    view = View(
        id=ids.new_id(),
        name=name[:80],
        columns=columns_for_new_view(),
        filters=filters_from_table(ts),
        sort=ts.effective_sort(ts.selection(views)),
        is_default=not views,
        sort_order=len(views),
        created_at=to_iso(clock.now()),
    )
    await views_repo.create_view(view)
    logger.info("View created id=%s name=%r", view.id, view.name)

    await state.update_data(**ts.with_view(view.id).to_data())
    await message.answer(f"View <b>{escape(view.name)}</b> saved and selected.")
    await show_views(message, state, views_repo)


@router.callback_query(F.data.startswith("vw:del:"))
async def view_delete_cb(cb: CallbackQuery, views_repo: ViewsSqliteRepo):
    await cb.answer()
    view = await views_repo.get_view(callback_arg(cb.data))
    if view is None:
        await show(cb.message, NOT_FOUND, back_kb("nav:views"), edit=True)
        return
    await show(
        cb.message,
        CONFIRM_DELETE_VIEW.format(name=escape(view.name)),
        confirm_kb(f"vw:delok:{view.id}", "nav:views"),
        edit=True,
    )


@router.callback_query(F.data.startswith("vw:delok:"))
async def view_delete_ok_cb(cb: CallbackQuery, state: FSMContext, views_repo: ViewsSqliteRepo):
    view_id = callback_arg(cb.data)
    views = await views_repo.list_views()
    ts = TableState.from_data(await state.get_data())
    selection = ts.selection(views)

    await views_repo.delete_view(view_id)

    # deleting the active view falls back to the first remaining view, or built-in columns
    after = selection.after_delete(view_id)
    if after.active_view_id != selection.active_view_id:
        ts = ts.with_view(after.active_view_id or BUILTIN_VIEW)
        await state.update_data(**ts.to_data())
    await cb.answer("Deleted 🗑")
    await show_views(cb.message, state, views_repo, edit=True)
