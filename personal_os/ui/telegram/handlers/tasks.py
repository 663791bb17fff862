from __future__ import annotations

from html import escape
from typing import Optional

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from personal_os.constants import TASK_STATUS_DONE
from personal_os.domain.common.errors import ValidationError
from personal_os.domain.tasks.columns import default_registry
from personal_os.domain.tasks.query import run_query
from personal_os.domain.tasks.service import TaskService
from personal_os.infra.clock.system_clock import SystemClock
from personal_os.infra.db.repo.domains_sqlite import DomainsSqliteRepo
from personal_os.infra.db.repo.tasks_sqlite import TasksSqliteRepo
from personal_os.infra.db.repo.views_sqlite import ViewsSqliteRepo
from personal_os.models import Task
from personal_os.ui.telegram.handlers._common import callback_arg, show
from personal_os.ui.telegram.keyboards.common import confirm_kb, main_menu_kb
from personal_os.ui.telegram.keyboards.tasks import sort_menu_kb, task_action_kb, task_table_kb
from personal_os.ui.telegram.render import (
    render_batch_result,
    render_sort,
    render_task_detail,
    render_task_table,
)
from personal_os.ui.telegram.states import TaskFlow
from personal_os.ui.telegram.texts.common import (
    ADD_USAGE,
    ASK_EDIT_VALUE,
    ASK_SEARCH,
    ASK_TASK_TITLE,
    CONFIRM_BULK_DELETE,
    CONFIRM_DELETE_TASK,
    EDIT_USAGE,
    FIND_USAGE,
    NOT_FOUND,
)
from personal_os.ui.telegram.utils.navigation import command_args
from personal_os.ui.telegram.utils.parsing import clear_marker, parse_edit_command, parse_quick_add
from personal_os.ui.telegram.utils.table_state import TableState, page_slice

router = Router()

REGISTRY = default_registry()


async def _table_state(state: FSMContext) -> TableState:
    return TableState.from_data(await state.get_data())


async def _save_table_state(state: FSMContext, ts: TableState) -> None:
    await state.update_data(**ts.to_data())


async def show_table(
    message: Message,
    state: FSMContext,
    tasks_repo: TasksSqliteRepo,
    views_repo: ViewsSqliteRepo,
    domains_repo: DomainsSqliteRepo,
    ts: Optional[TableState] = None,
    edit: bool = False,
) -> None:
    """Load, query and render the task table for this chat's table state."""
    if ts is None:
        ts = await _table_state(state)
    views = await views_repo.list_views()
    selection = ts.selection(views)
    tasks = await tasks_repo.list_tasks()
    domains = await domains_repo.list_domains()

    visible = run_query(tasks, ts.query(selection))
    ts = ts.with_page(ts.page, len(visible))
    await _save_table_state(state, ts)

    text = render_task_table(
        page_slice(visible, ts.page),
        total=len(visible),
        columns=selection.columns(),
        registry=REGISTRY,
        state=ts,
        view=selection.active_view,
        domains=domains,
        sort_text=render_sort(ts.effective_sort(selection)),
    )
    await show(message, text, task_table_kb(page_slice(visible, ts.page), len(visible), ts), edit=edit)


async def show_task(message: Message, task: Optional[Task], clock: SystemClock, edit: bool = False) -> None:
    if task is None:
        await show(message, NOT_FOUND, main_menu_kb(), edit=edit)
        return
    await show(message, render_task_detail(task, today=clock.today()), task_action_kb(task), edit=edit)


async def _resolve_task_ref(tasks_repo: TasksSqliteRepo, ref: str) -> Optional[Task]:
    """Full id, or a unique id prefix of at least 4 characters."""
    task = await tasks_repo.get_task(ref)
    if task is not None or len(ref) < 4:
        return task
    matches = [t for t in await tasks_repo.list_tasks() if t.id.startswith(ref)]
    return matches[0] if len(matches) == 1 else None


# --- table ---


@router.message(Command("tasks"))
async def tasks_cmd(message: Message, state: FSMContext, tasks_repo: TasksSqliteRepo, views_repo: ViewsSqliteRepo, domains_repo: DomainsSqliteRepo):
    await state.set_state(None)
    await show_table(message, state, tasks_repo, views_repo, domains_repo)


@router.callback_query(F.data == "nav:tasks")
async def tasks_cb(cb: CallbackQuery, state: FSMContext, tasks_repo: TasksSqliteRepo, views_repo: ViewsSqliteRepo, domains_repo: DomainsSqliteRepo):
    await cb.answer()
    await state.set_state(None)
    await show_table(cb.message, state, tasks_repo, views_repo, domains_repo, edit=True)


@router.callback_query(F.data == "t:noop")
async def noop_cb(cb: CallbackQuery):
    await cb.answer()


@router.callback_query(F.data.in_({"t:page:prev", "t:page:next"}))
async def page_cb(cb: CallbackQuery, state: FSMContext, tasks_repo: TasksSqliteRepo, views_repo: ViewsSqliteRepo, domains_repo: DomainsSqliteRepo):
    await cb.answer()
    ts = await _table_state(state)
    step = -1 if cb.data.endswith("prev") else 1
    # show_table clamps the page against the filtered total
    ts = ts.step_page(step)
    await show_table(cb.message, state, tasks_repo, views_repo, domains_repo, ts=ts, edit=True)


@router.callback_query(F.data == "t:fstatus")
async def status_filter_cb(cb: CallbackQuery, state: FSMContext, tasks_repo: TasksSqliteRepo, views_repo: ViewsSqliteRepo, domains_repo: DomainsSqliteRepo):
    await cb.answer()
    ts = (await _table_state(state)).cycle_status()
    await show_table(cb.message, state, tasks_repo, views_repo, domains_repo, ts=ts, edit=True)


@router.callback_query(F.data == "t:fdomain")
async def domain_filter_cb(cb: CallbackQuery, state: FSMContext, tasks_repo: TasksSqliteRepo, views_repo: ViewsSqliteRepo, domains_repo: DomainsSqliteRepo):
    await cb.answer()
    domains = await domains_repo.list_domains()
    ts = (await _table_state(state)).cycle_domain([d.id for d in domains])
    await show_table(cb.message, state, tasks_repo, views_repo, domains_repo, ts=ts, edit=True)


@router.callback_query(F.data == "t:search")
async def search_cb(cb: CallbackQuery, state: FSMContext):
    await cb.answer()
    await state.set_state(TaskFlow.search)
    await cb.message.answer(ASK_SEARCH)


@router.message(TaskFlow.search)
async def search_text(message: Message, state: FSMContext, tasks_repo: TasksSqliteRepo, views_repo: ViewsSqliteRepo, domains_repo: DomainsSqliteRepo):
    await state.set_state(None)
    ts = (await _table_state(state)).with_search(clear_marker(message.text))
    await show_table(message, state, tasks_repo, views_repo, domains_repo, ts=ts)


@router.message(Command("find"))
async def find_cmd(message: Message, state: FSMContext, tasks_repo: TasksSqliteRepo, views_repo: ViewsSqliteRepo, domains_repo: DomainsSqliteRepo):
    text = command_args(message.text)
    if not text:
        await message.answer(FIND_USAGE)
        return
    ts = (await _table_state(state)).with_search(text)
    await show_table(message, state, tasks_repo, views_repo, domains_repo, ts=ts)


@router.callback_query(F.data == "t:sortmenu")
async def sort_menu_cb(cb: CallbackQuery, state: FSMContext, views_repo: ViewsSqliteRepo):
    await cb.answer()
    ts = await _table_state(state)
    selection = ts.selection(await views_repo.list_views())
    current = render_sort(ts.effective_sort(selection))
    await show(cb.message, f"Sort by (now: {escape(current)}):", sort_menu_kb(selection.columns()), edit=True)


@router.callback_query(F.data.startswith("t:sort:"))
async def sort_cb(cb: CallbackQuery, state: FSMContext, tasks_repo: TasksSqliteRepo, views_repo: ViewsSqliteRepo, domains_repo: DomainsSqliteRepo):
    await cb.answer()
    field = cb.data.split(":", 2)[2]
    ts = await _table_state(state)
    ts = ts.click_header(field, ts.selection(await views_repo.list_views()))
    await show_table(cb.message, state, tasks_repo, views_repo, domains_repo, ts=ts, edit=True)


# --- single task ---


@router.callback_query(F.data.startswith("t:open:"))
async def open_cb(cb: CallbackQuery, tasks_repo: TasksSqliteRepo, clock: SystemClock):
    await cb.answer()
    await show_task(cb.message, await tasks_repo.get_task(callback_arg(cb.data)), clock, edit=True)


@router.callback_query(F.data.startswith("t:tg:"))
async def toggle_cb(cb: CallbackQuery, tasks_repo: TasksSqliteRepo, task_service: TaskService, clock: SystemClock):
    task = await tasks_repo.get_task(callback_arg(cb.data))
    if task is None:
        await cb.answer(NOT_FOUND, show_alert=True)
        return
    result = await task_service.toggle_status(task)
    if not result.ok:
        await cb.answer(result.error or "Failed.", show_alert=True)
        return
    await cb.answer("Done ✅" if result.value and result.value.status == TASK_STATUS_DONE else "Reopened")
    await show_task(cb.message, result.value, clock, edit=True)


@router.callback_query(F.data.startswith("t:st:"))
async def status_cb(cb: CallbackQuery, task_service: TaskService, clock: SystemClock):
    _, _, task_id, status = cb.data.split(":", 3)
    result = await task_service.set_status(task_id, status)
    if not result.ok:
        await cb.answer(result.error or "Failed.", show_alert=True)
        return
    await cb.answer("Updated")
    await show_task(cb.message, result.value, clock, edit=True)


@router.callback_query(F.data.startswith("t:ed:"))
async def edit_field_cb(cb: CallbackQuery, state: FSMContext):
    await cb.answer()
    _, _, task_id, field = cb.data.split(":", 3)
    await state.update_data(edit_task_id=task_id, edit_field=field)
    await state.set_state(TaskFlow.edit_value)
    await cb.message.answer(ASK_EDIT_VALUE.format(field=escape(field)))


@router.message(TaskFlow.edit_value)
async def edit_value_text(message: Message, state: FSMContext, task_service: TaskService, clock: SystemClock):
    data = await state.get_data()
    task_id = data.get("edit_task_id")
    field = data.get("edit_field")
    if not task_id or not field:
        await state.set_state(None)
        await message.answer("Edit interrupted.", reply_markup=main_menu_kb())
        return

    result = await task_service.inline_edit(task_id, field, clear_marker(message.text))
    if not result.ok:
        # stay in the flow so the user can retry
        await message.answer(f"❌ {escape(result.error or 'Failed.')}")
        return
    await state.set_state(None)
    await message.answer("Updated.")
    await show_task(message, result.value, clock)


@router.message(Command("edit"))
async def edit_cmd(message: Message, tasks_repo: TasksSqliteRepo, task_service: TaskService, clock: SystemClock):
    try:
        ref, field, value = parse_edit_command(command_args(message.text))
    except ValidationError:
        await message.answer(EDIT_USAGE)
        return
    task = await _resolve_task_ref(tasks_repo, ref)
    if task is None:
        await message.answer(NOT_FOUND)
        return
    result = await task_service.inline_edit(task.id, field, value if value is not None else "")
    if not result.ok:
        await message.answer(f"❌ {escape(result.error or 'Failed.')}")
        return
    await show_task(message, result.value, clock)


@router.callback_query(F.data.startswith("t:del:"))
async def delete_cb(cb: CallbackQuery, tasks_repo: TasksSqliteRepo):
    await cb.answer()
    task = await tasks_repo.get_task(callback_arg(cb.data))
    if task is None:
        await show(cb.message, NOT_FOUND, main_menu_kb(), edit=True)
        return
    await show(
        cb.message,
        CONFIRM_DELETE_TASK.format(title=escape(task.title)),
        confirm_kb(f"t:delok:{task.id}", f"t:open:{task.id}"),
        edit=True,
    )


@router.callback_query(F.data.startswith("t:delok:"))
async def delete_ok_cb(cb: CallbackQuery, state: FSMContext, task_service: TaskService, tasks_repo: TasksSqliteRepo, views_repo: ViewsSqliteRepo, domains_repo: DomainsSqliteRepo):
    result = await task_service.delete_task(callback_arg(cb.data))
    if not result.ok:
        await cb.answer(result.error or "Failed.", show_alert=True)
        return
    await cb.answer("Deleted 🗑")
    await show_table(cb.message, state, tasks_repo, views_repo, domains_repo, edit=True)


# --- bulk ---


@router.callback_query(F.data.startswith("t:sel:"))
async def select_cb(cb: CallbackQuery, state: FSMContext, tasks_repo: TasksSqliteRepo, views_repo: ViewsSqliteRepo, domains_repo: DomainsSqliteRepo):
    await cb.answer()
    ts = (await _table_state(state)).toggle_selected(callback_arg(cb.data))
    await show_table(cb.message, state, tasks_repo, views_repo, domains_repo, ts=ts, edit=True)


@router.callback_query(F.data == "t:bulk:clear")
async def bulk_clear_cb(cb: CallbackQuery, state: FSMContext, tasks_repo: TasksSqliteRepo, views_repo: ViewsSqliteRepo, domains_repo: DomainsSqliteRepo):
    await cb.answer()
    ts = (await _table_state(state)).clear_selection()
    await show_table(cb.message, state, tasks_repo, views_repo, domains_repo, ts=ts, edit=True)


@router.callback_query(F.data == "t:bulk:done")
async def bulk_done_cb(cb: CallbackQuery, state: FSMContext, task_service: TaskService, tasks_repo: TasksSqliteRepo, views_repo: ViewsSqliteRepo, domains_repo: DomainsSqliteRepo):
    await cb.answer()
    ts = await _table_state(state)
    if not ts.selected:
        return
    result = await task_service.bulk_set_status(ts.selected, TASK_STATUS_DONE)
    await cb.message.answer(render_batch_result("Marked done", result))
    await show_table(cb.message, state, tasks_repo, views_repo, domains_repo, ts=ts.clear_selection())


@router.callback_query(F.data == "t:bulk:del")
async def bulk_delete_cb(cb: CallbackQuery, state: FSMContext):
    await cb.answer()
    ts = await _table_state(state)
    if not ts.selected:
        return
    await show(cb.message, CONFIRM_BULK_DELETE.format(count=len(ts.selected)), confirm_kb("t:bulk:delok", "nav:tasks"), edit=True)


@router.callback_query(F.data == "t:bulk:delok")
async def bulk_delete_ok_cb(cb: CallbackQuery, state: FSMContext, task_service: TaskService, tasks_repo: TasksSqliteRepo, views_repo: ViewsSqliteRepo, domains_repo: DomainsSqliteRepo):
    await cb.answer()
    ts = await _table_state(state)
    result = await task_service.bulk_delete(ts.selected)
    await cb.message.answer(render_batch_result("Deleted", result))
    await show_table(cb.message, state, tasks_repo, views_repo, domains_repo, ts=ts.clear_selection())


# --- add ---


async def _add_from_text(
    message: Message,
    text: str,
    task_service: TaskService,
    clock: SystemClock,
    placement: Optional[dict] = None,
) -> bool:
    """placement: project_id / client_id / domain_id for tasks added from a project page."""
    try:
        title, ratings = parse_quick_add(text)
    except ValidationError as e:
        await message.answer(f"❌ {escape(str(e))}\n{ADD_USAGE}")
        return False
    result = await task_service.create_task(title, **ratings, **(placement or {}))
    if not result.ok:
        await message.answer(f"❌ {escape(result.error or 'Failed.')}")
        return False
    await message.answer("Task added.")
    await show_task(message, result.value, clock)
    return True


@router.callback_query(F.data == "t:add")
async def add_cb(cb: CallbackQuery, state: FSMContext):
    await cb.answer()
    await state.update_data(add_to=None)
    await state.set_state(TaskFlow.add_title)
    await cb.message.answer(ASK_TASK_TITLE)


@router.message(TaskFlow.add_title)
async def add_title_text(message: Message, state: FSMContext, task_service: TaskService, clock: SystemClock):
    placement = (await state.get_data()).get("add_to")
    if await _add_from_text(message, message.text or "", task_service, clock, placement):
        await state.update_data(add_to=None)
        await state.set_state(None)


@router.message(Command("add"))
async def add_cmd(message: Message, state: FSMContext, task_service: TaskService, clock: SystemClock):
    args = command_args(message.text)
    if not args:
        await state.update_data(add_to=None)
        await state.set_state(TaskFlow.add_title)
        await message.answer(ASK_TASK_TITLE)
        return
    await _add_from_text(message, args, task_service, clock)

