from __future__ import annotations

from typing import Sequence

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from personal_os.constants import RATING_FIELDS, TASK_STATUS_DONE
from personal_os.models import Task, ViewColumn
from personal_os.ui.telegram.render import label
from personal_os.ui.telegram.utils.table_state import PAGE_SIZE, TableState


def task_table_kb(page_tasks: Sequence[Task], total: int, state: TableState) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    for i, task in enumerate(page_tasks, start=state.page * PAGE_SIZE + 1):
        pick = "☑️" if task.id in state.selected else "☐"
        kb.button(text=f"{i}. {label(task.title, 32)}", callback_data=f"t:open:{task.id}")
        kb.button(text=pick, callback_data=f"t:sel:{task.id}")
    sizes = [2] * len(page_tasks)

    pages = max(1, (total + PAGE_SIZE - 1) // PAGE_SIZE)
    if pages > 1:
        kb.button(text="◀️", callback_data="t:page:prev")
        kb.button(text=f"{state.page + 1}/{pages}", callback_data="t:noop")
        kb.button(text="▶️", callback_data="t:page:next")
        sizes.append(3)

    kb.button(text="Status filter", callback_data="t:fstatus")
    kb.button(text="Domain filter", callback_data="t:fdomain")
    kb.button(text="🔎 Search", callback_data="t:search")
    kb.button(text="↕️ Sort", callback_data="t:sortmenu")
    sizes += [2, 2]

    if state.selected:
        kb.button(text=f"✅ Done ({len(state.selected)})", callback_data="t:bulk:done")
        kb.button(text=f"🗑 Delete ({len(state.selected)})", callback_data="t:bulk:del")
        kb.button(text="Clear selection", callback_data="t:bulk:clear")
        sizes.append(3)

    kb.button(text="➕ Add", callback_data="t:add")
    kb.button(text="🏠 Home", callback_data="nav:home")
    sizes.append(2)
    kb.adjust(*sizes)
    return kb.as_markup()


def sort_menu_kb(columns: Sequence[ViewColumn]) -> InlineKeyboardMarkup:
    """One button per visible column; a tap cycles asc -> desc -> none."""
    kb = InlineKeyboardBuilder()
    for column in columns:
        kb.button(text=column.label, callback_data=f"t:sort:{column.key}"[:64])
    kb.button(text="⬅️ Back", callback_data="nav:tasks")
    kb.adjust(3)
    return kb.as_markup()


def task_action_kb(task: Task) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    toggle_text = "↩️ Reopen" if task.status == TASK_STATUS_DONE else "✅ Done"
    kb.button(text=toggle_text, callback_data=f"t:tg:{task.id}")
    kb.button(text="▶️ In progress", callback_data=f"t:st:{task.id}:in_progress")
    kb.button(text="✏️ Title", callback_data=f"t:ed:{task.id}:title")
    for field in RATING_FIELDS:
        kb.button(text=field.capitalize(), callback_data=f"t:ed:{task.id}:{field}")
    kb.button(text="📅 Due", callback_data=f"t:ed:{task.id}:due_date")
    kb.button(text="🗑 Delete", callback_data=f"t:del:{task.id}")
    kb.button(text="⬅️ Back", callback_data="nav:tasks")
    kb.adjust(2, 1, 3, 1, 2)
    return kb.as_markup()
