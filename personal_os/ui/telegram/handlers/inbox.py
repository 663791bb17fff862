from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from personal_os.constants import (
    FILTER_ALL,
    INBOX_STATUS_ACTIONED,
    INBOX_STATUS_READ,
    INBOX_SOURCE_MANUAL,
    INBOX_STATUS_UNREAD,
)
from personal_os.domain.common.time import to_iso
from personal_os.domain.ports import IdGenerator
from personal_os.domain.tasks.service import TaskService
from personal_os.infra.clock.system_clock import SystemClock
from personal_os.infra.db.repo.inbox_sqlite import InboxSqliteRepo
from personal_os.models import InboxItem
from personal_os.ui.telegram.handlers._common import callback_arg, show
from personal_os.ui.telegram.handlers.tasks import show_task
from personal_os.ui.telegram.keyboards.common import back_kb, confirm_kb
from personal_os.ui.telegram.keyboards.inbox import inbox_item_kb, inbox_list_kb
from personal_os.ui.telegram.render import render_inbox, render_inbox_item
from personal_os.ui.telegram.texts.common import CONFIRM_DELETE_INBOX, NOT_FOUND, NOTE_USAGE
from personal_os.ui.telegram.utils.navigation import command_args

router = Router()


async def show_inbox(message: Message, inbox_repo: InboxSqliteRepo, status: str = FILTER_ALL, edit: bool = False) -> None:
    items = await inbox_repo.list_items(status=status)
    await show(message, render_inbox(items, status), inbox_list_kb(items, status), edit=edit)


@router.message(Command("inbox"))
async def inbox_cmd(message: Message, inbox_repo: InboxSqliteRepo):
    await show_inbox(message, inbox_repo)


@router.callback_query(F.data == "nav:inbox")
async def inbox_cb(cb: CallbackQuery, inbox_repo: InboxSqliteRepo):
    await cb.answer()
    await show_inbox(cb.message, inbox_repo, edit=True)


@router.callback_query(F.data.startswith("ib:list:"))
async def inbox_filter_cb(cb: CallbackQuery, inbox_repo: InboxSqliteRepo):
    await cb.answer()
    await show_inbox(cb.message, inbox_repo, status=callback_arg(cb.data), edit=True)


@router.callback_query(F.data.startswith("ib:open:"))
async def inbox_open_cb(cb: CallbackQuery, inbox_repo: InboxSqliteRepo):
    await cb.answer()
    item = await inbox_repo.get_item(callback_arg(cb.data))
    if item is None:
        await show(cb.message, NOT_FOUND, back_kb("nav:inbox"), edit=True)
        return
    if item.status == INBOX_STATUS_UNREAD:
        # opening marks as read
        await inbox_repo.set_status(item.id, INBOX_STATUS_READ)
        item = await inbox_repo.get_item(item.id) or item
    await show(cb.message, render_inbox_item(item), inbox_item_kb(item), edit=True)


@router.callback_query(F.data.startswith("ib:st:"))
async def inbox_status_cb(cb: CallbackQuery, inbox_repo: InboxSqliteRepo):
    _, _, item_id, status = cb.data.split(":", 3)
    await inbox_repo.set_status(item_id, status)
    await cb.answer("Updated")
    await show_inbox(cb.message, inbox_repo, edit=True)


@router.callback_query(F.data.startswith("ib:task:"))
async def inbox_to_task_cb(cb: CallbackQuery, inbox_repo: InboxSqliteRepo, task_service: TaskService, clock: SystemClock):
    item = await inbox_repo.get_item(callback_arg(cb.data))
    if item is None:
        await cb.answer(NOT_FOUND, show_alert=True)
        return
    result = await task_service.create_task(
        item.subject or (item.content or "")[:80] or f"Message from {item.sender or item.source}",
        description=item.content,
    )
    if not result.ok or result.value is None:
        await cb.answer(result.error or "Failed.", show_alert=True)
        return
    await inbox_repo.set_status(item.id, INBOX_STATUS_ACTIONED, linked_task_id=result.value.id)
    await cb.answer("Task created")
    await show_task(cb.message, result.value, clock)


@router.callback_query(F.data.startswith("ib:del:"))
async def inbox_delete_cb(cb: CallbackQuery):
    await cb.answer()
    item_id = callback_arg(cb.data)
    await show(cb.message, CONFIRM_DELETE_INBOX, confirm_kb(f"ib:delok:{item_id}", f"ib:open:{item_id}"), edit=True)


@router.callback_query(F.data.startswith("ib:delok:"))
async def inbox_delete_ok_cb(cb: CallbackQuery, inbox_repo: InboxSqliteRepo):
    await inbox_repo.delete_item(callback_arg(cb.data))
    await cb.answer("Deleted 🗑")
    await show_inbox(cb.message, inbox_repo, edit=True)


@router.message(Command("note"))
async def note_cmd(message: Message, inbox_repo: InboxSqliteRepo, clock: SystemClock, ids: IdGenerator):
    """/note text: drop a manual item into the inbox."""
    text = command_args(message.text)
    if not text:
        await message.answer(NOTE_USAGE)
        return
    now_iso = to_iso(clock.now())
    first_line = text.splitlines()[0]
    await inbox_repo.create_item(
        InboxItem(
            id=ids.new_id(),
            source=INBOX_SOURCE_MANUAL,
            sender=message.from_user.full_name if message.from_user else None,
            subject=first_line[:120],
            content=text,
            received_at=now_iso,
            created_at=now_iso,
        )
    )
    await message.answer("Saved to inbox.")
