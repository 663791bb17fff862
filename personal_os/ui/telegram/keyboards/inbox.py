from __future__ import annotations

from typing import Sequence

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from personal_os.constants import FILTER_ALL, INBOX_STATUS_UNREAD
from personal_os.models import InboxItem
from personal_os.ui.telegram.render import label


def inbox_list_kb(items: Sequence[InboxItem], status: str) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    for it in items:
        dot = "🔵 " if it.status == INBOX_STATUS_UNREAD else ""
        kb.button(text=dot + label(it.subject or it.sender or "(no subject)", 40), callback_data=f"ib:open:{it.id}")
    other = INBOX_STATUS_UNREAD if status == FILTER_ALL else FILTER_ALL
    kb.button(text="Show unread" if other == INBOX_STATUS_UNREAD else "Show all", callback_data=f"ib:list:{other}")
    kb.button(text="🏠 Home", callback_data="nav:home")
    kb.adjust(*([1] * len(items)), 2)
    return kb.as_markup()


def inbox_item_kb(item: InboxItem) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="➕ Make task", callback_data=f"ib:task:{item.id}")
    kb.button(text="✔️ Actioned", callback_data=f"ib:st:{item.id}:actioned")
    kb.button(text="📦 Archive", callback_data=f"ib:st:{item.id}:archived")
    kb.button(text="🗑 Delete", callback_data=f"ib:del:{item.id}")
    kb.button(text="⬅️ Inbox", callback_data="nav:inbox")
    kb.adjust(2, 2, 1)
    return kb.as_markup()
