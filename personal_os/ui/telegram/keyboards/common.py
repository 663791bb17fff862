from __future__ import annotations

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder


def main_menu_kb() -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="📋 Tasks", callback_data="nav:tasks")
    kb.button(text="🧭 Matrix", callback_data="nav:matrix")
    kb.button(text="👥 Clients", callback_data="nav:clients")
    kb.button(text="📥 Inbox", callback_data="nav:inbox")
    kb.button(text="📁 Projects", callback_data="nav:projects")
    kb.button(text="🗂 Views", callback_data="nav:views")
    kb.button(text="⚙️ Settings", callback_data="nav:settings")
    kb.button(text="➕ Add task", callback_data="t:add")
    kb.adjust(2, 2, 2, 2)
    return kb.as_markup()


def confirm_kb(yes_data: str, no_data: str = "cancel") -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="Yes, delete", callback_data=yes_data)
    kb.button(text="No", callback_data=no_data)
    kb.adjust(2)
    return kb.as_markup()


def back_kb(data: str = "nav:home") -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="⬅️ Back", callback_data=data)
    return kb.as_markup()
