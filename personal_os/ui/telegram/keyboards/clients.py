from __future__ import annotations

from typing import Sequence

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from personal_os.models import Client, Template
from personal_os.ui.telegram.render import label


def clients_list_kb(clients: Sequence[Client]) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    for c in clients:
        kb.button(text=label(c.name, 40), callback_data=f"cl:open:{c.id}")
    kb.button(text="➕ New client", callback_data="cl:new")
    kb.button(text="📋 Templates", callback_data="tpl:list")
    kb.button(text="🏠 Home", callback_data="nav:home")
    kb.adjust(*([1] * len(clients)), 3)
    return kb.as_markup()


def client_detail_kb(client: Client) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="📋 Apply template", callback_data=f"cl:tpl:{client.id}")
    kb.button(text="🗑 Delete", callback_data=f"cl:del:{client.id}")
    kb.button(text="⬅️ Clients", callback_data="nav:clients")
    kb.adjust(1, 2)
    return kb.as_markup()


def templates_kb(templates: Sequence[Template]) -> InlineKeyboardMarkup:
    # client id travels in FSM data; callback data is limited to 64 bytes
    kb = InlineKeyboardBuilder()
    for t in templates:
        kb.button(text=f"{label(t.name, 36)} ({len(t.template_tasks)})", callback_data=f"tpl:ap:{t.id}")
    kb.button(text="Cancel", callback_data="cancel")
    kb.adjust(1)
    return kb.as_markup()


def templates_manage_kb(templates: Sequence[Template]) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    for t in templates:
        kb.button(text=f"🗑 {label(t.name, 36)}", callback_data=f"tpl:del:{t.id}")
    kb.button(text="⬅️ Clients", callback_data="nav:clients")
    kb.adjust(1)
    return kb.as_markup()
