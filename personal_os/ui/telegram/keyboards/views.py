from __future__ import annotations

from typing import Optional, Sequence

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from personal_os.models import View
from personal_os.ui.telegram.render import label


def views_kb(views: Sequence[View], active_view_id: Optional[str]) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    for v in views:
        mark = "▶️ " if v.id == active_view_id else ""
        kb.button(text=mark + label(v.name, 32), callback_data=f"vw:sel:{v.id}")
        kb.button(text="⭐", callback_data=f"vw:def:{v.id}")
        kb.button(text="🗑", callback_data=f"vw:del:{v.id}")
    kb.button(text="Built-in columns", callback_data="vw:sel:none")
    kb.button(text="🏠 Home", callback_data="nav:home")
    kb.adjust(*([3] * len(views)), 2)
    return kb.as_markup()
