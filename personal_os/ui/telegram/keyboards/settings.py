from __future__ import annotations

from typing import Sequence

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from personal_os.models import CustomFieldDef, Domain
from personal_os.ui.telegram.render import label


def settings_kb(domains: Sequence[Domain], field_defs: Sequence[CustomFieldDef]) -> InlineKeyboardMarkup:
    """One row per domain (children indented) and per custom field: name, then its actions."""
    kb = InlineKeyboardBuilder()
    rows: list[int] = []
    for d in domains:
        for item, prefix in [(d, "🏷 ")] + [(c, "↳ ") for c in d.children]:
            kb.button(text=prefix + label(item.name, 28), callback_data="t:noop")
            kb.button(text="⬆️", callback_data=f"st:up:{item.id}")
            kb.button(text="🗑", callback_data=f"st:dd:{item.id}")
            rows.append(3)
    for f in field_defs:
        kb.button(text=f"🔣 {label(f.name, 28)}", callback_data="t:noop")
        kb.button(text="🗑", callback_data=f"st:fd:{f.id}")
        rows.append(2)
    kb.button(text="🏠 Home", callback_data="nav:home")
    kb.adjust(*rows, 1)
    return kb.as_markup()
