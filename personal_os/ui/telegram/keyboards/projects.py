from __future__ import annotations

from typing import Sequence

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from personal_os.models import Client, Domain, Project, Task
from personal_os.ui.telegram.render import label


def projects_list_kb(projects: Sequence[Project]) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    for p in projects:
        kb.button(text=label(p.name, 40), callback_data=f"pj:open:{p.id}")
    kb.button(text="🏠 Home", callback_data="nav:home")
    kb.adjust(1)
    return kb.as_markup()


def project_detail_kb(project: Project, tasks: Sequence[Task]) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    for t in tasks[:8]:
        kb.button(text=label(t.title, 40), callback_data=f"t:open:{t.id}")
    kb.button(text="➕ Task", callback_data=f"pj:add:{project.id}")
    kb.button(text="🔁 Status", callback_data=f"pj:st:{project.id}")
    kb.button(text="🏷 Domain", callback_data=f"pj:dom:{project.id}")
    kb.button(text="👥 Client", callback_data=f"pj:cli:{project.id}")
    kb.button(text="🗑 Delete", callback_data=f"pj:del:{project.id}")
    kb.button(text="⬅️ Projects", callback_data="nav:projects")
    kb.adjust(*([1] * min(len(tasks), 8)), 2, 2, 2)
    return kb.as_markup()


def pick_domain_kb(domains: Sequence[Domain], back: str) -> InlineKeyboardMarkup:
    # project id travels in FSM data; callback data is limited to 64 bytes
    kb = InlineKeyboardBuilder()
    for d in domains:
        kb.button(text=label(d.name, 36), callback_data=f"pj:sd:{d.id}")
        for c in d.children:
            kb.button(text=f"↳ {label(c.name, 34)}", callback_data=f"pj:sd:{c.id}")
    kb.button(text="No domain", callback_data="pj:sd:none")
    kb.button(text="⬅️ Back", callback_data=back)
    kb.adjust(1)
    return kb.as_markup()


def pick_client_kb(clients: Sequence[Client], back: str) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    for c in clients:
        kb.button(text=label(c.name, 36), callback_data=f"pj:sc:{c.id}")
    kb.button(text="No client", callback_data="pj:sc:none")
    kb.button(text="⬅️ Back", callback_data=back)
    kb.adjust(1)
    return kb.as_markup()
