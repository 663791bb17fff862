from __future__ import annotations

from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from personal_os.ui.telegram.keyboards.common import main_menu_kb
from personal_os.ui.telegram.texts.common import MENU_PROMPT


async def go_to_main_menu(
    message: Message,
    state: FSMContext | None = None,
    text: str = MENU_PROMPT,
) -> None:
    """
    Leaves any input flow and returns to the main menu.
    The task table state (view, filters, sort) survives.
    """
    if state is not None:
        await state.set_state(None)

    await message.answer(text, reply_markup=main_menu_kb())


def command_args(text: str | None) -> str:
    """'/add foo bar' -> 'foo bar'"""
    parts = (text or "").strip().split(maxsplit=1)
    if len(parts) < 2:
        return ""
    return parts[1].strip()
