from __future__ import annotations

import logging

from aiogram.exceptions import TelegramBadRequest
from aiogram.types import InlineKeyboardMarkup, Message

logger = logging.getLogger(__name__)


async def show(message: Message, text: str, markup: InlineKeyboardMarkup | None = None, edit: bool = False) -> None:
    """
    edit=True: update the message in place (callback UX).
    edit=False: send a new message (command UX).
    """
    if edit:
        try:
            await message.edit_text(text, reply_markup=markup)
            return
        except TelegramBadRequest as e:
            # unchanged content or a message too old to edit
            logger.debug("edit_text failed, sending new message: %s", e)
    await message.answer(text, reply_markup=markup)


def callback_arg(data: str | None, index: int = -1) -> str:
    """'t:open:<id>' -> '<id>'"""
    return (data or "").split(":")[index]
