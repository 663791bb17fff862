from __future__ import annotations

import logging
from html import escape

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from personal_os.constants import RATING_DEFAULT
from personal_os.domain.common.errors import ValidationError
from personal_os.domain.common.time import to_iso
from personal_os.domain.ports import Clock, IdGenerator
from personal_os.infra.db.repo.templates_sqlite import TemplatesSqliteRepo
from personal_os.models import Template, TemplateTask
from personal_os.ui.telegram.handlers._common import callback_arg, show
from personal_os.ui.telegram.keyboards.clients import templates_manage_kb
from personal_os.ui.telegram.keyboards.common import back_kb, confirm_kb
from personal_os.ui.telegram.render import render_templates
from personal_os.ui.telegram.texts.common import CONFIRM_DELETE_TEMPLATE, NOT_FOUND, TEMPLATE_USAGE
from personal_os.ui.telegram.utils.navigation import command_args
from personal_os.ui.telegram.utils.parsing import parse_template_command

logger = logging.getLogger(__name__)

router = Router()


async def show_templates(message: Message, templates_repo: TemplatesSqliteRepo, edit: bool = False) -> None:
    templates = await templates_repo.list_templates()
    await show(message, render_templates(templates), templates_manage_kb(templates), edit=edit)


@router.message(Command("templates"))
async def templates_cmd(message: Message, templates_repo: TemplatesSqliteRepo):
    await show_templates(message, templates_repo)


@router.message(Command("newtemplate"))
async def newtemplate_cmd(message: Message, templates_repo: TemplatesSqliteRepo, clock: Clock, ids: IdGenerator):
    """/newtemplate Name | step; step (l u e); ..."""
    args = command_args(message.text)
    if not args:
        await message.answer(TEMPLATE_USAGE)
        return
    try:
        name, steps = parse_template_command(args)
    except ValidationError as e:
        await message.answer(f"❌ {escape(str(e))}\n\n{TEMPLATE_USAGE}")
        return

    template_id = ids.new_id()
    template = Template(
        id=template_id,
        name=name,
        created_at=to_iso(clock.now()),
        template_tasks=tuple(
            TemplateTask(
                id=ids.new_id(),
                template_id=template_id,
                title=title,
                default_leverage=ratings.get("leverage", RATING_DEFAULT),
                default_urgency=ratings.get("urgency", RATING_DEFAULT),
                default_effort=ratings.get("effort", RATING_DEFAULT),
                sort_order=i,
            )
            for i, (title, ratings) in enumerate(steps)
        ),
    )
    await templates_repo.create_template(template)
    logger.info("Template created id=%s steps=%d", template.id, len(template.template_tasks))
    await message.answer(f"Template <b>{escape(name)}</b> saved with {len(steps)} steps.")
    await show_templates(message, templates_repo)


@router.callback_query(F.data.startswith("tpl:del:"))
async def template_delete_cb(cb: CallbackQuery, templates_repo: TemplatesSqliteRepo):
    await cb.answer()
    template = await templates_repo.get_template(callback_arg(cb.data))
    if template is None:
        await show(cb.message, NOT_FOUND, back_kb("nav:clients"), edit=True)
        return
    await show(
        cb.message,
        CONFIRM_DELETE_TEMPLATE.format(name=escape(template.name)),
        confirm_kb(f"tpl:delok:{template.id}", "tpl:list"),
        edit=True,
    )


@router.callback_query(F.data == "tpl:list")
async def templates_cb(cb: CallbackQuery, templates_repo: TemplatesSqliteRepo):
    await cb.answer()
    await show_templates(cb.message, templates_repo, edit=True)


@router.callback_query(F.data.startswith("tpl:delok:"))
async def template_delete_ok_cb(cb: CallbackQuery, templates_repo: TemplatesSqliteRepo):
    await templates_repo.delete_template(callback_arg(cb.data))
    await cb.answer("Deleted 🗑")
    await show_templates(cb.message, templates_repo, edit=True)
