from __future__ import annotations

import logging
from html import escape

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from personal_os.domain.common.errors import DomainError, ValidationError
from personal_os.domain.common.time import to_iso
from personal_os.domain.ports import Clock, IdGenerator
from personal_os.domain.settings.rules import find_parent, move_up, next_sort_order
from personal_os.infra.db.repo.custom_fields_sqlite import CustomFieldsSqliteRepo
from personal_os.infra.db.repo.domains_sqlite import DomainsSqliteRepo
from personal_os.models import CustomFieldDef, Domain
from personal_os.ui.telegram.handlers._common import callback_arg, show
from personal_os.ui.telegram.keyboards.common import back_kb, confirm_kb
from personal_os.ui.telegram.keyboards.settings import settings_kb
from personal_os.ui.telegram.render import render_settings
from personal_os.ui.telegram.texts.common import (
    CONFIRM_DELETE_DOMAIN,
    CONFIRM_DELETE_FIELD,
    DOMAIN_USAGE,
    FIELD_USAGE,
    NOT_FOUND,
)
from personal_os.ui.telegram.utils.navigation import command_args
from personal_os.ui.telegram.utils.parsing import parse_domain_command, parse_field_command

logger = logging.getLogger(__name__)

router = Router()


async def show_settings(
    message: Message,
    domains_repo: DomainsSqliteRepo,
    custom_fields_repo: CustomFieldsSqliteRepo,
    edit: bool = False,
) -> None:
    domains = await domains_repo.list_with_children()
    field_defs = await custom_fields_repo.list_defs()
    await show(message, render_settings(domains, field_defs), settings_kb(domains, field_defs), edit=edit)


@router.message(Command("settings"))
async def settings_cmd(message: Message, domains_repo: DomainsSqliteRepo, custom_fields_repo: CustomFieldsSqliteRepo):
    await show_settings(message, domains_repo, custom_fields_repo)


@router.callback_query(F.data == "nav:settings")
async def settings_cb(
    cb: CallbackQuery,
    state: FSMContext,
    domains_repo: DomainsSqliteRepo,
    custom_fields_repo: CustomFieldsSqliteRepo,
):
    await cb.answer()
    await state.set_state(None)
    await show_settings(cb.message, domains_repo, custom_fields_repo, edit=True)


# --- domains ---


@router.message(Command("newdomain"))
async def newdomain_cmd(
    message: Message,
    domains_repo: DomainsSqliteRepo,
    custom_fields_repo: CustomFieldsSqliteRepo,
    clock: Clock,
    ids: IdGenerator,
):
    """/newdomain Name, or /newdomain Parent / Child #RRGGBB"""
    args = command_args(message.text)
    if not args:
        await message.answer(DOMAIN_USAGE)
        return
    domains = await domains_repo.list_domains()
    try:
        name, parent_name, color = parse_domain_command(args)
        parent_id = find_parent(domains, parent_name).id if parent_name else None
    except ValidationError as e:
        await message.answer(f"❌ {escape(str(e))}\n\n{DOMAIN_USAGE}")
        return

    domain = Domain(
        id=ids.new_id(),
        name=name,
        parent_id=parent_id,
        color=color,
        sort_order=next_sort_order(domains, parent_id),
        created_at=to_iso(clock.now()),
    )
    await domains_repo.create_domain(domain)
    logger.info("Domain created id=%s parent=%s", domain.id, parent_id)
    await show_settings(message, domains_repo, custom_fields_repo)


@router.callback_query(F.data.startswith("st:up:"))
async def domain_up_cb(cb: CallbackQuery, domains_repo: DomainsSqliteRepo, custom_fields_repo: CustomFieldsSqliteRepo):
    try:
        changes = move_up(await domains_repo.list_domains(), callback_arg(cb.data))
    except DomainError as e:
        await cb.answer(str(e), show_alert=True)
        return
    for domain_id, sort_order in changes.items():
        await domains_repo.update_domain(domain_id, {"sort_order": sort_order})
    await cb.answer()
    if changes:
        await show_settings(cb.message, domains_repo, custom_fields_repo, edit=True)


@router.callback_query(F.data.startswith("st:dd:"))
async def domain_delete_cb(cb: CallbackQuery, domains_repo: DomainsSqliteRepo):
    await cb.answer()
    domain = await domains_repo.get_domain(callback_arg(cb.data))
    if domain is None:
        await show(cb.message, NOT_FOUND, back_kb("nav:settings"), edit=True)
        return
    await show(
        cb.message,
        CONFIRM_DELETE_DOMAIN.format(name=escape(domain.name)),
        confirm_kb(f"st:ddok:{domain.id}", "nav:settings"),
        edit=True,
    )


@router.callback_query(F.data.startswith("st:ddok:"))
async def domain_delete_ok_cb(cb: CallbackQuery, domains_repo: DomainsSqliteRepo, custom_fields_repo: CustomFieldsSqliteRepo):
    await domains_repo.delete_domain(callback_arg(cb.data))
    await cb.answer("Deleted 🗑")
    await show_settings(cb.message, domains_repo, custom_fields_repo, edit=True)


# --- custom fields ---


@router.message(Command("newfield"))
async def newfield_cmd(
    message: Message,
    domains_repo: DomainsSqliteRepo,
    custom_fields_repo: CustomFieldsSqliteRepo,
    clock: Clock,
    ids: IdGenerator,
):
    """/newfield Name | type | options"""
    args = command_args(message.text)
    if not args:
        await message.answer(FIELD_USAGE)
        return
    try:
        name, field_key, field_type, options = parse_field_command(args)
    except ValidationError as e:
        await message.answer(f"❌ {escape(str(e))}\n\n{FIELD_USAGE}")
        return

    field_defs = await custom_fields_repo.list_defs()
    if any(f.field_key == field_key for f in field_defs):
        await message.answer(f"❌ A field with key <code>{field_key}</code> already exists.")
        return
    field_def = CustomFieldDef(
        id=ids.new_id(),
        name=name,
        field_key=field_key,
        field_type=field_type,
        options=options,
        sort_order=len(field_defs),
        created_at=to_iso(clock.now()),
    )
    await custom_fields_repo.create_def(field_def)
    logger.info("Custom field created key=%s type=%s", field_key, field_type)
    await message.answer(f"Field saved. Set it with <code>/edit &lt;task id&gt; {field_key} value</code>")
    await show_settings(message, domains_repo, custom_fields_repo)


@router.callback_query(F.data.startswith("st:fd:"))
async def field_delete_cb(cb: CallbackQuery, custom_fields_repo: CustomFieldsSqliteRepo):
    await cb.answer()
    field_def = await custom_fields_repo.get_def(callback_arg(cb.data))
    if field_def is None:
        await show(cb.message, NOT_FOUND, back_kb("nav:settings"), edit=True)
        return
    await show(
        cb.message,
        CONFIRM_DELETE_FIELD.format(name=escape(field_def.name)),
        confirm_kb(f"st:fdok:{field_def.id}", "nav:settings"),
        edit=True,
    )


@router.callback_query(F.data.startswith("st:fdok:"))
async def field_delete_ok_cb(cb: CallbackQuery, domains_repo: DomainsSqliteRepo, custom_fields_repo: CustomFieldsSqliteRepo):
    await custom_fields_repo.delete_def(callback_arg(cb.data))
    await cb.answer("Deleted 🗑")
    await show_settings(cb.message, domains_repo, custom_fields_repo, edit=True)
