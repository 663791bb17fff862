from __future__ import annotations

import logging
from html import escape

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from personal_os.domain.common.errors import DomainError, PartialFailureError
from personal_os.domain.onboarding.service import OnboardingService, onboarding_progress
from personal_os.domain.tasks.service import ClientService
from personal_os.infra.db.repo.clients_sqlite import ClientsSqliteRepo
from personal_os.infra.db.repo.projects_sqlite import ProjectsSqliteRepo
from personal_os.infra.db.repo.tasks_sqlite import TasksSqliteRepo
from personal_os.infra.db.repo.templates_sqlite import TemplatesSqliteRepo
from personal_os.models import Client
from personal_os.ui.telegram.handlers._common import callback_arg, show
from personal_os.ui.telegram.keyboards.clients import client_detail_kb, clients_list_kb, templates_kb
from personal_os.ui.telegram.keyboards.common import back_kb, confirm_kb
from personal_os.ui.telegram.render import render_client_detail, render_client_list
from personal_os.ui.telegram.states import ClientFlow
from personal_os.ui.telegram.texts.common import (
    ASK_CLIENT_NAME,
    CHOOSE_TEMPLATE,
    CONFIRM_DELETE_CLIENT,
    NO_TEMPLATES,
    NOT_FOUND,
    TEMPLATE_EMPTY,
)
from personal_os.ui.telegram.utils.navigation import command_args

logger = logging.getLogger(__name__)

router = Router()


async def show_clients(message: Message, clients_repo: ClientsSqliteRepo, edit: bool = False) -> None:
    clients = await clients_repo.list_clients()
    await show(message, render_client_list(clients), clients_list_kb(clients), edit=edit)


async def show_client(
    message: Message,
    client: Client | None,
    tasks_repo: TasksSqliteRepo,
    projects_repo: ProjectsSqliteRepo,
    edit: bool = False,
) -> None:
    if client is None:
        await show(message, NOT_FOUND, back_kb("nav:clients"), edit=edit)
        return
    # scope: only this client's tasks
    tasks = await tasks_repo.list_tasks(client_id=client.id)
    projects = await projects_repo.list_projects(client_id=client.id)
    text = render_client_detail(client, tasks, onboarding_progress(tasks), projects)
    await show(message, text, client_detail_kb(client), edit=edit)


@router.message(Command("clients"))
async def clients_cmd(message: Message, clients_repo: ClientsSqliteRepo):
    await show_clients(message, clients_repo)


@router.callback_query(F.data == "nav:clients")
async def clients_cb(cb: CallbackQuery, state: FSMContext, clients_repo: ClientsSqliteRepo):
    await cb.answer()
    await state.set_state(None)
    await show_clients(cb.message, clients_repo, edit=True)


@router.callback_query(F.data.startswith("cl:open:"))
async def client_open_cb(cb: CallbackQuery, clients_repo: ClientsSqliteRepo, tasks_repo: TasksSqliteRepo, projects_repo: ProjectsSqliteRepo):
    await cb.answer()
    client = await clients_repo.get_client(callback_arg(cb.data))
    await show_client(cb.message, client, tasks_repo, projects_repo, edit=True)


@router.message(Command("client"))
async def client_cmd(
    message: Message,
    client_service: ClientService,
    clients_repo: ClientsSqliteRepo,
    tasks_repo: TasksSqliteRepo,
    projects_repo: ProjectsSqliteRepo,
):
    """/client Name: open the client with that name, creating it if it does not exist."""
    name = command_args(message.text)
    if not name:
        await message.answer(ASK_CLIENT_NAME)
        return
    client = await clients_repo.find_by_name(name)
    if client is None:
        result = await client_service.create_client(name)
        if not result.ok:
            await message.answer(f"❌ {escape(result.error or 'Failed.')}")
            return
        client = result.value
        await message.answer("Client created.")
    await show_client(message, client, tasks_repo, projects_repo)


@router.callback_query(F.data == "cl:new")
async def client_new_cb(cb: CallbackQuery, state: FSMContext):
    await cb.answer()
    await state.set_state(ClientFlow.new_name)
    await cb.message.answer(ASK_CLIENT_NAME)


@router.message(ClientFlow.new_name)
async def client_new_name(
    message: Message,
    state: FSMContext,
    client_service: ClientService,
    tasks_repo: TasksSqliteRepo,
    projects_repo: ProjectsSqliteRepo,
):
    result = await client_service.create_client(message.text or "")
    if not result.ok:
        await message.answer(f"❌ {escape(result.error or 'Failed.')}")
        return
    await state.set_state(None)
    await show_client(message, result.value, tasks_repo, projects_repo)


@router.callback_query(F.data.startswith("cl:del:"))
async def client_delete_cb(cb: CallbackQuery, clients_repo: ClientsSqliteRepo):
    await cb.answer()
    client = await clients_repo.get_client(callback_arg(cb.data))
    if client is None:
        await show(cb.message, NOT_FOUND, back_kb("nav:clients"), edit=True)
        return
    await show(
        cb.message,
        CONFIRM_DELETE_CLIENT.format(name=escape(client.name)),
        confirm_kb(f"cl:delok:{client.id}", f"cl:open:{client.id}"),
        edit=True,
    )


@router.callback_query(F.data.startswith("cl:delok:"))
async def client_delete_ok_cb(cb: CallbackQuery, client_service: ClientService, clients_repo: ClientsSqliteRepo):
    result = await client_service.delete_client(callback_arg(cb.data))
    if not result.ok:
        await cb.answer(result.error or "Failed.", show_alert=True)
        return
    await cb.answer("Deleted 🗑")
    await show_clients(cb.message, clients_repo, edit=True)


# --- onboarding templates ---


@router.callback_query(F.data.startswith("cl:tpl:"))
async def choose_template_cb(cb: CallbackQuery, state: FSMContext, clients_repo: ClientsSqliteRepo, templates_repo: TemplatesSqliteRepo):
    await cb.answer()
    client = await clients_repo.get_client(callback_arg(cb.data))
    if client is None:
        await show(cb.message, NOT_FOUND, back_kb("nav:clients"), edit=True)
        return
    templates = await templates_repo.list_templates()
    if not templates:
        await show(cb.message, NO_TEMPLATES, back_kb(f"cl:open:{client.id}"), edit=True)
        return
    await state.update_data(onboard_client_id=client.id)
    await state.set_state(ClientFlow.choose_template)
    await show(cb.message, CHOOSE_TEMPLATE.format(client=escape(client.name)), templates_kb(templates), edit=True)


@router.callback_query(ClientFlow.choose_template, F.data.startswith("tpl:ap:"))
async def apply_template_cb(
    cb: CallbackQuery,
    state: FSMContext,
    onboarding_service: OnboardingService,
    clients_repo: ClientsSqliteRepo,
    tasks_repo: TasksSqliteRepo,
    projects_repo: ProjectsSqliteRepo,
):
    await cb.answer()
    client_id = (await state.get_data()).get("onboard_client_id")
    await state.set_state(None)
    if not client_id:
        await show(cb.message, NOT_FOUND, back_kb("nav:clients"), edit=True)
        return

    try:
        created = await onboarding_service.apply_template(callback_arg(cb.data), client_id)
    except PartialFailureError as e:
        logger.error("Template applied partially: %s", e)
        await cb.message.answer(f"⚠️ {escape(str(e))}")
        created = e.applied
    except DomainError as e:
        await cb.message.answer(f"❌ {escape(str(e))}")
        return

    if not created:
        await cb.message.answer(TEMPLATE_EMPTY)
    else:
        await cb.message.answer(f"Created {len(created)} onboarding tasks.")
    client = await clients_repo.get_client(client_id)
    await show_client(cb.message, client, tasks_repo, projects_repo)
