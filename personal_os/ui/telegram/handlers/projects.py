from __future__ import annotations

import logging
from html import escape
from typing import Optional

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from personal_os.domain.common.errors import ValidationError
from personal_os.domain.common.time import to_iso
from personal_os.domain.ports import Clock, IdGenerator
from personal_os.domain.projects.rules import next_project_status
from personal_os.domain.tasks.query import TaskQuery, run_query
from personal_os.infra.db.repo.clients_sqlite import ClientsSqliteRepo
from personal_os.infra.db.repo.domains_sqlite import DomainsSqliteRepo
from personal_os.infra.db.repo.projects_sqlite import ProjectsSqliteRepo
from personal_os.infra.db.repo.tasks_sqlite import TasksSqliteRepo
from personal_os.models import Project
from personal_os.ui.telegram.handlers._common import callback_arg, show
from personal_os.ui.telegram.keyboards.common import back_kb, confirm_kb
from personal_os.ui.telegram.keyboards.projects import (
    pick_client_kb,
    pick_domain_kb,
    project_detail_kb,
    projects_list_kb,
)
from personal_os.ui.telegram.render import render_project_detail, render_project_list
from personal_os.ui.telegram.states import TaskFlow
from personal_os.ui.telegram.texts.common import (
    ASK_TASK_TITLE,
    CHOOSE_PROJECT_CLIENT,
    CHOOSE_PROJECT_DOMAIN,
    CONFIRM_DELETE_PROJECT,
    NOT_FOUND,
    PROJECT_USAGE,
)
from personal_os.ui.telegram.utils.navigation import command_args
from personal_os.ui.telegram.utils.parsing import parse_project_command

logger = logging.getLogger(__name__)

router = Router()


async def show_projects(message: Message, projects_repo: ProjectsSqliteRepo, edit: bool = False) -> None:
    projects = await projects_repo.list_projects()
    await show(message, render_project_list(projects), projects_list_kb(projects), edit=edit)


async def show_project(
    message: Message,
    project: Optional[Project],
    tasks_repo: TasksSqliteRepo,
    edit: bool = False,
) -> None:
    if project is None:
        await show(message, NOT_FOUND, back_kb("nav:projects"), edit=edit)
        return
    # fixed scope: only this project's tasks, priority order
    tasks = run_query(await tasks_repo.list_tasks(), TaskQuery(scope={"project_id": project.id}))
    await show(message, render_project_detail(project, tasks), project_detail_kb(project, tasks), edit=edit)


@router.message(Command("projects"))
async def projects_cmd(message: Message, projects_repo: ProjectsSqliteRepo):
    await show_projects(message, projects_repo)


@router.callback_query(F.data == "nav:projects")
async def projects_cb(cb: CallbackQuery, state: FSMContext, projects_repo: ProjectsSqliteRepo):
    await cb.answer()
    await state.set_state(None)
    await show_projects(cb.message, projects_repo, edit=True)


@router.callback_query(F.data.startswith("pj:open:"))
async def project_open_cb(cb: CallbackQuery, projects_repo: ProjectsSqliteRepo, tasks_repo: TasksSqliteRepo):
    await cb.answer()
    project = await projects_repo.get_project(callback_arg(cb.data))
    await show_project(cb.message, project, tasks_repo, edit=True)


@router.message(Command("newproject"))
async def newproject_cmd(
    message: Message,
    projects_repo: ProjectsSqliteRepo,
    tasks_repo: TasksSqliteRepo,
    clock: Clock,
    ids: IdGenerator,
):
    """/newproject Name | description"""
    args = command_args(message.text)
    if not args:
        await message.answer(PROJECT_USAGE)
        return
    try:
        name, description = parse_project_command(args)
    except ValidationError as e:
        await message.answer(f"❌ {escape(str(e))}\n\n{PROJECT_USAGE}")
        return

    project = Project(id=ids.new_id(), name=name, description=description, created_at=to_iso(clock.now()))
    await projects_repo.create_project(project)
    logger.info("Project created id=%s", project.id)
    await show_project(message, await projects_repo.get_project(project.id), tasks_repo)


@router.callback_query(F.data.startswith("pj:st:"))
async def project_status_cb(cb: CallbackQuery, projects_repo: ProjectsSqliteRepo, tasks_repo: TasksSqliteRepo):
    project = await projects_repo.get_project(callback_arg(cb.data))
    if project is None:
        await cb.answer()
        await show_project(cb.message, None, tasks_repo, edit=True)
        return
    await projects_repo.update_project(project.id, {"status": next_project_status(project.status)})
    await cb.answer("Status changed")
    await show_project(cb.message, await projects_repo.get_project(project.id), tasks_repo, edit=True)


@router.callback_query(F.data.startswith("pj:add:"))
async def project_add_task_cb(cb: CallbackQuery, state: FSMContext, projects_repo: ProjectsSqliteRepo):
    await cb.answer()
    project = await projects_repo.get_project(callback_arg(cb.data))
    if project is None:
        await show(cb.message, NOT_FOUND, back_kb("nav:projects"), edit=True)
        return
    # new task inherits the project's client and domain
    await state.update_data(
        add_to={"project_id": project.id, "client_id": project.client_id, "domain_id": project.domain_id}
    )
    await state.set_state(TaskFlow.add_title)
    await cb.message.answer(ASK_TASK_TITLE)


# --- client / domain assignment ---


@router.callback_query(F.data.startswith("pj:dom:"))
async def project_domain_menu_cb(
    cb: CallbackQuery,
    state: FSMContext,
    projects_repo: ProjectsSqliteRepo,
    domains_repo: DomainsSqliteRepo,
):
    await cb.answer()
    project = await projects_repo.get_project(callback_arg(cb.data))
    if project is None:
        await show(cb.message, NOT_FOUND, back_kb("nav:projects"), edit=True)
        return
    await state.update_data(pick_project_id=project.id)
    await show(
        cb.message,
        CHOOSE_PROJECT_DOMAIN.format(name=escape(project.name)),
        pick_domain_kb(await domains_repo.list_with_children(), back=f"pj:open:{project.id}"),
        edit=True,
    )


@router.callback_query(F.data.startswith("pj:cli:"))
async def project_client_menu_cb(
    cb: CallbackQuery,
    state: FSMContext,
    projects_repo: ProjectsSqliteRepo,
    clients_repo: ClientsSqliteRepo,
):
    await cb.answer()
    project = await projects_repo.get_project(callback_arg(cb.data))
    if project is None:
        await show(cb.message, NOT_FOUND, back_kb("nav:projects"), edit=True)
        return
    await state.update_data(pick_project_id=project.id)
    await show(
        cb.message,
        CHOOSE_PROJECT_CLIENT.format(name=escape(project.name)),
        pick_client_kb(await clients_repo.list_clients(), back=f"pj:open:{project.id}"),
        edit=True,
    )


async def _assign(cb: CallbackQuery, state: FSMContext, projects_repo: ProjectsSqliteRepo, tasks_repo: TasksSqliteRepo, column: str):
    project_id = (await state.get_data()).get("pick_project_id")
    if not project_id:
        await cb.answer()
        await show(cb.message, NOT_FOUND, back_kb("nav:projects"), edit=True)
        return
    value = callback_arg(cb.data)
    await projects_repo.update_project(project_id, {column: None if value == "none" else value})
    await state.update_data(pick_project_id=None)
    await cb.answer("Saved")
    await show_project(cb.message, await projects_repo.get_project(project_id), tasks_repo, edit=True)


@router.callback_query(F.data.startswith("pj:sd:"))
async def project_set_domain_cb(cb: CallbackQuery, state: FSMContext, projects_repo: ProjectsSqliteRepo, tasks_repo: TasksSqliteRepo):
    await _assign(cb, state, projects_repo, tasks_repo, "domain_id")


@router.callback_query(F.data.startswith("pj:sc:"))
async def project_set_client_cb(cb: CallbackQuery, state: FSMContext, projects_repo: ProjectsSqliteRepo, tasks_repo: TasksSqliteRepo):
    await _assign(cb, state, projects_repo, tasks_repo, "client_id")


# --- delete ---


@router.callback_query(F.data.startswith("pj:del:"))
async def project_delete_cb(cb: CallbackQuery, projects_repo: ProjectsSqliteRepo):
    await cb.answer()
    project = await projects_repo.get_project(callback_arg(cb.data))
    if project is None:
        await show(cb.message, NOT_FOUND, back_kb("nav:projects"), edit=True)
        return
    await show(
        cb.message,
        CONFIRM_DELETE_PROJECT.format(name=escape(project.name)),
        confirm_kb(f"pj:delok:{project.id}", f"pj:open:{project.id}"),
        edit=True,
    )


@router.callback_query(F.data.startswith("pj:delok:"))
async def project_delete_ok_cb(cb: CallbackQuery, projects_repo: ProjectsSqliteRepo):
    await projects_repo.delete_project(callback_arg(cb.data))
    await cb.answer("Deleted 🗑")
    await show_projects(cb.message, projects_repo, edit=True)
