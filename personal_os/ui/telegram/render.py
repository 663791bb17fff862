"""
Message text for the bot. Pure functions over already-loaded data; HTML parse mode.
"""
from __future__ import annotations

from datetime import date
from html import escape
from typing import Optional, Sequence

from personal_os.constants import EMPTY_CELL, FILTER_ALL, STATUS_LABELS
from personal_os.domain.onboarding.service import OnboardingProgress
from personal_os.domain.tasks.columns import RendererRegistry, render_due_date
from personal_os.domain.tasks.service import BatchResult
from personal_os.models import (
    Client,
    CustomFieldDef,
    DashboardStats,
    Domain,
    InboxItem,
    Project,
    Task,
    Template,
    View,
    ViewColumn,
)
from personal_os.priority import QUADRANT_ORDER, Quadrant, format_score
from personal_os.ui.telegram.utils.table_state import PAGE_SIZE, TableState


def label(text: str, max_len: int = 48) -> str:
    t = (text or "").strip()
    return t[:max_len] + ("…" if len(t) > max_len else "")


def render_progress_bar(progress_percent: int) -> str:
    """10 parts, fills 10% at a time"""
    filled = min(max(progress_percent, 0) // 10, 10)
    empty = 10 - filled
    return "█" * filled + "░" * empty + f" {progress_percent}%"


def task_line(task: Task) -> str:
    mark = "✅" if task.status == "done" else "⚪"
    return f"{mark} {escape(label(task.title))} · <b>{format_score(task.priority_score)}</b>"


def render_dashboard(
    stats: DashboardStats,
    top_tasks: Sequence[Task],
    clients: Sequence[Client],
) -> str:
    lines = [
        "<b>Dashboard</b>",
        "",
        f"Tasks: {stats.total_tasks} · active {stats.active_tasks} · done {stats.done_tasks}",
        f"Clients: {stats.total_clients}",
        f"Unread inbox: {stats.unread_inbox}",
    ]
    lines += ["", "<b>Top priorities</b>"]
    if top_tasks:
        lines += [task_line(t) for t in top_tasks]
    else:
        lines.append("Nothing to do. 🎉")
    if clients:
        lines += ["", "<b>Clients</b>"]
        lines += [f"• {escape(c.name)} ({STATUS_LABELS.get(c.status, c.status)})" for c in clients]
    return "\n".join(lines)


def _filters_line(state: TableState, domains: Sequence[Domain]) -> str:
    status = "All" if state.status == FILTER_ALL else STATUS_LABELS.get(state.status, state.status)
    domain = "All"
    if state.domain_id != FILTER_ALL:
        domain = next((d.name for d in domains if d.id == state.domain_id), EMPTY_CELL)
    parts = [f"Status: {escape(status)}", f"Domain: {escape(domain)}"]
    if state.search:
        parts.append(f"Search: “{escape(state.search)}”")
    return " · ".join(parts)


def render_task_table(
    page_tasks: Sequence[Task],
    total: int,
    columns: Sequence[ViewColumn],
    registry: RendererRegistry,
    state: TableState,
    view: Optional[View],
    domains: Sequence[Domain],
    sort_text: str,
) -> str:
    """One block per task; title first, then the remaining visible columns."""
    header = f"<b>{escape(view.name) if view else 'All tasks'}</b> ({total})"
    lines = [header, _filters_line(state, domains), f"Sort: {escape(sort_text)}"]
    if state.selected:
        lines.append(f"Selected: {len(state.selected)}")
    lines.append("")
    if not page_tasks:
        lines.append("No tasks match.")
        return "\n".join(lines)

    for idx, task in enumerate(page_tasks, start=state.page * PAGE_SIZE + 1):
        cells = []
        title = ""
        for column in columns:
            value = registry.render(task, column)
            if column.key == "title":
                title = value
                continue
            if value == EMPTY_CELL:
                continue
            cells.append(f"{escape(column.label)}: {escape(value)}")
        pick = "☑️ " if task.id in state.selected else ""
        lines.append(f"{idx}. {pick}{escape(title or task.title)}")
        if cells:
            lines.append("   " + " | ".join(cells))
    pages = max(1, (total + PAGE_SIZE - 1) // PAGE_SIZE)
    if pages > 1:
        lines += ["", f"Page {state.page + 1}/{pages}"]
    return "\n".join(lines)


def render_sort(sort) -> str:
    if sort is None:
        return "none"
    arrow = "↑" if sort.direction == "asc" else "↓"
    return f"{sort.field} {arrow}"


def render_task_detail(task: Task, today: Optional[date] = None) -> str:
    lines = [f"<b>{escape(task.title)}</b>"]
    if task.description:
        lines.append(escape(task.description))
    lines.append("")
    lines.append(f"Status: {STATUS_LABELS.get(task.status, task.status)}")
    lines.append(
        f"Leverage {task.leverage} · Urgency {task.urgency} · Effort {task.effort}"
        f" → Score <b>{format_score(task.priority_score)}</b>"
    )
    for name, related in (("Domain", task.domain), ("Client", task.client), ("Project", task.project)):
        if related is not None:
            lines.append(f"{name}: {escape(related.name)}")
    if task.due_date:
        lines.append(f"Due: {render_due_date(task, ViewColumn(key='due_date', label='Due'), today=today)}")
    for key, value in sorted((task.custom_fields or {}).items()):
        if value is not None:
            lines.append(f"{escape(key)}: {escape(str(value))}")
    lines.append(f"\n<code>{task.id}</code>")
    return "\n".join(lines)


def render_matrix(buckets: dict[Quadrant, list[Task]], domain_name: Optional[str] = None) -> str:
    title = "<b>Priority matrix</b>"
    if domain_name:
        title += f" · {escape(domain_name)}"
    lines = [title, "Leverage ↑ · Effort →"]
    for quadrant in QUADRANT_ORDER:
        tasks = buckets.get(quadrant, [])
        lines += ["", f"<b>{quadrant.label}</b> ({len(tasks)})"]
        if not tasks:
            lines.append(EMPTY_CELL)
        lines += [f"• {escape(label(t.title, 40))} ({format_score(t.priority_score)})" for t in tasks[:10]]
        if len(tasks) > 10:
            lines.append(f"… and {len(tasks) - 10} more")
    return "\n".join(lines)


def render_client_list(clients: Sequence[Client]) -> str:
    if not clients:
        return "No clients yet. Add one with /client Name"
    return "<b>Clients</b>\n" + "\n".join(
        f"• {escape(c.name)} ({STATUS_LABELS.get(c.status, c.status)})" for c in clients
    )


def render_client_detail(
    client: Client,
    tasks: Sequence[Task],
    progress: OnboardingProgress,
    projects: Sequence[Project],
) -> str:
    lines = [f"<b>{escape(client.name)}</b>", f"Status: {STATUS_LABELS.get(client.status, client.status)}"]
    if client.onboarded_at:
        lines.append(f"Onboarded: {client.onboarded_at[:10]}")
    if client.notes:
        lines.append(escape(client.notes))
    if progress.total:
        lines += [
            "",
            f"Onboarding: {progress.completed}/{progress.total}",
            render_progress_bar(progress.percent),
        ]
    if projects:
        lines += ["", "<b>Projects</b>"]
        lines += [f"• {escape(p.name)} ({STATUS_LABELS.get(p.status, p.status)})" for p in projects]
    lines += ["", f"<b>Tasks</b> ({len(tasks)})"]
    lines += [task_line(t) for t in tasks[:15]] or [EMPTY_CELL]
    return "\n".join(lines)


def render_inbox(items: Sequence[InboxItem], status: str) -> str:
    heading = "All" if status == FILTER_ALL else STATUS_LABELS.get(status, status)
    lines = [f"<b>Inbox</b> · {escape(heading)} ({len(items)})"]
    if not items:
        lines.append("Inbox is empty.")
    return "\n".join(lines)


def render_inbox_item(item: InboxItem) -> str:
    lines = [
        f"<b>{escape(item.subject or '(no subject)')}</b>",
        f"From: {escape(item.sender or EMPTY_CELL)} via {escape(item.source)}",
        f"Received: {item.received_at[:16].replace('T', ' ')}",
        f"Status: {STATUS_LABELS.get(item.status, item.status)}",
    ]
    if item.content:
        lines += ["", escape(label(item.content, 1000))]
    return "\n".join(lines)


def render_views(views: Sequence[View], active_view_id: Optional[str]) -> str:
    lines = ["<b>Views</b>"]
    if not views:
        lines.append("No saved views. The built-in columns are used. Create one with /newview Name")
        return "\n".join(lines)
    for v in views:
        marks = ("▶️ " if v.id == active_view_id else "") + ("⭐ " if v.is_default else "")
        lines.append(f"• {marks}{escape(v.name)}")
    return "\n".join(lines)


def render_batch_result(action: str, result: BatchResult) -> str:
    if result.ok:
        return f"{action}: {len(result.succeeded)} tasks."
    lines = [f"{action}: {len(result.succeeded)} ok, {len(result.failed)} failed."]
    lines += [f"• <code>{escape(task_id[:8])}</code>: {escape(error)}" for task_id, error in result.failed.items()]
    return "\n".join(lines)


def render_templates(templates: Sequence[Template]) -> str:
    if not templates:
        return "No templates yet. Create one with /newtemplate"
    lines = ["<b>Templates</b>"]
    for t in templates:
        lines.append(f"• <b>{escape(t.name)}</b> ({len(t.template_tasks)} steps)")
        lines += [f"   {i}. {escape(label(tt.title, 40))}" for i, tt in enumerate(t.template_tasks, start=1)]
    return "\n".join(lines)


def render_project_list(projects: Sequence[Project]) -> str:
    if not projects:
        return "No projects yet. Create one with /newproject Name"
    lines = ["<b>Projects</b>"]
    for p in projects:
        extra = " · ".join(escape(r.name) for r in (p.client, p.domain) if r is not None)
        lines.append(f"• {escape(p.name)} ({STATUS_LABELS.get(p.status, p.status)})" + (f" · {extra}" if extra else ""))
    return "\n".join(lines)


def render_project_detail(project: Project, tasks: Sequence[Task]) -> str:
    lines = [
        f"<b>{escape(project.name)}</b>",
        f"Status: {STATUS_LABELS.get(project.status, project.status)}",
        f"Client: {escape(project.client.name) if project.client else EMPTY_CELL}",
        f"Domain: {escape(project.domain.name) if project.domain else EMPTY_CELL}",
    ]
    if project.description:
        lines += ["", escape(project.description)]
    lines += ["", f"<b>Tasks</b> ({len(tasks)})"]
    lines += [task_line(t) for t in tasks[:15]] or [EMPTY_CELL]
    return "\n".join(lines)


def render_settings(domains: Sequence[Domain], field_defs: Sequence[CustomFieldDef]) -> str:
    """`domains` are top-level domains with their children attached."""
    lines = ["<b>Settings</b>", "", "<b>Domains</b>"]
    if not domains:
        lines.append("None yet. Add one with /newdomain Name")
    for d in domains:
        lines.append(f"• {escape(d.name)}" + (f" <code>{d.color}</code>" if d.color else ""))
        lines += [f"   ↳ {escape(c.name)}" for c in d.children]
    lines += ["", "<b>Custom fields</b>"]
    if not field_defs:
        lines.append("None yet. Add one with /newfield Name | type")
    for f in field_defs:
        options = f": {escape(', '.join(f.options))}" if f.options else ""
        lines.append(f"• {escape(f.name)} <code>{f.field_key}</code> ({f.field_type}{options})")
    return "\n".join(lines)
