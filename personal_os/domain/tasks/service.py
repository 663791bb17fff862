from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Generic, Iterable, Mapping, Optional, TypeVar

from personal_os.constants import RATING_DEFAULT, RATING_FIELDS, TASK_STATUS_DONE, TASK_STATUS_TODO
from personal_os.domain.common.errors import DomainError, NotFoundError, ValidationError
from personal_os.domain.common.time import to_iso
from personal_os.domain.ports import ClientRepository, Clock, CustomFieldRepository, IdGenerator, TaskRepository
from personal_os.domain.tasks.rules import (
    OPTIONAL_TEXT_FIELDS,
    RESERVED_TASK_KEYS,
    parse_rating,
    sanitize_updates,
    validate_client_name,
    validate_status,
)
from personal_os.models import Client, Task

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class MutationResult(Generic[T]):
    """
    Outcome of one mutation. The caller decides whether to reload, patch its
    local copy or show the error; nothing is reloaded behind its back.
    """
    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "MutationResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "MutationResult[T]":
        return cls(ok=False, error=error)


@dataclass(frozen=True)
class BatchResult:
    """Per-item report of a bulk action. Items are independent: one failure never rolls back another."""
    succeeded: tuple[str, ...] = ()
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def partial(self) -> bool:
        return bool(self.succeeded) and bool(self.failed)


def _error_text(exc: BaseException) -> str:
    if isinstance(exc, DomainError):
        return str(exc)
    return f"{type(exc).__name__}: {exc}"


class TaskService:
    """
    Task mutations. No aiogram. No sqlite.

    Every mutation returns a MutationResult; write errors are logged and
    reported, never discarded.
    """

    def __init__(
        self,
        tasks: TaskRepository,
        clock: Clock,
        ids: IdGenerator,
        custom_fields: Optional[CustomFieldRepository] = None,
    ) -> None:
        self._tasks = tasks
        self._clock = clock
        self._ids = ids
        # without definitions any non-reserved key is accepted
        self._custom_fields = custom_fields

    async def create_task(
        self,
        title: str,
        *,
        description: Optional[str] = None,
        project_id: Optional[str] = None,
        client_id: Optional[str] = None,
        domain_id: Optional[str] = None,
        leverage: int = RATING_DEFAULT,
        urgency: int = RATING_DEFAULT,
        effort: int = RATING_DEFAULT,
        status: str = TASK_STATUS_TODO,
        due_date: Optional[str] = None,
        custom_fields: Optional[Mapping[str, Any]] = None,
    ) -> MutationResult[Task]:
        try:
            fields = sanitize_updates(
                {
                    "title": title,
                    "leverage": leverage,
                    "urgency": urgency,
                    "effort": effort,
                    "status": status,
                    "due_date": due_date,
                }
            )
        except ValidationError as e:
            return MutationResult.failure(str(e))

        now = self._clock.now()
        task = Task(
            id=self._ids.new_id(),
            description=description or None,
            project_id=project_id,
            client_id=client_id,
            domain_id=domain_id,
            created_at=to_iso(now),
            completed_at=to_iso(now) if fields["status"] == TASK_STATUS_DONE else None,
            custom_fields=dict(custom_fields or {}),
            **fields,
        )
        try:
            await self._tasks.create_task(task)
            stored = await self._tasks.get_task(task.id)
        except Exception as e:
            logger.error("create_task failed title=%r", task.title, exc_info=True)
            return MutationResult.failure(_error_text(e))
        logger.info("Task created id=%s score=%.2f", task.id, task.priority_score)
        return MutationResult.success(stored or task)

    async def update_task(self, task_id: str, updates: Mapping[str, Any]) -> MutationResult[Task]:
        try:
            clean = sanitize_updates(updates)
        except ValidationError as e:
            return MutationResult.failure(str(e))
        if not clean:
            return MutationResult.failure("Nothing to update.")
        try:
            if await self._tasks.get_task(task_id) is None:
                raise NotFoundError("Task not found.")
            await self._tasks.update_task(task_id, clean)
            updated = await self._tasks.get_task(task_id)
        except Exception as e:
            logger.error("update_task failed id=%s", task_id, exc_info=True)
            return MutationResult.failure(_error_text(e))
        logger.info("Task updated id=%s fields=%s", task_id, ",".join(sorted(clean)))
        return MutationResult.success(updated)

    async def set_status(self, task_id: str, status: str) -> MutationResult[Task]:
        try:
            validate_status(status)
        except ValidationError as e:
            return MutationResult.failure(str(e))
        completed_at = to_iso(self._clock.now()) if status == TASK_STATUS_DONE else None
        return await self.update_task(task_id, {"status": status, "completed_at": completed_at})

    async def toggle_status(self, task: Task) -> MutationResult[Task]:
        """done -> todo, anything else -> done."""
        new_status = TASK_STATUS_TODO if task.status == TASK_STATUS_DONE else TASK_STATUS_DONE
        return await self.set_status(task.id, new_status)

    async def inline_edit(self, task_id: str, field_name: str, raw_value: Any) -> MutationResult[Task]:
        """
        Single-cell edit from free text.

        Ratings are parsed as integers and must be in [1, 5]; an empty title is
        rejected; empty optional values become null.
        """
        if field_name in RATING_FIELDS:
            try:
                value: Any = parse_rating(field_name, raw_value)
            except ValidationError as e:
                return MutationResult.failure(str(e))
        elif field_name == "title":
            value = raw_value
        elif field_name == "status":
            return await self.set_status(task_id, (raw_value or "").strip())
        elif field_name in OPTIONAL_TEXT_FIELDS:
            value = raw_value.strip() if isinstance(raw_value, str) else raw_value
            value = value or None
        elif field_name in RESERVED_TASK_KEYS:
            return MutationResult.failure(f"{field_name} cannot be edited.")
        else:
            if not await self._is_custom_key(field_name):
                return MutationResult.failure(f"Unknown field: {field_name}")
            task = await self._tasks.get_task(task_id)
            if task is None:
                return MutationResult.failure("Task not found.")
            custom = dict(task.custom_fields or {})
            custom[field_name] = raw_value if raw_value not in ("", None) else None
            return await self.update_task(task_id, {"custom_fields": custom})
        return await self.update_task(task_id, {field_name: value})

    async def _is_custom_key(self, key: str) -> bool:
        if self._custom_fields is None:
            return True
        return any(d.field_key == key for d in await self._custom_fields.list_defs())

    async def delete_task(self, task_id: str) -> MutationResult[None]:
        try:
            deleted = await self._tasks.delete_task(task_id)
        except Exception as e:
            logger.error("delete_task failed id=%s", task_id, exc_info=True)
            return MutationResult.failure(_error_text(e))
        if not deleted:
            return MutationResult.failure("Task not found.")
        logger.info("Task deleted id=%s", task_id)
        return MutationResult.success()

    async def bulk_set_status(self, task_ids: Iterable[str], status: str) -> BatchResult:
        try:
            validate_status(status)
        except ValidationError as e:
            return BatchResult(failed={task_id: str(e) for task_id in task_ids})
        completed_at = to_iso(self._clock.now()) if status == TASK_STATUS_DONE else None
        updates = {"status": status, "completed_at": completed_at}
        return await self._run_batch(
            "bulk_set_status", task_ids, lambda task_id: self._tasks.update_task(task_id, updates)
        )

    async def bulk_delete(self, task_ids: Iterable[str]) -> BatchResult:
        return await self._run_batch("bulk_delete", task_ids, self._tasks.delete_task)

    async def _run_batch(self, action: str, task_ids: Iterable[str], op) -> BatchResult:
        # one independent write per id, all issued concurrently
        ids = list(dict.fromkeys(task_ids))
        outcomes = await asyncio.gather(*(op(task_id) for task_id in ids), return_exceptions=True)
        succeeded: list[str] = []
        failed: dict[str, str] = {}
        for task_id, outcome in zip(ids, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("%s failed for id=%s: %s", action, task_id, outcome)
                failed[task_id] = _error_text(outcome)
            elif not outcome:
                # no row matched: stale or already deleted id
                failed[task_id] = "Task not found."
            else:
                succeeded.append(task_id)
        logger.info("%s: %d ok, %d failed", action, len(succeeded), len(failed))
        return BatchResult(succeeded=tuple(succeeded), failed=failed)


class ClientService:
    def __init__(self, clients: ClientRepository, clock: Clock, ids: IdGenerator) -> None:
        self._clients = clients
        self._clock = clock
        self._ids = ids

    async def create_client(self, name: str, notes: Optional[str] = None) -> MutationResult[Client]:
        try:
            name = validate_client_name(name)
        except ValidationError as e:
            return MutationResult.failure(str(e))
        client = Client(id=self._ids.new_id(), name=name, notes=notes or None, created_at=to_iso(self._clock.now()))
        try:
            await self._clients.create_client(client)
        except Exception as e:
            logger.error("create_client failed name=%r", name, exc_info=True)
            return MutationResult.failure(_error_text(e))
        logger.info("Client created id=%s", client.id)
        return MutationResult.success(client)

    async def rename_client(self, client_id: str, name: str) -> MutationResult[Client]:
        try:
            name = validate_client_name(name)
        except ValidationError as e:
            return MutationResult.failure(str(e))
        try:
            await self._clients.update_client(client_id, {"name": name})
            client = await self._clients.get_client(client_id)
        except Exception as e:
            logger.error("rename_client failed id=%s", client_id, exc_info=True)
            return MutationResult.failure(_error_text(e))
        if client is None:
            return MutationResult.failure("Client not found.")
        return MutationResult.success(client)

    async def delete_client(self, client_id: str) -> MutationResult[None]:
        try:
            await self._clients.delete_client(client_id)
        except Exception as e:
            logger.error("delete_client failed id=%s", client_id, exc_info=True)
            return MutationResult.failure(_error_text(e))
        logger.info("Client deleted id=%s", client_id)
        return MutationResult.success()
