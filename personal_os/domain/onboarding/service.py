from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable

from personal_os.constants import CLIENT_STATUS_ONBOARDING, TASK_STATUS_DONE, TASK_STATUS_TODO
from personal_os.domain.common.errors import NotFoundError, PartialFailureError
from personal_os.domain.common.time import to_iso
from personal_os.domain.ports import ClientRepository, Clock, IdGenerator, TaskRepository, TemplateRepository
from personal_os.models import Task

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OnboardingProgress:
    total: int = 0
    completed: int = 0

    @property
    def percent(self) -> int:
        if self.total == 0:
            return 0
        # half-up rounding, so 12.5 -> 13 rather than banker's 12
        return math.floor(self.completed / self.total * 100 + 0.5)


def onboarding_progress(tasks: Iterable[Task]) -> OnboardingProgress:
    """Count only tasks that came from a template; completed = status done."""
    template_tasks = [t for t in tasks if t.template_task_id]
    completed = sum(1 for t in template_tasks if t.status == TASK_STATUS_DONE)
    return OnboardingProgress(total=len(template_tasks), completed=completed)


class OnboardingService:
    """
    Applies task templates to clients. No aiogram. No sqlite.
    """

    def __init__(
        self,
        templates: TemplateRepository,
        tasks: TaskRepository,
        clients: ClientRepository,
        clock: Clock,
        ids: IdGenerator,
    ) -> None:
        self._templates = templates
        self._tasks = tasks
        self._clients = clients
        self._clock = clock
        self._ids = ids

    async def apply_template(self, template_id: str, client_id: str) -> list[Task]:
        """
        Create one todo task per template task for the client, then mark the
        client as onboarding.

        A missing template, or one without tasks, writes nothing and returns [].
        Task rows go in as one transaction. If the client update fails after
        that, PartialFailureError is raised with the created tasks attached.
        """
        template = await self._templates.get_template(template_id)
        if template is None or not template.template_tasks:
            return []

        client = await self._clients.get_client(client_id)
        if client is None:
            raise NotFoundError("Client not found.")

        now_iso = to_iso(self._clock.now())
        created = [
            Task(
                id=self._ids.new_id(),
                title=tt.title,
                description=tt.description,
                domain_id=tt.domain_id,
                client_id=client_id,
                leverage=tt.default_leverage,
                urgency=tt.default_urgency,
                effort=tt.default_effort,
                status=TASK_STATUS_TODO,
                template_task_id=tt.id,
                created_at=now_iso,
            )
            for tt in template.template_tasks
        ]
        await self._tasks.create_tasks(created)
        logger.info("Template %s applied to client %s: %d tasks", template_id, client_id, len(created))

        try:
            await self._clients.update_client(
                client_id, {"status": CLIENT_STATUS_ONBOARDING, "onboarded_at": now_iso}
            )
        except Exception as e:
            logger.error("Client update failed after template %s was applied", template_id, exc_info=True)
            raise PartialFailureError(
                f"{len(created)} tasks were created but the client status could not be updated.",
                applied=created,
                cause=e,
            ) from e
        return created

    async def progress(self, client_id: str) -> OnboardingProgress:
        return onboarding_progress(await self._tasks.list_tasks(client_id=client_id))
