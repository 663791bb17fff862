from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from personal_os.models import Client, CustomFieldDef, Task, Template


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime: ...


class IdGenerator(ABC):
    @abstractmethod
    def new_id(self) -> str: ...


class TaskRepository(ABC):
    @abstractmethod
    async def list_tasks(
        self,
        status: Optional[str] = None,
        domain_id: Optional[str] = None,
        client_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> list[Task]: ...

    @abstractmethod
    async def get_task(self, task_id: str) -> Optional[Task]: ...

    @abstractmethod
    async def create_task(self, task: Task) -> None: ...

    @abstractmethod
    async def create_tasks(self, tasks: Sequence[Task]) -> None:
        """Insert all rows in one transaction: either every task is stored or none is."""

    @abstractmethod
    async def update_task(self, task_id: str, updates: Mapping[str, Any]) -> int:
        """Returns the number of rows changed; 0 means the task does not exist."""

    @abstractmethod
    async def delete_task(self, task_id: str) -> int: ...


class ClientRepository(ABC):
    @abstractmethod
    async def list_clients(self, status: Optional[str] = None) -> list[Client]: ...

    @abstractmethod
    async def get_client(self, client_id: str) -> Optional[Client]: ...

    @abstractmethod
    async def create_client(self, client: Client) -> None: ...

    @abstractmethod
    async def update_client(self, client_id: str, updates: Mapping[str, Any]) -> None: ...

    @abstractmethod
    async def delete_client(self, client_id: str) -> None: ...


class TemplateRepository(ABC):
    @abstractmethod
    async def list_templates(self) -> list[Template]: ...

    @abstractmethod
    async def get_template(self, template_id: str) -> Optional[Template]:
        """Template with its template tasks ordered by sort_order."""


class CustomFieldRepository(ABC):
    @abstractmethod
    async def list_defs(self) -> list[CustomFieldDef]: ...
