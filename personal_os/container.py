from __future__ import annotations

from dataclasses import dataclass

from personal_os.domain.onboarding.service import OnboardingService
from personal_os.domain.ports import Clock, IdGenerator
from personal_os.domain.tasks.service import ClientService, TaskService
from personal_os.infra.db.connection import Database
from personal_os.infra.db.repo.clients_sqlite import ClientsSqliteRepo
from personal_os.infra.db.repo.custom_fields_sqlite import CustomFieldsSqliteRepo
from personal_os.infra.db.repo.domains_sqlite import DomainsSqliteRepo
from personal_os.infra.db.repo.inbox_sqlite import InboxSqliteRepo
from personal_os.infra.db.repo.projects_sqlite import ProjectsSqliteRepo
from personal_os.infra.db.repo.stats_sqlite import StatsSqliteRepo
from personal_os.infra.db.repo.tasks_sqlite import TasksSqliteRepo
from personal_os.infra.db.repo.templates_sqlite import TemplatesSqliteRepo
from personal_os.infra.db.repo.views_sqlite import ViewsSqliteRepo


@dataclass(frozen=True)
class AppServices:
    """Everything a handler may ask for, injected by name (see DIMiddleware)."""
    db: Database
    clock: Clock
    ids: IdGenerator
    tasks_repo: TasksSqliteRepo
    clients_repo: ClientsSqliteRepo
    projects_repo: ProjectsSqliteRepo
    domains_repo: DomainsSqliteRepo
    templates_repo: TemplatesSqliteRepo
    inbox_repo: InboxSqliteRepo
    views_repo: ViewsSqliteRepo
    custom_fields_repo: CustomFieldsSqliteRepo
    stats_repo: StatsSqliteRepo
    task_service: TaskService
    client_service: ClientService
    onboarding_service: OnboardingService


def build_services(db: Database, clock: Clock, ids: IdGenerator) -> AppServices:
    tasks_repo = TasksSqliteRepo(db)
    clients_repo = ClientsSqliteRepo(db)
    templates_repo = TemplatesSqliteRepo(db)
    custom_fields_repo = CustomFieldsSqliteRepo(db)
    return AppServices(
        db=db,
        clock=clock,
        ids=ids,
        tasks_repo=tasks_repo,
        clients_repo=clients_repo,
        projects_repo=ProjectsSqliteRepo(db),
        domains_repo=DomainsSqliteRepo(db),
        templates_repo=templates_repo,
        inbox_repo=InboxSqliteRepo(db),
        views_repo=ViewsSqliteRepo(db),
        custom_fields_repo=custom_fields_repo,
        stats_repo=StatsSqliteRepo(db),
        task_service=TaskService(tasks=tasks_repo, clock=clock, ids=ids, custom_fields=custom_fields_repo),
        client_service=ClientService(clients=clients_repo, clock=clock, ids=ids),
        onboarding_service=OnboardingService(
            templates=templates_repo,
            tasks=tasks_repo,
            clients=clients_repo,
            clock=clock,
            ids=ids,
        ),
    )
