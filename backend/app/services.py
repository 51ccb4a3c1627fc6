"""FastAPI dependencies that build the sweaquity services per request.

Storage dependencies are separate so tests can swap in in-memory storages
through ``app.dependency_overrides``.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from sweaquity.applications import ApplicationService, ApplicationStorage
from sweaquity.config import MarketplaceConfig
from sweaquity.equity import EquityService
from sweaquity.projects import ProjectService, ProjectStorage
from sweaquity.tickets import TicketService, TicketStorage

from .database import (
    Database,
    SupabaseApplicationStorage,
    SupabaseProjectStorage,
    SupabaseTicketStorage,
)


@lru_cache
def get_marketplace_config() -> MarketplaceConfig:
    """Get cached marketplace limits (SWEAQUITY_* env vars)."""
    return MarketplaceConfig.from_env()


Config = Annotated[MarketplaceConfig, Depends(get_marketplace_config)]


# =============================================================================
# Storages
# =============================================================================


def get_project_storage(db: Database) -> ProjectStorage:
    return SupabaseProjectStorage(db)


def get_application_storage(db: Database) -> ApplicationStorage:
    return SupabaseApplicationStorage(db)


def get_ticket_storage(db: Database) -> TicketStorage:
    return SupabaseTicketStorage(db)


ProjectStore = Annotated[ProjectStorage, Depends(get_project_storage)]
ApplicationStore = Annotated[ApplicationStorage, Depends(get_application_storage)]
TicketStore = Annotated[TicketStorage, Depends(get_ticket_storage)]


# =============================================================================
# Services
# =============================================================================


def get_project_service(storage: ProjectStore, config: Config) -> ProjectService:
    return ProjectService(storage, config)


def get_application_service(
    storage: ApplicationStore, project_storage: ProjectStore, config: Config
) -> ApplicationService:
    return ApplicationService(storage, project_storage, config)


def get_ticket_service(storage: TicketStore, config: Config) -> TicketService:
    return TicketService(storage, config)


def get_equity_service(
    project_storage: ProjectStore,
    application_storage: ApplicationStore,
    ticket_storage: TicketStore,
    config: Config,
) -> EquityService:
    return EquityService(project_storage, application_storage, ticket_storage, config)


Projects = Annotated[ProjectService, Depends(get_project_service)]
Applications = Annotated[ApplicationService, Depends(get_application_service)]
Tickets = Annotated[TicketService, Depends(get_ticket_service)]
Equity = Annotated[EquityService, Depends(get_equity_service)]
