"""
Service wiring.

Builds the catalog, the attempt store and the services on top of them for
the configured storage backend. The FastAPI app keeps the container on
``app.state.services``.
"""

from dataclasses import dataclass

from fastapi import Request

from examlink.common.logger import app_logger
from examlink.config import Settings
from examlink.domain.attempts.memory_repository import MemoryAttemptStore
from examlink.domain.attempts.repository import AttemptStore
from examlink.domain.catalog.memory_repository import MemoryAssessmentCatalog
from examlink.domain.catalog.repository import AssessmentCatalog
from examlink.engine.authoring import AuthoringService
from examlink.engine.orchestrator import SessionOrchestrator

logger = app_logger.getChild("services")


@dataclass
class ServiceContainer:
    """Everything a request handler needs, built once per application."""

    catalog: AssessmentCatalog
    store: AttemptStore
    orchestrator: SessionOrchestrator
    authoring: AuthoringService


def build_services(config: Settings) -> ServiceContainer:
    """
    Create the stores and services for the configured backend.

    The SQL backend expects ``initialize_database`` to have run before the
    first request is served.

    Args:
        config: Application settings

    Returns:
        A ServiceContainer
    """
    if config.STORAGE_BACKEND == "sql":
        from examlink.domain.attempts.sql_repository import SqlAttemptStore
        from examlink.domain.catalog.sql_repository import SqlAssessmentCatalog
        catalog: AssessmentCatalog = SqlAssessmentCatalog()
        store: AttemptStore = SqlAttemptStore()
    else:
        memory_store = MemoryAttemptStore()
        catalog = MemoryAssessmentCatalog(has_attempts=memory_store.has_attempts)
        store = memory_store

    logger.info(f"Using {config.STORAGE_BACKEND} storage backend")
    return ServiceContainer(
        catalog=catalog,
        store=store,
        orchestrator=SessionOrchestrator(catalog, store),
        authoring=AuthoringService(
            catalog,
            store,
            token_length=config.ACCESS_TOKEN_LENGTH,
            token_attempts=config.ACCESS_TOKEN_ATTEMPTS
        )
    )


def get_orchestrator(request: Request) -> SessionOrchestrator:
    return request.app.state.services.orchestrator


def get_authoring(request: Request) -> AuthoringService:
    return request.app.state.services.authoring
