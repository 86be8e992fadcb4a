"""FastAPI application with lifespan and router mounting."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from skuflow.api.routes import admin, health, sessions, workflows
from skuflow.core.config import AppSettings
from skuflow.core.log import configure_logging
from skuflow.core.protocols import ISessionStore
from skuflow.engine.executor import WorkflowExecutor
from skuflow.engine.flows import FlowCatalog
from skuflow.engine.registry import TaskRegistry
from skuflow.engine.task_manager import TaskManager
from skuflow.engine.workflow import WorkflowEngine
from skuflow.flows import build_default_flows
from skuflow.persistence import create_session_store
from skuflow.tasks import build_default_registry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Wire the process-wide collaborators and wind running workflows down on exit."""
    settings: AppSettings = app.state.settings
    configure_logging(settings.log_level)

    registry: TaskRegistry | None = getattr(app.state, "registry", None)
    if registry is None:
        registry = build_default_registry(settings)
    session_store: ISessionStore | None = getattr(app.state, "session_store", None)
    if session_store is None:
        session_store = create_session_store(settings)
    flows: FlowCatalog | None = getattr(app.state, "flows", None)
    if flows is None:
        flows = build_default_flows()
    task_manager = TaskManager()
    engine = WorkflowEngine(registry, settings.engine)

    app.state.registry = registry
    app.state.session_store = session_store
    app.state.flows = flows
    app.state.task_manager = task_manager
    app.state.executor = WorkflowExecutor(engine, task_manager, session_store, flows)
    logger.info(f"Loaded {len(registry)} task handlers: {', '.join(registry.names())}")
    logger.info(f"Loaded {len(flows)} flows: {', '.join(flows.names())}")
    for flow_name, absent in flows.missing_tasks(registry).items():
        logger.warning(f"Flow {flow_name} needs unregistered tasks: {', '.join(absent)}")

    yield

    logger.info("Shutting down, cancelling running workflows...")
    await app.state.executor.shutdown()


def create_app(
    settings: AppSettings | None = None,
    *,
    registry: TaskRegistry | None = None,
    session_store: ISessionStore | None = None,
    flows: FlowCatalog | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or AppSettings()
    app = FastAPI(
        title="SkuFlow Workflow Server",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.registry = registry
    app.state.session_store = session_store
    app.state.flows = flows

    app.include_router(health.router)
    app.include_router(sessions.router)
    app.include_router(admin.router, prefix="/admin")
    app.add_api_websocket_route(settings.server.websocket_path, workflows.workflow_channel)
    return app
