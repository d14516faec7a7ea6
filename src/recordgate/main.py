# recordgate/main.py
"""
Application factory.

Creates a FastAPI application whose routes dispatch to Action methods
through the entity pipeline. Routes come from YAML route files
(``settings.routes_config_paths``) and/or a caller-supplied
`ActionRouter` configured in code.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Callable, Sequence

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from recordgate.action.strategy import ActionStrategy
from recordgate.contracts.services import EntityRequestErrorHandler
from recordgate.core.config import settings
from recordgate.core.db import dispose_engine, session_scope
from recordgate.core.logging import configure_logging
from recordgate.entity.factory import EntityFactory
from recordgate.errors import QueryModifierError
from recordgate.routing.config import load_routes_config, register_routes
from recordgate.routing.router import ActionRouter, SessionScope
from recordgate.services.errors import DefaultErrorHandler
from recordgate.services.pagination import RequestPagination
from recordgate.services.query_modifier import RequestQueryModifier
from recordgate.services.response import JsonResponseFormatter, ResponseBuilder

logger = logging.getLogger(__name__)


def default_strategy() -> ActionStrategy:
    return ActionStrategy(
        response_builder=ResponseBuilder(),
        response_formatter=JsonResponseFormatter(),
        query_modifier_factory=RequestQueryModifier.from_request,
        pagination_factory=RequestPagination.from_request,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await dispose_engine()


async def _query_modifier_error(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        {"error": "invalid_query", "detail": str(exc)}, status_code=400
    )


def create_app(
    *,
    routers: Sequence[Callable[[EntityFactory, ActionStrategy, SessionScope], ActionRouter]] = (),
    routes_config_paths: Sequence[str] | None = None,
    strategy: ActionStrategy | None = None,
    error_handler: EntityRequestErrorHandler | None = None,
    session: SessionScope | None = None,
) -> FastAPI:
    """Build and wire the application.

    Args:
        routers: Callables building code-declared routers from the shared
            entity factory, strategy and session scope.
        routes_config_paths: YAML route files (glob patterns); defaults to
            ``settings.routes_config_paths``.
        strategy: Dispatcher; defaults to the JSON builder/formatter pair
            with request query modifier and pagination services.
        error_handler: Entity pipeline error handler.
        session: Per-request session scope; defaults to the database one.
    """
    configure_logging(settings.log_level, settings.log_json)
    logger.info("Creating application (env=%s)", settings.app_env)

    strategy = strategy or default_strategy()
    entity_factory = EntityFactory(error_handler=error_handler or DefaultErrorHandler())
    session = session or session_scope

    app = FastAPI(title="recordgate", version="1.0.0", lifespan=lifespan)
    app.add_exception_handler(QueryModifierError, _query_modifier_error)

    app.state.strategy = strategy
    app.state.entity_factory = entity_factory

    patterns = (
        list(routes_config_paths)
        if routes_config_paths is not None
        else settings.routes_config_paths
    )
    try:
        cfg = load_routes_config(patterns)
    except Exception:
        logger.exception("Failed to load routes")
        raise

    if cfg.routes:
        yaml_router = ActionRouter(strategy=strategy, session_scope=session)
        register_routes(yaml_router, cfg, entity_factory=entity_factory)
        app.include_router(yaml_router.build())

    for build in routers:
        app.include_router(build(entity_factory, strategy, session).build())

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    logger.info("Application ready: %d route(s)", len(app.routes))
    return app
