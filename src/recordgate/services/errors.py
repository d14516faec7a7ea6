from __future__ import annotations

import logging

from starlette.responses import JSONResponse, Response

from recordgate.contracts.services import EntityRequestErrorHandler
from recordgate.entity.request import EntityRequest
from recordgate.http.request import ServerRequest

logger = logging.getLogger(__name__)


class DefaultErrorHandler(EntityRequestErrorHandler):
    """JSON 400 for a missing primary key, JSON 404 for an unknown record."""

    async def primary_key_not_found(
        self,
        entity_request: EntityRequest,
        request: ServerRequest,
        response: Response,
    ) -> Response:
        name = entity_request.config.request_parameter_name
        logger.info("Primary key not found: %s %s", request.method, name)
        return JSONResponse(
            {
                "error": "primary_key_not_found",
                "detail": f"Missing primary key '{name}' for "
                f"{entity_request.record_class.__name__}",
            },
            status_code=400,
        )

    async def entity_not_found(
        self,
        entity_request: EntityRequest,
        request: ServerRequest,
        response: Response,
    ) -> Response:
        logger.info(
            "Entity not found: %s %r",
            entity_request.record_class.__name__,
            entity_request.primary_key,
        )
        return JSONResponse(
            {
                "error": "entity_not_found",
                "detail": f"{entity_request.record_class.__name__} "
                f"'{entity_request.primary_key}' not found",
            },
            status_code=404,
        )
