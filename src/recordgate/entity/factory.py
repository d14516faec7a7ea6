# recordgate/entity/factory.py
"""
EntityFactory - request middleware that puts active records on the request.

Three operations, each shaped ``(config, request, response, call_next)``:

* ``create``: a new record, optionally hydrated from request data;
* ``fetch``: one existing record, looked up by primary key;
* ``fetch_collection``: several records, looked up by a set of keys.

The resulting record(s) are stored as request attribute
``config.parameter_to_inject_into`` before delegating to ``call_next``.
A missing key or an unknown record short-circuits the chain through the
error handler.
"""
from __future__ import annotations

import functools
import json
import logging
from typing import Any

from starlette.responses import Response

from recordgate.contracts.services import (
    CallNext,
    EntityRequestErrorHandler,
    Middleware,
)
from recordgate.entity.config import EntityFactoryConfig
from recordgate.errors import HydrationNotSupportedError
from recordgate.http.request import ServerRequest
from recordgate.util.pks_finder import PksFinder

logger = logging.getLogger(__name__)

BODY_PK_METHODS = frozenset({"POST", "PATCH", "PUT", "DELETE"})


class EntityFactory:
    def __init__(self, *, error_handler: EntityRequestErrorHandler) -> None:
        self._error_handler = error_handler

    # -- middleware adapters ----------------------------------------------------

    def creating(self, config: EntityFactoryConfig) -> Middleware:
        return functools.partial(self.create, config)

    def fetching(self, config: EntityFactoryConfig) -> Middleware:
        return functools.partial(self.fetch, config)

    def fetching_collection(self, config: EntityFactoryConfig) -> Middleware:
        return functools.partial(self.fetch_collection, config)

    # -- operations -------------------------------------------------------------

    async def create(
        self,
        config: EntityFactoryConfig,
        request: ServerRequest,
        response: Response,
        call_next: CallNext,
    ) -> Response:
        """Create a new record and add it to the request attributes."""
        entity_request = config.create_entity_request(request)

        record = entity_request.instantiate_active_record()

        # before_create may alter the record
        await entity_request.before_create(record)

        if config.hydrate_entity_from_request:
            allowed = entity_request.get_allowed_data_from_request(
                request.params, request.method
            )
            record.from_dict(allowed)

        await entity_request.after_create(record)

        request = request.with_attribute(config.parameter_to_inject_into, record)
        return await call_next(request, response)

    async def fetch(
        self,
        config: EntityFactoryConfig,
        request: ServerRequest,
        response: Response,
        call_next: CallNext,
    ) -> Response:
        """Fetch an existing record by primary key and add it to the request attributes."""
        entity_request = config.create_entity_request(request)

        # Most common case: the key is part of the route
        route_pk = request.route_params.get(config.request_parameter_name)
        if route_pk is not None:
            entity_request.primary_key = route_pk

        query = entity_request.create_query()
        query = await entity_request.before_fetch(query)

        pk = entity_request.primary_key
        if pk is None:
            logger.info(
                "No primary key '%s' for %s",
                config.request_parameter_name,
                config.record_class.__name__,
            )
            return await self._error_handler.primary_key_not_found(
                entity_request, request, response
            )

        record = await query.find_pk(pk)
        if record is None:
            logger.info("%s %r not found", config.record_class.__name__, pk)
            return await self._error_handler.entity_not_found(
                entity_request, request, response
            )

        if config.hydrate_entity_from_request:
            allowed = entity_request.get_allowed_data_from_request(
                request.params, request.method
            )
            record.from_dict(allowed)

        await entity_request.after_fetch(record)

        request = request.with_attribute(config.parameter_to_inject_into, record)
        return await call_next(request, response)

    async def fetch_collection(
        self,
        config: EntityFactoryConfig,
        request: ServerRequest,
        response: Response,
        call_next: CallNext,
    ) -> Response:
        """Fetch records by a set of primary keys and add them to the request attributes."""
        entity_request = config.create_entity_request(request)
        pk_name = config.request_parameter_name

        pks = _decode_pks(request.query_params.get(pk_name))
        if not pks and request.method in BODY_PK_METHODS:
            if isinstance(request.parsed_body, (dict, list)):
                pks = PksFinder([pk_name]).find(request.parsed_body)

        entity_request.primary_key = pks or None

        query = entity_request.create_query()
        query = await entity_request.before_fetch(query)

        pks = entity_request.primary_key
        if pks is None or (isinstance(pks, (list, tuple)) and not pks):
            logger.info(
                "No primary keys '%s' for %s collection",
                pk_name,
                config.record_class.__name__,
            )
            return await self._error_handler.primary_key_not_found(
                entity_request, request, response
            )
        if not isinstance(pks, (list, tuple)):
            pks = [pks]

        if config.hydrate_entity_from_request:
            raise HydrationNotSupportedError(
                f"Collection hydration is not supported "
                f"({config.record_class.__name__}, attribute "
                f"'{config.parameter_to_inject_into}')"
            )

        collection = await query.find_pks(list(pks))
        await entity_request.after_fetch_collection(collection)

        request = request.with_attribute(config.parameter_to_inject_into, collection)
        return await call_next(request, response)


def _decode_pks(raw: Any) -> list[Any]:
    """Normalize a query value into a key list; JSON strings are decoded."""
    if raw is None:
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.info("Ignoring undecodable primary key set %r", raw)
            return []
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return list(raw)
    if isinstance(raw, dict):
        return list(raw.values())
    return [raw]
