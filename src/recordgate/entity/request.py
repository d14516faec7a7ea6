# recordgate/entity/request.py
"""
EntityRequest - per-request context of the entity pipeline.

Created from an `EntityFactoryConfig` for each request; carries the
current primary key and runs the configured hooks.
"""
from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from recordgate.entity.config import EntityFactoryConfig
from recordgate.http.request import ServerRequest
from recordgate.orm.query import RecordQuery
from recordgate.orm.record import RecordCollection
from recordgate.util.awaitables import maybe_await


class EntityRequest:
    def __init__(self, *, config: EntityFactoryConfig, request: ServerRequest) -> None:
        self.config = config
        self.request = request
        self.primary_key: Any = None

    @property
    def record_class(self) -> type[Any]:
        return self.config.record_class

    @property
    def action_class(self):
        return self.config.action_class

    @property
    def session(self) -> AsyncSession | None:
        return self.request.session

    def instantiate_active_record(self) -> Any:
        return self.record_class()

    def create_query(self) -> RecordQuery:
        """Lookup query, built by the configured Action class when there is one."""
        if self.action_class is None:
            return RecordQuery(self.record_class, self.session)
        action = self.action_class.for_session(self.session)
        return action.create_query()

    # -- hooks ------------------------------------------------------------------

    async def before_create(self, record: Any) -> None:
        if self.config.hooks.before_create:
            await maybe_await(self.config.hooks.before_create(self, record))

    async def after_create(self, record: Any) -> None:
        if self.config.hooks.after_create:
            await maybe_await(self.config.hooks.after_create(self, record))

    async def before_fetch(self, query: RecordQuery) -> RecordQuery:
        if self.config.hooks.before_fetch is None:
            return query
        rewritten = await maybe_await(self.config.hooks.before_fetch(self, query))
        return query if rewritten is None else rewritten

    async def after_fetch(self, record: Any) -> None:
        if self.config.hooks.after_fetch:
            await maybe_await(self.config.hooks.after_fetch(self, record))

    async def after_fetch_collection(self, collection: RecordCollection) -> None:
        if self.config.hooks.after_fetch_collection:
            await maybe_await(self.config.hooks.after_fetch_collection(self, collection))

    def get_allowed_data_from_request(
        self, params: Mapping[str, Any], http_method: str
    ) -> dict[str, Any]:
        if self.config.hooks.allowed_data is not None:
            return dict(self.config.hooks.allowed_data(params, http_method))
        allowed = self.config.allowed_fields
        return {k: v for k, v in params.items() if k in allowed}
