# recordgate/contracts/services.py
"""
Service capabilities consumed by the entity pipeline and the dispatcher.

The dispatcher recognises `QueryModifier` and `Pagination` parameters by
their declared type, so both are abstract base classes rather than
structural protocols.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from starlette.responses import Response

if TYPE_CHECKING:
    from recordgate.entity.request import EntityRequest
    from recordgate.http.request import ServerRequest
    from recordgate.orm.query import RecordQuery


CallNext = Callable[["ServerRequest", Response], Awaitable[Response]]
Middleware = Callable[["ServerRequest", Response, CallNext], Awaitable[Response]]

ResponseBuilder = Callable[[Any], Any]
ResponseFormatter = Callable[[Response, Any], Response]


class EntityRequestErrorHandler(ABC):
    """Turns the two expected fetch failures into ordinary responses."""

    @abstractmethod
    async def primary_key_not_found(
        self,
        entity_request: EntityRequest,
        request: ServerRequest,
        response: Response,
    ) -> Response: ...

    @abstractmethod
    async def entity_not_found(
        self,
        entity_request: EntityRequest,
        request: ServerRequest,
        response: Response,
    ) -> Response: ...


class QueryModifier(ABC):
    """Applies request-driven filters and sorting to a query."""

    @abstractmethod
    def apply(self, query: RecordQuery) -> RecordQuery: ...


class Pagination(ABC):
    """Applies request-driven paging to a query."""

    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @abstractmethod
    def apply(self, query: RecordQuery) -> RecordQuery: ...


QueryModifierFactory = Callable[["ServerRequest"], QueryModifier]
PaginationFactory = Callable[["ServerRequest"], Pagination]
