from __future__ import annotations

import logging
from dataclasses import dataclass

from recordgate.contracts.services import Pagination
from recordgate.core.config import settings
from recordgate.http.request import ServerRequest
from recordgate.orm.query import RecordQuery

logger = logging.getLogger(__name__)


def _positive_int(raw: object, default: int) -> int:
    try:
        value = int(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


@dataclass
class RequestPagination(Pagination):
    """Page-based paging from the ``page`` and ``limit`` query parameters."""

    page: int = 1
    limit: int = 20

    @classmethod
    def from_request(cls, request: ServerRequest) -> "RequestPagination":
        page = _positive_int(request.query_params.get("page"), 1)
        limit = _positive_int(
            request.query_params.get("limit"), settings.pagination_default_limit
        )
        if limit > settings.pagination_max_limit:
            logger.debug("Clamping limit %d to %d", limit, settings.pagination_max_limit)
            limit = settings.pagination_max_limit
        return cls(page=page, limit=limit)

    def apply(self, query: RecordQuery) -> RecordQuery:
        return query.limit(self.limit).offset(self.offset)
