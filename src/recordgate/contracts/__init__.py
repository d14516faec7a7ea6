from recordgate.contracts.services import (
    CallNext,
    EntityRequestErrorHandler,
    Middleware,
    Pagination,
    PaginationFactory,
    QueryModifier,
    QueryModifierFactory,
    ResponseBuilder,
    ResponseFormatter,
)

__all__ = [
    "CallNext",
    "EntityRequestErrorHandler",
    "Middleware",
    "Pagination",
    "PaginationFactory",
    "QueryModifier",
    "QueryModifierFactory",
    "ResponseBuilder",
    "ResponseFormatter",
]
