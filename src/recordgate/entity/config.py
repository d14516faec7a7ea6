# recordgate/entity/config.py
"""
Declarative, request-independent configuration of the entity pipeline.

One `EntityFactoryConfig` is built per route definition. Per-entity
behaviour is supplied through `EntityHooks`; every hook is optional and
may be a plain function or a coroutine function.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping, Union

from recordgate.core.config import settings

if TYPE_CHECKING:
    from recordgate.action.base import Action
    from recordgate.entity.request import EntityRequest
    from recordgate.http.request import ServerRequest
    from recordgate.orm.query import RecordQuery
    from recordgate.orm.record import RecordCollection


MaybeAwaitable = Union[Any, Awaitable[Any]]

RecordHook = Callable[["EntityRequest", Any], MaybeAwaitable]
QueryHook = Callable[["EntityRequest", "RecordQuery"], MaybeAwaitable]
CollectionHook = Callable[["EntityRequest", "RecordCollection"], MaybeAwaitable]
AllowedDataHook = Callable[[Mapping[str, Any], str], Mapping[str, Any]]


@dataclass(frozen=True)
class EntityHooks:
    """Optional extension points, invoked only when set.

    before_create / after_create
        ``(entity_request, record)``; may alter the record.
    before_fetch
        ``(entity_request, query) -> query``; may rewrite the query or set
        ``entity_request.primary_key``. Returning None keeps the query.
    after_fetch
        ``(entity_request, record)``; may alter the fetched record.
    after_fetch_collection
        ``(entity_request, collection)``.
    allowed_data
        ``(params, http_method) -> mapping`` of the request fields that may
        be written onto a record. Overrides ``EntityFactoryConfig.allowed_fields``.
    """

    before_create: RecordHook | None = None
    after_create: RecordHook | None = None
    before_fetch: QueryHook | None = None
    after_fetch: RecordHook | None = None
    after_fetch_collection: CollectionHook | None = None
    allowed_data: AllowedDataHook | None = None


@dataclass(frozen=True)
class EntityFactoryConfig:
    """How to locate or build the record(s) of one route.

    Attributes:
        record_class: Active-record model class.
        parameter_to_inject_into: Request attribute receiving the record(s).
        action_class: Action whose ``create_query`` builds the lookup query;
            None queries ``record_class`` directly.
        request_parameter_name: Route/query parameter holding the primary key.
        hydrate_entity_from_request: Merge allow-listed request fields onto
            the record.
        allowed_fields: Writable fields when no ``allowed_data`` hook is set.
        hooks: Optional callbacks, see `EntityHooks`.
    """

    record_class: type[Any]
    parameter_to_inject_into: str
    action_class: type[Action] | None = None
    request_parameter_name: str = field(
        default_factory=lambda: settings.primary_key_parameter
    )
    hydrate_entity_from_request: bool = False
    allowed_fields: frozenset[str] = frozenset()
    hooks: EntityHooks = field(default_factory=EntityHooks)

    def __post_init__(self) -> None:
        if not self.parameter_to_inject_into:
            raise ValueError("parameter_to_inject_into must not be empty")
        if not self.request_parameter_name:
            raise ValueError("request_parameter_name must not be empty")
        # Accept any iterable of names at construction time
        object.__setattr__(self, "allowed_fields", frozenset(self.allowed_fields))

    def create_entity_request(self, request: ServerRequest) -> EntityRequest:
        from recordgate.entity.request import EntityRequest

        return EntityRequest(config=self, request=request)
