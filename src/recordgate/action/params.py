# recordgate/action/params.py
"""
Parameter-resolution plans for Action methods.

A plan is computed once per routed method, at registration time, from the
method signature and its type hints. It lists, per parameter, the ordered
sources the dispatcher tries. Sources can be pinned explicitly with
`bind`::

    class BookAction(Action):
        @bind(isbn=Source.QUERY)
        async def lookup(self, isbn: str): ...
"""
from __future__ import annotations

import inspect
import logging
import types
import typing
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, TypeVar

from starlette.datastructures import UploadFile

from recordgate.contracts.services import Pagination, QueryModifier
from recordgate.errors import ActionConfigError

logger = logging.getLogger(__name__)

BINDINGS_ATTR = "__recordgate_bindings__"

# Annotations that describe plain values rather than injectable objects.
SCALAR_TYPES: tuple[type, ...] = (
    str,
    int,
    float,
    bool,
    bytes,
    list,
    dict,
    tuple,
    set,
    frozenset,
    object,
)


class Source(str, Enum):
    ROUTE = "route"
    QUERY = "query"
    BODY = "body"
    PARAMS = "params"
    ATTRIBUTE = "attribute"
    SERVICE = "service"


class ServiceKind(str, Enum):
    QUERY_MODIFIER = "query_modifier"
    PAGINATION = "pagination"
    UPLOADED_FILE = "uploaded_file"


CLASS_SOURCES = (Source.ATTRIBUTE, Source.SERVICE)
VALUE_SOURCES = (Source.ROUTE, Source.PARAMS, Source.ATTRIBUTE)


@dataclass(frozen=True)
class ParamSpec:
    name: str
    annotation: Any
    sources: tuple[Source, ...]
    service: ServiceKind | None = None
    has_default: bool = False
    default: Any = None

    @property
    def is_class_typed(self) -> bool:
        return self.annotation is not None


@dataclass(frozen=True)
class ParameterPlan:
    target: str
    params: tuple[ParamSpec, ...]

    def services(self) -> set[ServiceKind]:
        return {p.service for p in self.params if p.service is not None}


F = TypeVar("F", bound=Callable[..., Any])


def bind(**sources: Source | str) -> Callable[[F], F]:
    """Pin the source of one or more parameters of a handler method."""

    def _decorator(fn: F) -> F:
        existing = dict(getattr(fn, BINDINGS_ATTR, {}))
        existing.update({name: Source(src) for name, src in sources.items()})
        setattr(fn, BINDINGS_ATTR, existing)
        return fn

    return _decorator


def _unwrap_optional(annotation: Any) -> Any:
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _class_type(annotation: Any) -> type | None:
    """The injectable class an annotation names, or None for value parameters."""
    if annotation is inspect.Parameter.empty:
        return None
    annotation = _unwrap_optional(annotation)
    if annotation is Any or typing.get_origin(annotation) is not None:
        return None
    if not inspect.isclass(annotation) or annotation in SCALAR_TYPES:
        return None
    return annotation


def _service_kind(cls: type | None) -> ServiceKind | None:
    if cls is None:
        return None
    if issubclass(cls, QueryModifier):
        return ServiceKind.QUERY_MODIFIER
    if issubclass(cls, Pagination):
        return ServiceKind.PAGINATION
    if issubclass(cls, UploadFile):
        return ServiceKind.UPLOADED_FILE
    return None


def _type_hints(fn: Callable[..., Any], target: str) -> dict[str, Any]:
    try:
        return typing.get_type_hints(fn)
    except Exception as exc:
        raise ActionConfigError(
            f"Cannot resolve type hints of {target}: {exc}"
        ) from exc


def build_plan(fn: Callable[..., Any], *, target: str, skip_first: bool = False) -> ParameterPlan:
    """Build the resolution plan of `fn`.

    Args:
        fn: The handler function (unbound when `skip_first` drops `self`).
        target: Human-readable ``Class.method`` name used in errors.
        skip_first: Skip the first positional parameter (``self``).
    """
    signature = inspect.signature(fn)
    hints = _type_hints(fn, target)
    pinned: dict[str, Source] = dict(getattr(fn, BINDINGS_ATTR, {}))

    parameters = list(signature.parameters.values())
    if skip_first and parameters:
        parameters = parameters[1:]

    specs: list[ParamSpec] = []
    for param in parameters:
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue

        cls = _class_type(hints.get(param.name, param.annotation))
        service = _service_kind(cls)

        if param.name in pinned:
            sources: tuple[Source, ...] = (pinned.pop(param.name),)
            if sources == (Source.SERVICE,) and service is None:
                raise ActionConfigError(
                    f"Parameter '{param.name}' in {target} is bound to a service "
                    f"but its type {cls!r} is not a known service capability"
                )
        elif cls is not None:
            sources = CLASS_SOURCES if service is not None else (Source.ATTRIBUTE,)
        else:
            sources = VALUE_SOURCES

        has_default = param.default is not inspect.Parameter.empty
        specs.append(
            ParamSpec(
                name=param.name,
                annotation=cls,
                sources=sources,
                service=service,
                has_default=has_default,
                default=param.default if has_default else None,
            )
        )

    if pinned:
        raise ActionConfigError(
            f"{target} binds unknown parameter(s): {sorted(pinned)}"
        )

    plan = ParameterPlan(target=target, params=tuple(specs))
    logger.debug(
        "Parameter plan for %s: %s",
        target,
        [(p.name, [s.value for s in p.sources]) for p in plan.params],
    )
    return plan
