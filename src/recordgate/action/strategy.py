# recordgate/action/strategy.py
"""
ActionStrategy - invokes a route target and turns its result into a response.

Targets come in two shapes:

* a plain function, called as ``fn(request, response, *route_args)``;
* an object-method pair (an ``(ActionClass, "method")`` tuple or a bound
  method), whose parameters are bound from the request following the
  plan computed by `register`.

Return values that are not already a `Response` go through the response
builder, then the response formatter.
"""
from __future__ import annotations

import copy
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from starlette.responses import Response

from recordgate.action.base import Action
from recordgate.action.params import (
    ParameterPlan,
    ParamSpec,
    ServiceKind,
    Source,
    build_plan,
)
from recordgate.contracts.services import (
    PaginationFactory,
    QueryModifierFactory,
    ResponseBuilder,
    ResponseFormatter,
)
from recordgate.errors import (
    ActionConfigError,
    MissingParameterError,
    ResponseBuilderError,
    ResponseFormatterError,
)
from recordgate.http.request import ServerRequest
from recordgate.util.awaitables import maybe_await

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass(frozen=True)
class ActionTarget:
    """A registered route target with its parameter plan (None for plain functions)."""

    name: str
    function: Callable[..., Any] | None = None
    owner: Any = None
    method: str | None = None
    plan: ParameterPlan | None = None

    @property
    def is_function(self) -> bool:
        return self.function is not None


class ActionStrategy:
    def __init__(
        self,
        *,
        response_builder: ResponseBuilder,
        response_formatter: ResponseFormatter,
        query_modifier_factory: QueryModifierFactory | None = None,
        pagination_factory: PaginationFactory | None = None,
    ) -> None:
        self._response_builder = response_builder
        self._response_formatter = response_formatter
        self._query_modifier_factory = query_modifier_factory
        self._pagination_factory = pagination_factory

    # -- registration ---------------------------------------------------------

    def register(self, target: Any) -> ActionTarget:
        """Resolve a target once and compute its parameter plan.

        Accepts a plain function, an ``(owner, "method")`` tuple where owner
        is a class or an instance, or a bound method.
        """
        if isinstance(target, tuple):
            if len(target) != 2 or not isinstance(target[1], str):
                raise ActionConfigError(f"Invalid action target {target!r}")
            owner, method = target
        elif inspect.ismethod(target):
            owner, method = target.__self__, target.__name__
        elif inspect.isfunction(target) or inspect.iscoroutinefunction(target):
            return ActionTarget(name=target.__qualname__, function=target)
        else:
            raise ActionConfigError(f"Invalid action target {target!r}")

        cls = owner if inspect.isclass(owner) else type(owner)
        fn = getattr(cls, method, None)
        if fn is None or not callable(fn):
            raise ActionConfigError(f"{cls.__name__} has no method '{method}'")

        name = f"{cls.__name__}.{method}"
        plan = build_plan(fn, target=name, skip_first=True)
        self._check_services(plan)
        return ActionTarget(name=name, owner=owner, method=method, plan=plan)

    def _check_services(self, plan: ParameterPlan) -> None:
        needed = plan.services()
        if ServiceKind.QUERY_MODIFIER in needed and self._query_modifier_factory is None:
            raise ActionConfigError(f"{plan.target} needs a query modifier service")
        if ServiceKind.PAGINATION in needed and self._pagination_factory is None:
            raise ActionConfigError(f"{plan.target} needs a pagination service")

    # -- invocation -----------------------------------------------------------

    async def __call__(
        self,
        target: ActionTarget,
        request: ServerRequest,
        response: Response,
        route_arguments: Mapping[str, Any],
    ) -> Response:
        if target.is_function:
            assert target.function is not None
            result = await maybe_await(
                target.function(request, response, *route_arguments.values())
            )
        else:
            instance = self.instantiate(target, request)
            if isinstance(instance, Action):
                instance.request = request
                instance.response = response

            result = await self.call_action(target, instance, request, route_arguments)

            if isinstance(instance, Action) and instance.response is not None:
                response = instance.response

        if isinstance(result, Response):
            return result
        return self.build_response(result, response)

    def instantiate(self, target: ActionTarget, request: ServerRequest) -> Any:
        """A fresh handler object for one request."""
        owner = target.owner
        if not inspect.isclass(owner):
            # request and response are set per call; never on the registered object
            instance = copy.copy(owner)
            if isinstance(instance, Action) and request.session is not None:
                instance.session = request.session
            return instance
        if issubclass(owner, Action):
            return owner.for_session(request.session)
        return owner()

    async def call_action(
        self,
        target: ActionTarget,
        instance: Any,
        request: ServerRequest,
        route_arguments: Mapping[str, Any],
    ) -> Any:
        """Call the Action method with bound params.

        May be overridden to add logic before or after the call.
        """
        assert target.plan is not None and target.method is not None
        args = self.build_params(target.plan, request, route_arguments)
        method = getattr(instance, target.method)
        return await maybe_await(method(*args))

    # -- binding --------------------------------------------------------------

    def build_params(
        self,
        plan: ParameterPlan,
        request: ServerRequest,
        route_arguments: Mapping[str, Any],
    ) -> list[Any]:
        if not plan.params:
            return []

        params = request.params
        values: list[Any] = []
        for spec in plan.params:
            value = self._resolve(spec, request, params, route_arguments)
            if value is _MISSING:
                if spec.is_class_typed or not spec.has_default:
                    raise MissingParameterError(spec.name, plan.target)
                value = spec.default
            values.append(value)
        return values

    def _resolve(
        self,
        spec: ParamSpec,
        request: ServerRequest,
        params: Mapping[str, Any],
        route_arguments: Mapping[str, Any],
    ) -> Any:
        for source in spec.sources:
            if source is Source.ROUTE:
                value = route_arguments.get(spec.name)
            elif source is Source.PARAMS:
                value = params.get(spec.name)
            elif source is Source.QUERY:
                value = request.query_params.get(spec.name)
            elif source is Source.BODY:
                body = request.parsed_body
                value = body.get(spec.name) if isinstance(body, Mapping) else None
            elif source is Source.ATTRIBUTE:
                value = request.get_attribute(spec.name)
            else:
                value = self._service(spec, request)

            if value is not None:
                logger.debug("Bound '%s' from %s", spec.name, source.value)
                return value
        return _MISSING

    def _service(self, spec: ParamSpec, request: ServerRequest) -> Any:
        if spec.service is ServiceKind.QUERY_MODIFIER and self._query_modifier_factory:
            return self._query_modifier_factory(request)
        if spec.service is ServiceKind.PAGINATION and self._pagination_factory:
            return self._pagination_factory(request)
        if spec.service is ServiceKind.UPLOADED_FILE:
            return request.first_uploaded_file()
        return None

    # -- response -------------------------------------------------------------

    def build_response(self, result: Any, response: Response) -> Response:
        if not callable(self._response_builder):
            raise ResponseBuilderError(
                "ResponseBuilder must be callable or implement __call__"
            )
        if not callable(self._response_formatter):
            raise ResponseFormatterError(
                "ResponseFormatter must be callable or implement __call__"
            )
        built = self._response_builder(result)
        return self._response_formatter(response, built)
