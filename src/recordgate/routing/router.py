# recordgate/routing/router.py
"""
ActionRouter - mounts action targets behind middleware chains.

Each route runs, in order: session scope → request adaptation →
middleware chain (typically entity pipeline steps) → dispatcher::

    router = ActionRouter(strategy=strategy)
    router.get(
        "/books/{id}",
        (BookAction, "get"),
        middleware=[entities.fetching(book_config)],
    )
    app.include_router(router.build())
"""
from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Sequence

from fastapi import APIRouter
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request
from starlette.responses import Response

from recordgate.action.strategy import ActionStrategy, ActionTarget
from recordgate.contracts.services import CallNext, Middleware
from recordgate.http.request import ServerRequest

logger = logging.getLogger(__name__)

SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession | None]]


@asynccontextmanager
async def no_session() -> AsyncIterator[None]:
    yield None


@dataclass(frozen=True)
class RouteDef:
    path: str
    target: ActionTarget
    methods: tuple[str, ...]
    middleware: tuple[Middleware, ...] = field(default_factory=tuple)
    name: str | None = None


class ActionRouter:
    def __init__(
        self,
        *,
        strategy: ActionStrategy,
        session_scope: SessionScope | None = None,
        prefix: str = "",
        tags: Sequence[str] | None = None,
    ) -> None:
        self._strategy = strategy
        self._session_scope = session_scope or no_session
        self._prefix = prefix
        self._tags = list(tags or [])
        self._routes: list[RouteDef] = []

    @property
    def routes(self) -> list[RouteDef]:
        return list(self._routes)

    def add_route(
        self,
        path: str,
        target: Any,
        *,
        methods: Sequence[str] = ("GET",),
        middleware: Sequence[Middleware] = (),
        name: str | None = None,
    ) -> RouteDef:
        route = RouteDef(
            path=path,
            target=self._strategy.register(target),
            methods=tuple(m.upper() for m in methods),
            middleware=tuple(middleware),
            name=name,
        )
        self._routes.append(route)
        logger.debug("Registered %s %s -> %s", route.methods, path, route.target.name)
        return route

    def get(self, path: str, target: Any, **kw: Any) -> RouteDef:
        return self.add_route(path, target, methods=("GET",), **kw)

    def post(self, path: str, target: Any, **kw: Any) -> RouteDef:
        return self.add_route(path, target, methods=("POST",), **kw)

    def put(self, path: str, target: Any, **kw: Any) -> RouteDef:
        return self.add_route(path, target, methods=("PUT",), **kw)

    def patch(self, path: str, target: Any, **kw: Any) -> RouteDef:
        return self.add_route(path, target, methods=("PATCH",), **kw)

    def delete(self, path: str, target: Any, **kw: Any) -> RouteDef:
        return self.add_route(path, target, methods=("DELETE",), **kw)

    # -- execution --------------------------------------------------------------

    def chain(self, route: RouteDef) -> CallNext:
        """Compose the route's middleware around the dispatcher."""

        async def dispatch(request: ServerRequest, response: Response) -> Response:
            return await self._strategy(route.target, request, response, request.route_params)

        handler: CallNext = dispatch
        for middleware in reversed(route.middleware):
            handler = _link(middleware, handler)
        return handler

    def endpoint(self, route: RouteDef) -> Callable[[Request], Any]:
        handler = self.chain(route)

        async def endpoint(request: Request) -> Response:
            async with self._session_scope() as session:
                server_request = await ServerRequest.from_starlette(request, session=session)
                return await handler(server_request, Response())

        endpoint.__name__ = route.name or route.target.name.replace(".", "_")
        return endpoint

    def build(self) -> APIRouter:
        api_router = APIRouter(prefix=self._prefix, tags=self._tags or None)
        for route in self._routes:
            api_router.add_api_route(
                route.path,
                self.endpoint(route),
                methods=list(route.methods),
                name=route.name,
            )
        return api_router


def _link(middleware: Middleware, call_next: CallNext) -> CallNext:
    async def step(request: ServerRequest, response: Response) -> Response:
        return await middleware(request, response, call_next)

    return step
