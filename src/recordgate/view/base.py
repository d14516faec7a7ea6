# recordgate/view/base.py
"""
Headless view primitives.

A `Region` stands in for a DOM container: an ordered list of child nodes
(views or plain content) that can carry markers such as
``data-collection``. A `View` renders its content into its own root
region, attaches itself to the region it is rendered to, and signals
``ready`` once done.
"""
from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, Callable, Iterable, Iterator

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]


class Region:
    def __init__(
        self,
        name: str = "",
        *,
        markers: Iterable[str] = (),
        children: Iterable[Any] = (),
    ) -> None:
        self.name = name
        self.markers = frozenset(markers)
        self.children: list[Any] = list(children)

    def __repr__(self) -> str:
        return f"Region({self.name!r}, markers={sorted(self.markers)}, children={len(self.children)})"

    def __len__(self) -> int:
        return len(self.children)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.children)

    def find(self, marker: str) -> Region | None:
        """First descendant region (depth-first) carrying `marker`."""
        for child in self.children:
            region = child.el if isinstance(child, View) else child
            if not isinstance(region, Region):
                continue
            if marker in region.markers:
                return region
            found = region.find(marker)
            if found is not None:
                return found
        return None

    def append(self, node: Any) -> None:
        self.children.append(node)

    def prepend(self, node: Any) -> None:
        self.children.insert(0, node)

    def remove(self, node: Any) -> None:
        if node in self.children:
            self.children.remove(node)

    def empty(self) -> "Region":
        self.children.clear()
        return self

    def html(self, content: Any) -> None:
        self.empty()
        self.append(content)


class View:
    """Base view.

    Override `build` to produce the content of the view's root region.
    """

    def __init__(
        self,
        *,
        model: Any = None,
        render_to: Region | None = None,
        options: dict[str, Any] | None = None,
        bind_data: bool = False,
        prevent_ready: bool = False,
        **extra: Any,
    ) -> None:
        self.model = model
        self.render_to = render_to
        self.options = dict(options or {})
        self.bind_data = bind_data
        self.prevent_ready = prevent_ready or bool(self.options.get("prevent_ready"))
        self.extra = extra
        self.el = Region(type(self).__name__)
        self.rendered = False
        self.editing = False
        self._listeners: dict[str, list[Listener]] = defaultdict(list)
        self._ready = asyncio.Event()

    # -- events -----------------------------------------------------------------

    def on(self, event: str, listener: Listener) -> None:
        self._listeners[event].append(listener)

    def off(self, event: str, listener: Listener | None = None) -> None:
        if listener is None:
            self._listeners.pop(event, None)
        elif listener in self._listeners.get(event, []):
            self._listeners[event].remove(listener)

    def trigger(self, event: str, *args: Any) -> None:
        if event == "ready":
            self._ready.set()
        for listener in list(self._listeners.get(event, [])):
            listener(self, *args)

    async def wait_ready(self) -> None:
        await self._ready.wait()

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    # -- rendering ----------------------------------------------------------------

    async def build(self) -> Any:
        return None

    async def render(self) -> "View":
        content = await self.build()
        self.el.empty()
        if content is not None:
            self.el.append(content)
        if self.render_to is not None and self not in self.render_to.children:
            self.render_to.append(self)
        self.rendered = True
        await self.after_render()
        return self

    async def after_render(self) -> None:
        if not self.prevent_ready:
            self.trigger("ready")

    def edit(self) -> "View":
        self.editing = True
        return self

    def destroy(self) -> None:
        if self.render_to is not None:
            self.render_to.remove(self)
        self.el.empty()
        self.rendered = False
        self.trigger("destroy")
        self._listeners.clear()
