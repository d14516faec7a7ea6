# recordgate/view/collection_view.py
"""
CollectionView: renders one item view per model of a collection.

Item views are rendered strictly in collection order; each one is created
only after the previous one signalled ``ready``. The collection and the
item view class may be given directly or through async loaders, which are
resolved concurrently by `CollectionView.initialize`.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Iterator

from recordgate.errors import CollectionFetchError, ViewConfigError
from recordgate.view.base import Region, View
from recordgate.view.collection import Collection, Model

logger = logging.getLogger(__name__)

CollectionLoader = Callable[[], Awaitable[Collection]]
ViewLoader = Callable[[], Awaitable[type[View]]]
Alert = Callable[[str], Any]

COLLECTION_MARKER = "data-collection"
EMPTY_COLLECTION_MARKER = "data-empty-collection"
NOT_FETCHED_MESSAGE = "danger.msg.notFetched"


def _log_alert(message: str) -> None:
    logger.warning("Alert: %s", message)


class ErrorCollectionView(View):
    async def build(self) -> Any:
        return self.options.get("message", "danger.msg.collectionError")


class CollectionView(View):
    item_view: type[View] | None = None
    empty_view: type[View] | None = None
    empty_template: Any = None
    error_view: type[View] = ErrorCollectionView
    auto_fetch = False
    auto_render = True

    def __init__(
        self,
        *,
        collection: Collection | None = None,
        collection_loader: CollectionLoader | None = None,
        item_view: type[View] | None = None,
        item_view_loader: ViewLoader | None = None,
        empty_view: type[View] | None = None,
        empty_template: Any = None,
        view_options: dict[str, Any] | None = None,
        auto_fetch: bool | None = None,
        auto_render: bool | None = None,
        collection_cache: bool = False,
        alert: Alert | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.collection = collection
        self._collection_loader = collection_loader
        self.item_view = item_view or self.item_view
        self._item_view_loader = item_view_loader
        if self.item_view is None and item_view_loader is None:
            raise ViewConfigError(f"{type(self).__name__}: no item view defined")

        self.empty_view = empty_view or self.empty_view
        if empty_template is not None:
            self.empty_template = empty_template
        self.view_options = dict(view_options or {})
        if auto_fetch is not None:
            self.auto_fetch = auto_fetch
        if auto_render is not None:
            self.auto_render = auto_render
        self.collection_cache = collection_cache
        self.alert = alert or _log_alert

        self.items: list[View] = []
        self.items_by_pk: dict[Any, View] = {}
        self.collection_region: Region = self.el
        self.empty_region: Region = self.el
        self._bound = False
        self._muted = False
        self._tasks: set[asyncio.Task] = set()

    # -- setup ----------------------------------------------------------------------

    async def _load_collection(self) -> Collection | None:
        if self._collection_loader is not None:
            return await self._collection_loader()
        return self.collection

    async def _load_item_view(self) -> type[View] | None:
        if self._item_view_loader is not None:
            return await self._item_view_loader()
        return self.item_view

    async def initialize(self) -> "CollectionView":
        collection, item_view = await asyncio.gather(
            self._load_collection(), self._load_item_view()
        )
        self.collection = collection
        if item_view is None:
            raise ViewConfigError(f"{type(self).__name__}: item view loader returned nothing")
        self.item_view = item_view

        if self.auto_fetch:
            self.bind_data = True
            if self.auto_render:
                await self.fetch_and_render()
            else:
                await self.fetch()
        elif self.auto_render:
            await self.render()
        return self

    def get_collection(self) -> Collection:
        if self.collection is None:
            raise ViewConfigError(f"{type(self).__name__}: no collection")
        return self.collection

    # -- fetching -------------------------------------------------------------------

    async def fetch(self) -> Collection:
        collection = self.get_collection()
        try:
            return await collection.fetch()
        except Exception as exc:
            self.destroy()
            self.alert(NOT_FETCHED_MESSAGE)
            raise CollectionFetchError("Unable to fetch collection") from exc

    async def fetch_and_render(self) -> "CollectionView":
        if self.collection is None:
            await self.render()
            return self
        if self.collection_cache and self.collection.is_in_pool():
            self.collection = self.collection.get_from_pool()
        else:
            await self.fetch()
        await self.render()
        return self

    # -- rendering ------------------------------------------------------------------

    async def render(self) -> "CollectionView":
        content = await self.build()
        self.el.empty()
        if content is not None:
            self.el.append(content)
        if self.render_to is not None and self not in self.render_to.children:
            self.render_to.append(self)

        collection_region = self.el.find(COLLECTION_MARKER)
        self.collection_region = collection_region if collection_region is not None else self.el
        empty_region = self.el.find(EMPTY_COLLECTION_MARKER)
        self.empty_region = empty_region if empty_region is not None else self.collection_region

        self.rendered = True
        await self.render_collection()
        if not self.prevent_ready:
            self.trigger("ready")
        if self.bind_data:
            self._bind_collection()
        return self

    async def render_collection(self, append: bool = False) -> None:
        if not append:
            self.items = []
            self.items_by_pk = {}
            self.collection_region.empty()
            self.empty_region.empty()

        collection = self.get_collection()
        if collection.is_empty():
            if self.empty_view is not None or self.empty_template is not None:
                await self.render_empty_collection()
            return

        for model in collection:
            view = await self.render_one(model)
            await view.wait_ready()

    async def render_one(
        self,
        model: Model,
        view_options: dict[str, Any] | None = None,
        region: Region | None = None,
    ) -> View:
        assert self.item_view is not None
        options = {**self.view_options, **(view_options or {})}
        view = self.item_view(
            model=model,
            render_to=region if region is not None else self.collection_region,
            options=options,
            bind_data=self.bind_data,
            collection_view=self,
        )
        self.items.append(view)
        if isinstance(model, Model) and model.pk is not None:
            self.items_by_pk[model.pk] = view
        await view.render()
        return view

    async def render_empty_collection(self) -> None:
        if self.empty_template is not None:
            self.empty_region.html(self.empty_template)
            return
        assert self.empty_view is not None
        view = self.empty_view(
            render_to=self.empty_region, options={"collection_view": self}
        )
        await view.render()
        await view.wait_ready()

    async def render_error_collection(self) -> View:
        view = self.error_view(
            render_to=self.empty_region.empty(), options={"collection_view": self}
        )
        await view.render()
        return view

    # -- items ----------------------------------------------------------------------

    def _clear_empty(self) -> None:
        if self.get_collection().is_empty():
            self.empty_region.empty()

    async def add_item(
        self, data: Model | dict[str, Any], view_options: dict[str, Any] | None = None
    ) -> View:
        self._clear_empty()
        with self._mute():
            model = self.get_collection().add(data)
        return await self.render_one(model, view_options)

    async def prepend_item(
        self, data: Model | dict[str, Any], view_options: dict[str, Any] | None = None
    ) -> View:
        self._clear_empty()
        with self._mute():
            model = self.get_collection().add(data)
        view = await self.render_one(model, view_options)
        self.collection_region.remove(view)
        self.collection_region.prepend(view)
        return view

    async def remove_item(self, model: Model) -> View | None:
        with self._mute():
            self.get_collection().remove(model)
        view = self.items_by_pk.pop(model.pk, None)
        if view is not None:
            view.destroy()
            if view in self.items:
                self.items.remove(view)
        if self.get_collection().is_empty() and (
            self.empty_view is not None or self.empty_template is not None
        ):
            await self.render_empty_collection()
        return view

    async def add_tmp_item(self, data: dict[str, Any], editable: bool = False) -> View:
        """Render a model that is not part of the collection."""
        model = self.get_collection().create_model(data)
        view = await self.render_one(model)
        return view.edit() if editable else view

    def each(self, callback: Callable[[View, int], Any]) -> None:
        for index, item in enumerate(list(self.items)):
            if callback(item, index) is False:
                break

    # -- bound collection -----------------------------------------------------------

    @contextmanager
    def _mute(self) -> Iterator[None]:
        self._muted = True
        try:
            yield
        finally:
            self._muted = False

    def _bind_collection(self) -> None:
        if self._bound:
            return
        collection = self.get_collection()
        collection.on("add", self._on_collection_add)
        collection.on("remove", self._on_collection_remove)
        self._bound = True

    def _on_collection_add(self, model: Model) -> None:
        if self._muted or not self.rendered or model.is_new():
            return
        self._spawn(self.render_one(model))

    def _on_collection_remove(self, model: Model) -> None:
        if self._muted or not self.rendered:
            return
        self._spawn(self.render_collection())

    def _spawn(self, coro: Awaitable[Any]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for renders scheduled by collection events."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def destroy(self) -> None:
        if self._bound and self.collection is not None:
            self.collection.off("add", self._on_collection_add)
            self.collection.off("remove", self._on_collection_remove)
            self._bound = False
        super().destroy()

