# recordgate/view/collection.py
"""
In-memory models and collections backing collection views.

Collections notify observers on ``add``, ``remove`` and ``reset`` so views
bound to them can re-render.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, Iterable, Iterator, Mapping, Protocol

logger = logging.getLogger(__name__)

Observer = Callable[..., Any]


class Model:
    pk_name = "id"

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._data!r})"

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    @property
    def pk(self) -> Any:
        return self._data.get(self.pk_name)

    def is_new(self) -> bool:
        return self.pk is None

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)


class CollectionSource(Protocol):
    async def fetch(self) -> list[dict[str, Any]]: ...


class CollectionPool:
    """Fetched collections, keyed by cache key."""

    def __init__(self) -> None:
        self._items: dict[str, Collection] = {}

    def has(self, key: str) -> bool:
        return key in self._items

    def get(self, key: str) -> Collection:
        return self._items[key]

    def put(self, key: str, collection: Collection) -> None:
        self._items[key] = collection

    def clear(self) -> None:
        self._items.clear()


class Collection:
    model_class: type[Model] = Model

    def __init__(
        self,
        models: Iterable[Model | Mapping[str, Any]] = (),
        *,
        source: CollectionSource | None = None,
        pool: CollectionPool | None = None,
        cache_key: str | None = None,
    ) -> None:
        self.source = source
        self.pool = pool
        self.cache_key = cache_key
        self._models: list[Model] = [self.create_model(m) for m in models]
        self._observers: dict[str, list[Observer]] = defaultdict(list)

    def __iter__(self) -> Iterator[Model]:
        return iter(list(self._models))

    def __len__(self) -> int:
        return len(self._models)

    # -- observers ----------------------------------------------------------------

    def on(self, event: str, observer: Observer) -> None:
        self._observers[event].append(observer)

    def off(self, event: str, observer: Observer) -> None:
        if observer in self._observers.get(event, []):
            self._observers[event].remove(observer)

    def _notify(self, event: str, *args: Any) -> None:
        for observer in list(self._observers.get(event, [])):
            observer(*args)

    # -- access ---------------------------------------------------------------------

    def create_model(self, data: Model | Mapping[str, Any]) -> Model:
        if isinstance(data, Model):
            return data
        return self.model_class(data)

    def get_at(self, index: int) -> Model:
        return self._models[index]

    def get_by_pk(self, pk: Any) -> Model | None:
        for model in self._models:
            if model.pk == pk:
                return model
        return None

    def get_length(self) -> int:
        return len(self._models)

    def is_empty(self) -> bool:
        return not self._models

    # -- mutation -------------------------------------------------------------------

    def add(self, data: Model | Mapping[str, Any]) -> Model:
        model = self.create_model(data)
        self._models.append(model)
        self._notify("add", model)
        return model

    def remove(self, model: Model) -> Model:
        if model in self._models:
            self._models.remove(model)
            self._notify("remove", model)
        return model

    def reset(self, items: Iterable[Model | Mapping[str, Any]]) -> None:
        self._models = [self.create_model(item) for item in items]
        self._notify("reset")

    # -- remote ---------------------------------------------------------------------

    async def fetch(self) -> "Collection":
        """Replace the content with the source's items; errors propagate."""
        if self.source is None:
            raise RuntimeError(f"{type(self).__name__} has no source to fetch from")
        items = await self.source.fetch()
        self.reset(items)
        logger.debug("Fetched %d item(s) into %s", len(self._models), type(self).__name__)
        if self.pool is not None and self.cache_key:
            self.pool.put(self.cache_key, self)
        return self

    def is_in_pool(self) -> bool:
        return bool(self.pool is not None and self.cache_key and self.pool.has(self.cache_key))

    def get_from_pool(self) -> "Collection":
        assert self.pool is not None and self.cache_key
        return self.pool.get(self.cache_key)
