from __future__ import annotations

from typing import Any, Iterable, Mapping


class PksFinder:
    """Recursively collect primary key values from a nested request body.

    With a single key name every value found under that name is collected;
    list values contribute each element. With several names (a composite
    key) a mapping contributes one tuple when it holds all of them::

        PksFinder(["id"]).find({"items": [{"id": 1}, {"id": 2}]})  # [1, 2]
        PksFinder(["a", "b"]).find([{"a": 1, "b": 2}])             # [(1, 2)]
    """

    def __init__(self, pk_names: Iterable[str]) -> None:
        self.pk_names = tuple(pk_names)
        if not self.pk_names:
            raise ValueError("PksFinder needs at least one key name")

    def find(self, data: Any) -> list[Any]:
        found: list[Any] = []
        self._walk(data, found)
        return found

    def _add(self, found: list[Any], value: Any) -> None:
        if value is not None and value not in found:
            found.append(value)

    def _walk(self, data: Any, found: list[Any]) -> None:
        if isinstance(data, Mapping):
            self._collect(data, found)
            for key, value in data.items():
                if len(self.pk_names) == 1 and key == self.pk_names[0]:
                    continue
                self._walk(value, found)
        elif isinstance(data, (list, tuple)):
            for item in data:
                self._walk(item, found)

    def _collect(self, data: Mapping[str, Any], found: list[Any]) -> None:
        if len(self.pk_names) == 1:
            name = self.pk_names[0]
            if name not in data:
                return
            value = data[name]
            if isinstance(value, (list, tuple)):
                for item in value:
                    if not isinstance(item, (Mapping, list, tuple)):
                        self._add(found, item)
            elif not isinstance(value, Mapping):
                self._add(found, value)
            return

        if all(name in data for name in self.pk_names):
            self._add(found, tuple(data[name] for name in self.pk_names))
