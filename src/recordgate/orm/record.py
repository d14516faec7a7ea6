# recordgate/orm/record.py
"""
Active-record helpers for SQLAlchemy declarative models.

A record is a mutable bag of persisted fields. It is "new" until it has a
database identity, and is identified by its primary key afterwards.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Generic, Iterator, Mapping, TypeVar, overload

from sqlalchemy import inspect as sa_inspect


class ActiveRecordMixin:
    """Mixed into the declarative base; see `recordgate.core.db.Base`."""

    @classmethod
    def column_keys(cls) -> tuple[str, ...]:
        return tuple(attr.key for attr in sa_inspect(cls).column_attrs)

    @classmethod
    def primary_key_names(cls) -> tuple[str, ...]:
        mapper = sa_inspect(cls)
        return tuple(mapper.get_property_by_column(c).key for c in mapper.primary_key)

    def from_dict(self, data: Mapping[str, Any]) -> "ActiveRecordMixin":
        """Write the mapped column values found in `data`; other keys are ignored."""
        keys = set(self.column_keys())
        for key, value in data.items():
            if key in keys:
                setattr(self, key, value)
        return self

    def to_dict(self) -> dict[str, Any]:
        return {key: getattr(self, key) for key in self.column_keys()}

    def is_new(self) -> bool:
        return not sa_inspect(self).has_identity

    @property
    def primary_key(self) -> Any:
        values = tuple(getattr(self, name) for name in self.primary_key_names())
        if len(values) == 1:
            return values[0]
        return values


RecordT = TypeVar("RecordT", bound=ActiveRecordMixin)


class RecordCollection(Sequence, Generic[RecordT]):
    """Ordered, read-only sequence of records returned by a multi-key lookup."""

    def __init__(self, records: Sequence[RecordT] = ()) -> None:
        self._records: list[RecordT] = list(records)

    @overload
    def __getitem__(self, index: int) -> RecordT: ...

    @overload
    def __getitem__(self, index: slice) -> "RecordCollection[RecordT]": ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return RecordCollection(self._records[index])
        return self._records[index]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[RecordT]:
        return iter(self._records)

    def __repr__(self) -> str:
        return f"RecordCollection({self._records!r})"

    def is_empty(self) -> bool:
        return not self._records

    def primary_keys(self) -> list[Any]:
        return [r.primary_key for r in self._records]

    def to_list(self) -> list[dict[str, Any]]:
        return [r.to_dict() for r in self._records]
