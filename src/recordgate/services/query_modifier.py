# recordgate/services/query_modifier.py
"""
RequestQueryModifier - filters and sorting driven by query parameters.

Expected query parameters (JSON encoded)::

    filter=[{"property": "title", "value": "Dune", "operator": "="}]
    sort=[{"property": "published", "direction": "DESC"}]

Properties that are not mapped columns of the queried record, and
unknown operators, are skipped.
"""
from __future__ import annotations

import json
import logging
import operator
from dataclasses import dataclass, field
from typing import Any, Callable

from recordgate.contracts.services import QueryModifier
from recordgate.errors import QueryModifierError
from recordgate.http.request import ServerRequest
from recordgate.orm.query import RecordQuery, coerce_to_column

logger = logging.getLogger(__name__)

OPERATORS: dict[str, Callable[[Any, Any], Any]] = {
    "=": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "like": lambda col, value: col.like(value),
    "in": lambda col, value: col.in_(value if isinstance(value, list) else [value]),
}


@dataclass(frozen=True)
class Filter:
    property: str
    value: Any
    operator: str = "="


@dataclass(frozen=True)
class Sort:
    property: str
    direction: str = "ASC"


@dataclass
class RequestQueryModifier(QueryModifier):
    filters: list[Filter] = field(default_factory=list)
    sorts: list[Sort] = field(default_factory=list)

    @classmethod
    def from_request(cls, request: ServerRequest) -> "RequestQueryModifier":
        filters = [
            Filter(
                property=str(item["property"]),
                value=item.get("value"),
                operator=str(item.get("operator", "=")).lower(),
            )
            for item in _json_list(request.query_params.get("filter"), "filter")
        ]
        sorts = [
            Sort(
                property=str(item["property"]),
                direction=str(item.get("direction", "ASC")).upper(),
            )
            for item in _json_list(request.query_params.get("sort"), "sort")
        ]
        return cls(filters=filters, sorts=sorts)

    def apply(self, query: RecordQuery) -> RecordQuery:
        for f in self.filters:
            column = query.column(f.property)
            op = OPERATORS.get(f.operator)
            if column is None or op is None:
                logger.debug("Skipping filter %s %s", f.property, f.operator)
                continue
            if f.operator == "in" and isinstance(f.value, list):
                value: Any = [coerce_to_column(column, v) for v in f.value]
            elif f.operator == "like":
                value = f.value
            else:
                value = coerce_to_column(column, f.value)
            query = query.where(op(column, value))

        for s in self.sorts:
            column = query.column(s.property)
            if column is None:
                logger.debug("Skipping sort on %s", s.property)
                continue
            query = query.order_by(column.desc() if s.direction == "DESC" else column.asc())
        return query


def _json_list(raw: Any, name: str) -> list[dict[str, Any]]:
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise QueryModifierError(f"Query parameter '{name}' is not valid JSON") from exc
    if isinstance(raw, dict):
        raw = [raw]
    if not isinstance(raw, list) or not all(
        isinstance(item, dict) and "property" in item for item in raw
    ):
        raise QueryModifierError(
            f"Query parameter '{name}' must be a list of objects with a 'property'"
        )
    return raw
