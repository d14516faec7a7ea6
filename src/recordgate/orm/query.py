# recordgate/orm/query.py
"""
RecordQuery - a small, immutable query object over a SQLAlchemy `select`.

Every refining method returns a new query, so hooks can rewrite a query
without affecting the caller's copy.
"""
from __future__ import annotations

import logging
from typing import Any, Generic, Sequence, Type

from sqlalchemy import and_, func, or_, select
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from recordgate.orm.record import RecordCollection, RecordT

logger = logging.getLogger(__name__)


def coerce_to_column(column: Any, value: Any) -> Any:
    """Convert an HTTP string value to the column's Python type when possible."""
    if value is None:
        return None
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return value
    if isinstance(value, python_type):
        return value
    try:
        return python_type(value)
    except (TypeError, ValueError):
        return value


class RecordQuery(Generic[RecordT]):
    def __init__(
        self,
        record_class: Type[RecordT],
        session: AsyncSession | None,
        statement: Select | None = None,
    ) -> None:
        self.record_class = record_class
        self.session = session
        self._statement = statement if statement is not None else select(record_class)

    @property
    def statement(self) -> Select:
        return self._statement

    @property
    def pk_columns(self) -> tuple[Any, ...]:
        return tuple(sa_inspect(self.record_class).primary_key)

    def _derive(self, statement: Select) -> "RecordQuery[RecordT]":
        return type(self)(self.record_class, self.session, statement)

    # -- refinement ----------------------------------------------------------

    def where(self, *criteria: Any) -> "RecordQuery[RecordT]":
        return self._derive(self._statement.where(*criteria))

    def filter_by(self, **values: Any) -> "RecordQuery[RecordT]":
        return self._derive(self._statement.filter_by(**values))

    def order_by(self, *clauses: Any) -> "RecordQuery[RecordT]":
        return self._derive(self._statement.order_by(*clauses))

    def limit(self, limit: int | None) -> "RecordQuery[RecordT]":
        return self._derive(self._statement.limit(limit))

    def offset(self, offset: int | None) -> "RecordQuery[RecordT]":
        return self._derive(self._statement.offset(offset))

    def column(self, name: str) -> Any | None:
        """Mapped column attribute `name`, or None if the record has no such column."""
        mapper = sa_inspect(self.record_class)
        if name not in mapper.column_attrs:
            return None
        return getattr(self.record_class, name)

    # -- execution -----------------------------------------------------------

    def _require_session(self) -> AsyncSession:
        if self.session is None:
            raise RuntimeError(
                f"Query on {self.record_class.__name__} has no session bound"
            )
        return self.session

    async def find(self) -> RecordCollection[RecordT]:
        result = await self._require_session().scalars(self._statement)
        return RecordCollection(result.all())

    async def find_one(self) -> RecordT | None:
        result = await self._require_session().scalars(self._statement.limit(1))
        return result.first()

    async def count(self) -> int:
        stmt = select(func.count()).select_from(
            self._statement.order_by(None).limit(None).offset(None).subquery()
        )
        return int(await self._require_session().scalar(stmt) or 0)

    def _pk_condition(self, pk: Any) -> Any:
        columns = self.pk_columns
        if len(columns) == 1:
            if isinstance(pk, (list, tuple)):
                raise ValueError(
                    f"{self.record_class.__name__} has a single-column primary key, "
                    f"got {pk!r}"
                )
            return columns[0] == coerce_to_column(columns[0], pk)

        if not isinstance(pk, (list, tuple)) or len(pk) != len(columns):
            raise ValueError(
                f"{self.record_class.__name__} primary key needs {len(columns)} "
                f"values, got {pk!r}"
            )
        return and_(
            *(col == coerce_to_column(col, v) for col, v in zip(columns, pk))
        )

    async def find_pk(self, pk: Any) -> RecordT | None:
        """Find one record by primary key, honouring the query's criteria."""
        logger.debug("find_pk %s pk=%r", self.record_class.__name__, pk)
        return await self.where(self._pk_condition(pk)).find_one()

    async def find_pks(self, pks: Sequence[Any]) -> RecordCollection[RecordT]:
        """Find all records whose primary key is in `pks`."""
        logger.debug("find_pks %s pks=%r", self.record_class.__name__, pks)
        if not pks:
            return RecordCollection()

        columns = self.pk_columns
        if len(columns) == 1:
            col = columns[0]
            condition = col.in_([coerce_to_column(col, v) for v in pks])
        else:
            condition = or_(*(self._pk_condition(pk) for pk in pks))
        return await self.where(condition).find()
