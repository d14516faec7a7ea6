# recordgate/action/base.py
"""
Action - the handler class routes dispatch to.

An Action groups the handler methods of one record type. The dispatcher
creates one instance per request, sets `request` and `response` on it,
then calls the routed method with bound parameters::

    class BookAction(Action):
        record_class = Book

        async def get(self, book: Book) -> Book:
            return book

        async def list(self, modifier: QueryModifier, pagination: Pagination):
            query = pagination.apply(modifier.apply(self.create_query()))
            return await query.find()
"""
from __future__ import annotations

from typing import Any, ClassVar

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import Response

from recordgate.http.request import ServerRequest
from recordgate.orm.query import RecordQuery


class Action:
    record_class: ClassVar[type[Any] | None] = None

    request: ServerRequest | None
    response: Response | None

    def __init__(self, session: AsyncSession | None = None) -> None:
        self.session = session
        self.request = None
        self.response = None

    @classmethod
    def for_session(cls, session: AsyncSession | None = None) -> "Action":
        return cls(session)

    def create_query(self) -> RecordQuery:
        """Base query for `record_class`; override to add default criteria."""
        if self.record_class is None:
            raise RuntimeError(f"{type(self).__name__}.record_class is not set")
        return RecordQuery(self.record_class, self.session)
