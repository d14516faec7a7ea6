# tests/fakes.py
from __future__ import annotations

from typing import Any

from recordgate.action.base import Action
from recordgate.contracts.services import QueryModifier
from recordgate.entity.config import EntityHooks
from recordgate.http.request import ServerRequest
from recordgate.orm.record import RecordCollection

from sample_records import Book


class FakeBookQuery:
    """In-memory stand-in for RecordQuery over `Book`."""

    def __init__(self, books: dict[int, Book]):
        self.books = books
        self.pk_lookups: list[Any] = []
        self.pks_lookups: list[list[Any]] = []

    async def find_pk(self, pk: Any) -> Book | None:
        self.pk_lookups.append(pk)
        return self.books.get(int(pk))

    async def find_pks(self, pks: list[Any]) -> RecordCollection[Book]:
        self.pks_lookups.append(list(pks))
        return RecordCollection([self.books[int(pk)] for pk in pks if int(pk) in self.books])


class FakeBookAction(Action):
    record_class = Book
    query: FakeBookQuery | None = None

    def create_query(self):
        assert self.query is not None
        return self.query


def make_books() -> dict[int, Book]:
    return {
        1: Book(id=1, title="Dune", year=1965),
        2: Book(id=2, title="Hyperion", year=1989),
        3: Book(id=3, title="Solaris", year=1961),
    }


def make_request(
    method: str = "GET",
    *,
    query: dict[str, Any] | None = None,
    body: Any = None,
    route: dict[str, Any] | None = None,
    attributes: dict[str, Any] | None = None,
) -> ServerRequest:
    return ServerRequest(
        method=method,
        query_params=query or {},
        parsed_body=body,
        route_params=route or {},
        attributes=attributes or {},
    )


class BookActions(FakeBookAction):
    async def show(self, book: Book):
        return book

    async def many(self, books: RecordCollection):
        return books

    async def create(self, book: Book):
        self.response.status_code = 201
        return book

    async def session_kind(self):
        return {"session": type(self.session).__name__}

    async def filtered(self, modifier: QueryModifier):
        return {"filters": len(modifier.filters)}


def shout_title(entity_request, record) -> None:
    record.title = record.title.upper()


book_hooks = EntityHooks(after_fetch=shout_title)
