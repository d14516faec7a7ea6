# tests/orm/test_record_query.py
from __future__ import annotations

import pytest

from recordgate.orm.query import RecordQuery, coerce_to_column
from recordgate.orm.record import RecordCollection

from sample_records import Book, Edition, memory_session


async def seed(session) -> None:
    session.add_all(
        [
            Book(id=1, title="Dune", year=1965),
            Book(id=2, title="Hyperion", year=1989),
            Book(id=3, title="Solaris", year=1961),
            Edition(book_id=1, lang="en", title="Dune"),
            Edition(book_id=1, lang="it", title="Dune (it)"),
            Edition(book_id=3, lang="pl", title="Solaris (pl)"),
        ]
    )
    await session.flush()


class TestActiveRecord:
    def test_from_dict_writes_mapped_columns_only(self):
        book = Book().from_dict({"title": "Dune", "unknown": 1})
        assert book.title == "Dune"
        assert not hasattr(book, "unknown")

    def test_to_dict(self):
        assert Book(id=1, title="Dune", year=1965).to_dict() == {
            "id": 1,
            "title": "Dune",
            "year": 1965,
        }

    def test_primary_key_names(self):
        assert Book.primary_key_names() == ("id",)
        assert Edition.primary_key_names() == ("book_id", "lang")

    def test_composite_primary_key(self):
        assert Edition(book_id=1, lang="en").primary_key == (1, "en")

    @pytest.mark.asyncio
    async def test_is_new_until_persisted(self):
        async with memory_session() as session:
            book = Book(id=9, title="New")
            assert book.is_new()
            session.add(book)
            await session.flush()
            assert not book.is_new()


class TestRecordCollection:
    def test_sequence_behaviour(self):
        books = RecordCollection([Book(id=1, title="a"), Book(id=2, title="b")])
        assert len(books) == 2
        assert books[0].title == "a"
        assert isinstance(books[1:], RecordCollection)
        assert books.primary_keys() == [1, 2]
        assert not books.is_empty()
        assert RecordCollection().is_empty()


class TestRecordQuery:
    def test_coerce_to_column(self):
        assert coerce_to_column(Book.__table__.c.id, "3") == 3
        assert coerce_to_column(Book.__table__.c.id, "x") == "x"
        assert coerce_to_column(Book.__table__.c.title, 5) == "5"

    def test_refinement_returns_new_query(self):
        query = RecordQuery(Book, None)
        refined = query.where(Book.year > 1960)
        assert refined is not query
        assert "WHERE" not in str(query.statement)
        assert "WHERE" in str(refined.statement)

    def test_column_lookup(self):
        query = RecordQuery(Book, None)
        assert query.column("title") is Book.title
        assert query.column("nope") is None

    @pytest.mark.asyncio
    async def test_execution_needs_a_session(self):
        with pytest.raises(RuntimeError, match="no session"):
            await RecordQuery(Book, None).find()

    @pytest.mark.asyncio
    async def test_find_pk_coerces_http_strings(self):
        async with memory_session() as session:
            await seed(session)
            book = await RecordQuery(Book, session).find_pk("2")
            assert book is not None and book.title == "Hyperion"
            assert await RecordQuery(Book, session).find_pk("99") is None

    @pytest.mark.asyncio
    async def test_find_pk_honours_criteria(self):
        async with memory_session() as session:
            await seed(session)
            query = RecordQuery(Book, session).where(Book.year > 1970)
            assert await query.find_pk(1) is None

    @pytest.mark.asyncio
    async def test_find_pks(self):
        async with memory_session() as session:
            await seed(session)
            books = await RecordQuery(Book, session).order_by(Book.id).find_pks(["3", "1", "42"])
            assert isinstance(books, RecordCollection)
            assert books.primary_keys() == [1, 3]
            assert (await RecordQuery(Book, session).find_pks([])).is_empty()

    @pytest.mark.asyncio
    async def test_composite_keys(self):
        async with memory_session() as session:
            await seed(session)
            query = RecordQuery(Edition, session)
            edition = await query.find_pk(["1", "it"])
            assert edition.title == "Dune (it)"
            editions = await query.order_by(Edition.lang).find_pks([(1, "en"), (3, "pl")])
            assert [e.lang for e in editions] == ["en", "pl"]

    @pytest.mark.asyncio
    async def test_key_shape_mismatch(self):
        async with memory_session() as session:
            with pytest.raises(ValueError):
                await RecordQuery(Edition, session).find_pk(1)
            with pytest.raises(ValueError):
                await RecordQuery(Book, session).find_pk((1, 2))

    @pytest.mark.asyncio
    async def test_count_limit_offset(self):
        async with memory_session() as session:
            await seed(session)
            query = RecordQuery(Book, session).order_by(Book.id)
            assert await query.count() == 3
            page = await query.limit(1).offset(1).find()
            assert page.primary_keys() == [2]
            assert await query.limit(1).count() == 3
            first = await query.filter_by(title="Solaris").find_one()
            assert first.id == 3
