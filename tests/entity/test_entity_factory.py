# tests/entity/test_entity_factory.py
from __future__ import annotations

import json
from typing import Any

import pytest
from starlette.responses import JSONResponse, Response

from recordgate.entity.config import EntityFactoryConfig, EntityHooks
from recordgate.entity.factory import EntityFactory
from recordgate.errors import HydrationNotSupportedError
from recordgate.http.request import ServerRequest
from recordgate.services.errors import DefaultErrorHandler

from fakes import FakeBookAction, make_request
from sample_records import Book


class Downstream:
    """Terminal `call_next` recording the request it receives."""

    def __init__(self) -> None:
        self.requests: list[ServerRequest] = []

    async def __call__(self, request: ServerRequest, response: Response) -> Response:
        self.requests.append(request)
        return JSONResponse({"reached": True})

    @property
    def called(self) -> bool:
        return bool(self.requests)

    def attribute(self, name: str) -> Any:
        return self.requests[-1].get_attribute(name)


def body(response: Response) -> Any:
    return json.loads(response.body)


@pytest.fixture
def factory() -> EntityFactory:
    return EntityFactory(error_handler=DefaultErrorHandler())


@pytest.fixture
def downstream() -> Downstream:
    return Downstream()


def config(**kw: Any) -> EntityFactoryConfig:
    kw.setdefault("record_class", Book)
    kw.setdefault("parameter_to_inject_into", "book")
    kw.setdefault("action_class", FakeBookAction)
    return EntityFactoryConfig(**kw)


class TestConfig:
    def test_defaults(self):
        cfg = config()
        assert cfg.request_parameter_name == "id"
        assert cfg.hydrate_entity_from_request is False
        assert cfg.allowed_fields == frozenset()
        assert cfg.hooks == EntityHooks()

    def test_allowed_fields_are_frozen(self):
        assert config(allowed_fields=["title", "title"]).allowed_fields == frozenset({"title"})

    def test_empty_attribute_name_rejected(self):
        with pytest.raises(ValueError):
            config(parameter_to_inject_into="")


class TestCreate:
    @pytest.mark.asyncio
    async def test_new_record_is_injected(self, factory, downstream):
        response = await factory.create(config(), make_request("POST"), Response(), downstream)
        assert body(response) == {"reached": True}
        book = downstream.attribute("book")
        assert isinstance(book, Book)
        assert book.is_new()
        assert book.title is None

    @pytest.mark.asyncio
    async def test_hydration_writes_allowed_fields_only(self, factory, downstream):
        request = make_request(
            "POST",
            query={"title": "from-query", "year": "1999"},
            body={"title": "from-body", "id": 99},
        )
        cfg = config(hydrate_entity_from_request=True, allowed_fields={"title"})
        await factory.create(cfg, request, Response(), downstream)
        book = downstream.attribute("book")
        assert book.title == "from-body"
        assert book.id is None
        assert book.year is None

    @pytest.mark.asyncio
    async def test_no_allow_list_writes_nothing(self, factory, downstream):
        cfg = config(hydrate_entity_from_request=True)
        await factory.create(cfg, make_request("POST", body={"title": "x"}), Response(), downstream)
        assert downstream.attribute("book").title is None

    @pytest.mark.asyncio
    async def test_allowed_data_hook_overrides_allow_list(self, factory, downstream):
        seen: list[str] = []

        def allowed(params, method):
            seen.append(method)
            return {"year": 2001}

        cfg = config(
            hydrate_entity_from_request=True,
            allowed_fields={"title"},
            hooks=EntityHooks(allowed_data=allowed),
        )
        await factory.create(cfg, make_request("POST", body={"title": "x"}), Response(), downstream)
        book = downstream.attribute("book")
        assert seen == ["POST"]
        assert book.year == 2001
        assert book.title is None

    @pytest.mark.asyncio
    async def test_hooks_run_around_hydration(self, factory, downstream):
        order: list[tuple[str, Any]] = []

        def before(entity_request, record):
            order.append(("before", record.title))
            record.title = "draft"

        async def after(entity_request, record):
            order.append(("after", record.title))

        cfg = config(
            hydrate_entity_from_request=True,
            allowed_fields={"year"},
            hooks=EntityHooks(before_create=before, after_create=after),
        )
        await factory.create(cfg, make_request("POST", body={"year": 2020}), Response(), downstream)
        assert order == [("before", None), ("after", "draft")]
        assert downstream.attribute("book").year == 2020

    @pytest.mark.asyncio
    async def test_original_request_is_not_mutated(self, factory, downstream):
        request = make_request("POST")
        await factory.create(config(), request, Response(), downstream)
        assert request.get_attribute("book") is None


class TestFetch:
    @pytest.mark.asyncio
    async def test_record_from_route_key(self, factory, downstream, book_query):
        request = make_request(route={"id": "2"})
        await factory.fetch(config(), request, Response(), downstream)
        assert downstream.attribute("book").title == "Hyperion"
        assert book_query.pk_lookups == ["2"]

    @pytest.mark.asyncio
    async def test_missing_key_never_queries(self, factory, downstream, book_query):
        response = await factory.fetch(config(), make_request(), Response(), downstream)
        assert response.status_code == 400
        assert body(response)["error"] == "primary_key_not_found"
        assert not downstream.called
        assert book_query.pk_lookups == []

    @pytest.mark.asyncio
    async def test_query_parameter_is_not_a_route_key(self, factory, downstream, book_query):
        response = await factory.fetch(config(), make_request(query={"id": "1"}), Response(), downstream)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_custom_parameter_name(self, factory, downstream, book_query):
        cfg = config(request_parameter_name="book_id")
        await factory.fetch(cfg, make_request(route={"book_id": "3"}), Response(), downstream)
        assert downstream.attribute("book").title == "Solaris"

    @pytest.mark.asyncio
    async def test_unknown_record_is_not_hydrated(self, factory, downstream, book_query):
        hydrated: list[Any] = []

        def allowed(params, method):
            hydrated.append(params)
            return params

        cfg = config(
            hydrate_entity_from_request=True,
            hooks=EntityHooks(allowed_data=allowed),
        )
        response = await factory.fetch(cfg, make_request("PATCH", route={"id": "42"}), Response(), downstream)
        assert response.status_code == 404
        assert body(response)["error"] == "entity_not_found"
        assert hydrated == []
        assert not downstream.called

    @pytest.mark.asyncio
    async def test_before_fetch_may_supply_the_key(self, factory, downstream, book_query):
        def before(entity_request, query):
            entity_request.primary_key = entity_request.request.query_params.get("slug_id")
            return query

        cfg = config(hooks=EntityHooks(before_fetch=before))
        await factory.fetch(cfg, make_request(query={"slug_id": "1"}), Response(), downstream)
        assert downstream.attribute("book").title == "Dune"

    @pytest.mark.asyncio
    async def test_before_fetch_may_replace_the_query(self, factory, downstream, book_query):
        class Restricted:
            async def find_pk(self, pk):
                return None

        cfg = config(hooks=EntityHooks(before_fetch=lambda er, q: Restricted()))
        response = await factory.fetch(cfg, make_request(route={"id": "1"}), Response(), downstream)
        assert response.status_code == 404
        assert book_query.pk_lookups == []

    @pytest.mark.asyncio
    async def test_hydration_after_fetch(self, factory, downstream, book_query):
        seen: list[str] = []

        async def after(entity_request, record):
            seen.append(record.title)

        cfg = config(
            hydrate_entity_from_request=True,
            allowed_fields={"title"},
            hooks=EntityHooks(after_fetch=after),
        )
        request = make_request("PATCH", route={"id": "1"}, query={"title": "q"}, body={"title": "Dune Messiah"})
        await factory.fetch(cfg, request, Response(), downstream)
        assert seen == ["Dune Messiah"]
        assert downstream.attribute("book").id == 1

    @pytest.mark.asyncio
    async def test_custom_error_handler(self, downstream, book_query):
        class Handler(DefaultErrorHandler):
            async def entity_not_found(self, entity_request, request, response):
                return Response(status_code=410)

        factory = EntityFactory(error_handler=Handler())
        response = await factory.fetch(config(), make_request(route={"id": "7"}), Response(), downstream)
        assert response.status_code == 410


class TestFetchCollection:
    @pytest.mark.asyncio
    async def test_list_convention(self, factory, downstream, book_query):
        request = make_request(query={"id": ["1", "3"]})
        await factory.fetch_collection(config(), request, Response(), downstream)
        books = downstream.attribute("book")
        assert [b.title for b in books] == ["Dune", "Solaris"]

    @pytest.mark.asyncio
    async def test_json_encoded_keys_equal_list_convention(self, factory, downstream, book_query):
        await factory.fetch_collection(config(), make_request(query={"id": '["1", "3"]'}), Response(), downstream)
        await factory.fetch_collection(config(), make_request(query={"id": ["1", "3"]}), Response(), downstream)
        assert book_query.pks_lookups == [["1", "3"], ["1", "3"]]

    @pytest.mark.asyncio
    async def test_json_scalar_is_wrapped(self, factory, downstream, book_query):
        await factory.fetch_collection(config(), make_request(query={"id": "2"}), Response(), downstream)
        assert book_query.pks_lookups == [[2]]

    @pytest.mark.asyncio
    async def test_undecodable_keys_count_as_missing(self, factory, downstream, book_query):
        response = await factory.fetch_collection(
            config(), make_request(query={"id": "[1,"}), Response(), downstream
        )
        assert response.status_code == 400
        assert book_query.pks_lookups == []

    @pytest.mark.asyncio
    async def test_empty_key_set(self, factory, downstream, book_query):
        response = await factory.fetch_collection(
            config(), make_request(query={"id": "[]"}), Response(), downstream
        )
        assert response.status_code == 400
        assert not downstream.called

    @pytest.mark.asyncio
    async def test_keys_found_in_body_for_write_methods(self, factory, downstream, book_query):
        request = make_request(
            "POST",
            body={"items": [{"id": 1, "title": "a"}, {"id": 2, "tags": [{"id": 2}]}]},
        )
        await factory.fetch_collection(config(), request, Response(), downstream)
        assert book_query.pks_lookups == [[1, 2]]

    @pytest.mark.asyncio
    async def test_body_is_ignored_for_get(self, factory, downstream, book_query):
        request = make_request("GET", body={"id": [1, 2]})
        response = await factory.fetch_collection(config(), request, Response(), downstream)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_before_fetch_rewrites_key_set(self, factory, downstream, book_query):
        def before(entity_request, query):
            entity_request.primary_key = [pk for pk in entity_request.primary_key if pk != "1"]

        cfg = config(hooks=EntityHooks(before_fetch=before))
        await factory.fetch_collection(cfg, make_request(query={"id": ["1", "2"]}), Response(), downstream)
        assert book_query.pks_lookups == [["2"]]

    @pytest.mark.asyncio
    async def test_after_fetch_collection_hook(self, factory, downstream, book_query):
        sizes: list[int] = []
        cfg = config(hooks=EntityHooks(after_fetch_collection=lambda er, c: sizes.append(len(c))))
        await factory.fetch_collection(cfg, make_request(query={"id": ["1", "2", "9"]}), Response(), downstream)
        assert sizes == [2]

    @pytest.mark.asyncio
    async def test_hydration_is_not_supported(self, factory, downstream, book_query):
        cfg = config(hydrate_entity_from_request=True)
        with pytest.raises(HydrationNotSupportedError):
            await factory.fetch_collection(cfg, make_request(query={"id": ["1"]}), Response(), downstream)
        assert book_query.pks_lookups == []

    @pytest.mark.asyncio
    async def test_middleware_adapters(self, factory, downstream, book_query):
        middleware = factory.fetching_collection(config())
        await middleware(make_request(query={"id": ["1"]}), Response(), downstream)
        assert len(downstream.attribute("book")) == 1
