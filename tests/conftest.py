# tests/conftest.py
from __future__ import annotations

import pytest

from recordgate.action.strategy import ActionStrategy
from recordgate.services.pagination import RequestPagination
from recordgate.services.query_modifier import RequestQueryModifier
from recordgate.services.response import JsonResponseFormatter, ResponseBuilder

from fakes import FakeBookAction, FakeBookQuery, make_books


@pytest.fixture
def book_query():
    query = FakeBookQuery(make_books())
    FakeBookAction.query = query
    yield query
    FakeBookAction.query = None


@pytest.fixture
def strategy() -> ActionStrategy:
    return ActionStrategy(
        response_builder=ResponseBuilder(),
        response_formatter=JsonResponseFormatter(),
        query_modifier_factory=RequestQueryModifier.from_request,
        pagination_factory=RequestPagination.from_request,
    )
