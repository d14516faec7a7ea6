# tests/test_app.py
from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from recordgate.main import create_app
from recordgate.routing.router import ActionRouter, no_session

from fakes import BookActions

ROUTES = """
routes:
  - path: /books/{id}
    action: fakes:BookActions.show
    entity:
      record: sample_records:Book
      action: fakes:BookActions
      attribute: book
"""


def filtered_router(entity_factory, strategy, session) -> ActionRouter:
    router = ActionRouter(strategy=strategy, session_scope=session, prefix="/search")
    router.get("/books", (BookActions, "filtered"))
    return router


@pytest.fixture
def client(tmp_path: Path, book_query) -> TestClient:
    routes = tmp_path / "routes.yaml"
    routes.write_text(ROUTES, encoding="utf-8")
    app = create_app(
        routers=[filtered_router],
        routes_config_paths=[str(routes)],
        session=no_session,
    )
    return TestClient(app)


class TestCreateApp:
    def test_health(self, client):
        res = client.get("/health")
        assert res.status_code == 200
        assert res.json() == {"status": "ok"}

    def test_yaml_routes_are_mounted(self, client):
        assert client.get("/books/2").json()["title"] == "Hyperion"
        assert client.get("/books/8").status_code == 404

    def test_code_routers_are_mounted(self, client):
        res = client.get("/search/books", params={"filter": '[{"property": "title", "value": "x"}]'})
        assert res.json() == {"filters": 1}

    def test_invalid_query_modifier_is_a_bad_request(self, client):
        res = client.get("/search/books", params={"filter": "[{"})
        assert res.status_code == 400
        assert res.json()["error"] == "invalid_query"

    def test_services_on_state(self, client):
        assert client.app.state.strategy is not None
        assert client.app.state.entity_factory is not None

    def test_no_route_files(self, tmp_path):
        app = create_app(routes_config_paths=[str(tmp_path / "none-*.yaml")], session=no_session)
        paths = {route.path for route in app.routes}
        assert "/health" in paths
        assert "/books/{id}" not in paths
