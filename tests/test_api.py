"""
Tests for the REST API.
"""

import pytest
from fastapi.testclient import TestClient

from src.api.config import APISettings
from src.api.main import create_application

API = "/api/v1"


def make_client(settings, **api_overrides) -> TestClient:
    api_settings = APISettings(ENABLE_CORS=False, **api_overrides)
    return TestClient(create_application(settings, api_settings))


@pytest.fixture
def client(settings):
    with make_client(settings) as client:
        yield client


@pytest.fixture
def books(client):
    assert client.post(f"{API}/tables", json={"name": "books"}).status_code == 201
    response = client.post(f"{API}/tables/books/columns", json={"name": "title"})
    assert response.status_code == 201
    return "books"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["dialect"] == "sqlite"


def test_item_lifecycle(client, books):
    created = client.post(f"{API}/tables/books/items", json={"fields": {"title": "Dune"}})
    assert created.status_code == 201
    item_id = created.json()["id"]
    client.post(f"{API}/tables/books/items", json={"fields": {"title": "Emma"}})

    listing = client.get(f"{API}/tables/books/items", params={"contains": "title:un"}).json()
    assert listing["count"] == 1
    assert listing["items"][0]["fields"] == {"title": "Dune"}

    edited = client.patch(f"{API}/tables/books/items/{item_id}", json={"fields": {"title": "Dune II"}})
    assert edited.json()["fields"]["title"] == "Dune II"
    assert client.get(f"{API}/tables/books/items", params={"where": "title:Dune II"}).json()["count"] == 1
    assert client.get(f"{API}/tables/books/items/last").json()["fields"]["title"] == "Emma"

    assert client.delete(f"{API}/tables/books/items/{item_id}").json() == {"deleted": True}
    assert client.delete(f"{API}/tables/books/items/{item_id}").json() == {"deleted": False}
    assert client.get(f"{API}/tables/books/items/{item_id}").status_code == 404


def test_table_endpoints(client, books):
    assert [t["name"] for t in client.get(f"{API}/tables").json()] == ["books"]

    updated = client.patch(f"{API}/tables/books", json={"title": "Library"})
    assert updated.json()["title"] == "Library"

    structure = client.get(f"{API}/tables/books/structure").json()
    assert [f["name"] for f in structure["fields"]] == ["id", "created_at", "updated_at", "title"]
    assert structure["view_type"] == "table"

    physical = {t["table_name"]: t for t in client.get(f"{API}/tables/database").json()}
    assert physical["books"]["has_configuration"] is True

    registered = client.post(f"{API}/tables/register", json={"name": "library", "table": "books"})
    assert registered.status_code == 201
    assert registered.json()["table"] == "books"


def test_error_mapping(client, books):
    missing = client.get(f"{API}/tables/nope/items")
    assert missing.status_code == 404
    assert missing.json()["error"] == "not_found"

    unsupported = client.put(f"{API}/tables/books/columns/title/type", json={"new_type": "integer"})
    assert unsupported.status_code == 501
    assert unsupported.json()["error"] == "unsupported_on_dialect"

    protected = client.delete(f"{API}/tables/books/columns/id")
    assert protected.status_code == 400
    assert protected.json()["error"] == "protected_column"

    duplicate = client.post(f"{API}/tables", json={"name": "books"})
    assert duplicate.status_code == 409

    bad_filter = client.get(f"{API}/tables/books/items", params={"where": "title"})
    assert bad_filter.status_code == 400

    empty_edit = client.patch(f"{API}/tables/books/items/1", json={"fields": {}})
    assert empty_edit.status_code == 400

    foreign_key = client.post(
        f"{API}/tables/books/foreign-keys",
        json={"column": "title", "referenced_table": "books"},
    )
    assert foreign_key.status_code == 501
    assert client.get(f"{API}/tables/books/foreign-keys").json() == []


def test_views(client, books):
    created = client.post(
        f"{API}/tables/books/views",
        json={
            "view_name": "Main",
            "is_default": True,
            "columns": [
                {"column_name": "title", "column_order": 0, "sort_order": "asc"},
                {"column_name": "created_at", "is_visible": False},
            ],
        },
    )
    assert created.status_code == 201
    view = created.json()
    assert [c["column_name"] for c in view["columns"]] == ["title"]

    updated = client.put(
        f"{API}/tables/books/views/{view['id']}",
        json={"view_name": "Calendar", "view_type": "calendar", "columns": []},
    )
    assert updated.json()["view_type"] == "calendar"
    assert client.get(f"{API}/views/{view['id']}").json()["view_name"] == "Calendar"
    assert [v["view_name"] for v in client.get(f"{API}/tables/books/views").json()] == ["Calendar"]

    assert client.delete(f"{API}/views/{view['id']}").json() == {"deleted": True}
    assert client.get(f"{API}/views/{view['id']}").status_code == 404


def test_requests_need_no_api_key(settings):
    # Caller identity is established in front of the API
    assert "ENABLE_AUTH" not in APISettings.model_fields
    with make_client(settings, ENABLE_AUTH=True, API_KEYS=["secret"]) as client:
        assert client.get(f"{API}/tables").status_code == 200
        assert client.get(f"{API}/").status_code == 200
