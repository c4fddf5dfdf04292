from unittest import mock

import pytest
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError

from main import app, get_store


@pytest.fixture
def client(seeded_store):
    app.dependency_overrides[get_store] = lambda: seeded_store
    yield TestClient(app)
    app.dependency_overrides.clear()


def names(body):
    return {p["name"] for p in body["data"]}


def test_root_lists_endpoints(client):
    body = client.get("/").json()
    assert "GET /api/products" in body["endpoints"]


def test_list_products(client):
    res = client.get("/api/products")

    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["count"] == 4
    nike = next(p for p in body["data"] if p["name"] == "Nike Air Max 270")
    assert nike["totalStock"] == 95
    assert nike["hasStock"] is True
    assert nike["basePrice"] == 150
    assert "_id" in nike and "_id" in nike["variants"][0]


def test_products_by_category(client):
    body = client.get("/api/products/category/Electronics").json()
    assert body["count"] == 1
    assert names(body) == {"iPhone 15 Pro"}


def test_products_by_category_with_space(client):
    body = client.get("/api/products/category/Home%20%26%20Kitchen").json()
    assert names(body) == {"Stainless Steel Cookware Set"}


def test_unknown_category_is_bad_request(client):
    res = client.get("/api/products/category/Nonexistent")

    assert res.status_code == 400
    body = res.json()
    assert body["success"] is False
    assert "not a valid category" in body["error"]


def test_low_stock_default_threshold(client):
    body = client.get("/api/products/alert/low-stock").json()

    assert body["threshold"] == 10
    assert names(body) == {"iPhone 15 Pro", "Nike Air Max 270"}


def test_low_stock_custom_threshold(client):
    body = client.get("/api/products/alert/low-stock", params={"threshold": 0}).json()
    assert names(body) == {"Nike Air Max 270"}


def test_search_by_color(client):
    body = client.get("/api/products/search/color", params={"color": "white"}).json()
    assert names(body) == {"iPhone 15 Pro", "Nike Air Max 270"}


def test_search_by_sku_prefix(client):
    body = client.get("/api/products/search/sku", params={"prefix": "BOOK-"}).json()
    assert names(body) == {"The Great Gatsby"}


def test_category_prices(client):
    body = client.get("/api/products/stats/category-prices").json()

    assert body["count"] == 4
    assert body["data"][0] == {"_id": "Electronics", "avgPrice": 999, "productCount": 1}


def test_high_stock(client):
    body = client.get("/api/products/stats/high-stock", params={"min_total": 100}).json()

    assert body["minTotal"] == 100
    assert [p["name"] for p in body["data"]] == ["The Great Gatsby"]
    assert body["data"][0]["totalStock"] == 180


def test_get_product(client, seeded_store):
    product_id = seeded_store.find_by_category("Books")[0].id

    body = client.get(f"/api/products/{product_id}").json()

    assert body["data"]["name"] == "The Great Gatsby"
    assert len(body["data"]["variants"]) == 3


def test_get_product_errors(client):
    assert client.get("/api/products/not-an-id").status_code == 400
    res = client.get("/api/products/65a000000000000000000000")
    assert res.status_code == 404
    assert res.json()["success"] is False


def test_update_stock(client):
    res = client.patch("/api/variants/NIKE-AM270-BW-9/stock", json={"stock": 40})

    assert res.status_code == 200
    variants = res.json()["data"]["variants"]
    assert [v["stock"] for v in variants] == [40, 32, 18, 0]


def test_update_stock_errors(client):
    assert client.patch("/api/variants/NIKE-AM270-BW-9/stock", json={"stock": -1}).status_code == 400
    assert client.patch("/api/variants/UNKNOWN/stock", json={"stock": 1}).status_code == 404


def test_seed_only_when_empty(client, seeded_store):
    assert client.post("/api/seed", json={}).json()["message"] == "Already seeded"

    seeded_store.replace_all([])
    assert client.post("/api/seed", json={}).json()["seeded"] == 4
    assert client.post("/api/seed", json={"force": True}).json()["seeded"] == 4
    assert len(list(seeded_store.find_all())) == 4


def test_storage_failure_is_service_unavailable(client, seeded_store):
    down = ServerSelectionTimeoutError("no servers")
    with mock.patch.object(seeded_store._collection, "find", side_effect=down):
        res = client.get("/api/products")

    assert res.status_code == 503
    assert res.json()["message"] == "Database unavailable"


def test_non_numeric_threshold_is_bad_request_envelope(client):
    res = client.get("/api/products/alert/low-stock", params={"threshold": "abc"})

    assert res.status_code == 400
    body = res.json()
    assert body["success"] is False
    assert body["message"] == "Invalid request"
    assert body["error"].startswith("threshold:")


def test_negative_threshold_matches_nothing(client):
    body = client.get("/api/products/alert/low-stock", params={"threshold": -1}).json()

    assert body["success"] is True
    assert body["threshold"] == -1
    assert body["count"] == 0


def test_missing_query_parameter_uses_envelope(client):
    res = client.get("/api/products/search/color")

    assert res.status_code == 400
    assert res.json()["success"] is False
    assert "color" in res.json()["error"]


def test_malformed_stock_body_uses_envelope(client):
    res = client.patch("/api/variants/NIKE-AM270-BW-9/stock", json={"stock": "many"})

    assert res.status_code == 400
    assert res.json()["error"].startswith("stock:")


def test_not_found_messages_name_the_resource(client):
    product = client.get("/api/products/65a000000000000000000000").json()
    variant = client.patch("/api/variants/UNKNOWN/stock", json={"stock": 1}).json()

    assert product["message"] == "Product not found"
    assert variant["message"] == "Variant not found"
