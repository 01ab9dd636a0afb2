"""
Tests for the price reconciler API.
"""

import pytest
from fastapi.testclient import TestClient

from price_reconciler.api.app import app
from price_reconciler.entities import VendorDetail, VendorEntry, VendorStats
from price_reconciler.errors import ConnectionFailure, InvalidRequest, MalformedResponse, MappingAbsent, UpstreamFailure
from price_reconciler.handlers import PriceHandler, failure_to_http
from price_reconciler.repositories import TTLCache
from price_reconciler.services import FuzzyRanker, PriceService
from tests.fakes import FakeDataProvider, mapping, product


@pytest.fixture
def provider():
    """Offline provider with one mapped vendor."""
    info = mapping("abc123", "xyz789", "Burger House", "Burger House TF")
    return FakeDataProvider(
        details={("snappfood", "abc123"): VendorDetail(info, {101: 9001, 102: 9002})},
        products={
            ("snappfood", "abc123"): {101: product(101, "Burger", 100_000), 102: product(102, "Fries", 50_000)},
            ("tapsifood", "xyz789"): {9001: product(9001, "Burger", 90_000), 9002: product(9002, "Fries", 55_000)},
        },
        vendors=[VendorEntry(mapping=info, item_count=2), VendorEntry(mapping=mapping("k1", "t1", "Kebab Land"))],
        stats=VendorStats(total_vendors=2, total_items=2),
    )


@pytest.fixture
def client(provider):
    """Create a test client wired to the offline provider."""
    service = PriceService(
        provider=provider,
        vendor_cache=TTLCache(capacity=10, ttl=60, name="vendor_data"),
        vendor_list_cache=TTLCache(capacity=1, ttl=60, name="vendor_list"),
        stats_cache=TTLCache(capacity=1, ttl=60, name="stats"),
    )
    app.state.price_handler = PriceHandler(price_service=service, ranker=FuzzyRanker.create())
    yield TestClient(app)
    del app.state.price_handler


def test_root(client):
    """Test root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "name" in data
    assert data["name"] == "Price Reconciler API"


def test_health(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "vendor_data" in data["caches"]


def test_health_unhealthy(client, provider):
    """Unreachable comparison API is reported, not raised."""
    provider.errors["health"] = ConnectionFailure("down")

    data = client.get("/health").json()

    assert data["status"] == "unhealthy"
    assert "unreachable" in data["detail"]


def test_fetch_prices(client):
    """Test fetch prices endpoint."""
    response = client.post("/prices", json={"source_platform": "snappfood", "sf_vendor_code": "abc123"})
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["comparison_count"] == 2
    assert data["data"]["101"]["price_diff"] == 10_000
    assert data["data"]["102"]["is_more_expensive"] is True
    assert data["counterpart_url"] == "https://tapsi.food/vendor/xyz789"


def test_fetch_prices_requires_source_code(client):
    response = client.post("/prices", json={"source_platform": "snappfood", "tf_vendor_code": "xyz789"})
    assert response.status_code == 422


def test_fetch_prices_unknown_vendor(client):
    response = client.post("/prices", json={"source_platform": "snappfood", "sf_vendor_code": "nope"})
    assert response.status_code == 404


def test_fetch_prices_upstream_down(client, provider):
    provider.errors["products:snappfood"] = ConnectionFailure("down")

    response = client.post("/prices", json={"source_platform": "snappfood", "sf_vendor_code": "abc123"})

    assert response.status_code == 503


def test_list_vendors(client):
    """Test vendor list endpoint."""
    response = client.get("/vendors")
    assert response.status_code == 200
    data = response.json()
    assert [v["vendor_mapping"]["sf_code"] for v in data["vendors"]] == ["abc123", "k1"]
    assert data["stats"]["total_vendors"] == 2
    assert data["api_errors"] == {}


def test_list_vendors_partial_failure(client, provider):
    provider.errors["vendors"] = MalformedResponse("bad list")

    data = client.get("/vendors").json()

    assert data["vendors"] == []
    assert "vendors" in data["api_errors"]
    assert data["stats"]["total_vendors"] == 2


def test_search_vendor_products(client):
    """Test search over one vendor's comparisons."""
    response = client.post(
        "/search",
        json={"query": "burger", "source_platform": "snappfood", "vendor_code": "abc123"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["has_product_data"] is True
    assert data["total"] == 1
    assert data["results"][0]["comparison"]["base_product"]["name"] == "Burger"


def test_search_results_are_not_shared_between_vendors(client, provider):
    """The same query for two vendors returns each vendor's own products."""
    provider.details[("snappfood", "def456")] = VendorDetail(mapping("def456", "uvw000", "Grill Bar"), {201: 9201})
    provider.products[("snappfood", "def456")] = {201: product(201, "Burger Deluxe", 150_000)}
    provider.products[("tapsifood", "uvw000")] = {9201: product(9201, "Burger Deluxe", 140_000)}

    first = client.post("/search", json={"query": "burger", "source_platform": "snappfood", "vendor_code": "abc123"})
    second = client.post("/search", json={"query": "burger", "source_platform": "snappfood", "vendor_code": "def456"})

    assert [r["comparison"]["base_product"]["name"] for r in first.json()["results"]] == ["Burger"]
    assert [r["comparison"]["base_product"]["name"] for r in second.json()["results"]] == ["Burger Deluxe"]


def test_search_vendor_list(client):
    """Without a vendor the vendor list is searched."""
    response = client.post("/search", json={"query": "kebab"})
    assert response.status_code == 200
    data = response.json()
    assert data["has_product_data"] is False
    assert data["results"][0]["vendor"]["vendor_mapping"]["sf_code"] == "k1"


def test_search_filters_and_limit(client):
    response = client.post(
        "/search",
        json={
            "source_platform": "snappfood",
            "vendor_code": "abc123",
            "category": "sf-cheaper",
            "sort": "price-asc",
            "limit": 1,
        },
    )
    data = response.json()
    assert data["total"] == 1
    assert data["results"][0]["comparison"]["base_product"]["name"] == "Fries"


def test_search_requires_platform_with_vendor(client):
    response = client.post("/search", json={"query": "x", "vendor_code": "abc123"})
    assert response.status_code == 422


def test_get_metrics(client):
    """Test metrics endpoint."""
    client.get("/vendors")
    response = client.get("/metrics")
    assert response.status_code == 200
    data = response.json()
    assert data["performance"]["cache_misses"] == 2
    assert "search" in data["caches"]


def test_clear_cache(client):
    """Test clear cache endpoint."""
    client.get("/vendors")
    client.post("/search", json={"query": "kebab"})

    response = client.delete("/cache")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["cleared"]["vendor_list"] == 1
    assert data["cleared"]["search"] == 1


@pytest.mark.parametrize(
    "error, code",
    [
        (InvalidRequest("bad"), 400),
        (ConnectionFailure("down"), 503),
        (MappingAbsent("snappfood", "x"), 404),
        (UpstreamFailure("API error: 404", status_code=404), 404),
        (UpstreamFailure("API error: 500", status_code=500), 502),
        (MalformedResponse("bad"), 502),
        (RuntimeError("bug"), 500),
    ],
)
def test_failure_to_http(error, code):
    assert failure_to_http(error).status_code == code
