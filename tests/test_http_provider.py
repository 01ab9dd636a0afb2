"""
Tests for the HTTP data provider against a mocked transport.
"""

import httpx
import pytest

from price_reconciler.config import settings
from price_reconciler.errors import ConnectionFailure, MalformedResponse, TimeoutFailure, UpstreamFailure
from price_reconciler.protocols import DataProvider
from price_reconciler.repositories import HttpDataProvider
from price_reconciler.repositories.http_data_provider import parse_vendor_entry

BASE_URL = "http://comparison.test"

VENDOR_DATA = {
    "vendor_info": {
        "id": 7,
        "sf_code": "abc123",
        "sf_name": "Burger House",
        "tf_code": "xyz789",
        "tf_name": "Burger House TF",
    },
    "item_mappings": {"101": 9001, "102": "9002", "103": None},
}

SNAPPFOOD_MENU = {
    "data": {
        "menus": [
            {
                "products": [
                    {"id": 101, "title": " Cheese Burger ", "price": 120000, "discount": 20000, "discountRatio": 16},
                    {"id": 102, "title": "Fries", "price": 50000},
                    {"id": 103, "price": 1000},
                ]
            },
            {"category": "no products here"},
        ]
    }
}

TAPSIFOOD_MENU = {
    "data": {
        "categories": [
            {
                "products": [
                    {
                        "productId": 9001,
                        "productName": "Cheese Burger",
                        "productVariations": [{"price": 110000, "priceAfterDiscount": 99000}],
                    },
                    {"productId": 9002, "productName": "Fries", "productVariations": [{"price": 48000}]},
                    {"productId": 9003, "productName": "No variations", "productVariations": []},
                ]
            }
        ]
    }
}


class NoSleep:
    def __init__(self) -> None:
        self.delays = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def make_provider(handler, sleep=None, retry_attempts=3):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpDataProvider(
        base_url=BASE_URL,
        timeout=1.0,
        retry_attempts=retry_attempts,
        retry_base_delay=1.0,
        retry_max_delay=1.5,
        client=client,
        sleep=sleep or NoSleep(),
    )


def test_satisfies_protocol():
    assert isinstance(make_provider(lambda request: httpx.Response(200, json={})), DataProvider)


@pytest.mark.asyncio
async def test_fetch_vendor_mapping():
    requested = []

    def handler(request):
        requested.append(request.url.path)
        return httpx.Response(200, json=VENDOR_DATA)

    detail = await make_provider(handler).fetch_vendor_mapping("snappfood", "abc123")

    assert requested == ["/extension/vendor-data/snappfood/abc123"]
    assert detail.vendor_info.tf_code == "xyz789"
    assert detail.item_mappings == {101: 9001, 102: 9002}


@pytest.mark.asyncio
async def test_missing_vendor_info_is_malformed():
    provider = make_provider(lambda request: httpx.Response(200, json={"item_mappings": {}}))

    with pytest.raises(MalformedResponse):
        await provider.fetch_vendor_mapping("snappfood", "abc123")


@pytest.mark.asyncio
async def test_not_found_surfaces_immediately():
    calls = []

    def handler(request):
        calls.append(1)
        return httpx.Response(404, json={"detail": "not found"})

    provider = make_provider(handler)
    with pytest.raises(UpstreamFailure) as exc_info:
        await provider.fetch_vendor_mapping("tapsifood", "nope")

    assert exc_info.value.status_code == 404
    assert len(calls) == 1
    assert provider.metrics.errors == 1


@pytest.mark.asyncio
async def test_timeouts_are_retried_with_growing_delay():
    calls = []
    sleep = NoSleep()

    def handler(request):
        calls.append(1)
        if len(calls) < 3:
            raise httpx.ReadTimeout("slow", request=request)
        return httpx.Response(200, json={"total_vendors": 3})

    stats = await make_provider(handler, sleep=sleep).fetch_stats()

    assert stats.total_vendors == 3
    assert stats.total_items == 0
    assert len(calls) == 3
    assert sleep.delays == [1.0, 1.5]


@pytest.mark.asyncio
async def test_retries_exhausted():
    calls = []
    sleep = NoSleep()

    def handler(request):
        calls.append(1)
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ConnectionFailure):
        await make_provider(handler, sleep=sleep, retry_attempts=2).fetch_vendor_list()

    assert len(calls) == 2
    assert sleep.delays == [1.0]


@pytest.mark.asyncio
async def test_timeout_failure_type():
    def handler(request):
        raise httpx.ConnectTimeout("slow", request=request)

    with pytest.raises(TimeoutFailure):
        await make_provider(handler, retry_attempts=1).health()


@pytest.mark.asyncio
async def test_invalid_json_is_malformed():
    provider = make_provider(lambda request: httpx.Response(200, content=b"<html>"))

    with pytest.raises(MalformedResponse):
        await provider.fetch_stats()


@pytest.mark.asyncio
async def test_vendor_list_accepts_flat_and_wrapped_rows():
    rows = [
        {"sf_code": "a1", "sf_name": "A", "tf_code": "t1", "tf_name": "A TF"},
        {"vendor_mapping": {"sf_code": "b2", "sf_name": "B", "tf_code": "t2", "tf_name": "B TF"}, "item_count": 12},
        {"unexpected": True},
        "garbage",
    ]

    def handler(request):
        assert request.url.params["limit"] == "1000"
        return httpx.Response(200, json=rows)

    vendors = await make_provider(handler).fetch_vendor_list()

    assert [entry.mapping.sf_code for entry in vendors] == ["a1", "b2"]
    assert vendors[1].item_count == 12


@pytest.mark.asyncio
async def test_vendor_list_must_be_an_array():
    provider = make_provider(lambda request: httpx.Response(200, json={"vendors": []}))

    with pytest.raises(MalformedResponse):
        await provider.fetch_vendor_list()


@pytest.mark.asyncio
async def test_snappfood_products():
    def handler(request):
        assert str(request.url).startswith(settings.snappfood_url)
        assert request.url.params["vendorCode"] == "abc123"
        return httpx.Response(200, json=SNAPPFOOD_MENU)

    products = await make_provider(handler).fetch_platform_products("snappfood", "abc123")

    assert sorted(products) == [101, 102]
    burger = products[101]
    assert burger.name == "Cheese Burger"
    assert burger.price == 100000
    assert burger.original_price == 120000
    assert burger.discount == 20000
    assert products[102].price == 50000


@pytest.mark.asyncio
async def test_tapsifood_products():
    def handler(request):
        assert request.url.path.endswith("/xyz789/vendor")
        return httpx.Response(200, json=TAPSIFOOD_MENU)

    products = await make_provider(handler).fetch_platform_products("tapsifood", "xyz789")

    assert sorted(products) == [9001, 9002]
    assert products[9001].price == 99000
    assert products[9001].discount == 11000
    assert products[9002].price == 48000


@pytest.mark.asyncio
async def test_unexpected_menu_shape_is_malformed():
    provider = make_provider(lambda request: httpx.Response(200, json={"data": {}}))

    with pytest.raises(MalformedResponse):
        await provider.fetch_platform_products("tapsifood", "xyz789")


@pytest.mark.asyncio
async def test_unknown_platform():
    with pytest.raises(ValueError):
        await make_provider(lambda request: httpx.Response(200)).fetch_platform_products("ubereats", "x")


@pytest.mark.asyncio
async def test_close_releases_client():
    provider = make_provider(lambda request: httpx.Response(200, json={"status": "ok"}))
    assert await provider.health() == {"status": "ok"}

    await provider.close()
    await provider.close()


def test_parse_vendor_entry_rejects_unknown_rows():
    assert parse_vendor_entry({"sf_code": "a1"}) is None
    assert parse_vendor_entry(None) is None
