import json
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlsplit

import pytest
import requests
import responses

from vestro.dto import ZERO_TIME, Product, Supply, Vehicle
from vestro.ports import IntegrationError
from vestro.vestro_api import (
    ApiClient,
    VestroApiError,
    fetch_and_aggregate,
    format_start_date,
)

BASE = "http://vestro.example.com/api"


@pytest.fixture
def mocked():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


def _query(url):
    return {k: v[0] for k, v in parse_qs(urlsplit(url).query).items()}


def test_format_start_date_utc():
    since = datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)
    assert format_start_date(since) == "2024-05-06T07-08-09Z"


def test_format_start_date_converts_to_utc():
    since = datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone(timedelta(hours=-3)))
    assert format_start_date(since) == "2024-05-06T10-08-09Z"


def test_authenticate_returns_access(mocked):
    mocked.add(
        responses.POST,
        f"{BASE}/sessions",
        json={"success": True, "data": {"session": "s", "access": "token"}},
    )
    password = "password"
    client = ApiClient(BASE)
    assert client.authenticate("someone", password) == "token"
    sent = mocked.calls[0].request
    assert parse_qs(sent.body) == {"login": ["someone"], "password": ["password"]}
    assert sent.headers["Content-Type"] == "application/x-www-form-urlencoded"


def test_authenticate_bad_status(mocked):
    mocked.add(responses.POST, f"{BASE}/sessions", status=401)
    password = "password"
    with pytest.raises(VestroApiError, match="auth request failed with status: 401"):
        ApiClient(BASE).authenticate("someone", password)


def test_authenticate_not_successful(mocked):
    mocked.add(responses.POST, f"{BASE}/sessions", json={"success": False, "data": {}})
    password = "password"
    with pytest.raises(VestroApiError, match="authentication failed on API"):
        ApiClient(BASE).authenticate("someone", password)


def test_authenticate_invalid_json(mocked):
    mocked.add(responses.POST, f"{BASE}/sessions", body="not json")
    password = "password"
    with pytest.raises(VestroApiError, match="failed to decode auth response"):
        ApiClient(BASE).authenticate("someone", password)


def test_authenticate_connection_error(mocked):
    password = "password"
    with pytest.raises(IntegrationError, match="failed to execute auth request"):
        ApiClient(BASE).authenticate("someone", password)


def test_paginates_until_short_page(mocked):
    def callback(request):
        start = int(_query(request.url)["start"])
        count = 100 if start == 0 else 5
        items = [{"id": start + i, "name": f"p{start + i}"} for i in range(count)]
        return 200, {}, json.dumps({"success": True, "data": items})

    mocked.add_callback(responses.GET, f"{BASE}/products", callback=callback)
    products = ApiClient(BASE).get_products("token")
    assert len(products) == 105
    assert [p.id for p in products] == list(range(105))
    assert [_query(c.request.url)["start"] for c in mocked.calls] == ["0", "100"]


def test_supplies_query_carries_filters(mocked):
    mocked.add(
        responses.GET,
        f"{BASE}/supplies",
        json={"success": True, "data": [{"id": 7, "fuel": "diesel", "driver": "someone"}]},
    )
    since = datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)
    supplies = ApiClient(BASE).get_supplies("token", since, "someone")
    assert supplies == [Supply(id=7, fuel="diesel", driver="someone")]
    request = mocked.calls[0].request
    assert request.headers["Authorization"] == "Bearer token"
    query = _query(request.url)
    assert query == {
        "start": "0",
        "limit": "100",
        "sort": "true",
        "startDate": format_start_date(since),
        "property": "driver",
        "search": "someone",
    }
    keys = [part.split("=")[0] for part in urlsplit(request.url).query.split("&")]
    assert keys == sorted(keys)


def test_product_sales_path(mocked):
    mocked.add(
        responses.GET,
        f"{BASE}/product/sales",
        json={"success": True, "data": [{"id": 3, "serialNumber": "SN-TEST", "amount": "2"}]},
    )
    since = datetime(2024, 1, 1, tzinfo=timezone.utc)
    sales = ApiClient(BASE).get_product_sales("token", since, "someone")
    assert [(s.id, s.serial_number, s.amount) for s in sales] == [(3, "SN-TEST", "2")]


def test_master_data_has_no_date_or_filter(mocked):
    mocked.add(
        responses.GET,
        f"{BASE}/vehicles",
        json={
            "success": True,
            "data": [{"id": 1, "plate": "TEST-0000", "companyName": "Acme", "active": True}],
        },
    )
    vehicles = ApiClient(BASE).get_vehicles("token")
    assert vehicles == [Vehicle(id=1, plate="TEST-0000", company="Acme", is_active=True)]
    query = _query(mocked.calls[0].request.url)
    assert "startDate" not in query
    assert "property" not in query
    assert "search" not in query


@pytest.mark.parametrize(
    "method, path",
    [
        ("get_fuel_types", "/fuel/types"),
        ("get_drivers", "/drivers"),
        ("get_employees", "/employees"),
    ],
)
def test_master_data_paths(mocked, method, path):
    mocked.add(
        responses.GET,
        f"{BASE}{path}",
        json={"success": True, "data": [{"id": 9, "name": "n"}]},
    )
    items = getattr(ApiClient(BASE), method)("token")
    assert [(i.id, i.name) for i in items] == [(9, "n")]
    assert urlsplit(mocked.calls[0].request.url).path == urlsplit(f"{BASE}{path}").path


def test_zero_since_omits_start_date(mocked):
    mocked.add(responses.GET, f"{BASE}/products", json={"success": True, "data": []})
    result = fetch_and_aggregate(
        requests.Session(), BASE, "token", "/products", Product, ZERO_TIME, "driver", ""
    )
    assert result == []
    query = _query(mocked.calls[0].request.url)
    assert "startDate" not in query
    assert "property" not in query


def test_malformed_items_are_skipped(mocked):
    mocked.add(
        responses.GET,
        f"{BASE}/products",
        json={"success": True, "data": [{"id": 1, "name": "ok"}, "bad", {"id": "x"}]},
    )
    products = ApiClient(BASE).get_products("token")
    assert products == [Product(id=1, name="ok")]


def test_bad_status_includes_body(mocked):
    mocked.add(responses.GET, f"{BASE}/products", status=500, body="boom")
    with pytest.raises(VestroApiError) as info:
        ApiClient(BASE).get_products("token")
    assert "/products" in str(info.value)
    assert "boom" in str(info.value)


def test_not_successful_wrapper(mocked):
    mocked.add(responses.GET, f"{BASE}/drivers", json={"success": False, "data": []})
    with pytest.raises(VestroApiError, match="was not successful"):
        ApiClient(BASE).get_drivers("token")


def test_data_not_array_is_decode_error(mocked):
    mocked.add(responses.GET, f"{BASE}/drivers", json={"success": True, "data": {"id": 1}})
    with pytest.raises(VestroApiError, match="failed to decode wrapper for /drivers"):
        ApiClient(BASE).get_drivers("token")


def test_connection_error(mocked):
    with pytest.raises(VestroApiError, match="request to /employees failed"):
        ApiClient(BASE).get_employees("token")