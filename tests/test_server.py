"""
Tests for the HTTP surface: routing, validation, error mapping, CORS.
"""

from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio

from polynuts.api.server import CONFIGURATION_MESSAGE, create_app, parse_flag, parse_limit
from polynuts.exceptions import ValidationError


@pytest_asyncio.fixture
async def api(make_settings, credentials, client):
    """API wired to the exchange client that points at the stubs."""
    app = create_app(make_settings(credentials), client=client)
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as http:
        yield http


@pytest_asyncio.fixture
async def unconfigured_api(make_settings):
    """API with no credentials in the environment."""
    app = create_app(make_settings(None))
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as http:
        yield http


class TestQueryParsing:
    """Tests for query-string helpers."""

    def test_flags(self):
        assert parse_flag("true") is True
        assert parse_flag("false") is False
        assert parse_flag("TRUE") is None
        assert parse_flag(None) is None

    def test_limit(self):
        assert parse_limit("20") == 20
        assert parse_limit(None) is None
        with pytest.raises(ValidationError):
            parse_limit("abc")
        with pytest.raises(ValidationError):
            parse_limit("0")


class TestServiceRoutes:
    """Tests for health, index and CORS handling."""

    @pytest.mark.asyncio
    async def test_health(self, unconfigured_api):
        response = await unconfigured_api.get("/health")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "ok"
        assert body["service"] == "Polynuts API"
        assert "timestamp" in body
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    @pytest.mark.asyncio
    async def test_index_lists_endpoints(self, unconfigured_api):
        response = await unconfigured_api.get("/")

        assert response.status_code == 200
        assert set(response.json()["endpoints"]) >= {"health", "markets", "orderbook", "positions", "orders"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/markets", "/orderbook", "/orders", "/positions", "/health"])
    async def test_options_preflight(self, unconfigured_api, path):
        """Every route answers OPTIONS with 200, no body and CORS headers."""
        response = await unconfigured_api.options(path)

        assert response.status_code == 200
        assert response.content == b""
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert response.headers["Access-Control-Allow-Credentials"] == "true"
        assert "DELETE" in response.headers["Access-Control-Allow-Methods"]

    @pytest.mark.asyncio
    async def test_cors_headers_on_errors(self, unconfigured_api):
        response = await unconfigured_api.get("/orderbook")

        assert response.status_code == 400
        assert response.headers["Access-Control-Allow-Origin"] == "*"


class TestMarketRoutes:
    """Tests for /markets and /prices."""

    @pytest.mark.asyncio
    async def test_markets_end_to_end(self, api, data_api):
        """GET /markets?active=true&limit=20 relays the results envelope's list."""
        data_api.add("GET", "/markets", json={"results": [{"id": "m1"}]})

        response = await api.get("/markets", params={"active": "true", "limit": "20"})

        assert response.status_code == 200
        assert response.json() == [{"id": "m1"}]
        assert data_api.paths == ["/markets?active=true&limit=20"]

    @pytest.mark.asyncio
    async def test_markets_exhaustion_is_empty_list(self, api, data_api):
        for path in ("/markets", "/gamma/markets", "/core/markets"):
            data_api.add("GET", path, json={"unexpected": "shape"})

        response = await api.get("/markets")

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_single_market(self, api, data_api):
        data_api.add("GET", "/markets/m1", json={"id": "m1", "question": "Q?"})

        response = await api.get("/markets", params={"marketId": "m1"})

        assert response.status_code == 200
        assert response.json() == {"id": "m1", "question": "Q?"}

    @pytest.mark.asyncio
    async def test_invalid_limit(self, api, data_api):
        response = await api.get("/markets", params={"limit": "many"})

        assert response.status_code == 400
        assert data_api.requests == []

    @pytest.mark.asyncio
    async def test_upstream_status_relayed(self, api, data_api):
        data_api.add("GET", "/core/markets", status=503, json={"message": "maintenance"})

        response = await api.get("/markets")

        assert response.status_code == 503
        assert response.json()["message"] == "maintenance"
        assert "details" not in response.json()

    @pytest.mark.asyncio
    async def test_prices_requires_market(self, api, clob):
        response = await api.get("/prices")

        assert response.status_code == 400
        assert clob.requests == []


class TestOrderBookRoute:
    """Tests for /orderbook."""

    @pytest.mark.asyncio
    async def test_missing_token_never_reaches_upstream(self, api, clob, data_api):
        response = await api.get("/orderbook", params={"marketId": "m1"})

        assert response.status_code == 400
        assert response.json()["message"] == "tokenId query parameter is required"
        assert clob.requests == []
        assert data_api.requests == []

    @pytest.mark.asyncio
    async def test_book(self, api, clob):
        clob.add("GET", "/book", json={"bids": [{"price": "0.4", "size": "5"}], "asks": []})

        response = await api.get("/orderbook", params={"tokenId": "tok-1"})

        assert response.status_code == 200
        assert response.json()["bids"] == [{"price": "0.4", "size": "5"}]
        assert clob.paths == ["/book?token_id=tok-1"]


class TestOrderRoutes:
    """Tests for /orders and /positions."""

    @pytest.mark.asyncio
    async def test_list_orders(self, api, clob):
        clob.add("GET", "/orders", json={"data": [{"id": "o1"}]})

        response = await api.get("/orders", params={"marketId": "m1"})

        assert response.status_code == 200
        assert response.json() == [{"id": "o1"}]
        assert clob.paths == ["/orders?market=m1"]

    @pytest.mark.asyncio
    async def test_place_order(self, api, clob):
        clob.add("POST", "/orders", json={"orderID": "o-1"})
        order = {"token_id": "tok-1", "price": "0.45", "side": "buy", "size": "10"}

        response = await api.post("/orders", json=order)

        assert response.status_code == 200
        assert response.json() == {"orderID": "o-1"}

    @pytest.mark.asyncio
    async def test_place_order_without_body(self, api, clob):
        response = await api.post("/orders")

        assert response.status_code == 400
        assert response.json()["message"] == "Order data is required"
        assert clob.requests == []

    @pytest.mark.asyncio
    async def test_cancel_requires_order_id(self, api, clob):
        response = await api.delete("/orders")

        assert response.status_code == 400
        assert clob.requests == []

    @pytest.mark.asyncio
    async def test_cancel_order(self, api, clob):
        clob.add("DELETE", "/orders/o-1", json={})

        response = await api.delete("/orders", params={"orderId": "o-1"})

        assert response.status_code == 200
        assert response.json() == {"success": True}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["PUT", "PATCH"])
    async def test_unsupported_method(self, api, method):
        response = await api.request(method, "/orders")

        assert response.status_code == 405
        assert response.json() == {"error": "Method not allowed"}

    @pytest.mark.asyncio
    async def test_positions(self, api, clob):
        clob.add("GET", "/positions", json=[{"market": "m1", "outcome": "Yes", "size": "3", "price": "0.5"}])

        response = await api.get("/positions")

        assert response.status_code == 200
        assert response.json() == [{"market": "m1", "outcome": "Yes", "size": "3", "price": "0.5"}]


class TestConfigurationErrors:
    """Tests for deployments without credentials."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/positions", "/orders", "/markets"])
    async def test_missing_credentials(self, unconfigured_api, path):
        response = await unconfigured_api.get(path)

        assert response.status_code == 500
        assert response.json() == {"error": "Configuration error", "message": CONFIGURATION_MESSAGE}

    @pytest.mark.asyncio
    async def test_details_only_in_development(self, make_settings):
        app = create_app(make_settings(None, development=True))
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as http:
            response = await http.get("/positions")

        assert response.status_code == 500
        assert "ConfigurationError" in response.json()["details"]


class TestUnexpectedErrors:
    """Tests for failures outside the classified error taxonomy."""

    @pytest.mark.asyncio
    async def test_unhandled_exception_keeps_cors(self, make_settings, credentials):
        broken = AsyncMock()
        broken.get_positions.side_effect = RuntimeError("boom")
        app = create_app(make_settings(credentials), client=broken)

        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as http:
            response = await http.get("/positions")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "message": "Unexpected server error"}
        assert response.headers["Access-Control-Allow-Origin"] == "*"
