"""
Polymarket exchange client.

Combines the authenticated CLOB surface and the public data surface behind
one set of domain operations. Each call is independent: the only state kept
between calls is the immutable credential set and the HTTP sessions.
"""

from typing import Any, Optional
from urllib.parse import quote

from ..config import Credentials
from ..exceptions import ConfigurationError, UpstreamError, ValidationError
from ..models import Market, OrderBook, Position, Side
from ..utils.logger import OrderLogger, get_logger
from .envelope import normalize
from .resolver import (
    MARKET_LIST_CANDIDATES,
    EndpointResolver,
    get_with_not_found_fallback,
    market_detail_candidates,
)
from .signer import RequestSigner
from .transport import DEFAULT_TIMEOUT_SECONDS, Transport

logger = get_logger("client")

CLOB_URL = "https://clob.polymarket.com"
DATA_API_URL = "https://data-api.polymarket.com"

REQUIRED_ORDER_FIELDS = ("token_id", "price", "side", "size")


def _require(value: Optional[str], name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{name} is required")
    return str(value).strip()


def _segment(value: str) -> str:
    return quote(value, safe="")


class PolymarketClient:
    """
    Async client for the Polymarket CLOB and public data APIs.

    Trading-surface calls are HMAC-signed; data-surface calls are not.
    Errors propagate as the classified exceptions raised by the transport.

    Example:
        async with PolymarketClient(load_credentials()) as client:
            markets = await client.get_markets(active=True, limit=20)
            book = await client.get_order_book(token_id)
    """

    def __init__(
        self,
        credentials: Credentials,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        data_base_url: str = DATA_API_URL,
    ):
        """
        Initialize the client.

        Args:
            credentials: API key, secret and passphrase (plus optional wallet/base URL)
            timeout: Default per-request timeout in seconds
            data_base_url: Public data API base URL
        """
        if credentials is None:
            raise ConfigurationError("Polymarket credentials are required")
        missing = [
            name for name in ("api_key", "secret", "passphrase")
            if not getattr(credentials, name)
        ]
        if missing:
            raise ConfigurationError(f"Missing required credentials: {', '.join(missing)}")

        self.credentials = credentials
        self.trading = Transport(
            credentials.base_url or CLOB_URL,
            name="clob",
            signer=RequestSigner(credentials),
            timeout=timeout,
        )
        self.data = Transport(data_base_url, name="data", timeout=timeout)
        self._market_resolver = EndpointResolver(self.data, MARKET_LIST_CANDIDATES)
        self._orders = OrderLogger()

    async def initialize(self) -> None:
        """Open both HTTP sessions."""
        await self.trading.initialize()
        await self.data.initialize()
        logger.info(
            "Polymarket client initialized",
            extra={"network": self.credentials.network.value, "clob_url": self.trading.base_url}
        )

    async def close(self) -> None:
        """Close both HTTP sessions."""
        await self.trading.close()
        await self.data.close()

    async def __aenter__(self) -> "PolymarketClient":
        await self.initialize()
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    # Markets

    async def get_markets(
        self,
        *,
        active: Optional[bool] = None,
        closed: Optional[bool] = None,
        limit: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> list[Market]:
        """
        List markets from the public data API.

        Args:
            active: Only active (True) or inactive (False) markets
            closed: Only closed (True) or open (False) markets
            limit: Maximum number of markets
            timeout: Per-call timeout override

        Returns:
            Markets in the order the exchange returned them
        """
        if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0):
            raise ValidationError("limit must be a positive integer")

        params = {"active": active, "closed": closed, "limit": limit}
        items = await self._market_resolver.resolve(params, timeout=timeout)
        markets = [Market.from_dict(item) for item in items if isinstance(item, dict)]
        logger.debug(f"Fetched {len(markets)} markets")
        return markets

    async def get_market(self, market_id: str, *, timeout: Optional[float] = None) -> Market:
        """Get a single market by ID, falling back to the core path on 404."""
        market_id = _require(market_id, "marketId")
        primary, alternate = market_detail_candidates(_segment(market_id))
        body = await get_with_not_found_fallback(self.data, primary, alternate, timeout=timeout)

        if isinstance(body, list) and body and isinstance(body[0], dict):
            body = body[0]
        if not isinstance(body, dict):
            raise UpstreamError(502, body, method="GET", url=f"{self.data.base_url}{primary.path}")
        return Market.from_dict(body)

    async def get_market_prices(self, market_id: str, *, timeout: Optional[float] = None) -> Any:
        """Get price and stats payload for a market, as returned by the CLOB."""
        market_id = _require(market_id, "marketId")
        return await self.trading.get(f"/markets/{_segment(market_id)}/prices", timeout=timeout)

    # Order book

    async def get_order_book(
        self,
        token_id: str,
        market_id: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
    ) -> OrderBook:
        """
        Get the order book for one outcome token.

        Args:
            token_id: Outcome token ID (the book key; a market ID is not enough)
            market_id: Parent market, used for log context only
        """
        token_id = _require(token_id, "tokenId")
        logger.debug(f"Fetching order book for token {token_id}", extra={"market_id": market_id})
        body = await self.trading.get("/book", params={"token_id": token_id}, timeout=timeout)
        if not isinstance(body, dict):
            raise UpstreamError(502, body, method="GET", url=f"{self.trading.base_url}/book")
        return OrderBook.from_dict(body, token_id)

    # Account

    async def get_positions(self, *, timeout: Optional[float] = None) -> list[Position]:
        """Get positions for the configured wallet."""
        body = await self.trading.get("/positions", timeout=timeout)
        return [Position.from_dict(item) for item in self._listing(body, "/positions") if isinstance(item, dict)]

    async def get_orders(self, market_id: Optional[str] = None, *, timeout: Optional[float] = None) -> list[dict]:
        """Get open orders, optionally filtered to one market."""
        params = {"market": market_id} if market_id else None
        body = await self.trading.get("/orders", params=params, timeout=timeout)
        return self._listing(body, "/orders")

    async def place_order(self, order: dict, *, timeout: Optional[float] = None) -> Any:
        """
        Submit an order payload to the CLOB as-is.

        The payload is not signed against the exchange's on-chain order
        format; callers must supply an already-valid order.

        Args:
            order: Must contain token_id, price, side ("buy"/"sell") and size

        Returns:
            The exchange's response body
        """
        if not isinstance(order, dict) or not order:
            raise ValidationError("Order data is required")
        missing = [name for name in REQUIRED_ORDER_FIELDS if order.get(name) in (None, "")]
        if missing:
            raise ValidationError(f"Order is missing required fields: {', '.join(missing)}")
        try:
            side = Side.parse(order["side"])
        except ValueError as e:
            raise ValidationError(f"Order side must be 'buy' or 'sell', got {order['side']!r}") from e

        try:
            result = await self.trading.post("/orders", body=order, timeout=timeout)
        except Exception as e:
            self._orders.order_failed("place", str(e), token_id=str(order["token_id"]))
            raise

        order_id = ""
        if isinstance(result, dict):
            order_id = str(result.get("orderID") or result.get("orderId") or result.get("id") or "")
        self._orders.order_placed(
            order_id=order_id,
            token_id=str(order["token_id"]),
            side=side.value,
            size=str(order["size"]),
            price=str(order["price"]),
        )
        return result

    async def cancel_order(self, order_id: str, *, timeout: Optional[float] = None) -> None:
        """Cancel an open order by ID."""
        order_id = _require(order_id, "orderId")
        try:
            await self.trading.delete(f"/orders/{_segment(order_id)}", timeout=timeout)
        except Exception as e:
            self._orders.order_failed("cancel", str(e), order_id=order_id)
            raise
        self._orders.order_cancelled(order_id)

    @staticmethod
    def _listing(body: Any, path: str) -> list:
        items = normalize(body)
        if items is None:
            logger.warning(f"Unrecognized listing shape from {path}; returning no items")
            return []
        return items
