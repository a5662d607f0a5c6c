"""
FastAPI server exposing the Polymarket gateway.
Thin dispatch over PolymarketClient: validates query input, maps classified
errors to HTTP statuses and stamps permissive CORS headers on every response.
"""
import json
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
import uvicorn

from .. import __version__
from ..clients.polymarket_client import PolymarketClient
from ..config import Settings, load_settings
from ..exceptions import (
    ClientError,
    ConfigurationError,
    NetworkError,
    UpstreamError,
    ValidationError,
)
from ..utils.logger import get_logger

logger = get_logger("api")

SERVICE_NAME = "Polynuts API"

CORS_HEADERS = {
    "Access-Control-Allow-Credentials": "true",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,OPTIONS,PATCH,DELETE,POST,PUT",
    "Access-Control-Allow-Headers": (
        "X-CSRF-Token, X-Requested-With, Accept, Accept-Version, Content-Length, "
        "Content-MD5, Content-Type, Date, X-Api-Version"
    ),
}

CONFIGURATION_MESSAGE = (
    "API credentials not configured. Please set POLYMARKET_API_KEY, "
    "POLYMARKET_SECRET, and POLYMARKET_PASSPHRASE environment variables."
)


class ClientProvider:
    """Builds the exchange client on first use and owns its lifetime."""

    def __init__(self, settings: Settings, client: Optional[PolymarketClient] = None):
        self.settings = settings
        self._client = client

    def get(self) -> PolymarketClient:
        if self._client is None:
            self._client = PolymarketClient(self.settings.require_credentials())
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()


def parse_flag(value: Optional[str]) -> Optional[bool]:
    """Only the literal strings 'true' and 'false' set a filter."""
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def parse_limit(value: Optional[str]) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        limit = int(value)
    except ValueError as e:
        raise ValidationError("limit must be a positive integer") from e
    if limit <= 0:
        raise ValidationError("limit must be a positive integer")
    return limit


def create_app(
    settings: Optional[Settings] = None,
    client: Optional[PolymarketClient] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Process settings; loaded from the environment when omitted
        client: Pre-built exchange client (tests inject one pointed at stubs)
    """
    settings = settings or load_settings()
    provider = ClientProvider(settings, client)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await provider.close()

    app = FastAPI(title=SERVICE_NAME, version=__version__, lifespan=lifespan)
    app.state.provider = provider

    def error_response(status_code: int, error: str, message: str, exc: Exception) -> JSONResponse:
        content = {"error": error, "message": message}
        if settings.server.development:
            content["details"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return JSONResponse(status_code=status_code, content=content)

    @app.middleware("http")
    async def cors(request: Request, call_next):
        if request.method == "OPTIONS":
            response = Response(status_code=200)
        else:
            try:
                response = await call_next(request)
            except Exception as exc:
                logger.exception(f"Unhandled error in {request.url.path}")
                response = error_response(500, "Internal server error", "Unexpected server error", exc)
        response.headers.update(CORS_HEADERS)
        return response

    @app.exception_handler(ValidationError)
    async def handle_validation(request: Request, exc: ValidationError):
        return error_response(400, "Bad request", str(exc), exc)

    @app.exception_handler(ConfigurationError)
    async def handle_configuration(request: Request, exc: ConfigurationError):
        logger.error(f"Configuration error on {request.url.path}: {exc}")
        return error_response(500, "Configuration error", CONFIGURATION_MESSAGE, exc)

    @app.exception_handler(UpstreamError)
    async def handle_upstream(request: Request, exc: UpstreamError):
        logger.error(
            f"Error in {request.url.path}: {exc}",
            extra={"status_code": exc.status_code}
        )
        status_code = exc.status_code if exc.status_code and exc.status_code >= 400 else 500
        return error_response(status_code, "Upstream error", exc.message, exc)

    @app.exception_handler(NetworkError)
    async def handle_network(request: Request, exc: NetworkError):
        logger.error(f"Error in {request.url.path}: {exc}")
        return error_response(500, "Network error", str(exc), exc)

    @app.exception_handler(ClientError)
    async def handle_client(request: Request, exc: ClientError):
        logger.error(f"Error in {request.url.path}: {exc}")
        return error_response(500, "Internal server error", str(exc), exc)

    @app.get("/")
    async def root():
        """Service index."""
        return {
            "service": f"{SERVICE_NAME} - Polymarket Integration",
            "version": __version__,
            "status": "running",
            "endpoints": {
                "health": "/health",
                "markets": "/markets",
                "orderbook": "/orderbook?tokenId=YOUR_TOKEN_ID",
                "positions": "/positions",
                "orders": "/orders",
                "prices": "/prices?marketId=YOUR_MARKET_ID",
            },
        }

    @app.get("/health")
    async def health():
        """Health check."""
        return {
            "status": "ok",
            "service": SERVICE_NAME,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/markets")
    async def markets(
        marketId: Optional[str] = None,
        active: Optional[str] = None,
        closed: Optional[str] = None,
        limit: Optional[str] = None,
    ):
        """List markets, or fetch one when marketId is given."""
        if marketId:
            market = await provider.get().get_market(marketId)
            return JSONResponse(content=market.raw)

        parsed_limit = parse_limit(limit)
        result = await provider.get().get_markets(
            active=parse_flag(active),
            closed=parse_flag(closed),
            limit=parsed_limit,
        )
        return JSONResponse(content=[market.raw for market in result])

    @app.get("/orderbook")
    async def orderbook(tokenId: Optional[str] = None, marketId: Optional[str] = None):
        """Order book for an outcome token."""
        if not tokenId:
            raise ValidationError("tokenId query parameter is required")
        book = await provider.get().get_order_book(tokenId, marketId or tokenId)
        return JSONResponse(content=book.raw)

    @app.get("/prices")
    async def prices(marketId: Optional[str] = None):
        """Price and stats for a market."""
        if not marketId:
            raise ValidationError("marketId query parameter is required")
        return JSONResponse(content=await provider.get().get_market_prices(marketId))

    @app.get("/positions")
    async def positions():
        """Positions of the configured wallet."""
        result = await provider.get().get_positions()
        return JSONResponse(content=[position.raw for position in result])

    @app.get("/orders")
    async def list_orders(marketId: Optional[str] = None):
        """Open orders, optionally for one market."""
        return JSONResponse(content=await provider.get().get_orders(marketId))

    @app.post("/orders")
    async def place_order(request: Request):
        """Place an order; the JSON body is forwarded unchanged."""
        raw = await request.body()
        if not raw.strip():
            raise ValidationError("Order data is required")
        try:
            order = json.loads(raw)
        except ValueError as e:
            raise ValidationError("Order data must be a JSON object") from e
        if not isinstance(order, dict) or not order:
            raise ValidationError("Order data is required")
        result = await provider.get().place_order(order)
        return JSONResponse(content=result)

    @app.delete("/orders")
    async def cancel_order(orderId: Optional[str] = None):
        """Cancel an order by ID."""
        if not orderId:
            raise ValidationError("orderId query parameter is required")
        await provider.get().cancel_order(orderId)
        return {"success": True}

    @app.api_route("/orders", methods=["PUT", "PATCH"])
    async def orders_method_not_allowed():
        return JSONResponse(status_code=405, content={"error": "Method not allowed"})

    return app


def run_server(settings: Optional[Settings] = None, host: Optional[str] = None, port: Optional[int] = None):
    """Run the API server with uvicorn."""
    settings = settings or load_settings()
    uvicorn.run(
        create_app(settings),
        host=host or settings.server.host,
        port=port or settings.server.port,
    )


if __name__ == "__main__":
    run_server()
