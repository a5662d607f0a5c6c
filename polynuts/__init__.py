"""
Polynuts - authenticated gateway to the Polymarket exchange.

Key Modules:
- polynuts.clients: exchange client (signing, transports, endpoint resolution)
- polynuts.api: FastAPI server exposing markets, order book, orders, positions
- polynuts.config: credentials and process settings from the environment
- polynuts.main: command-line entry point (python -m polynuts.main)
"""

__version__ = "1.0.0"

from .exceptions import (
    PolynutsError,
    ConfigurationError,
    ValidationError,
    ClientError,
    NetworkError,
    UpstreamError,
)
from .config import Credentials, Network, Settings, load_credentials, load_settings
from .models import Market, OrderBook, PriceLevel, Position, Side
from .clients.polymarket_client import PolymarketClient

__all__ = [
    "__version__",
    "PolynutsError",
    "ConfigurationError",
    "ValidationError",
    "ClientError",
    "NetworkError",
    "UpstreamError",
    "Credentials",
    "Network",
    "Settings",
    "load_credentials",
    "load_settings",
    "Market",
    "OrderBook",
    "PriceLevel",
    "Position",
    "Side",
    "PolymarketClient",
]
