"""
Shared data models for exchange entities.

Prices and sizes stay decimal strings end-to-end. Every model keeps the
payload it was parsed from in ``raw`` so the HTTP layer can relay the
exchange's fields verbatim.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class Side(Enum):
    """Order side."""
    BUY = "buy"
    SELL = "sell"

    @classmethod
    def parse(cls, value: Any) -> "Side":
        return cls(str(value).strip().lower())


def _decimal_str(value: Any) -> str:
    """Render a quantity as a decimal string without a float round-trip."""
    if value is None:
        return "0"
    if isinstance(value, str):
        return value.strip() or "0"
    return str(value)


def _optional_number(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _optional_bool(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    return str(value).lower() in ("true", "1", "yes")


@dataclass
class Market:
    """A prediction market as listed by the exchange."""
    id: str
    question: str = ""
    description: Optional[str] = None
    end_date: Optional[str] = None
    resolved: Optional[bool] = None
    volume: Optional[float] = None
    liquidity: Optional[float] = None
    raw: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict) -> "Market":
        market_id = data.get("id") or data.get("condition_id") or data.get("conditionId") or ""
        return cls(
            id=str(market_id),
            question=data.get("question") or "",
            description=data.get("description"),
            end_date=data.get("endDate") or data.get("end_date_iso"),
            resolved=_optional_bool(data.get("resolved")),
            volume=_optional_number(data.get("volume")),
            liquidity=_optional_number(data.get("liquidity")),
            raw=data,
        )


@dataclass
class PriceLevel:
    """One price level of an order book."""
    price: str
    size: str
    side: Side

    @classmethod
    def from_dict(cls, data: dict, side: Side) -> "PriceLevel":
        return cls(
            price=_decimal_str(data.get("price")),
            size=_decimal_str(data.get("size")),
            side=side,
        )


@dataclass
class OrderBook:
    """Order book for a single outcome token."""
    token_id: str
    bids: list[PriceLevel] = field(default_factory=list)
    asks: list[PriceLevel] = field(default_factory=list)
    raw: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict, token_id: str) -> "OrderBook":
        return cls(
            token_id=str(data.get("asset_id") or token_id),
            bids=[PriceLevel.from_dict(level, Side.BUY) for level in data.get("bids") or []],
            asks=[PriceLevel.from_dict(level, Side.SELL) for level in data.get("asks") or []],
            raw=data,
        )

    @property
    def best_bid(self) -> Optional[PriceLevel]:
        return self.bids[0] if self.bids else None

    @property
    def best_ask(self) -> Optional[PriceLevel]:
        return self.asks[0] if self.asks else None


@dataclass
class Position:
    """A wallet's holding in one market outcome."""
    market: str
    outcome: str
    size: str
    price: str
    raw: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict) -> "Position":
        return cls(
            market=str(data.get("market") or data.get("conditionId") or ""),
            outcome=str(data.get("outcome") or ""),
            size=_decimal_str(data.get("size")),
            price=_decimal_str(data.get("price") if data.get("price") is not None else data.get("avgPrice")),
            raw=data,
        )
