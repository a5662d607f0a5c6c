"""
Listing envelope normalization.

The public data API wraps listings in one of a closed set of envelopes.
Shapes are tried in a fixed precedence order; the first match wins.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class EnvelopeShape(Enum):
    """Known listing envelopes, in match precedence order."""
    BARE = "bare"
    DATA = "data"
    RESULTS = "results"
    MARKETS = "markets"


ENVELOPE_PRECEDENCE = (
    EnvelopeShape.BARE,
    EnvelopeShape.DATA,
    EnvelopeShape.RESULTS,
    EnvelopeShape.MARKETS,
)


@dataclass(frozen=True)
class Envelope:
    """A matched envelope and the list it carried."""
    shape: EnvelopeShape
    items: list


def _extract(body: Any, shape: EnvelopeShape) -> Optional[list]:
    if shape is EnvelopeShape.BARE:
        return body if isinstance(body, list) else None
    if isinstance(body, dict):
        value = body.get(shape.value)
        if isinstance(value, list):
            return value
    return None


def match_envelope(body: Any) -> Optional[Envelope]:
    """Return the first matching envelope, or None when nothing matches."""
    for shape in ENVELOPE_PRECEDENCE:
        items = _extract(body, shape)
        if items is not None:
            return Envelope(shape=shape, items=items)
    return None


def normalize(body: Any) -> Optional[list]:
    """Extracted list for a recognized envelope, else None."""
    envelope = match_envelope(body)
    return envelope.items if envelope else None
