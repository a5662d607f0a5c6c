# Polymarket clients
from .polymarket_client import PolymarketClient, CLOB_URL, DATA_API_URL
from .transport import Transport
from .signer import RequestSigner, sign
from .resolver import EndpointCandidate, EndpointResolver
from .envelope import EnvelopeShape, normalize

__all__ = [
    "PolymarketClient",
    "CLOB_URL",
    "DATA_API_URL",
    "Transport",
    "RequestSigner",
    "sign",
    "EndpointCandidate",
    "EndpointResolver",
    "EnvelopeShape",
    "normalize",
]
