"""
HMAC request signing for the Polymarket CLOB (L2 API-key auth).

The canonical message is METHOD + path-with-query + timestamp + body, with no
separators. The timestamp and signature are produced per request and never
reused.
"""

import hashlib
import hmac
import time
from typing import Optional

from ..config import Credentials

HEADER_API_KEY = "POLY_API_KEY"
HEADER_PASSPHRASE = "POLY_PASSPHRASE"
HEADER_TIMESTAMP = "POLY_TIMESTAMP"
HEADER_SIGNATURE = "POLY_SIGNATURE"
HEADER_ADDRESS = "POLY_ADDRESS"


def current_timestamp() -> str:
    """Unix time in whole seconds, as sent in POLY_TIMESTAMP."""
    return str(int(time.time()))


def canonical_message(method: str, path: str, timestamp: str, body: str = "") -> str:
    return f"{method.upper()}{path}{timestamp}{body or ''}"


def sign(method: str, path: str, timestamp: str, body: str, secret: str) -> str:
    """
    Compute the hex HMAC-SHA256 signature of a request.

    Args:
        method: HTTP method (case-insensitive)
        path: Request path including the query string exactly as sent
        timestamp: Unix seconds as a base-10 string
        body: JSON-serialized body, or "" when there is none
        secret: Shared API secret

    Returns:
        Lowercase hex digest
    """
    message = canonical_message(method, path, timestamp, body)
    return hmac.new(
        secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256
    ).hexdigest()


class RequestSigner:
    """Builds the POLY_* authentication headers for one credential set."""

    def __init__(self, credentials: Credentials):
        self._credentials = credentials

    def headers(
        self,
        method: str,
        path: str,
        body: str = "",
        timestamp: Optional[str] = None,
    ) -> dict[str, str]:
        """Headers for a single outgoing request; call once per send."""
        ts = timestamp or current_timestamp()
        headers = {
            HEADER_API_KEY: self._credentials.api_key,
            HEADER_PASSPHRASE: self._credentials.passphrase,
            HEADER_TIMESTAMP: ts,
            HEADER_SIGNATURE: sign(method, path, ts, body, self._credentials.secret),
        }
        if self._credentials.wallet_address:
            headers[HEADER_ADDRESS] = self._credentials.wallet_address
        return headers

    def apply(self, request_headers: dict[str, str], method: str, path: str, body: str = "") -> None:
        """Pre-send hook: inject auth headers onto an outgoing header map."""
        request_headers.update(self.headers(method, path, body))
