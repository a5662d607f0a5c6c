"""
Error taxonomy for the Polymarket gateway.

Failures are classified once, at the transport boundary, and forwarded
unchanged by the domain operations and the HTTP layer.
"""

from typing import Any, Optional


class PolynutsError(Exception):
    """Base class for all gateway errors."""


class ConfigurationError(PolynutsError):
    """A required credential or setting is missing or invalid."""


class ValidationError(PolynutsError):
    """The caller omitted or malformed a required parameter."""


class ClientError(PolynutsError):
    """The outgoing request could not be built (e.g. unserializable body)."""


class NetworkError(PolynutsError):
    """No response was received: timeout, DNS failure, connection reset."""

    def __init__(self, message: str, *, method: str = "", url: str = ""):
        super().__init__(message)
        self.method = method
        self.url = url


class UpstreamError(PolynutsError):
    """The exchange answered with a non-2xx status."""

    def __init__(
        self,
        status_code: int,
        body: Any = None,
        *,
        method: str = "",
        url: str = "",
    ):
        self.status_code = status_code
        self.body = body
        self.method = method
        self.url = url
        super().__init__(f"HTTP {status_code}: {self.message}")

    @property
    def message(self) -> str:
        """Best-effort human message pulled from the remote body."""
        if isinstance(self.body, dict):
            for key in ("message", "error", "detail"):
                value = self.body.get(key)
                if value:
                    return str(value)
        if isinstance(self.body, str) and self.body:
            return self.body
        return "upstream request failed"


class NormalizationMiss(PolynutsError):
    """No candidate response matched a known envelope shape.

    Never raised to callers; the resolver logs it and yields an empty list.
    """

    def __init__(self, attempted: Optional[list[str]] = None):
        self.attempted = attempted or []
        super().__init__(
            f"No recognizable envelope from candidates: {', '.join(self.attempted)}"
        )
