"""
HTTP transport for the two Polymarket API surfaces.

A transport owns one aiohttp session, an optional request signer (pre-send
hook) and the error classification applied to every response (post-receive
hook). Failures leave this module as one of ClientError, NetworkError or
UpstreamError and are not re-wrapped further up.
"""

import asyncio
import json
from typing import Any, Optional
from urllib.parse import urlencode

import aiohttp
from yarl import URL

from ..exceptions import ClientError, NetworkError, PolynutsError, UpstreamError
from ..utils.logger import get_logger
from .signer import RequestSigner

logger = get_logger("transport")

DEFAULT_TIMEOUT_SECONDS = 30.0


def build_path(path: str, params: Optional[dict[str, Any]] = None) -> str:
    """Join a path and its query string; None-valued params are dropped."""
    if not path.startswith("/"):
        path = f"/{path}"
    if not params:
        return path
    query = urlencode({k: _query_value(v) for k, v in params.items() if v is not None})
    return f"{path}?{query}" if query else path


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def serialize_body(body: Any) -> str:
    """JSON-encode a request body; "" when there is none."""
    if body is None:
        return ""
    try:
        return json.dumps(body, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise ClientError(f"Request body is not JSON serializable: {e}") from e


class Transport:
    """
    One configured API surface (trading or public data).

    Requests on a transport built with a signer carry POLY_* auth headers;
    requests on a transport without one never do.
    """

    def __init__(
        self,
        base_url: str,
        *,
        name: str,
        signer: Optional[RequestSigner] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Args:
            base_url: Scheme and host, without a trailing slash
            name: Surface label used in logs ("clob", "data")
            signer: Pre-send hook attaching authentication headers
            timeout: Default per-request timeout in seconds
            session: Externally managed session (not closed by this transport)
        """
        self.base_url = base_url.rstrip("/")
        self.name = name
        self.timeout = timeout
        self._signer = signer
        self._session = session
        self._owns_session = session is None

    @property
    def authenticated(self) -> bool:
        return self._signer is not None

    async def initialize(self) -> None:
        """Open the HTTP session."""
        if not self._session:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owns_session = True

    async def close(self) -> None:
        """Close the HTTP session if this transport opened it."""
        if self._session and self._owns_session:
            await self._session.close()
        self._session = None

    async def get(self, path: str, *, params: Optional[dict[str, Any]] = None, timeout: Optional[float] = None) -> Any:
        return await self.request("GET", path, params=params, timeout=timeout)

    async def post(self, path: str, *, body: Any = None, timeout: Optional[float] = None) -> Any:
        return await self.request("POST", path, body=body, timeout=timeout)

    async def delete(self, path: str, *, timeout: Optional[float] = None) -> Any:
        return await self.request("DELETE", path, timeout=timeout)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        body: Any = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Issue one HTTP call and return the decoded body.

        Returns:
            Parsed JSON, the raw text when the body is not JSON, or None when empty

        Raises:
            ClientError: the request could not be built
            NetworkError: no response within the timeout or connection failure
            UpstreamError: the remote answered with a non-2xx status
        """
        method = method.upper()
        full_path = build_path(path, params)
        payload = serialize_body(body)

        headers = {"Content-Type": "application/json"}
        if self._signer:
            self._signer.apply(headers, method, full_path, payload)

        if not self._session:
            await self.initialize()

        url = f"{self.base_url}{full_path}"
        logger.debug(f"Making {method} request to {full_path}", extra={"surface": self.name})

        try:
            # Already percent-encoded; the signature covers these exact bytes.
            async with self._session.request(
                method,
                URL(url, encoded=True),
                data=payload.encode("utf-8") if payload else None,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=timeout or self.timeout),
            ) as response:
                data = await self._read_body(response)
                if not 200 <= response.status < 300:
                    raise self._upstream_error(method, url, response.status, data)
                return data
        except PolynutsError:
            raise
        except asyncio.TimeoutError as e:
            logger.error(
                f"Request timed out: {method} {full_path}",
                extra={"surface": self.name, "timeout": timeout or self.timeout}
            )
            raise NetworkError(
                f"Request timed out after {timeout or self.timeout}s", method=method, url=url
            ) from e
        except aiohttp.InvalidURL as e:
            raise ClientError(f"Invalid request URL: {url}") from e
        except aiohttp.ClientError as e:
            logger.error(
                f"Network error: {method} {full_path}: {e}",
                extra={"surface": self.name}
            )
            raise NetworkError(str(e) or type(e).__name__, method=method, url=url) from e

    @staticmethod
    async def _read_body(response: aiohttp.ClientResponse) -> Any:
        text = await response.text()
        if not text:
            return None
        try:
            return json.loads(text)
        except ValueError:
            return text

    def _upstream_error(self, method: str, url: str, status: int, data: Any) -> UpstreamError:
        logger.warning(
            f"API error: {status}",
            extra={"surface": self.name, "status_code": status, "url": url, "body": data}
        )
        return UpstreamError(status, data, method=method, url=url)
