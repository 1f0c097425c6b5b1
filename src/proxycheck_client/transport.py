"""
HTTP transport for the proxycheck API.

Async httpx client that sends GET/POST requests and maps every failure
onto the client's error taxonomy:

- transport failure  -> NetworkError
- non-2xx status     -> HttpError
- non-JSON body      -> DecodeError
- status == "error"  -> ApiError
"""

import time
from typing import Optional

import httpx

from .enums import ErrorCode, LogLevel
from .event_logger import EventLogger
from .exceptions import ApiError, DecodeError, HttpError, NetworkError


class HttpTransport:
    """
    Async JSON transport.

    Pass ``transport`` to substitute the network layer (for example an
    ``httpx.MockTransport`` in tests).
    """

    COMPONENT = "HttpTransport"

    DEFAULT_HEADERS = {"Accept": "application/json"}

    def __init__(
        self,
        timeout: float = 15.0,
        logger: Optional[EventLogger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = timeout
        self._logger = logger
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "HttpTransport":
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                verify=True,
                timeout=httpx.Timeout(self._timeout),
                headers=self.DEFAULT_HEADERS,
                transport=self._transport,
            )
        return self._client

    async def get(self, url: str, params: Optional[dict] = None) -> dict:
        """
        Send a GET request and return the decoded JSON object.

        Raises:
            NetworkError, HttpError, DecodeError, ApiError
        """
        return await self._request("GET", url, params=params)

    async def post(
        self, url: str, params: Optional[dict] = None, data: Optional[dict] = None
    ) -> dict:
        """
        Send a form-encoded POST request and return the decoded JSON object.

        Raises:
            NetworkError, HttpError, DecodeError, ApiError
        """
        return await self._request("POST", url, params=params, data=data)

    async def _request(
        self,
        method: str,
        url: str,
        params: Optional[dict] = None,
        data: Optional[dict] = None,
    ) -> dict:
        client = self._ensure_client()
        start_time = time.perf_counter()

        try:
            response = await client.request(method, url, params=params, data=data)
        except httpx.TimeoutException:
            raise NetworkError(
                code=ErrorCode.TIMEOUT.value,
                message=f"ProxyCheck API request timed out after {self._timeout}s",
                details={"url": url, "method": method},
            )
        except httpx.HTTPError as e:
            raise NetworkError(
                code=ErrorCode.NETWORK_ERROR.value,
                message=f"ProxyCheck API request failed: {e}",
                details={"url": url, "method": method},
            )

        self._log(
            LogLevel.DEBUG,
            f"{method} {url} -> {response.status_code}",
            {
                "status_code": response.status_code,
                "response_time_ms": (time.perf_counter() - start_time) * 1000,
            },
        )

        if response.status_code < 200 or response.status_code >= 300:
            raise HttpError(status_code=response.status_code, details={"url": url})

        try:
            payload = response.json()
        except ValueError as e:
            raise DecodeError(
                code=ErrorCode.JSON_ERROR.value,
                message="Failed to parse ProxyCheck API response",
                details={"url": url, "reason": str(e)},
            )

        if not isinstance(payload, dict):
            raise DecodeError(
                code=ErrorCode.JSON_ERROR.value,
                message="ProxyCheck API response is not a JSON object",
                details={"url": url, "type": type(payload).__name__},
            )

        if payload.get("status") == "error":
            raise ApiError(
                code=ErrorCode.API_ERROR.value,
                message=payload.get("message") or "Unknown API error",
                details={"url": url},
            )

        return payload

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, self.COMPONENT, message, data)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
