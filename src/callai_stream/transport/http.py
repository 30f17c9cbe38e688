"""
HTTP transport using httpx for async requests.

Sends one chat-completion request and hands back the open response, so the
caller can iterate the body as it arrives. Error statuses are turned into
``RemoteError``; network failures raised by httpx propagate unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from callai_stream.errors import RemoteError
from callai_stream.telemetry import get_logger
from callai_stream.transport.auth import get_auth_header, resolve_api_key

if TYPE_CHECKING:
    from callai_stream.config import ClientConfig
    from callai_stream.types.request import ChatRequest

logger = get_logger("callai_stream.transport.http")

_DEFAULT_CONNECT_TIMEOUT = 10.0

_UA_VERSION: str | None = None


def _get_ua_version() -> str:
    """Get package version for User-Agent (cached)."""
    global _UA_VERSION
    if _UA_VERSION is None:
        from callai_stream import __version__

        _UA_VERSION = __version__
    return _UA_VERSION


class HttpTransport:
    """HTTP transport for the chat-completions endpoint.

    Example:
        >>> transport = HttpTransport(ClientConfig.from_env())
        >>> response = await transport.send(request)
        >>> try:
        ...     async for chunk in response.aiter_bytes():
        ...         process(chunk)
        ... finally:
        ...     await response.aclose()
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize HTTP transport.

        Args:
            config: Endpoint, credential, timeout and header settings
            client: Pre-built httpx client (owned by the caller)
        """
        self._config = config
        self._client = client
        self._owns_client = client is None

    @property
    def config(self) -> ClientConfig:
        """Transport configuration."""
        return self._config

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            timeout = httpx.Timeout(
                self._config.timeout,
                connect=min(_DEFAULT_CONNECT_TIMEOUT, self._config.timeout),
            )
            self._client = httpx.AsyncClient(timeout=timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client, if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def build_headers(self, request: ChatRequest) -> dict[str, str]:
        """Build request headers.

        Args:
            request: The request being sent

        Returns:
            Complete headers dictionary
        """
        headers = {
            "Content-Type": "application/json",
            "Accept": "text/event-stream" if request.stream else "application/json",
            "User-Agent": f"callai-stream/{_get_ua_version()}",
            "HTTP-Referer": self._config.referer,
            "X-Title": self._config.title,
        }
        headers.update(get_auth_header(resolve_api_key(request.api_key or self._config.api_key)))
        headers.update(self._config.headers)
        return headers

    async def send(self, request: ChatRequest) -> httpx.Response:
        """Send a request and return the open response.

        The body has not been read; the caller must close the response.

        Args:
            request: Request to send

        Returns:
            Open HTTP response with a success status

        Raises:
            RemoteError: On API errors (status >= 400)
            httpx.HTTPError: On network/connection errors, unchanged
        """
        client = self._get_client()
        payload: dict[str, Any] = request.to_payload()
        http_request = client.build_request(
            "POST",
            self._config.chat_url,
            json=payload,
            headers=self.build_headers(request),
        )

        logger.debug(
            "Sending chat request",
            url=self._config.chat_url,
            model=request.model,
            stream=request.stream,
        )
        response = await client.send(http_request, stream=True)

        if response.status_code >= 400:
            try:
                body = await response.aread()
            finally:
                await response.aclose()
            error = RemoteError.from_response(
                status_code=response.status_code,
                body_text=body.decode("utf-8", errors="replace"),
                headers=dict(response.headers),
            )
            logger.debug(
                "Chat request failed",
                status_code=response.status_code,
                error_class=error.error_class.value,
            )
            raise error

        return response

    async def __aenter__(self) -> HttpTransport:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
