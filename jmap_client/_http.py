"""Internal HTTP handling for the JMAP client.

This module provides the transport boundary used by the invocation engine
and the blob sub-client. It handles:
- Authenticated JSON POST, binary POST and GET requests
- Mapping httpx failures and non-2xx statuses to TransportError
- Connection management

Nothing here retries. A failed round trip is surfaced to the caller, who
decides whether to try again.

This is an internal module and should not be imported directly by users.
"""

import logging
from typing import Any, Protocol

import httpx

from jmap_client.exceptions import ConnectionError, TimeoutError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_USER_AGENT = "jmap-client/0.1"


class Transport(Protocol):
    """Minimal capability for issuing authenticated HTTP requests.

    Implementations return the raw response body on a 2xx status and raise
    ``TransportError`` otherwise. A substitute implementation returning
    canned bytes is enough to drive the whole client in tests.
    """

    async def post_json(self, url: str, body: bytes) -> bytes:
        """POST a serialized JSON document and return the response body."""
        ...

    async def post_binary(self, url: str, body: bytes, content_type: str) -> bytes:
        """POST raw bytes with the given media type and return the response body."""
        ...

    async def get(self, url: str, body: bytes = b"") -> bytes:
        """GET a URL and return the response body.

        ``body`` is sent when non-empty; the session endpoint accepts either.
        """
        ...


def _raise_for_status(response: httpx.Response, url: str) -> None:
    """Raise TransportError for any non-2xx response.

    The raw response body becomes the error message so that problem details
    returned by the server reach the caller unchanged.

    Args:
        response: The HTTP response to check.
        url: The URL that was requested.

    Raises:
        TransportError: If the status is not 2xx.
    """
    if response.is_success:
        return

    text = response.text.strip()
    if not text:
        text = f"HTTP {response.status_code} error"
    raise TransportError(message=text, status=response.status_code, url=url)


class HTTPXTransport:
    """Transport implementation on top of ``httpx.AsyncClient``.

    Adds bearer-token authorization to every request. Supports the async
    context manager protocol for connection cleanup.

    Attributes:
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            token: Bearer token sent in the Authorization header.
            timeout: Request timeout in seconds.
            user_agent: Value of the User-Agent header.
            transport: Custom httpx transport (e.g., MockTransport for testing).
        """
        self.timeout = timeout

        headers = {"User-Agent": user_agent}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers=headers,
            follow_redirects=True,
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the HTTP client and release resources."""
        await self._client.aclose()

    async def __aenter__(self) -> "HTTPXTransport":
        """Enter async context manager."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Exit async context manager and close client."""
        await self.aclose()

    async def request(
        self,
        method: str,
        url: str,
        content: bytes | None = None,
        content_type: str | None = None,
    ) -> bytes:
        """Make an HTTP request and return the raw response body.

        Args:
            method: The HTTP method.
            url: Absolute URL to request.
            content: Request body, if any.
            content_type: Content-Type header for the body.

        Returns:
            The response body bytes.

        Raises:
            ConnectionError: If the connection fails.
            TimeoutError: If the request times out.
            TransportError: If the server returns a non-2xx status or the
                body cannot be read.
        """
        headers = {}
        if content_type:
            headers["Content-Type"] = content_type

        try:
            response = await self._client.request(
                method=method,
                url=url,
                content=content or None,
                headers=headers,
            )
        except httpx.ConnectError as e:
            raise ConnectionError(
                message=f"Failed to connect to {url}",
                url=url,
                cause=e,
            ) from e
        except httpx.TimeoutException as e:
            raise TimeoutError(
                message=f"Request to {url} timed out",
                timeout=self.timeout,
                url=url,
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(message=str(e) or type(e).__name__, url=url) from e

        logger.debug("%s %s -> %s", method, url, response.status_code)
        _raise_for_status(response, url)
        return response.content

    async def post_json(self, url: str, body: bytes) -> bytes:
        """POST a serialized JSON document.

        Args:
            url: The API URL.
            body: Serialized JSON.

        Returns:
            The response body.
        """
        return await self.request("POST", url, content=body, content_type="application/json")

    async def post_binary(self, url: str, body: bytes, content_type: str) -> bytes:
        """POST raw bytes, as used by the session's upload URL.

        Args:
            url: The resolved upload URL.
            body: Payload bytes.
            content_type: Media type of the payload.

        Returns:
            The response body.
        """
        return await self.request("POST", url, content=body, content_type=content_type)

    async def get(self, url: str, body: bytes = b"") -> bytes:
        """GET a URL, as used by session fetch and the download URL.

        Args:
            url: Absolute URL.
            body: Optional request body.

        Returns:
            The response body.
        """
        return await self.request("GET", url, content=body or None)
