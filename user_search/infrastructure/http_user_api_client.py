"""
HTTP client for the remote user directory.

Issues the directory search and avatar downloads over a persistent
httpx connection pool. Every call is a single attempt: failures are
mapped to NetworkException and surfaced to the caller.
"""

import logging
import time
from typing import List, Optional

import httpx
from pydantic import ValidationError

from ..domain.exceptions import NetworkErrorKind, NetworkException
from ..metrics import remote_results_per_search, track_remote_call
from .user_api_client import IUserAPIClient, RemoteUser, UserListResponse

logger = logging.getLogger(__name__)


class HttpUserAPIClient(IUserAPIClient):
    """
    Client for the remote user directory.

    Uses a persistent HTTP client with connection pooling. A custom
    transport can be injected for testing.

    Attributes:
        base_url: Search endpoint of the directory
        timeout: Request timeout in seconds
        _client: Persistent httpx.AsyncClient
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize directory client.

        Args:
            base_url: Search endpoint of the directory
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        self.search_calls = 0
        self.image_calls = 0
        self.failures = 0

        logger.info(
            f"Initialized HttpUserAPIClient: base_url={self.base_url}, "
            f"timeout={self.timeout}s"
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """
        Get or create the persistent HTTP client with connection pooling.

        Returns:
            Configured httpx.AsyncClient instance
        """
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                follow_redirects=True,
                limits=httpx.Limits(
                    max_keepalive_connections=20,
                    max_connections=100,
                    keepalive_expiry=30.0,
                ),
                headers={"User-Agent": "UserSearch/1.0"},
            )
            logger.debug("Created new HTTP client with connection pooling")
        return self._client

    async def close(self) -> None:
        """
        Close the HTTP client and release connections.

        Should be called during application shutdown.
        """
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
            logger.debug("Closed HTTP client")

    async def search_users(self, text: str) -> List[RemoteUser]:
        """
        Search the directory for users matching the raw text.

        Args:
            text: Search text

        Returns:
            Users returned by the directory, empty when none matched

        Raises:
            NetworkException: INVALID_URL, TRANSPORT (also when the body
                reports an error) or DECODE
        """
        self.search_calls += 1
        start_time = time.perf_counter()

        response = await self._get(self.base_url, params={"query": text}, operation="search")

        try:
            body = UserListResponse.model_validate(response.json())
        except (ValueError, ValidationError) as error:
            self._record_failure("search", "decode")
            logger.error(f"Undecodable search response for '{text}': {error}")
            raise NetworkException(
                NetworkErrorKind.DECODE, url=str(response.url), reason=str(error)[:200]
            ) from error

        if not body.ok and body.error:
            self._record_failure("search", "remote_error")
            logger.error(f"Directory reported an error for '{text}': {body.error}")
            raise NetworkException(
                NetworkErrorKind.TRANSPORT,
                url=str(response.url),
                reason=f"Directory error: {body.error}"[:200],
            )

        users = body.users or []
        duration_ms = (time.perf_counter() - start_time) * 1000

        track_remote_call("search", "success")
        remote_results_per_search.observe(len(users))
        logger.info(
            f"Directory search for '{text}' returned {len(users)} users "
            f"in {duration_ms:.1f}ms"
        )
        return users

    async def fetch_image(self, url: str) -> bytes:
        """
        Download raw image bytes.

        Args:
            url: Absolute http(s) image URL

        Returns:
            Image payload

        Raises:
            NetworkException: INVALID_URL or TRANSPORT
        """
        self.image_calls += 1
        self._validate_url(url, operation="image")

        response = await self._get(url, operation="image")

        track_remote_call("image", "success")
        logger.debug(f"Downloaded {len(response.content)} bytes from {url}")
        return response.content

    def get_health_status(self) -> dict:
        """Get client configuration and call statistics."""
        return {
            "base_url": self.base_url,
            "timeout_seconds": self.timeout,
            "search_calls": self.search_calls,
            "image_calls": self.image_calls,
            "failures": self.failures,
            "connected": self._client is not None and not self._client.is_closed,
        }

    async def _get(
        self, url: str, operation: str, params: Optional[dict] = None
    ) -> httpx.Response:
        """
        Perform a single GET and map failures to NetworkException.

        Args:
            url: Request URL
            operation: Metrics label ("search" or "image")
            params: Optional query parameters

        Returns:
            Successful (2xx) response
        """
        try:
            client = await self._get_client()
            response = await client.get(url, params=params)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as error:
            self._record_failure(operation, "invalid_url")
            logger.error(f"Invalid URL for {operation} request: {url}")
            raise NetworkException(
                NetworkErrorKind.INVALID_URL, url=url, reason=str(error)
            ) from error
        except (httpx.HTTPError, TimeoutError) as error:
            self._record_failure(operation, "transport")
            logger.error(
                f"{operation.capitalize()} request to {url} failed: "
                f"{type(error).__name__}: {error}"
            )
            raise NetworkException(
                NetworkErrorKind.TRANSPORT, url=url, reason=str(error) or type(error).__name__
            ) from error

        if not response.is_success:
            self._record_failure(operation, "transport")
            logger.error(
                f"{operation.capitalize()} request to {url} returned "
                f"HTTP {response.status_code}"
            )
            raise NetworkException(
                NetworkErrorKind.TRANSPORT,
                url=url,
                reason=f"HTTP {response.status_code}",
            )

        return response

    def _validate_url(self, url: str, operation: str) -> None:
        """Reject anything that is not an absolute http(s) URL."""
        try:
            parsed = httpx.URL(url)
        except (httpx.InvalidURL, TypeError) as error:
            self._record_failure(operation, "invalid_url")
            raise NetworkException(
                NetworkErrorKind.INVALID_URL, url=url, reason=str(error)
            ) from error

        if parsed.scheme not in ("http", "https") or not parsed.host:
            self._record_failure(operation, "invalid_url")
            raise NetworkException(
                NetworkErrorKind.INVALID_URL,
                url=url,
                reason="URL must be absolute http(s)",
            )

    def _record_failure(self, operation: str, status: str) -> None:
        self.failures += 1
        track_remote_call(operation, status)
