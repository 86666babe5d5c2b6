"""HTTP client for the Dropbox OAuth token endpoint."""

import asyncio
from collections.abc import Mapping
from typing import NamedTuple

import httpx

from .utils.logger import logger

DROPBOX_TOKEN_URL = "https://api.dropboxapi.com/oauth2/token"
UPSTREAM_TIMEOUT_SECONDS = 10.0

_SECRET_PARAMS = ("client_secret", "code", "refresh_token")


class UpstreamResponse(NamedTuple):
    """Status and raw body received from the token endpoint."""

    status_code: int
    body: bytes


class UpstreamUnavailableError(Exception):
    """Raised when the token endpoint could not be reached."""


class UpstreamClient:
    """Client for forwarding form-encoded token requests to Dropbox."""

    def __init__(
        self,
        token_url: str = DROPBOX_TOKEN_URL,
        timeout: float = UPSTREAM_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the upstream client.

        Args:
            token_url: Token endpoint every request is posted to.
            timeout: Overall bound in seconds for a single call, body included.
            transport: Optional httpx transport, used to stub the network in tests.
        """
        self.token_url = token_url
        self.timeout = timeout
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def post_form(self, params: Mapping[str, str]) -> UpstreamResponse:
        """
        Send one form-encoded POST to the token endpoint.

        The response body is read in full before returning, which releases
        the connection whatever the outcome.

        Args:
            params: Ordered form parameters

        Returns:
            UpstreamResponse with the status code and body bytes, for any status

        Raises:
            UpstreamUnavailableError: On network, TLS or timeout failure.
        """
        logger.debug(
            "Forwarding %s request to %s with parameters: %s",
            params.get("grant_type", "unknown"),
            self.token_url,
            {k: "***" if k in _SECRET_PARAMS else v for k, v in params.items()},
        )

        try:
            response = await asyncio.wait_for(
                self._client.post(self.token_url, data=dict(params)),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise UpstreamUnavailableError(
                f"no response from {self.token_url} within {self.timeout}s"
            ) from e
        except httpx.RequestError as e:
            raise UpstreamUnavailableError(
                f"request to {self.token_url} failed: {e!r}"
            ) from e

        logger.info(
            "Token endpoint responded: status=%d, content_length=%d bytes",
            response.status_code,
            len(response.content),
        )
        return UpstreamResponse(response.status_code, response.content)

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()
