"""RPKI validator REST client."""

import asyncio
import logging
from typing import Any

import aiohttp

from rpki_exporter.config import DEFAULT_VALIDATOR_URL

logger = logging.getLogger(__name__)


class RpkiValidatorError(Exception):
    """Exception raised when a validator lookup fails."""

    pass


class ValidatorHTTPError(RpkiValidatorError):
    """The validator answered with a status other than 200."""

    def __init__(self, url: str, status: int):
        self.url = url
        self.status = status
        super().__init__(f"{url} status returned: {status}")


class RpkiValidatorClient:
    """Client for the remote RPKI route origin validity endpoint.

    Each lookup is a single GET with ``asn`` and ``prefix`` query parameters.
    There is no retry and no caching: every call goes to the network.

    Example:
        async with RpkiValidatorClient() as client:
            body = await client.lookup("192.0.2.0/24", 65001)
    """

    def __init__(self, base_url: str = DEFAULT_VALIDATOR_URL):
        """Initialize the client.

        Args:
            base_url: Validity endpoint URL, without query string.
        """
        self.base_url = base_url
        self._session: aiohttp.ClientSession | None = None

    async def connect(self) -> None:
        """Create HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession()

    async def disconnect(self) -> None:
        """Close HTTP session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "RpkiValidatorClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.disconnect()

    def build_url(self, prefix: str, asn: int) -> str:
        """Return the full query URL for a prefix/origin pair."""
        return f"{self.base_url}?asn={asn}&prefix={prefix}"

    async def lookup(self, prefix: str, asn: int) -> bytes:
        """Query the validator for a prefix/origin pair.

        Args:
            prefix: IP prefix in canonical CIDR notation.
            asn: Origin AS number.

        Returns:
            Raw response body; decoding is left to the caller.

        Raises:
            ValidatorHTTPError: If the validator does not answer 200.
            RpkiValidatorError: On transport failures (DNS, refused, reset, timeout).
        """
        if self._session is None:
            raise RuntimeError("Client not connected. Use 'async with' or call connect().")

        url = self.build_url(prefix, asn)
        logger.debug("Querying %s", url)
        try:
            async with self._session.get(url) as response:
                if response.status != 200:
                    raise ValidatorHTTPError(url, response.status)
                return await response.read()
        except aiohttp.ClientError as e:
            raise RpkiValidatorError(f"request to {url} failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise RpkiValidatorError(f"request to {url} timed out") from e
