"""HTTP descriptor source and location routing."""

from __future__ import annotations

import httpx

from lessonprobe.core.io.errors import SourceFetchError, SourceNotFoundError
from lessonprobe.core.io.impl_local import LocalDescriptorSource
from lessonprobe.core.io.protocols import DescriptorSource
from lessonprobe.core.utils.logging import get_logger

logger = get_logger(__name__)


def is_url(location: str) -> bool:
    return location.lower().startswith(("http://", "https://"))


class HttpDescriptorSource:
    """Fetches descriptor text with a single GET (no retries).

    Args:
        timeout_seconds: Request timeout
        client: Optional shared AsyncClient (tests pass one with a MockTransport)
    """

    def __init__(self, timeout_seconds: float = 30.0, client: httpx.AsyncClient | None = None) -> None:
        self.timeout_seconds = timeout_seconds
        self._client = client

    async def fetch(self, location: str) -> str:
        logger.debug(f"GET {location}")
        try:
            if self._client is not None:
                response = await self._client.get(location, timeout=self.timeout_seconds)
            else:
                async with httpx.AsyncClient(
                    timeout=self.timeout_seconds, follow_redirects=True
                ) as client:
                    response = await client.get(location)
        except httpx.TimeoutException as e:
            raise SourceFetchError(message="Request timed out", location=location, cause=e) from e
        except httpx.HTTPError as e:
            raise SourceFetchError(message=f"Network error: {e}", location=location, cause=e) from e

        if response.status_code == 404:
            raise SourceNotFoundError(
                message="Descriptor not found", location=location, status_code=404
            )
        if not response.is_success:
            raise SourceFetchError(
                message="Unexpected HTTP status",
                location=location,
                status_code=response.status_code,
            )
        return response.text


class RoutingDescriptorSource:
    """Sends URLs to the HTTP source and everything else to the local source."""

    def __init__(
        self,
        local: DescriptorSource | None = None,
        http: DescriptorSource | None = None,
    ) -> None:
        self.local = local or LocalDescriptorSource()
        self.http = http or HttpDescriptorSource()

    async def fetch(self, location: str) -> str:
        if is_url(location):
            return await self.http.fetch(location)
        return await self.local.fetch(location)
