"""Script download from the fixed remote repository."""

import logging

import httpx

logger = logging.getLogger(__name__)

BASE_URL = "https://raw.githubusercontent.com/JaewooJoung/linux/main/"


class FetchError(Exception):
    """Base class for script download failures."""


class FetchTransportError(FetchError):
    """The request never produced a response (DNS, TLS, connection, ...)."""


class FetchRemoteError(FetchError):
    """The server answered with a non-success status."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class ScriptFetcher:
    """Downloads installer scripts by name.

    The target URL is ``base_url + name``; callers are responsible for
    passing a well-formed name.
    """

    def __init__(
        self, client: httpx.AsyncClient | None = None, base_url: str = BASE_URL
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()
        self.base_url = base_url

    def url_for(self, name: str) -> str:
        return f"{self.base_url}{name}"

    async def fetch(self, name: str) -> str:
        """Return the script body as text (invalid UTF-8 is replaced)."""
        url = self.url_for(name)
        try:
            resp = await self._client.get(url, follow_redirects=True, timeout=None)
        except httpx.HTTPError as e:
            logger.warning("Transport error fetching %s: %s", url, e)
            raise FetchTransportError(f"Failed to download script: {e}") from e

        if not resp.is_success:
            logger.warning("Fetching %s returned HTTP %d", url, resp.status_code)
            raise FetchRemoteError(
                f"Failed to fetch script: {name} (HTTP {resp.status_code})",
                resp.status_code,
            )

        return resp.content.decode("utf-8", errors="replace")

    async def aclose(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._owns_client:
            await self._client.aclose()
