"""
Async HTTP fetching with bounded retry and linear backoff.

One aiohttp session is shared by every fetch of a run. Listing and product
pages use the page profile (text body); images use the asset profile (binary
body, longer timeout). Concurrency is bounded by the callers, not here.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, Optional, Union

import aiohttp

from scraper_logger import ScraperLogger

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (compatible; CatalogImageScraper/1.0; +https://www.example.com/)"
)

# Any 2xx/3xx response counts as success
ACCEPTED_STATUS_MIN = 200
ACCEPTED_STATUS_MAX = 400


@dataclass(frozen=True)
class FetchProfile:
    """Per-request options for one kind of resource."""

    name: str
    timeout: float
    binary: bool = False
    max_redirects: int = 5


PAGE_PROFILE = FetchProfile(name="page", timeout=30.0, binary=False, max_redirects=5)
ASSET_PROFILE = FetchProfile(name="asset", timeout=60.0, binary=True, max_redirects=10)


@dataclass
class PageFetchResult:
    """Response of a successful fetch."""

    url: str
    status: int
    body: Union[str, bytes]
    headers: Dict[str, str] = field(default_factory=dict)


class FetchError(Exception):
    """Raised when a URL could not be fetched within the retry budget."""

    def __init__(self, url: str, attempts: int, reason: str):
        self.url = url
        self.attempts = attempts
        self.reason = reason
        super().__init__(f"{url} failed after {attempts} attempt(s): {reason}")


def is_accepted_status(status: int) -> bool:
    return ACCEPTED_STATUS_MIN <= status < ACCEPTED_STATUS_MAX


class RetryingFetcher:
    """Async HTTP client that retries failed GETs with linear backoff."""

    def __init__(self, logger: ScraperLogger, max_retries: int = 3,
                 retry_base_delay: float = 1.2,
                 user_agent: str = DEFAULT_USER_AGENT,
                 connection_limit: int = 20):
        """Initialize the fetcher.

        Args:
            logger: Logger instance
            max_retries: Total number of attempts per URL (at least 1)
            retry_base_delay: Seconds to wait after attempt N is ``N * delay``
            user_agent: User-Agent header sent with every request
            connection_limit: Size of the connection pool
        """
        if max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {max_retries}")
        self.logger = logger
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.user_agent = user_agent
        self.connection_limit = connection_limit
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        """Open the pooled aiohttp session."""
        connector = aiohttp.TCPConnector(
            limit=self.connection_limit,
            ttl_dns_cache=300,
        )
        self.session = aiohttp.ClientSession(
            connector=connector,
            headers={'User-Agent': self.user_agent},
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Close the session."""
        if self.session:
            await self.session.close()
            self.session = None

    async def fetch(self, url: str, profile: FetchProfile = PAGE_PROFILE) -> PageFetchResult:
        """GET a URL, retrying transport failures.

        Args:
            url: Absolute URL to fetch
            profile: Timeout/body options for this kind of resource

        Returns:
            PageFetchResult of the first successful attempt

        Raises:
            FetchError: If every attempt failed
        """
        attempt = 1
        while True:
            try:
                return await self._get_once(url, profile)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                reason = str(e) or e.__class__.__name__
                if attempt >= self.max_retries:
                    raise FetchError(url, attempt, reason) from e

                delay = self.retry_base_delay * attempt
                self.logger.debug(
                    f"Attempt {attempt}/{self.max_retries} for {url} failed "
                    f"({reason}), retrying in {delay:.1f}s"
                )
                await asyncio.sleep(delay)
                attempt += 1

    async def _get_once(self, url: str, profile: FetchProfile) -> PageFetchResult:
        """Perform a single GET with the profile's timeout and body mode."""
        if self.session is None:
            raise RuntimeError("RetryingFetcher must be used as an async context manager")

        timeout = aiohttp.ClientTimeout(total=profile.timeout)
        async with self.session.get(
            url,
            timeout=timeout,
            allow_redirects=True,
            max_redirects=profile.max_redirects,
        ) as response:
            if not is_accepted_status(response.status):
                raise aiohttp.ClientResponseError(
                    response.request_info,
                    response.history,
                    status=response.status,
                    message=response.reason or "",
                    headers=response.headers,
                )

            if profile.binary:
                body = await response.read()
            else:
                body = await response.text(errors='replace')

            return PageFetchResult(
                url=str(response.url),
                status=response.status,
                body=body,
                headers=dict(response.headers),
            )
