"""Shared retrying HTTP fetch logic and URL/timestamp helpers."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

import httpx
from pydantic import ValidationError

from depaudit.config import NetworkConfig
from depaudit.errors import (
    ApiError,
    NetworkError,
    NotFoundError,
    ParseError,
    RateLimitExceeded,
)

logger = logging.getLogger(__name__)

GITHUB_HOST = "github.com"
GITLAB_HOST = "gitlab.com"


class BaseFetcher(ABC):
    """Base class for metadata fetchers.

    Owns the HTTP client and the retry policy. Subclasses implement
    ``_fetch`` on top of ``_get_json`` (retried) and ``_probe`` (single
    best-effort request). ``fetch`` reports payloads of the wrong shape
    as ParseError.

    Retry policy:
    - transport errors are retried with exponential backoff
    - 429, or 403 with rate-limit headers, is retried honoring the reset hint
    - 404 raises NotFoundError immediately
    - any other non-success status raises ApiError immediately
    """

    service: str = "http"

    def __init__(
        self,
        network: NetworkConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            network: Network settings. Defaults to NetworkConfig().
            client: Optional shared httpx client. If not provided, a new
                client is created per request.
        """
        self.network = network or NetworkConfig()
        self._client = client

    async def fetch(self, *args: Any) -> Any:
        """Fetch and parse metadata for one package or repository.

        Raises:
            ParseError: If the payload does not have the expected shape.
        """
        try:
            return await self._fetch(*args)
        except (ValidationError, AttributeError, TypeError, KeyError) as e:
            raise ParseError(f"Unexpected {self.service} response: {e}") from e

    @abstractmethod
    async def _fetch(self, *args: Any) -> Any:
        """Provider-specific fetch and parse."""
        ...

    def _headers(self) -> dict[str, str]:
        """Get provider-specific request headers."""
        return {}

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create an HTTP client."""
        if self._client is not None:
            return self._client
        return httpx.AsyncClient(
            timeout=self.network.timeout,
            headers={"User-Agent": self.network.user_agent},
        )

    async def _request(
        self,
        url: str,
        params: dict | None = None,
        resource: str | None = None,
    ) -> httpx.Response:
        """GET a URL under the retry policy.

        Args:
            url: Absolute URL to fetch.
            params: Optional query parameters.
            resource: Name used in NotFoundError messages. Defaults to the URL.

        Returns:
            The successful response.

        Raises:
            NetworkError: Transport failures persisted after all retries.
            RateLimitExceeded: Still rate-limited after all retries.
            NotFoundError: The server answered 404.
            ApiError: Any other non-success status.
        """
        client = await self._get_client()
        attempts = 0
        delay = self.network.request_delay

        try:
            while True:
                try:
                    response = await client.get(
                        url,
                        params=params,
                        headers=self._headers(),
                        timeout=self.network.timeout,
                    )
                except httpx.TransportError as e:
                    if attempts >= self.network.max_retries:
                        raise NetworkError(f"{self.service} request failed: {e}") from e
                    logger.warning(
                        "%s request failed (%s), retrying in %.2fs", self.service, e, delay
                    )
                    await asyncio.sleep(delay)
                    attempts += 1
                    delay *= 2
                    continue

                limited, retry_after = rate_limit_hint(response)
                if limited:
                    too_long = (
                        retry_after is not None and retry_after > self.network.max_rate_limit_wait
                    )
                    if attempts >= self.network.max_retries or too_long:
                        raise RateLimitExceeded(self.service, retry_after)
                    wait = max(delay, retry_after or 0.0)
                    logger.warning("Rate limited by %s, retrying after %.2fs", self.service, wait)
                    await asyncio.sleep(wait)
                    attempts += 1
                    delay *= 2
                    continue

                if response.status_code == 404:
                    raise NotFoundError(self.service, resource or url)
                if not response.is_success:
                    raise ApiError(self.service, f"HTTP {response.status_code}")

                return response
        finally:
            if self._client is None:
                await client.aclose()

    async def _get_json(
        self,
        url: str,
        params: dict | None = None,
        resource: str | None = None,
    ) -> Any:
        """GET a URL under the retry policy and decode the JSON body."""
        response = await self._request(url, params=params, resource=resource)
        try:
            return response.json()
        except ValueError as e:
            raise ParseError(f"Invalid JSON from {self.service}: {e}") from e

    async def _probe(self, url: str, params: dict | None = None) -> httpx.Response | None:
        """Send a single best-effort GET.

        Returns None on any transport failure; never retries and never raises
        for HTTP status codes.
        """
        client = await self._get_client()
        try:
            return await client.get(
                url,
                params=params,
                headers=self._headers(),
                timeout=self.network.timeout,
            )
        except httpx.HTTPError as e:
            logger.debug("%s best-effort request to %s failed: %s", self.service, url, e)
            return None
        finally:
            if self._client is None:
                await client.aclose()


def rate_limit_hint(response: httpx.Response) -> tuple[bool, float | None]:
    """Detect a rate-limit response and derive a retry-after hint in seconds.

    Returns:
        Tuple of (is_rate_limited, retry_after). retry_after is None when the
        response carries no usable hint.
    """
    headers = response.headers
    reset = headers.get("X-RateLimit-Reset") or headers.get("RateLimit-Reset")

    if response.status_code == 429:
        limited = True
    elif response.status_code == 403:
        limited = reset is not None or headers.get("X-RateLimit-Remaining") == "0"
    else:
        limited = False

    if not limited:
        return False, None

    retry_after_header = headers.get("Retry-After")
    if retry_after_header is not None:
        try:
            return True, max(0.0, float(retry_after_header))
        except ValueError:
            pass

    if reset is not None:
        try:
            return True, max(0.0, int(reset) - time.time())
        except ValueError:
            pass

    return True, None


def parse_timestamp(value: str | None, field: str, service: str) -> datetime | None:
    """Parse an RFC 3339 timestamp into an aware UTC datetime.

    Args:
        value: Timestamp string, or None when the field is absent.
        field: Field name, used in error messages.
        service: Service name, used in error messages.

    Returns:
        Parsed datetime, or None when value is None.

    Raises:
        ParseError: If the value is not a valid RFC 3339 timestamp.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ParseError(f"Invalid {service} datetime for {field}: {value!r}")

    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise ParseError(f"Invalid {service} datetime for {field}: {value!r}") from e

    if parsed.tzinfo is None:
        raise ParseError(f"Invalid {service} datetime for {field}: {value!r} has no UTC offset")

    return parsed.astimezone(timezone.utc)


def detect_host(url: str | None) -> str | None:
    """Return "github" or "gitlab" for repository URLs on those hosts."""
    if not url:
        return None
    url_lower = url.lower()
    if GITHUB_HOST in url_lower:
        return "github"
    if GITLAB_HOST in url_lower:
        return "gitlab"
    return None


def parse_repo_path(url: str, host: str) -> str:
    """Extract the repository path ("owner/repo" or "group/sub/repo") from a URL.

    Supports:
    - https://host/owner/repo (with or without .git and trailing slash)
    - git://host/owner/repo and git+https://host/owner/repo
    - git@host:owner/repo.git and ssh://git@host/owner/repo

    Raises:
        ParseError: If the URL has any other shape or lacks owner and repo.
    """
    cleaned = url.strip()
    if cleaned.startswith("git+"):
        cleaned = cleaned[4:]
    cleaned = cleaned.rstrip("/")
    if cleaned.endswith(".git"):
        cleaned = cleaned[:-4].rstrip("/")

    host_pattern = re.escape(host)
    patterns = [
        rf"^(?:ssh://)?git@{host_pattern}[:/](?P<path>.+)$",
        rf"^(?:https?|git)://(?:www\.)?{host_pattern}/(?P<path>.+)$",
    ]

    for pattern in patterns:
        match = re.match(pattern, cleaned, re.IGNORECASE)
        if match:
            path = match.group("path").split("/-/")[0]
            parts = [part for part in path.split("/") if part]
            if len(parts) >= 2:
                return "/".join(parts)
            break

    raise ParseError(f"Invalid {host} repository URL: {url}")


def parse_repo_url(url: str, host: str = GITHUB_HOST) -> tuple[str, str]:
    """Extract (owner, repo) from a repository URL.

    Extra path segments such as ``/tree/main/subdir`` are ignored.
    """
    parts = parse_repo_path(url, host).split("/")
    return parts[0], parts[1]
