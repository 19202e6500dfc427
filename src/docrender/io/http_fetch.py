from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx

from docrender.config.environment import Environment
from docrender.config.logging_config import get_logger
from docrender.errors import FetchError

log = get_logger(__name__)


def _headers(user_agent: str | None) -> dict[str, str]:
    headers = {"Accept": "*/*"}
    if user_agent:
        headers["User-Agent"] = user_agent
    return headers


def create_http_client(timeout: float | None = None) -> httpx.AsyncClient:
    """Create the HTTP client used for document and resource fetches."""
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=timeout if timeout is not None else Environment.get_http_timeout(),
    )


@asynccontextmanager
async def http_client_scope(client: httpx.AsyncClient | None) -> AsyncIterator[httpx.AsyncClient]:
    """Yield `client`, or a fresh client that is closed on exit when none was given."""
    if client is not None:
        yield client
        return
    async with create_http_client() as owned:
        yield owned


async def fetch_bytes(client: httpx.AsyncClient, url: str, user_agent: str | None = None) -> bytes | None:
    """
    Fetch `url` and return the response body, or None for a non-success status.

    Transport errors propagate to the caller.
    """
    response = await client.get(url, headers=_headers(user_agent))
    if not response.is_success:
        log.debug(f"GET {url} returned {response.status_code}")
        return None
    return response.content


async def fetch_html(client: httpx.AsyncClient, url: str, user_agent: str | None = None) -> str:
    """
    Fetch the top-level document text.

    Raises:
        FetchError: On a non-success status or a transport failure.
    """
    try:
        response = await client.get(url, headers=_headers(user_agent))
    except httpx.HTTPError as e:
        raise FetchError(url, message=f"Failed to fetch HTML from URL: {url} ({e})") from e
    if not response.is_success:
        raise FetchError(url, status=response.status_code)
    return response.text
