"""httpx wrapper.

Standardises timeouts and headers; used by `doctor run` to check that the
hosting provider answers over HTTPS.
"""

from __future__ import annotations

import httpx

from core.config import AppSettings


def build_async_client(settings: AppSettings | None = None) -> httpx.AsyncClient:
    """Create an `httpx.AsyncClient` with the configured timeout and User-Agent."""

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "text/html,application/json;q=0.9,*/*;q=0.8",
    }
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
    )


async def check_https(url: str, settings: AppSettings | None = None) -> tuple[bool, str]:
    """GET `url`; returns (reachable, detail)."""

    try:
        async with build_async_client(settings) as client:
            response = await client.get(url)
        return response.status_code < 500, f"HTTP {response.status_code}"
    except httpx.HTTPError as exc:
        return False, str(exc) or exc.__class__.__name__
