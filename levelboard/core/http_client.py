"""
levelboard/core/http_client.py
Shared async httpx client for the level archive.
  • archive_client() → lazily created, reused across refresh cycles
  • close_all()      → called from the app lifespan on shutdown
"""

from typing import Optional

import httpx

from levelboard.core.config import ARCHIVE_HEADERS, HTTP_TIMEOUT_S

_archive_client: Optional[httpx.AsyncClient] = None

_LIMITS  = httpx.Limits(max_connections=4, max_keepalive_connections=2)
_TIMEOUT = httpx.Timeout(HTTP_TIMEOUT_S, connect=15.0)


def archive_client() -> httpx.AsyncClient:
    global _archive_client
    if _archive_client is None or _archive_client.is_closed:
        _archive_client = httpx.AsyncClient(
            headers=ARCHIVE_HEADERS,
            timeout=_TIMEOUT,
            follow_redirects=True,
            limits=_LIMITS,
        )
    return _archive_client


async def close_all() -> None:
    global _archive_client
    if _archive_client and not _archive_client.is_closed:
        await _archive_client.aclose()
    _archive_client = None
