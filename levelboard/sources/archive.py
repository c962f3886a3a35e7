"""
levelboard/sources/archive.py
═══════════════════════════════════════════════════════════════════════════════
Minecraft Discord level archive (public JSON dump, no key required).

Payload shape:
  [{"id": 123456789012345678, "xp": 4200, ...}, ...]

Only `id` and `xp` are read; any other keys are ignored. Ids may arrive as
numbers or numeric strings. Anything else (network error, non-2xx status,
non-array body, negative or >u64 values) is a FetchError, which the
scheduler turns into "keep serving the previous snapshot".
═══════════════════════════════════════════════════════════════════════════════
"""

import logging
from typing import Optional

import httpx
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from levelboard.core.cache import U64_MAX, ScoreRecord
from levelboard.core.config import ARCHIVE_URL
from levelboard.core.errors import FetchError
from levelboard.core.http_client import archive_client

log = logging.getLogger("archive")


class IncomingUser(BaseModel):
    id: int = Field(ge=0, le=U64_MAX)
    xp: int = Field(ge=0, le=U64_MAX)


_PAYLOAD = TypeAdapter(list[IncomingUser])


async def fetch_levels(
    client: Optional[httpx.AsyncClient] = None,
    url: str = ARCHIVE_URL,
) -> list[ScoreRecord]:
    client = client or archive_client()
    try:
        r = await client.get(url)
        r.raise_for_status()
    except httpx.HTTPStatusError as ex:
        raise FetchError(f"archive returned HTTP {ex.response.status_code}") from ex
    except httpx.HTTPError as ex:
        raise FetchError(f"archive unreachable: {ex!r}") from ex

    try:
        users = _PAYLOAD.validate_json(r.content)
    except ValidationError as ex:
        raise FetchError(f"malformed archive payload ({ex.error_count()} errors)") from ex

    log.info(f"Archive: {len(users)} records fetched")
    return [ScoreRecord(u.id, u.xp) for u in users]
