"""
levelboard/routers/levels.py
Endpoints:
  GET /levels/{user_id}   → xp + level info for one user

All reads from the in-memory snapshot only. Zero external calls.
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from levelboard.core.cache import U64_MAX, SnapshotStore
from levelboard.core.leveling import LevelInfo

router = APIRouter(prefix="/levels", tags=["levels"])


def get_store(request: Request) -> SnapshotStore:
    return request.app.state.store


def _parse_id(raw: str) -> int:
    if not (raw.isascii() and raw.isdigit()):
        raise HTTPException(400, detail="Unable to parse ID")
    user_id = int(raw)
    if user_id > U64_MAX:
        raise HTTPException(400, detail="Unable to parse ID")
    return user_id


@router.get("/{user_id}")
async def get_level(user_id: str, store: SnapshotStore = Depends(get_store)):
    uid = _parse_id(user_id)
    xp = store.get(uid)
    if xp is None:
        raise HTTPException(404, detail="ID not known - may not exist or may not be level 5+")

    info = LevelInfo.from_xp(xp)
    return {
        # Discord snowflakes overflow JS numbers, so the id goes out as a string
        "id":          str(uid),
        "xp":          xp,
        "level":       info.level,
        "percentage":  info.percentage,
        "progress_xp": info.progress_xp,
        "needed_xp":   info.needed_xp,
    }
