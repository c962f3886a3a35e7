"""
levelboard/core/config.py
═══════════════════════════════════════════════════════════════════════════════
Runtime settings, all overridable through environment variables.

  ARCHIVE_URL         → JSON array of {"id": ..., "xp": ...} records
  REFRESH_INTERVAL_S  → seconds between refresh cycle starts (20 min)
  FETCH_TIMEOUT_S     → upper bound for one archive download, 0 = unbounded
  HTTP_TIMEOUT_S      → per-request httpx timeout
  DISPLAY_TZ          → timezone used when showing refresh times in /health
  LOG_LEVEL           → root logging level
═══════════════════════════════════════════════════════════════════════════════
"""

import logging
import os

import pytz

log = logging.getLogger("config")


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        log.warning(f"{name}={raw!r} is not a number — using {default}")
        return default
    if value < 0:
        log.warning(f"{name}={raw!r} is negative — using {default}")
        return default
    return value


def _env_tz(name: str, default: str):
    raw = os.environ.get(name, default)
    try:
        return pytz.timezone(raw)
    except pytz.UnknownTimeZoneError:
        log.warning(f"{name}={raw!r} is not a known timezone — using {default}")
        return pytz.timezone(default)


# ── Archive source ────────────────────────────────────────────────────────────
ARCHIVE_URL = os.environ.get(
    "ARCHIVE_URL", "https://cdn.valk.sh/mc-discord-archive/latest.json"
)
ARCHIVE_HEADERS = {
    "User-Agent": "levelboard/1.0 (+https://github.com/levelboard)",
    "Accept":     "application/json",
}

# ── Refresh timing ────────────────────────────────────────────────────────────
REFRESH_INTERVAL_S = _env_float("REFRESH_INTERVAL_S", 20 * 60)
FETCH_TIMEOUT_S    = _env_float("FETCH_TIMEOUT_S", 120.0)
HTTP_TIMEOUT_S     = _env_float("HTTP_TIMEOUT_S", 60.0)

# ── Presentation / logging ────────────────────────────────────────────────────
DISPLAY_TZ = _env_tz("DISPLAY_TZ", "UTC")
LOG_LEVEL  = os.environ.get("LOG_LEVEL", "INFO").upper()
