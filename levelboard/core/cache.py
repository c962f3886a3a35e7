"""
levelboard/core/cache.py
═══════════════════════════════════════════════════════════════════════════
Snapshot store for the id → xp table.
  • Only the refresh scheduler calls replace()
  • Request handlers call get() / snapshot()
  • A published Snapshot is read-only and never mutated, only replaced
  • Readers take no lock: they read one reference, which is either the
    old snapshot or the new one, never a mix
  • Failed refreshes never call replace() → stale data stays valid
═══════════════════════════════════════════════════════════════════════════
"""

import threading
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, NamedTuple, Optional

U64_MAX = 2**64 - 1


class ScoreRecord(NamedTuple):
    id: int
    value: int


@dataclass(frozen=True)
class Snapshot:
    scores: Mapping[int, int] = field(default_factory=lambda: MappingProxyType({}))
    seq: int = 0
    published_at: Optional[float] = None

    def __len__(self) -> int:
        return len(self.scores)


class SnapshotStore:
    """Holds exactly one live Snapshot and swaps it atomically."""

    def __init__(self) -> None:
        self._snapshot = Snapshot()
        self._write_lock = threading.Lock()

    def get(self, user_id: int) -> Optional[int]:
        """Score for user_id in the current snapshot, or None if unknown."""
        return self._snapshot.scores.get(user_id)

    def snapshot(self) -> Snapshot:
        """Current snapshot handle, for callers needing several consistent reads."""
        return self._snapshot

    def replace(self, scores: Mapping[int, int]) -> Snapshot:
        """Publish a copy of `scores` as the new snapshot. Never fails."""
        frozen = MappingProxyType(dict(scores))
        with self._write_lock:
            snap = Snapshot(frozen, self._snapshot.seq + 1, time.time())
            self._snapshot = snap
        return snap

    def age(self) -> Optional[float]:
        """Seconds since the last publish, or None before the first one."""
        ts = self._snapshot.published_at
        return round(time.time() - ts, 1) if ts is not None else None

    def summary(self) -> dict:
        """Metadata only — safe to expose in /health."""
        snap = self._snapshot
        age = round(time.time() - snap.published_at, 1) if snap.published_at is not None else None
        return {"size": len(snap), "seq": snap.seq, "age_s": age}
