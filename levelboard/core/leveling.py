"""
levelboard/core/leveling.py
MEE6-style level curve. Advancing from level n to n+1 costs 5n² + 50n + 100 xp.
"""

from dataclasses import dataclass


def xp_to_next_level(level: int) -> int:
    return 5 * level * level + 50 * level + 100


def total_xp_for_level(level: int) -> int:
    """Cumulative xp required to reach `level` from zero."""
    return 5 * level * (2 * level * level + 27 * level + 91) // 6


def level_for_xp(xp: int) -> int:
    """Highest level whose cumulative cost does not exceed `xp`."""
    hi = 1
    while total_xp_for_level(hi) <= xp:
        hi *= 2
    lo = 0
    # invariant: total(lo) <= xp < total(hi)
    while hi - lo > 1:
        mid = (lo + hi) // 2
        if total_xp_for_level(mid) <= xp:
            lo = mid
        else:
            hi = mid
    return lo


@dataclass(frozen=True)
class LevelInfo:
    xp: int
    level: int
    progress_xp: int
    needed_xp: int

    @classmethod
    def from_xp(cls, xp: int) -> "LevelInfo":
        if xp < 0:
            raise ValueError(f"xp must be non-negative, got {xp}")
        level = level_for_xp(xp)
        return cls(
            xp=xp,
            level=level,
            progress_xp=xp - total_xp_for_level(level),
            needed_xp=xp_to_next_level(level),
        )

    @property
    def percentage(self) -> float:
        """Progress through the current level, 0–100, truncated to one decimal."""
        return self.progress_xp * 1000 // self.needed_xp / 10
