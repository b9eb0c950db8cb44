"""Level resolution from cumulative points."""
from dataclasses import dataclass
from typing import Dict, List, Sequence
from sqlalchemy.orm import Session
from finquiz.db.models import Level


@dataclass(frozen=True)
class LevelTier:
    """One row of the level threshold table."""
    id: int
    name: str
    required_points: int


def validate_levels(levels: Sequence[LevelTier]) -> None:
    """
    Check the structural rules of a level table.

    Rules:
    - The table is not empty
    - Index 0 requires 0 points (always attainable)
    - required_points is strictly increasing by index

    Args:
        levels: Ordered level table

    Raises:
        ValueError: a rule is violated
    """
    if not levels:
        raise ValueError("Level table must contain at least one level")

    if levels[0].required_points != 0:
        raise ValueError(
            f"First level must require 0 points, got {levels[0].required_points}"
        )

    for previous, current in zip(levels, levels[1:]):
        if current.required_points <= previous.required_points:
            raise ValueError(
                f"Level {current.name!r} requires {current.required_points} points, "
                f"not more than {previous.name!r} ({previous.required_points})"
            )


def resolve_level(total_points: int, levels: Sequence[LevelTier], current_index: int) -> int:
    """
    Advance a level index to match cumulative points.

    The index only ever moves forward and stops at the last table entry, so
    a learner is never downgraded and points past the top threshold clamp.

    Args:
        total_points: Cumulative points
        levels: Ordered level table
        current_index: Index the learner currently holds

    Returns:
        New level index (>= current_index)
    """
    new_index = current_index
    while new_index + 1 < len(levels) and levels[new_index + 1].required_points <= total_points:
        new_index += 1
    return new_index


def level_progress(total_points: int, levels: Sequence[LevelTier], current_index: int) -> Dict:
    """
    Get progress toward the next level.

    Args:
        total_points: Cumulative points
        levels: Ordered level table
        current_index: Index the learner currently holds

    Returns:
        Dictionary with level progress:
        {
            "current_level": 2,
            "name": "Senior Analyst",
            "max_level": 6,
            "can_level_up": True,
            "next_level_points": 1200,
            "points_to_next": 450,
            "progress_percentage": 25.0
        }
    """
    current = levels[current_index]
    max_index = len(levels) - 1
    can_level_up = current_index < max_index

    next_level_points = None
    points_to_next = 0
    progress_percentage = 100.0

    if can_level_up:
        next_level_points = levels[current_index + 1].required_points
        span = next_level_points - current.required_points
        earned = max(0, total_points - current.required_points)
        points_to_next = max(0, next_level_points - total_points)
        progress_percentage = min(100.0, (earned / span) * 100)

    return {
        "current_level": current_index,
        "name": current.name,
        "max_level": max_index,
        "can_level_up": can_level_up,
        "next_level_points": next_level_points,
        "points_to_next": points_to_next,
        "progress_percentage": round(progress_percentage, 1)
    }


def load_levels(db: Session) -> List[LevelTier]:
    """Load and validate the level table from the database."""
    rows = db.query(Level).order_by(Level.required_points).all()
    levels = [LevelTier(id=row.id, name=row.name, required_points=row.required_points) for row in rows]
    validate_levels(levels)
    return levels
