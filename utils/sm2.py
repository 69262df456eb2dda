from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from utils.directions import Direction, require_concrete
from utils.errors import InvalidInputError

DAY_MS = 24 * 60 * 60 * 1000
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
PASSING_QUALITY = 3
MIN_QUALITY = 0
MAX_QUALITY = 5


@dataclass(frozen=True)
class ProgressRecord:
    item_id: int
    direction: Direction
    repetitions: int = 0
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval_days: int = 0
    due_at: int = 0
    last_reviewed_at: Optional[int] = None

    @property
    def is_new(self) -> bool:
        return self.last_reviewed_at is None


def map_rating_to_quality(rating: str) -> int:
    """Map the hard / medium / easy answer buttons to SM-2 quality (0-5)."""
    mapping = {
        "hard": 1,
        "medium": 3,
        "easy": 5,
    }
    try:
        return mapping[rating.strip().lower()]
    except (AttributeError, KeyError):
        raise InvalidInputError(f"Unknown rating: {rating!r}") from None


def validate_quality(quality) -> int:
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidInputError(f"Quality must be an integer, got {quality!r}")
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise InvalidInputError(f"Quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {quality}")
    return quality


def next_ease_factor(ease_factor: float, quality: int) -> float:
    miss = MAX_QUALITY - quality
    return max(MIN_EASE_FACTOR, ease_factor + (0.1 - miss * (0.08 + miss * 0.02)))


def grade(
    current: Optional[ProgressRecord],
    quality: int,
    *,
    now_ms: int,
    item_id: Optional[int] = None,
    direction: Optional[Direction] = None,
) -> ProgressRecord:
    """Compute the progress record that follows an answer of ``quality`` at ``now_ms``.

    ``current`` may be None for a pair that was never graded; ``item_id`` and
    ``direction`` then name the pair. Failures (quality < 3) reset repetitions and
    the interval but keep the ease factor. Intervals are whole days counted from
    the grading instant.
    """
    quality = validate_quality(quality)
    if current is None:
        if item_id is None or direction is None:
            raise InvalidInputError("item_id and direction are required for a first grade")
        current = ProgressRecord(item_id=item_id, direction=require_concrete(direction))
    else:
        require_concrete(current.direction)

    if quality < PASSING_QUALITY:
        repetitions = 0
        interval_days = 1
        ease_factor = current.ease_factor
    else:
        repetitions = current.repetitions + 1
        if repetitions == 1:
            interval_days = 1
        elif repetitions == 2:
            interval_days = 6
        else:
            interval_days = max(1, round(current.interval_days * current.ease_factor))
        ease_factor = next_ease_factor(current.ease_factor, quality)

    return ProgressRecord(
        item_id=current.item_id,
        direction=current.direction,
        repetitions=repetitions,
        ease_factor=ease_factor,
        interval_days=interval_days,
        due_at=now_ms + interval_days * DAY_MS,
        last_reviewed_at=now_ms,
    )
