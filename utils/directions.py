from __future__ import annotations

from enum import Enum
from typing import Tuple, assert_never

from utils.errors import InvalidInputError


class Direction(str, Enum):
    SOURCE_TO_TARGET = "source_to_target"
    TARGET_TO_SOURCE = "target_to_source"
    MIXED = "mixed"


CONCRETE_DIRECTIONS: Tuple[Direction, ...] = (Direction.SOURCE_TO_TARGET, Direction.TARGET_TO_SOURCE)


def parse_direction(value) -> Direction:
    if isinstance(value, Direction):
        return value
    try:
        return Direction(str(value).strip().lower())
    except ValueError:
        raise InvalidInputError(f"Unknown direction: {value!r}") from None


def resolve_directions(direction: Direction) -> Tuple[Direction, ...]:
    """Concrete directions a study mode covers; progress only exists for these."""
    match direction:
        case Direction.SOURCE_TO_TARGET:
            return (Direction.SOURCE_TO_TARGET,)
        case Direction.TARGET_TO_SOURCE:
            return (Direction.TARGET_TO_SOURCE,)
        case Direction.MIXED:
            return CONCRETE_DIRECTIONS
        case _:
            assert_never(direction)


def require_concrete(direction: Direction) -> Direction:
    match direction:
        case Direction.SOURCE_TO_TARGET | Direction.TARGET_TO_SOURCE:
            return direction
        case Direction.MIXED:
            raise InvalidInputError("A graded answer needs a concrete direction, not 'mixed'")
        case _:
            assert_never(direction)


def directions_for_item(direction: Direction, reversible: bool) -> Tuple[Direction, ...]:
    """Concrete directions an item can be studied in; one-way items only go source to target."""
    allowed = resolve_directions(direction)
    if reversible:
        return allowed
    return tuple(d for d in allowed if d is Direction.SOURCE_TO_TARGET)


def prompt_and_answer(direction: Direction, source_text: str, target_text: str) -> Tuple[str, str]:
    """(shown text, expected answer) for a concrete direction."""
    match direction:
        case Direction.SOURCE_TO_TARGET:
            return source_text, target_text
        case Direction.TARGET_TO_SOURCE:
            return target_text, source_text
        case Direction.MIXED:
            raise InvalidInputError("A prompt needs a concrete direction, not 'mixed'")
        case _:
            assert_never(direction)
