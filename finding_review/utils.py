# finding_review/utils.py
import math
import random
import uuid
from typing import Sequence, Tuple, Union

Coord = Union[int, float]


def new_finding_id() -> str:
    """Return an opaque id that is never handed out twice."""
    return uuid.uuid4().hex


def random_color() -> str:
    """
    Return a random display color as '#rrggbb'.
    Purely cosmetic, collisions between findings are fine.
    """
    return f"#{random.randint(0, 0xFFFFFF):06x}"


def round_coordinate(value: Coord) -> int:
    # half-up, matching how exported files have always been rounded
    return int(math.floor(value + 0.5))


def round_bbox(bbox: Sequence[Coord]) -> Tuple[int, int, int, int]:
    x_min, y_min, x_max, y_max = (round_coordinate(c) for c in bbox)
    return (x_min, y_min, x_max, y_max)



def bbox_equals(bbox1, bbox2) -> bool:
    if not bbox1 or not bbox2:
        return False
    if len(bbox1) != 4 or len(bbox2) != 4:
        return False
    return all(a == b for a, b in zip(bbox1, bbox2))
