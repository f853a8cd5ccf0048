from __future__ import annotations

import math
from typing import List, Optional, Tuple

from .errors import FormatError

Point = Tuple[int, int]

# Coordinates are handed to OpenCV as int32.
INT32_MIN, INT32_MAX = -(2**31), 2**31 - 1


def parse_float(text: Optional[str], *, name: str = "value") -> float:
    if text is None:
        raise FormatError(f"missing numeric attribute '{name}'")
    try:
        value = float(text.strip())
    except ValueError as exc:
        raise FormatError(f"malformed number for '{name}': {text!r}") from exc
    if not math.isfinite(value):
        raise FormatError(f"non-finite number for '{name}': {text!r}")
    return value


def parse_int(text: Optional[str], *, name: str = "value") -> int:
    """Parse an integer coordinate, truncating any fractional part toward zero."""
    value = int(parse_float(text, name=name))
    if not INT32_MIN <= value <= INT32_MAX:
        raise FormatError(f"number out of range for '{name}': {text!r}")
    return value


def parse_points(text: Optional[str]) -> List[Point]:
    """Parse ``"x1,y1;x2,y2;..."`` into integer (x, y) pairs.

    Empty segments (e.g. a trailing ``;``) are ignored and an empty or
    missing string yields an empty list. A segment without a ``,`` raises
    :class:`FormatError`; callers reject the whole shape in that case.
    """
    if not text:
        return []
    points: List[Point] = []
    for segment in text.split(";"):
        if not segment.strip():
            continue
        x_text, sep, y_text = segment.partition(",")
        if not sep:
            raise FormatError(f"coordinate pair without ',': {segment!r}")
        points.append((parse_int(x_text, name="x"), parse_int(y_text, name="y")))
    return points
