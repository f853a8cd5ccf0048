from __future__ import annotations

import logging
from typing import Sequence

import cv2
import numpy as np

from .coords import Point
from .geometry import (
    BoxShape,
    EllipseShape,
    GeometryAnnotation,
    PointsShape,
    PolygonShape,
    PolylineShape,
    UnsupportedShape,
)

FOREGROUND = 255

# Largest coordinate magnitude passed to OpenCV; anything beyond is clamped.
COORD_LIMIT = 1 << 24

logger = logging.getLogger(__name__)


def empty_mask(width: int, height: int) -> np.ndarray:
    """Single-channel uint8 canvas of shape (height, width), all background."""
    return np.zeros((max(0, int(height)), max(0, int(width))), dtype=np.uint8)


def _clamp(value: int) -> int:
    return max(-COORD_LIMIT, min(COORD_LIMIT, int(value)))


def _as_contour(points: Sequence[Point]) -> np.ndarray:
    return np.array([(_clamp(x), _clamp(y)) for x, y in points], dtype=np.int32).reshape(-1, 1, 2)


def _draw_box(shape: BoxShape, canvas: np.ndarray) -> None:
    # Inclusive corners; inverted boxes are legal and fill nothing.
    if shape.xbr < shape.xtl or shape.ybr < shape.ytl:
        return
    cv2.rectangle(
        canvas,
        (_clamp(shape.xtl), _clamp(shape.ytl)),
        (_clamp(shape.xbr), _clamp(shape.ybr)),
        FOREGROUND,
        thickness=cv2.FILLED,
    )


def _draw_polygon(shape: PolygonShape, canvas: np.ndarray) -> None:
    if len(shape.points) < 3:
        return
    cv2.fillPoly(canvas, [_as_contour(shape.points)], FOREGROUND)


def _draw_polyline(shape: PolylineShape, canvas: np.ndarray) -> None:
    if len(shape.points) < 2:
        return
    cv2.polylines(canvas, [_as_contour(shape.points)], isClosed=False, color=FOREGROUND, thickness=1)


def _draw_points(shape: PointsShape, canvas: np.ndarray) -> None:
    height, width = canvas.shape[:2]
    for x, y in shape.points:
        if 0 <= x < width and 0 <= y < height:
            canvas[y, x] = FOREGROUND


def _draw_ellipse(shape: EllipseShape, canvas: np.ndarray) -> None:
    cv2.ellipse(
        canvas,
        (_clamp(shape.cx), _clamp(shape.cy)),
        (_clamp(shape.rx), _clamp(shape.ry)),
        float(shape.rotation),
        0,
        360,
        FOREGROUND,
        thickness=cv2.FILLED,
    )


def draw(shape: GeometryAnnotation, canvas: np.ndarray) -> None:
    """Rasterize ``shape`` onto ``canvas`` in place.

    Pixels are only ever raised to 255, so drawing order never changes the
    result. Coordinates outside the canvas are clipped. Shapes of an
    unsupported kind draw nothing.
    """
    if canvas.size == 0:
        return
    if isinstance(shape, BoxShape):
        _draw_box(shape, canvas)
    elif isinstance(shape, PolygonShape):
        _draw_polygon(shape, canvas)
    elif isinstance(shape, PolylineShape):
        _draw_polyline(shape, canvas)
    elif isinstance(shape, PointsShape):
        _draw_points(shape, canvas)
    elif isinstance(shape, EllipseShape):
        _draw_ellipse(shape, canvas)
    elif isinstance(shape, UnsupportedShape):
        logger.debug("unsupported_shape_ignored", extra={"element": shape.element, "label": shape.label})
    else:
        raise TypeError(f"not a geometry annotation: {shape!r}")
