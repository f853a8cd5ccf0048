from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from .coords import Point


class ShapeKind(str, Enum):
    BOX = "box"
    POLYGON = "polygon"
    POLYLINE = "polyline"
    POINTS = "points"
    ELLIPSE = "ellipse"


@dataclass(frozen=True)
class BoxShape:
    label: str
    xtl: int
    ytl: int
    xbr: int
    ybr: int
    group: Optional[int] = None

    kind = ShapeKind.BOX


@dataclass(frozen=True)
class PolygonShape:
    label: str
    points: Tuple[Point, ...] = ()
    group: Optional[int] = None

    kind = ShapeKind.POLYGON


@dataclass(frozen=True)
class PolylineShape:
    label: str
    points: Tuple[Point, ...] = ()
    group: Optional[int] = None

    kind = ShapeKind.POLYLINE


@dataclass(frozen=True)
class PointsShape:
    label: str
    points: Tuple[Point, ...] = ()
    group: Optional[int] = None

    kind = ShapeKind.POINTS


@dataclass(frozen=True)
class EllipseShape:
    label: str
    cx: int
    cy: int
    rx: int
    ry: int
    rotation: float = 0.0
    group: Optional[int] = None

    kind = ShapeKind.ELLIPSE


@dataclass(frozen=True)
class UnsupportedShape:
    """A document element that is not one of the known shape kinds.

    Kept so image labels stay complete; rasterizing it draws nothing.
    """

    label: str
    element: str
    group: Optional[int] = None

    kind = None


GeometryAnnotation = Union[
    BoxShape,
    PolygonShape,
    PolylineShape,
    PointsShape,
    EllipseShape,
    UnsupportedShape,
]
