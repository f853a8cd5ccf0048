from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

import numpy as np
from lxml import etree

from .coords import parse_float, parse_int, parse_points
from .errors import FormatError, ParseError
from .geometry import (
    BoxShape,
    EllipseShape,
    GeometryAnnotation,
    PointsShape,
    PolygonShape,
    PolylineShape,
    ShapeKind,
    UnsupportedShape,
)
from .masks import grouped_masks

logger = logging.getLogger(__name__)

# CVAT writes the label catalog under the exported entity: a task, a project or a job.
_CATALOG_PATHS = ("meta/task/labels", "meta/project/labels", "meta/job/labels")


@dataclass(frozen=True)
class ImageRecord:
    filename: str
    width: int
    height: int
    geometries: Tuple[GeometryAnnotation, ...] = ()

    def labels(self) -> List[str]:
        """Labels of all geometries in document order, repetitions included."""
        return [geo.label for geo in self.geometries]

    def geometries_of(self, label: str) -> List[GeometryAnnotation]:
        return [geo for geo in self.geometries if geo.label == label]


@dataclass(frozen=True)
class AnnotationIssue:
    """A recoverable problem found while reading the document."""

    image: Optional[str]
    element: Optional[str]
    message: str

    def __str__(self) -> str:
        where = self.image or "<unnamed image>"
        if self.element:
            where = f"{where} <{self.element}>"
        return f"{where}: {self.message}"


@dataclass(frozen=True)
class AnnotationDocument:
    labels: Tuple[str, ...]
    images: Tuple[ImageRecord, ...]
    issues: Tuple[AnnotationIssue, ...] = field(default=())

    def filenames(self) -> List[str]:
        return [image.filename for image in self.images]

    def image(self, filename: str) -> Optional[ImageRecord]:
        for image in self.images:
            if image.filename == filename:
                return image
        return None

    def masks(self, filename: str, label: str) -> List[np.ndarray]:
        """Grouped masks of ``label`` for the named image; empty when it is unknown."""
        image = self.image(filename)
        if image is None:
            return []
        return grouped_masks(image, label)


def _parse_group(node: etree._Element) -> Optional[int]:
    raw = node.get("group_id")
    if raw is None or not raw.strip():
        return None
    group = parse_int(raw, name="group_id")
    if group < 0:
        raise FormatError(f"negative group_id: {raw!r}")
    return group


def _parse_box(node: etree._Element, label: str, group: Optional[int]) -> BoxShape:
    return BoxShape(
        label=label,
        xtl=parse_int(node.get("xtl"), name="xtl"),
        ytl=parse_int(node.get("ytl"), name="ytl"),
        xbr=parse_int(node.get("xbr"), name="xbr"),
        ybr=parse_int(node.get("ybr"), name="ybr"),
        group=group,
    )


def _parse_ellipse(node: etree._Element, label: str, group: Optional[int]) -> EllipseShape:
    rx = parse_int(node.get("rx"), name="rx")
    ry = parse_int(node.get("ry"), name="ry")
    if rx < 0 or ry < 0:
        raise FormatError(f"negative ellipse radius: rx={rx}, ry={ry}")
    rotation = node.get("rotation")
    return EllipseShape(
        label=label,
        cx=parse_int(node.get("cx"), name="cx"),
        cy=parse_int(node.get("cy"), name="cy"),
        rx=rx,
        ry=ry,
        rotation=parse_float(rotation, name="rotation") if rotation is not None else 0.0,
        group=group,
    )


def _point_shape(cls) -> Callable[[etree._Element, str, Optional[int]], GeometryAnnotation]:
    def build(node: etree._Element, label: str, group: Optional[int]) -> GeometryAnnotation:
        return cls(label=label, points=tuple(parse_points(node.get("points"))), group=group)

    return build


_SHAPE_PARSERS: Dict[str, Callable[[etree._Element, str, Optional[int]], GeometryAnnotation]] = {
    ShapeKind.BOX.value: _parse_box,
    ShapeKind.POLYGON.value: _point_shape(PolygonShape),
    ShapeKind.POLYLINE.value: _point_shape(PolylineShape),
    ShapeKind.POINTS.value: _point_shape(PointsShape),
    ShapeKind.ELLIPSE.value: _parse_ellipse,
}


def parse_geometry(node: etree._Element) -> GeometryAnnotation:
    """Build an immutable shape record from one child element of ``<image>``.

    Raises:
        FormatError: a coordinate list or numeric attribute is malformed.
    """
    label = node.get("label") or ""
    group = _parse_group(node)
    parser = _SHAPE_PARSERS.get(node.tag)
    if parser is None:
        return UnsupportedShape(label=label, element=str(node.tag), group=group)
    return parser(node, label, group)


def _dimension(node: etree._Element, name: str, filename: str) -> int:
    raw = node.get(name)
    try:
        value = parse_int(raw, name=name)
    except FormatError:
        value = -1
    if value < 0:
        logger.warning(
            "image_dimension_missing",
            extra={"image": filename, "attribute": name, "raw": raw},
        )
        return 0
    return value


def _parse_image(node: etree._Element, issues: List[AnnotationIssue]) -> Optional[ImageRecord]:
    filename = node.get("name")
    if not filename:
        issues.append(AnnotationIssue(image=None, element="image", message="image has no name attribute"))
        logger.warning("image_skipped", extra={"id": node.get("id"), "reason": "missing name"})
        return None

    geometries: List[GeometryAnnotation] = []
    for child in node:
        if not isinstance(child.tag, str):
            continue
        try:
            geometries.append(parse_geometry(child))
        except FormatError as exc:
            issues.append(AnnotationIssue(image=filename, element=child.tag, message=str(exc)))
            logger.warning(
                "shape_skipped",
                extra={"image": filename, "element": child.tag, "label": child.get("label"), "error": str(exc)},
            )

    return ImageRecord(
        filename=filename,
        width=_dimension(node, "width", filename),
        height=_dimension(node, "height", filename),
        geometries=tuple(geometries),
    )


def _parse_catalog(root: etree._Element) -> Tuple[str, ...]:
    catalog = None
    for path in _CATALOG_PATHS:
        catalog = root.find(path)
        if catalog is not None:
            break
    if catalog is None:
        raise ParseError("annotation document has no label catalog (meta/task/labels)")

    names: List[str] = []
    for entry in catalog:
        if not isinstance(entry.tag, str):
            continue
        name = (entry.findtext("name") or "").strip()
        if not name:
            logger.warning("label_without_name_ignored")
            continue
        if name not in names:
            names.append(name)
    return tuple(names)


def _build_document(root: etree._Element) -> AnnotationDocument:
    if root.tag != "annotations":
        raise ParseError(f"expected <annotations> root element, found <{root.tag}>")

    labels = _parse_catalog(root)
    issues: List[AnnotationIssue] = []
    images: List[ImageRecord] = []
    for node in root.iterchildren("image"):
        image = _parse_image(node, issues)
        if image is not None:
            images.append(image)

    logger.info(
        "document_loaded",
        extra={"labels": len(labels), "images": len(images), "issues": len(issues)},
    )
    return AnnotationDocument(labels=labels, images=tuple(images), issues=tuple(issues))


def _xml_parser() -> etree.XMLParser:
    return etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)


def parse_document(data: Union[str, bytes]) -> AnnotationDocument:
    """Parse an in-memory CVAT XML document."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    try:
        root = etree.fromstring(data, parser=_xml_parser())
    except etree.XMLSyntaxError as exc:
        raise ParseError(f"invalid annotation XML: {exc}") from exc
    return _build_document(root)


def load_document(path: Union[str, Path]) -> AnnotationDocument:
    """Read and parse a CVAT XML annotation file.

    Raises:
        ParseError: the file cannot be read, is not well-formed XML, or has
            no ``<annotations>`` root or label catalog.
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ParseError(f"cannot read annotation file {path}: {exc}") from exc
    return parse_document(data)
