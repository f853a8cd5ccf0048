from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Hashable, List

import numpy as np

from .rasterize import draw, empty_mask

if TYPE_CHECKING:
    from .document import ImageRecord


def combined_mask(image: "ImageRecord", label: str) -> np.ndarray:
    """Union of every ``label`` shape in ``image``, ignoring groups.

    Always returns a mask of the image's size, all background when the
    label does not occur.
    """
    mask = empty_mask(image.width, image.height)
    for geo in image.geometries_of(label):
        draw(geo, mask)
    return mask


def grouped_masks(image: "ImageRecord", label: str) -> List[np.ndarray]:
    """One mask per group of ``label`` shapes, in first-encounter order.

    Shapes sharing a ``group_id`` are merged into one mask; a shape without
    a group gets a mask of its own.
    """
    partitions: Dict[Hashable, np.ndarray] = {}
    for idx, geo in enumerate(image.geometries):
        if geo.label != label:
            continue
        key: Hashable = ("group", geo.group) if geo.group is not None else ("shape", idx)
        mask = partitions.get(key)
        if mask is None:
            mask = empty_mask(image.width, image.height)
            partitions[key] = mask
        draw(geo, mask)
    return list(partitions.values())


def label_masks(image: "ImageRecord") -> Dict[str, np.ndarray]:
    """Combined mask for each label used in ``image``, keyed in first-use order."""
    result: Dict[str, np.ndarray] = {}
    for geo in image.geometries:
        mask = result.get(geo.label)
        if mask is None:
            mask = empty_mask(image.width, image.height)
            result[geo.label] = mask
        draw(geo, mask)
    return result
