from __future__ import annotations

from pathlib import Path

import cv2
import numpy as np


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def read_mask(path: Path) -> np.ndarray:
    mask = cv2.imread(str(path), cv2.IMREAD_GRAYSCALE)
    if mask is None:
        raise FileNotFoundError(f"Failed to read mask: {path}")
    return mask


def save_mask(path: Path, mask: np.ndarray) -> None:
    if mask.size == 0:
        raise ValueError(f"Cannot encode zero-area mask: {path}")
    ensure_dir(path.parent)
    ok = cv2.imwrite(str(path), mask)
    if not ok:
        raise RuntimeError(f"Failed to write image: {path}")
