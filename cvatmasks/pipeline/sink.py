from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import Iterable, Optional

import cv2
import numpy as np

from .errors import SinkError
from .io import ensure_dir, save_mask

logger = logging.getLogger(__name__)


def mask_filename(image_filename: str, extension: str = ".png", index: Optional[int] = None) -> str:
    """Output name for an image's mask: the declared name with its extension replaced.

    Directory components are kept (``train/001.jpg`` -> ``train/001.png``).
    ``index`` numbers per-group masks (``frame_1.png``, ``frame_2.png``...).
    """
    path = PurePosixPath(image_filename.replace("\\", "/"))
    stem = path.stem if index is None else f"{path.stem}_{index}"
    return str(path.with_name(stem + extension))


class MaskSink(ABC):
    """Destination for finished masks, addressed by label and file name."""

    def prepare(self, labels: Iterable[str]) -> None:
        """Called once before any mask is written."""

    @abstractmethod
    def write(self, label: str, filename: str, mask: np.ndarray) -> None:
        """Persist one mask. Raises :class:`SinkError` on failure."""


class DirectoryMaskSink(MaskSink):
    """Writes ``<root>/<label>/<filename>`` image files."""

    def __init__(self, root: Path | str):
        self.root = Path(root)

    def label_dir(self, label: str) -> Path:
        return self.root / label

    def prepare(self, labels: Iterable[str]) -> None:
        for label in labels:
            try:
                ensure_dir(self.label_dir(label))
            except OSError as exc:
                raise SinkError(f"cannot create output directory {self.label_dir(label)}: {exc}") from exc

    def write(self, label: str, filename: str, mask: np.ndarray) -> None:
        relative = PurePosixPath(filename)
        if relative.is_absolute() or ".." in relative.parts:
            raise SinkError(f"refusing to write outside the label directory: {filename}")
        path = self.label_dir(label) / relative
        try:
            save_mask(path, mask)
        except (OSError, RuntimeError, ValueError, cv2.error) as exc:
            raise SinkError(f"failed to write mask {path}: {exc}") from exc
        logger.debug("mask_written", extra={"path": str(path)})
