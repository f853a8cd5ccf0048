from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Literal, Optional, Sequence, Tuple

import numpy as np

from .document import AnnotationDocument, AnnotationIssue, ImageRecord
from .errors import SinkError
from .masks import combined_mask, grouped_masks
from .sink import MaskSink, mask_filename

logger = logging.getLogger(__name__)

MaskMode = Literal["combined", "grouped"]


@dataclass(frozen=True)
class MaskRecord:
    label: str
    filename: str
    mask: np.ndarray


@dataclass(frozen=True)
class UnitFailure:
    """A unit of work (one image, optionally one label of it) that did not complete."""

    image: str
    label: Optional[str]
    error: str

    def __str__(self) -> str:
        where = self.image if self.label is None else f"{self.label}/{self.image}"
        return f"{where}: {self.error}"


@dataclass
class ImageOutcome:
    image: str
    written: int = 0
    skipped: int = 0
    failures: List[UnitFailure] = field(default_factory=list)


@dataclass
class GenerationReport:
    images: int = 0
    masks_written: int = 0
    masks_skipped: int = 0
    issues: List[AnnotationIssue] = field(default_factory=list)
    failures: List[UnitFailure] = field(default_factory=list)
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return not self.issues and not self.failures

    def summary_lines(self) -> List[str]:
        lines = [f"{self.masks_written} mask(s) written for {self.images} image(s) in {self.elapsed_ms}ms"]
        if self.masks_skipped:
            lines.append(f"{self.masks_skipped} zero-area mask(s) not written")
        if self.issues:
            lines.append(f"{len(self.issues)} annotation(s) skipped:")
            lines.extend(f"  {issue}" for issue in self.issues)
        if self.failures:
            lines.append(f"{len(self.failures)} unit(s) failed:")
            lines.extend(f"  {failure}" for failure in self.failures)
        return lines


class MaskGenerationPipeline:
    """
    Renders masks for every (image, label) pair of a document and hands them to a sink.

    Each image is an independent task on a thread pool. Tasks only read the
    immutable document and return an :class:`ImageOutcome`; the pipeline waits
    for all of them and folds outcomes and unexpected task errors into one
    :class:`GenerationReport`.
    """

    def __init__(
        self,
        sink: MaskSink,
        *,
        mode: MaskMode = "combined",
        max_workers: Optional[int] = None,
        extension: str = ".png",
    ):
        if mode not in ("combined", "grouped"):
            raise ValueError(f"unknown mask mode: {mode!r}")
        self.sink = sink
        self.mode = mode
        self.max_workers = max_workers
        self.extension = extension

    def masks_for(self, image: ImageRecord, label: str) -> List[Tuple[str, np.ndarray]]:
        """Output file names and masks for one (image, label) pair."""
        if self.mode == "combined":
            return [(mask_filename(image.filename, self.extension), combined_mask(image, label))]
        return [
            (mask_filename(image.filename, self.extension, index=i), mask)
            for i, mask in enumerate(grouped_masks(image, label), start=1)
        ]

    def iter_masks(self, document: AnnotationDocument) -> Iterator[MaskRecord]:
        """Serially yield every mask of the document, images outer, labels inner."""
        for image in document.images:
            for label in document.labels:
                for filename, mask in self.masks_for(image, label):
                    yield MaskRecord(label=label, filename=filename, mask=mask)

    def _process_image(self, image: ImageRecord, labels: Sequence[str]) -> ImageOutcome:
        t0 = time.perf_counter()
        outcome = ImageOutcome(image=image.filename)
        for label in labels:
            try:
                for filename, mask in self.masks_for(image, label):
                    if mask.size == 0:
                        # Zero width or height: nothing an image codec can hold.
                        outcome.skipped += 1
                        logger.warning("zero_area_mask_skipped", extra={"image": image.filename, "label": label})
                        continue
                    self.sink.write(label, filename, mask)
                    outcome.written += 1
            except SinkError as exc:
                outcome.failures.append(UnitFailure(image=image.filename, label=label, error=str(exc)))
                logger.error("mask_write_failed", extra={"image": image.filename, "label": label, "error": str(exc)})
            except Exception as exc:
                outcome.failures.append(UnitFailure(image=image.filename, label=label, error=repr(exc)))
                logger.exception("mask_render_failed", extra={"image": image.filename, "label": label})
        logger.info(
            "image_masks_written",
            extra={
                "image": image.filename,
                "masks": outcome.written,
                "skipped": outcome.skipped,
                "failed": len(outcome.failures),
                "ms": int((time.perf_counter() - t0) * 1000),
            },
        )
        return outcome

    def run(self, document: AnnotationDocument) -> GenerationReport:
        t0 = time.perf_counter()
        report = GenerationReport(images=len(document.images), issues=list(document.issues))
        labels = list(document.labels)

        # Images whose masks would land on an earlier image's file (same declared name
        # up to the extension) are not rendered.
        claimed: Dict[str, str] = {}
        images: List[ImageRecord] = []
        for image in document.images:
            try:
                name = mask_filename(image.filename, self.extension)
            except ValueError:
                name = None
            if name is None or name in claimed:
                error = (
                    f"no output name can be derived from {image.filename!r}"
                    if name is None
                    else f"output name {name} already used by {claimed[name]}"
                )
                report.failures.append(UnitFailure(image=image.filename, label=None, error=error))
                logger.error("output_name_collision", extra={"image": image.filename, "error": error})
                continue
            claimed[name] = image.filename
            images.append(image)

        self.sink.prepare(labels)

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="cvatmasks") as pool:
            futures: List[Tuple[ImageRecord, Future]] = [
                (image, pool.submit(self._process_image, image, labels)) for image in images
            ]
            for image, future in futures:
                exc = future.exception()
                if exc is not None:
                    logger.error(
                        "image_failed",
                        exc_info=(type(exc), exc, exc.__traceback__),
                        extra={"image": image.filename},
                    )
                    report.failures.append(UnitFailure(image=image.filename, label=None, error=repr(exc)))
                    continue
                outcome: ImageOutcome = future.result()
                report.masks_written += outcome.written
                report.masks_skipped += outcome.skipped
                report.failures.extend(outcome.failures)

        report.elapsed_ms = int((time.perf_counter() - t0) * 1000)
        logger.info(
            "generation_finished",
            extra={
                "images": report.images,
                "masks": report.masks_written,
                "skipped": report.masks_skipped,
                "issues": len(report.issues),
                "failures": len(report.failures),
                "ms": report.elapsed_ms,
            },
        )
        return report


def run_pipeline(
    document: AnnotationDocument,
    sink: MaskSink,
    **kwargs,
) -> GenerationReport:
    """High-level wrapper to render a whole document through a sink."""
    return MaskGenerationPipeline(sink, **kwargs).run(document)
