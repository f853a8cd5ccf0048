"""Annotation-to-mask pipeline.

Modules:
- `coords` — coordinate list and number parsing
- `geometry` — immutable shape records
- `document` — CVAT XML loading into image records and the label catalog
- `rasterize` — drawing one shape onto a mask
- `masks` — combined and grouped mask aggregation
- `io`, `sink` — mask encoding and output destinations
- `orchestrator` — parallel generation over a whole document
"""

from .document import AnnotationDocument, ImageRecord, load_document, parse_document
from .errors import CvatMaskError, FormatError, ParseError, SinkError
from .masks import combined_mask, grouped_masks, label_masks
from .orchestrator import GenerationReport, MaskGenerationPipeline, run_pipeline
from .sink import DirectoryMaskSink, MaskSink

__all__ = [
    "AnnotationDocument",
    "CvatMaskError",
    "DirectoryMaskSink",
    "FormatError",
    "GenerationReport",
    "ImageRecord",
    "MaskGenerationPipeline",
    "MaskSink",
    "ParseError",
    "SinkError",
    "combined_mask",
    "grouped_masks",
    "label_masks",
    "load_document",
    "parse_document",
    "run_pipeline",
]
