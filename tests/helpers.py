import threading
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from cvatmasks.pipeline.errors import SinkError
from cvatmasks.pipeline.sink import MaskSink


def cvat_xml(labels: Iterable[str], images: str, catalog: Optional[str] = "task") -> str:
    """Minimal CVAT 1.1 export with the given label catalog and <image> elements."""
    label_xml = "".join(f"<label><name>{name}</name><attributes/></label>" for name in labels)
    meta = f"<meta><{catalog}><labels>{label_xml}</labels></{catalog}></meta>" if catalog else "<meta/>"
    return f'<?xml version="1.0" encoding="utf-8"?><annotations><version>1.1</version>{meta}{images}</annotations>'


class RecordingSink(MaskSink):
    """Keeps written masks in memory; optionally fails for chosen labels."""

    def __init__(self, fail_labels=()):
        self.prepared: List[str] = []
        self.written: Dict[Tuple[str, str], np.ndarray] = {}
        self.fail_labels = set(fail_labels)
        self._lock = threading.Lock()

    def prepare(self, labels):
        self.prepared = list(labels)

    def write(self, label, filename, mask):
        if label in self.fail_labels:
            raise SinkError(f"refusing to write {label}/{filename}")
        with self._lock:
            assert (label, filename) not in self.written, "duplicate mask"
            self.written[(label, filename)] = mask.copy()
