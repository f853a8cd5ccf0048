import logging
from pathlib import Path

import pytest

from cvatmasks.core.config import get_settings


@pytest.fixture
def write_xml(tmp_path: Path):
    def _write(text: str, name: str = "annotations.xml") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    for key in (
        "CVATMASKS_LOG_LEVEL",
        "CVATMASKS_LOG_FORMAT",
        "CVATMASKS_MAX_WORKERS",
        "CVATMASKS_MASK_EXTENSION",
        "CVATMASKS_MASK_MODE",
    ):
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
