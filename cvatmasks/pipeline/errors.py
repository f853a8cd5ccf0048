from __future__ import annotations


class CvatMaskError(Exception):
    """Base class for all errors raised by the mask generator."""


class ParseError(CvatMaskError):
    """The annotation document is unreadable or lacks required structure."""


class FormatError(CvatMaskError):
    """A coordinate list or numeric attribute could not be parsed."""


class SinkError(CvatMaskError):
    """Writing a finished mask to its destination failed."""
