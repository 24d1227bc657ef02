"""Exceptions raised by the stream parser."""


class SegmenterError(Exception):
    """Base class for stream parser errors."""


class ParserClosedError(SegmenterError, RuntimeError):
    """Raised when text is written to a parser after end()."""
