"""Incremental segmentation of streamed model answers into prose, code and dependencies."""

from segmenter.content import ParsedContent, parse_content
from segmenter.dependencies import DEFAULT_MAX_MANIFEST_CHARS, parse_dependencies
from segmenter.errors import ParserClosedError, SegmenterError
from segmenter.events import EventBus, EventType, ParserEvent
from segmenter.parser import ParserMode, StreamParser
from segmenter.segments import CODE_PLACEHOLDER, Segment, SegmentKind

__all__ = [
    "CODE_PLACEHOLDER",
    "DEFAULT_MAX_MANIFEST_CHARS",
    "EventBus",
    "EventType",
    "ParsedContent",
    "ParserClosedError",
    "ParserEvent",
    "ParserMode",
    "Segment",
    "SegmentKind",
    "SegmenterError",
    "StreamParser",
    "parse_content",
    "parse_dependencies",
]
