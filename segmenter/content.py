"""Whole-message helpers for answers that have already finished streaming."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from segmenter.parser import StreamParser
from segmenter.segments import Segment


@dataclass
class ParsedContent:
    segments: List[Segment] = field(default_factory=list)
    dependencies: Dict[str, str] = field(default_factory=dict)
    display_text: str = ""

    @property
    def code(self) -> Optional[Segment]:
        """The last code segment, which is the generated component."""
        for segment in reversed(self.segments):
            if segment.is_code:
                return segment
        return None


def parse_content(text: str, **parser_options) -> ParsedContent:
    """Parse a complete answer the same way it would have been parsed while streaming."""
    parser = StreamParser(**parser_options)
    parser.write(text)
    parser.end()
    return ParsedContent(
        segments=parser.segments,
        dependencies=dict(parser.dependencies),
        display_text=parser.display_text,
    )
