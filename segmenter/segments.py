from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


CODE_PLACEHOLDER = "\n\n> Writing code...\n\n"


class SegmentKind(str, Enum):
    PROSE = "prose"
    CODE = "code"


@dataclass(frozen=True)
class Segment:
    """One contiguous unit of the assembled message."""

    kind: SegmentKind
    content: str
    language: Optional[str] = None
    closed: bool = False

    @property
    def is_code(self) -> bool:
        return self.kind is SegmentKind.CODE

    def to_dict(self) -> dict:
        data = {"kind": self.kind.value, "content": self.content, "closed": self.closed}
        if self.language is not None:
            data["language"] = self.language
        return data


class _OpenSegment:
    def __init__(self, kind: SegmentKind, language: Optional[str] = None) -> None:
        self.kind = kind
        self.language = language
        self._parts: List[str] = []
        self._content = ""

    def append(self, text: str) -> None:
        self._parts.append(text)

    @property
    def content(self) -> str:
        if self._parts:
            self._content += "".join(self._parts)
            self._parts = []
        return self._content

    def snapshot(self, closed: bool = False) -> Segment:
        return Segment(self.kind, self.content, self.language, closed)


class SegmentAssembler:
    """Builds the ordered segment list and the chat display text.

    Only the last segment can be open. Prose segments are opened by the first
    prose text after a fence (or at the start), code segments by the fence itself.
    Code never reaches the display text; each code block shows ``placeholder``.
    """

    def __init__(self, placeholder: str = CODE_PLACEHOLDER) -> None:
        self.placeholder = placeholder
        self._closed: List[Segment] = []
        self._open: Optional[_OpenSegment] = None
        self._display: List[str] = []
        self._display_text = ""

    @property
    def display_text(self) -> str:
        if self._display:
            self._display_text += "".join(self._display)
            self._display = []
        return self._display_text

    @property
    def segments(self) -> List[Segment]:
        if self._open is None:
            return list(self._closed)
        return self._closed + [self._open.snapshot()]

    @property
    def open_content(self) -> str:
        return self._open.content if self._open else ""

    def last_code(self) -> Optional[Segment]:
        if self._open is not None and self._open.kind is SegmentKind.CODE:
            return self._open.snapshot()
        for segment in reversed(self._closed):
            if segment.is_code:
                return segment
        return None

    def append_prose(self, text: str) -> None:
        if not text:
            return
        if self._open is None or self._open.kind is not SegmentKind.PROSE:
            self.close_open()
            self._open = _OpenSegment(SegmentKind.PROSE)
        self._open.append(text)
        self._display.append(text)

    def append_code(self, text: str) -> None:
        if not text:
            return
        if self._open is None or self._open.kind is not SegmentKind.CODE:
            raise RuntimeError("no open code segment")
        self._open.append(text)

    def open_code(self, language: str) -> str:
        """Start a code segment; returns the placeholder added to the display text."""
        self.close_open()
        self._open = _OpenSegment(SegmentKind.CODE, language)
        self._display.append(self.placeholder)
        return self.placeholder

    def close_open(self) -> Optional[Segment]:
        if self._open is None:
            return None
        segment = self._open.snapshot(closed=True)
        self._closed.append(segment)
        self._open = None
        return segment

    def reset(self) -> None:
        self._closed = []
        self._open = None
        self._display = []
        self._display_text = ""
