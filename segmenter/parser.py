"""Incremental parser that splits a streamed model answer into prose and code."""

from __future__ import annotations

import codecs
import logging
from enum import Enum
from typing import Dict, List, Optional, Union

from segmenter.buffer import ChunkBuffer
from segmenter.dependencies import (
    DEFAULT_MAX_MANIFEST_CHARS,
    ExtractStatus,
    extract_manifest,
)
from segmenter.errors import ParserClosedError
from segmenter.events import EventBus, EventType, Handler, ParserEvent
from segmenter.scanner import (
    FENCE_CHAR,
    ScanResult,
    ScanStatus,
    scan_close_fence,
    scan_open_fence,
)
from segmenter.segments import CODE_PLACEHOLDER, Segment, SegmentAssembler, SegmentKind


logger = logging.getLogger(__name__)


class ParserMode(str, Enum):
    AWAITING_DEPENDENCIES = "awaiting_dependencies"
    IN_PROSE = "in_prose"
    IN_CODE_FENCE = "in_code_fence"
    CLOSED = "closed"


class StreamParser:
    """Turns token-by-token model output into segments while it streams.

    Feed fragments with ``write()`` as they arrive and call ``end()`` once the
    stream is over (or aborted). Progress is reported through events::

        parser = StreamParser()
        parser.on("codeUpdate", lambda code: view.show(code))
        for chunk in chunks:
            parser.write(chunk)
        parser.end()

    Text that might be the start of a marker is held back until it is decided,
    so the final segments, display text and dependencies do not depend on how
    the stream was split into fragments.
    """

    def __init__(
        self,
        *,
        max_manifest_chars: int = DEFAULT_MAX_MANIFEST_CHARS,
        placeholder: str = CODE_PLACEHOLDER,
        record_events: bool = False,
    ) -> None:
        self.max_manifest_chars = max_manifest_chars
        self.events = EventBus(record=record_events)
        self._assembler = SegmentAssembler(placeholder)
        self._buffer = ChunkBuffer()
        self._init_state()

    def _init_state(self) -> None:
        self.mode = ParserMode.AWAITING_DEPENDENCIES
        self.dependencies: Dict[str, str] = {}
        self._fence_run = 0
        self._trim_leading = False
        self._text_delta: List[str] = []
        self._code_dirty = False
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    # ---- subscriptions ----
    def on(self, event: Union[str, EventType], handler: Handler) -> None:
        self.events.on(event, handler)

    def remove_all_listeners(self) -> None:
        self.events.remove_all_listeners()

    def drain_events(self) -> List[ParserEvent]:
        """Events emitted since the last call (requires ``record_events=True``)."""
        return self.events.drain()

    # ---- state ----
    @property
    def segments(self) -> List[Segment]:
        return self._assembler.segments

    @property
    def display_text(self) -> str:
        return self._assembler.display_text

    @property
    def pending(self) -> str:
        return self._buffer.text

    @property
    def in_code_block(self) -> bool:
        return self.mode is ParserMode.IN_CODE_FENCE

    @property
    def code_block_content(self) -> str:
        code = self._assembler.last_code()
        return code.content if code else ""

    @property
    def language(self) -> Optional[str]:
        code = self._assembler.last_code()
        return code.language if code else None

    # ---- lifecycle ----
    def write(self, chunk: Union[str, bytes]) -> None:
        if self.mode is ParserMode.CLOSED:
            raise ParserClosedError("write() called after end()")
        if isinstance(chunk, (bytes, bytearray)):
            chunk = self._decoder.decode(bytes(chunk))
        if not chunk:
            return
        logger.debug("- %r", chunk)
        self._buffer.append(chunk)
        self._drain(final=False)

    def end(self) -> None:
        if self.mode is ParserMode.CLOSED:
            return
        tail = self._decoder.decode(b"", final=True)
        if tail:
            self._buffer.append(tail)
        self._drain(final=True)

        was_in_code = self.mode is ParserMode.IN_CODE_FENCE
        closed = self._assembler.close_open()
        self.mode = ParserMode.CLOSED
        if was_in_code and closed is not None:
            logger.debug("Closing unterminated code block (%d chars)", len(closed.content))
            self.events.emit(EventType.CODE, closed.content, closed.language)

    def reset(self) -> None:
        self._buffer.clear()
        self._assembler.reset()
        self.events.clear_queue()
        self._init_state()

    # ---- internals ----
    def _drain(self, final: bool) -> None:
        if self.mode is ParserMode.AWAITING_DEPENDENCIES and not self._extract(final):
            return
        while self._buffer:
            if self.mode is ParserMode.IN_CODE_FENCE:
                progressed = self._scan_code(final)
            else:
                progressed = self._scan_prose(final)
            if not progressed:
                break
        self._flush_text()
        self._flush_code_update()

    def _extract(self, final: bool) -> bool:
        result = extract_manifest(
            self._buffer.text, final=final, max_chars=self.max_manifest_chars
        )
        if result.status is ExtractStatus.PENDING:
            return False
        self.mode = ParserMode.IN_PROSE
        if result.status is ExtractStatus.FOUND:
            self._buffer.consume(result.consumed)
            self.dependencies = result.dependencies
            self._trim_leading = True
            logger.debug("Dependencies detected: %s", self.dependencies)
            self.events.emit(EventType.DEPENDENCIES, dict(self.dependencies))
        return True

    def _scan_prose(self, final: bool) -> bool:
        text = self._buffer.text
        if self._trim_leading:
            stripped = text.lstrip()
            self._buffer.consume(len(text) - len(stripped))
            if not stripped:
                return False
            self._trim_leading = False
            text = stripped

        idx = text.find(FENCE_CHAR)
        if idx == -1:
            self._commit_prose(self._buffer.consume(len(text)))
            return False
        if idx > 0:
            self._commit_prose(self._buffer.consume(idx))
            return True

        result = scan_open_fence(text, final=final)
        if result.status is ScanStatus.INCONCLUSIVE:
            return False
        if result.status is ScanStatus.NO_MATCH:
            self._commit_prose(self._buffer.consume(result.length))
            return True
        self._buffer.consume(result.length)
        self._open_fence(result)
        return True

    def _scan_code(self, final: bool) -> bool:
        text = self._buffer.text
        idx = text.find(FENCE_CHAR)
        if idx == -1:
            self._commit_code(self._buffer.consume(len(text)))
            return False
        if idx > 0:
            self._commit_code(self._buffer.consume(idx))
            return True

        result = scan_close_fence(text, self._fence_run, final=final)
        if result.status is ScanStatus.INCONCLUSIVE:
            return False
        if result.status is ScanStatus.NO_MATCH:
            self._commit_code(self._buffer.consume(result.length))
            return True
        self._buffer.consume(result.length)
        self._close_fence()
        return True

    def _open_fence(self, result: ScanResult) -> None:
        language = result.language or ""
        self._flush_text()
        placeholder = self._assembler.open_code(language)
        self.mode = ParserMode.IN_CODE_FENCE
        self._fence_run = result.run
        logger.debug("Starting code block (language=%r)", language)
        self.events.emit(EventType.CODE_BLOCK_START, language)
        self.events.emit(EventType.TEXT, placeholder, self.display_text)

    def _close_fence(self) -> None:
        self._flush_code_update()
        closed = self._assembler.close_open()
        self.mode = ParserMode.IN_PROSE
        self._fence_run = 0
        if closed is None or closed.kind is not SegmentKind.CODE:
            return
        logger.debug("Ending code block (%d chars)", len(closed.content))
        self.events.emit(EventType.CODE, closed.content, closed.language)

    def _commit_prose(self, text: str) -> None:
        if text:
            self._assembler.append_prose(text)
            self._text_delta.append(text)

    def _commit_code(self, text: str) -> None:
        if text:
            self._assembler.append_code(text)
            self._code_dirty = True

    def _flush_text(self) -> None:
        if not self._text_delta:
            return
        delta = "".join(self._text_delta)
        self._text_delta = []
        self.events.emit(EventType.TEXT, delta, self.display_text)

    def _flush_code_update(self) -> None:
        if not self._code_dirty:
            return
        self._code_dirty = False
        if self.mode is ParserMode.IN_CODE_FENCE:
            self.events.emit(EventType.CODE_UPDATE, self._assembler.open_content)
