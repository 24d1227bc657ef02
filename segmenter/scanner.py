"""Fence marker recognition over the uncommitted tail of the stream.

Each scan starts at a backtick and reports whether the text there is a marker
(``MATCH``), is definitely ordinary text (``NO_MATCH``), or cannot be decided
until more text arrives (``INCONCLUSIVE``). With ``final=True`` no more text is
coming, so a scan never comes back inconclusive.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional


FENCE_CHAR = "`"
MIN_FENCE_RUN = 3
MAX_INFO_LENGTH = 64

# Text after the backtick run of an opening fence: optional tag, optional colon, line break.
OPEN_INFO_RE = re.compile(r"[ \t]*(?P<lang>[\w+#.\-]*):?[ \t]*\r?\n")
# Same shape without the line break; anything matching can still become an opener.
OPEN_INFO_PREFIX_RE = re.compile(r"[ \t]*[\w+#.\-]*:?[ \t]*\r?")


class ScanStatus(str, Enum):
    MATCH = "match"
    NO_MATCH = "no_match"
    INCONCLUSIVE = "inconclusive"


@dataclass(frozen=True)
class ScanResult:
    status: ScanStatus
    # MATCH: characters the marker occupies. NO_MATCH: characters that are literal text.
    length: int = 0
    run: int = 0
    language: Optional[str] = None


INCONCLUSIVE = ScanResult(ScanStatus.INCONCLUSIVE)


def backtick_run(text: str, start: int = 0) -> int:
    """Length of the backtick run starting at ``start``."""
    end = start
    while end < len(text) and text[end] == FENCE_CHAR:
        end += 1
    return end - start


def scan_open_fence(text: str, *, final: bool = False) -> ScanResult:
    """Scan ``text`` (which starts with a backtick) for an opening fence."""
    run = backtick_run(text)
    if run == len(text) and not final:
        return INCONCLUSIVE
    if run < MIN_FENCE_RUN:
        return ScanResult(ScanStatus.NO_MATCH, length=run, run=run)

    rest = text[run:]
    m = OPEN_INFO_RE.match(rest)
    if m and m.end() - 1 <= MAX_INFO_LENGTH:
        return ScanResult(
            ScanStatus.MATCH,
            length=run + m.end(),
            run=run,
            language=m.group("lang"),
        )
    if (
        not m
        and not final
        and len(rest) <= MAX_INFO_LENGTH
        and OPEN_INFO_PREFIX_RE.fullmatch(rest)
    ):
        return INCONCLUSIVE
    return ScanResult(ScanStatus.NO_MATCH, length=run, run=run)


def scan_close_fence(text: str, min_run: int, *, final: bool = False) -> ScanResult:
    """Scan ``text`` (which starts with a backtick) for a fence closing a run of ``min_run``."""
    run = backtick_run(text)
    if run == len(text) and not final:
        return INCONCLUSIVE
    if run < min_run:
        return ScanResult(ScanStatus.NO_MATCH, length=run, run=run)

    after = text[run:].lstrip(" \t")
    if not after:
        if final:
            return ScanResult(ScanStatus.MATCH, length=run, run=run)
        return INCONCLUSIVE
    if after[0] in "\r\n":
        return ScanResult(ScanStatus.MATCH, length=run, run=run)
    return ScanResult(ScanStatus.NO_MATCH, length=run, run=run)
