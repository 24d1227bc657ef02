from __future__ import annotations

from typing import List, Optional


class ChunkBuffer:
    """Holds the uncommitted tail of the stream.

    Fragments are appended as they arrive; the scanner looks ahead with ``peek``
    and ``find`` and only ``consume``s characters once they are known not to be
    part of an unfinished marker.
    """

    def __init__(self) -> None:
        self._parts: List[str] = []
        self._text: str = ""

    def _join(self) -> str:
        if self._parts:
            self._text += "".join(self._parts)
            self._parts = []
        return self._text

    @property
    def text(self) -> str:
        return self._join()

    def __len__(self) -> int:
        return len(self._join())

    def __bool__(self) -> bool:
        return bool(self._text) or any(self._parts)

    def append(self, text: str) -> None:
        if text:
            self._parts.append(text)

    def peek(self, n: Optional[int] = None) -> str:
        text = self._join()
        return text if n is None else text[:n]

    def find(self, sub: str, start: int = 0) -> int:
        return self._join().find(sub, start)

    def consume(self, n: int) -> str:
        """Remove and return the first ``n`` characters."""
        text = self._join()
        taken, self._text = text[:n], text[n:]
        return taken

    def clear(self) -> None:
        self._parts = []
        self._text = ""
