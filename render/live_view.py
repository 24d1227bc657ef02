from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from rich.console import Console, Group
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.spinner import Spinner
from rich.syntax import Syntax
from rich.text import Text

from segmenter import StreamParser

# Fence tags the model uses that Pygments does not know by that name
_LEXER_ALIASES = {"": "javascript", "js": "javascript", "jsx": "jsx", "ts": "typescript"}


def lexer_for(language: Optional[str]) -> str:
    language = (language or "").lower()
    return _LEXER_ALIASES.get(language, language)


@dataclass
class LiveSegmentView:
    """Renders parser events in the terminal while the answer streams.

    The live area shows the chat text (with the code placeholder) and the tail
    of the code being written; finished code blocks are printed in full.
    """

    console: Optional[Console] = None
    live: Optional[Live] = None
    min_delay: float = 1.0 / 20
    code_window: int = 12
    when: float = 0.0
    display_text: str = ""
    code: str = ""
    language: str = ""
    dependencies: Dict[str, str] = field(default_factory=dict)
    finished_code: List[str] = field(default_factory=list)
    waiting_active: bool = False

    def attach(self, parser: StreamParser) -> None:
        parser.on("dependencies", self.on_dependencies)
        parser.on("codeBlockStart", self.on_code_block_start)
        parser.on("codeUpdate", self.on_code_update)
        parser.on("code", self.on_code)
        parser.on("text", self.on_text)

    def _ensure_live(self):
        if not self.live:
            self.live = Live(Text(""), console=self.console, refresh_per_second=1.0 / self.min_delay)
            self.live.start()

    def start_waiting(self, message: str = "Waiting for response…") -> None:
        self._ensure_live()
        self.waiting_active = True
        if self.live:
            self.live.update(Spinner("dots", text=Text(message, style="dim italic"), style="yellow"))
            self.live.refresh()

    # ---- parser events ----
    def on_dependencies(self, dependencies: Dict[str, str]) -> None:
        self.dependencies = dict(dependencies)
        self._ensure_live()
        if self.live and dependencies:
            listing = ", ".join(f"{name}@{version}" for name, version in dependencies.items())
            self.live.console.print(Text(f"dependencies: {listing}", style="dim"))

    def on_code_block_start(self, language: str) -> None:
        self.language = language
        self.code = ""

    def on_code_update(self, code: str) -> None:
        self.code = code
        self.refresh()

    def on_code(self, code: str, language: str) -> None:
        self.code = ""
        self.finished_code.append(code)
        self._ensure_live()
        if self.live:
            self.live.console.print(
                Panel(
                    Syntax(code.rstrip(), lexer_for(language), word_wrap=True),
                    title=language or "code",
                    title_align="left",
                )
            )
        self.refresh(force=True)

    def on_text(self, delta: str, display_text: str) -> None:
        self.display_text = display_text
        self.refresh()

    # ---- rendering ----
    def _renderable(self):
        parts = [Markdown(self.display_text)]
        if self.code:
            tail = "\n".join(self.code.rstrip("\n").splitlines()[-self.code_window:])
            parts.append(
                Panel(
                    Syntax(tail, lexer_for(self.language), word_wrap=True),
                    title=f"{self.language or 'code'} (writing…)",
                    title_align="left",
                    style="dim",
                )
            )
        return Group(*parts)

    def refresh(self, force: bool = False) -> None:
        self._ensure_live()
        now = time.time()
        if not force and (now - self.when) < self.min_delay:
            return
        self.when = now
        self.waiting_active = False
        if self.live:
            self.live.update(self._renderable())

    def finish(self) -> None:
        """Print the final chat text and stop the live area."""
        if not self.live:
            return
        self.code = ""
        self.live.update(Text(""))
        if self.display_text.strip():
            self.live.console.print(Markdown(self.display_text))
        self.live.stop()
        self.live = None
