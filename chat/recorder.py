from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from segmenter import Segment


def _now_iso() -> str:
    # Use timezone-aware UTC timestamps and normalize to trailing Z
    return (
        datetime.now(timezone.utc)
        .replace(microsecond=0)
        .isoformat()
        .replace("+00:00", "Z")
    )


def _new_session_id(prefix: str = "") -> str:
    ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    return f"{prefix}{ts}"


@dataclass
class MessageTurn:
    t: str
    user: str
    response: Optional[str] = None
    segments: List[Dict[str, Any]] = field(default_factory=list)
    dependencies: Dict[str, str] = field(default_factory=dict)
    display_text: str = ""
    model: Optional[str] = None
    tokens: int = 0
    cost: float = 0.0
    aborted: bool = False
    error: Optional[str] = None

    @property
    def code(self) -> Optional[Dict[str, Any]]:
        for segment in reversed(self.segments):
            if segment.get("kind") == "code":
                return segment
        return None


class MessageRecorder:
    """Stores finished generation turns; saves JSON and exports Markdown."""

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        self.version = 1
        self.id = _new_session_id()
        self.created_at = _now_iso()
        self.updated_at = self.created_at
        self.provider: Dict[str, Any] = {}
        self.totals = {"tokens": 0, "cost": 0.0, "turns": 0}
        self.turns: List[MessageTurn] = []
        self._base_dir = Path(base_dir) if base_dir else Path("logs/sessions")
        self._session_dir: Optional[Path] = None

    # ---- lifecycle ----
    def start(self, *, provider_name: str, url: str, model: Optional[str] = None) -> None:
        self.provider = {"name": provider_name, "url": url, "model": model}

    def start_turn(self, user_text: str) -> int:
        self.turns.append(MessageTurn(t=_now_iso(), user=user_text))
        self.totals["turns"] = len(self.turns)
        self.updated_at = _now_iso()
        return len(self.turns) - 1

    def record_result(
        self,
        idx: int,
        *,
        text: str,
        segments: List[Segment],
        dependencies: Dict[str, str],
        display_text: str = "",
        model: Optional[str] = None,
        tokens: int = 0,
        cost: float = 0.0,
        aborted: bool = False,
        error: Optional[str] = None,
    ) -> None:
        turn = self.turns[idx]
        turn.response = text
        turn.segments = [s.to_dict() for s in segments]
        turn.dependencies = dict(dependencies)
        turn.display_text = display_text
        turn.model = model
        turn.tokens = int(tokens or 0)
        turn.cost = float(cost or 0.0)
        turn.aborted = aborted
        turn.error = error
        self.totals["tokens"] += turn.tokens
        self.totals["cost"] = float(self.totals["cost"]) + turn.cost
        self.updated_at = _now_iso()

    # ---- persistence ----
    def session_dir(self) -> Path:
        if self._session_dir is None:
            self._session_dir = self._base_dir / self.id
            os.makedirs(self._session_dir, exist_ok=True)
        return self._session_dir

    def to_json_obj(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "id": self.id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "provider": self.provider,
            "totals": self.totals,
            "turns": [
                {
                    "t": t.t,
                    "user": t.user,
                    "response": t.response,
                    "segments": t.segments,
                    "dependencies": t.dependencies,
                    "display_text": t.display_text,
                    "model": t.model,
                    "tokens": t.tokens,
                    "cost": t.cost,
                    "aborted": t.aborted,
                    "error": t.error,
                }
                for t in self.turns
            ],
        }

    def save_json(self, path: Optional[str | Path] = None) -> str:
        out_path = Path(path) if path else self.session_dir() / "session.json"
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with out_path.open("w", encoding="utf-8") as f:
            json.dump(self.to_json_obj(), f, ensure_ascii=False, indent=2)
        return str(out_path)

    def save_code(self, idx: int = -1, path: Optional[str | Path] = None) -> Optional[str]:
        """Write the turn's generated component to disk; None if it has no code."""
        code = self.turns[idx].code if self.turns else None
        if code is None:
            return None
        out_path = Path(path) if path else self.session_dir() / f"turn-{idx % len(self.turns) + 1}.jsx"
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(code["content"], encoding="utf-8")
        return str(out_path)

    # ---- export ----
    def export_markdown(self, path: Optional[str | Path] = None) -> str:
        out_path = Path(path) if path else self.session_dir() / "export.md"
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with out_path.open("w", encoding="utf-8") as f:
            f.write(self._render_markdown())
        return str(out_path)

    def _render_markdown(self) -> str:
        lines: List[str] = []
        lines.append(f"# Generation Session — {self.created_at} — {self.provider.get('name', '')}")
        lines.append("")
        lines.append(f"Totals: tokens={self.totals['tokens']} cost={self.totals['cost']:.6f} turns={self.totals['turns']}")
        lines.append("")
        for i, t in enumerate(self.turns, 1):
            lines.append(f"## Turn {i}")
            lines.append("")
            lines.append("### User")
            lines.append("")
            lines.append(t.user or "")
            lines.append("")
            if t.dependencies:
                lines.append("### Dependencies")
                lines.append("")
                for name, version in t.dependencies.items():
                    lines.append(f"- {name}: {version}")
                lines.append("")
            if t.segments:
                lines.append("### Assistant")
                lines.append("")
                for segment in t.segments:
                    if segment.get("kind") == "code":
                        lines.append(f"```{segment.get('language') or ''}")
                        lines.append(segment.get("content", "").rstrip("\n"))
                        lines.append("```")
                    else:
                        lines.append(segment.get("content", "").strip())
                    lines.append("")
            if t.error:
                lines.append(f"> Error: {t.error}")
                lines.append("")
            elif t.aborted:
                lines.append("> Aborted")
                lines.append("")
            if t.model or t.tokens:
                lines.append("### Usage")
                lines.append(f"- model={t.model or ''} tokens={t.tokens} cost={t.cost:.6f}")
                lines.append("")
        return "\n".join(lines)
