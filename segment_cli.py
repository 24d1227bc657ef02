#!/usr/bin/env python3
"""
segment-cli: generate a React component with a streaming LLM and watch it
being split into chat text, code and dependencies as it arrives.

Features
- Live view of the chat text (code replaced by a placeholder) and the code tail
- Dependency manifest shown as soon as it is parsed
- Abort a stream with Ctrl+C; the partial answer is kept
- Sessions saved as JSON, exportable as Markdown, component saved as .jsx
- --replay FILE runs a saved answer through the parser without a network call

Requirements
    pip install rich requests prompt_toolkit
"""
from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import Iterator, List, Optional

from prompt_toolkit import prompt
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from rich.console import Console
from rich.logging import RichHandler

from chat.conversation import ConversationManager
from chat.recorder import MessageRecorder
from providers import PROVIDERS, get_provider
from render.live_view import LiveSegmentView
from segmenter import StreamParser
from streaming_client import StreamingClient, StreamResult

# ---------------- Configuration ----------------
DEFAULT_URL = "http://127.0.0.1:8000/invoke"
DEFAULT_SESSIONS_DIR = "logs/sessions"
DEFAULT_CHUNK_SIZE = 7
console = Console()
logger = logging.getLogger("segment_cli")


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _auth_headers(api_key: Optional[str]) -> Optional[dict]:
    return {"Authorization": f"Bearer {api_key}"} if api_key else None


def _positive_int(value: str) -> int:
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {n}")
    return n


def _chunks(text: str, size: int) -> Iterator[str]:
    size = max(1, size)
    for i in range(0, len(text), size):
        yield text[i:i + size]


def new_parser(args: argparse.Namespace) -> StreamParser:
    return StreamParser(max_manifest_chars=args.max_manifest_chars)


def replay(args: argparse.Namespace) -> int:
    """Feed a saved answer through the parser in fixed-size chunks."""
    path = Path(args.replay)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        console.print(f"[red]Cannot read {path}[/red]: {e}")
        return 1

    parser = new_parser(args)
    view = None
    if args.live:
        view = LiveSegmentView(console=console)
        view.attach(parser)
    for chunk in _chunks(text, args.chunk_size):
        parser.write(chunk)
    parser.end()
    if view:
        view.finish()
    else:
        console.print(parser.display_text)

    console.rule("[bold cyan]segments")
    for i, segment in enumerate(parser.segments, 1):
        label = f"{segment.kind.value}" + (f" ({segment.language or 'untagged'})" if segment.is_code else "")
        console.print(f"{i}. {label}: {len(segment.content)} chars")
    if parser.dependencies:
        console.print(f"dependencies: {parser.dependencies}")
    return 0


def _read_input(history: InMemoryHistory) -> str:
    kb = KeyBindings()

    @kb.add("c-j")
    def _(event):
        event.current_buffer.insert_text("\n")

    return prompt(HTML("<b><ansigreen>› </ansigreen></b>"), key_bindings=kb, history=history)


def stream_turn(
    client: StreamingClient,
    args: argparse.Namespace,
    provider,
    history: List[dict],
) -> StreamResult:
    parser = new_parser(args)
    view = None
    if args.live:
        view = LiveSegmentView(console=console)
        view.attach(parser)
        view.start_waiting()
    payload = provider.build_payload(history, model=args.model, max_tokens=args.max_tokens)
    try:
        result = client.send_message(
            args.url,
            payload,
            mapper=provider.map_events,
            parser=parser,
            headers=_auth_headers(args.api_key),
        )
    finally:
        if view:
            view.finish()
    if not args.live:
        console.print(result.display_text)
    return result


def handle_command(cmd: str, recorder: MessageRecorder, conversation: ConversationManager) -> bool:
    """Run a slash command; returns False when it is not one."""
    parts = cmd.split()
    name = parts[0].lower()
    arg = parts[1] if len(parts) > 1 else None
    try:
        if name == "/save":
            console.print(f"[green]Saved JSON[/green]: {recorder.save_json(arg)}")
        elif name == "/export":
            console.print(f"[green]Exported Markdown[/green]: {recorder.export_markdown(arg)}")
        elif name == "/code":
            out = recorder.save_code(path=arg)
            console.print(f"[green]Saved component[/green]: {out}" if out else "[yellow]No code yet[/yellow]")
        elif name == "/clear":
            conversation.clear_history()
            console.print("[dim]History cleared[/dim]")
        else:
            return False
    except OSError as e:
        console.print(f"[red]{name} failed[/red]: {e}")
    return True


def repl(args: argparse.Namespace) -> int:
    provider = get_provider(args.provider)
    client = StreamingClient(timeout=args.timeout)
    conversation = ConversationManager()
    recorder = MessageRecorder(args.save_dir)
    recorder.start(provider_name=args.provider, url=args.url, model=args.model)
    history = InMemoryHistory()

    console.print("[dim]Describe a component. Ctrl+J for a new line, Ctrl+C aborts a stream, Ctrl+D quits.[/dim]")
    while True:
        try:
            user_input = _read_input(history).strip()
        except (EOFError, KeyboardInterrupt):
            console.print("\n[dim]Bye![/dim]")
            return 0
        if not user_input:
            continue
        if user_input in ("/quit", "/exit"):
            return 0
        if user_input.startswith("/") and handle_command(user_input, recorder, conversation):
            continue

        conversation.add_user_message(user_input)
        turn_idx = recorder.start_turn(user_input)
        result = stream_turn(client, args, provider, conversation.get_sanitized_history())

        if result.error:
            console.print(f"[red]Error[/red]: {result.error}")
        elif result.aborted:
            console.print("[dim]Aborted[/dim]")
        conversation.add_assistant_message(result.text)
        recorder.record_result(
            turn_idx,
            text=result.text,
            segments=result.segments,
            dependencies=result.dependencies,
            display_text=result.display_text,
            model=result.model_name,
            tokens=result.tokens,
            cost=result.cost,
            aborted=result.aborted,
            error=result.error,
        )
        if result.tokens:
            console.print(f"[dim]{result.model_name or ''} tokens={result.tokens} cost=${result.cost:.4f}[/dim]")

        try:
            out = recorder.save_json()
            logger.debug("Saved session → %s", out)
        except OSError as e:
            logger.warning("Autosave failed: %s", e)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="segment-cli", description="Generate React components from a streaming LLM")
    p.add_argument("--url", default=os.getenv("LLM_URL", DEFAULT_URL), help=f"Endpoint URL (default {DEFAULT_URL})")
    p.add_argument("--provider", default=os.getenv("LLM_PROVIDER", "bedrock"), choices=list(PROVIDERS), help="Provider adapter to use (default: bedrock)")
    p.add_argument("--model", default=os.getenv("LLM_MODEL"), help="Model name sent in the payload")
    p.add_argument("--api-key", default=os.getenv("LLM_API_KEY"), help="Bearer token for the endpoint")
    p.add_argument("--max-tokens", type=int, default=8192)
    p.add_argument("--timeout", type=float, default=60.0, help="HTTP timeout in seconds")
    p.add_argument("--save-dir", default=os.getenv("SEGMENTER_SESSIONS_DIR", DEFAULT_SESSIONS_DIR))
    p.add_argument("--max-manifest-chars", type=int, default=1024, help="Give up looking for the dependency manifest after this many characters")
    p.add_argument("--replay", metavar="FILE", help="Parse a saved answer instead of calling the endpoint")
    p.add_argument("--chunk-size", type=_positive_int, default=DEFAULT_CHUNK_SIZE, help="Fragment size used by --replay")
    p.add_argument("--no-live", dest="live", action="store_false", help="Print results instead of a live view")
    p.add_argument("--log-level", default=os.getenv("SEGMENTER_LOG_LEVEL", "WARNING"))
    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.log_level)
    if args.replay:
        return replay(args)
    return repl(args)


if __name__ == "__main__":
    raise SystemExit(main())
