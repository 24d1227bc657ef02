"""StreamingClient: drives a StreamParser from an LLM SSE response."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

import requests
from requests.exceptions import ConnectTimeout, ReadTimeout, RequestException

from segmenter import Segment, StreamParser

logger = logging.getLogger(__name__)


@dataclass
class StreamResult:
    """Result from streaming a generation request."""
    text: str
    segments: List[Segment] = field(default_factory=list)
    dependencies: Dict[str, str] = field(default_factory=dict)
    display_text: str = ""
    tokens: int = 0
    cost: float = 0.0
    model_name: Optional[str] = None
    aborted: bool = False
    error: Optional[str] = None

    @property
    def code(self) -> Optional[Segment]:
        for segment in reversed(self.segments):
            if segment.is_code:
                return segment
        return None


@dataclass
class StreamEvent:
    """Individual event from the stream."""
    kind: str
    value: Optional[str] = None


def _parse_tokens(value: Optional[str]) -> tuple:
    """Parse a "total|input|output|cost" usage string (or a bare token count)."""
    if not value:
        return 0, 0.0
    if "|" in value:
        parts = value.split("|")
        if len(parts) >= 4:
            total_str = parts[0].lstrip("~")
            total = int(total_str) if total_str.isdigit() else 0
            try:
                cost = float(parts[3]) if parts[3] else 0.0
            except ValueError:
                cost = 0.0
            return total, cost
    return (int(value) if value.isdigit() else 0), 0.0


class StreamingClient:
    """Streams a provider response into a StreamParser.

    The parser always sees ``end()``, whether the stream finished, was aborted
    or failed, so whatever arrived is kept as a clean (possibly truncated) result.
    """

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = 60.0):
        self.session = session
        self.timeout = timeout
        self._abort = False

    def abort(self) -> None:
        """Signal the current stream to stop after the event being processed."""
        self._abort = True

    def iter_sse_lines(
        self,
        url: str,
        *,
        json: Optional[dict] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Iterator[str]:
        """POST ``json`` to ``url`` and yield the SSE data payloads of the response.

        The "data:" prefix is stripped; keep-alive blank lines and ":" comment
        lines (gateways send ": PROCESSING" while the model warms up) are skipped.
        """
        if self.session is None:
            self.session = requests.Session()
        with self.session.post(
            url, json=json, headers=headers, stream=True, timeout=timeout or self.timeout
        ) as r:
            r.raise_for_status()
            for raw in r.iter_lines(decode_unicode=True):
                if not raw or raw.startswith(":"):
                    continue
                yield raw[5:].lstrip() if raw.startswith("data:") else raw

    def _stream_events(self, url: str, payload: dict, mapper, headers: Optional[Dict[str, str]]) -> Iterator[StreamEvent]:
        for kind, value in mapper(self.iter_sse_lines(url, json=payload, headers=headers)):
            yield StreamEvent(kind=kind, value=value)

    def send_message(
        self,
        url: str,
        payload: dict,
        *,
        mapper,
        parser: Optional[StreamParser] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> StreamResult:
        """Send a generation request and parse the streamed answer.

        Args:
            url: The endpoint URL
            payload: Provider request payload (see ``providers.<name>.build_payload``)
            mapper: Provider-specific event mapper function
            parser: Parser to feed; subscribe to its events before calling for
                live updates. A fresh parser is used when omitted.
            headers: Extra HTTP headers (e.g. Authorization)

        Returns:
            StreamResult with the raw text and the parsed message
        """
        self._abort = False
        parser = parser or StreamParser()

        text_buffer: List[str] = []
        model_name: Optional[str] = None
        tokens, cost = 0, 0.0
        error: Optional[str] = None
        aborted = False

        try:
            for event in self._stream_events(url, payload, mapper, headers):
                if self._abort:
                    aborted = True
                    break
                if event.kind == "model":
                    model_name = event.value or model_name
                elif event.kind == "text":
                    text_buffer.append(event.value or "")
                    parser.write(event.value or "")
                elif event.kind == "tokens":
                    tokens, cost = _parse_tokens(event.value)
                elif event.kind == "done":
                    break
        except KeyboardInterrupt:
            aborted = True
        except (ReadTimeout, ConnectTimeout) as e:
            error = f"Request timed out: {e}"
        except RequestException as e:
            error = f"Network error: {e}"
        finally:
            parser.end()

        if error:
            logger.warning("Stream ended early: %s", error)
        elif aborted:
            logger.info("Stream aborted after %d chars", sum(len(t) for t in text_buffer))

        return StreamResult(
            text="".join(text_buffer),
            segments=parser.segments,
            dependencies=dict(parser.dependencies),
            display_text=parser.display_text,
            tokens=tokens,
            cost=cost,
            model_name=model_name,
            aborted=aborted,
            error=error,
        )
