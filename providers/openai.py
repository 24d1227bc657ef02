from __future__ import annotations

import json
from typing import Dict, Iterator, List, Optional

from chat.prompts import make_system_prompt
from providers import Event

# Per 1K tokens; OpenRouter reports its own cost, this is only a fallback estimate.
INPUT_COST_PER_K = 0.003
OUTPUT_COST_PER_K = 0.015


def build_payload(
    messages: List[dict], *, model: Optional[str] = None, max_tokens: Optional[int] = None, temperature: Optional[float] = None, system_prompt: Optional[str] = None, **_: dict
) -> dict:
    """Construct a Chat Completions streaming payload (OpenAI, OpenRouter).

    The generation prompt is inserted as the first message unless the history
    already starts with a system message.
    """
    final_messages = list(messages)
    if not final_messages or final_messages[0].get("role") != "system":
        final_messages.insert(0, {"role": "system", "content": system_prompt or make_system_prompt()})

    body: Dict = {
        "messages": final_messages,
        "stream": True,
        "stream_options": {"include_usage": True},
    }
    if model is not None:
        body["model"] = model
    if max_tokens is not None:
        body["max_tokens"] = max_tokens
    if temperature is not None:
        body["temperature"] = temperature
    return body


def map_events(lines: Iterator[str]) -> Iterator[Event]:
    """Map Chat Completions SSE chunks to the unified event interface.

    Emits:
    - ("model", name) on the first chunk carrying `model`
    - ("text", delta) for each `choices[].delta.content` string
    - ("tokens", "total|input|output|cost") when a chunk carries `usage`
    - ("done", None) on `[DONE]`, or after `finish_reason` once usage has arrived
    """
    sent_model = False
    has_finished = False

    for data in lines:
        if data == "[DONE]":
            yield ("done", None)
            return
        try:
            evt: Dict = json.loads(data)
        except json.JSONDecodeError:
            continue

        model = evt.get("model")
        if not sent_model and isinstance(model, str) and model:
            yield ("model", model)
            sent_model = True

        choices = evt.get("choices") or []
        for ch in choices:
            delta = ch.get("delta") or {}
            content = delta.get("content")
            if isinstance(content, str) and content:
                yield ("text", content)
            if ch.get("finish_reason") is not None:
                has_finished = True

        usage = evt.get("usage")
        if usage:
            input_tokens = usage.get("prompt_tokens", 0)
            output_tokens = usage.get("completion_tokens", 0)
            total_tokens = usage.get("total_tokens", 0) or input_tokens + output_tokens
            if total_tokens > 0:
                cost = usage.get("cost")
                if not isinstance(cost, (int, float)):
                    cost = (input_tokens / 1000) * INPUT_COST_PER_K + (output_tokens / 1000) * OUTPUT_COST_PER_K
                yield ("tokens", f"{total_tokens}|{input_tokens}|{output_tokens}|{cost:.6f}")
            if has_finished:
                yield ("done", None)
                return

    if has_finished:
        yield ("done", None)
