from __future__ import annotations

import json
from typing import Dict, Iterator, List, Optional

from chat.prompts import make_system_prompt
from providers import Event

# Claude Sonnet pricing per 1M tokens
INPUT_COST_PER_M = 3.0
OUTPUT_COST_PER_M = 15.0


def build_payload(
    messages: List[dict], *, model: Optional[str] = None, max_tokens: int = 8192, temperature: Optional[float] = None, system_prompt: Optional[str] = None, **_: dict
) -> dict:
    """Construct a Bedrock/Anthropic messages payload for component generation.

    Notes:
    - No 'model' key unless given; Bedrock endpoints usually select the model via path.
    - The generation prompt goes in the top-level 'system' field.
    """
    payload = {
        "anthropic_version": "bedrock-2023-05-31",
        "max_tokens": max_tokens,
        "system": system_prompt or make_system_prompt(),
        "messages": [m for m in messages if m.get("role") in ("user", "assistant")],
    }
    if model:
        payload["model"] = model
    if temperature is not None:
        payload["temperature"] = temperature
    return payload


def map_events(lines: Iterator[str]) -> Iterator[Event]:
    """Map Bedrock/Anthropic JSON SSE frames to the unified event interface.

    Emits:
    - ("model", model_name) on message_start
    - ("text", text_chunk) on content_block_delta.text_delta
    - ("tokens", "total|input|output|cost") on message_stop with usage info
    - ("done", None) on message_stop or [DONE]
    """
    for data in lines:
        if data == "[DONE]":
            yield ("done", None)
            break
        try:
            evt: Dict = json.loads(data)
        except json.JSONDecodeError:
            continue
        e_type = evt.get("type")
        if e_type == "message_start" and isinstance(evt.get("message"), dict):
            model = evt["message"].get("model")
            if model:
                yield ("model", model)
        elif e_type == "content_block_delta":
            delta = evt.get("delta", {})
            if delta.get("type") == "text_delta":
                text = delta.get("text", "")
                if text:
                    yield ("text", text)
        elif e_type == "message_stop":
            usage = evt.get("amazon-bedrock-invocationMetrics") or evt.get("usage")
            if usage:
                input_tokens = usage.get("inputTokenCount", 0) or usage.get("input_tokens", 0)
                output_tokens = usage.get("outputTokenCount", 0) or usage.get("output_tokens", 0)
                total_tokens = input_tokens + output_tokens
                if total_tokens > 0:
                    cost = (input_tokens / 1000000) * INPUT_COST_PER_M + (output_tokens / 1000000) * OUTPUT_COST_PER_M
                    yield ("tokens", f"{total_tokens}|{input_tokens}|{output_tokens}|{cost:.6f}")
            yield ("done", None)
            break
