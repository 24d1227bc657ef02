from __future__ import annotations

from importlib import import_module
from typing import Optional, Tuple


# Unified event type used by provider adapters
Event = Tuple[str, Optional[str]]  # ("model"|"text"|"tokens"|"done", value)

PROVIDERS = ("bedrock", "openai")


def get_provider(name: str):
    """Dynamically import a provider module by name.

    Valid names: "bedrock" (Bedrock Anthropic) and "openai" (Chat Completions,
    which also covers OpenRouter). Each maps to a module under `providers.<name>`.
    """
    mod_name = name.strip().lower()
    if mod_name not in PROVIDERS:
        raise ValueError(f"Unknown provider: {name}")
    return import_module(f"providers.{mod_name}")


__all__ = ["get_provider", "Event", "PROVIDERS"]
