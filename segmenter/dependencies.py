"""Speculative extraction of the leading dependency manifest.

The model is asked to open its answer with ``{"dependencies": {...}}``. While
that object is still arriving the buffered text is incomplete JSON, so every
attempt simply fails until the object closes or a give-up rule applies.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


logger = logging.getLogger(__name__)

DEFAULT_MAX_MANIFEST_CHARS = 1024
# A manifest nests two levels; anything far deeper is not one.
MAX_MANIFEST_DEPTH = 32

# The generation prompt shows the key unquoted; models copy it.
_BARE_KEY_RE = re.compile(r"\{\s*dependencies\s*:")
_BARE_KEY_FIXED = '{"dependencies":'

_PAIR_RE = re.compile(r'"([^"]+)"\s*:\s*"([^"]+)"')

_decoder = json.JSONDecoder()


class ExtractStatus(str, Enum):
    FOUND = "found"
    GAVE_UP = "gave_up"
    PENDING = "pending"


@dataclass
class ExtractResult:
    status: ExtractStatus
    dependencies: Dict[str, str] = field(default_factory=dict)
    # Number of leading characters of the buffer taken up by the manifest.
    consumed: int = 0


PENDING = ExtractResult(ExtractStatus.PENDING)
GAVE_UP = ExtractResult(ExtractStatus.GAVE_UP)


def _manifest_map(obj: Any) -> Optional[Dict[str, str]]:
    """Return the package map of a decoded manifest, or None for the wrong shape."""
    if not isinstance(obj, dict):
        return None
    if "dependencies" in obj:
        deps = obj["dependencies"]
    elif obj and all(isinstance(v, str) for v in obj.values()):
        # Flat form: {"react": "18.2.0"}
        deps = obj
    else:
        return None
    if not isinstance(deps, dict):
        return None
    return {
        str(name).strip(): version.strip()
        for name, version in deps.items()
        if isinstance(version, str) and str(name).strip() and version.strip()
    }


def _nesting_exceeds(text: str, start: int, limit: int) -> bool:
    """True if the value starting at ``start`` nests deeper than ``limit`` before it closes."""
    depth = 0
    in_string = escaped = False
    for ch in text[start:]:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch in "{[":
            depth += 1
            if depth > limit:
                return True
        elif ch in "}]":
            depth -= 1
            if depth <= 0:
                return False
    return False


def extract_manifest(
    text: str,
    *,
    final: bool = False,
    max_chars: int = DEFAULT_MAX_MANIFEST_CHARS,
) -> ExtractResult:
    """Try to read the manifest from the start of ``text``.

    Only the first ``max_chars`` characters are ever decoded, so the outcome is
    the same however the text was split into fragments.
    """
    stripped = text.lstrip()
    if not stripped:
        if final or len(text) > max_chars:
            return GAVE_UP
        return PENDING
    if stripped[0] != "{":
        return GAVE_UP

    start = len(text) - len(stripped)
    window = text[:max_chars]
    shift = 0
    m = _BARE_KEY_RE.match(window, start)
    if m:
        window = window[:start] + _BARE_KEY_FIXED + window[m.end():]
        shift = len(_BARE_KEY_FIXED) - (m.end() - start)

    if _nesting_exceeds(window, start, MAX_MANIFEST_DEPTH):
        logger.debug("Leading JSON nests deeper than %d levels, treating as prose", MAX_MANIFEST_DEPTH)
        return GAVE_UP

    try:
        obj, end = _decoder.raw_decode(window, start)
    except RecursionError:
        return GAVE_UP
    except json.JSONDecodeError:
        if final or len(text) >= max_chars:
            logger.debug("No manifest within %d chars, treating as prose", max_chars)
            return GAVE_UP
        return PENDING

    deps = _manifest_map(obj)
    if deps is None:
        logger.debug("Leading JSON object is not a manifest, treating as prose")
        return GAVE_UP

    end -= shift
    if end == len(text) and not final:
        # A stray closing brace may still follow ("}}").
        return PENDING
    if text.startswith("}", end):
        end += 1
    return ExtractResult(ExtractStatus.FOUND, dependencies=deps, consumed=end)


def parse_dependencies(manifest: Optional[str]) -> Dict[str, str]:
    """Collect ``"name": "version"`` pairs from manifest text.

    Tolerant of anything around the pairs; the ``dependencies`` key itself is
    skipped because its value is an object, not a string.
    """
    if not manifest:
        return {}
    dependencies: Dict[str, str] = {}
    for name, version in _PAIR_RE.findall(manifest):
        name, version = name.strip(), version.strip()
        if name and version:
            dependencies[name] = version
    return dependencies
