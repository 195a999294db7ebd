"""Helpers for reading JSON out of free-form model replies."""

from __future__ import annotations

import json
import re
from typing import Any

_OPENING_FENCE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\n?")


def strip_code_fence(text: str) -> str:
    """Remove a leading ```/```json fence and a trailing ``` fence if present."""
    content = text.strip()
    content = _OPENING_FENCE.sub("", content, count=1)
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


def parse_json_reply(text: str) -> Any:
    """Strip fences and decode JSON.

    Raises:
        ValueError: The reply is not valid JSON (``json.JSONDecodeError`` is a
            ValueError subclass).
    """
    return json.loads(strip_code_fence(text))
