"""Helpers for cleaning model output and user commands."""

import json
import re
from pathlib import Path
from typing import Any

_CODE_FENCE_OPEN = re.compile(r"```[a-z]*\n?", re.IGNORECASE)
_THINK_BLOCK = re.compile(r"<think>[\s\S]*?</think>", re.IGNORECASE)
_NO_THINK = re.compile(r"/?no_think\b")

IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "webp"}


def sanitize(text: str) -> str:
    """Strip markdown code fences and <think> reasoning blocks."""
    text = _CODE_FENCE_OPEN.sub("", text)
    text = text.replace("```", "")
    text = _THINK_BLOCK.sub("", text)
    return text.strip()


def remove_no_think(text: str) -> str:
    """Drop /no_think markers, which only Qwen models understand."""
    return _NO_THINK.sub("", text).strip()


def extension(path: str) -> str:
    """Lower-case file extension without the dot."""
    return Path(path).suffix.lstrip(".").lower()


def is_image(path: str) -> bool:
    return extension(path) in IMAGE_EXTENSIONS


def parse_json_object(text: str) -> dict[str, Any]:
    """Sanitize model output and parse it as a single JSON object.

    Raises:
        ValueError: If the output is not a JSON object
    """
    data = json.loads(sanitize(text))
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data
