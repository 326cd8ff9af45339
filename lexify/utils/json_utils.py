# Fichier : lexify/utils/json_utils.py

from __future__ import annotations

import json
import re
from typing import Any, Optional

_FENCE_RE = re.compile(r"```[a-zA-Z]*\n?")


def strip_code_fences(text: str) -> str:
    """Drop markdown fences such as ```json ... ``` wrapped around a payload."""
    return _FENCE_RE.sub("", text).strip()


def extract_balanced_json(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` or ``[...]`` block in ``text``.

    Brackets inside string literals are ignored. ``None`` when nothing closes.
    """
    start = next((i for i, ch in enumerate(text) if ch in "[{"), None)
    if start is None:
        return None

    stack: list[str] = []
    in_string = False
    escaped = False
    pairs = {"[": "]", "{": "}"}

    for index in range(start, len(text)):
        ch = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch in pairs:
            stack.append(pairs[ch])
        elif stack and ch == stack[-1]:
            stack.pop()
            if not stack:
                return text[start : index + 1]
    return None


def safe_json_loads(raw: str | None) -> Any:
    """``json.loads`` that tolerates fences and prose around the payload.

    Re-raises the first decoding error when no embedded block parses either.
    """
    if raw is None:
        raise ValueError("safe_json_loads: input is None")

    text = strip_code_fences(str(raw))
    try:
        return json.loads(text)
    except json.JSONDecodeError as first_exc:
        candidate = extract_balanced_json(text)
        if candidate is None:
            raise first_exc
        return json.loads(candidate)
