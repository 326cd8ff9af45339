# Fichier : lexify/core/prompt_manager.py

import os
import re
from functools import lru_cache
from typing import Any, Dict

# --- Location of the .md prompt templates ---
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
PROMPTS_DIR = os.path.join(BASE_DIR, "prompts")

# --- Values every template can rely on ---
GLOBAL_DEFAULTS: Dict[str, Any] = {
    "questions_count": 5,
    "options_count": 4,
    "native_language": "English",
}

# {{ var }} and {{ var|default(...) }}
PLACEHOLDER_RE = re.compile(r"{{\s*([a-zA-Z_][\w\.]*)\s*(?:\|default\(([^)]*)\))?\s*}}")

JSON_ARRAY_GUARDRAIL = (
    "\n\n[OUTPUT CONSTRAINT]\n"
    "- Respond ONLY with one valid JSON array.\n"
    "- No backticks, no markdown, no text outside the JSON."
)


def _coerce_literal(raw: str) -> Any:
    """Turn 'true'/'false'/'null'/numbers into Python values, strip quotes otherwise."""
    text = raw.strip()
    lowered = text.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered == "null":
        return None
    try:
        return float(text) if "." in text else int(text)
    except ValueError:
        pass
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        return text[1:-1]
    return text


def _lookup(context: Dict[str, Any], dotted: str) -> Any:
    """Resolve ``a.b.c`` against nested dicts or attributes."""
    current: Any = context
    for part in dotted.split("."):
        if isinstance(current, dict) and part in current:
            current = current[part]
        elif hasattr(current, part):
            current = getattr(current, part)
        else:
            return None
    return current


def render_template(template: str, context: Dict[str, Any]) -> str:
    def repl(match: re.Match) -> str:
        value = _lookup(context, match.group(1))
        default_raw = match.group(2)
        if value is None and default_raw is not None:
            value = _coerce_literal(default_raw)

        if isinstance(value, bool):
            return "true" if value else "false"
        if value is None:
            return "null"
        return str(value)

    return PLACEHOLDER_RE.sub(repl, template)


@lru_cache(maxsize=32)
def get_prompt_template(path: str) -> str:
    """Load ``learning.daily_quiz`` from ``prompts/learning/daily_quiz.md``."""
    parts = path.split(".")
    full_path = os.path.join(PROMPTS_DIR, *parts[:-1], f"{parts[-1]}.md")
    with open(full_path, "r", encoding="utf-8") as handle:
        return handle.read()


def get_prompt(path: str, ensure_json_array: bool = False, **kwargs: Any) -> str:
    """Render a template with GLOBAL_DEFAULTS overridden by ``kwargs``."""
    context = dict(GLOBAL_DEFAULTS)
    context.update({key: value for key, value in kwargs.items() if value is not None})

    rendered = render_template(get_prompt_template(path), context)
    if ensure_json_array:
        rendered += JSON_ARRAY_GUARDRAIL
    return rendered
