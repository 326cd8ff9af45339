# Fichier: lexify/core/ai_service.py

import logging
from typing import Any, Optional

import requests

from lexify.core.config import settings

logger = logging.getLogger(__name__)

_GEMINI_ENDPOINT_TEMPLATE = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

if settings.GOOGLE_API_KEY:
    logger.info("Gemini configured for REST calls (model=%s).", settings.GEMINI_MODEL)
else:
    logger.warning("GOOGLE_API_KEY is not set: Gemini calls will fail and quizzes will use the fallback bank.")


def _extract_text(data: dict[str, Any]) -> str:
    for candidate in data.get("candidates") or []:
        content = candidate.get("content") or {}
        parts = content.get("parts") or []
        texts = [part.get("text", "") for part in parts if isinstance(part, dict)]
        combined = "".join(texts).strip()
        if combined:
            return combined
    return ""


def call_gemini(
    prompt: str,
    *,
    model: Optional[str] = None,
    temperature: Optional[float] = None,
    timeout: Optional[float] = None,
    json_response: bool = True,
) -> str:
    """Send a single-turn prompt to Gemini and return the raw text answer.

    Raises ``ConnectionError`` when no API key is configured,
    ``requests.RequestException`` on transport/HTTP failures and
    ``ValueError`` when the response carries no usable text.
    """
    api_key = settings.GOOGLE_API_KEY
    if not api_key:
        raise ConnectionError("Gemini is unavailable (missing GOOGLE_API_KEY).")

    model_name = model or settings.GEMINI_MODEL
    payload: dict[str, Any] = {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": {},
    }
    if json_response:
        payload["generationConfig"]["responseMimeType"] = "application/json"
    if temperature is not None:
        payload["generationConfig"]["temperature"] = temperature

    try:
        response = requests.post(
            _GEMINI_ENDPOINT_TEMPLATE.format(model=model_name),
            params={"key": api_key},
            json=payload,
            timeout=timeout or settings.GEMINI_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
    except requests.RequestException as exc:
        logger.error("Gemini call failed: %s", exc)
        raise

    try:
        data: dict[str, Any] = response.json()
    except ValueError as exc:
        raise ValueError("Gemini returned a non-JSON envelope") from exc

    text = _extract_text(data)
    if not text:
        logger.error("Gemini response without usable content: %s", str(data)[:300])
        raise ValueError("Empty Gemini response")
    return text
