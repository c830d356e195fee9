"""
JSON object extraction from model output

Models wrap JSON in prose or markdown fences. Strategy: strip fences, take
the span from the first '{' to the last '}', parse it, and require an object.
"""

import json
import logging
from typing import Any, Dict

from fir_assistant.errors import ResponseParseError

logger = logging.getLogger(__name__)


def strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def extract_json_object(text: Any) -> Dict[str, Any]:
    """
    Parse the first {...} span (greedy to the last '}') of model output

    Args:
        text: Raw model output

    Returns:
        dict: Parsed JSON object

    Raises:
        ResponseParseError: No braces, invalid JSON, or a non-object value
    """
    if not isinstance(text, str):
        raise ResponseParseError(f"Model output must be text, got {type(text).__name__}")

    cleaned = strip_code_fences(text)
    first_brace = cleaned.find('{')
    last_brace = cleaned.rfind('}')

    if first_brace == -1 or last_brace < first_brace:
        raise ResponseParseError("No JSON object found in model output", raw_output=text)

    candidate = cleaned[first_brace:last_brace + 1]
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"Invalid JSON: {e}", raw_output=text) from e

    if not isinstance(parsed, dict):
        raise ResponseParseError(
            f"Expected JSON object, got {type(parsed).__name__}",
            raw_output=text
        )

    return parsed
