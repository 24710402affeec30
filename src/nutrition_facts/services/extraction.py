"""Extraction of JSON payloads from raw model completions."""

import json
import logging
import re

_OBJECT_PATTERN = re.compile(r"\{.*\}", re.DOTALL)
_ARRAY_PATTERN = re.compile(r"\[.*\]", re.DOTALL)

_logger = logging.getLogger(__name__)


class UnparsableResponseError(ValueError):
    """Raised when no JSON payload can be recovered from a completion."""

    def __init__(self, raw_text: str) -> None:
        super().__init__(f"Не удалось извлечь JSON из ответа AI: {raw_text!r}")
        self.raw_text = raw_text


def extract_json(raw_text: str) -> object:
    """Parse a completion that should be a single JSON object."""
    return _extract(raw_text, (_OBJECT_PATTERN,))


def extract_json_array(raw_text: str) -> object:
    """Parse a completion that should be a JSON array of ingredients."""
    return _extract(raw_text, (_ARRAY_PATTERN, _OBJECT_PATTERN))


def _extract(raw_text: str, patterns: tuple[re.Pattern[str], ...]) -> object:
    try:
        return json.loads(raw_text)
    except (TypeError, json.JSONDecodeError):
        _logger.warning("AI response is not pure JSON, scanning for embedded JSON")
    if not isinstance(raw_text, str):
        raise UnparsableResponseError(str(raw_text))
    for pattern in patterns:
        match = pattern.search(raw_text)
        if match is None:
            continue
        try:
            return json.loads(match.group(0))
        except json.JSONDecodeError:
            continue
    raise UnparsableResponseError(raw_text)
