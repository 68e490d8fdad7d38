import json
from typing import Dict

from .errors import MalformedTranslationOutput

JSON_FENCE_START = '```json'
FENCE = '```'


def strip_code_fence(text: str) -> str:
    """Remove a ```json ... ``` (or bare ```) fence wrapped around the text."""
    text = text.strip()
    for start in (JSON_FENCE_START, FENCE):
        if text.startswith(start) and text.endswith(FENCE) and len(text) >= len(start) + len(FENCE):
            return text[len(start):-len(FENCE)].strip()
    return text


def to_mapping(raw_text: str) -> Dict[str, str]:
    """
    Turn model output into a key -> translation mapping.

    The output may be fenced as a markdown code block and may contain raw
    control characters (newlines, tabs) inside strings.

    Raises:
        MalformedTranslationOutput: if the text is not a JSON object of strings
    """
    body = strip_code_fence(raw_text or '')
    try:
        # strict=False lets literal newlines inside strings through
        data = json.loads(body, strict=False)
    except ValueError as e:
        raise MalformedTranslationOutput(f'Model output is not valid JSON: {e}') from e

    if not isinstance(data, dict):
        raise MalformedTranslationOutput(f'Expected a JSON object, got {type(data).__name__}')

    bad_keys = [key for key, value in data.items() if not isinstance(value, str)]
    if bad_keys:
        raise MalformedTranslationOutput(f'Non-string values for keys: {", ".join(bad_keys)}')

    return data
