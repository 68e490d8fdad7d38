"""Translation prompt for one locale."""

import json
from typing import Mapping


# Android locale tags (values-<tag>) with a readable name for the prompt.
# Tags missing from this table are passed to the model as they are.
LANGUAGE_CONFIG = {
    'ar': {'name': 'Arabic'},
    'de': {'name': 'German'},
    'es': {'name': 'Spanish'},
    'fr': {'name': 'French'},
    'hi': {'name': 'Hindi'},
    'in': {'name': 'Indonesian'},
    'it': {'name': 'Italian'},
    'ja': {'name': 'Japanese'},
    'ko': {'name': 'Korean'},
    'nl': {'name': 'Dutch'},
    'pl': {'name': 'Polish'},
    'pt': {'name': 'Portuguese'},
    'pt-rBR': {'name': 'Portuguese (Brazilian)'},
    'ru': {'name': 'Russian'},
    'th': {'name': 'Thai'},
    'tr': {'name': 'Turkish'},
    'uk': {'name': 'Ukrainian'},
    'vi': {'name': 'Vietnamese'},
    'zh': {'name': 'Chinese'},
    'zh-rCN': {'name': 'Simplified Chinese (China)'},
    'zh-rHK': {'name': 'Traditional Chinese (Hong Kong)'},
    'zh-rTW': {'name': 'Traditional Chinese (Taiwan)'},
}


def get_language_name(locale: str) -> str:
    config = LANGUAGE_CONFIG.get(locale)
    return config['name'] if config else locale


def build_translation_prompt(locale: str, delta: Mapping[str, str]) -> str:
    """Build the prompt asking the model to translate a delta into one locale."""
    language = get_language_name(locale)
    source = json.dumps(dict(delta), ensure_ascii=False, indent=2)

    return f"""## Role
You are a senior localization expert fluent in the languages of every country.

## Task
1. Translate the [Source] JSON values into the [Target language], following the [Translation rules].
2. Review your translation against the [Review rules] before answering.

## Translation rules
1. NEVER translate the keys.
2. Translate the values only. Keep XML tags and placeholders (such as %s, %1$d, @string/...) exactly as they are.
3. Output the result directly, with no explanations.
4. Return a JSON object mapping every key to its translation.
5. Keep the keys in the same order as the source.
6. When a key is written in Chinese, never convert it to Traditional Chinese.

## Review rules
1. Escape sequences already present in the source (such as \\n) must stay escaped in the JSON output (write \\\\n).
2. Translate the same word or sentence the same way everywhere.
3. Make sure no key was translated and every value is accurate.

## Target language
```json
{locale} ({language})
```

## Source
{source}"""
