import threading
from pathlib import Path
from typing import Dict, Optional

import pytest

from i18n_helper.client import CompletionResult
from i18n_helper.config import ClientConfig

XML_HEADER = '<?xml version="1.0" encoding="utf-8"?>\n'


def make_strings_xml(entries: Optional[Dict[str, str]] = None, extra: str = '') -> str:
    """Render a strings.xml document the way Android Studio lays it out."""
    lines = [XML_HEADER + '<resources>']
    for name, value in (entries or {}).items():
        lines.append(f'    <string name="{name}">{value}</string>')
    if extra:
        lines.append(extra)
    lines.append('</resources>\n')
    return '\n'.join(lines)


def write_values(module_dir: Path, folder: str, content: str) -> Path:
    values_dir = module_dir / 'src' / 'main' / 'res' / folder
    values_dir.mkdir(parents=True, exist_ok=True)
    path = values_dir / 'strings.xml'
    path.write_text(content, encoding='utf-8')
    return path


class FakeClient:
    """Stands in for TranslationClient, answering per target locale."""

    def __init__(self, outputs):
        # locale -> model output text, an exception (failed exchange) or a threading.Event to wait on
        self.outputs = outputs
        self.prompts = []
        self._lock = threading.Lock()

    def locale_of(self, prompt: str) -> str:
        for locale in self.outputs:
            if f'\n{locale} (' in prompt:
                return locale
        raise AssertionError(f'Unexpected prompt: {prompt}')

    def stream_completion(self, prompt, on_chunk=None, on_done=None):
        with self._lock:
            self.prompts.append(prompt)

        output = self.outputs[self.locale_of(prompt)]
        if isinstance(output, threading.Event):
            output.wait(5)
            output = IOError('released after the test gave up waiting')

        if isinstance(output, Exception):
            result = CompletionResult(error=output)
        else:
            half = len(output) // 2
            for fragment in (output[:half], output[half:]):
                if on_chunk is not None and fragment.strip():
                    on_chunk(fragment)
            result = CompletionResult(text=output, succeeded=True, status_code=200, chunks=2)

        if on_done is not None:
            on_done(result)
        return result

    def complete(self, prompt):
        return self.stream_completion(prompt)


@pytest.fixture
def client_config():
    return ClientConfig(
        api_url='https://llm.example.com/v1/chat/completions',
        api_token='sk-test',
        model='test-model',
    )


@pytest.fixture
def module_dir(tmp_path):
    """An Android module with a baseline, two locales and folders to skip."""
    module = tmp_path / 'app'
    write_values(module, 'values', make_strings_xml(
        {'app_name': 'Demo', 'hello': 'Hello', 'bye': 'Goodbye'},
        extra='    <string name="api_host" translatable="false">api.example.com</string>',
    ))
    write_values(module, 'values-fr', make_strings_xml({'app_name': 'Démo'}))
    write_values(module, 'values-zh-rCN', make_strings_xml({'app_name': '演示', 'hello': '你好', 'bye': '再见'}))
    (module / 'src' / 'main' / 'res' / 'values-night').mkdir()
    (module / 'src' / 'main' / 'res' / 'drawable').mkdir()
    return module
