"""
Chat-completions client for OpenAI-compatible endpoints.

Streaming responses are server-sent events, one per line:

    data: {"choices": [{"delta": {"content": "Bon"}}]}
    data: {"choices": [{"delta": {"content": "jour"}}]}
    data: [DONE]

Network and protocol problems never raise out of a call. Each call resolves
to a CompletionResult whose `error` says what went wrong, and `on_done` runs
exactly once with that result whichever way the exchange ended.
"""

import json
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, Optional

import requests
from requests.adapters import HTTPAdapter

from .config import ClientConfig
from .errors import MalformedTranslationOutput, NonSuccessResponse, TransportFailure

logger = logging.getLogger(__name__)

EVENT_PREFIX = 'data:'
DONE_SENTINEL = '[DONE]'


@dataclass
class CompletionResult:
    """Outcome of one request."""
    text: str = ''
    succeeded: bool = False
    status_code: Optional[int] = None
    error: Optional[Exception] = None
    chunks: int = 0

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


def iter_stream_fragments(lines: Iterable[Any]) -> Iterator[str]:
    """
    Yield the text fragments of an event stream, stopping at [DONE].

    Lines without the data: prefix are ignored. Payloads that are not JSON,
    or not shaped like a chat-completion chunk, are logged and skipped
    instead of ending the stream. Whitespace-only fragments are dropped.
    """
    for line in lines:
        if isinstance(line, bytes):
            line = line.decode('utf-8', errors='replace')
        if not line or not line.startswith(EVENT_PREFIX):
            continue

        payload = line[len(EVENT_PREFIX):].strip()
        if payload == DONE_SENTINEL:
            return

        try:
            event = json.loads(payload)
        except ValueError as e:
            logger.warning('Skipping malformed stream event %r: %s', payload[:200], e)
            continue

        try:
            content = event['choices'][0]['delta'].get('content')
        except (KeyError, IndexError, TypeError, AttributeError):
            logger.debug('Stream event without delta content: %r', payload[:200])
            continue

        if isinstance(content, str) and content.strip():
            yield content


class TranslationClient:
    """Sends prompts to a chat-completions endpoint."""

    def __init__(self, config: ClientConfig, session: Optional[requests.Session] = None):
        self.config = config
        self._session = session
        self._local = threading.local()

    def get_session(self) -> requests.Session:
        """Return the session for the calling thread."""
        if self._session is not None:
            return self._session

        session = getattr(self._local, 'session', None)
        if session is None:
            session = requests.Session()
            # No transport retries: a failed locale is retried by running again
            adapter = HTTPAdapter(pool_connections=1, pool_maxsize=1, max_retries=0)
            session.mount('https://', adapter)
            session.mount('http://', adapter)
            self._local.session = session
        return session

    def get_headers(self) -> Dict[str, str]:
        return {
            'Authorization': f'Bearer {self.config.api_token}',
            'Content-Type': 'application/json',
        }

    def build_request_body(self, prompt: str, stream: bool = True) -> Dict[str, Any]:
        """Build the chat-completions request body for a single user message."""
        sampling = self.config.sampling
        return {
            'model': self.config.model,
            'messages': [
                {'role': 'user', 'content': prompt},
            ],
            'stream': stream,
            'max_tokens': sampling['max_tokens'],
            'min_p': sampling['min_p'],
            'stop': None,
            'temperature': sampling['temperature'],
            'top_p': sampling['top_p'],
            'top_k': sampling['top_k'],
            'frequency_penalty': sampling['frequency_penalty'],
            'n': 1,
            'response_format': {'type': 'text'},
        }

    def _post(self, body: Dict[str, Any], stream: bool, result: CompletionResult) -> Optional[requests.Response]:
        """POST the body; on failure record the error in `result` and return None."""
        try:
            response = self.get_session().post(
                self.config.api_url,
                headers=self.get_headers(),
                json=body,
                stream=stream,
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            logger.error('Request to %s failed: %s', self.config.api_url, e)
            result.error = TransportFailure(str(e))
            return None

        result.status_code = response.status_code
        if 200 <= response.status_code < 300:
            return response

        try:
            error_body = response.text
        except requests.RequestException as e:
            error_body = f'<unreadable body: {e}>'
        finally:
            response.close()
        logger.error('Request to %s returned HTTP %s: %s', self.config.api_url, response.status_code, error_body)
        result.error = NonSuccessResponse(response.status_code, error_body)
        return None

    def stream_completion(
        self,
        prompt: str,
        on_chunk: Optional[Callable[[str], None]] = None,
        on_done: Optional[Callable[[CompletionResult], None]] = None,
    ) -> CompletionResult:
        """
        Stream a completion, passing each text fragment to `on_chunk`.

        Returns the joined text as a CompletionResult. `on_done` receives the
        same result once the exchange is over, on success and failure alike.
        """
        result = CompletionResult()
        try:
            self._stream_into(result, prompt, on_chunk)
        finally:
            if on_done is not None:
                on_done(result)
        return result

    def _stream_into(self, result: CompletionResult, prompt: str, on_chunk: Optional[Callable[[str], None]]) -> None:
        response = self._post(self.build_request_body(prompt, stream=True), True, result)
        if response is None:
            return

        fragments = []
        with response:
            # Event streams often come without a charset; requests would guess latin-1
            response.encoding = 'utf-8'
            try:
                for fragment in iter_stream_fragments(response.iter_lines(decode_unicode=True)):
                    fragments.append(fragment)
                    if on_chunk is not None:
                        on_chunk(fragment)
            except requests.RequestException as e:
                logger.error('Stream from %s interrupted: %s', self.config.api_url, e)
                result.error = TransportFailure(f'Stream interrupted: {e}')
            finally:
                result.text = ''.join(fragments)
                result.chunks = len(fragments)

        result.succeeded = result.error is None

    def complete(self, prompt: str) -> CompletionResult:
        """Request a completion without streaming and return its full text."""
        result = CompletionResult()
        response = self._post(self.build_request_body(prompt, stream=False), False, result)
        if response is None:
            return result

        try:
            data = response.json()
            content = data['choices'][0]['message']['content']
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error('Unexpected completion body from %s: %s', self.config.api_url, e)
            result.error = MalformedTranslationOutput(f'Unexpected completion body: {e}')
            return result

        result.text = content or ''
        result.chunks = 1 if result.text else 0
        result.succeeded = True
        return result
