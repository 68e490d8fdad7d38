import json

import pytest
import requests

from i18n_helper.client import TranslationClient, iter_stream_fragments
from i18n_helper.errors import MalformedTranslationOutput, NonSuccessResponse, TransportFailure


def event(content):
    return 'data: ' + json.dumps({'choices': [{'index': 0, 'delta': {'content': content}}]})


@pytest.fixture
def session(mocker):
    return mocker.Mock(spec=requests.Session)


@pytest.fixture
def client(client_config, session):
    return TranslationClient(client_config, session=session)


def stream_response(mocker, lines, status_code=200):
    response = mocker.MagicMock()
    response.status_code = status_code
    response.iter_lines.return_value = iter(lines)
    return response


def test_fragments_skip_malformed_and_stop_at_done():
    lines = [
        ': keep-alive',
        '',
        event('```json\n'),
        'data: {"choices": [{"delta": {"content": "bro',
        event('{"hello": "Bonjour"}'),
        'event: ping',
        event('\n```'),
        'data: [DONE]',
        event('after done'),
    ]
    assert list(iter_stream_fragments(lines)) == ['```json\n', '{"hello": "Bonjour"}', '\n```']


def test_fragments_drop_blank_and_empty_deltas():
    lines = [
        event('\n'),
        event('   '),
        'data: {"choices": [{"delta": {"role": "assistant"}}]}',
        'data: {"choices": [{"delta": {"content": null}}]}',
        'data: {"choices": [], "usage": {"total_tokens": 12}}',
        event('ok'),
    ]
    assert list(iter_stream_fragments(lines)) == ['ok']


def test_fragments_accept_bytes_and_unspaced_prefix():
    lines = [
        ('data:' + json.dumps({'choices': [{'delta': {'content': 'Grüß'}}]})).encode('utf-8'),
        b'data: [DONE]',
    ]
    assert list(iter_stream_fragments(lines)) == ['Grüß']


def test_request_body(client):
    body = client.build_request_body('Translate this', stream=True)
    assert body == {
        'model': 'test-model',
        'messages': [{'role': 'user', 'content': 'Translate this'}],
        'stream': True,
        'max_tokens': 4096,
        'min_p': 0.05,
        'stop': None,
        'temperature': 0.1,
        'top_p': 0.7,
        'top_k': 50,
        'frequency_penalty': 0.5,
        'n': 1,
        'response_format': {'type': 'text'},
    }


def test_stream_completion_delivers_valid_fragments(mocker, client, session):
    session.post.return_value = stream_response(mocker, [
        event('{"a": '),
        'data: {not json',
        event('"b"}'),
        'data: [DONE]',
    ])
    chunks = []
    on_done = mocker.Mock()

    result = client.stream_completion('prompt', on_chunk=chunks.append, on_done=on_done)

    assert chunks == ['{"a": ', '"b"}']
    assert result.text == '{"a": "b"}'
    assert result.succeeded is True
    assert result.error is None
    assert result.status_code == 200
    assert result.chunks == 2
    on_done.assert_called_once_with(result)

    _, kwargs = session.post.call_args
    assert session.post.call_args[0][0] == 'https://llm.example.com/v1/chat/completions'
    assert kwargs['headers']['Authorization'] == 'Bearer sk-test'
    assert kwargs['json']['stream'] is True
    assert kwargs['stream'] is True
    assert kwargs['timeout'] == (600.0, 600.0)


def test_stream_completion_transport_failure(mocker, client, session):
    session.post.side_effect = requests.ConnectionError('connection refused')
    on_chunk = mocker.Mock()
    on_done = mocker.Mock()

    result = client.stream_completion('prompt', on_chunk=on_chunk, on_done=on_done)

    assert result.succeeded is False
    assert isinstance(result.error, TransportFailure)
    assert result.text == ''
    on_chunk.assert_not_called()
    on_done.assert_called_once_with(result)


def test_stream_completion_non_success_status(mocker, client, session):
    response = stream_response(mocker, [], status_code=401)
    response.text = '{"error": "invalid token"}'
    session.post.return_value = response
    on_done = mocker.Mock()

    result = client.stream_completion('prompt', on_done=on_done)

    assert result.succeeded is False
    assert result.status_code == 401
    assert isinstance(result.error, NonSuccessResponse)
    assert result.error.status_code == 401
    assert 'invalid token' in result.error.body
    response.iter_lines.assert_not_called()
    response.close.assert_called_once()
    on_done.assert_called_once_with(result)


def test_stream_completion_interrupted_stream(mocker, client, session):
    def lines():
        yield event('partial')
        raise requests.exceptions.ChunkedEncodingError('connection reset')

    response = mocker.MagicMock()
    response.status_code = 200
    response.iter_lines.return_value = lines()
    session.post.return_value = response
    on_done = mocker.Mock()

    result = client.stream_completion('prompt', on_done=on_done)

    assert result.succeeded is False
    assert isinstance(result.error, TransportFailure)
    assert result.text == 'partial'
    on_done.assert_called_once_with(result)


def test_stream_completion_calls_on_done_when_sink_raises(mocker, client, session):
    session.post.return_value = stream_response(mocker, [event('boom')])
    on_done = mocker.Mock()

    with pytest.raises(ValueError):
        client.stream_completion('prompt', on_chunk=mocker.Mock(side_effect=ValueError), on_done=on_done)

    on_done.assert_called_once()


def test_raise_for_error(mocker, client, session):
    session.post.side_effect = requests.Timeout('read timed out')
    result = client.stream_completion('prompt')
    with pytest.raises(TransportFailure):
        result.raise_for_error()


def test_complete(mocker, client, session):
    response = mocker.MagicMock()
    response.status_code = 200
    response.json.return_value = {'choices': [{'message': {'role': 'assistant', 'content': '{"a": "b"}'}}]}
    session.post.return_value = response

    result = client.complete('prompt')

    assert result.succeeded is True
    assert result.text == '{"a": "b"}'
    _, kwargs = session.post.call_args
    assert kwargs['json']['stream'] is False
    assert kwargs['stream'] is False


def test_complete_with_unexpected_body(mocker, client, session):
    response = mocker.MagicMock()
    response.status_code = 200
    response.json.return_value = {'error': 'overloaded'}
    session.post.return_value = response

    result = client.complete('prompt')

    assert result.succeeded is False
    assert isinstance(result.error, MalformedTranslationOutput)


def test_sessions_are_per_thread(client_config):
    client = TranslationClient(client_config)
    assert client.get_session() is client.get_session()
