import json

import pytest
import requests

from yggauth.core.error import TransportError
from yggauth.net.transport import RequestsTransport


def make_response(status: int, body: bytes = b''):
    res = requests.Response()
    res.status_code = status
    res._content = body

    return res


@pytest.fixture
def recorded(monkeypatch):
    calls = []
    responses = []

    def fake_request(self, method, url, **kwargs):
        calls.append((method, url, kwargs))
        return responses.pop(0)

    monkeypatch.setattr(requests.Session, 'request', fake_request)

    return calls, responses


def test_post_sends_json(recorded):
    calls, responses = recorded
    responses.append(make_response(200, b'{"ok": true}'))

    body = RequestsTransport(timeout=3).post('https://example.com/x', {'a': 1})

    method, url, kwargs = calls[0]

    assert body == b'{"ok": true}'
    assert method == 'POST'
    assert url == 'https://example.com/x'
    assert json.loads(kwargs['data']) == {'a': 1}
    assert kwargs['headers']['Content-Type'] == 'application/json'
    assert kwargs['timeout'] == 3


def test_get_sends_params(recorded):
    calls, responses = recorded
    responses.append(make_response(204))

    assert RequestsTransport().get('https://example.com/y', {'q': 'v'}) == b''
    assert calls[0][2]['params'] == {'q': 'v'}


def test_non_success_status(recorded):
    _, responses = recorded
    responses.append(make_response(403, b'{"error": "ForbiddenOperationException", "errorMessage": "Nope"}'))

    with pytest.raises(TransportError) as exc:
        RequestsTransport().post('https://example.com/x', {})

    assert exc.value.status == 403
    assert exc.value.error_payload()['error'] == 'ForbiddenOperationException'


def test_connection_error(monkeypatch):

    def fail(self, method, url, **kwargs):
        raise requests.ConnectionError('refused')

    monkeypatch.setattr(requests.Session, 'request', fail)

    with pytest.raises(TransportError) as exc:
        RequestsTransport().get('https://example.com/')

    assert exc.value.status is None
    assert exc.value.error_payload() == {}


def test_user_agent():
    assert RequestsTransport().session.headers['User-Agent'].startswith('yggauth/')
