import json

import pytest

from yggauth.core.crypto import KeyPair
from yggauth.core.error import TransportError
from yggauth.net.transport import Transport


class FakeTransport(Transport):
    """Records every request and replays canned responses, keyed by the end of the URL."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def route(self, method: str, path: str, body=b'', status: int = 200):
        if isinstance(body, dict):
            body = json.dumps(body).encode()

        self.routes[(method, path)] = (status, body)

    def _respond(self, method: str, url: str):
        for (m, path), (status, body) in self.routes.items():
            if m == method and url.endswith(path):
                if not 200 <= status < 300:
                    raise TransportError(f'HTTP { status }', status=status, body=body)

                return body

        raise TransportError(f'No route for { method } { url }')

    def get(self, url: str, params: dict = None) -> bytes:
        self.calls.append(('GET', url, params))
        return self._respond('GET', url)

    def post(self, url: str, payload: dict, content_type: str = 'application/json') -> bytes:
        self.calls.append(('POST', url, payload))
        return self._respond('POST', url)

    def last(self, method: str, path: str):
        for m, url, data in reversed(self.calls):
            if m == method and url.endswith(path):
                return data

        raise AssertionError(f'{ method } { path } was never requested')


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture(scope='session')
def key_pair():
    return KeyPair.generate()


@pytest.fixture
def auth_response():
    return {
        'accessToken': 'access-token-1234',
        'clientToken': 'client-token-5678',
        'selectedProfile': {
            'id': '069a79f444e94726a5befca90e38aaf5',
            'name': 'Notch'
        }
    }
