import json

from abc import ABC, abstractmethod

import requests

from yggauth.core.error import TransportError
from yggauth.core.logging import debug


USER_AGENT = 'yggauth/1.0'


class Transport(ABC):
    """
    HTTP boundary of the handshake.

    Implementations must raise ``TransportError`` on connection failures and non-2xx responses, and return the
    raw response body otherwise.
    """

    @abstractmethod
    def get(self, url: str, params: dict = None) -> bytes:
        """Perform a GET request."""

    @abstractmethod
    def post(self, url: str, payload: dict, content_type: str = 'application/json') -> bytes:
        """Perform a POST request with a JSON body."""


class RequestsTransport(Transport):
    """Default transport, backed by a ``requests.Session``."""

    def __init__(self, timeout: float = 10, session: requests.Session = None):
        self.timeout = timeout

        if session is None:
            session = requests.Session()
            session.headers['User-Agent'] = USER_AGENT

        self.session = session

    def _request(self, method: str, url: str, **kwargs):
        debug(f'HTTP request! [method={ method }, url={ url }]')

        try:
            res = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise TransportError(f'{ method } { url } failed: { e }') from e

        debug(f'HTTP response! [status={ res.status_code }, length={ len(res.content) }]')

        if not 200 <= res.status_code < 300:
            raise TransportError(
                f'{ method } { url } returned HTTP { res.status_code }!',
                status=res.status_code,
                body=res.content
            )

        return res.content

    def get(self, url: str, params: dict = None) -> bytes:
        return self._request('GET', url, params=params)

    def post(self, url: str, payload: dict, content_type: str = 'application/json') -> bytes:
        # Serialised by hand so that the content type can be overridden
        return self._request(
            'POST',
            url,
            data=json.dumps(payload),
            headers={
                'Content-Type': content_type
            }
        )

    def close(self):
        self.session.close()
