import os

from enum import Enum

import yggauth.auth.request as request

from yggauth.core.config import Config
from yggauth.core.crypto import RandomSource, EncryptionResponse, generate_shared_secret, encryption_response
from yggauth.core.digest import server_hash
from yggauth.core.error import TransportError, SessionStateError, VerificationRejected, MalformedResponse
from yggauth.core.logging import info, success, warn, error, debug, mask
from yggauth.net.transport import Transport, RequestsTransport
from yggauth.auth.profile import Profile, SessionTokens, generate_client_token, normalize_uuid


class SessionState(Enum):
    Unauthenticated = 'unauthenticated'

    # Client role
    Authenticated = 'authenticated'
    Joining = 'joining'
    Joined = 'joined'

    # Server role
    Verifying = 'verifying'
    Verified = 'verified'
    Rejected = 'rejected'


class AuthSession:
    """
    A single login attempt against the Yggdrasil servers.

    Client role::

        Unauthenticated -> Authenticated -> Joining -> Joined

    Server role::

        Unauthenticated -> Verifying -> Verified | Rejected

    Nothing is retried internally. Sessions share no state, so one instance per connection is safe to use from
    its own thread.
    """

    def __init__(self, transport: Transport = None, config: Config = None, random_source: RandomSource = os.urandom):
        self.config = config if config is not None else Config()

        # Only a transport created here is closed by `close()`
        self._owns_transport = transport is None

        self.transport = (
            transport
            if transport is not None
            else RequestsTransport(timeout=self.config.get('timeout'))
        )

        self.random_source = random_source

        self.state = SessionState.Unauthenticated

        self.tokens: SessionTokens | None = None
        self.profile: Profile | None = None

        self.shared_secret: bytes | None = None
        self.server_hash: str | None = None

    @classmethod
    def from_config(cls, config: Config, transport: Transport = None, random_source: RandomSource = os.urandom):
        """Restore an authenticated session from tokens saved in the configuration file."""

        session = cls(transport=transport, config=config, random_source=random_source)

        session.tokens = SessionTokens(config.get('access-token'), config.get('client-token'))
        session.profile = Profile(normalize_uuid(config.get('uuid')), config.get('username'))
        session.state = SessionState.Authenticated

        info(f'Restored session! [username={ session.profile.username }, token={ mask(session.tokens.access_token) }]')

        return session

    def close(self):
        """Release the HTTP connection pool, if this session created its own transport."""

        if self._owns_transport:
            self.transport.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    @property
    def auth_server(self):
        return self.config.get('auth-server')

    @property
    def session_server(self):
        return self.config.get('session-server')

    def _expect(self, operation: str, *states: SessionState):
        if self.state not in states:
            raise SessionStateError(
                f'Cannot { operation } from state { self.state.name }! '
                f'[expected={ ", ".join(s.name for s in states) }]'
            )

    def _reset(self):
        self.tokens = None
        self.profile = None
        self.shared_secret = None
        self.server_hash = None

        self.state = SessionState.Unauthenticated

    '''Client'''

    def authenticate(self, username: str, password: str, client_token: str = None, request_user: bool = False):
        """Log in with account credentials. On failure, the caller must ask for the credentials again."""

        self._expect('authenticate', SessionState.Unauthenticated)

        if client_token is None:
            client_token = generate_client_token(self.random_source)

        info(f'Attempting to authenticate! [username={ username }]')

        try:
            self.tokens, self.profile = request.authenticate(
                self.transport,
                username,
                password,
                client_token=client_token,
                request_user=request_user,
                auth_server=self.auth_server
            )
        except Exception:
            error(f'Authentication failed! [username={ username }]')
            raise

        self.state = SessionState.Authenticated

        success(f'Authenticated! [username={ self.profile.username }, uuid={ self.profile.uuid }]')

        return self.tokens, self.profile

    def create_shared_secret(self):
        """Generate a fresh shared secret for this connection attempt."""

        self.shared_secret = generate_shared_secret(self.random_source)

        return self.shared_secret

    def encryption_response(self, public_key: bytes, verify_token: bytes) -> EncryptionResponse:
        """Encrypt the shared secret and verify token with the server's public key."""

        if self.shared_secret is None:
            self.create_shared_secret()

        return encryption_response(public_key, verify_token, shared_secret=self.shared_secret)

    def join(self, server_id: str | bytes, shared_secret: bytes, public_key: bytes):
        """
        Notify the session server that this account is joining a server.

        Returns the server hash that was posted.
        """

        self._expect('join', SessionState.Authenticated)

        self.state = SessionState.Joining

        try:
            digest = server_hash(server_id, shared_secret, public_key)
            debug(f'Computed server hash! [hash={ digest }]')

            request.join(
                self.transport,
                self.tokens.access_token,
                self.profile.uuid,
                digest,
                session_server=self.session_server
            )
        except Exception:
            error('Session server rejected the join!')

            # The secret of a failed attempt must not be reused
            self.shared_secret = None
            self.state = SessionState.Authenticated

            raise

        self.shared_secret = shared_secret
        self.server_hash = digest
        self.state = SessionState.Joined

        success(f'Joined! [username={ self.profile.username }]')

        return digest

    def refresh(self, request_user: bool = False):
        """Renew the access token. A failed refresh logs the session out."""

        self._expect('refresh', SessionState.Authenticated, SessionState.Joined)

        try:
            tokens, profile = request.refresh(
                self.transport,
                self.tokens.access_token,
                self.tokens.client_token,
                request_user=request_user,
                auth_server=self.auth_server
            )
        except Exception:
            warn('Token refresh failed, session is no longer authenticated!')
            self._reset()

            raise

        self.tokens = tokens

        if profile is not None:
            self.profile = profile

        self.shared_secret = None
        self.server_hash = None
        self.state = SessionState.Authenticated

        info(f'Refreshed access token! [token={ mask(tokens.access_token) }]')

        return tokens

    def validate(self):
        """Check whether the current access token is still valid."""

        self._expect('validate', SessionState.Authenticated, SessionState.Joined)

        return request.validate(
            self.transport,
            self.tokens.access_token,
            self.tokens.client_token,
            auth_server=self.auth_server
        )

    def invalidate(self):
        """Invalidate the current access token."""

        self._expect('invalidate', SessionState.Authenticated, SessionState.Joined)

        request.invalidate(
            self.transport,
            self.tokens.access_token,
            self.tokens.client_token,
            auth_server=self.auth_server
        )

        info(f'Invalidated access token! [token={ mask(self.tokens.access_token) }]')

        self._reset()

    def signout(self, username: str, password: str):
        """Invalidate every access token of the account."""

        request.signout(self.transport, username, password, auth_server=self.auth_server)

        info(f'Signed out! [username={ username }]')

        self._reset()

    '''Server'''

    def verify(self, username: str, server_id: str | bytes, shared_secret: bytes, public_key: bytes, ip: str = None):
        """
        Check that a connecting client has joined through the session server.

        Returns the authoritative profile. A session the server does not confirm raises ``VerificationRejected``.
        Any failure leaves the session ``Rejected``, and the client must be disconnected.
        """

        self._expect('verify', SessionState.Unauthenticated)

        self.state = SessionState.Verifying

        try:
            digest = server_hash(server_id, shared_secret, public_key)
            debug(f'Computed server hash! [username={ username }, hash={ digest }]')

            profile = request.has_joined(
                self.transport,
                username,
                digest,
                ip=ip,
                session_server=self.session_server
            )
        except (TransportError, MalformedResponse) as e:
            self.state = SessionState.Rejected
            error(f'Could not verify session! [username={ username }]')

            raise VerificationRejected(f'Session of { username } could not be verified!') from e
        except Exception:
            self.state = SessionState.Rejected
            error(f'Session verification failed! [username={ username }]')

            raise

        if profile is None or profile.username.lower() != username.lower():
            self.state = SessionState.Rejected
            error(f'Session server did not confirm the join! [username={ username }]')

            raise VerificationRejected(
                f'Session of { username } was not confirmed! '
                f'[profile={ None if profile is None else profile.username }]'
            )

        self.profile = profile
        self.server_hash = digest
        self.state = SessionState.Verified

        success(f'Verified session! [username={ profile.username }, uuid={ profile.uuid }]')

        return profile
