import json

from yggauth.core.error import (
    TransportError, MalformedResponse, AuthenticationFailed,
    JoinRejected, InvalidSessionID, InvalidServerID, InvalidUUID
)
from yggauth.net.transport import Transport
from yggauth.auth.profile import Profile, SessionTokens


AUTH_SERVER = 'https://authserver.mojang.com'
SESSION_SERVER = 'https://sessionserver.mojang.com'

AGENT = {
    'name': 'Minecraft',
    'version': 1
}

# Matched against the start of the `error` / `errorMessage` fields of a failed join
ERR_MAP = {
    'ForbiddenOperationException': InvalidSessionID,
    'Invalid serverId': InvalidServerID,
    'Invalid profileId': InvalidUUID
}


def _load(body: bytes, err=MalformedResponse):
    """Parse a JSON response body, raising ``err`` if it isn't a JSON object."""

    try:
        data = json.loads(body)
    except ValueError as e:
        raise err('Response body is not valid JSON!') from e

    if not isinstance(data, dict):
        raise err('Response body is not a JSON object!')

    return data


def _tokens(data: dict, request_user: bool, err=MalformedResponse):
    try:
        access_token, client_token = data['accessToken'], data['clientToken']
    except KeyError as e:
        raise err(f'Response is missing the { e.args[0] } field!') from e

    if not isinstance(access_token, str) or not access_token:
        raise err('Response contains an invalid accessToken!')

    if not isinstance(client_token, str):
        raise err('Response contains an invalid clientToken!')

    return SessionTokens(access_token, client_token, request_user)


def join_error(exc: TransportError):
    """Pick the most specific ``JoinRejected`` subclass for a failed join."""

    payload = exc.error_payload()

    for field in ('error', 'errorMessage'):
        value = payload.get(field) or ''

        for k, v in ERR_MAP.items():
            if value.startswith(k):
                return v.from_transport(f'Session server rejected the join! [{ value }]', exc)

    return JoinRejected.from_transport(f'Session server rejected the join! [status={ exc.status }]', exc)


def authenticate(transport: Transport, username: str, password: str, client_token: str = None,
                 request_user: bool = False, auth_server: str = AUTH_SERVER):
    """
    Exchange account credentials for session tokens.

    Any failure, including a malformed response, is an ``AuthenticationFailed``.
    """

    try:
        body = transport.post(
            f'{ auth_server }/authenticate',
            {
                'agent': AGENT,
                'username': username,
                'password': password,
                'clientToken': client_token,
                'requestUser': request_user
            }
        )
    except TransportError as e:
        raise AuthenticationFailed.from_transport(
            f'Authentication server rejected the credentials! [status={ e.status }]', e
        ) from e

    data = _load(body, AuthenticationFailed)
    tokens = _tokens(data, request_user, AuthenticationFailed)

    try:
        profile = Profile.from_json(data.get('selectedProfile'))
    except MalformedResponse as e:
        raise AuthenticationFailed(f'Authentication response has no usable profile! ({ e })') from e

    return tokens, profile


def refresh(transport: Transport, access_token: str, client_token: str, request_user: bool = False,
            auth_server: str = AUTH_SERVER):
    """
    Renew an access token. The old token is invalidated by the server.

    Returns the new tokens and the selected profile, if the server sent one.
    """

    try:
        body = transport.post(
            f'{ auth_server }/refresh',
            {
                'accessToken': access_token,
                'clientToken': client_token,
                'requestUser': request_user
            }
        )
    except TransportError as e:
        raise AuthenticationFailed.from_transport(f'Token refresh failed! [status={ e.status }]', e) from e

    data = _load(body)
    tokens = _tokens(data, request_user)

    profile = data.get('selectedProfile')

    return tokens, None if profile is None else Profile.from_json(profile)


def validate(transport: Transport, access_token: str, client_token: str = None, auth_server: str = AUTH_SERVER):
    """Check whether an access token is still usable for joining servers."""

    payload = {
        'accessToken': access_token
    }

    if client_token is not None:
        payload['clientToken'] = client_token

    try:
        transport.post(f'{ auth_server }/validate', payload)
    except TransportError as e:
        # 403 Forbidden is the "invalid token" answer, everything else is a real failure
        if e.status == 403:
            return False

        raise

    return True


def signout(transport: Transport, username: str, password: str, auth_server: str = AUTH_SERVER):
    """Invalidate every access token of an account, using its credentials."""

    try:
        transport.post(
            f'{ auth_server }/signout',
            {
                'username': username,
                'password': password
            }
        )
    except TransportError as e:
        raise AuthenticationFailed.from_transport(f'Sign out failed! [status={ e.status }]', e) from e


def invalidate(transport: Transport, access_token: str, client_token: str, auth_server: str = AUTH_SERVER):
    """Invalidate an access token, using the client token it was issued with."""

    transport.post(
        f'{ auth_server }/invalidate',
        {
            'accessToken': access_token,
            'clientToken': client_token
        }
    )


def join(transport: Transport, access_token: str, uuid: str, server_hash: str, session_server: str = SESSION_SERVER):
    """
    Tell the Mojang session servers that this account is joining a server.

    Must be done immediately before sending the Encryption Response. No response body is expected.
    """

    try:
        transport.post(
            f'{ session_server }/session/minecraft/join',
            {
                'accessToken': access_token,
                'selectedProfile': uuid,
                'serverId': server_hash
            }
        )
    except TransportError as e:
        raise join_error(e) from e


def has_joined(transport: Transport, username: str, server_hash: str, ip: str = None,
               session_server: str = SESSION_SERVER):
    """
    Check whether a client has posted a join to Mojang. Used by servers to authenticate connecting clients.

    Returns the authoritative profile, or ``None`` if the session server had nothing to say (HTTP 204).
    """

    params = {
        'username': username,
        'serverId': server_hash
    }

    if ip is not None:
        params['ip'] = ip

    body = transport.get(f'{ session_server }/session/minecraft/hasJoined', params)

    if not body.strip():
        return None

    return Profile.from_json(_load(body))
