import os
import re
import uuid as uuid_mod

from dataclasses import dataclass, field

from yggauth.core.crypto import random_bytes
from yggauth.core.error import MalformedResponse


UUID_PATTERN = re.compile(r'^[0-9a-f]{32}$')


def normalize_uuid(value: str):
    """Normalise a UUID to the 32 character, hyphen-free lowercase form used by the Mojang APIs."""

    if not isinstance(value, str):
        raise MalformedResponse(f'Profile UUID must be a string! [value={value!r}]')

    normalized = value.replace('-', '').lower()

    if not UUID_PATTERN.match(normalized):
        raise MalformedResponse(f'Invalid profile UUID! [value={value!r}]')

    return normalized


def generate_client_token(random_source=os.urandom):
    """Generate a fresh client token: 16 random bytes as hex."""

    return random_bytes(16, random_source).hex()


@dataclass(frozen=True)
class Profile:
    """Snapshot of a Minecraft profile."""

    uuid: str
    username: str

    # Only sent by the session server (skin textures etc.)
    properties: tuple = field(default=(), compare=False)

    @property
    def dashed_uuid(self):
        return str(uuid_mod.UUID(hex=self.uuid))

    @classmethod
    def from_json(cls, obj):
        """Build a profile from a Mojang ``{"id": ..., "name": ...}`` object."""

        if not isinstance(obj, dict):
            raise MalformedResponse('Profile is not a JSON object!')

        try:
            uuid, username = obj['id'], obj['name']
        except KeyError as e:
            raise MalformedResponse(f'Profile is missing the { e.args[0] } field!') from e

        if not isinstance(username, str) or not username:
            raise MalformedResponse(f'Invalid profile name! [value={username!r}]')

        properties = obj.get('properties', [])

        if not isinstance(properties, list) or not all(isinstance(p, dict) for p in properties):
            raise MalformedResponse('Profile properties must be a list of objects!')

        return cls(normalize_uuid(uuid), username, tuple(properties))


@dataclass(frozen=True)
class SessionTokens:
    """Tokens issued by the authentication server. Opaque to this library."""

    access_token: str
    client_token: str
    request_user: bool = False

    def __repr__(self):
        # Access tokens grant full account access, keep them out of tracebacks
        return f'SessionTokens(access_token=<hidden>, client_token={ self.client_token!r}, ' \
               f'request_user={ self.request_user })'
