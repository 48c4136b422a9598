from yggauth.core.config import Config
from yggauth.core.crypto import KeyPair, generate_server_id, generate_verify_token
from yggauth.core.error import EncryptionFailed
from yggauth.core.logging import info, set_debug

from yggauth.auth.session import AuthSession

config = Config('config.yaml')
set_debug(config.get('debug'))

# Normally read from the Encryption Request packet
key_pair = KeyPair.generate()
server_id = generate_server_id()
verify_token = generate_verify_token()

# Client side: log in, then answer the server's Encryption Request
with AuthSession(config=config) as client:
    client.authenticate(config.get('email'), config.get('password'))

    response = client.encryption_response(key_pair.public_der, verify_token)
    client.join(server_id, response.shared_secret, key_pair.public_der)

    username = client.profile.username

# Server side: decrypt the Encryption Response and check the join with Mojang
if key_pair.decrypt(response.encrypted_verify_token) != verify_token:
    raise EncryptionFailed('Verify token does not match!')

shared_secret = key_pair.decrypt(response.encrypted_secret)

with AuthSession(config=config) as server:
    profile = server.verify(username, server_id, shared_secret, key_pair.public_der)

info(f'Player verified! [username={ profile.username }, uuid={ profile.dashed_uuid }]')
