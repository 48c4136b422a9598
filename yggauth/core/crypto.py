import os

from typing import Callable, NamedTuple

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.padding import PKCS1v15
from cryptography.hazmat.primitives.serialization import load_der_public_key, load_der_private_key

from yggauth.core.error import RandomSourceError, InvalidPublicKey, EncryptionFailed


SHARED_SECRET_LENGTH = 16
VERIFY_TOKEN_LENGTH = 4

# The protocol only uses 1024 bit keys, so every ciphertext is exactly 128 bytes.
RSA_KEY_SIZE = 1024
RSA_KEY_BYTES = RSA_KEY_SIZE // 8

RandomSource = Callable[[int], bytes]


def random_bytes(length: int, random_source: RandomSource = os.urandom):
    """Read exactly ``length`` bytes from a secure random source."""

    try:
        data = random_source(length)
    except (OSError, NotImplementedError) as e:
        raise RandomSourceError(f'Random source could not supply { length } bytes!') from e

    if not isinstance(data, bytes) or len(data) != length:
        raise RandomSourceError(f'Random source returned malformed data! [expected={ length } bytes]')

    return data


def generate_shared_secret(random_source: RandomSource = os.urandom):
    """Generate the 16 byte shared secret, used as both key and IV of the connection's AES cipher."""

    return random_bytes(SHARED_SECRET_LENGTH, random_source)


def generate_verify_token(random_source: RandomSource = os.urandom):
    """Generate the 4 byte verify token a server sends in its Encryption Request."""

    return random_bytes(VERIFY_TOKEN_LENGTH, random_source)


def generate_server_id(random_source: RandomSource = os.urandom):
    """Generate 20 random hex characters for a server's Encryption Request."""

    return random_bytes(10, random_source).hex()


class PublicKey:
    """DER public key encryption utility class."""

    def __init__(self, key: bytes):
        try:
            self.key = load_der_public_key(key, backend=default_backend())
        except (ValueError, TypeError) as e:
            raise InvalidPublicKey('Could not parse the server public key as DER!') from e
        except UnsupportedAlgorithm as e:
            raise InvalidPublicKey('Unsupported public key algorithm!') from e

        if not isinstance(self.key, rsa.RSAPublicKey):
            raise InvalidPublicKey(f'Server public key is not an RSA key! [type={ type(self.key).__name__ }]')

        self.der = key

    @property
    def key_size(self):
        return self.key.key_size

    def encrypt(self, data: bytes):
        """Encrypt data with PKCS#1 v1.5 padding. The result is always ``RSA_KEY_BYTES`` long."""

        try:
            encrypted = self.key.encrypt(data, PKCS1v15())
        except (ValueError, TypeError) as e:
            raise EncryptionFailed(f'RSA encryption failed! [plaintext={ len(data) } bytes]') from e

        if len(encrypted) != RSA_KEY_BYTES:
            raise EncryptionFailed(
                f'RSA ciphertext has the wrong length! [expected={ RSA_KEY_BYTES }, got={ len(encrypted) }]'
            )

        return encrypted


def rsa_encrypt(public_key: bytes, data: bytes):
    """
    Given a public key in DER format (as received in the Encryption Request packet), RSA encrypt the data.

    For use with the Encryption Response packet.
    """

    return PublicKey(public_key).encrypt(data)


class KeyPair:
    """RSA key pair used by the server side of the handshake."""

    def __init__(self, private_key: rsa.RSAPrivateKey):
        self.private_key = private_key

    @classmethod
    def generate(cls):
        return cls(
            rsa.generate_private_key(
                public_exponent=65537,
                key_size=RSA_KEY_SIZE,
                backend=default_backend()
            )
        )

    @classmethod
    def from_der(cls, der_private_key: bytes):
        return cls(load_der_private_key(der_private_key, password=None, backend=default_backend()))

    @property
    def public_der(self):
        """Public key in ASN.1 DER (SubjectPublicKeyInfo) format, as sent in the Encryption Request."""

        return self.private_key.public_key().public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo
        )

    @property
    def private_der(self):
        return self.private_key.private_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption()
        )

    def decrypt(self, data: bytes):
        try:
            return self.private_key.decrypt(data, PKCS1v15())
        except ValueError as e:
            raise EncryptionFailed('RSA decryption failed!') from e


class EncryptionResponse(NamedTuple):
    """Everything the client needs for the Encryption Response packet."""

    shared_secret: bytes
    encrypted_secret: bytes
    encrypted_verify_token: bytes


def encryption_response(public_key: bytes, verify_token: bytes, shared_secret: bytes = None,
                        random_source: RandomSource = os.urandom):
    """Generate (or reuse) a shared secret and encrypt it, along with the verify token, with the server's key."""

    if shared_secret is None:
        shared_secret = generate_shared_secret(random_source)

    public_cipher = PublicKey(public_key)

    return EncryptionResponse(
        shared_secret=shared_secret,
        encrypted_secret=public_cipher.encrypt(shared_secret),
        encrypted_verify_token=public_cipher.encrypt(verify_token)
    )
