import json


class YggdrasilError(Exception):
    """
    Base Exception class for all yggauth exceptions.

    Used for easily catching all authentication handshake errors.
    """


class TransportError(YggdrasilError):
    """
    Thrown when an HTTP request fails, either through a connection failure or a non-2xx response.

    ``status`` is ``None`` when no response was received at all.
    """

    def __init__(self, message: str = '', status: int = None, body: bytes = b''):
        super().__init__(message)

        self.status = status
        self.body = body

    def error_payload(self) -> dict:
        """Decode the Mojang error body (``{"error": ..., "errorMessage": ...}``), if any."""

        try:
            payload = json.loads(self.body)
        except (TypeError, ValueError):
            return {}

        return payload if isinstance(payload, dict) else {}


class MalformedResponse(YggdrasilError):
    """Thrown when a Mojang response is missing required fields or is not valid JSON."""


class RandomSourceError(YggdrasilError):
    """Thrown when the random source cannot supply entropy. Fatal to the process."""


class SessionStateError(YggdrasilError):
    """Thrown when an ``AuthSession`` operation is attempted from the wrong state."""


class CryptoError(YggdrasilError):
    """Base class for key exchange exceptions."""


class InvalidPublicKey(CryptoError):
    """Thrown when the server's public key is not a DER encoded RSA public key."""


class EncryptionFailed(CryptoError):
    """Thrown when RSA encryption or decryption does not produce a valid result."""


class AuthError(YggdrasilError):
    """
    Base class for authentication-related exceptions.

    ``error`` and ``error_message`` mirror the fields of Mojang's error payload, when one was sent.
    """

    def __init__(self, message: str = '', error: str = None, error_message: str = None):
        super().__init__(message)

        self.error = error
        self.error_message = error_message

    @classmethod
    def from_transport(cls, message: str, exc: TransportError):
        payload = exc.error_payload()

        return cls(
            message,
            error=payload.get('error'),
            error_message=payload.get('errorMessage')
        )


class AuthenticationFailed(AuthError):
    """Thrown when the credentials are rejected. The caller must re-prompt rather than retry."""


class JoinRejected(AuthError):
    """Thrown when the session server refuses a join request."""


class InvalidSessionID(JoinRejected):
    """Thrown when an invalid session ID (access token) is provided."""


class InvalidServerID(JoinRejected):
    """Thrown when the hex digest of the server ID contains invalid information."""


class InvalidUUID(JoinRejected):
    """Thrown when the authentication server returns that a profile ID (UUID) is invalid."""


class VerificationRejected(AuthError):
    """Thrown on the server side when a client's claimed session could not be verified."""
