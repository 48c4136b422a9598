import hashlib


SHA1_LENGTH = 20


def twos_complement(data: bytes):
    """Negate a big-endian two's complement number: invert every byte, then add one."""

    inverted = bytearray(b ^ 0xff for b in data)

    # Carry propagates from the least significant byte upwards
    for i in reversed(range(len(inverted))):
        if inverted[i] == 0xff:
            inverted[i] = 0x00
        else:
            inverted[i] += 1
            break

    return bytes(inverted)


def hex_digest(sha1_hash: bytes):
    """
    Generate a Minecraft hex digest from a SHA1 hash.

    The hash is treated as a signed big-endian number. Negative values are written as ``-`` followed by their
    magnitude, and leading zeroes are stripped, so this is NOT the usual ``hashlib`` hex output.
    """

    if len(sha1_hash) != SHA1_LENGTH:
        raise ValueError(f'Expected a { SHA1_LENGTH } byte SHA1 hash, got { len(sha1_hash) } bytes!')

    negative = sha1_hash[0] >= 0x80

    if negative:
        sha1_hash = twos_complement(sha1_hash)

    # A zero magnitude would otherwise strip down to an empty string
    magnitude = sha1_hash.hex().lstrip('0') or '0'

    return '-' + magnitude if negative else magnitude


def digest(data: bytes, hasher=hashlib.sha1):
    """Minecraft hex digest of arbitrary data."""

    h = hasher()
    h.update(data)

    return hex_digest(h.digest())


def server_hash(server_id: str | bytes, secret: bytes, public_key: bytes, hasher=hashlib.sha1):
    """
    Generate the hex digest used in the ``serverId`` field for authentication.

    ``server_id`` may be passed as the raw bytes read from the Encryption Request packet, in which case it is used
    as-is; strings are UTF-8 encoded.
    """

    if isinstance(server_id, str):
        server_id = server_id.encode('utf-8')

    h = hasher()

    # Order is fixed by the session server
    h.update(server_id)
    h.update(secret)
    h.update(public_key)

    return hex_digest(h.digest())
