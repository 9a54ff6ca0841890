"""
Cryptographic primitives: HKDF, HMAC, hashing and the injected random source.
Implements the keyed derivations shared by the OPRF, envelope and AKE layers.
"""

import os

from cryptography.hazmat.primitives import constant_time, hashes, hmac
from cryptography.hazmat.primitives.kdf.hkdf import HKDFExpand

from .errors import RandomnessFailure

LABEL_PREFIX = b"OPAQUE-"

_HASHES = {
    "sha256": hashes.SHA256,
    "sha512": hashes.SHA512,
}


def hash_algorithm(name):
    """
    Look up a cryptography hash algorithm by name.

    Args:
        name: "sha256" or "sha512"

    Returns:
        Fresh HashAlgorithm instance
    """
    try:
        return _HASHES[name]()
    except KeyError:
        raise ValueError(f"Unsupported hash function: {name}") from None


def digest(hash_name, *parts):
    """Hash the concatenation of parts"""
    h = hashes.Hash(hash_algorithm(hash_name))
    for part in parts:
        h.update(part)
    return h.finalize()


def mac(hash_name, key, *parts):
    """HMAC over the concatenation of parts"""
    h = hmac.HMAC(key, hash_algorithm(hash_name))
    for part in parts:
        h.update(part)
    return h.finalize()


def constant_time_equal(a, b):
    return constant_time.bytes_eq(bytes(a), bytes(b))


def extract(hash_name, salt, ikm):
    """
    HKDF-Extract (RFC 5869).

    Args:
        hash_name: hash function name
        salt: salt bytes, empty means HashLen zero bytes
        ikm: input keying material

    Returns:
        Pseudorandom key of HashLen bytes
    """
    if not salt:
        salt = bytes(hash_algorithm(hash_name).digest_size)
    return mac(hash_name, salt, ikm)


def expand(hash_name, prk, info, length):
    """HKDF-Expand (RFC 5869)"""
    return HKDFExpand(
        algorithm=hash_algorithm(hash_name),
        length=length,
        info=info,
    ).derive(prk)


def expand_label(hash_name, secret, label, context, length):
    """
    HKDF-Expand with a structured label:
    [2B length][1B label_len]["OPAQUE-" label][1B context_len][context]
    """
    full_label = LABEL_PREFIX + label
    info = (
        i2osp(length, 2)
        + encode_vector(full_label, 1)
        + encode_vector(context, 1)
    )
    return expand(hash_name, secret, info, length)


def i2osp(value, length):
    return value.to_bytes(length, "big")


def encode_vector(data, length_bytes=2):
    """Length-prefix data with a big-endian length field"""
    return i2osp(len(data), length_bytes) + data


def xor(a, b):
    if len(a) != len(b):
        raise ValueError("XOR operands must have equal length")
    return bytes(x ^ y for x, y in zip(a, b))


def random_bytes(rng, n):
    """
    Draw n bytes from an injected random source.

    Args:
        rng: callable taking a byte count and returning bytes (os.urandom-like)
        n: number of bytes

    Returns:
        n random bytes

    Raises:
        RandomnessFailure if the source raises or returns the wrong amount
    """
    if rng is None:
        rng = os.urandom
    try:
        data = rng(n)
    except Exception as e:
        raise RandomnessFailure(f"Random source failed: {e}") from e
    if not isinstance(data, (bytes, bytearray)) or len(data) != n:
        raise RandomnessFailure(f"Random source did not return {n} bytes")
    return bytes(data)


def checked_rng(rng):
    """Wrap rng so every draw goes through random_bytes validation"""
    return lambda n: random_bytes(rng, n)


def to_bytes(value):
    """Accept str (UTF-8 encoded) or any bytes-like value"""
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)
