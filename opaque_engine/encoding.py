"""
Base64 text encoding for messages and server-side records.
"""

import base64
import binascii

from .core.ciphersuite import DEFAULT_SUITE
from .core.errors import DeserializationError


def to_base64(obj):
    """
    Encode a message, ServerSetup or ServerRegistration as base64 text.

    Args:
        obj: anything with a serialize() method

    Returns:
        ASCII string
    """
    return base64.b64encode(obj.serialize()).decode("ascii")


def from_base64(cls, text, suite=DEFAULT_SUITE):
    """
    Decode base64 text into an instance of cls.

    Args:
        cls: message class, ServerSetup or ServerRegistration
        text: base64 string or bytes
        suite: CipherSuite the data was produced under

    Raises:
        DeserializationError for malformed base64
        InvalidMessageLength / DeserializationError from cls.deserialize
    """
    try:
        data = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DeserializationError(f"Invalid base64 for {cls.__name__}: {e}") from e
    return cls.deserialize(data, suite)
