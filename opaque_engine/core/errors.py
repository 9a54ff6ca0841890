"""
Error types raised by the OPAQUE engine.
Every failure is reported to the local caller as a subclass of OpaqueError.
"""


class OpaqueError(Exception):
    """Base class for all engine errors"""


class InvalidMessageLength(OpaqueError, ValueError):
    """A message or field does not have the fixed size the ciphersuite requires"""

    def __init__(self, name, expected, actual):
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Invalid length for {name}: expected {expected}, got {actual}"
        )


class DeserializationError(OpaqueError, ValueError):
    """Bytes do not decode to a valid group element, scalar or public key"""


class ReflectedValueError(OpaqueError):
    """The server returned the blinded element unchanged"""


class LoginFailure(OpaqueError):
    """Generic login failure. The subclass is only visible locally."""


class EnvelopeAuthenticationFailure(LoginFailure):
    """Envelope tag mismatch: wrong password, corrupted record or wrong server key"""


class ServerAuthenticationFailure(LoginFailure):
    """Server MAC in the credential response did not verify"""


class ClientAuthenticationFailure(LoginFailure):
    """Client MAC in the credential finalization did not verify"""


class RandomnessFailure(OpaqueError):
    """The injected random source failed to produce entropy"""


class InvalidState(OpaqueError):
    """A finish operation received a state object it cannot consume"""


class KeyStretchingError(OpaqueError):
    """The key-stretching function is misconfigured or failed"""
