"""
Protocol building blocks: groups, key derivation, OPRF, envelope, AKE and
the wire codec.
"""

from .ciphersuite import (
    DEFAULT_SUITE,
    ED25519_SHA512,
    ED25519_X25519_SHA256,
    I2048_SHA256,
    SUITES,
    CipherSuite,
    get_suite,
)
from .envelope import Envelope, Identifiers
from .errors import (
    ClientAuthenticationFailure,
    DeserializationError,
    EnvelopeAuthenticationFailure,
    InvalidMessageLength,
    InvalidState,
    KeyStretchingError,
    LoginFailure,
    OpaqueError,
    RandomnessFailure,
    ReflectedValueError,
    ServerAuthenticationFailure,
)
from .ksf import Argon2idKsf, IdentityKsf, ScryptKsf, ksf_from_name
from .messages import (
    CredentialFinalization,
    CredentialRequest,
    CredentialResponse,
    RegistrationRequest,
    RegistrationResponse,
    RegistrationUpload,
)
from .secret import SecretBytes
