"""
OPAQUE Engine - asymmetric password-authenticated key exchange
Version 1.0.0
"""

__version__ = "1.0.0"
__license__ = "MIT"

from .core import (
    DEFAULT_SUITE,
    SUITES,
    Argon2idKsf,
    CipherSuite,
    ClientAuthenticationFailure,
    CredentialFinalization,
    CredentialRequest,
    CredentialResponse,
    DeserializationError,
    EnvelopeAuthenticationFailure,
    Identifiers,
    IdentityKsf,
    InvalidMessageLength,
    InvalidState,
    KeyStretchingError,
    LoginFailure,
    OpaqueError,
    RandomnessFailure,
    ReflectedValueError,
    RegistrationRequest,
    RegistrationResponse,
    RegistrationUpload,
    ScryptKsf,
    ServerAuthenticationFailure,
    get_suite,
    ksf_from_name,
)
from .login import (
    ClientLogin,
    ClientLoginState,
    LoginParameters,
    ServerLogin,
    ServerLoginState,
)
from .registration import (
    ClientRegistration,
    ClientRegistrationState,
    ServerRegistration,
)
from .server_setup import ServerSetup

__all__ = [
    "ServerSetup",
    "ClientRegistration",
    "ClientRegistrationState",
    "ServerRegistration",
    "ClientLogin",
    "ClientLoginState",
    "ServerLogin",
    "ServerLoginState",
    "LoginParameters",
    "Identifiers",
    "CipherSuite",
    "DEFAULT_SUITE",
    "SUITES",
    "get_suite",
    "IdentityKsf",
    "ScryptKsf",
    "Argon2idKsf",
    "ksf_from_name",
    "RegistrationRequest",
    "RegistrationResponse",
    "RegistrationUpload",
    "CredentialRequest",
    "CredentialResponse",
    "CredentialFinalization",
    "OpaqueError",
    "InvalidMessageLength",
    "DeserializationError",
    "ReflectedValueError",
    "LoginFailure",
    "EnvelopeAuthenticationFailure",
    "ServerAuthenticationFailure",
    "ClientAuthenticationFailure",
    "RandomnessFailure",
    "InvalidState",
    "KeyStretchingError",
]
