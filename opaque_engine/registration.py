"""
OPAQUE registration: the client obtains an OPRF evaluation of its password,
seals a fresh static private key in an envelope and uploads the record.

    client_start  -> RegistrationRequest
    server_start  -> RegistrationResponse   (stateless)
    client_finish -> RegistrationUpload, export_key
    server_finish -> ServerRegistration     (the stored record)
"""

import logging
import os

from .core import envelope as envelope_codec
from .core import oprf
from .core.ciphersuite import DEFAULT_SUITE
from .core.crypto import random_bytes
from .core.errors import InvalidState
from .core.messages import (
    RegistrationRequest,
    RegistrationResponse,
    RegistrationUpload,
)
from .core.secret import SecretState, expect_state

logger = logging.getLogger(__name__)


class ClientRegistrationState(SecretState):
    """Secrets kept by the client between client_start and client_finish"""

    kind = "ClientRegistrationState"

    def __init__(self, suite, blind, blinded_message):
        super().__init__(suite)
        self.blind = blind
        self.blinded_message = blinded_message


class ServerRegistration:
    """
    Registration record persisted by the server.

    Wraps the client's upload; the server cannot open the envelope.
    """

    def __init__(self, upload):
        if not isinstance(upload, RegistrationUpload):
            raise InvalidState("ServerRegistration requires a RegistrationUpload")
        self.upload = upload

    @property
    def suite(self):
        return self.upload.suite

    @property
    def client_public_key(self):
        return self.upload.client_public_key

    @property
    def masking_key(self):
        return self.upload.masking_key

    @property
    def envelope(self):
        return self.upload.envelope

    @staticmethod
    def length(suite):
        return RegistrationUpload.length(suite)

    def serialize(self):
        return self.upload.serialize()

    @classmethod
    def deserialize(cls, data, suite=DEFAULT_SUITE):
        return cls(RegistrationUpload.deserialize(data, suite))

    def __eq__(self, other):
        if not isinstance(other, ServerRegistration):
            return NotImplemented
        return self.upload == other.upload

    def __hash__(self):
        return hash(self.upload)

    def __repr__(self):
        return f"ServerRegistration(suite={self.suite.name})"

    @staticmethod
    def start(request, credential_identifier, server_setup):
        return server_start(request, credential_identifier, server_setup)

    @staticmethod
    def finish(upload):
        return server_finish(upload)


def client_start(password, rng=os.urandom, suite=DEFAULT_SUITE):
    """
    Begin registration.

    Args:
        password: password bytes
        rng: random source
        suite: CipherSuite

    Returns:
        (RegistrationRequest, ClientRegistrationState)
    """
    blind, blinded = oprf.blind(suite, password, rng)
    blinded_message = suite.oprf_group.serialize_element(blinded)
    logger.debug("Registration request created")
    return (
        RegistrationRequest(suite, blinded_message),
        ClientRegistrationState(suite, blind, blinded_message),
    )


def server_start(request, credential_identifier, server_setup):
    """
    Evaluate the blinded password under the per-credential OPRF key.

    Args:
        request: RegistrationRequest
        credential_identifier: account identifier bytes
        server_setup: ServerSetup

    Returns:
        RegistrationResponse
    """
    suite = server_setup.suite
    if not isinstance(request, RegistrationRequest):
        raise InvalidState("request must be a RegistrationRequest")
    if request.suite != suite:
        raise InvalidState("Registration request uses a different ciphersuite")
    blinded = suite.oprf_group.deserialize_element(request.blinded_message, "blinded message")
    evaluated = oprf.evaluate(suite, blinded, server_setup.oprf_key(credential_identifier))
    logger.debug("Registration response created")
    return RegistrationResponse(
        suite,
        suite.oprf_group.serialize_element(evaluated),
        server_setup.public_key,
    )


def client_finish(state, password, response, rng=os.urandom, identifiers=None):
    """
    Complete registration on the client.

    Args:
        state: ClientRegistrationState from client_start
        password: the same password given to client_start
        response: RegistrationResponse
        rng: random source for the static keypair and envelope nonce
        identifiers: optional Identifiers bound into the envelope

    Returns:
        (RegistrationUpload, export_key)

    Raises:
        InvalidState, ReflectedValueError, DeserializationError
    """
    expect_state(state, ClientRegistrationState)
    if not isinstance(response, RegistrationResponse):
        raise InvalidState("response must be a RegistrationResponse")
    state.consume(response.suite)
    suite = state.suite
    try:
        oprf.check_not_reflected(suite, state.blinded_message, response.evaluated_message)
        evaluated = suite.oprf_group.deserialize_element(
            response.evaluated_message, "evaluated message"
        )
        server_public_key = suite.ke_group.validate_public_key(
            response.server_public_key, "server public key"
        )
        oprf_output = oprf.finalize(suite, password, state.blind, evaluated)
        with oprf.randomize_password(suite, oprf_output) as randomized_pwd, \
                suite.ke_group.random_private_key(rng) as client_sk:
            nonce = random_bytes(rng, suite.Nn)
            sealed = envelope_codec.seal(
                suite, randomized_pwd, client_sk, server_public_key, nonce, identifiers
            )
            upload = RegistrationUpload(
                suite,
                suite.ke_group.public_key(client_sk),
                envelope_codec.derive_masking_key(suite, randomized_pwd),
                sealed,
            )
            export_key = envelope_codec.derive_export_key(suite, randomized_pwd, nonce)
    finally:
        state.zeroize()
    logger.debug("Registration upload created")
    return upload, export_key


def server_finish(upload):
    """Turn the client's upload into the record to store"""
    return ServerRegistration(upload)


class ClientRegistration:
    """Object interface over client_start / client_finish"""

    @staticmethod
    def start(password, rng=os.urandom, suite=DEFAULT_SUITE):
        return client_start(password, rng, suite)

    @staticmethod
    def finish(state, password, response, rng=os.urandom, identifiers=None):
        return client_finish(state, password, response, rng, identifiers)


__all__ = [
    "ClientRegistration",
    "ClientRegistrationState",
    "ServerRegistration",
    "client_start",
    "client_finish",
    "server_start",
    "server_finish",
]
