"""
OPAQUE login: credential retrieval combined with a triple-DH key exchange.

    client_start  -> CredentialRequest
    server_start  -> CredentialResponse          (server keeps ServerLoginState)
    client_finish -> CredentialFinalization, session_key, export_key
    server_finish -> session_key

Any failure surfaces as a LoginFailure subclass locally; what the peer sees
is only that the exchange did not complete.
"""

import logging
import os
from dataclasses import dataclass, field

from .core import ake
from .core import envelope as envelope_codec
from .core import oprf
from .core.ciphersuite import DEFAULT_SUITE
from .core.crypto import random_bytes, to_bytes
from .core.envelope import Identifiers
from .core.errors import InvalidState
from .core.messages import (
    CredentialFinalization,
    CredentialRequest,
    CredentialResponse,
)
from .core.secret import SecretBytes, SecretState, expect_state
from .registration import ServerRegistration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginParameters:
    """
    Optional transcript inputs; both sides must use the same values.

    Attributes:
        context: application context string bound into the transcript
        identifiers: explicit identities, defaulting to the public keys
    """

    context: bytes = b""
    identifiers: Identifiers = field(default_factory=Identifiers)


@dataclass(frozen=True)
class ClientLoginResult:
    message: CredentialFinalization
    session_key: bytes
    export_key: bytes
    server_public_key: bytes

    def __iter__(self):
        return iter((self.message, self.session_key, self.export_key))


class ClientLoginState(SecretState):
    """Secrets kept by the client between client_start and client_finish"""

    kind = "ClientLoginState"

    def __init__(self, suite, password, blind, blinded_message,
                 ephemeral_private_key, ke1):
        super().__init__(suite)
        self.password = password
        self.blind = blind
        self.blinded_message = blinded_message
        self.ephemeral_private_key = ephemeral_private_key
        self.ke1 = ke1


class ServerLoginState(SecretState):
    """Expected client MAC and the pending session key"""

    kind = "ServerLoginState"

    def __init__(self, suite, expected_client_mac, session_key):
        super().__init__(suite)
        self.expected_client_mac = expected_client_mac
        self.session_key = session_key


def _identities(params, client_public_key, server_public_key):
    identifiers = params.identifiers
    return (
        identifiers.client or bytes(client_public_key),
        identifiers.server or bytes(server_public_key),
    )


def client_start(password, rng=os.urandom, suite=DEFAULT_SUITE):
    """
    Begin login.

    Args:
        password: password bytes or str
        rng: random source for the blind, nonce and ephemeral key
        suite: CipherSuite

    Returns:
        (CredentialRequest, ClientLoginState)
    """
    blind, blinded = oprf.blind(suite, password, rng)
    blinded_message = suite.oprf_group.serialize_element(blinded)
    client_nonce = random_bytes(rng, suite.Nn)
    ephemeral_sk = suite.ke_group.random_private_key(rng)
    request = CredentialRequest(
        suite,
        blinded_message,
        client_nonce,
        suite.ke_group.public_key(ephemeral_sk),
    )
    state = ClientLoginState(
        suite,
        SecretBytes(to_bytes(password)),
        blind,
        blinded_message,
        ephemeral_sk,
        request.serialize(),
    )
    logger.debug("Credential request created")
    return request, state


def server_start(request, record, credential_identifier, server_setup,
                 rng=os.urandom, params=None):
    """
    Answer a credential request.

    Args:
        request: CredentialRequest
        record: ServerRegistration, or None for an unknown account
        credential_identifier: account identifier bytes
        server_setup: ServerSetup
        rng: random source for the masking nonce, server nonce and ephemeral key
        params: optional LoginParameters

    Returns:
        (CredentialResponse, ServerLoginState)
    """
    suite = server_setup.suite
    params = params or LoginParameters()
    if not isinstance(request, CredentialRequest):
        raise InvalidState("request must be a CredentialRequest")
    if request.suite != suite:
        raise InvalidState("Credential request uses a different ciphersuite")
    if record is None:
        logger.debug("No record for credential, using derived stand-in")
        upload = server_setup.derive_dummy_record(credential_identifier)
    else:
        if not isinstance(record, ServerRegistration):
            raise InvalidState("record must be a ServerRegistration or None")
        if record.suite != suite:
            raise InvalidState("Record uses a different ciphersuite")
        upload = record.upload

    group = suite.oprf_group
    blinded = group.deserialize_element(request.blinded_message, "blinded message")
    client_keyshare = suite.ke_group.validate_public_key(
        request.client_keyshare, "client keyshare"
    )
    evaluated_message = group.serialize_element(
        oprf.evaluate(suite, blinded, server_setup.oprf_key(credential_identifier))
    )

    masking_nonce = random_bytes(rng, suite.Nn)
    masked_response = envelope_codec.mask_response(
        suite, upload.masking_key, masking_nonce,
        server_setup.public_key, upload.envelope,
    )
    server_nonce = random_bytes(rng, suite.Nn)
    with suite.ke_group.random_private_key(rng) as ephemeral_sk:
        server_keyshare = suite.ke_group.public_key(ephemeral_sk)
        client_identity, server_identity = _identities(
            params, upload.client_public_key, server_setup.public_key
        )
        transcript = ake.preamble(
            params.context,
            client_identity,
            request.serialize(),
            server_identity,
            evaluated_message + masking_nonce + masked_response,
            server_nonce,
            server_keyshare,
        )
        ikm = ake.server_ikm(
            suite, ephemeral_sk, server_setup.private_key,
            upload.client_public_key, client_keyshare,
        )
    keys = ake.derive_keys(suite, ikm, transcript)
    server_mac = ake.server_mac(suite, keys, transcript)
    expected_client_mac = ake.client_mac(suite, keys, transcript, server_mac)

    response = CredentialResponse(
        suite,
        evaluated_message,
        masking_nonce,
        masked_response,
        server_nonce,
        server_keyshare,
        server_mac,
    )
    state = ServerLoginState(suite, SecretBytes(expected_client_mac), keys.session_key)
    keys.km2.wipe()
    keys.km3.wipe()
    logger.debug("Credential response created")
    return response, state


def client_finish(state, response, params=None):
    """
    Recover credentials and complete the key exchange.

    Args:
        state: ClientLoginState from client_start
        response: CredentialResponse
        params: optional LoginParameters, matching the server's

    Returns:
        ClientLoginResult, which unpacks as (finalization, session_key, export_key)

    Raises:
        EnvelopeAuthenticationFailure on a wrong password or tampered response
        ServerAuthenticationFailure if the server MAC does not verify
        ReflectedValueError, DeserializationError, InvalidState
    """
    expect_state(state, ClientLoginState)
    if not isinstance(response, CredentialResponse):
        raise InvalidState("response must be a CredentialResponse")
    state.consume(response.suite)
    suite = state.suite
    params = params or LoginParameters()
    try:
        oprf.check_not_reflected(suite, state.blinded_message, response.evaluated_message)
        evaluated = suite.oprf_group.deserialize_element(
            response.evaluated_message, "evaluated message"
        )
        oprf_output = oprf.finalize(suite, state.password, state.blind, evaluated)
        with oprf.randomize_password(suite, oprf_output) as randomized_pwd:
            masking_key = envelope_codec.derive_masking_key(suite, randomized_pwd)
            server_public_key, sealed = envelope_codec.unmask_response(
                suite, masking_key, response.masking_nonce, response.masked_response
            )
            with envelope_codec.open_envelope(
                suite, randomized_pwd, sealed, server_public_key, params.identifiers
            ) as client_sk:
                client_public_key = suite.ke_group.public_key(client_sk)
                suite.ke_group.validate_public_key(server_public_key, "server public key")
                ikm = ake.client_ikm(
                    suite, state.ephemeral_private_key, client_sk,
                    server_public_key, response.server_keyshare,
                )
            export_key = envelope_codec.derive_export_key(
                suite, randomized_pwd, sealed.nonce
            )

        client_identity, server_identity = _identities(
            params, client_public_key, server_public_key
        )
        transcript = ake.preamble(
            params.context,
            client_identity,
            state.ke1,
            server_identity,
            response.credential_part(),
            response.server_nonce,
            response.server_keyshare,
        )
        keys = ake.derive_keys(suite, ikm, transcript)
        try:
            ake.verify_server_mac(suite, keys, transcript, response.server_mac)
            client_mac = ake.client_mac(suite, keys, transcript, response.server_mac)
            session_key = bytes(keys.session_key)
        finally:
            for secret in keys:
                secret.wipe()
    finally:
        state.zeroize()
    logger.debug("Credential finalization created")
    return ClientLoginResult(
        message=CredentialFinalization(suite, client_mac),
        session_key=session_key,
        export_key=export_key,
        server_public_key=server_public_key,
    )


def server_finish(state, finalization):
    """
    Verify the client MAC and release the session key.

    Args:
        state: ServerLoginState from server_start
        finalization: CredentialFinalization

    Returns:
        session key bytes

    Raises:
        ClientAuthenticationFailure, InvalidState
    """
    expect_state(state, ServerLoginState)
    if not isinstance(finalization, CredentialFinalization):
        raise InvalidState("finalization must be a CredentialFinalization")
    state.consume(finalization.suite)
    try:
        ake.verify_client_mac(state.expected_client_mac, finalization.client_mac)
        session_key = bytes(state.session_key)
    finally:
        state.zeroize()
    logger.debug("Login completed")
    return session_key


class ClientLogin:
    """Object interface over client_start / client_finish"""

    @staticmethod
    def start(password, rng=os.urandom, suite=DEFAULT_SUITE):
        return client_start(password, rng, suite)

    @staticmethod
    def finish(state, response, params=None):
        return client_finish(state, response, params)


class ServerLogin:
    """Object interface over server_start / server_finish"""

    @staticmethod
    def start(request, record, credential_identifier, server_setup,
              rng=os.urandom, params=None):
        return server_start(request, record, credential_identifier, server_setup, rng, params)

    @staticmethod
    def finish(state, finalization):
        return server_finish(state, finalization)
