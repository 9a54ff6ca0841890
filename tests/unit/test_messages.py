"""
Unit Tests for the fixed-length message codec
"""

import pytest

from opaque_engine.core.errors import DeserializationError, InvalidMessageLength
from opaque_engine.core.messages import (
    MESSAGE_TYPES,
    CredentialFinalization,
    CredentialRequest,
    CredentialResponse,
    RegistrationRequest,
    RegistrationResponse,
    RegistrationUpload,
)

from conftest import PASSWORD, USER, DeterministicRng, register_user
from opaque_engine import login, registration

EXPECTED_LENGTHS = {
    RegistrationRequest: 32,
    RegistrationResponse: 64,
    RegistrationUpload: 32 + 32 + 96,
    CredentialRequest: 32 + 32 + 32,
    CredentialResponse: 32 + 32 + (32 + 96) + 32 + 32 + 32,
    CredentialFinalization: 32,
}


@pytest.fixture
def messages(server_setup):
    """One real instance of every message type."""
    rng = DeterministicRng(b"messages")
    request, state = registration.client_start(PASSWORD, rng, server_setup.suite)
    response = registration.server_start(request, USER, server_setup)
    upload, _ = registration.client_finish(state, PASSWORD, response, rng)
    record = registration.server_finish(upload)

    ke1, client_state = login.client_start(PASSWORD, rng, server_setup.suite)
    ke2, _ = login.server_start(ke1, record, USER, server_setup, rng)
    ke3, _, _ = login.client_finish(client_state, ke2)
    return [request, response, upload, ke1, ke2, ke3]


class TestMessageLengths:

    @pytest.mark.parametrize("cls", MESSAGE_TYPES, ids=lambda c: c.__name__)
    def test_default_suite_lengths(self, cls, suite):
        assert cls.length(suite) == EXPECTED_LENGTHS[cls]

    def test_serialized_lengths(self, messages, suite):
        for message in messages:
            assert len(message.serialize()) == type(message).length(suite)

    def test_roundtrip(self, messages, suite):
        for message in messages:
            data = message.serialize()
            decoded = type(message).deserialize(data, suite)
            assert decoded == message
            assert decoded.serialize() == data

    def test_truncated_and_extended(self, messages, suite):
        for message in messages:
            data = message.serialize()
            with pytest.raises(InvalidMessageLength):
                type(message).deserialize(data[:-1], suite)
            with pytest.raises(InvalidMessageLength):
                type(message).deserialize(data + b"\x00", suite)
            with pytest.raises(InvalidMessageLength):
                type(message).deserialize(b"", suite)

    def test_length_error_details(self, suite):
        with pytest.raises(InvalidMessageLength) as excinfo:
            CredentialFinalization.deserialize(bytes(31), suite)
        assert excinfo.value.expected == 32
        assert excinfo.value.actual == 31
        assert isinstance(excinfo.value, ValueError)

    def test_serialize_checks_fields(self, suite):
        with pytest.raises(InvalidMessageLength):
            CredentialFinalization(suite, bytes(31)).serialize()


class TestMessageValidation:

    def test_identity_blinded_message(self, suite):
        identity = suite.oprf_group.serialize_element(suite.oprf_group.identity)
        with pytest.raises(DeserializationError):
            RegistrationRequest.deserialize(identity, suite)

    def test_invalid_evaluated_message(self, messages, suite):
        response = messages[1]
        data = bytes(32) + response.server_public_key
        with pytest.raises(DeserializationError):
            RegistrationResponse.deserialize(data, suite)

    def test_upload_keeps_envelope(self, messages, suite):
        upload = messages[2]
        decoded = RegistrationUpload.deserialize(upload.serialize(), suite)
        assert decoded.envelope == upload.envelope

    def test_credential_part(self, messages):
        response = messages[4]
        assert isinstance(response, CredentialResponse)
        assert response.serialize().startswith(response.credential_part())


def test_register_user_helper_shape(server_setup):
    record, export_key = register_user(server_setup, PASSWORD, USER)
    assert len(record.serialize()) == RegistrationUpload.length(server_setup.suite)
    assert len(export_key) == server_setup.suite.Nh
