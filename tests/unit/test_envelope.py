"""
Unit Tests for credential envelopes and response masking
"""

import pytest

from opaque_engine.core import envelope
from opaque_engine.core.envelope import Envelope, Identifiers
from opaque_engine.core.errors import EnvelopeAuthenticationFailure, InvalidMessageLength
from opaque_engine.core.secret import SecretBytes


@pytest.fixture
def material(suite, rng):
    """Randomized password, client key, server key and nonce."""
    ke = suite.ke_group
    return {
        "rp": SecretBytes(rng(suite.Nh)),
        "client_sk": ke.random_private_key(rng),
        "server_pk": ke.public_key(ke.random_private_key(rng)),
        "nonce": rng(suite.Nn),
    }


def seal(suite, m, identifiers=None):
    return envelope.seal(
        suite, m["rp"], m["client_sk"], m["server_pk"], m["nonce"], identifiers
    )


class TestEnvelope:

    def test_seal_open(self, suite, material):
        sealed = seal(suite, material)
        assert len(sealed.serialize(suite)) == suite.Ne
        with envelope.open_envelope(suite, material["rp"], sealed, material["server_pk"]) as sk:
            assert bytes(sk) == bytes(material["client_sk"])

    def test_seal_deterministic(self, suite, material):
        assert seal(suite, material) == seal(suite, material)

    def test_private_key_not_in_clear(self, suite, material):
        sealed = seal(suite, material)
        assert sealed.encrypted_private_key != bytes(material["client_sk"])

    def test_wrong_randomized_password(self, suite, material, rng):
        sealed = seal(suite, material)
        with pytest.raises(EnvelopeAuthenticationFailure):
            envelope.open_envelope(suite, SecretBytes(rng(suite.Nh)), sealed, material["server_pk"])

    def test_wrong_server_key(self, suite, material):
        sealed = seal(suite, material)
        other = bytes(b ^ 1 for b in material["server_pk"])
        with pytest.raises(EnvelopeAuthenticationFailure):
            envelope.open_envelope(suite, material["rp"], sealed, other)

    def test_identities_bound(self, suite, material):
        ids = Identifiers(client=b"alice", server=b"example.com")
        sealed = seal(suite, material, ids)
        envelope.open_envelope(suite, material["rp"], sealed, material["server_pk"], ids)
        with pytest.raises(EnvelopeAuthenticationFailure):
            envelope.open_envelope(suite, material["rp"], sealed, material["server_pk"])
        with pytest.raises(EnvelopeAuthenticationFailure):
            envelope.open_envelope(
                suite, material["rp"], sealed, material["server_pk"],
                Identifiers(client=b"mallory", server=b"example.com"),
            )

    def test_tampered_ciphertext(self, suite, material):
        sealed = seal(suite, material)
        ct = bytearray(sealed.encrypted_private_key)
        ct[0] ^= 0x01
        tampered = Envelope(sealed.nonce, bytes(ct), sealed.auth_tag)
        with pytest.raises(EnvelopeAuthenticationFailure):
            envelope.open_envelope(suite, material["rp"], tampered, material["server_pk"])

    def test_bad_nonce_length(self, suite, material):
        material["nonce"] = bytes(suite.Nn - 1)
        with pytest.raises(InvalidMessageLength):
            seal(suite, material)

    def test_deserialize_length(self, suite, material):
        data = seal(suite, material).serialize(suite)
        assert Envelope.deserialize(data, suite) == seal(suite, material)
        with pytest.raises(InvalidMessageLength):
            Envelope.deserialize(data[:-1], suite)


class TestDerivedKeys:

    def test_export_key_depends_on_nonce(self, suite, material):
        a = envelope.derive_export_key(suite, material["rp"], bytes(32))
        b = envelope.derive_export_key(suite, material["rp"], b"\x01" * 32)
        assert len(a) == suite.Nh
        assert a != b

    def test_keys_separated(self, suite, material):
        masking = envelope.derive_masking_key(suite, material["rp"])
        export = envelope.derive_export_key(suite, material["rp"], material["nonce"])
        assert masking != export


class TestMasking:

    def test_mask_unmask(self, suite, material, rng):
        sealed = seal(suite, material)
        masking_key = envelope.derive_masking_key(suite, material["rp"])
        nonce = rng(suite.Nn)
        masked = envelope.mask_response(suite, masking_key, nonce, material["server_pk"], sealed)
        assert len(masked) == suite.Npk + suite.Ne
        server_pk, recovered = envelope.unmask_response(suite, masking_key, nonce, masked)
        assert server_pk == material["server_pk"]
        assert recovered == sealed

    def test_fresh_nonce_changes_mask(self, suite, material, rng):
        sealed = seal(suite, material)
        masking_key = envelope.derive_masking_key(suite, material["rp"])
        a = envelope.mask_response(suite, masking_key, rng(32), material["server_pk"], sealed)
        b = envelope.mask_response(suite, masking_key, rng(32), material["server_pk"], sealed)
        assert a != b

    def test_unmask_length(self, suite):
        with pytest.raises(InvalidMessageLength):
            envelope.unmask_response(suite, bytes(32), bytes(32), bytes(10))
