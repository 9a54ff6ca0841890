"""
Credential envelope: the client private key sealed under the randomized
password, with the server public key and optional identities bound into the
authentication tag.
"""

import logging
import struct
from dataclasses import dataclass

from . import crypto
from .errors import EnvelopeAuthenticationFailure, InvalidMessageLength
from .secret import SecretBytes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identifiers:
    """Optional explicit identities; None falls back to the public keys"""

    client: bytes = None
    server: bytes = None


@dataclass(frozen=True)
class Envelope:
    """Format: [Nn nonce][Nsk encrypted private key][Nm auth tag]"""

    nonce: bytes
    encrypted_private_key: bytes
    auth_tag: bytes

    @staticmethod
    def length(suite):
        return suite.Ne

    @staticmethod
    def _format(suite):
        return f"!{suite.Nn}s{suite.Nsk}s{suite.Nm}s"

    def serialize(self, suite):
        return struct.pack(
            self._format(suite), self.nonce, self.encrypted_private_key, self.auth_tag
        )

    @classmethod
    def deserialize(cls, data, suite):
        data = bytes(data)
        if len(data) != suite.Ne:
            raise InvalidMessageLength("Envelope", suite.Ne, len(data))
        return cls(*struct.unpack(cls._format(suite), data))


def _cleartext_credentials(server_public_key, identifiers):
    identifiers = identifiers or Identifiers()
    return (
        bytes(server_public_key)
        + crypto.encode_vector(identifiers.server or b"")
        + crypto.encode_vector(identifiers.client or b"")
    )


def _keys(suite, randomized_pwd, nonce):
    rp = bytes(randomized_pwd)
    auth_key = suite.expand(rp, nonce + b"AuthKey", suite.Nh)
    pad = suite.expand(rp, nonce + b"PrivateKeyPad", suite.Nsk)
    return auth_key, pad


def seal(suite, randomized_pwd, client_private_key, server_public_key, nonce,
         identifiers=None):
    """
    Seal the client private key.

    Args:
        suite: CipherSuite
        randomized_pwd: SecretBytes from oprf.randomize_password
        client_private_key: SecretBytes or bytes (Nsk)
        server_public_key: server static public key bytes (Npk)
        nonce: Nn-byte envelope nonce
        identifiers: optional Identifiers bound into the tag

    Returns:
        Envelope
    """
    if len(nonce) != suite.Nn:
        raise InvalidMessageLength("envelope nonce", suite.Nn, len(nonce))
    auth_key, pad = _keys(suite, randomized_pwd, nonce)
    ciphertext = crypto.xor(bytes(client_private_key), pad)
    tag = suite.mac(
        auth_key, nonce, ciphertext,
        _cleartext_credentials(server_public_key, identifiers),
    )
    return Envelope(nonce=nonce, encrypted_private_key=ciphertext, auth_tag=tag)


def open_envelope(suite, randomized_pwd, envelope, server_public_key,
                  identifiers=None):
    """
    Open an envelope and recover the client private key.

    Returns:
        SecretBytes holding the client private key

    Raises:
        EnvelopeAuthenticationFailure on any tag mismatch
    """
    auth_key, pad = _keys(suite, randomized_pwd, envelope.nonce)
    expected = suite.mac(
        auth_key, envelope.nonce, envelope.encrypted_private_key,
        _cleartext_credentials(server_public_key, identifiers),
    )
    if not crypto.constant_time_equal(expected, envelope.auth_tag):
        logger.debug("Envelope authentication failed")
        raise EnvelopeAuthenticationFailure("Envelope could not be opened")
    return SecretBytes(crypto.xor(envelope.encrypted_private_key, pad))


def derive_masking_key(suite, randomized_pwd):
    return suite.expand(bytes(randomized_pwd), b"MaskingKey", suite.Nh)


def derive_export_key(suite, randomized_pwd, nonce):
    return suite.expand(bytes(randomized_pwd), nonce + b"ExportKey", suite.Nh)


def _response_pad(suite, masking_key, masking_nonce):
    return suite.expand(
        bytes(masking_key), masking_nonce + b"CredentialResponsePad",
        suite.Npk + suite.Ne,
    )


def mask_response(suite, masking_key, masking_nonce, server_public_key, envelope):
    """XOR (server_public_key || envelope) with a pad keyed by the masking key"""
    plaintext = bytes(server_public_key) + envelope.serialize(suite)
    return crypto.xor(plaintext, _response_pad(suite, masking_key, masking_nonce))


def unmask_response(suite, masking_key, masking_nonce, masked_response):
    """
    Remove the credential response mask.

    Returns:
        (server_public_key bytes, Envelope); with a wrong masking key both are
        pseudorandom and the envelope will not open
    """
    if len(masked_response) != suite.Npk + suite.Ne:
        raise InvalidMessageLength(
            "masked response", suite.Npk + suite.Ne, len(masked_response)
        )
    plaintext = crypto.xor(
        masked_response, _response_pad(suite, masking_key, masking_nonce)
    )
    return (
        plaintext[:suite.Npk],
        Envelope.deserialize(plaintext[suite.Npk:], suite),
    )
