"""
Triple Diffie-Hellman authenticated key exchange.

Both sides combine three DH values (ephemeral/ephemeral, client ephemeral /
server static, client static / server ephemeral) with a hash of the full
message transcript. The server MAC authenticates the server to the client,
the client MAC confirms the session key to the server.
"""

import logging
from collections import namedtuple

from . import crypto
from .ciphersuite import PROTOCOL_VERSION
from .errors import ClientAuthenticationFailure, ServerAuthenticationFailure
from .secret import SecretBytes

logger = logging.getLogger(__name__)

AkeKeys = namedtuple("AkeKeys", ["km2", "km3", "session_key"])


def preamble(context, client_identity, ke1, server_identity,
             credential_response, server_nonce, server_keyshare):
    """
    Transcript preamble.

    Format:
        "OPAQUEv1-" || [2B len][context] || [2B len][client_identity] || ke1
        || [2B len][server_identity] || credential_response
        || server_nonce || server_keyshare
    """
    return b"".join([
        PROTOCOL_VERSION,
        crypto.encode_vector(context),
        crypto.encode_vector(client_identity),
        ke1,
        crypto.encode_vector(server_identity),
        credential_response,
        server_nonce,
        server_keyshare,
    ])


def derive_keys(suite, ikm, transcript):
    """
    Derive MAC keys and the session key.

    Args:
        suite: CipherSuite
        ikm: dh1 || dh2 || dh3
        transcript: preamble bytes

    Returns:
        AkeKeys(km2, km3, session_key) with every value held in SecretBytes
    """
    prk = suite.extract(b"", ikm)
    transcript_hash = suite.hash(transcript)
    handshake_secret = suite.expand_label(prk, b"HandshakeSecret", transcript_hash, suite.Nx)
    session_key = suite.expand_label(prk, b"SessionKey", transcript_hash, suite.Nx)
    km2 = suite.expand_label(handshake_secret, b"ServerMAC", b"", suite.Nx)
    km3 = suite.expand_label(handshake_secret, b"ClientMAC", b"", suite.Nx)
    return AkeKeys(SecretBytes(km2), SecretBytes(km3), SecretBytes(session_key))


def server_mac(suite, keys, transcript):
    return suite.mac(bytes(keys.km2), suite.hash(transcript))


def client_mac(suite, keys, transcript, server_mac_value):
    return suite.mac(bytes(keys.km3), suite.hash(transcript, server_mac_value))


def client_ikm(suite, client_ephemeral_sk, client_static_sk,
               server_static_pk, server_ephemeral_pk):
    ke = suite.ke_group
    return b"".join([
        ke.diffie_hellman(client_ephemeral_sk, server_ephemeral_pk),
        ke.diffie_hellman(client_ephemeral_sk, server_static_pk),
        ke.diffie_hellman(client_static_sk, server_ephemeral_pk),
    ])


def server_ikm(suite, server_ephemeral_sk, server_static_sk,
               client_static_pk, client_ephemeral_pk):
    ke = suite.ke_group
    return b"".join([
        ke.diffie_hellman(server_ephemeral_sk, client_ephemeral_pk),
        ke.diffie_hellman(server_static_sk, client_ephemeral_pk),
        ke.diffie_hellman(server_ephemeral_sk, client_static_pk),
    ])


def verify_server_mac(suite, keys, transcript, received):
    """
    Check the server MAC on the client side.

    Raises:
        ServerAuthenticationFailure on mismatch
    """
    expected = server_mac(suite, keys, transcript)
    if not crypto.constant_time_equal(expected, received):
        logger.debug("Server MAC verification failed")
        raise ServerAuthenticationFailure("Server authentication failed")


def verify_client_mac(expected, received):
    """
    Check the client MAC on the server side.

    Raises:
        ClientAuthenticationFailure on mismatch
    """
    if not crypto.constant_time_equal(expected, received):
        logger.debug("Client MAC verification failed")
        raise ClientAuthenticationFailure("Client authentication failed")
