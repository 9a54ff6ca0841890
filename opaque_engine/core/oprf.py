"""
Oblivious pseudorandom function over a prime-order group.

The client maps its password into the group and blinds it with a random
scalar; the server multiplies by its per-credential key; the client removes
the blind and hashes the result together with the password.
"""

import logging

from . import crypto
from .errors import ReflectedValueError
from .secret import SecretBytes

logger = logging.getLogger(__name__)

HASH_TO_GROUP_DST = b"OPAQUE-HashToGroup-"
DERIVE_KEY_INFO = b"OPAQUE-DeriveKeyPair"
FINALIZE_LABEL = b"Finalize"


def _dst(suite):
    return HASH_TO_GROUP_DST + suite.identifier


def blind(suite, password, rng):
    """
    Blind a password.

    Args:
        suite: CipherSuite
        password: password bytes
        rng: random source

    Returns:
        (blind, blinded_element): blind as SecretBytes, element as a group element
    """
    group = suite.oprf_group
    point = group.hash_to_group(crypto.to_bytes(password), _dst(suite))
    r = group.random_scalar(rng)
    blinded = group.scalar_mult(point, r)
    return SecretBytes.from_int(r, group.scalar_length), blinded


def evaluate(suite, blinded_element, oprf_key):
    """Server-side evaluation: blinded_element * oprf_key"""
    return suite.oprf_group.scalar_mult(blinded_element, oprf_key)


def finalize(suite, password, blind_scalar, evaluated_element):
    """
    Unblind the evaluation and hash it with the password.

    Args:
        suite: CipherSuite
        password: password bytes
        blind_scalar: SecretBytes holding the blind
        evaluated_element: group element returned by the server

    Returns:
        Nh-byte OPRF output
    """
    group = suite.oprf_group
    inverse = group.invert_scalar(blind_scalar.to_int())
    unblinded = group.serialize_element(group.scalar_mult(evaluated_element, inverse))
    password = crypto.to_bytes(password)
    return suite.hash(
        crypto.encode_vector(password),
        crypto.encode_vector(unblinded),
        FINALIZE_LABEL,
    )


def check_not_reflected(suite, blinded_message, evaluated_message):
    """Reject a server that echoed the blinded element as its evaluation"""
    if crypto.constant_time_equal(blinded_message, evaluated_message):
        logger.debug("Server reflected the blinded element")
        raise ReflectedValueError("Evaluated element equals blinded element")


def derive_oprf_key(suite, oprf_seed, credential_identifier):
    """
    Per-credential OPRF key derived from the server-wide seed.

    Args:
        suite: CipherSuite
        oprf_seed: server OPRF seed (Nh bytes)
        credential_identifier: account identifier bytes

    Returns:
        Non-zero scalar
    """
    seed = suite.expand(
        bytes(oprf_seed), crypto.to_bytes(credential_identifier) + b"OprfKey", suite.Nok
    )
    return suite.oprf_group.derive_scalar(suite.hash_name, seed, DERIVE_KEY_INFO)


def randomize_password(suite, oprf_output):
    """Extract(oprf_output || KSF(oprf_output)) -> randomized password"""
    stretched = suite.ksf.stretch(oprf_output)
    return SecretBytes(suite.extract(b"", oprf_output + stretched))
