"""
Long-term server secrets: the OPRF seed and the static AKE keypair.
"""

import logging
import struct

from .core import oprf
from .core.ciphersuite import DEFAULT_SUITE
from .core.crypto import random_bytes, to_bytes
from .core.envelope import Envelope
from .core.errors import InvalidMessageLength
from .core.messages import RegistrationUpload
from .core.secret import SecretBytes

logger = logging.getLogger(__name__)


class ServerSetup:
    """
    Server-wide secret material, shared read-only by all sessions.

    Attributes:
        suite: CipherSuite
        public_key: static AKE public key bytes
    """

    def __init__(self, suite, oprf_seed, private_key):
        if len(oprf_seed) != suite.Nh:
            raise InvalidMessageLength("oprf seed", suite.Nh, len(oprf_seed))
        self.suite = suite
        self._oprf_seed = SecretBytes(oprf_seed)
        self._private_key = SecretBytes(private_key)
        self.public_key = suite.ke_group.public_key(self._private_key)
        with suite.ke_group.derive_private_key(
            suite.hash_name,
            suite.expand(bytes(self._oprf_seed), b"DummyPrivateKey", suite.Nseed),
        ) as dummy_sk:
            self._dummy_public_key = suite.ke_group.public_key(dummy_sk)

    @classmethod
    def generate(cls, suite=DEFAULT_SUITE, rng=None):
        """
        Create fresh server secrets.

        Args:
            suite: CipherSuite
            rng: random source, os.urandom if None

        Returns:
            ServerSetup
        """
        oprf_seed = random_bytes(rng, suite.Nh)
        private_key = suite.ke_group.random_private_key(rng)
        logger.debug("Generated server setup for suite %s", suite.name)
        return cls(suite, oprf_seed, bytes(private_key))

    @property
    def private_key(self):
        return self._private_key

    @staticmethod
    def length(suite):
        return suite.Nh + suite.Nsk

    def serialize(self):
        """Format: [Nh oprf_seed][Nsk private_key]"""
        return struct.pack(
            f"!{self.suite.Nh}s{self.suite.Nsk}s",
            bytes(self._oprf_seed),
            bytes(self._private_key),
        )

    @classmethod
    def deserialize(cls, data, suite=DEFAULT_SUITE):
        data = bytes(data)
        expected = cls.length(suite)
        if len(data) != expected:
            raise InvalidMessageLength("ServerSetup", expected, len(data))
        oprf_seed, private_key = struct.unpack(f"!{suite.Nh}s{suite.Nsk}s", data)
        return cls(suite, oprf_seed, private_key)

    def oprf_key(self, credential_identifier):
        return oprf.derive_oprf_key(
            self.suite, self._oprf_seed, credential_identifier
        )

    def derive_dummy_record(self, credential_identifier):
        """
        Deterministic stand-in record for an unknown credential identifier.

        The client public key is fixed per ServerSetup and computed once at
        construction. Only the masking key and envelope depend on the
        identifier, so this path does no group operation.

        Returns:
            RegistrationUpload
        """
        suite = self.suite
        seed = bytes(self._oprf_seed)
        ident = to_bytes(credential_identifier)
        masking_key = suite.expand(seed, ident + b"DummyMaskingKey", suite.Nh)
        envelope = Envelope.deserialize(
            suite.expand(seed, ident + b"DummyEnvelope", suite.Ne), suite
        )
        return RegistrationUpload(suite, self._dummy_public_key, masking_key, envelope)

    def zeroize(self):
        self._oprf_seed.wipe()
        self._private_key.wipe()

    def __repr__(self):
        return f"ServerSetup(suite={self.suite.name}, public_key={self.public_key.hex()})"
