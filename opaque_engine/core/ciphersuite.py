"""
Ciphersuite configuration: OPRF group, key-exchange group, hash and KSF.
All wire sizes derive from the suite.
"""

from dataclasses import dataclass, field, replace

from . import crypto
from .groups import ED25519, ED25519_KE, I2048_GROUP, I2048_KE, X25519
from .ksf import IdentityKsf

NONCE_LENGTH = 32
SEED_LENGTH = 32
PROTOCOL_VERSION = b"OPAQUEv1-"


@dataclass(frozen=True)
class CipherSuite:
    """
    Primitive selection for one deployment.

    Attributes:
        name: registry name
        oprf_group: PrimeOrderGroup used for the OPRF
        ke_group: KeyExchangeGroup used for triple-DH
        hash_name: "sha256" or "sha512"
        ksf: KeyStretchingFunction applied to the OPRF output
    """

    name: str
    oprf_group: object = field(compare=False)
    ke_group: object = field(compare=False)
    hash_name: str = "sha256"
    ksf: object = field(default_factory=IdentityKsf)

    @property
    def Nh(self):
        return crypto.hash_algorithm(self.hash_name).digest_size

    @property
    def Nm(self):
        return self.Nh

    @property
    def Nx(self):
        return self.Nh

    @property
    def Nn(self):
        return NONCE_LENGTH

    @property
    def Nseed(self):
        return SEED_LENGTH

    @property
    def Noe(self):
        return self.oprf_group.element_length

    @property
    def Nok(self):
        return self.oprf_group.scalar_length

    @property
    def Npk(self):
        return self.ke_group.public_key_length

    @property
    def Nsk(self):
        return self.ke_group.private_key_length

    @property
    def Ne(self):
        return self.Nn + self.Nsk + self.Nm

    @property
    def identifier(self):
        return self.name.encode("ascii")

    def with_ksf(self, ksf):
        return replace(self, ksf=ksf)

    def hash(self, *parts):
        return crypto.digest(self.hash_name, *parts)

    def mac(self, key, *parts):
        return crypto.mac(self.hash_name, key, *parts)

    def extract(self, salt, ikm):
        return crypto.extract(self.hash_name, salt, ikm)

    def expand(self, prk, info, length):
        return crypto.expand(self.hash_name, prk, info, length)

    def expand_label(self, secret, label, context, length):
        return crypto.expand_label(self.hash_name, secret, label, context, length)


ED25519_X25519_SHA256 = CipherSuite(
    name="ed25519-x25519-sha256",
    oprf_group=ED25519,
    ke_group=X25519,
    hash_name="sha256",
)

ED25519_SHA512 = CipherSuite(
    name="ed25519-sha512",
    oprf_group=ED25519,
    ke_group=ED25519_KE,
    hash_name="sha512",
)

I2048_SHA256 = CipherSuite(
    name="i2048-sha256",
    oprf_group=I2048_GROUP,
    ke_group=I2048_KE,
    hash_name="sha256",
)

SUITES = {
    suite.name: suite
    for suite in (ED25519_X25519_SHA256, ED25519_SHA512, I2048_SHA256)
}

DEFAULT_SUITE = ED25519_X25519_SHA256


def get_suite(name, ksf=None):
    """
    Look up a registered ciphersuite.

    Args:
        name: suite name, see SUITES
        ksf: optional KeyStretchingFunction replacing the default

    Returns:
        CipherSuite

    Raises:
        KeyError for unknown names
    """
    suite = SUITES[name]
    if ksf is not None:
        suite = suite.with_ksf(ksf)
    return suite
