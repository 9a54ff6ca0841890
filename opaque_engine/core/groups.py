"""
Group backends for the OPRF and the key exchange.

OPRF groups wrap the prime-order groups shipped with the spake2 library
(Ed25519 and the 2048-bit integer group). Key-exchange groups expose a
Diffie-Hellman interface over fixed-length byte strings, either X25519 from
cryptography or any prime-order group.
"""

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.x25519 import (
    X25519PrivateKey,
    X25519PublicKey,
)
from spake2.ed25519_group import Ed25519Group
from spake2.groups import I2048

from . import crypto
from .errors import (
    DeserializationError,
    InvalidMessageLength,
    OpaqueError,
    RandomnessFailure,
)
from .secret import SecretBytes

MAX_HASH_TO_GROUP_ATTEMPTS = 256
MAX_RANDOM_SCALAR_ATTEMPTS = 64


class PrimeOrderGroup:
    """
    Prime-order group arithmetic on top of a spake2 group object.

    Elements are the library's element objects; scalars are Python ints in
    [1, order). Serialization is fixed-length big-endian for scalars and the
    library's canonical encoding for elements.
    """

    def __init__(self, name, group):
        self.name = name
        self._group = group
        self.order = group.order()
        self.identity = group.Base.scalarmult(0)
        self._identity_bytes = self.identity.to_bytes()
        self.element_length = len(group.Base.to_bytes())
        self.scalar_length = (self.order.bit_length() + 7) // 8

    def __repr__(self):
        return f"PrimeOrderGroup({self.name})"

    def is_identity(self, element):
        return element.to_bytes() == self._identity_bytes

    def base_mult(self, scalar):
        return self._group.Base.scalarmult(scalar)

    def scalar_mult(self, element, scalar):
        return element.scalarmult(scalar)

    def add(self, a, b):
        return a.add(b)

    def hash_to_group(self, data, dst):
        """
        Map bytes to a group element with unknown discrete log.

        Args:
            data: input bytes (e.g. the password)
            dst: domain separation tag

        Returns:
            Non-identity group element
        """
        for counter in range(MAX_HASH_TO_GROUP_ATTEMPTS):
            seed = crypto.encode_vector(dst) + crypto.i2osp(counter, 1) + data
            element = self._group.arbitrary_element(seed)
            if not self.is_identity(element):
                return element
        raise OpaqueError("hash_to_group produced the identity element")

    def random_scalar(self, rng):
        """Uniform non-zero scalar drawn from rng"""
        draw = crypto.checked_rng(rng)
        for _ in range(MAX_RANDOM_SCALAR_ATTEMPTS):
            scalar = self._group.random_scalar(draw)
            if scalar != 0:
                return scalar
        raise RandomnessFailure("Random source produced no usable scalar")

    def derive_scalar(self, hash_name, seed, info):
        """Deterministic non-zero scalar from seed, reduced from a wide output"""
        prk = crypto.extract(hash_name, b"", seed)
        for counter in range(256):
            wide = crypto.expand(
                hash_name, prk, info + crypto.i2osp(counter, 1),
                self.scalar_length + 16,
            )
            scalar = int.from_bytes(wide, "big") % self.order
            if scalar != 0:
                return scalar
        raise OpaqueError("Could not derive a non-zero scalar")

    def invert_scalar(self, scalar):
        return pow(scalar, -1, self.order)

    def serialize_element(self, element):
        return element.to_bytes()

    def deserialize_element(self, data, name="element"):
        """
        Decode and validate a group element.

        Raises:
            InvalidMessageLength on a wrong-size input
            DeserializationError for non-members and the identity
        """
        data = bytes(data)
        if len(data) != self.element_length:
            raise InvalidMessageLength(name, self.element_length, len(data))
        try:
            element = self._group.bytes_to_element(data)
        except Exception as e:
            raise DeserializationError(f"Invalid {name}: {e}") from e
        if self.is_identity(element):
            raise DeserializationError(f"Invalid {name}: identity element")
        return element

    def serialize_scalar(self, scalar):
        return scalar.to_bytes(self.scalar_length, "big")

    def deserialize_scalar(self, data, name="scalar"):
        data = bytes(data)
        if len(data) != self.scalar_length:
            raise InvalidMessageLength(name, self.scalar_length, len(data))
        scalar = int.from_bytes(data, "big")
        if scalar == 0 or scalar >= self.order:
            raise DeserializationError(f"Invalid {name}: out of range")
        return scalar


ED25519 = PrimeOrderGroup("ed25519", Ed25519Group)
I2048_GROUP = PrimeOrderGroup("i2048", I2048)


class KeyExchangeGroup:
    """Interface of the Diffie-Hellman groups used by the triple-DH AKE"""

    name = None
    public_key_length = None
    private_key_length = None

    def random_private_key(self, rng):
        raise NotImplementedError

    def derive_private_key(self, hash_name, seed):
        raise NotImplementedError

    def public_key(self, private_key):
        raise NotImplementedError

    def diffie_hellman(self, private_key, public_key):
        raise NotImplementedError

    def validate_public_key(self, data, name="public key"):
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}({self.name})"


class X25519Group(KeyExchangeGroup):
    """X25519 Diffie-Hellman over raw 32-byte keys"""

    name = "x25519"
    public_key_length = 32
    private_key_length = 32

    def random_private_key(self, rng):
        return SecretBytes(crypto.random_bytes(rng, self.private_key_length))

    def derive_private_key(self, hash_name, seed):
        prk = crypto.extract(hash_name, b"", seed)
        return SecretBytes(crypto.expand(
            hash_name, prk, b"OPAQUE-DeriveDiffieHellmanKeyPair",
            self.private_key_length,
        ))

    def _private(self, private_key):
        data = bytes(private_key)
        if len(data) != self.private_key_length:
            raise InvalidMessageLength("private key", self.private_key_length, len(data))
        return X25519PrivateKey.from_private_bytes(data)

    def public_key(self, private_key):
        return self._private(private_key).public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )

    def validate_public_key(self, data, name="public key"):
        data = bytes(data)
        if len(data) != self.public_key_length:
            raise InvalidMessageLength(name, self.public_key_length, len(data))
        try:
            X25519PublicKey.from_public_bytes(data)
        except ValueError as e:
            raise DeserializationError(f"Invalid {name}: {e}") from e
        return data

    def diffie_hellman(self, private_key, public_key):
        """
        Perform DH exchange with a peer public key.

        Raises:
            DeserializationError for low-order peer keys (all-zero output)
        """
        peer = X25519PublicKey.from_public_bytes(self.validate_public_key(public_key))
        try:
            return self._private(private_key).exchange(peer)
        except ValueError as e:
            raise DeserializationError(f"Invalid peer public key: {e}") from e


class PrimeOrderKeGroup(KeyExchangeGroup):
    """Diffie-Hellman in a prime-order group; private keys are encoded scalars"""

    def __init__(self, group):
        self.group = group
        self.name = group.name
        self.public_key_length = group.element_length
        self.private_key_length = group.scalar_length

    def random_private_key(self, rng):
        scalar = self.group.random_scalar(rng)
        return SecretBytes.from_int(scalar, self.private_key_length)

    def derive_private_key(self, hash_name, seed):
        scalar = self.group.derive_scalar(
            hash_name, seed, b"OPAQUE-DeriveDiffieHellmanKeyPair"
        )
        return SecretBytes.from_int(scalar, self.private_key_length)

    def public_key(self, private_key):
        scalar = self.group.deserialize_scalar(bytes(private_key), "private key")
        return self.group.serialize_element(self.group.base_mult(scalar))

    def validate_public_key(self, data, name="public key"):
        self.group.deserialize_element(data, name)
        return bytes(data)

    def diffie_hellman(self, private_key, public_key):
        scalar = self.group.deserialize_scalar(bytes(private_key), "private key")
        element = self.group.deserialize_element(public_key, "peer public key")
        return self.group.serialize_element(self.group.scalar_mult(element, scalar))


X25519 = X25519Group()
ED25519_KE = PrimeOrderKeGroup(ED25519)
I2048_KE = PrimeOrderKeGroup(I2048_GROUP)
