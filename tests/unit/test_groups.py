"""
Unit Tests for the OPRF and key-exchange groups
"""

import pytest

from opaque_engine.core.errors import (
    DeserializationError,
    InvalidMessageLength,
    RandomnessFailure,
)
from opaque_engine.core.groups import (
    ED25519,
    ED25519_KE,
    I2048_GROUP,
    I2048_KE,
    X25519,
)

DST = b"test-dst"


@pytest.fixture(params=[ED25519, I2048_GROUP], ids=lambda g: g.name)
def group(request):
    return request.param


@pytest.fixture(params=[X25519, ED25519_KE, I2048_KE], ids=lambda g: g.name)
def ke_group(request):
    return request.param


class TestPrimeOrderGroup:

    def test_sizes(self):
        assert ED25519.element_length == 32
        assert ED25519.scalar_length == 32
        assert I2048_GROUP.element_length == 256
        assert I2048_GROUP.scalar_length == (I2048_GROUP.order.bit_length() + 7) // 8

    def test_hash_to_group_deterministic(self, group):
        a = group.hash_to_group(b"password", DST)
        b = group.hash_to_group(b"password", DST)
        c = group.hash_to_group(b"passwore", DST)
        d = group.hash_to_group(b"password", b"other-dst")
        assert a.to_bytes() == b.to_bytes()
        assert a.to_bytes() != c.to_bytes()
        assert a.to_bytes() != d.to_bytes()
        assert not group.is_identity(a)

    def test_random_scalar_range(self, group, rng):
        for _ in range(4):
            k = group.random_scalar(rng)
            assert 0 < k < group.order

    def test_random_scalar_gives_up_on_zero_source(self, group):
        with pytest.raises(RandomnessFailure):
            group.random_scalar(lambda n: bytes(n))

    def test_derive_scalar(self, group):
        a = group.derive_scalar("sha256", b"seed", b"info")
        assert a == group.derive_scalar("sha256", b"seed", b"info")
        assert a != group.derive_scalar("sha256", b"seed2", b"info")
        assert 0 < a < group.order

    def test_inverse_cancels(self, group, rng):
        point = group.hash_to_group(b"x", DST)
        k = group.random_scalar(rng)
        blinded = group.scalar_mult(point, k)
        unblinded = group.scalar_mult(blinded, group.invert_scalar(k))
        assert unblinded.to_bytes() == point.to_bytes()

    def test_scalar_mult_distributes(self, group, rng):
        a = group.random_scalar(rng)
        b = group.random_scalar(rng)
        lhs = group.base_mult((a + b) % group.order)
        rhs = group.add(group.base_mult(a), group.base_mult(b))
        assert lhs.to_bytes() == rhs.to_bytes()

    def test_element_roundtrip(self, group, rng):
        element = group.base_mult(group.random_scalar(rng))
        data = group.serialize_element(element)
        assert len(data) == group.element_length
        assert group.deserialize_element(data).to_bytes() == data

    def test_rejects_identity(self, group):
        with pytest.raises(DeserializationError):
            group.deserialize_element(group.serialize_element(group.identity))

    def test_rejects_wrong_length(self, group):
        with pytest.raises(InvalidMessageLength) as excinfo:
            group.deserialize_element(bytes(group.element_length - 1), "blinded")
        assert excinfo.value.expected == group.element_length
        assert excinfo.value.actual == group.element_length - 1

    def test_rejects_non_member(self, group):
        with pytest.raises(DeserializationError):
            group.deserialize_element(bytes(group.element_length))

    def test_scalar_encoding(self, group, rng):
        k = group.random_scalar(rng)
        assert group.deserialize_scalar(group.serialize_scalar(k)) == k
        with pytest.raises(DeserializationError):
            group.deserialize_scalar(bytes(group.scalar_length))
        with pytest.raises(InvalidMessageLength):
            group.deserialize_scalar(bytes(group.scalar_length + 1))


class TestKeyExchangeGroups:

    def test_diffie_hellman_agreement(self, ke_group, rng):
        a = ke_group.random_private_key(rng)
        b = ke_group.random_private_key(rng)
        pa = ke_group.public_key(a)
        pb = ke_group.public_key(b)
        assert len(pa) == ke_group.public_key_length
        assert len(a) == ke_group.private_key_length
        assert ke_group.diffie_hellman(a, pb) == ke_group.diffie_hellman(b, pa)

    def test_derive_private_key(self, ke_group):
        a = ke_group.derive_private_key("sha256", b"s" * 32)
        b = ke_group.derive_private_key("sha256", b"s" * 32)
        c = ke_group.derive_private_key("sha256", b"t" * 32)
        assert bytes(a) == bytes(b)
        assert bytes(a) != bytes(c)
        assert ke_group.public_key(a) == ke_group.public_key(b)

    def test_validate_public_key_length(self, ke_group):
        with pytest.raises(InvalidMessageLength):
            ke_group.validate_public_key(bytes(ke_group.public_key_length + 1))

    def test_x25519_rejects_low_order_peer(self, rng):
        sk = X25519.random_private_key(rng)
        with pytest.raises(DeserializationError):
            X25519.diffie_hellman(sk, bytes(32))

    def test_prime_order_rejects_identity_key(self):
        with pytest.raises(DeserializationError):
            ED25519_KE.validate_public_key(ED25519.serialize_element(ED25519.identity))
