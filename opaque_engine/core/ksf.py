"""
Key-stretching functions applied to the OPRF output before key derivation.

The identity function is the default. Scrypt and Argon2id make every
password guess against a stolen record cost memory and time on top of the
online OPRF query.
"""

from dataclasses import dataclass

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.kdf.argon2 import Argon2id
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from .errors import KeyStretchingError

# Inputs are OPRF outputs, unique per password and server; the salt is fixed.
KSF_SALT = bytes(16)


class KeyStretchingFunction:
    """Base interface: stretch(data) returns the same number of bytes"""

    name = None

    def stretch(self, data):
        raise NotImplementedError

    def params(self):
        return {}


@dataclass(frozen=True)
class IdentityKsf(KeyStretchingFunction):
    """Pass-through stretching"""

    name = "identity"

    def stretch(self, data):
        return bytes(data)


@dataclass(frozen=True)
class ScryptKsf(KeyStretchingFunction):
    """
    scrypt from cryptography.

    Attributes:
        n: CPU/memory cost, a power of two
        r: block size
        p: parallelization
    """

    n: int = 2 ** 15
    r: int = 8
    p: int = 1

    name = "scrypt"

    def __post_init__(self):
        if self.n < 2 or self.n & (self.n - 1):
            raise KeyStretchingError("scrypt n must be a power of two greater than 1")

    def stretch(self, data):
        try:
            return Scrypt(
                salt=KSF_SALT, length=len(data), n=self.n, r=self.r, p=self.p
            ).derive(bytes(data))
        except (ValueError, MemoryError) as e:
            raise KeyStretchingError(f"scrypt failed: {e}") from e

    def params(self):
        return {"n": self.n, "r": self.r, "p": self.p}


@dataclass(frozen=True)
class Argon2idKsf(KeyStretchingFunction):
    """
    Argon2id from cryptography.

    Attributes:
        memory_cost: memory in KiB
        time_cost: number of passes
        lanes: degree of parallelism
    """

    memory_cost: int = 64 * 1024
    time_cost: int = 3
    lanes: int = 4

    name = "argon2id"

    def __post_init__(self):
        if self.memory_cost < 8 * self.lanes:
            raise KeyStretchingError("argon2id memory_cost must be at least 8 * lanes KiB")
        if self.time_cost < 1 or self.lanes < 1:
            raise KeyStretchingError("argon2id time_cost and lanes must be positive")

    def stretch(self, data):
        try:
            return Argon2id(
                salt=KSF_SALT,
                length=len(data),
                iterations=self.time_cost,
                lanes=self.lanes,
                memory_cost=self.memory_cost,
            ).derive(bytes(data))
        except (ValueError, MemoryError, UnsupportedAlgorithm) as e:
            raise KeyStretchingError(f"argon2id failed: {e}") from e

    def params(self):
        return {
            "memory_cost": self.memory_cost,
            "time_cost": self.time_cost,
            "lanes": self.lanes,
        }


KSF_TYPES = {
    IdentityKsf.name: IdentityKsf,
    ScryptKsf.name: ScryptKsf,
    Argon2idKsf.name: Argon2idKsf,
}


def ksf_from_name(name, **params):
    """
    Build a key-stretching function from its name and parameters.

    Args:
        name: "identity", "scrypt" or "argon2id"
        **params: constructor parameters, None values are ignored

    Returns:
        KeyStretchingFunction instance
    """
    try:
        cls = KSF_TYPES[name]
    except KeyError:
        raise KeyStretchingError(f"Unknown key-stretching function: {name}") from None
    params = {k: v for k, v in params.items() if v is not None}
    try:
        return cls(**params)
    except TypeError as e:
        raise KeyStretchingError(f"Bad parameters for {name}: {e}") from e
