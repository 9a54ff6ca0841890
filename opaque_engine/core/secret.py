"""
Wipe-on-release buffers for key-exchange secrets.
Python cannot pin memory, so copies made with bytes() are the caller's
responsibility; the buffer itself is always overwritten when released.
"""

from .errors import InvalidState


def secure_zero(data):
    """
    Overwrite a mutable buffer with zeros.

    Args:
        data: bytearray or memoryview to zero
    """
    if isinstance(data, (bytearray, memoryview)):
        for i in range(len(data)):
            data[i] = 0


class SecretBytes:
    """Mutable byte buffer that is zeroed on wipe(), context exit and collection"""

    __slots__ = ("_buf", "_wiped")

    def __init__(self, data=b""):
        self._buf = bytearray(data)
        self._wiped = False

    @classmethod
    def from_int(cls, value, length):
        return cls(value.to_bytes(length, "big"))

    def to_int(self):
        self._check()
        return int.from_bytes(self._buf, "big")

    def _check(self):
        if self._wiped:
            raise InvalidState("Secret buffer has already been wiped")

    @property
    def wiped(self):
        return self._wiped

    def wipe(self):
        if not self._wiped:
            secure_zero(self._buf)
            self._wiped = True

    def __bytes__(self):
        self._check()
        return bytes(self._buf)

    def __len__(self):
        return len(self._buf)

    def __eq__(self, other):
        return NotImplemented

    __hash__ = None

    def __repr__(self):
        state = "wiped" if self._wiped else f"{len(self._buf)} bytes"
        return f"SecretBytes(<{state}>)"

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.wipe()
        return False

    def __del__(self):
        self.wipe()


class SecretState:
    """
    Base class for single-use protocol states.

    A state produced by a "start" call may be handed to exactly one matching
    "finish" call. Consumption wipes every secret the state holds, and the
    state can also be abandoned explicitly with zeroize() or a with-block.
    """

    kind = "state"

    def __init__(self, suite):
        self.suite = suite
        self._consumed = False

    @property
    def consumed(self):
        return self._consumed

    def _secrets(self):
        return [v for v in vars(self).values() if isinstance(v, SecretBytes)]

    def consume(self, suite=None):
        """
        Mark the state as used by a finish operation.

        Args:
            suite: ciphersuite of the message being processed

        Raises:
            InvalidState if the state was already consumed or the suites differ
        """
        if self._consumed:
            raise InvalidState(f"{self.kind} has already been consumed")
        if suite is not None and suite != self.suite:
            raise InvalidState(
                f"{self.kind} belongs to suite {self.suite.name}, "
                f"message uses {suite.name}"
            )
        self._consumed = True

    def zeroize(self):
        self._consumed = True
        for secret in self._secrets():
            secret.wipe()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.zeroize()
        return False


def expect_state(state, cls):
    """Raise InvalidState unless state is an instance of cls"""
    if not isinstance(state, cls):
        got = getattr(state, "kind", type(state).__name__)
        raise InvalidState(f"Expected a {cls.kind}, got {got}")
    return state
