"""
Protocol messages and their fixed-length wire format.

Every message is the plain concatenation of its fields; sizes depend only on
the ciphersuite. Deserialization checks the total length first, then decodes
and validates every group element or public key the message carries.
"""

import struct
from dataclasses import dataclass, field

from .envelope import Envelope
from .errors import InvalidMessageLength


def _noe(suite):
    return suite.Noe


def _nn(suite):
    return suite.Nn


def _npk(suite):
    return suite.Npk


def _nh(suite):
    return suite.Nh


def _nm(suite):
    return suite.Nm


def _ne(suite):
    return suite.Ne


def _masked(suite):
    return suite.Npk + suite.Ne


class ProtocolMessage:
    """
    Base class for fixed-length messages.

    Subclasses list their wire fields in FIELDS as (attribute, size function)
    pairs, in wire order.
    """

    FIELDS = ()

    @classmethod
    def length(cls, suite):
        return sum(size(suite) for _, size in cls.FIELDS)

    @classmethod
    def _format(cls, suite):
        return "!" + "".join(f"{size(suite)}s" for _, size in cls.FIELDS)

    def _wire_values(self):
        return [bytes(getattr(self, name)) for name, _ in self.FIELDS]

    @classmethod
    def _from_wire(cls, suite, values):
        return cls(suite, *values)

    def serialize(self):
        """Pack the message. Format: fields in FIELDS order, no framing"""
        values = self._wire_values()
        for (name, size), value in zip(self.FIELDS, values):
            if len(value) != size(self.suite):
                raise InvalidMessageLength(
                    f"{type(self).__name__}.{name}", size(self.suite), len(value)
                )
        return struct.pack(self._format(self.suite), *values)

    @classmethod
    def deserialize(cls, data, suite):
        """
        Unpack and validate a message.

        Args:
            data: received bytes
            suite: CipherSuite the peer is using

        Raises:
            InvalidMessageLength before any cryptographic step
            DeserializationError for invalid elements or keys
        """
        data = bytes(data)
        expected = cls.length(suite)
        if len(data) != expected:
            raise InvalidMessageLength(cls.__name__, expected, len(data))
        message = cls._from_wire(suite, struct.unpack(cls._format(suite), data))
        message.validate()
        return message

    def validate(self):
        """Decode carried elements; raises DeserializationError"""


@dataclass(frozen=True)
class RegistrationRequest(ProtocolMessage):
    """Format: [Noe blinded_message]"""

    suite: object = field(repr=False)
    blinded_message: bytes

    FIELDS = (("blinded_message", _noe),)

    def validate(self):
        self.suite.oprf_group.deserialize_element(self.blinded_message, "blinded message")


@dataclass(frozen=True)
class RegistrationResponse(ProtocolMessage):
    """Format: [Noe evaluated_message][Npk server_public_key]"""

    suite: object = field(repr=False)
    evaluated_message: bytes
    server_public_key: bytes

    FIELDS = (("evaluated_message", _noe), ("server_public_key", _npk))

    def validate(self):
        self.suite.oprf_group.deserialize_element(self.evaluated_message, "evaluated message")
        self.suite.ke_group.validate_public_key(self.server_public_key, "server public key")


@dataclass(frozen=True)
class RegistrationUpload(ProtocolMessage):
    """Format: [Npk client_public_key][Nh masking_key][Ne envelope]"""

    suite: object = field(repr=False)
    client_public_key: bytes
    masking_key: bytes
    envelope: Envelope

    FIELDS = (("client_public_key", _npk), ("masking_key", _nh), ("envelope", _ne))

    def _wire_values(self):
        return [
            bytes(self.client_public_key),
            bytes(self.masking_key),
            self.envelope.serialize(self.suite),
        ]

    @classmethod
    def _from_wire(cls, suite, values):
        client_public_key, masking_key, envelope = values
        return cls(suite, client_public_key, masking_key, Envelope.deserialize(envelope, suite))

    def validate(self):
        self.suite.ke_group.validate_public_key(self.client_public_key, "client public key")


@dataclass(frozen=True)
class CredentialRequest(ProtocolMessage):
    """Format: [Noe blinded_message][Nn client_nonce][Npk client_keyshare]"""

    suite: object = field(repr=False)
    blinded_message: bytes
    client_nonce: bytes
    client_keyshare: bytes

    FIELDS = (
        ("blinded_message", _noe),
        ("client_nonce", _nn),
        ("client_keyshare", _npk),
    )

    def validate(self):
        self.suite.oprf_group.deserialize_element(self.blinded_message, "blinded message")
        self.suite.ke_group.validate_public_key(self.client_keyshare, "client keyshare")


@dataclass(frozen=True)
class CredentialResponse(ProtocolMessage):
    """
    Format:
        [Noe evaluated_message][Nn masking_nonce][Npk+Ne masked_response]
        [Nn server_nonce][Npk server_keyshare][Nm server_mac]
    """

    suite: object = field(repr=False)
    evaluated_message: bytes
    masking_nonce: bytes
    masked_response: bytes
    server_nonce: bytes
    server_keyshare: bytes
    server_mac: bytes

    FIELDS = (
        ("evaluated_message", _noe),
        ("masking_nonce", _nn),
        ("masked_response", _masked),
        ("server_nonce", _nn),
        ("server_keyshare", _npk),
        ("server_mac", _nm),
    )

    def credential_part(self):
        """evaluated_message || masking_nonce || masked_response, as hashed in the transcript"""
        return bytes(self.evaluated_message) + bytes(self.masking_nonce) + bytes(self.masked_response)

    def validate(self):
        self.suite.oprf_group.deserialize_element(self.evaluated_message, "evaluated message")
        self.suite.ke_group.validate_public_key(self.server_keyshare, "server keyshare")


@dataclass(frozen=True)
class CredentialFinalization(ProtocolMessage):
    """Format: [Nm client_mac]"""

    suite: object = field(repr=False)
    client_mac: bytes

    FIELDS = (("client_mac", _nm),)


MESSAGE_TYPES = (
    RegistrationRequest,
    RegistrationResponse,
    RegistrationUpload,
    CredentialRequest,
    CredentialResponse,
    CredentialFinalization,
)
