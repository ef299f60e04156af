"""JSON Web Encryption envelope used by DIDComm v1 packed messages."""

import binascii
import json
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Mapping, Union

from marshmallow import Schema, ValidationError, fields

from ..wallet.util import b64_to_bytes, bytes_to_b64

IDENT_RECIPIENTS = "recipients"


def b64url(value: Union[bytes, str]) -> str:
    """Encode a string or bytes value as unpadded base64-URL."""
    if isinstance(value, str):
        value = value.encode("utf-8")
    return bytes_to_b64(value, urlsafe=True, pad=False)


def from_b64url(value: str) -> bytes:
    """Decode an unpadded base64-URL value."""
    try:
        return b64_to_bytes(value, urlsafe=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Error decoding base64 value")


class B64Value(fields.Str):
    """A marshmallow-compatible wrapper for base64-URL values."""

    def _serialize(self, value, attr, obj, **kwargs):
        if value is None:
            return None
        return b64url(value)

    def _deserialize(self, value, attr, data, **kwargs) -> Any:
        value = super()._deserialize(value, attr, data, **kwargs)
        return from_b64url(value)


class JweSchema(Schema):
    """Outer envelope schema: protected header plus encrypted payload."""

    protected = fields.Str(required=True)
    iv = B64Value(required=True)
    ciphertext = B64Value(required=True)
    tag = B64Value(required=True)


class JweRecipientSchema(Schema):
    """JWE recipient schema."""

    encrypted_key = B64Value(required=True)
    header = fields.Dict(required=True)


class JweRecipient:
    """A single message recipient."""

    def __init__(self, *, encrypted_key: bytes, header: dict = None):
        """Initialize the JWE recipient."""
        self.encrypted_key = encrypted_key
        self.header = header or {}

    @classmethod
    def deserialize(cls, entry: Mapping[str, Any]) -> "JweRecipient":
        """Deserialize a JWE recipient from a mapping."""
        return cls(**JweRecipientSchema().load(entry))

    def serialize(self) -> dict:
        """Serialize the JWE recipient to a mapping."""
        return OrderedDict(
            [("encrypted_key", b64url(self.encrypted_key)), ("header", self.header)]
        )


class JweEnvelope:
    """
    JWE envelope with the recipients block carried in the protected header.

    This is the layout of a DIDComm v1 (JWM/1.0) packed message.
    """

    def __init__(
        self,
        *,
        protected: dict = None,
        protected_b64: str = None,
        ciphertext: bytes = None,
        iv: bytes = None,
        tag: bytes = None,
    ):
        """Initialize a new JWE envelope instance."""
        self.protected = protected or OrderedDict()
        self.protected_b64 = protected_b64
        self.ciphertext = ciphertext
        self.iv = iv
        self.tag = tag
        self._recipients: List[JweRecipient] = []

    @classmethod
    def from_json(cls, message: Union[bytes, str]) -> "JweEnvelope":
        """Decode a JWE envelope from a JSON string or bytes value."""
        try:
            parsed = JweSchema().loads(message)
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise ValidationError("Invalid JWE: not JSON")
        except TypeError:
            raise ValidationError("Invalid JWE: not a string or bytes value")

        protected_b64 = parsed["protected"]
        try:
            protected = json.loads(from_b64url(protected_b64))
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise ValidationError("Invalid JWE: invalid JSON for protected headers")
        if not isinstance(protected, dict):
            raise ValidationError("Invalid JWE: protected headers must be an object")

        recipients = protected.pop(IDENT_RECIPIENTS, None)
        if not recipients or not isinstance(recipients, list):
            raise ValidationError("Invalid JWE: no recipients")

        inst = cls(
            protected=protected,
            protected_b64=protected_b64,
            ciphertext=parsed["ciphertext"],
            iv=parsed["iv"],
            tag=parsed["tag"],
        )
        for recip in recipients:
            inst.add_recipient(JweRecipient.deserialize(recip))
        return inst

    def serialize(self) -> dict:
        """Serialize the JWE envelope to a mapping."""
        if self.protected_b64 is None:
            raise ValidationError("Missing protected: use set_protected")
        if self.ciphertext is None or self.iv is None or self.tag is None:
            raise ValidationError("Missing payload for JWE: use set_payload")
        return OrderedDict(
            [
                ("protected", self.protected_b64),
                ("iv", b64url(self.iv)),
                ("ciphertext", b64url(self.ciphertext)),
                ("tag", b64url(self.tag)),
            ]
        )

    def to_json(self) -> str:
        """Serialize the JWE envelope to a JSON string."""
        return json.dumps(self.serialize())

    def add_recipient(self, recip: JweRecipient):
        """Add a recipient to the JWE envelope."""
        self._recipients.append(recip)

    def set_protected(self, protected: Mapping[str, Any]):
        """Set the protected headers, embedding the recipients block."""
        if not self._recipients:
            raise ValidationError("Missing message recipients")
        self.protected = OrderedDict(protected.items())
        headers = self.protected.copy()
        headers[IDENT_RECIPIENTS] = self.recipients_json
        self.protected_b64 = b64url(json.dumps(headers))

    @property
    def protected_bytes(self) -> bytes:
        """Access the protected data encoded as bytes.

        This value is used as the additional authenticated data when encrypting.
        """
        return (
            self.protected_b64.encode("utf-8")
            if self.protected_b64 is not None
            else None
        )

    def set_payload(self, ciphertext: bytes, iv: bytes, tag: bytes):
        """Set the payload of the JWE envelope."""
        self.ciphertext = ciphertext
        self.iv = iv
        self.tag = tag

    @property
    def recipients(self) -> Iterable[JweRecipient]:
        """Accessor for an iterator over the JWE recipients."""
        return iter(self._recipients)

    @property
    def recipients_json(self) -> List[Dict[str, Any]]:
        """Encode the current recipients for JSON."""
        return [recip.serialize() for recip in self._recipients]
