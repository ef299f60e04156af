"""Persisted form of a connection."""

from typing import Any, Mapping

from marshmallow import EXCLUDE, Schema, fields

from ...messaging.models.base import BaseModel, BaseModelSchema


class ConnectionRecord(BaseModel):
    """Storage record holding everything needed to rebuild a connection."""

    class Meta:
        """ConnectionRecord metadata."""

        schema_class = "ConnectionRecordSchema"
        repr_exclude = ["my_key_b58"]

    def __init__(
        self,
        *,
        connection_id: str = None,
        label: str = None,
        did_doc: Mapping[str, Any] = None,
        my_key_b58: Mapping[str, str] = None,
    ):
        """
        Initialize a ConnectionRecord instance.

        Args:
            connection_id: The connection identifier and storage key
            label: The connection display label
            did_doc: The partner's DID document, verbatim
            my_key_b58: The local keypair as base58 `privateKey`/`publicKey`
        """
        super().__init__()
        self.connection_id = connection_id
        self.label = label
        self.did_doc = did_doc
        self.my_key_b58 = dict(my_key_b58) if my_key_b58 else {}

    @property
    def record_id(self) -> str:
        """Accessor for the storage key."""
        return self.connection_id


class KeyB58Schema(Schema):
    """Base58 encodings of the local keypair."""

    class Meta:
        """KeyB58Schema metadata."""

        unknown = EXCLUDE

    privateKey = fields.Str(required=True)
    publicKey = fields.Str(required=True)


class ConnectionRecordSchema(BaseModelSchema):
    """ConnectionRecord schema."""

    class Meta:
        """ConnectionRecordSchema metadata."""

        model_class = ConnectionRecord
        unknown = EXCLUDE

    connection_id = fields.Str(data_key="id", required=True)
    label = fields.Str(required=False, allow_none=True)
    did_doc = fields.Dict(required=True)
    my_key_b58 = fields.Nested(KeyB58Schema, required=True)
