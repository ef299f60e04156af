"""Application message carried inside a packed envelope."""

import uuid
from collections import OrderedDict
from typing import Any, Mapping, Optional, Union

from marshmallow import EXCLUDE, fields, post_dump, post_load, pre_load

from .decorators.transport_decorator import (
    RETURN_ROUTE_ALL,
    TransportDecorator,
    TransportDecoratorSchema,
)
from .models.base import BaseModel, BaseModelSchema

MESSAGE_ID_KEY = "@id"
TRANSPORT_KEY = "~transport"


class AgentMessage(BaseModel):
    """
    An application message with a known envelope-control block.

    `_id` and `_transport` map to the `@id` and `~transport` keys; every other
    key of the JSON form is kept untouched in `payload`.
    """

    class Meta:
        """AgentMessage metadata."""

        schema_class = "AgentMessageSchema"

    def __init__(
        self,
        _id: str = None,
        _transport: TransportDecorator = None,
        payload: Mapping[str, Any] = None,
    ):
        """
        Initialize an agent message.

        Args:
            _id: The message identifier; left unset until the message is sealed
            _transport: The transport decorator, if any
            payload: All remaining message content
        """
        super().__init__()
        self._id = _id
        self._transport = _transport
        self.payload = OrderedDict(payload or {})

    @classmethod
    def coerce(cls, message: Union["AgentMessage", Mapping, str]) -> "AgentMessage":
        """Return an AgentMessage for a message instance, a dict or a JSON string."""
        if isinstance(message, AgentMessage):
            return message
        return cls.deserialize(message)

    @property
    def message_type(self) -> Optional[str]:
        """Accessor for the `@type` of the message, if present."""
        return self.payload.get("@type")

    def assign_id(self) -> str:
        """Give the message a fresh identifier unless it already has one."""
        if self._id is None or self._id == "":
            self._id = str(uuid.uuid4())
        return self._id

    def set_return_route(self, mode: str = RETURN_ROUTE_ALL):
        """Request that replies be returned over the inbound connection."""
        if not self._transport:
            self._transport = TransportDecorator()
        self._transport.return_route = mode

    @property
    def return_route(self) -> Optional[str]:
        """Accessor for the requested return route mode."""
        return self._transport and self._transport.return_route

    def __getitem__(self, key: str):
        """Fetch the message identifier or a payload value by its wire key."""
        if key == MESSAGE_ID_KEY:
            if self._id is None:
                raise KeyError(key)
            return self._id
        return self.payload[key]

    def __eq__(self, other) -> bool:
        """Compare by wire representation."""
        if not isinstance(other, AgentMessage):
            return False
        return self.serialize() == other.serialize()


class AgentMessageSchema(BaseModelSchema):
    """AgentMessage schema."""

    class Meta:
        """AgentMessageSchema metadata."""

        model_class = AgentMessage
        unknown = EXCLUDE

    _id = fields.Raw(data_key=MESSAGE_ID_KEY, required=False, allow_none=True)
    _transport = fields.Nested(
        TransportDecoratorSchema, data_key=TRANSPORT_KEY, required=False
    )

    def __init__(self, *args, **kwargs):
        """Initialize the schema."""
        super().__init__(*args, **kwargs)
        self._payload = None

    def get_attribute(self, obj, attr, default):
        """Read model attributes directly, never through item access."""
        return getattr(obj, attr, default)

    @pre_load
    def extract_payload(self, data: Mapping, **kwargs):
        """Split open-ended content from the envelope-control keys."""
        if not isinstance(data, Mapping):
            return data
        self._payload = OrderedDict(
            (key, value)
            for key, value in data.items()
            if key not in (MESSAGE_ID_KEY, TRANSPORT_KEY)
        )
        return {
            key: data[key] for key in (MESSAGE_ID_KEY, TRANSPORT_KEY) if key in data
        }

    @post_load
    def make_model(self, data: dict, **kwargs):
        """Return model instance after loading."""
        return self.Model(payload=self._payload, **data)

    @post_dump(pass_original=True)
    def remove_skipped_values(self, data, original, **kwargs):
        """Drop unset control values and merge the payload back in."""
        result = OrderedDict(super().remove_skipped_values(data, **kwargs))
        for key, value in original.payload.items():
            result.setdefault(key, value)
        return result
