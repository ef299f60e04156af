"""
The transport decorator (~transport).

This decorator asks the receiving agent to change its response behaviour,
most importantly to return replies over the inbound HTTP connection.
"""

from collections import OrderedDict
from typing import Any

from marshmallow import INCLUDE, fields, post_dump

from ..models.base import BaseModel, BaseModelSchema

RETURN_ROUTE_NONE = "none"
RETURN_ROUTE_ALL = "all"
RETURN_ROUTE_THREAD = "thread"


class TransportDecorator(BaseModel):
    """Class representing the transport decorator."""

    class Meta:
        """TransportDecorator metadata."""

        schema_class = "TransportDecoratorSchema"

    def __init__(
        self,
        *,
        return_route: str = None,
        return_route_thread: str = None,
        queued_message_count: int = None,
        **extra: Any,
    ):
        """
        Initialize a TransportDecorator instance.

        Args:
            return_route: Set the return routing mode, usually one of
                `none`, `all` or `thread`
            return_route_thread: Identify the thread to enable return routing for
            queued_message_count: Indicate the number of queued messages
            extra: Any other values of the decorator, carried unchanged
        """
        super().__init__()
        self.return_route = return_route
        self.return_route_thread = return_route_thread
        self.queued_message_count = queued_message_count
        self.extra = extra


class TransportDecoratorSchema(BaseModelSchema):
    """Transport decorator schema used in serialization/deserialization."""

    class Meta:
        """TransportDecoratorSchema metadata."""

        model_class = TransportDecorator
        unknown = INCLUDE

    return_route = fields.Raw(required=False, allow_none=True)
    return_route_thread = fields.Raw(required=False, allow_none=True)
    queued_message_count = fields.Raw(required=False, allow_none=True)

    @post_dump(pass_original=True)
    def remove_skipped_values(self, data, original, **kwargs):
        """Drop unset values and merge the extra values back in."""
        result = OrderedDict(super().remove_skipped_values(data, **kwargs))
        for key, value in original.extra.items():
            result.setdefault(key, value)
        return result
