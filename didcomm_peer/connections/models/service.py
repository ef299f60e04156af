"""Service entry of a partner's DID document."""

from typing import Optional, Sequence

from marshmallow import EXCLUDE, fields

from ...messaging.models.base import BaseModel, BaseModelSchema


class ServiceDescriptor(BaseModel):
    """An endpoint declared by the partner, with the keys to seal messages for."""

    class Meta:
        """ServiceDescriptor metadata."""

        schema_class = "ServiceDescriptorSchema"

    def __init__(
        self,
        *,
        ident: str = None,
        typ: str = None,
        endpoint: str = None,
        recipient_keys: Sequence[str] = None,
        routing_keys: Sequence[str] = None,
        priority: int = 0,
    ):
        """
        Initialize a ServiceDescriptor instance.

        Args:
            ident: Identifier for the service
            typ: Service type
            endpoint: Service endpoint URI
            recipient_keys: Base58 recipient verification keys
            routing_keys: Base58 routing keys
            priority: Declared service priority
        """
        super().__init__()
        self.ident = ident
        self.typ = typ
        self.endpoint = endpoint
        self.recipient_keys = list(recipient_keys) if recipient_keys else []
        self.routing_keys = list(routing_keys) if routing_keys else []
        self.priority = priority

    @property
    def protocol(self) -> Optional[str]:
        """Accessor for the endpoint URI scheme."""
        return endpoint_protocol(self.endpoint) if self.endpoint else None


class ServiceDescriptorSchema(BaseModelSchema):
    """ServiceDescriptor schema."""

    class Meta:
        """ServiceDescriptorSchema metadata."""

        model_class = ServiceDescriptor
        unknown = EXCLUDE

    ident = fields.Str(data_key="id", required=False)
    typ = fields.Str(data_key="type", required=True)
    endpoint = fields.Str(data_key="serviceEndpoint", required=True)
    recipient_keys = fields.List(
        fields.Str(), data_key="recipientKeys", required=False
    )
    routing_keys = fields.List(fields.Str(), data_key="routingKeys", required=False)
    priority = fields.Int(required=False)


def endpoint_protocol(endpoint: str) -> str:
    """Return the scheme of an endpoint URI: the text before the first colon."""
    return endpoint.split(":", 1)[0]
