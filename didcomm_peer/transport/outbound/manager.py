"""Outbound transport manager."""

import logging
from typing import Mapping, Optional, Type

from aiohttp import ClientSession

from .base import (
    BaseOutboundTransport,
    InboundHandler,
    OutboundTransportRegistrationError,
)
from .http import HttpTransport
from .ws import WsTransport

LOGGER = logging.getLogger(__name__)


class OutboundTransportManager:
    """Registry mapping endpoint schemes to outbound transport classes."""

    def __init__(self):
        """Initialize a `OutboundTransportManager` instance."""
        self.registered_schemes = {}
        self.registered_transports = {}

    @classmethod
    def with_defaults(cls) -> "OutboundTransportManager":
        """Create a manager with the websocket and http transports registered."""
        mgr = cls()
        mgr.register_class(WsTransport)
        mgr.register_class(HttpTransport)
        return mgr

    def register_class(
        self, transport_class: Type[BaseOutboundTransport], transport_id: str = None
    ) -> str:
        """
        Register a new outbound transport class.

        Args:
            transport_class: Transport class to register
            transport_id: Optional identifier, defaults to the class name

        Raises:
            OutboundTransportRegistrationError: If the class does not
                specify any schemes
            OutboundTransportRegistrationError: If a scheme has already been
                registered

        """
        schemes = getattr(transport_class, "schemes", None)
        if not schemes:
            raise OutboundTransportRegistrationError(
                f"Imported class {transport_class} does not "
                + "specify a required 'schemes' attribute"
            )
        if not transport_id:
            transport_id = transport_class.__qualname__

        for scheme in schemes:
            if scheme in self.registered_schemes:
                raise OutboundTransportRegistrationError(
                    f"Cannot register transport '{transport_id}' "
                    f"for '{scheme}' scheme because the scheme "
                    "has already been registered"
                )

        self.registered_transports[transport_id] = transport_class
        for scheme in schemes:
            self.registered_schemes[scheme] = transport_id
        LOGGER.debug("Registered outbound transport %s: %s", transport_id, schemes)

        return transport_id

    def get_registered_transport_for_scheme(self, scheme: str) -> Optional[str]:
        """Find the registered transport ID for a given scheme."""
        return self.registered_schemes.get(scheme)

    def get_transport_class(self, scheme: str) -> Type[BaseOutboundTransport]:
        """
        Look up the transport class serving a scheme.

        Raises:
            OutboundTransportRegistrationError: If no transport handles the scheme

        """
        transport_id = self.get_registered_transport_for_scheme(scheme)
        if not transport_id:
            raise OutboundTransportRegistrationError(
                f"No transport driver exists to handle scheme '{scheme}'"
            )
        return self.registered_transports[transport_id]

    def create_transport(
        self,
        scheme: str,
        endpoint: str,
        inbound_handler: InboundHandler = None,
        *,
        settings: Optional[Mapping] = None,
        session: ClientSession = None,
    ) -> BaseOutboundTransport:
        """Instantiate the registered transport for a scheme."""
        transport_class = self.get_transport_class(scheme)
        return transport_class(
            endpoint, inbound_handler, settings=settings, session=session
        )
