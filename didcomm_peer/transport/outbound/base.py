"""Base outbound transport."""

import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Mapping, Optional, Tuple, Union

from aiohttp import ClientSession

from ...config.settings import Settings
from ..error import TransportError

LOGGER = logging.getLogger(__name__)

InboundHandler = Callable[[Union[str, bytes]], Awaitable[None]]


class BaseOutboundTransport(ABC):
    """
    Base outbound transport class.

    A transport instance serves a single endpoint for the lifetime of one
    connection. Packed messages received from the partner, whether pushed or
    returned in a response, are passed to the inbound handler.
    """

    schemes: Tuple[str, ...] = ()
    needs_return_route_poll = False

    def __init__(
        self,
        endpoint: str,
        inbound_handler: InboundHandler = None,
        *,
        settings: Optional[Mapping] = None,
        session: ClientSession = None,
    ) -> None:
        """
        Initialize a `BaseOutboundTransport` instance.

        Args:
            endpoint: URI endpoint for delivery
            inbound_handler: Coroutine receiving packed inbound messages
            settings: Transport settings
            session: An optional shared client session, not closed by the transport
        """
        if not endpoint:
            raise OutboundTransportError("No endpoint provided")
        self.endpoint = endpoint
        self.inbound_handler = inbound_handler
        self.settings = Settings.coerce(settings)
        self.client_session = session

    async def __aenter__(self):
        """Async context manager enter."""
        return self

    async def __aexit__(self, err_type, err_value, err_t):
        """Async context manager exit."""
        await self.close()

    @abstractmethod
    async def send(self, payload: Union[str, bytes]):
        """
        Deliver a packed message to the endpoint.

        Args:
            payload: message payload in string or byte format

        Raises:
            OutboundTransportError: If the message could not be delivered

        """

    async def close(self):
        """Release any resources held by the transport."""

    async def deliver_inbound(self, payload: Union[str, bytes]):
        """Pass a packed inbound message to the inbound handler."""
        if not self.inbound_handler:
            LOGGER.warning(
                "Dropping inbound message from %s: no inbound handler", self.endpoint
            )
            return
        await self.inbound_handler(payload)

    def __repr__(self) -> str:
        """Format for debugging."""
        return f"<{self.__class__.__name__} endpoint={self.endpoint!r}>"


class OutboundTransportError(TransportError):
    """Generic outbound transport error."""


class OutboundTransportRegistrationError(OutboundTransportError):
    """Outbound transport registration error."""
