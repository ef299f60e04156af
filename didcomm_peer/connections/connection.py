"""A peer connection: selected transport, envelope codec and inbound routing."""

import inspect
import logging
import uuid
from typing import Any, Callable, Mapping, Optional, Union

from aiohttp import ClientSession

from ..config.settings import Settings
from ..messaging.agent_message import AgentMessage
from ..messaging.decorators.transport_decorator import RETURN_ROUTE_ALL
from ..messaging.models.base import BaseModelError
from ..transport.error import DecodeError, TransportError, WireFormatError
from ..transport.outbound.base import (
    BaseOutboundTransport,
    OutboundTransportRegistrationError,
)
from ..transport.outbound.manager import OutboundTransportManager
from ..transport.pack_format import PackWireFormat
from ..wallet.envelope import EnvelopeCrypto, default_crypto
from ..wallet.key_pair import KeyPair
from .models.connection_record import ConnectionRecord
from .models.service import ServiceDescriptor
from .selector import SelectionError, select_service

LOGGER = logging.getLogger(__name__)

InboundProcessor = Callable[[AgentMessage], Any]
ErrorHandler = Callable[[Exception], Any]

RETURN_ROUTE_POLL_PROTOCOLS = ("http", "https")


class ConnectionDetail:
    """
    One peer relationship.

    The partner service is chosen from the DID document when the connection is
    built and stays fixed for its lifetime, as does the transport serving it.
    """

    def __init__(
        self,
        connection_id: str,
        label: Optional[str],
        did_doc: Mapping[str, Any],
        my_key: Union[KeyPair, Mapping[str, str]],
        inbound_processor: InboundProcessor = None,
        *,
        error_handler: ErrorHandler = None,
        crypto: EnvelopeCrypto = None,
        settings: Optional[Mapping] = None,
        session: ClientSession = None,
        transport_manager: OutboundTransportManager = None,
    ):
        """
        Initialize a ConnectionDetail instance.

        Args:
            connection_id: The connection identifier
            label: Display label for the connection
            did_doc: The partner's DID document
            my_key: The local keypair, or its base58 `privateKey`/`publicKey` form
            inbound_processor: Called with every decrypted inbound message
            error_handler: Called with delivery and inbound processing errors
            crypto: The envelope encryption engine to use
            settings: Transport settings
            session: A shared client session for network requests
            transport_manager: The registry used to find the transport class

        Raises:
            SelectionError: If the DID document has no usable service

        """
        self.connection_id = connection_id
        self.label = label
        self.did_doc = did_doc
        self.my_key = _coerce_key(my_key)
        self.inbound_processor = inbound_processor
        self.error_handler = error_handler
        self.settings = Settings.coerce(settings)

        self.service: ServiceDescriptor = select_service(did_doc)
        self.transport_protocol = self.service.protocol

        self.wire_format = PackWireFormat(
            crypto or default_crypto(), self.my_key, self.service.recipient_keys
        )

        transport_manager = transport_manager or OutboundTransportManager.with_defaults()
        try:
            self.transport: BaseOutboundTransport = transport_manager.create_transport(
                self.transport_protocol,
                self.service.endpoint,
                self.handle_inbound,
                settings=self.settings,
                session=session,
            )
        except OutboundTransportRegistrationError as err:
            raise SelectionError(
                f"Unsupported transport protocol: {self.transport_protocol}"
            ) from err

    @classmethod
    def from_record(
        cls,
        record: Union[ConnectionRecord, Mapping[str, Any], str, bytes],
        inbound_processor: InboundProcessor = None,
        **kwargs,
    ) -> "ConnectionDetail":
        """
        Rebuild a connection from its persisted form.

        Args:
            record: A `ConnectionRecord`, its dict form or its JSON form
            inbound_processor: Called with every decrypted inbound message
            kwargs: Options passed through to the constructor

        Raises:
            BaseModelError: If the record is malformed
            WalletError: If the stored key material cannot be decoded
            SelectionError: If the stored DID document has no usable service

        """
        if isinstance(record, (str, bytes)):
            record = ConnectionRecord.from_json(record)
        elif not isinstance(record, ConnectionRecord):
            record = ConnectionRecord.deserialize(record)
        my_key = KeyPair.from_b58(
            record.my_key_b58["publicKey"], record.my_key_b58["privateKey"]
        )
        return cls(
            record.connection_id,
            record.label,
            record.did_doc,
            my_key,
            inbound_processor,
            **kwargs,
        )

    def to_record(self) -> ConnectionRecord:
        """Produce the persisted form of this connection."""
        return ConnectionRecord(
            connection_id=self.connection_id,
            label=self.label,
            did_doc=self.did_doc,
            my_key_b58=self.my_key.to_b58(),
        )

    def needs_return_route_poll(self) -> bool:
        """Check whether replies can only arrive in response to our own requests."""
        return self.transport_protocol in RETURN_ROUTE_POLL_PROTOCOLS

    async def send(
        self, message: Union[AgentMessage, Mapping[str, Any]], set_return_route=True
    ) -> AgentMessage:
        """
        Seal a message and deliver it to the partner.

        Args:
            message: The message to send
            set_return_route: Ask the partner to reply over this transport

        Returns:
            The message as sent, with its `@id` assigned

        Raises:
            WireFormatError: If the message cannot be sealed
            TransportError: If a websocket delivery fails

        """
        try:
            message = AgentMessage.coerce(message)
        except BaseModelError as err:
            raise DecodeError("Message could not be serialized") from err
        if set_return_route:
            message.set_return_route(RETURN_ROUTE_ALL)
        message.assign_id()
        LOGGER.debug(
            "Sending message %s on connection %s via %s",
            message._id,
            self.connection_id,
            self.transport_protocol,
        )

        packed = await self.wire_format.seal(message)

        if self.needs_return_route_poll():
            try:
                await self.transport.send(packed)
            except TransportError as err:
                LOGGER.error(
                    "Error while sending message %s to %s: %s",
                    message._id,
                    self.service.endpoint,
                    err.roll_up,
                )
                await self._report_error(err)
        else:
            await self.transport.send(packed)
        return message

    async def handle_inbound(self, packed: Union[str, bytes]) -> Optional[AgentMessage]:
        """
        Open a packed message and pass it to the inbound processor.

        Failures are logged and reported to the error handler, never raised.

        Returns:
            The opened message, or None if it could not be processed

        """
        try:
            message = await self.wire_format.open(packed)
        except WireFormatError as err:
            LOGGER.warning(
                "Discarding inbound message on connection %s: %s",
                self.connection_id,
                err.roll_up,
            )
            await self._report_error(err)
            return None

        LOGGER.debug(
            "Received message %s on connection %s", message._id, self.connection_id
        )
        if not self.inbound_processor:
            LOGGER.warning(
                "No inbound processor for connection %s, dropping message %s",
                self.connection_id,
                message._id,
            )
            return message

        try:
            result = self.inbound_processor(message)
            if inspect.isawaitable(result):
                await result
        except Exception as err:
            LOGGER.exception(
                "Error processing inbound message %s on connection %s",
                message._id,
                self.connection_id,
            )
            await self._report_error(err)
        return message

    async def _report_error(self, err: Exception):
        if not self.error_handler:
            return
        try:
            result = self.error_handler(err)
            if inspect.isawaitable(result):
                await result
        except Exception:
            LOGGER.exception("Error handler failed for connection %s", self.connection_id)

    async def close(self):
        """Close the transport serving this connection."""
        await self.transport.close()

    async def __aenter__(self):
        """Async context manager enter."""
        return self

    async def __aexit__(self, err_type, err_value, err_t):
        """Async context manager exit."""
        await self.close()

    def __repr__(self) -> str:
        """Format for debugging."""
        return (
            f"<{self.__class__.__name__} connection_id={self.connection_id!r} "
            f"label={self.label!r} endpoint={self.service.endpoint!r}>"
        )


def _coerce_key(my_key: Union[KeyPair, Mapping[str, str]]) -> KeyPair:
    if isinstance(my_key, KeyPair):
        return my_key
    if isinstance(my_key, Mapping):
        return KeyPair.from_b58(my_key["publicKey"], my_key["privateKey"])
    raise TypeError("my_key must be a KeyPair or a base58 key mapping")


def new_connection(
    label: Optional[str],
    did_doc: Mapping[str, Any],
    my_key: Union[KeyPair, Mapping[str, str]],
    inbound_processor: InboundProcessor = None,
    **kwargs,
) -> ConnectionDetail:
    """Create a connection with a freshly generated identifier."""
    return ConnectionDetail(
        str(uuid.uuid4()), label, did_doc, my_key, inbound_processor, **kwargs
    )


def from_record(
    record: Union[ConnectionRecord, Mapping[str, Any], str, bytes],
    inbound_processor: InboundProcessor = None,
    **kwargs,
) -> ConnectionDetail:
    """Rebuild a connection from its persisted form."""
    return ConnectionDetail.from_record(record, inbound_processor, **kwargs)


def to_record(connection: ConnectionDetail) -> ConnectionRecord:
    """Produce the persisted form of a connection."""
    return connection.to_record()
