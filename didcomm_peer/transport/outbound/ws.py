"""Websockets outbound transport."""

import asyncio
import logging
from typing import Union

import async_timeout
from aiohttp import (
    ClientError,
    ClientSession,
    ClientWebSocketResponse,
    DummyCookieJar,
    WSMsgType,
)

from .base import BaseOutboundTransport, OutboundTransportError

LOGGER = logging.getLogger(__name__)


class WsTransport(BaseOutboundTransport):
    """
    Websockets outbound transport class.

    The socket is opened on the first send and kept for the life of the
    transport. Frames pushed by the partner are read by a background task
    and handed to the inbound handler in arrival order.
    """

    schemes = ("ws", "wss")

    def __init__(self, endpoint: str, inbound_handler=None, **kwargs) -> None:
        """Initialize a `WsTransport` instance."""
        super().__init__(endpoint, inbound_handler, **kwargs)
        self.ws: ClientWebSocketResponse = None
        self._closed = False
        self._open_lock: asyncio.Lock = None
        self._owns_session = False
        self._receive_task: asyncio.Task = None

    @property
    def is_open(self) -> bool:
        """Check whether the websocket is currently open."""
        return bool(self.ws and not self.ws.closed)

    @property
    def closed(self) -> bool:
        """Check whether the transport has been closed."""
        return self._closed

    async def ensure_open(self) -> ClientWebSocketResponse:
        """
        Open the websocket if it is not already open.

        Concurrent callers share a single open attempt.

        Raises:
            OutboundTransportError: If the transport is closed or the socket
                cannot be opened

        """
        if self.is_open and not self._closed:
            return self.ws
        if not self._open_lock:
            self._open_lock = asyncio.Lock()
        async with self._open_lock:
            if self._closed:
                raise OutboundTransportError("Websocket transport has been closed")
            if not self.is_open:
                await self._open()
        return self.ws

    async def _open(self):
        if not self.client_session:
            self.client_session = ClientSession(
                cookie_jar=DummyCookieJar(), trust_env=True
            )
            self._owns_session = True
        LOGGER.debug("Opening websocket to %s", self.endpoint)
        try:
            async with async_timeout.timeout(
                self.settings.get_timeout("transport.ws_open_timeout")
            ):
                self.ws = await self.client_session.ws_connect(self.endpoint)
        except (ClientError, OSError, asyncio.TimeoutError) as err:
            raise OutboundTransportError(
                f"Unable to open websocket to {self.endpoint}"
            ) from err
        self._receive_task = asyncio.ensure_future(self._receive(self.ws))

    async def send(self, payload: Union[str, bytes]):
        """
        Write a packed message to the websocket, opening it first if needed.

        Args:
            payload: message payload in string or byte format

        Raises:
            OutboundTransportError: If the socket cannot be opened or written

        """
        if self._closed:
            raise OutboundTransportError("Websocket transport has been closed")
        ws = await self.ensure_open()
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        try:
            async with async_timeout.timeout(
                self.settings.get_timeout("transport.ws_send_timeout")
            ):
                await ws.send_bytes(payload)
        except (ClientError, ConnectionError, RuntimeError, asyncio.TimeoutError) as err:
            raise OutboundTransportError(
                f"Error writing message to {self.endpoint}"
            ) from err

    async def _receive(self, ws: ClientWebSocketResponse):
        async for msg in ws:
            if msg.type == WSMsgType.TEXT:
                payload = msg.data
            elif msg.type == WSMsgType.BINARY:
                try:
                    payload = msg.data.decode("utf-8")
                except UnicodeDecodeError:
                    LOGGER.warning(
                        "Discarding undecodable frame from %s", self.endpoint
                    )
                    continue
            elif msg.type == WSMsgType.ERROR:
                LOGGER.error(
                    "Websocket error from %s: %s", self.endpoint, ws.exception()
                )
                break
            else:
                continue

            try:
                await self.deliver_inbound(payload)
            except Exception:
                LOGGER.exception(
                    "Error handling inbound message from %s", self.endpoint
                )
        LOGGER.debug("Websocket to %s closed", self.endpoint)

    async def close(self):
        """Close the websocket and stop the reader task."""
        self._closed = True
        if self.ws:
            await self.ws.close()
        if self._receive_task:
            if not self._receive_task.done():
                self._receive_task.cancel()
            try:
                await self._receive_task
            except asyncio.CancelledError:
                pass
            self._receive_task = None
        if self._owns_session and self.client_session:
            await self.client_session.close()
            self.client_session = None
            self._owns_session = False
