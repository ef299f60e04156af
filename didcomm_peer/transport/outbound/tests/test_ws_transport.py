import asyncio
from unittest import mock

import pytest
from aiohttp import WSMsgType, web
from aiohttp.test_utils import AioHTTPTestCase

from ..base import OutboundTransportError
from ..ws import WsTransport


class TestWsTransport(AioHTTPTestCase):
    async def asyncSetUp(self):
        self.message_results = []
        self.connections = 0
        self.inbound_results = []
        await super().asyncSetUp()

    async def receive_message(self, request):
        self.connections += 1
        ws = web.WebSocketResponse()
        await ws.prepare(request)

        async for msg in ws:
            if msg.type in (WSMsgType.TEXT, WSMsgType.BINARY):
                self.message_results.append(msg.data)
                if msg.data == b"echo":
                    await ws.send_str("text-reply")
                    await ws.send_bytes(b"binary-reply")
                elif msg.data == b"bad-frame":
                    await ws.send_bytes(b"\xff\xfe")
                    await ws.send_str("after-bad-frame")
                elif msg.data == b"twice":
                    await ws.send_str("first")
                    await ws.send_str("second")
            elif msg.type == WSMsgType.ERROR:
                raise Exception(ws.exception())

        return ws

    async def get_application(self):
        """
        Override the get_app method to return your application.
        """
        app = web.Application()
        app.add_routes([web.get("/", self.receive_message)])
        return app

    async def handle_inbound(self, payload):
        self.inbound_results.append(payload)

    async def wait_for_results(self, results, count):
        async def check():
            while len(results) < count:
                await asyncio.sleep(0.01)

        await asyncio.wait_for(check(), 5.0)

    def make_transport(self, inbound_handler=None, **kwargs):
        return WsTransport(
            f"ws://localhost:{self.server.port}/",
            inbound_handler or self.handle_inbound,
            **kwargs,
        )

    async def test_send(self):
        async with self.make_transport() as transport:
            assert not transport.is_open
            await asyncio.wait_for(transport.send(b"{}"), 5.0)
            assert transport.is_open
            await asyncio.wait_for(transport.send("{}"), 5.0)
            await self.wait_for_results(self.message_results, 2)
        assert self.message_results == [b"{}", b"{}"]
        assert self.connections == 1
        assert transport.closed
        assert not transport.is_open

    async def test_receive_in_order(self):
        async with self.make_transport() as transport:
            await asyncio.wait_for(transport.send(b"echo"), 5.0)
            await self.wait_for_results(self.inbound_results, 2)
        assert self.inbound_results == ["text-reply", "binary-reply"]

    async def test_concurrent_sends_open_once(self):
        async with self.make_transport() as transport:
            await asyncio.wait_for(
                asyncio.gather(*(transport.send(b"{}") for _ in range(5))), 5.0
            )
            await self.wait_for_results(self.message_results, 5)
        assert self.connections == 1

    async def test_bad_frame_isolated(self):
        async with self.make_transport() as transport:
            await asyncio.wait_for(transport.send(b"bad-frame"), 5.0)
            await self.wait_for_results(self.inbound_results, 1)
        assert self.inbound_results == ["after-bad-frame"]

    async def test_handler_error_isolated(self):
        inbound = mock.AsyncMock(side_effect=[ValueError("bad message"), None])
        async with self.make_transport(inbound) as transport:
            await asyncio.wait_for(transport.send(b"twice"), 5.0)

            async def check():
                while inbound.await_count < 2:
                    await asyncio.sleep(0.01)

            await asyncio.wait_for(check(), 5.0)
            await asyncio.wait_for(transport.send(b"{}"), 5.0)
            await self.wait_for_results(self.message_results, 2)
        assert inbound.await_args_list == [mock.call("first"), mock.call("second")]

    async def test_send_after_close(self):
        transport = self.make_transport()
        await asyncio.wait_for(transport.send(b"{}"), 5.0)
        await transport.close()
        with pytest.raises(OutboundTransportError):
            await transport.send(b"{}")

    async def test_close_unopened(self):
        transport = self.make_transport()
        await transport.close()
        with pytest.raises(OutboundTransportError):
            await transport.send(b"{}")

    async def test_open_failure(self):
        transport = WsTransport("ws://localhost:1/", self.handle_inbound)
        with pytest.raises(OutboundTransportError):
            await asyncio.wait_for(transport.send(b"{}"), 5.0)
        await transport.close()

    def test_properties(self):
        assert WsTransport.schemes == ("ws", "wss")
        assert not WsTransport.needs_return_route_poll
