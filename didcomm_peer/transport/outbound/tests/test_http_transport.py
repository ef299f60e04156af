import asyncio
from unittest import mock

import pytest
from aiohttp import ClientSession, web
from aiohttp.test_utils import AioHTTPTestCase

from ...pack_format import DIDCOMM_V0_MIME_TYPE, DIDCOMM_V1_MIME_TYPE
from ..base import OutboundTransportError
from ..http import HttpTransport

REPLY = b'{"protected": "reply"}'


class TestHttpTransport(AioHTTPTestCase):
    async def asyncSetUp(self):
        self.message_results = []
        self.headers = {}
        self.inbound = mock.AsyncMock()
        await super().asyncSetUp()

    async def receive_message(self, request):
        self.headers = request.headers
        self.message_results.append(await request.read())
        return web.Response(status=200)

    async def reply_message(self, request):
        self.message_results.append(await request.read())
        return web.Response(body=REPLY, content_type=DIDCOMM_V0_MIME_TYPE)

    async def fail_message(self, request):
        raise web.HTTPInternalServerError()

    async def slow_message(self, request):
        await asyncio.sleep(1)
        return web.Response(status=200)

    async def get_application(self):
        """
        Override the get_app method to return your application.
        """
        app = web.Application()
        app.add_routes(
            [
                web.post("/", self.receive_message),
                web.post("/reply", self.reply_message),
                web.post("/fail", self.fail_message),
                web.post("/slow", self.slow_message),
            ]
        )
        return app

    def make_transport(self, path="/", **kwargs):
        return HttpTransport(
            f"http://localhost:{self.server.port}{path}", self.inbound, **kwargs
        )

    async def test_send_no_reply(self):
        async with self.make_transport() as transport:
            await asyncio.wait_for(transport.send(b"{}"), 5.0)
        assert self.message_results == [b"{}"]
        assert self.headers.get("content-type") == DIDCOMM_V0_MIME_TYPE
        self.inbound.assert_not_awaited()

    async def test_send_new_mime_type(self):
        transport = self.make_transport(
            settings={"transport.emit_new_mime_type": True}
        )
        await asyncio.wait_for(transport.send(b"{}"), 5.0)
        assert self.headers.get("content-type") == DIDCOMM_V1_MIME_TYPE

    async def test_send_reply(self):
        transport = self.make_transport("/reply")
        await asyncio.wait_for(transport.send(b"{}"), 5.0)
        assert self.message_results == [b"{}"]
        self.inbound.assert_awaited_once_with(REPLY)

    async def test_send_reply_no_handler(self):
        transport = HttpTransport(f"http://localhost:{self.server.port}/reply")
        with self.assertLogs("didcomm_peer.transport.outbound.base", "WARNING"):
            await asyncio.wait_for(transport.send(b"{}"), 5.0)

    async def test_send_error_status(self):
        transport = self.make_transport("/fail")
        with pytest.raises(OutboundTransportError) as excinfo:
            await asyncio.wait_for(transport.send(b"{}"), 5.0)
        assert "500" in str(excinfo.value)
        self.inbound.assert_not_awaited()

    async def test_send_timeout(self):
        transport = self.make_transport(
            "/slow", settings={"transport.http_timeout": 0.1}
        )
        with pytest.raises(OutboundTransportError):
            await asyncio.wait_for(transport.send(b"{}"), 5.0)

    async def test_send_unreachable(self):
        transport = HttpTransport("http://localhost:1/", self.inbound)
        with pytest.raises(OutboundTransportError):
            await asyncio.wait_for(transport.send(b"{}"), 5.0)

    async def test_shared_session_left_open(self):
        async with ClientSession() as session:
            transport = self.make_transport(session=session)
            await asyncio.wait_for(transport.send(b"{}"), 5.0)
            await transport.close()
            assert not session.closed
        assert self.message_results == [b"{}"]

    def test_properties(self):
        assert HttpTransport.schemes == ("http", "https")
        assert HttpTransport.needs_return_route_poll

    def test_no_endpoint(self):
        with pytest.raises(OutboundTransportError):
            HttpTransport("")
