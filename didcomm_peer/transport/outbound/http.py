"""Http outbound transport."""

import asyncio
import logging
from typing import Union

from aiohttp import ClientError, ClientSession, ClientTimeout, DummyCookieJar

from ..pack_format import DIDCOMM_V0_MIME_TYPE, DIDCOMM_V1_MIME_TYPE
from .base import BaseOutboundTransport, OutboundTransportError

LOGGER = logging.getLogger(__name__)


class HttpTransport(BaseOutboundTransport):
    """
    Http outbound transport class.

    Each message is a single POST. The partner cannot push messages over this
    transport, so any reply must come back in the response body.
    """

    schemes = ("http", "https")
    needs_return_route_poll = True

    @property
    def timeout(self) -> ClientTimeout:
        """Accessor for the request timeout."""
        return ClientTimeout(total=self.settings.get_timeout("transport.http_timeout"))

    async def send(self, payload: Union[str, bytes]):
        """
        Post a packed message and route any non-empty response as inbound.

        Args:
            payload: message payload in string or byte format

        Raises:
            OutboundTransportError: On network failure or a non-2xx status

        """
        if self.settings.get_bool("transport.emit_new_mime_type"):
            headers = {"Content-Type": DIDCOMM_V1_MIME_TYPE}
        else:
            headers = {"Content-Type": DIDCOMM_V0_MIME_TYPE}

        LOGGER.debug("Posting to %s; Headers: %s", self.endpoint, headers)
        if self.client_session:
            body = await self._post(self.client_session, payload, headers)
        else:
            async with ClientSession(
                cookie_jar=DummyCookieJar(), trust_env=True
            ) as session:
                body = await self._post(session, payload, headers)

        if not body or not body.strip():
            LOGGER.debug("No response for post to %s; continuing", self.endpoint)
            return
        await self.deliver_inbound(body)

    async def _post(
        self, session: ClientSession, payload: Union[str, bytes], headers: dict
    ) -> bytes:
        try:
            async with session.post(
                self.endpoint, data=payload, headers=headers, timeout=self.timeout
            ) as response:
                if response.status < 200 or response.status > 299:
                    raise OutboundTransportError(
                        (
                            f"Unexpected response status {response.status}, "
                            f"caused by: {response.reason}"
                        )
                    )
                return await response.read()
        except (ClientError, asyncio.TimeoutError) as err:
            raise OutboundTransportError(
                f"Error posting message to {self.endpoint}"
            ) from err
