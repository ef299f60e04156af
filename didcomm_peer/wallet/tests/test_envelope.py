import json
from unittest import IsolatedAsyncioTestCase, mock

import pytest

from .. import envelope as test_module
from ..error import WalletError
from ..key_pair import KeyPair

MESSAGE = json.dumps({"@type": "test", "content": "Hello World"})


class TestNaclEnvelopeCrypto(IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.crypto = test_module.NaclEnvelopeCrypto()
        self.sender = KeyPair.create()
        self.recip = KeyPair.create()

    async def test_ready_once(self):
        assert not self.crypto.is_ready
        with mock.patch.object(
            self.crypto, "setup", mock.AsyncMock()
        ) as mock_setup:
            await self.crypto.ready()
            await self.crypto.ready()
            assert self.crypto.is_ready
            mock_setup.assert_awaited_once()

    async def test_pack_unpack(self):
        await self.crypto.ready()
        packed = await self.crypto.pack_message(
            MESSAGE, [self.recip.public_key], self.sender
        )
        assert isinstance(packed, bytes)

        result = await self.crypto.unpack_message(packed, self.recip)
        assert result.message == MESSAGE
        assert result.sender_key == self.sender.public_key_b58
        assert result.recipient_key == self.recip.public_key_b58

        result = await self.crypto.unpack_message(packed.decode("utf-8"), self.recip)
        assert result.message == MESSAGE

    async def test_pack_no_recipients(self):
        with pytest.raises(WalletError):
            await self.crypto.pack_message(MESSAGE, [], self.sender)

    async def test_unpack_not_addressed(self):
        packed = await self.crypto.pack_message(
            MESSAGE, [self.recip.public_key], self.sender
        )
        with pytest.raises(WalletError):
            await self.crypto.unpack_message(packed, self.sender)

    async def test_unpack_garbage(self):
        with pytest.raises(WalletError):
            await self.crypto.unpack_message(b"{}", self.recip)

    async def test_unpack_unexpected_error(self):
        with mock.patch.object(
            test_module,
            "decode_pack_message",
            mock.MagicMock(side_effect=TypeError("unhashable type")),
        ):
            with pytest.raises(WalletError):
                await self.crypto.unpack_message(b"{}", self.recip)

    def test_default_crypto_shared(self):
        assert test_module.default_crypto() is test_module.default_crypto()
        assert isinstance(
            test_module.default_crypto(), test_module.NaclEnvelopeCrypto
        )
