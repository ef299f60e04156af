"""Seal and open application messages for one connection."""

import json
import logging
from typing import Mapping, Sequence, Union

from ..messaging.agent_message import AgentMessage
from ..messaging.models.base import BaseModelError
from ..wallet.envelope import EnvelopeCrypto
from ..wallet.error import WalletError
from ..wallet.key_pair import KeyPair
from ..wallet.util import b58_to_bytes
from .error import CryptoError, DecodeError

LOGGER = logging.getLogger(__name__)

DIDCOMM_V0_MIME_TYPE = "application/ssi-agent-wire"
DIDCOMM_V1_MIME_TYPE = "application/didcomm-envelope-enc"


class PackWireFormat:
    """Envelope codec bound to a partner's recipient keys and the local keypair."""

    def __init__(
        self,
        crypto: EnvelopeCrypto,
        my_key: KeyPair,
        recipient_keys: Sequence[str],
    ):
        """
        Initialize the pack wire format instance.

        Args:
            crypto: The envelope encryption engine
            my_key: The local keypair used for both sealing and opening
            recipient_keys: Base58 verification keys of the partner
        """
        if not my_key:
            raise CryptoError("A local keypair is required")
        self._crypto = crypto
        self._my_key = my_key
        self._recipient_keys = list(recipient_keys)

    @property
    def my_key(self) -> KeyPair:
        """Accessor for the local keypair."""
        return self._my_key

    @property
    def recipient_keys(self) -> Sequence[str]:
        """Accessor for the partner's base58 recipient keys."""
        return tuple(self._recipient_keys)

    async def seal(self, message: Union[AgentMessage, Mapping]) -> bytes:
        """
        Encrypt a message for the partner.

        A message without an `@id` is given a new one before sealing.

        Raises:
            CryptoError: If the message cannot be encrypted
            DecodeError: If the message cannot be serialized

        """
        try:
            message = AgentMessage.coerce(message)
            message.assign_id()
            plaintext = message.serialize(as_string=True)
        except (BaseModelError, TypeError, ValueError) as err:
            raise DecodeError("Message could not be serialized") from err

        try:
            recip_keys = [b58_to_bytes(key) for key in self._recipient_keys]
            await self._crypto.ready()
            return await self._crypto.pack_message(plaintext, recip_keys, self._my_key)
        except WalletError as err:
            raise CryptoError("Message could not be sealed") from err

    async def open(self, packed: Union[str, bytes]) -> AgentMessage:
        """
        Decrypt a packed message addressed to the local keypair.

        Raises:
            CryptoError: If decryption fails for any reason
            DecodeError: If the plaintext is not a JSON object

        """
        await self._crypto.ready()
        try:
            unpacked = await self._crypto.unpack_message(packed, self._my_key)
        except WalletError as err:
            raise CryptoError("Message could not be opened") from err

        try:
            parsed = json.loads(unpacked.message)
        except ValueError as err:
            raise DecodeError("Message JSON parsing failed") from err
        if not isinstance(parsed, dict):
            raise DecodeError("Message JSON result is not an object")
        try:
            return AgentMessage.deserialize(parsed)
        except BaseModelError as err:
            raise DecodeError("Message structure is invalid") from err
