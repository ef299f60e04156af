"""Envelope encryption capability used to seal and open packed messages."""

import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from typing import NamedTuple, Optional, Sequence, Union

import nacl.bindings
import nacl.exceptions

from .crypto import decode_pack_message, encode_pack_message
from .error import WalletError
from .key_pair import KeyPair

LOGGER = logging.getLogger(__name__)


class UnpackResult(NamedTuple):
    """Plaintext and key details recovered from a packed message."""

    message: str
    sender_key: Optional[str]
    recipient_key: str


class EnvelopeCrypto(ABC):
    """
    Base class for envelope encryption engines.

    An engine may need asynchronous initialization before first use; callers
    await `ready()`, which runs `setup()` exactly once per instance.
    """

    def __init__(self):
        """Initialize the engine handle."""
        self._ready = False
        self._lock: asyncio.Lock = None

    @property
    def is_ready(self) -> bool:
        """Check whether initialization has completed."""
        return self._ready

    async def ready(self):
        """Wait for the engine to be initialized, initializing it if necessary."""
        if self._ready:
            return
        if not self._lock:
            self._lock = asyncio.Lock()
        async with self._lock:
            if not self._ready:
                await self.setup()
                self._ready = True
                LOGGER.debug("Envelope crypto engine ready: %s", self)

    async def setup(self):
        """Perform one-time initialization of the engine."""

    @abstractmethod
    async def pack_message(
        self, message: str, recipient_keys: Sequence[bytes], my_key: KeyPair
    ) -> bytes:
        """
        Encrypt a plaintext message for a set of recipients.

        Args:
            message: The plaintext to encrypt
            recipient_keys: Binary verification keys of the recipients
            my_key: The sender's keypair

        Returns:
            The packed message

        """

    @abstractmethod
    async def unpack_message(
        self, packed: Union[str, bytes], my_key: KeyPair
    ) -> UnpackResult:
        """
        Decrypt a packed message addressed to the local keypair.

        Raises:
            WalletError: If the message cannot be decrypted

        """


class NaclEnvelopeCrypto(EnvelopeCrypto):
    """DIDComm v1 authcrypt engine backed by libsodium."""

    async def setup(self):
        """Initialize libsodium."""
        nacl.bindings.sodium_init()

    async def pack_message(
        self, message: str, recipient_keys: Sequence[bytes], my_key: KeyPair
    ) -> bytes:
        """Encrypt a plaintext message for a set of recipients."""
        try:
            return encode_pack_message(message, recipient_keys, my_key.private_key)
        except (ValueError, nacl.exceptions.CryptoError) as err:
            raise WalletError("Message pack failed") from err

    async def unpack_message(
        self, packed: Union[str, bytes], my_key: KeyPair
    ) -> UnpackResult:
        """Decrypt a packed message addressed to the local keypair."""

        def find_key(kid: str) -> Optional[bytes]:
            return my_key.private_key if kid == my_key.public_key_b58 else None

        if isinstance(packed, str):
            packed = packed.encode("utf-8")
        try:
            message, sender_vk, recip_vk = decode_pack_message(packed, find_key)
        except (ValueError, TypeError, KeyError, AttributeError) as err:
            raise WalletError("Message unpack failed") from err
        return UnpackResult(message, sender_vk, recip_vk)

    def __repr__(self) -> str:
        """Format for debugging."""
        return f"<{self.__class__.__name__} ready={self._ready}>"


_DEFAULT_CRYPTO: EnvelopeCrypto = None
_DEFAULT_CRYPTO_LOCK = threading.Lock()


def default_crypto() -> EnvelopeCrypto:
    """Return the process-wide shared envelope crypto engine."""
    global _DEFAULT_CRYPTO
    with _DEFAULT_CRYPTO_LOCK:
        if not _DEFAULT_CRYPTO:
            _DEFAULT_CRYPTO = NaclEnvelopeCrypto()
        return _DEFAULT_CRYPTO
