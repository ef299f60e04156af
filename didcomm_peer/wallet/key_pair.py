"""Local signing keypair owned by a connection."""

from typing import Mapping, Union

import nacl.bindings

from .error import WalletError
from .util import b58_to_bytes, bytes_to_b58, random_seed


class KeyPair:
    """
    An Ed25519 keypair kept in both binary and base58 form.

    The binary form feeds the envelope crypto; the base58 form is what gets
    persisted and displayed.
    """

    def __init__(self, public_key: bytes, private_key: bytes):
        """
        Initialize a KeyPair instance.

        Args:
            public_key: The 32 byte Ed25519 verification key
            private_key: The 64 byte Ed25519 secret key

        Raises:
            WalletError: If the key material has the wrong length

        """
        if len(public_key) != nacl.bindings.crypto_sign_PUBLICKEYBYTES:
            raise WalletError("Public key must be 32 bytes in length")
        if len(private_key) != nacl.bindings.crypto_sign_SECRETKEYBYTES:
            raise WalletError("Private key must be 64 bytes in length")
        self._public_key = bytes(public_key)
        self._private_key = bytes(private_key)
        self._public_key_b58 = bytes_to_b58(self._public_key)
        self._private_key_b58 = bytes_to_b58(self._private_key)

    @classmethod
    def create(cls, seed: Union[str, bytes] = None) -> "KeyPair":
        """Create a keypair from a 32 byte seed, or a random one."""
        seed = validate_seed(seed) or random_seed()
        pk, sk = nacl.bindings.crypto_sign_seed_keypair(seed)
        return cls(pk, sk)

    @classmethod
    def from_b58(cls, public_key_b58: str, private_key_b58: str) -> "KeyPair":
        """Decode a keypair from its base58 encodings."""
        return cls(b58_to_bytes(public_key_b58), b58_to_bytes(private_key_b58))

    @property
    def public_key(self) -> bytes:
        """Accessor for the binary verification key."""
        return self._public_key

    @property
    def private_key(self) -> bytes:
        """Accessor for the binary secret key."""
        return self._private_key

    @property
    def public_key_b58(self) -> str:
        """Accessor for the base58 verification key."""
        return self._public_key_b58

    @property
    def private_key_b58(self) -> str:
        """Accessor for the base58 secret key."""
        return self._private_key_b58

    def to_b58(self) -> Mapping[str, str]:
        """Return the persisted base58 form of this keypair."""
        return {"privateKey": self._private_key_b58, "publicKey": self._public_key_b58}

    def __eq__(self, other) -> bool:
        """Compare key material."""
        if not isinstance(other, KeyPair):
            return False
        return (
            self._public_key == other._public_key
            and self._private_key == other._private_key
        )

    def __repr__(self) -> str:
        """Format for debugging, leaving out the secret."""
        return f"<{self.__class__.__name__}(public_key_b58={self._public_key_b58!r})>"


def validate_seed(seed: Union[str, bytes]) -> bytes:
    """
    Convert a seed parameter to standard format and check length.

    Args:
        seed: The seed to validate

    Returns:
        The validated and encoded seed

    """
    if not seed:
        return None
    if isinstance(seed, str):
        seed = seed.encode("ascii")
    if not isinstance(seed, bytes):
        raise WalletError("Seed value is not a string or bytes")
    if len(seed) != 32:
        raise WalletError("Seed value must be 32 bytes in length")
    return seed
