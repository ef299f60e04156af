"""Transport-related error classes and codes."""

from ..core.error import BaseError


class TransportError(BaseError):
    """Base class for all transport errors."""


class WireFormatError(TransportError):
    """Base class for wire-format errors."""


class CryptoError(WireFormatError):
    """A message could not be sealed or opened."""

    error_code = "crypto_error"


class DecodeError(WireFormatError):
    """Decrypted content is not a well-formed message."""

    error_code = "decode_error"
