"""Peer-to-peer DIDComm connection transport and envelope exchange."""

from .connections.connection import ConnectionDetail, from_record, new_connection
from .version import __version__

__all__ = ["ConnectionDetail", "from_record", "new_connection", "__version__"]
