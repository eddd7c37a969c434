from hybrid_launch.core.clients.AnvilDevClient import AnvilDevClient
from hybrid_launch.core.clients.chain_errors import (
    ChainClientError,
    ErrorKind,
    normalize_chain_error,
)
from hybrid_launch.core.clients.ChainClient import ChainClient, connect_chain_client

__all__ = [
    "AnvilDevClient",
    "ChainClient",
    "ChainClientError",
    "ErrorKind",
    "connect_chain_client",
    "normalize_chain_error",
]
