"""Single error type for everything the chain clients surface to callers."""

from __future__ import annotations

from enum import Enum

from web3.exceptions import (
    ContractLogicError,
    TimeExhausted,
    Web3RPCError,
)

from hybrid_launch.core.utils.transaction import TransactionRevertedError


class ErrorKind(str, Enum):
    REVERTED = "reverted"
    TIMEOUT = "timeout"
    RPC = "rpc"
    ENCODING = "encoding"


class ChainClientError(RuntimeError):
    def __init__(self, kind: ErrorKind, cause: str, tx_hash: str | None = None):
        self.kind = kind
        self.cause = cause
        self.tx_hash = tx_hash
        super().__init__(cause)


def _rpc_error_message(exc: Exception) -> str:
    # Providers put {"code", "message", "data"} dicts in args[0].
    if exc.args and isinstance(exc.args[0], dict):
        payload = exc.args[0]
        return str(payload.get("message") or payload)
    return str(exc) or type(exc).__name__


def normalize_chain_error(exc: Exception) -> ChainClientError:
    """Collapse web3/provider exception shapes into one ``ChainClientError``."""
    if isinstance(exc, ChainClientError):
        return exc
    if isinstance(exc, TransactionRevertedError):
        return ChainClientError(ErrorKind.REVERTED, str(exc), exc.txn_hash)
    if isinstance(exc, ContractLogicError):
        return ChainClientError(ErrorKind.REVERTED, exc.message or str(exc))
    if isinstance(exc, TimeExhausted):
        return ChainClientError(ErrorKind.TIMEOUT, str(exc))
    if isinstance(exc, (TypeError, OverflowError)):
        return ChainClientError(ErrorKind.ENCODING, str(exc))
    if isinstance(exc, Web3RPCError):
        message = exc.message if getattr(exc, "message", None) else str(exc)
        kind = ErrorKind.REVERTED if "revert" in message.lower() else ErrorKind.RPC
        return ChainClientError(kind, message)
    message = _rpc_error_message(exc)
    kind = ErrorKind.REVERTED if "revert" in message.lower() else ErrorKind.RPC
    return ChainClientError(kind, message)
