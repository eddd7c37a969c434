import math
from collections.abc import Callable
from typing import Any

from eth_account.signers.local import LocalAccount
from loguru import logger
from web3 import AsyncWeb3

from hybrid_launch.core.constants.base import (
    DEFAULT_TRANSACTION_TIMEOUT,
    GAS_BUFFER_MULTIPLIER,
    MAX_BASE_FEE_GROWTH_MULTIPLIER,
    SUGGESTED_GAS_PRICE_MULTIPLIER,
    SUGGESTED_PRIORITY_FEE_MULTIPLIER,
)


class TransactionRevertedError(RuntimeError):
    def __init__(
        self,
        txn_hash: str,
        receipt: dict[str, Any] | None = None,
        message: str | None = None,
    ):
        self.txn_hash = txn_hash
        self.receipt = receipt or {}
        super().__init__(message or f"Transaction reverted: {txn_hash}")


def _raise_revert_error(
    txn_hash: str, receipt: dict[str, Any], transaction: dict[str, Any]
) -> None:
    gas_used = int(receipt.get("gasUsed") or 0)
    gas_limit = int(transaction.get("gas") or 0)

    oogs = bool(gas_used and gas_limit and gas_used >= gas_limit)
    suffix = (
        f" gasUsed={gas_used} gasLimit={gas_limit}"
        + (" (likely out of gas)" if oogs else "")
        if gas_used or gas_limit
        else ""
    )
    raise TransactionRevertedError(
        txn_hash,
        receipt,
        message=f"Transaction reverted (status=0): {txn_hash}{suffix}",
    )


def _get_transaction_from_address(transaction: dict) -> str:
    if "from" not in transaction:
        raise ValueError("Transaction does not contain from address")
    return AsyncWeb3.to_checksum_address(transaction["from"])


async def nonce_transaction(web3: AsyncWeb3, transaction: dict) -> dict:
    transaction = transaction.copy()
    from_address = _get_transaction_from_address(transaction)
    transaction["nonce"] = await web3.eth.get_transaction_count(
        from_address, block_identifier="pending"
    )
    return transaction


async def gas_price_transaction(web3: AsyncWeb3, transaction: dict) -> dict:
    transaction = transaction.copy()

    latest_block = await web3.eth.get_block("latest")
    base_fee = latest_block.get("baseFeePerGas")
    if base_fee is None:
        gas_price = await web3.eth.gas_price
        transaction["gasPrice"] = int(gas_price * SUGGESTED_GAS_PRICE_MULTIPLIER)
        return transaction

    lookback_blocks = 10
    percentile = 80
    fee_history = await web3.eth.fee_history(lookback_blocks, "latest", [percentile])
    rewards = [i[0] for i in (fee_history.get("reward") or []) if i]
    priority_fee = sum(rewards) // len(rewards) if rewards else 0

    transaction["maxFeePerGas"] = int(
        base_fee * MAX_BASE_FEE_GROWTH_MULTIPLIER
        + priority_fee * SUGGESTED_PRIORITY_FEE_MULTIPLIER
    )
    transaction["maxPriorityFeePerGas"] = int(
        priority_fee * SUGGESTED_PRIORITY_FEE_MULTIPLIER
    )
    return transaction


async def gas_limit_transaction(web3: AsyncWeb3, transaction: dict) -> dict:
    transaction = transaction.copy()
    # Explicit limits (swaps through fee-on-transfer paths) are kept as-is.
    if transaction.get("gas"):
        return transaction

    gas_limit = await web3.eth.estimate_gas(transaction, block_identifier="latest")
    # Swaps can use more gas at execution than at estimation time.
    transaction["gas"] = int(math.ceil(gas_limit * GAS_BUFFER_MULTIPLIER))
    return transaction


async def wait_for_transaction_receipt(
    web3: AsyncWeb3,
    txn_hash: str,
    poll_interval: float = 0.1,
    timeout: float = DEFAULT_TRANSACTION_TIMEOUT,
) -> dict:
    if isinstance(txn_hash, str) and not txn_hash.startswith("0x"):
        txn_hash = f"0x{txn_hash}"

    receipt = await web3.eth.wait_for_transaction_receipt(
        txn_hash, poll_latency=poll_interval, timeout=timeout
    )
    if receipt.get("status") == 0:
        raise TransactionRevertedError(txn_hash, dict(receipt))
    return dict(receipt)


def _normalize_hash(txn_hash: Any) -> str:
    value = txn_hash.hex() if hasattr(txn_hash, "hex") else str(txn_hash)
    return value if value.startswith("0x") else f"0x{value}"


async def _await_inclusion(
    web3: AsyncWeb3, txn_hash: str, transaction: dict, timeout: float
) -> None:
    try:
        await wait_for_transaction_receipt(web3, txn_hash, timeout=timeout)
    except TransactionRevertedError as exc:
        _raise_revert_error(txn_hash, exc.receipt, transaction)


async def send_transaction(
    web3: AsyncWeb3,
    transaction: dict,
    sign_callback: Callable,
    wait_for_receipt: bool = True,
    timeout: float = DEFAULT_TRANSACTION_TIMEOUT,
) -> str:
    if sign_callback is None:
        raise ValueError("sign_callback must be provided to send transaction")

    logger.debug(f"Broadcasting transaction {transaction}...")
    transaction = await gas_limit_transaction(web3, transaction)
    transaction = await nonce_transaction(web3, transaction)
    transaction = await gas_price_transaction(web3, transaction)
    signed_transaction = await sign_callback(transaction)
    txn_hash = _normalize_hash(await web3.eth.send_raw_transaction(signed_transaction))
    logger.debug(f"Transaction broadcasted: {txn_hash}")
    if wait_for_receipt:
        await _await_inclusion(web3, txn_hash, transaction, timeout)
    return txn_hash


async def send_unsigned_transaction(
    web3: AsyncWeb3,
    transaction: dict,
    wait_for_receipt: bool = True,
    timeout: float = DEFAULT_TRANSACTION_TIMEOUT,
) -> str:
    """Send via ``eth_sendTransaction``; the node signs (impersonated accounts)."""
    logger.debug(f"Sending node-signed transaction {transaction}...")
    transaction = await gas_limit_transaction(web3, transaction)
    txn_hash = _normalize_hash(await web3.eth.send_transaction(transaction))
    if wait_for_receipt:
        await _await_inclusion(web3, txn_hash, transaction, timeout)
    return txn_hash


def make_sign_callback(account: LocalAccount) -> Callable:
    async def sign_callback(tx: dict) -> bytes:
        signed = account.sign_transaction(tx)
        return signed.raw_transaction

    return sign_callback

