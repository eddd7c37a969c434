from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from eth_account import Account
from eth_account.signers.local import LocalAccount
from loguru import logger
from web3 import AsyncWeb3
from web3.logs import DISCARD

from hybrid_launch.core.clients.AnvilDevClient import AnvilDevClient
from hybrid_launch.core.clients.chain_errors import (
    ChainClientError,
    ErrorKind,
    normalize_chain_error,
)
from hybrid_launch.core.constants.base import DEFAULT_TRANSACTION_TIMEOUT
from hybrid_launch.core.utils.transaction import (
    make_sign_callback,
    send_transaction,
    send_unsigned_transaction,
)
from hybrid_launch.core.utils.web3 import get_web3, is_dev_chain

Sender = LocalAccount | str | None


class ChainClient:
    """Contract deploys, calls and receipts against a single RPC endpoint.

    ``dev`` is populated only on local development chains; production endpoints
    get ``None`` and any time-travel or impersonation request must check it.
    """

    def __init__(
        self,
        web3: AsyncWeb3,
        account: LocalAccount,
        dev: AnvilDevClient | None = None,
        *,
        receipt_timeout: float = DEFAULT_TRANSACTION_TIMEOUT,
    ):
        self.web3 = web3
        self.account = account
        self.dev = dev
        self.receipt_timeout = receipt_timeout
        self._chain_id: int | None = None

    @property
    def address(self) -> str:
        return self.account.address

    async def chain_id(self) -> int:
        if self._chain_id is None:
            try:
                self._chain_id = int(await self.web3.eth.chain_id)
            except Exception as exc:
                raise normalize_chain_error(exc) from exc
        return self._chain_id

    @staticmethod
    def account_for(private_key: str) -> LocalAccount:
        return Account.from_key(private_key)

    def _contract(self, target: str, abi: list[dict[str, Any]]):
        return self.web3.eth.contract(
            address=AsyncWeb3.to_checksum_address(target), abi=abi
        )

    def encode_call_data(
        self,
        *,
        target: str,
        abi: list[dict[str, Any]],
        fn_name: str,
        args: tuple | list = (),
    ) -> str:
        try:
            return self._contract(target, abi).encode_abi(fn_name, args=list(args))
        except (ValueError, TypeError) as exc:
            raise ChainClientError(
                ErrorKind.ENCODING, f"Failed to encode {fn_name}: {exc}"
            ) from exc

    def _sender_address(self, sender: Sender) -> str:
        if sender is None:
            return self.account.address
        if isinstance(sender, str):
            return AsyncWeb3.to_checksum_address(sender)
        return sender.address

    async def _submit(self, tx: dict[str, Any], sender: Sender) -> dict[str, Any]:
        try:
            tx["chainId"] = await self.chain_id()
            if isinstance(sender, str):
                txn_hash = await send_unsigned_transaction(
                    self.web3, tx, timeout=self.receipt_timeout
                )
            else:
                account = sender or self.account
                txn_hash = await send_transaction(
                    self.web3,
                    tx,
                    make_sign_callback(account),
                    timeout=self.receipt_timeout,
                )
            receipt = await self.web3.eth.get_transaction_receipt(txn_hash)
        except Exception as exc:
            raise normalize_chain_error(exc) from exc
        return dict(receipt)

    async def deploy(
        self,
        *,
        abi: list[dict[str, Any]],
        bytecode: str,
        args: tuple | list = (),
    ) -> str:
        try:
            factory = self.web3.eth.contract(abi=abi, bytecode=bytecode)
            data = factory.constructor(*args).data_in_transaction
        except (ValueError, TypeError) as exc:
            raise ChainClientError(
                ErrorKind.ENCODING, f"Failed to encode constructor: {exc}"
            ) from exc

        tx = {"from": self.account.address, "data": data, "value": 0}
        receipt = await self._submit(tx, None)
        address = receipt.get("contractAddress")
        if not address:
            raise ChainClientError(
                ErrorKind.RPC,
                "Deploy transaction succeeded but receipt has no contractAddress",
                _hash_hex(receipt.get("transactionHash")),
            )
        return AsyncWeb3.to_checksum_address(address)

    async def transact(
        self,
        *,
        target: str,
        abi: list[dict[str, Any]],
        fn_name: str,
        args: tuple | list = (),
        value: int = 0,
        sender: Sender = None,
        gas: int | None = None,
    ) -> dict[str, Any]:
        data = self.encode_call_data(target=target, abi=abi, fn_name=fn_name, args=args)
        tx: dict[str, Any] = {
            "from": self._sender_address(sender),
            "to": AsyncWeb3.to_checksum_address(target),
            "data": data,
            "value": int(value),
        }
        if gas:
            tx["gas"] = int(gas)
        logger.debug(f"{fn_name} -> {target}")
        return await self._submit(tx, sender)

    async def call(
        self,
        *,
        target: str,
        abi: list[dict[str, Any]],
        fn_name: str,
        args: tuple | list = (),
        sender: Sender = None,
        value: int = 0,
    ) -> Any:
        """Read-only ``eth_call``; also used to dry-run a state-changing call."""
        contract = self._contract(target, abi)
        params: dict[str, Any] = {"from": self._sender_address(sender)}
        if value:
            params["value"] = int(value)
        try:
            return await getattr(contract.functions, fn_name)(*args).call(params)
        except Exception as exc:
            raise normalize_chain_error(exc) from exc

    def decode_events(
        self,
        receipt: dict[str, Any],
        *,
        address: str,
        abi: list[dict[str, Any]],
        event_name: str,
    ) -> list[dict[str, Any]]:
        contract = self._contract(address, abi)
        event = getattr(contract.events, event_name)()
        needle = str(address).lower()
        decoded = event.process_receipt(receipt, errors=DISCARD)
        return [
            dict(log["args"])
            for log in decoded
            if str(log.get("address", "")).lower() == needle
        ]

    async def get_block_timestamp(self) -> int:
        try:
            block = await self.web3.eth.get_block("latest")
        except Exception as exc:
            raise normalize_chain_error(exc) from exc
        return int(block["timestamp"])

    async def send_value(self, *, to: str, amount: int) -> dict[str, Any]:
        tx = {
            "from": self.account.address,
            "to": AsyncWeb3.to_checksum_address(to),
            "value": int(amount),
        }
        return await self._submit(tx, None)

    async def close(self) -> None:
        await self.web3.provider.disconnect()


def _hash_hex(value: Any) -> str | None:
    if value is None:
        return None
    text = value.hex() if hasattr(value, "hex") else str(value)
    return text if text.startswith("0x") else f"0x{text}"


@asynccontextmanager
async def connect_chain_client(rpc_url: str, private_key: str):
    web3 = get_web3(rpc_url)
    dev = AnvilDevClient(web3) if await is_dev_chain(web3) else None
    if dev is None:
        logger.info(f"{rpc_url} is not a development chain; dev extensions disabled")
    client = ChainClient(web3, Account.from_key(private_key), dev)
    try:
        yield client
    finally:
        await client.close()
