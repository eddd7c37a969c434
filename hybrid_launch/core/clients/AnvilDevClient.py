from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from loguru import logger
from web3 import AsyncWeb3

from hybrid_launch.core.clients.chain_errors import normalize_chain_error


class AnvilDevClient:
    """Development-chain extensions (anvil / hardhat JSON-RPC methods).

    Only available when the node identifies itself as a local dev chain; stages
    that need time travel or impersonation check for this capability first.
    """

    def __init__(self, web3: AsyncWeb3):
        self.web3 = web3

    async def _rpc(self, method: str, params: list[Any]) -> Any:
        try:
            return await self.web3.manager.coro_request(method, params)
        except Exception as exc:
            raise normalize_chain_error(exc) from exc

    async def mine(self) -> None:
        await self._rpc("evm_mine", [])

    async def increase_time(self, seconds: int) -> None:
        logger.debug(f"evm_increaseTime {seconds}s")
        await self._rpc("evm_increaseTime", [int(seconds)])
        await self.mine()

    async def set_balance(self, address: str, amount_wei: int) -> None:
        await self._rpc(
            "anvil_setBalance",
            [AsyncWeb3.to_checksum_address(address), hex(int(amount_wei))],
        )

    async def impersonate(self, address: str) -> None:
        await self._rpc(
            "anvil_impersonateAccount", [AsyncWeb3.to_checksum_address(address)]
        )

    async def stop_impersonating(self, address: str) -> None:
        await self._rpc(
            "anvil_stopImpersonatingAccount", [AsyncWeb3.to_checksum_address(address)]
        )

    @asynccontextmanager
    async def impersonating(self, address: str):
        await self.impersonate(address)
        try:
            yield AsyncWeb3.to_checksum_address(address)
        finally:
            await self.stop_impersonating(address)
