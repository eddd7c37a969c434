"""
Trading stage: warp past the sniper-tax window and push buy/sell volume.
"""

from __future__ import annotations

from eth_account.signers.local import LocalAccount
from eth_utils import to_bytes
from loguru import logger

from hybrid_launch.core.clients.ChainClient import ChainClientError
from hybrid_launch.core.constants import ZERO_ADDRESS
from hybrid_launch.core.constants.algebra_abi import SWAP_ROUTER_ABI
from hybrid_launch.core.constants.base import DEADLINE_SECONDS, SWAP_GAS_LIMIT
from hybrid_launch.core.constants.devchain import TEST_ACCOUNTS
from hybrid_launch.core.engine.manifest import TradingStageData

from .constants import SNIPER_TAX_WARP_PADDING, TRADE_ETH, TRADER_COUNT

STAGE = "trading"


def _swap_params(
    token_in: str, token_out: str, recipient: str, deadline: int, amount_in: int
) -> tuple:
    # (tokenIn, tokenOut, deployer, recipient, deadline, amountIn, amountOutMinimum, limitSqrtPrice)
    return (token_in, token_out, ZERO_ADDRESS, recipient, deadline, amount_in, 0, 0)


class TradingStageMixin:
    async def _router_call(
        self, fn_name: str, *args, trader: LocalAccount, value: int = 0
    ):
        return await self.client.call(
            target=self.protocol.swap_router,
            abi=SWAP_ROUTER_ABI,
            fn_name=fn_name,
            args=args,
            sender=trader,
            value=value,
        )

    async def _router_tx(
        self, fn_name: str, *args, trader: LocalAccount, value: int = 0
    ):
        return await self.client.transact(
            target=self.protocol.swap_router,
            abi=SWAP_ROUTER_ABI,
            fn_name=fn_name,
            args=args,
            sender=trader,
            value=value,
            gas=SWAP_GAS_LIMIT,
        )

    async def _buy(self, trader: LocalAccount, deadline: int) -> bool:
        params = _swap_params(
            self.protocol.weth, self.contracts.token, trader.address, deadline, TRADE_ETH
        )
        router = self.protocol.swap_router
        calls = [
            to_bytes(
                hexstr=self.client.encode_call_data(
                    target=router,
                    abi=SWAP_ROUTER_ABI,
                    fn_name="exactInputSingle",
                    args=(params,),
                )
            ),
            to_bytes(
                hexstr=self.client.encode_call_data(
                    target=router, abi=SWAP_ROUTER_ABI, fn_name="refundNativeToken"
                )
            ),
        ]
        try:
            await self._router_call("multicall", calls, trader=trader, value=TRADE_ETH)
        except ChainClientError as exc:
            logger.warning(
                f"Swap simulation failed for {trader.address[:10]}...: {exc.cause}"
            )
            return False
        await self._router_tx("multicall", calls, trader=trader, value=TRADE_ETH)
        return True

    async def _sell_half(self, trader: LocalAccount, deadline: int) -> bool:
        balance = int(await self._token_call("balanceOf", trader.address))
        amount = balance // 2
        if amount <= 0:
            return False

        await self._token_tx("approve", self.protocol.swap_router, amount, sender=trader)
        params = _swap_params(
            self.contracts.token, self.protocol.weth, trader.address, deadline, amount
        )
        fn_name = "exactInputSingleSupportingFeeOnTransferTokens"
        try:
            await self._router_call(fn_name, params, trader=trader)
        except ChainClientError as exc:
            logger.warning(
                f"Sell simulation failed for {trader.address[:10]}...: {exc.cause}"
            )
            return False
        await self._router_tx(fn_name, params, trader=trader)
        return True

    async def stage_trading(self) -> TradingStageData:
        logger.info("Stage: trading (warp past sniper tax and generate volume)")
        dev = self._require_dev(STAGE)

        duration = int(self.launch_config["token"]["sniperTaxDuration"])
        await dev.increase_time(duration + SNIPER_TAX_WARP_PADDING)
        logger.info("Warped past sniper tax")

        await self._token_tx("setWhitelistMintEnabled", False)
        logger.info("Whitelist minting disabled")

        trade_count = 0
        for entry in TEST_ACCOUNTS[:TRADER_COUNT]:
            trader = self.client.account_for(entry["key"])
            try:
                deadline = await self.client.get_block_timestamp() + DEADLINE_SECONDS
                if not await self._buy(trader, deadline):
                    continue
                trade_count += 1
                if await self._sell_half(trader, deadline):
                    trade_count += 1
                logger.info(f"Trader {trader.address[:10]}... executed buy/sell")
            except ChainClientError as exc:
                logger.warning(f"Trader {trader.address[:10]}... failed: {exc.cause}")

        logger.info(f"Completed {trade_count} trades")
        return TradingStageData(sniper_tax_warped=True, trade_count=trade_count)
