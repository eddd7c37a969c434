"""
Full stage: staking, extra narrow-range positions, fee collection and the
investment schedule.
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from hybrid_launch.core.constants import ZERO_ADDRESS
from hybrid_launch.core.constants.algebra_abi import POSITION_MANAGER_ABI, WETH_ABI
from hybrid_launch.core.constants.base import DEADLINE_SECONDS
from hybrid_launch.core.constants.devchain import TEST_ACCOUNTS
from hybrid_launch.core.engine.manifest import FullStageData, Staker
from hybrid_launch.core.errors import StageError
from hybrid_launch.core.utils.tick_math import sort_tokens
from hybrid_launch.core.utils.units import format_units

from .constants import (
    FEE_COOLDOWN_SECONDS,
    IMPERSONATED_GAS_BALANCE,
    NARROW_RANGES,
    NARROW_TOKEN_AMOUNT,
    NARROW_WETH_AMOUNT,
    STAKER_COUNT,
)
from .types import even_bps_allocation

STAGE = "full"


class FullStageMixin:
    async def _weth_tx(self, fn_name: str, *args, value: int = 0) -> dict[str, Any]:
        return await self.client.transact(
            target=self.protocol.weth,
            abi=WETH_ABI,
            fn_name=fn_name,
            args=args,
            value=value,
        )

    def _minted_position_id(self, receipt: dict[str, Any]) -> int:
        transfers = self.client.decode_events(
            receipt,
            address=self.protocol.position_manager,
            abi=POSITION_MANAGER_ABI,
            event_name="Transfer",
        )
        for args in transfers:
            if str(args.get("from", "")).lower() == ZERO_ADDRESS:
                return int(args["tokenId"])
        raise StageError(STAGE, "Could not find NFT Transfer event in mint receipt")

    async def _fund_deployer_from_reserve(self, dev, amount: int) -> None:
        token = self.contracts.token
        async with dev.impersonating(token) as token_sender:
            await dev.set_balance(token, IMPERSONATED_GAS_BALANCE)
            await self._token_tx(
                "transfer", self.client.address, amount, sender=token_sender
            )

    async def _mint_narrow_positions(self) -> list[str]:
        token = self.contracts.token
        pm = self.protocol.position_manager
        order = sort_tokens(token, self.protocol.weth)
        amount0, amount1 = (
            (NARROW_TOKEN_AMOUNT, NARROW_WETH_AMOUNT)
            if order.target_is_token0
            else (NARROW_WETH_AMOUNT, NARROW_TOKEN_AMOUNT)
        )
        deadline = await self.client.get_block_timestamp() + DEADLINE_SECONDS

        minted: list[str] = []
        for lower, upper in NARROW_RANGES:
            await self._token_tx("approve", pm, NARROW_TOKEN_AMOUNT)
            await self._weth_tx("approve", pm, NARROW_WETH_AMOUNT)

            params = (
                order.token0,
                order.token1,
                ZERO_ADDRESS,
                lower,
                upper,
                amount0,
                amount1,
                0,
                0,
                token,
                deadline,
            )
            receipt = await self.client.transact(
                target=pm, abi=POSITION_MANAGER_ABI, fn_name="mint", args=(params,)
            )
            position_id = self._minted_position_id(receipt)

            await self._token_tx("approvePositionForLiquidityManager", position_id)
            await self._manager_tx("addPosition", position_id)
            minted.append(str(position_id))
            logger.info(f"Added narrow position #{position_id} ({lower}/{upper})")
        return minted

    async def _stake_test_users(self) -> list[Staker]:
        stakers: list[Staker] = []
        for entry in TEST_ACCOUNTS[:STAKER_COUNT]:
            account = self.client.account_for(entry["key"])
            balance = int(await self._token_call("balanceOf", account.address))
            if balance <= 0:
                continue
            amount = balance // 2
            await self._token_tx("stake", amount, sender=account)
            stakers.append(Staker(address=account.address, amount=str(amount)))
            logger.info(f"{account.address[:10]}... staked {format_units(amount)}")
        return stakers

    async def stage_full(self) -> FullStageData:
        logger.info("Stage: full (staking, positions and fees)")
        dev = self._require_dev(STAGE)

        await self._token_tx("enableStaking")
        logger.info("Staking enabled")

        await self._fund_deployer_from_reserve(
            dev, NARROW_TOKEN_AMOUNT * len(NARROW_RANGES)
        )
        await self._weth_tx("deposit", value=NARROW_WETH_AMOUNT * len(NARROW_RANGES))

        position_ids: list[str] = []
        mints = self.manifest.stage_data.mints
        if mints is not None:
            position_ids.append(mints.position_token_id)
        position_ids.extend(await self._mint_narrow_positions())

        stakers = await self._stake_test_users()

        await dev.increase_time(FEE_COOLDOWN_SECONDS)
        await self._manager_tx("collectFees")
        logger.info("Fees collected")

        active_ids = await self._manager_call("getActivePositionIds")
        allocations = even_bps_allocation(list(active_ids))
        if allocations:
            schedule = [
                {"positionId": int(a.position_id), "bps": a.bps} for a in allocations
            ]
            await self._manager_tx("setInvestmentSchedule", schedule)
            logger.info(f"Investment schedule set for {len(allocations)} positions")

        return FullStageData(
            staking_enabled=True,
            position_ids=position_ids,
            stakers=stakers,
            allocations=allocations,
        )
