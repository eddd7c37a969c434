"""
Mints stage: atomic pool launch, position lock, roles and the Merkle whitelist.
"""

from __future__ import annotations

import asyncio

from eth_utils import to_bytes, to_checksum_address
from loguru import logger

from hybrid_launch.core.constants.algebra_abi import ALGEBRA_POOL_ABI, LAUNCH_EVENT_ABI
from hybrid_launch.core.constants.devchain import TEST_ACCOUNTS
from hybrid_launch.core.engine.manifest import MintsStageData
from hybrid_launch.core.errors import StageError
from hybrid_launch.core.utils.merkle import WhitelistTree, build_whitelist
from hybrid_launch.core.utils.tick_math import (
    invert_sqrt_price_x96,
    plan_single_sided_range,
    sort_tokens,
)
from hybrid_launch.core.utils.units import format_units, parse_int_string

from .constants import SNIPER_TAX_QUOTE_AMOUNT

STAGE = "mints"


class MintsStageMixin:
    def _launch_amounts(self) -> tuple[int, int]:
        token_cfg = self.launch_config["token"]
        max_supply = parse_int_string(token_cfg["maxSupply"])
        initial_token = max_supply * int(token_cfg["liquidityReservePercent"]) // 100
        initial_weth = parse_int_string(
            self.launch_config["liquidity"]["initialWethAmount"]
        )
        return initial_token, initial_weth

    def _launch_price_and_range(
        self, *, target_is_token0: bool, single_sided: bool
    ) -> tuple[int, int, int]:
        liq = self.launch_config["liquidity"]
        configured = parse_int_string(liq["initialSqrtPriceX96"])
        # Configured price is quoted with the token as token1.
        sqrt_price = invert_sqrt_price_x96(configured) if target_is_token0 else configured
        tick_lower, tick_upper = int(liq["tickLower"]), int(liq["tickUpper"])
        if not single_sided:
            return sqrt_price, tick_lower, tick_upper

        planned = plan_single_sided_range(
            sqrt_price, tick_lower, tick_upper, target_is_token0=target_is_token0
        )
        side = "token0" if target_is_token0 else "token1"
        logger.info(
            f"Single-sided {side}: tickLower={planned.tick_lower}, "
            f"tickUpper={planned.tick_upper}"
        )
        return planned.sqrt_price_x96, planned.tick_lower, planned.tick_upper

    def whitelist_addresses(self) -> list[str]:
        addresses = [a["address"] for a in TEST_ACCOUNTS]
        extra = self.settings.user_address
        if extra and not any(a.lower() == extra.lower() for a in addresses):
            addresses.append(to_checksum_address(extra))
        return addresses

    async def _verify_launch(self, pool: str) -> None:
        liquidity, tax_result = await asyncio.gather(
            self.client.call(target=pool, abi=ALGEBRA_POOL_ABI, fn_name="liquidity"),
            self._token_call(
                "getSniperTaxAmount", pool, self.client.address, SNIPER_TAX_QUOTE_AMOUNT
            ),
        )
        logger.info(f"Pool active liquidity: {liquidity}")
        if int(liquidity) == 0:
            raise StageError(
                STAGE,
                "Pool liquidity is 0 after launch. The LP position is out of range. Aborting.",
            )

        tax = tax_result[0] if isinstance(tax_result, list | tuple) else tax_result
        if int(tax) == 0:
            raise StageError(STAGE, "Sniper tax not active after launch")
        logger.info(f"Sniper tax verified: {format_units(tax)} on 1 token")

    async def _grant_team_roles(self) -> None:
        team = self.launch_config["team"]
        roles = self.launch_config["roles"]
        artist = self._team_or(team.get("artist"), TEST_ACCOUNTS[0]["address"])
        dev = self._team_or(team.get("dev"), TEST_ACCOUNTS[1]["address"])
        await self._token_tx("grantRoles", artist, int(roles["artistRole"]))
        await self._token_tx("grantRoles", dev, int(roles["devRole"]))
        logger.info("Granted artist/dev roles")

    async def _publish_whitelist(self) -> WhitelistTree:
        tree = build_whitelist(self.whitelist_addresses())
        await self._token_tx("setMerkleRoot", to_bytes(hexstr=tree.root))
        if self.launch_config["whitelist"].get("enableAtLaunch") is True:
            await self._token_tx("setWhitelistMintEnabled", True)
            logger.info(f"Whitelist enabled with {len(tree.addresses)} addresses")
        else:
            logger.info(f"Whitelist root set for {len(tree.addresses)} addresses")
        return tree

    async def stage_mints(self) -> MintsStageData:
        logger.info("Stage: mints (atomic launch with liquidity)")
        token = self.contracts.token
        order = sort_tokens(token, self.protocol.weth)

        initial_token, initial_weth = self._launch_amounts()
        pct = self.launch_config["token"]["liquidityReservePercent"]
        logger.info(f"Initial token for LP: {format_units(initial_token)} ({pct}% of supply)")
        logger.info(f"Initial WETH for LP: {format_units(initial_weth)}")

        single_sided = initial_weth == 0
        sqrt_price, tick_lower, tick_upper = self._launch_price_and_range(
            target_is_token0=order.target_is_token0, single_sided=single_sided
        )

        balance = int(await self._token_call("balanceOf", token))
        if balance < initial_token:
            raise StageError(
                STAGE,
                f"Token contract balance ({format_units(balance)}) < required "
                f"({format_units(initial_token)})",
            )
        if tick_lower >= tick_upper:
            raise StageError(STAGE, f"Invalid tick range: {tick_lower} >= {tick_upper}")
        logger.info("Pre-launch validation passed")

        # Pool creation, price init, sniper-tax activation and LP mint in one tx.
        receipt = await self._token_tx(
            "launchWithLiquidity",
            self.protocol.algebra_factory,
            sqrt_price,
            tick_lower,
            tick_upper,
            initial_token,
            value=initial_weth,
        )
        events = self.client.decode_events(
            receipt,
            address=token,
            abi=LAUNCH_EVENT_ABI,
            event_name="LaunchedWithLiquidity",
        )
        if not events:
            raise StageError(
                STAGE, "Could not find LaunchedWithLiquidity event in receipt"
            )
        pool = to_checksum_address(events[0]["pool"])
        position_id = int(events[0]["positionTokenId"])
        logger.info(f"Atomic launch complete: pool {pool}, LP position #{position_id}")

        await self._verify_launch(pool)

        await self._token_tx("approvePositionForLiquidityManager", position_id)
        await self._manager_tx("addPosition", position_id)
        logger.info("Position added to LiquidityManager")
        await self._manager_tx("lockInitialLiquidity")
        logger.info("Initial liquidity locked")

        await self._grant_team_roles()
        tree = await self._publish_whitelist()

        return MintsStageData(
            pool=pool,
            position_token_id=str(position_id),
            merkle_root=tree.root,
            whitelist_addresses=list(tree.addresses),
            whitelist_proofs=tree.proofs,
            sqrt_price_x96=str(sqrt_price),
            tick_lower=tick_lower,
            tick_upper=tick_upper,
            single_sided=single_sided,
        )
