from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from eth_utils import to_checksum_address
from loguru import logger

from hybrid_launch.core.clients.AnvilDevClient import AnvilDevClient
from hybrid_launch.core.clients.ChainClient import (
    ChainClient,
    ChainClientError,
    Sender,
    connect_chain_client,
)
from hybrid_launch.core.config import LaunchSettings, load_settings
from hybrid_launch.core.constants import STAGES, ZERO_ADDRESS
from hybrid_launch.core.constants.devchain import TEST_ACCOUNTS
from hybrid_launch.core.engine.manifest import ContractRecord, DeploymentManifest
from hybrid_launch.core.errors import ConfigurationError, DeploymentError, StageError
from hybrid_launch.core.utils.forge import LaunchArtifacts, build_launch_artifacts
from hybrid_launch.core.utils.units import format_units, parse_int_string, to_wei_eth
from hybrid_launch.core.validation import validate_config

from .full_mixin import FullStageMixin
from .mints_mixin import MintsStageMixin
from .trading_mixin import TradingStageMixin
from .types import LaunchContracts, ProtocolAddresses


class LaunchOrchestrator(MintsStageMixin, TradingStageMixin, FullStageMixin):
    """Runs the post-deploy stages against already-linked contracts.

    Stages run strictly in order up to the requested one. The first exception
    stops the sequence and is recorded on the manifest; nothing is retried.
    """

    def __init__(
        self,
        client: ChainClient,
        launch_config: dict[str, Any],
        contracts: LaunchContracts,
        protocol: ProtocolAddresses,
        manifest: DeploymentManifest,
        settings: LaunchSettings | None = None,
    ):
        self.client = client
        self.launch_config = launch_config
        self.contracts = contracts
        self.protocol = protocol
        self.manifest = manifest
        self.settings = settings or LaunchSettings()

    def _require_dev(self, stage: str) -> AnvilDevClient:
        if self.client.dev is None:
            raise StageError(
                stage,
                f"Stage '{stage}' needs a development chain "
                "(time travel / impersonation); the RPC endpoint does not support it",
            )
        return self.client.dev

    @staticmethod
    def _team_or(value: str | None, fallback: str) -> str:
        if not value or value == ZERO_ADDRESS:
            return to_checksum_address(fallback)
        return to_checksum_address(value)

    async def _token_tx(
        self, fn_name: str, *args, value: int = 0, sender: Sender = None
    ) -> dict[str, Any]:
        return await self.client.transact(
            target=self.contracts.token,
            abi=self.contracts.token_abi,
            fn_name=fn_name,
            args=args,
            value=value,
            sender=sender,
        )

    async def _token_call(self, fn_name: str, *args) -> Any:
        return await self.client.call(
            target=self.contracts.token,
            abi=self.contracts.token_abi,
            fn_name=fn_name,
            args=args,
        )

    async def _manager_tx(self, fn_name: str, *args) -> dict[str, Any]:
        return await self.client.transact(
            target=self.contracts.manager,
            abi=self.contracts.manager_abi,
            fn_name=fn_name,
            args=args,
        )

    async def _manager_call(self, fn_name: str, *args) -> Any:
        return await self.client.call(
            target=self.contracts.manager,
            abi=self.contracts.manager_abi,
            fn_name=fn_name,
            args=args,
        )

    def _stage_runners(self) -> list[tuple[str, Callable[[], Awaitable[Any]]]]:
        return [
            ("mints", self.stage_mints),
            ("trading", self.stage_trading),
            ("full", self.stage_full),
        ]

    async def run_stages(self, stage: str) -> DeploymentManifest:
        if stage not in STAGES:
            raise ValueError(
                f"Invalid stage '{stage}'. Must be one of: {', '.join(STAGES)}"
            )
        target = STAGES.index(stage)

        for ordinal, (name, runner) in enumerate(self._stage_runners(), start=1):
            if ordinal > target:
                break
            try:
                data = await runner()
            except Exception as exc:
                message = exc.cause if isinstance(exc, ChainClientError) else str(exc)
                failed = exc.stage if isinstance(exc, StageError) else name
                logger.error(f"Stage error in '{failed}': {message}")
                self.manifest.record_failure(failed, message)
                break
            setattr(self.manifest.stage_data, name, data)
        return self.manifest


def _manifest_config(launch_config: dict[str, Any]) -> dict[str, Any]:
    token = launch_config["token"]
    return {
        "name": token["name"],
        "symbol": token["symbol"],
        "maxSupply": token["maxSupply"],
        "liquidityReservePercent": token["liquidityReservePercent"],
        "sniperTaxDuration": token["sniperTaxDuration"],
    }


async def _deploy_contracts(
    client: ChainClient,
    launch_config: dict[str, Any],
    artifacts: LaunchArtifacts,
    protocol: ProtocolAddresses,
    settings: LaunchSettings,
) -> LaunchContracts:
    token_cfg = launch_config["token"]
    deployer = client.address

    logger.info("Deploying hybrid token...")
    token = await client.deploy(
        abi=artifacts.token_abi,
        bytecode=artifacts.token_bytecode,
        args=(
            token_cfg["name"],
            token_cfg["symbol"],
            parse_int_string(token_cfg["maxSupply"]),
            int(token_cfg["liquidityReservePercent"]),
            int(token_cfg["projectReservePercent"]),
            protocol.weth,
            deployer,
            protocol.position_manager,
            token_cfg["unrevealedURI"],
            int(token_cfg["sniperTaxDuration"]),
        ),
    )
    logger.info(f"Token deployed at {token}")

    if settings.test_base_uri:
        await client.transact(
            target=token,
            abi=artifacts.token_abi,
            fn_name="setBaseURI",
            args=(settings.test_base_uri,),
        )
        await client.transact(target=token, abi=artifacts.token_abi, fn_name="reveal")
        logger.info(f"Test metadata set: {settings.test_base_uri} (revealed)")

    team = launch_config["team"]
    artist = LaunchOrchestrator._team_or(
        team.get("artist"), settings.artist_address or deployer
    )
    dev = LaunchOrchestrator._team_or(team.get("dev"), settings.dev_address or deployer)

    logger.info("Deploying LiquidityManager...")
    manager = await client.deploy(
        abi=artifacts.manager_abi,
        bytecode=artifacts.manager_bytecode,
        args=(
            token,
            protocol.position_manager,
            protocol.swap_router,
            protocol.algebra_factory,
            protocol.weth,
            artist,
            dev,
        ),
    )
    logger.info(f"LiquidityManager deployed at {manager}")

    await client.transact(
        target=token,
        abi=artifacts.token_abi,
        fn_name="setLiquidityManager",
        args=(manager,),
    )
    logger.info("LiquidityManager connected to token")

    return LaunchContracts(
        token=token,
        token_abi=artifacts.token_abi,
        manager=manager,
        manager_abi=artifacts.manager_abi,
    )


async def _fund_user(client: ChainClient, settings: LaunchSettings) -> bool:
    if not settings.user_address:
        return False
    amount = to_wei_eth(settings.user_funding_eth)
    logger.info(
        f"Funding {settings.user_address} with {format_units(amount)} ETH..."
    )
    try:
        await client.send_value(to=settings.user_address, amount=amount)
    except ChainClientError as exc:
        # manifest is already written at this point
        logger.error(f"Funding {settings.user_address} failed: {exc.cause}")
        return False
    logger.info("Funding complete")
    return True


async def _launch_with_client(
    client: ChainClient,
    launch_config: dict[str, Any],
    *,
    stage: str,
    settings: LaunchSettings,
    artifacts: LaunchArtifacts,
) -> DeploymentManifest:
    protocol = ProtocolAddresses.from_config(launch_config["protocol"])
    try:
        chain_id = await client.chain_id()
        logger.info(f"Deploying from {client.address} to chain {chain_id}")
        logger.info(
            f"Protocol: WETH {protocol.weth}, PositionManager {protocol.position_manager}, "
            f"SwapRouter {protocol.swap_router}, AlgebraFactory {protocol.algebra_factory}"
        )
        contracts = await _deploy_contracts(
            client, launch_config, artifacts, protocol, settings
        )
    except ChainClientError as exc:
        raise DeploymentError(f"Deployment failed: {exc.cause}") from exc

    manifest = DeploymentManifest(
        chain_id=chain_id,
        rpc_url=settings.rpc_url,
        deployer=client.address,
        contracts={
            "camel": ContractRecord(address=contracts.token, abi=contracts.token_abi),
            "liquidityManager": ContractRecord(
                address=contracts.manager, abi=contracts.manager_abi
            ),
        },
        protocol=protocol.to_manifest(),
        config=_manifest_config(launch_config),
        stage=stage,
        test_accounts={a["label"]: a["address"] for a in TEST_ACCOUNTS},
    )

    orchestrator = LaunchOrchestrator(
        client, launch_config, contracts, protocol, manifest, settings
    )
    await orchestrator.run_stages(stage)

    out = manifest.write(settings.output_path)
    logger.info(f"Wrote {out}")
    logger.info(
        f"Deployment summary: token {contracts.token}, "
        f"LiquidityManager {contracts.manager}, stage {stage}"
    )

    await _fund_user(client, settings)
    return manifest


async def deploy_launch(
    launch_config: dict[str, Any],
    *,
    stage: str = "pre-launch",
    settings: LaunchSettings | None = None,
    client: ChainClient | None = None,
    artifacts: LaunchArtifacts | None = None,
    silent: bool = False,
) -> DeploymentManifest:
    """Validate, build, deploy and run stages up to ``stage``.

    Raises ``ConfigurationError``, ``BuildError`` or ``DeploymentError`` before a
    manifest exists. Stage failures do not raise: they are recorded in
    ``manifest.stage_error`` and the manifest is still written.
    """
    if stage not in STAGES:
        raise ValueError(f"Invalid stage '{stage}'. Must be one of: {', '.join(STAGES)}")
    settings = settings or load_settings()

    fails = validate_config(launch_config, silent=silent)
    if fails > 0:
        raise ConfigurationError(fails)

    if artifacts is None:
        artifacts = build_launch_artifacts(settings.contracts_dir)

    if client is not None:
        return await _launch_with_client(
            client, launch_config, stage=stage, settings=settings, artifacts=artifacts
        )

    async with connect_chain_client(
        settings.rpc_url, settings.deployer_private_key
    ) as connected:
        return await _launch_with_client(
            connected,
            launch_config,
            stage=stage,
            settings=settings,
            artifacts=artifacts,
        )
