"""Deployment manifest written to ``generated/contracts.json``.

The manifest is created once both contracts are deployed and linked, filled in
as stages complete, and always written at the end of a run, including after a
recorded stage failure.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hybrid_launch.core.constants import STAGES


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ContractRecord(_CamelModel):
    address: str
    abi: list[dict[str, Any]] = Field(default_factory=list)


class MintsStageData(_CamelModel):
    pool: str
    position_token_id: str = Field(alias="positionTokenId")
    merkle_root: str = Field(alias="merkleRoot")
    whitelist_addresses: list[str] = Field(alias="whitelistAddresses")
    whitelist_proofs: dict[str, list[str]] = Field(alias="whitelistProofs")
    sqrt_price_x96: str | None = Field(default=None, alias="sqrtPriceX96")
    tick_lower: int | None = Field(default=None, alias="tickLower")
    tick_upper: int | None = Field(default=None, alias="tickUpper")
    single_sided: bool | None = Field(default=None, alias="singleSided")


class TradingStageData(_CamelModel):
    sniper_tax_warped: bool = Field(default=True, alias="sniperTaxWarped")
    trade_count: int = Field(alias="tradeCount")


class Staker(_CamelModel):
    address: str
    amount: str


class Allocation(_CamelModel):
    position_id: str = Field(alias="positionId")
    bps: int


class FullStageData(_CamelModel):
    staking_enabled: bool = Field(default=True, alias="stakingEnabled")
    position_ids: list[str] = Field(default_factory=list, alias="positionIds")
    stakers: list[Staker] = Field(default_factory=list)
    allocations: list[Allocation] = Field(default_factory=list)


class StageData(_CamelModel):
    mints: MintsStageData | None = None
    trading: TradingStageData | None = None
    full: FullStageData | None = None


class StageFailure(_CamelModel):
    message: str
    failed_stage: str = Field(alias="failedStage")


class DeploymentManifest(_CamelModel):
    chain_id: int = Field(alias="chainId")
    rpc_url: str = Field(alias="rpcUrl")
    deployed_at: str = Field(
        default_factory=lambda: datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        alias="deployedAt",
    )
    deployer: str
    contracts: dict[str, ContractRecord]
    protocol: dict[str, str]
    config: dict[str, Any] = Field(default_factory=dict)
    stage: str
    stage_data: StageData = Field(default_factory=StageData, alias="stageData")
    stage_error: StageFailure | None = Field(default=None, alias="stageError")
    test_accounts: dict[str, str] = Field(default_factory=dict, alias="testAccounts")

    @field_validator("stage")
    @classmethod
    def validate_stage(cls, v: str) -> str:
        if v not in STAGES:
            raise ValueError(f"stage must be one of {', '.join(STAGES)}")
        return v

    def record_failure(self, stage: str, message: str) -> None:
        if self.stage_error is None:
            self.stage_error = StageFailure(message=message, failed_stage=stage)

    def to_json(self) -> str:
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        return json.dumps(data, indent=2)

    def write(self, path: str | Path) -> Path:
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(self.to_json() + "\n")
        return out


def load_deployment_manifest(path: str | Path) -> DeploymentManifest:
    return DeploymentManifest.model_validate_json(Path(path).read_text())
