import json

import pytest
from pydantic import ValidationError

from hybrid_launch.core.engine.manifest import (
    ContractRecord,
    DeploymentManifest,
    MintsStageData,
    TradingStageData,
    load_deployment_manifest,
)

TOKEN = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


def _manifest(stage: str = "pre-launch") -> DeploymentManifest:
    return DeploymentManifest(
        chain_id=31337,
        rpc_url="http://127.0.0.1:8545",
        deployer="0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266",
        contracts={"camel": ContractRecord(address=TOKEN, abi=[{"type": "constructor"}])},
        protocol={"WETH": "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"},
        config={"name": "Camel", "symbol": "CAMEL"},
        stage=stage,
    )


def test_json_uses_camel_case_and_omits_empty_stages():
    data = json.loads(_manifest().to_json())
    assert data["chainId"] == 31337
    assert data["rpcUrl"] == "http://127.0.0.1:8545"
    assert data["deployedAt"].endswith("Z")
    assert data["stage"] == "pre-launch"
    assert data["stageData"] == {}
    assert "stageError" not in data
    assert data["contracts"]["camel"]["address"] == TOKEN


def test_invalid_stage_rejected():
    with pytest.raises(ValidationError):
        _manifest(stage="post-launch")


def test_first_failure_wins():
    manifest = _manifest("full")
    manifest.record_failure("trading", "swap reverted")
    manifest.record_failure("full", "later")
    data = json.loads(manifest.to_json())
    assert data["stageError"] == {"message": "swap reverted", "failedStage": "trading"}


def test_stage_data_serialization():
    manifest = _manifest("trading")
    manifest.stage_data.mints = MintsStageData(
        pool=TOKEN,
        position_token_id="7",
        merkle_root="0x" + "ab" * 32,
        whitelist_addresses=[TOKEN],
        whitelist_proofs={TOKEN: []},
    )
    manifest.stage_data.trading = TradingStageData(trade_count=6)
    data = json.loads(manifest.to_json())
    mints = data["stageData"]["mints"]
    assert mints["positionTokenId"] == "7"
    assert mints["whitelistProofs"] == {TOKEN: []}
    assert "sqrtPriceX96" not in mints
    assert data["stageData"]["trading"] == {"sniperTaxWarped": True, "tradeCount": 6}


def test_write_and_load(tmp_path):
    manifest = _manifest("mints")
    manifest.record_failure("mints", "Pool liquidity is 0")
    out = manifest.write(tmp_path / "generated" / "contracts.json")
    assert out.exists()

    loaded = load_deployment_manifest(out)
    assert loaded.stage == "mints"
    assert loaded.stage_error.failed_stage == "mints"
    assert loaded.contracts["camel"].abi == [{"type": "constructor"}]
