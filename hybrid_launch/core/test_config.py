from __future__ import annotations

import copy
import json
from pathlib import Path

import pytest

import hybrid_launch.core.config as config
from hybrid_launch.core.constants.devchain import DEFAULT_PRIVATE_KEY, DEFAULT_RPC_URL

_ENV_KEYS = (
    "HYBRID_LAUNCH_CONFIG_PATH",
    "HYBRID_LAUNCH_CONFIG",
    "LAUNCH_CONFIG_PATH",
    "RPC_URL",
    "DEPLOYER_PRIVATE_KEY",
    "USER_ADDRESS",
    "USER_FUNDING_ETH",
    "TEST_BASE_URI",
    "ARTIST_ADDRESS",
    "DEV_ADDRESS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def restore_global_config() -> None:
    original = copy.deepcopy(config.CONFIG)
    yield
    config.set_config(original)


def test_resolve_config_path_defaults_to_cwd(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.chdir(tmp_path)
    assert config.resolve_config_path() == tmp_path / "config.json"


def test_resolve_config_path_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HYBRID_LAUNCH_CONFIG_PATH", "/etc/launch/config.json")
    assert config.resolve_config_path() == Path("/etc/launch/config.json")


def test_missing_config_is_empty_unless_required(tmp_path: Path) -> None:
    missing = tmp_path / "config.json"
    assert config.load_config_json(missing) == {}
    with pytest.raises(FileNotFoundError):
        config.load_config_json(missing, require_exists=True)


def test_settings_defaults(restore_global_config: None) -> None:
    config.set_config({})
    settings = config.load_settings()
    assert settings.rpc_url == DEFAULT_RPC_URL
    assert settings.deployer_private_key == DEFAULT_PRIVATE_KEY
    assert settings.user_address is None
    assert settings.user_funding_eth == "10.0"
    assert settings.output_path == Path("generated/contracts.json")


def test_config_file_beats_env_and_cli_beats_both(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, restore_global_config: None
) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "deploy": {
                    "rpc_url": "http://10.0.0.2:8545",
                    "user_address": "0x90F79bf6EB2c4f870365E785982E1f101E93b906",
                    "output_path": str(tmp_path / "out.json"),
                }
            }
        )
    )
    monkeypatch.setenv("RPC_URL", "http://env:8545")
    monkeypatch.setenv("TEST_BASE_URI", "ipfs://meta/")
    config.load_config(path)

    settings = config.load_settings()
    assert settings.rpc_url == "http://10.0.0.2:8545"
    assert settings.test_base_uri == "ipfs://meta/"
    assert settings.output_path == tmp_path / "out.json"

    assert config.load_settings(rpc_url="http://cli:8545").rpc_url == "http://cli:8545"


def test_launch_config_resolution(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.chdir(tmp_path)
    assert config.resolve_launch_config_path() == tmp_path / "launch-config.json"
    with pytest.raises(FileNotFoundError, match="Launch config not found"):
        config.load_launch_config()

    custom = tmp_path / "custom.json"
    custom.write_text('{"token": {}}')
    monkeypatch.setenv("LAUNCH_CONFIG_PATH", str(custom))
    assert config.load_launch_config() == {"token": {}}
