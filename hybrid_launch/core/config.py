import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from hybrid_launch.core.constants.devchain import DEFAULT_PRIVATE_KEY, DEFAULT_RPC_URL

_CONFIG_ENV_KEYS = ("HYBRID_LAUNCH_CONFIG_PATH", "HYBRID_LAUNCH_CONFIG")
_DEFAULT_CONFIG_FILENAME = "config.json"
_LAUNCH_CONFIG_ENV_KEY = "LAUNCH_CONFIG_PATH"
_DEFAULT_LAUNCH_CONFIG_FILENAME = "launch-config.json"

DEFAULT_USER_FUNDING_ETH = "10.0"
DEFAULT_CONTRACTS_DIR = "contracts"
DEFAULT_OUTPUT_PATH = "generated/contracts.json"


def resolve_config_path(path: str | Path | None = None) -> Path:
    if path is not None:
        return Path(path).expanduser()

    env_path = next(
        (os.getenv(k, "").strip() for k in _CONFIG_ENV_KEYS if os.getenv(k)), ""
    )
    if env_path:
        return Path(env_path).expanduser()
    return Path.cwd() / _DEFAULT_CONFIG_FILENAME


def load_config_json(
    path: str | Path | None = None, *, require_exists: bool = False
) -> dict[str, Any]:
    cfg_path = resolve_config_path(path)
    if not cfg_path.exists():
        if require_exists:
            raise FileNotFoundError(f"Config file not found: {cfg_path}")
        return {}
    return json.loads(cfg_path.read_text())


CONFIG: dict[str, Any] = {}


def set_config(config: dict[str, Any]) -> None:
    """Replace the global CONFIG dict in-place.

    This allows code that imported CONFIG at module import time to see updates.
    """
    CONFIG.clear()
    CONFIG.update(config)


def load_config(
    path: str | Path | None = None, *, require_exists: bool = False
) -> None:
    """Load config from disk into the global CONFIG dict."""
    set_config(load_config_json(path, require_exists=require_exists))


def _deploy_value(key: str, env_key: str, default: str | None = None) -> str | None:
    value = CONFIG.get("deploy", {}).get(key)
    if value is not None and str(value).strip():
        return str(value).strip()
    env_value = os.environ.get(env_key, "").strip()
    if env_value:
        return env_value
    return default


def get_rpc_url() -> str:
    return _deploy_value("rpc_url", "RPC_URL", DEFAULT_RPC_URL)


def get_deployer_private_key() -> str:
    return _deploy_value(
        "deployer_private_key", "DEPLOYER_PRIVATE_KEY", DEFAULT_PRIVATE_KEY
    )


def get_user_address() -> str | None:
    return _deploy_value("user_address", "USER_ADDRESS")


def get_user_funding_eth() -> str:
    return _deploy_value("user_funding_eth", "USER_FUNDING_ETH", DEFAULT_USER_FUNDING_ETH)


def get_test_base_uri() -> str | None:
    return _deploy_value("test_base_uri", "TEST_BASE_URI")


def get_artist_address() -> str | None:
    return _deploy_value("artist_address", "ARTIST_ADDRESS")


def get_dev_address() -> str | None:
    return _deploy_value("dev_address", "DEV_ADDRESS")


def get_contracts_dir() -> Path:
    return Path(CONFIG.get("deploy", {}).get("contracts_dir") or DEFAULT_CONTRACTS_DIR)


def get_output_path() -> Path:
    return Path(CONFIG.get("deploy", {}).get("output_path") or DEFAULT_OUTPUT_PATH)


@dataclass(frozen=True)
class LaunchSettings:
    rpc_url: str = DEFAULT_RPC_URL
    deployer_private_key: str = DEFAULT_PRIVATE_KEY
    user_address: str | None = None
    user_funding_eth: str = DEFAULT_USER_FUNDING_ETH
    test_base_uri: str | None = None
    artist_address: str | None = None
    dev_address: str | None = None
    contracts_dir: Path = Path(DEFAULT_CONTRACTS_DIR)
    output_path: Path = Path(DEFAULT_OUTPUT_PATH)


def load_settings(*, rpc_url: str | None = None) -> LaunchSettings:
    """Snapshot CONFIG plus environment fallbacks for one launch run."""
    return LaunchSettings(
        rpc_url=rpc_url or get_rpc_url(),
        deployer_private_key=get_deployer_private_key(),
        user_address=get_user_address(),
        user_funding_eth=get_user_funding_eth(),
        test_base_uri=get_test_base_uri(),
        artist_address=get_artist_address(),
        dev_address=get_dev_address(),
        contracts_dir=get_contracts_dir(),
        output_path=get_output_path(),
    )


def resolve_launch_config_path(path: str | Path | None = None) -> Path:
    if path is not None:
        return Path(path).expanduser()
    env_path = os.getenv(_LAUNCH_CONFIG_ENV_KEY, "").strip()
    if env_path:
        return Path(env_path).expanduser()
    return Path.cwd() / _DEFAULT_LAUNCH_CONFIG_FILENAME


def load_launch_config(path: str | Path | None = None) -> dict[str, Any]:
    cfg_path = resolve_launch_config_path(path)
    if not cfg_path.exists():
        raise FileNotFoundError(f"Launch config not found: {cfg_path}")
    return json.loads(cfg_path.read_text())
