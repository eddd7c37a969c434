"""Foundry build step and artifact loading.

``forge build`` runs as a blocking subprocess inside the contracts directory;
artifacts land under ``<contracts_dir>/out/<File>.sol/<Contract>.json``.
"""

from __future__ import annotations

import json
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loguru import logger

from hybrid_launch.core.errors import BuildError

TOKEN_ARTIFACT = Path("out") / "CAMEL.sol" / "Camel404.json"
MANAGER_ARTIFACT = Path("out") / "LiquidityManager.sol" / "LiquidityManager.json"

_BUILD_FAILED = "forge build failed. Is Foundry installed?"


def run_forge_build(contracts_dir: str | Path) -> str:
    cwd = Path(contracts_dir)
    logger.info(f"Building contracts with Foundry in {cwd}...")
    try:
        result = subprocess.run(
            ["forge", "build"],
            cwd=str(cwd),
            check=False,
            capture_output=True,
            text=True,
        )
    except (FileNotFoundError, NotADirectoryError) as exc:
        raise BuildError(_BUILD_FAILED, str(exc)) from exc

    if result.returncode != 0:
        raise BuildError(_BUILD_FAILED, (result.stderr or result.stdout or "").strip())
    return result.stdout


def extract_bytecode(artifact: dict[str, Any]) -> str:
    bytecode = artifact.get("bytecode")
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object")
    if not bytecode or not isinstance(bytecode, str):
        raise BuildError("Unable to find bytecode inside artifact.")
    if not bytecode.startswith("0x"):
        bytecode = "0x" + bytecode
    if bytecode == "0x":
        raise BuildError("Compiled bytecode is empty")
    return bytecode


def load_artifact(path: str | Path) -> dict[str, Any]:
    artifact_path = Path(path)
    if not artifact_path.is_file():
        raise BuildError(f"Artifact not found: {artifact_path}")
    return json.loads(artifact_path.read_text())


@dataclass(frozen=True)
class LaunchArtifacts:
    token_abi: list[dict[str, Any]]
    token_bytecode: str
    manager_abi: list[dict[str, Any]]
    manager_bytecode: str

    @classmethod
    def from_dir(cls, contracts_dir: str | Path) -> LaunchArtifacts:
        root = Path(contracts_dir)
        token = load_artifact(root / TOKEN_ARTIFACT)
        manager = load_artifact(root / MANAGER_ARTIFACT)
        return cls(
            token_abi=token.get("abi", []),
            token_bytecode=extract_bytecode(token),
            manager_abi=manager.get("abi", []),
            manager_bytecode=extract_bytecode(manager),
        )


def build_launch_artifacts(contracts_dir: str | Path) -> LaunchArtifacts:
    run_forge_build(contracts_dir)
    return LaunchArtifacts.from_dir(contracts_dir)
