from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click
from loguru import logger

from hybrid_launch.core.config import (
    load_config,
    load_launch_config,
    load_settings,
    resolve_launch_config_path,
)
from hybrid_launch.core.constants import STAGES
from hybrid_launch.core.errors import LaunchError
from hybrid_launch.core.validation import validate_config
from hybrid_launch.launch import deploy_launch

_LOG_LEVELS = click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False)


def _configure_logging(log_level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=str(log_level).upper())


def _read_launch_config(path: Path | None) -> dict:
    cfg_path = resolve_launch_config_path(path)
    try:
        return load_launch_config(cfg_path)
    except FileNotFoundError:
        click.echo(f"[FAIL] Config file not found: {cfg_path}", err=True)
    except json.JSONDecodeError as exc:
        click.echo(f"[FAIL] Failed to parse {cfg_path}: {exc}", err=True)
    sys.exit(1)


@click.group(name="hybrid-launch", help="Deploy and stage a hybrid ERC20/ERC721 launch.")
def cli() -> None:
    pass


@cli.command(name="validate", help="Validate launch-config.json without touching a chain.")
@click.argument("path", required=False, type=click.Path(path_type=Path))
def validate_cmd(path: Path | None) -> None:
    config = _read_launch_config(path)
    fails = validate_config(config)
    sys.exit(1 if fails > 0 else 0)


@cli.command(name="deploy", help="Build, deploy and run launch stages up to --stage.")
@click.option(
    "--stage",
    type=click.Choice(list(STAGES)),
    default="pre-launch",
    show_default=True,
)
@click.option("--rpc-url", default=None, help="Overrides deploy.rpc_url / RPC_URL.")
@click.option(
    "--launch-config",
    "launch_config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to launch-config.json.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to config.json with a 'deploy' section.",
)
@click.option("--log-level", type=_LOG_LEVELS, default="INFO", show_default=True)
@click.option("--silent", is_flag=True, default=False, help="Skip the validation report.")
def deploy_cmd(
    stage: str,
    rpc_url: str | None,
    launch_config_path: Path | None,
    config_path: Path | None,
    log_level: str,
    silent: bool,
) -> None:
    _configure_logging(log_level)
    launch_config = _read_launch_config(launch_config_path)
    try:
        load_config(config_path, require_exists=config_path is not None)
    except (FileNotFoundError, json.JSONDecodeError) as exc:
        logger.error(f"Failed to load runtime config: {exc}")
        sys.exit(1)
    settings = load_settings(rpc_url=rpc_url)

    try:
        manifest = asyncio.run(
            deploy_launch(launch_config, stage=stage, settings=settings, silent=silent)
        )
    except LaunchError as exc:
        logger.error(f"Failed to deploy: {exc}")
        sys.exit(1)

    if manifest.stage_error is not None:
        logger.error(
            f"Stage '{manifest.stage_error.failed_stage}' failed: "
            f"{manifest.stage_error.message} (manifest written)"
        )


if __name__ == "__main__":
    cli()
