from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from eth_utils import to_checksum_address

from hybrid_launch.core.constants import BPS_TOTAL
from hybrid_launch.core.constants.algebra_abi import (
    ALGEBRA_AGGREGATOR,
    ALGEBRA_QUOTER,
)
from hybrid_launch.core.engine.manifest import Allocation


@dataclass(frozen=True)
class ProtocolAddresses:
    weth: str
    algebra_factory: str
    position_manager: str
    swap_router: str
    quoter: str = ALGEBRA_QUOTER
    aggregator: str = ALGEBRA_AGGREGATOR

    @classmethod
    def from_config(cls, protocol: dict[str, Any]) -> ProtocolAddresses:
        return cls(
            weth=to_checksum_address(protocol["weth"]),
            algebra_factory=to_checksum_address(protocol["algebraFactory"]),
            position_manager=to_checksum_address(protocol["positionManager"]),
            swap_router=to_checksum_address(protocol["swapRouter"]),
        )

    def to_manifest(self) -> dict[str, str]:
        return {
            "WETH": self.weth,
            "ALGEBRA_FACTORY": self.algebra_factory,
            "POSITION_MANAGER": self.position_manager,
            "SWAP_ROUTER": self.swap_router,
            "QUOTER": self.quoter,
            "AGGREGATOR": self.aggregator,
        }


@dataclass(frozen=True)
class LaunchContracts:
    token: str
    token_abi: list[dict[str, Any]]
    manager: str
    manager_abi: list[dict[str, Any]]


def even_bps_allocation(position_ids: list[int | str]) -> list[Allocation]:
    """Split 10000 bps evenly; the last position takes the rounding remainder."""
    if not position_ids:
        return []
    n = len(position_ids)
    each = BPS_TOTAL // n
    return [
        Allocation(
            position_id=str(pid),
            bps=BPS_TOTAL - each * (n - 1) if i == n - 1 else each,
        )
        for i, pid in enumerate(position_ids)
    ]
