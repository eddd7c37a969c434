from hybrid_launch.launch.orchestrator import LaunchOrchestrator, deploy_launch
from hybrid_launch.launch.types import (
    LaunchContracts,
    ProtocolAddresses,
    even_bps_allocation,
)

__all__ = [
    "LaunchContracts",
    "LaunchOrchestrator",
    "ProtocolAddresses",
    "deploy_launch",
    "even_bps_allocation",
]
