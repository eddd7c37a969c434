__version__ = "0.1.0"

from hybrid_launch.launch import LaunchOrchestrator, deploy_launch

__all__ = [
    "__version__",
    "LaunchOrchestrator",
    "deploy_launch",
]
