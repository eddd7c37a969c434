"""Launch error taxonomy.

Lower in this list means less fatal: configuration and build errors abort before
anything touches the chain, deployment errors abort before a manifest exists, and
stage errors are recorded into the manifest instead of propagating.
"""

from __future__ import annotations


class LaunchError(RuntimeError):
    pass


class ConfigurationError(LaunchError):
    def __init__(self, fail_count: int, message: str | None = None):
        self.fail_count = int(fail_count)
        super().__init__(
            message
            or f"Config validation failed with {self.fail_count} error(s). "
            "Fix launch-config.json before deploying."
        )


class BuildError(LaunchError):
    def __init__(self, message: str, output: str = ""):
        self.output = output
        super().__init__(f"{message}\n{output}".rstrip() if output else message)


class DeploymentError(LaunchError):
    pass


class StageError(LaunchError):
    def __init__(self, stage: str, message: str):
        self.stage = stage
        super().__init__(message)
