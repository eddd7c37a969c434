from hybrid_launch.core.validation.config_validator import (
    LAUNCH_CONFIG_SCHEMA,
    Finding,
    ValidationReport,
    print_report,
    run_validation,
    validate_config,
)

__all__ = [
    "LAUNCH_CONFIG_SCHEMA",
    "Finding",
    "ValidationReport",
    "print_report",
    "run_validation",
    "validate_config",
]
