"""
govflow Workflow Configuration

Loads the [workflow] section of govflow.toml.
Environment variables override TOML values.
"""

from .loader import (
    GovernanceOverride,
    WorkflowConfig,
    load_config,
    to_decimal,
)

__all__ = [
    "GovernanceOverride",
    "WorkflowConfig",
    "load_config",
    "to_decimal",
]
