"""
govflow Workflow Configuration Loader

Loads the [workflow] section of govflow.toml with environment variable overrides.
Follows the dataclass + from_dict + from_file pattern.

Environment variable mapping:
    [workflow] temperature_check_duration → GOVFLOW_TEMPERATURE_CHECK_DAYS
    [workflow] discussion_period          → GOVFLOW_DISCUSSION_DAYS
    [workflow] voting_period              → GOVFLOW_VOTING_DAYS
    [workflow] minimum_quorum             → GOVFLOW_MINIMUM_QUORUM
    [workflow] approval_threshold         → GOVFLOW_APPROVAL_THRESHOLD
    [workflow] temperature_check_rule     → GOVFLOW_TEMPERATURE_CHECK_RULE

Durations are in days and may be fractional. Quorum values are absolute
summed vote weight: callers that think in fractions of a token supply must
pre-scale them.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from ..constants import (
    GOVERNANCE_APPROVAL_THRESHOLD,
    GOVERNANCE_CRITICAL_THRESHOLD,
    GOVERNANCE_DISCUSSION_DAYS,
    GOVERNANCE_EXTENDED_VOTING_DAYS,
    GOVERNANCE_HIGH_QUORUM,
    GOVERNANCE_MINIMUM_QUORUM,
    GOVERNANCE_NEEDS_DISCUSSION_THRESHOLD,
    GOVERNANCE_TEMPERATURE_CHECK_DAYS,
    GOVERNANCE_TEMPERATURE_RULE_BINARY,
    GOVERNANCE_TEMPERATURE_RULE_THREE_WAY,
    GOVERNANCE_TEMPERATURE_SUPPORT_THRESHOLD,
    GOVERNANCE_VOTING_PERIOD_DAYS,
    SECONDS_PER_DAY,
)
from ..exceptions import ConfigError

logger = logging.getLogger(__name__)

TEMPERATURE_RULES = (
    GOVERNANCE_TEMPERATURE_RULE_BINARY,
    GOVERNANCE_TEMPERATURE_RULE_THREE_WAY,
)

DEFAULT_CONFIG_FILE = "govflow.toml"


def to_decimal(value: Any, name: str) -> Decimal:
    """Coerce *value* to a finite Decimal, raising ConfigError otherwise."""
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be a number, got {value!r}")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ConfigError(f"{name} must be a number, got {value!r}") from None
    if not result.is_finite():
        raise ConfigError(f"{name} must be finite, got {value!r}")
    return result


def _pick(data: Mapping[str, Any], snake: str, camel: str, default: Any) -> Any:
    """Read *snake* or its camelCase spelling from *data*."""
    if snake in data:
        return data[snake]
    return data.get(camel, default)


# ---------------------------------------------------------------------------
# Critical proposal overrides
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GovernanceOverride:
    """[workflow.governance] section: stricter parameters for critical proposals."""
    critical_proposal_threshold: Decimal = GOVERNANCE_CRITICAL_THRESHOLD
    extended_voting_period: float = GOVERNANCE_EXTENDED_VOTING_DAYS
    high_quorum: Decimal = GOVERNANCE_HIGH_QUORUM

    def __post_init__(self):
        object.__setattr__(
            self, "critical_proposal_threshold",
            to_decimal(self.critical_proposal_threshold, "critical_proposal_threshold"),
        )
        object.__setattr__(self, "high_quorum", to_decimal(self.high_quorum, "high_quorum"))
        object.__setattr__(
            self, "extended_voting_period",
            float(to_decimal(self.extended_voting_period, "extended_voting_period")),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GovernanceOverride":
        return cls(
            critical_proposal_threshold=_pick(
                data, "critical_proposal_threshold", "criticalProposalThreshold",
                GOVERNANCE_CRITICAL_THRESHOLD,
            ),
            extended_voting_period=_pick(
                data, "extended_voting_period", "extendedVotingPeriod",
                GOVERNANCE_EXTENDED_VOTING_DAYS,
            ),
            high_quorum=_pick(data, "high_quorum", "highQuorum", GOVERNANCE_HIGH_QUORUM),
        )

    @property
    def extended_voting_seconds(self) -> float:
        return self.extended_voting_period * SECONDS_PER_DAY

    def validate(self) -> bool:
        if not Decimal("0") <= self.critical_proposal_threshold <= Decimal("1"):
            raise ConfigError(
                f"critical_proposal_threshold must be in [0, 1], "
                f"got {self.critical_proposal_threshold}"
            )
        if self.extended_voting_period <= 0:
            raise ConfigError("extended_voting_period must be > 0")
        if self.high_quorum < 0:
            raise ConfigError("high_quorum must be >= 0")
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "criticalProposalThreshold": str(self.critical_proposal_threshold),
            "extendedVotingPeriod": self.extended_voting_period,
            "highQuorum": str(self.high_quorum),
        }


# ---------------------------------------------------------------------------
# Workflow policy
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WorkflowConfig:
    """
    [workflow] section: immutable policy values for one proposal workflow.

    Fields:
        temperature_check_duration:    Temperature check length (days)
        discussion_period:             Discussion length (days)
        voting_period:                 Voting length (days)
        minimum_quorum:                Summed vote weight required for a binding vote
        approval_threshold:            Fraction of weight voting Support needed to pass
        governance:                    Optional overrides for critical proposals
        temperature_check_rule:        "binary" or "three_way"
        temperature_support_threshold: Support fraction a temperature check must exceed
        needs_discussion_threshold:    "three_way" only: fraction that sends a draft back
        allow_direct_discussion:       Permit start_discussion() from DRAFT
    """
    temperature_check_duration: float = GOVERNANCE_TEMPERATURE_CHECK_DAYS
    discussion_period: float = GOVERNANCE_DISCUSSION_DAYS
    voting_period: float = GOVERNANCE_VOTING_PERIOD_DAYS
    minimum_quorum: Decimal = GOVERNANCE_MINIMUM_QUORUM
    approval_threshold: Decimal = GOVERNANCE_APPROVAL_THRESHOLD
    governance: Optional[GovernanceOverride] = dataclasses.field(
        default_factory=GovernanceOverride
    )
    temperature_check_rule: str = GOVERNANCE_TEMPERATURE_RULE_BINARY
    temperature_support_threshold: Decimal = GOVERNANCE_TEMPERATURE_SUPPORT_THRESHOLD
    needs_discussion_threshold: Decimal = GOVERNANCE_NEEDS_DISCUSSION_THRESHOLD
    allow_direct_discussion: bool = False

    def __post_init__(self):
        for name in ("temperature_check_duration", "discussion_period", "voting_period"):
            object.__setattr__(self, name, float(to_decimal(getattr(self, name), name)))
        for name in (
            "minimum_quorum",
            "approval_threshold",
            "temperature_support_threshold",
            "needs_discussion_threshold",
        ):
            object.__setattr__(self, name, to_decimal(getattr(self, name), name))
        self.validate()

    # --- loading ----------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WorkflowConfig":
        """
        Build a config from a mapping.

        Accepts either the full TOML document (with a ``workflow`` table) or
        the table itself. A ``governance`` value of ``false`` disables the
        critical proposal overrides.
        """
        if "workflow" in data and isinstance(data["workflow"], Mapping):
            data = data["workflow"]

        governance_data = _pick(data, "governance", "governanceConfig", {})
        if governance_data is False or governance_data is None:
            governance = None
        elif isinstance(governance_data, GovernanceOverride):
            governance = governance_data
        elif isinstance(governance_data, Mapping):
            governance = GovernanceOverride.from_dict(governance_data)
        else:
            raise ConfigError(
                f"governance must be a table or false, got {governance_data!r}"
            )

        return cls(
            temperature_check_duration=_pick(
                data, "temperature_check_duration", "temperatureCheckDuration",
                GOVERNANCE_TEMPERATURE_CHECK_DAYS,
            ),
            discussion_period=_pick(
                data, "discussion_period", "discussionPeriod", GOVERNANCE_DISCUSSION_DAYS,
            ),
            voting_period=_pick(
                data, "voting_period", "votingPeriod", GOVERNANCE_VOTING_PERIOD_DAYS,
            ),
            minimum_quorum=_pick(
                data, "minimum_quorum", "minimumQuorum", GOVERNANCE_MINIMUM_QUORUM,
            ),
            approval_threshold=_pick(
                data, "approval_threshold", "approvalThreshold", GOVERNANCE_APPROVAL_THRESHOLD,
            ),
            governance=governance,
            temperature_check_rule=_pick(
                data, "temperature_check_rule", "temperatureCheckRule",
                GOVERNANCE_TEMPERATURE_RULE_BINARY,
            ),
            temperature_support_threshold=_pick(
                data, "temperature_support_threshold", "temperatureSupportThreshold",
                GOVERNANCE_TEMPERATURE_SUPPORT_THRESHOLD,
            ),
            needs_discussion_threshold=_pick(
                data, "needs_discussion_threshold", "needsDiscussionThreshold",
                GOVERNANCE_NEEDS_DISCUSSION_THRESHOLD,
            ),
            allow_direct_discussion=bool(_pick(
                data, "allow_direct_discussion", "allowDirectDiscussion", False,
            )),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "WorkflowConfig":
        """
        Load configuration from a TOML file.

        Args:
            config_path: Path to govflow.toml

        Returns:
            WorkflowConfig instance with environment overrides applied
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            return cls().with_env()

        with open(path, "rb") as f:
            try:
                raw = tomli.load(f)
            except tomli.TOMLDecodeError as e:
                raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

        return cls.from_dict(raw).with_env()

    # --- env overrides ----------------------------------------------------

    def with_env(self) -> "WorkflowConfig":
        """Return a copy with environment variable overrides applied."""
        changes: Dict[str, Any] = {}
        if v := os.environ.get("GOVFLOW_TEMPERATURE_CHECK_DAYS"):
            changes["temperature_check_duration"] = v
        if v := os.environ.get("GOVFLOW_DISCUSSION_DAYS"):
            changes["discussion_period"] = v
        if v := os.environ.get("GOVFLOW_VOTING_DAYS"):
            changes["voting_period"] = v
        if v := os.environ.get("GOVFLOW_MINIMUM_QUORUM"):
            changes["minimum_quorum"] = v
        if v := os.environ.get("GOVFLOW_APPROVAL_THRESHOLD"):
            changes["approval_threshold"] = v
        if v := os.environ.get("GOVFLOW_TEMPERATURE_CHECK_RULE"):
            changes["temperature_check_rule"] = v.strip().lower()
        if not changes:
            return self
        logger.info("Applying environment overrides: %s", sorted(changes))
        return dataclasses.replace(self, **changes)

    # --- derived values ---------------------------------------------------

    @property
    def temperature_check_seconds(self) -> float:
        return self.temperature_check_duration * SECONDS_PER_DAY

    @property
    def discussion_seconds(self) -> float:
        return self.discussion_period * SECONDS_PER_DAY

    @property
    def voting_seconds(self) -> float:
        return self.voting_period * SECONDS_PER_DAY

    # --- validation -------------------------------------------------------

    def validate(self) -> bool:
        """
        Validate all configuration values.

        Returns:
            True if all valid

        Raises:
            ConfigError: on invalid config
        """
        for name in ("temperature_check_duration", "discussion_period", "voting_period"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be > 0")
        if self.minimum_quorum < 0:
            raise ConfigError("minimum_quorum must be >= 0")
        for name in (
            "approval_threshold",
            "temperature_support_threshold",
            "needs_discussion_threshold",
        ):
            value = getattr(self, name)
            if not Decimal("0") <= value <= Decimal("1"):
                raise ConfigError(f"{name} must be in [0, 1], got {value}")
        if self.temperature_check_rule not in TEMPERATURE_RULES:
            raise ConfigError(
                f"Invalid temperature_check_rule: {self.temperature_check_rule!r} "
                f"(expected one of {list(TEMPERATURE_RULES)})"
            )
        if self.governance is not None:
            self.governance.validate()
        return True

    # --- serialisation ----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for diagnostics and snapshots)."""
        return {
            "temperatureCheckDuration": self.temperature_check_duration,
            "discussionPeriod": self.discussion_period,
            "votingPeriod": self.voting_period,
            "minimumQuorum": str(self.minimum_quorum),
            "approvalThreshold": str(self.approval_threshold),
            "governanceConfig": self.governance.to_dict() if self.governance else None,
            "temperatureCheckRule": self.temperature_check_rule,
            "temperatureSupportThreshold": str(self.temperature_support_threshold),
            "needsDiscussionThreshold": str(self.needs_discussion_threshold),
            "allowDirectDiscussion": self.allow_direct_discussion,
        }


# -----------------------------------------------------------------------
# Convenience function
# -----------------------------------------------------------------------

def load_config(path: Optional[str] = None) -> WorkflowConfig:
    """
    Load workflow configuration.

    Resolution order:
        1. Explicit *path* argument
        2. GOVFLOW_CONFIG env var
        3. ./govflow.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("GOVFLOW_CONFIG", DEFAULT_CONFIG_FILE)

    return WorkflowConfig.from_file(path)
