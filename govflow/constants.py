"""
govflow Constants

This module consolidates the global constants and environment configuration
used throughout the codebase. Constants are organized by category for easy
reference and maintenance.
"""
import ast
from decimal import Decimal
from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_TO_FILE':                     'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# ==================================================================================
# TIME
# ==================================================================================
SECONDS_PER_DAY = 86400


# ==================================================================================
# WORKFLOW DEFAULTS
# ==================================================================================
# Phase durations, in days
GOVERNANCE_TEMPERATURE_CHECK_DAYS = 3
GOVERNANCE_DISCUSSION_DAYS = 5
GOVERNANCE_VOTING_PERIOD_DAYS = 7

# Absolute summed vote weight, not a fraction of supply
GOVERNANCE_MINIMUM_QUORUM = Decimal("0.1")
GOVERNANCE_APPROVAL_THRESHOLD = Decimal("0.5")

# Critical proposal overrides
GOVERNANCE_CRITICAL_THRESHOLD = Decimal("0.8")
GOVERNANCE_EXTENDED_VOTING_DAYS = 14
GOVERNANCE_HIGH_QUORUM = Decimal("0.2")

# Temperature check decision rule
GOVERNANCE_TEMPERATURE_RULE_BINARY = "binary"
GOVERNANCE_TEMPERATURE_RULE_THREE_WAY = "three_way"
GOVERNANCE_TEMPERATURE_SUPPORT_THRESHOLD = Decimal("0.5")
GOVERNANCE_NEEDS_DISCUSSION_THRESHOLD = Decimal("0.3")

# Temperature check poll produced alongside a draft
GOVERNANCE_POLL_DURATION_DAYS = 3
GOVERNANCE_POLL_PARTICIPATION_THRESHOLD = Decimal("0.1")


# ==================================================================================
# CONFIGURATION WRAPPERS
# ==================================================================================
class ConfigString(str):
    """
    String subclass that stores a default value.
    """
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default

class ConfigBool(int):
    """
    Int subclass acting as a boolean that stores a default value.
    """
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))

    def __str__(self):
        return str(bool(self))

    def __eq__(self, other):
        return bool(self) == other

    def __hash__(self):
        return hash(bool(self))


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Avoids exceptions by only calling ast.literal_eval for known literals.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if not s:
        return v
    if s.casefold() in {"true", "false"}:
        # ast.literal_eval expects "True"/"False"
        return ast.literal_eval(s.title())
    return v

for key, default_raw in LOGGER_DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        namespace[key] = ConfigString(value_raw, default_val)
