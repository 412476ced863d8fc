"""
Workflow Stages

Lifecycle stages of a proposal workflow and the forward transitions
allowed between them.
"""

from enum import IntEnum
from typing import Dict, FrozenSet


class Stage(IntEnum):
    """Lifecycle stage."""
    DRAFT = 0               # Wrapped draft, nothing started
    TEMPERATURE_CHECK = 1   # Straw poll open
    DISCUSSION = 2          # Comment period open
    FINAL_PROPOSAL = 3      # Discussion closed, awaiting vote
    VOTING = 4              # Binding vote open
    EXECUTED = 5            # Vote passed
    REJECTED = 6            # Temperature check or vote failed


# Valid forward transitions
VALID_TRANSITIONS: Dict[Stage, FrozenSet[Stage]] = {
    # DISCUSSION directly from DRAFT only when the config allows it
    Stage.DRAFT:             frozenset({Stage.TEMPERATURE_CHECK, Stage.DISCUSSION}),
    # DRAFT only under the three-way temperature rule
    Stage.TEMPERATURE_CHECK: frozenset({Stage.DISCUSSION, Stage.REJECTED, Stage.DRAFT}),
    Stage.DISCUSSION:        frozenset({Stage.FINAL_PROPOSAL}),
    Stage.FINAL_PROPOSAL:    frozenset({Stage.VOTING}),
    Stage.VOTING:            frozenset({Stage.EXECUTED, Stage.REJECTED}),
    # Terminal states: no further transitions
    Stage.EXECUTED:          frozenset(),
    Stage.REJECTED:          frozenset(),
}

TERMINAL_STAGES: FrozenSet[Stage] = frozenset(
    stage for stage, allowed in VALID_TRANSITIONS.items() if not allowed
)
