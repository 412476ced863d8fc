"""
govflow Proposal Governance

Provides:
  - ProposalDraft / TemperatureCheckPoll / ProposalSection   (draft.py)
  - ProposalVote / TemperatureChoice / VotingChoice          (votes.py)
  - Stage                                                    (stages.py)
  - Weighted tally, quorum and approval policy               (policy.py)
  - ProposalWorkflow / WorkflowState                         (workflow.py)
"""

from .draft import (
    EstimatedImpact,
    ProposalDraft,
    ProposalSection,
    SectionType,
    TemperatureCheckPoll,
)
from .votes import (
    ProposalVote,
    TemperatureChoice,
    VotingChoice,
)
from .stages import Stage
from .policy import (
    TemperatureCheckResult,
    VotingResult,
    tally_temperature_check,
    tally_vote,
)
from .workflow import (
    DiscussionComment,
    DiscussionRecord,
    ProposalWorkflow,
    StageTransition,
    TemperatureCheckRecord,
    VotingRecord,
    WorkflowState,
)

__all__ = [
    # Drafts
    "EstimatedImpact",
    "ProposalDraft",
    "ProposalSection",
    "SectionType",
    "TemperatureCheckPoll",
    # Votes
    "ProposalVote",
    "TemperatureChoice",
    "VotingChoice",
    # Policy
    "Stage",
    "TemperatureCheckResult",
    "VotingResult",
    "tally_temperature_check",
    "tally_vote",
    # Workflow
    "DiscussionComment",
    "DiscussionRecord",
    "ProposalWorkflow",
    "StageTransition",
    "TemperatureCheckRecord",
    "VotingRecord",
    "WorkflowState",
]
