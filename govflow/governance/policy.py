"""
Weighted Vote Policy

Pure functions that turn a vote set and a WorkflowConfig into outcomes:
  - Temperature check fractions (support / opposition / needs discussion)
  - The temperature check decision (binary, or three-way when configured)
  - Quorum: summed declared weight ≥ effective quorum
  - Approval: Support weight / total weight ≥ approval threshold
  - Critical proposal detection and the stricter parameters it selects

Every fraction is computed over declared weight, never ballot count, and
an empty or zero-weight vote set yields 0 rather than dividing by zero.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, Sequence

from ..config.loader import WorkflowConfig
from ..constants import GOVERNANCE_TEMPERATURE_RULE_THREE_WAY
from .draft import ProposalDraft
from .stages import Stage
from .votes import ProposalVote, SUPPORTIVE_TEMPERATURE, TemperatureChoice, VotingChoice

ZERO = Decimal("0")


# ══════════════════════════════════════════════════════════════════════
#  RESULTS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TemperatureCheckResult:
    """Weight-normalized temperature check fractions."""
    support: Decimal
    opposition: Decimal
    needs_discussion: Decimal
    total_weight: Decimal = ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "support": str(self.support),
            "opposition": str(self.opposition),
            "needsDiscussion": str(self.needs_discussion),
            "totalWeight": str(self.total_weight),
        }


@dataclass(frozen=True)
class VotingResult:
    """Outcome of the binding vote."""
    approved: bool
    support_ratio: Decimal
    quorum_reached: bool
    total_weight: Decimal = ZERO
    support_weight: Decimal = ZERO
    quorum: Decimal = ZERO
    approval_threshold: Decimal = ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "approved": self.approved,
            "support": str(self.support_ratio),
            "quorumReached": self.quorum_reached,
            "totalWeight": str(self.total_weight),
            "supportWeight": str(self.support_weight),
            "quorum": str(self.quorum),
            "approvalThreshold": str(self.approval_threshold),
        }


# ══════════════════════════════════════════════════════════════════════
#  WEIGHT SUMS
# ══════════════════════════════════════════════════════════════════════

def total_weight(votes: Iterable[ProposalVote]) -> Decimal:
    return sum((v.weight for v in votes), ZERO)


def weight_for(votes: Iterable[ProposalVote], choices) -> Decimal:
    """Summed weight of votes whose choice is in *choices*."""
    return sum((v.weight for v in votes if v.choice in choices), ZERO)


def _fraction(part: Decimal, whole: Decimal) -> Decimal:
    if whole <= 0:
        return ZERO
    return part / whole


# ══════════════════════════════════════════════════════════════════════
#  TEMPERATURE CHECK
# ══════════════════════════════════════════════════════════════════════

def tally_temperature_check(votes: Sequence[ProposalVote]) -> TemperatureCheckResult:
    """Votes must already carry TemperatureChoice members."""
    total = total_weight(votes)
    return TemperatureCheckResult(
        support=_fraction(weight_for(votes, SUPPORTIVE_TEMPERATURE), total),
        opposition=_fraction(
            weight_for(votes, {TemperatureChoice.DO_NOT_SUPPORT}), total
        ),
        needs_discussion=_fraction(
            weight_for(votes, {TemperatureChoice.NEED_MORE_DISCUSSION}), total
        ),
        total_weight=total,
    )


def decide_temperature_check(result: TemperatureCheckResult, config: WorkflowConfig) -> Stage:
    """
    Next stage after a temperature check.

    Binary rule: support strictly above the threshold opens discussion,
    anything else rejects. The three-way rule sends the draft back to
    DRAFT instead of rejecting when enough voters asked for more discussion.
    """
    if result.support > config.temperature_support_threshold:
        return Stage.DISCUSSION
    if (
        config.temperature_check_rule == GOVERNANCE_TEMPERATURE_RULE_THREE_WAY
        and result.needs_discussion > config.needs_discussion_threshold
    ):
        return Stage.DRAFT
    return Stage.REJECTED


# ══════════════════════════════════════════════════════════════════════
#  CRITICAL PROPOSALS
# ══════════════════════════════════════════════════════════════════════

def is_critical(draft: ProposalDraft, config: WorkflowConfig) -> bool:
    """A draft is critical when its highest impact score reaches the override threshold."""
    if config.governance is None:
        return False
    return draft.estimated_impact.highest >= config.governance.critical_proposal_threshold


def effective_quorum(config: WorkflowConfig, critical: bool) -> Decimal:
    if critical and config.governance is not None:
        return config.governance.high_quorum
    return config.minimum_quorum


def effective_voting_seconds(config: WorkflowConfig, critical: bool) -> float:
    if critical and config.governance is not None:
        return config.governance.extended_voting_seconds
    return config.voting_seconds


# ══════════════════════════════════════════════════════════════════════
#  BINDING VOTE
# ══════════════════════════════════════════════════════════════════════

def tally_vote(
    votes: Sequence[ProposalVote],
    quorum: Decimal,
    approval_threshold: Decimal,
) -> VotingResult:
    """
    Votes must already carry VotingChoice members.

    approved == quorum_reached and support_ratio >= approval_threshold
    """
    total = total_weight(votes)
    support = weight_for(votes, {VotingChoice.SUPPORT})
    support_ratio = _fraction(support, total)
    quorum_reached = total >= quorum
    return VotingResult(
        approved=quorum_reached and support_ratio >= approval_threshold,
        support_ratio=support_ratio,
        quorum_reached=quorum_reached,
        total_weight=total,
        support_weight=support,
        quorum=quorum,
        approval_threshold=approval_threshold,
    )
