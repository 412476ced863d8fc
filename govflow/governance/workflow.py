"""
Proposal Workflow Engine

Moves one ProposalDraft through its lifecycle:

    DRAFT → TEMPERATURE_CHECK → DISCUSSION → FINAL_PROPOSAL → VOTING
                     ↓                                           ↓
                 REJECTED                              EXECUTED / REJECTED

Every operation checks the current stage first and either completes fully
or raises without touching state. Time-boxed phases are never closed by a
timer: a lapsed phase refuses further votes or comments on the next call
and stays open for finalization until a caller finalizes it.

An instance has no internal locking; callers own serialization of calls
against the same workflow.
"""

import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from ..config.loader import WorkflowConfig
from ..exceptions import ConfigError, ExpiredError, GovernanceError, StateError
from ..logger import get_logger
from .draft import ProposalDraft, TemperatureCheckPoll
from .policy import (
    TemperatureCheckResult,
    VotingResult,
    decide_temperature_check,
    effective_quorum,
    effective_voting_seconds,
    is_critical,
    tally_temperature_check,
    tally_vote,
)
from .stages import TERMINAL_STAGES, VALID_TRANSITIONS, Stage
from .votes import ProposalVote, TemperatureChoice, VotingChoice

logger = get_logger(__name__)

Clock = Callable[[], float]


# ══════════════════════════════════════════════════════════════════════
#  SNAPSHOT TYPES
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StageTransition:
    from_stage: Optional[Stage]
    to_stage: Stage
    reason: str
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.from_stage.name if self.from_stage is not None else "INIT",
            "to": self.to_stage.name,
            "reason": self.reason,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class TemperatureCheckRecord:
    poll: TemperatureCheckPoll
    votes: Tuple[ProposalVote, ...]
    start_time: float
    end_time: float
    result: Optional[TemperatureCheckResult] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "poll": self.poll.to_dict(),
            "votes": [v.to_dict() for v in self.votes],
            "startTime": self.start_time,
            "endTime": self.end_time,
            "result": self.result.to_dict() if self.result else None,
        }


@dataclass(frozen=True)
class DiscussionComment:
    author: str
    content: str
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        return {"author": self.author, "content": self.content, "timestamp": self.timestamp}


@dataclass(frozen=True)
class DiscussionRecord:
    comments: Tuple[DiscussionComment, ...]
    start_time: float
    end_time: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "comments": [c.to_dict() for c in self.comments],
            "startTime": self.start_time,
            "endTime": self.end_time,
        }


@dataclass(frozen=True)
class VotingRecord:
    votes: Tuple[ProposalVote, ...]
    start_time: float
    end_time: float
    quorum: Decimal
    result: Optional[VotingResult] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "votes": [v.to_dict() for v in self.votes],
            "startTime": self.start_time,
            "endTime": self.end_time,
            "quorum": str(self.quorum),
            "result": self.result.to_dict() if self.result else None,
        }


@dataclass(frozen=True)
class WorkflowState:
    """
    Read-only snapshot of a workflow.

    Built fresh by every get_state() call; holds no reference to the
    engine's mutable lists.
    """
    stage: Stage
    proposal: ProposalDraft
    critical: bool = False
    temperature_check: Optional[TemperatureCheckRecord] = None
    discussion: Optional[DiscussionRecord] = None
    voting: Optional[VotingRecord] = None
    history: Tuple[StageTransition, ...] = ()

    @property
    def is_terminal(self) -> bool:
        return self.stage in TERMINAL_STAGES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage": self.stage.name,
            "proposal": self.proposal.to_dict(),
            "critical": self.critical,
            "temperatureCheck": (
                self.temperature_check.to_dict() if self.temperature_check else None
            ),
            "discussion": self.discussion.to_dict() if self.discussion else None,
            "voting": self.voting.to_dict() if self.voting else None,
            "history": [t.to_dict() for t in self.history],
        }


# ══════════════════════════════════════════════════════════════════════
#  PHASE RECORDS (engine-internal, mutable)
# ══════════════════════════════════════════════════════════════════════

@dataclass
class _Phase:
    start_time: float
    end_time: float

    def time_remaining(self, now: float) -> float:
        return max(0.0, self.end_time - now)


@dataclass
class _TemperatureCheckPhase(_Phase):
    poll: Optional[TemperatureCheckPoll] = None
    votes: List[ProposalVote] = field(default_factory=list)
    result: Optional[TemperatureCheckResult] = None

    def freeze(self) -> TemperatureCheckRecord:
        return TemperatureCheckRecord(
            poll=self.poll,
            votes=tuple(self.votes),
            start_time=self.start_time,
            end_time=self.end_time,
            result=self.result,
        )


@dataclass
class _DiscussionPhase(_Phase):
    comments: List[DiscussionComment] = field(default_factory=list)

    def freeze(self) -> DiscussionRecord:
        return DiscussionRecord(
            comments=tuple(self.comments),
            start_time=self.start_time,
            end_time=self.end_time,
        )


@dataclass
class _VotingPhase(_Phase):
    quorum: Decimal = Decimal("0")
    votes: List[ProposalVote] = field(default_factory=list)
    result: Optional[VotingResult] = None

    def freeze(self) -> VotingRecord:
        return VotingRecord(
            votes=tuple(self.votes),
            start_time=self.start_time,
            end_time=self.end_time,
            quorum=self.quorum,
            result=self.result,
        )


# ══════════════════════════════════════════════════════════════════════
#  WORKFLOW
# ══════════════════════════════════════════════════════════════════════

class ProposalWorkflow:
    """
    State machine for a single proposal.

    Args:
        proposal: Draft to wrap; held by reference
        config:   WorkflowConfig, or a mapping of overrides for one
        clock:    Callable() → epoch seconds (defaults to time.time)
    """

    def __init__(
        self,
        proposal: ProposalDraft,
        config: Union[WorkflowConfig, Mapping[str, Any], None] = None,
        clock: Optional[Clock] = None,
    ):
        if not isinstance(proposal, ProposalDraft):
            raise ConfigError(f"Expected a ProposalDraft, got {type(proposal).__name__}")
        if config is None:
            config = WorkflowConfig()
        elif not isinstance(config, WorkflowConfig):
            config = WorkflowConfig.from_dict(config)

        self._config = config
        self._clock: Clock = clock or time.time
        self._proposal = proposal
        self._critical = is_critical(proposal, config)
        self._stage = Stage.DRAFT
        self._temperature_check: Optional[_TemperatureCheckPhase] = None
        self._discussion: Optional[_DiscussionPhase] = None
        self._voting: Optional[_VotingPhase] = None
        self._history: List[StageTransition] = [
            StageTransition(None, Stage.DRAFT, "created", self._clock())
        ]

        logger.info(
            f"[ProposalWorkflow] '{proposal.title}' initialized in DRAFT stage"
            f"{' (critical)' if self._critical else ''}"
        )
        logger.debug(f"[ProposalWorkflow] Configuration: {config.to_dict()}")

    # ── Properties ────────────────────────────────────────────────────

    @property
    def config(self) -> WorkflowConfig:
        return self._config

    @property
    def proposal(self) -> ProposalDraft:
        return self._proposal

    @property
    def is_critical(self) -> bool:
        return self._critical

    @property
    def is_terminal(self) -> bool:
        return self._stage in TERMINAL_STAGES

    @property
    def history(self) -> List[Dict[str, Any]]:
        return [t.to_dict() for t in self._history]

    # ── Guards ────────────────────────────────────────────────────────

    def _require(self, operation: str, *stages: Stage) -> None:
        if self._stage not in stages:
            error = StateError(operation, stages, self._stage)
            logger.error(f"[ProposalWorkflow] {error}")
            raise error

    def _require_open(self, phase_name: str, phase: _Phase) -> float:
        now = self._clock()
        if now > phase.end_time:
            logger.warning(
                f"[ProposalWorkflow] '{self._proposal.title}': {phase_name} "
                f"closed at {phase.end_time}, rejecting write at {now}"
            )
            raise ExpiredError(phase_name, phase.end_time, now)
        return now

    def _transition_to(self, new_stage: Stage, reason: str, now: float) -> None:
        if new_stage not in VALID_TRANSITIONS[self._stage]:
            raise GovernanceError(
                f"Cannot transition from {self._stage.name} → {new_stage.name}"
            )
        old = self._stage
        self._history.append(StageTransition(old, new_stage, reason, now))
        self._stage = new_stage
        logger.info(
            f"[ProposalWorkflow] '{self._proposal.title}': "
            f"{old.name} → {new_stage.name} | {reason}"
        )

    # ── Temperature check ─────────────────────────────────────────────

    def start_temperature_check(self) -> None:
        """DRAFT → TEMPERATURE_CHECK. Requires a poll on the draft."""
        self._require("start_temperature_check", Stage.DRAFT)
        poll = self._proposal.poll
        if poll is None:
            error = "Proposal does not have a temperature check poll configured"
            logger.error(f"[ProposalWorkflow] {error}")
            raise ConfigError(error)

        now = self._clock()
        self._temperature_check = _TemperatureCheckPhase(
            start_time=now,
            end_time=now + self._config.temperature_check_seconds,
            poll=poll,
        )
        self._transition_to(
            Stage.TEMPERATURE_CHECK,
            f"Temperature check open for {self._config.temperature_check_duration} days",
            now,
        )

    def submit_temperature_check_vote(self, vote: ProposalVote) -> ProposalVote:
        """
        Record a temperature check vote.

        The stored vote carries a TemperatureChoice; repeat votes from the
        same voter are all counted.
        """
        self._require("submit_temperature_check_vote", Stage.TEMPERATURE_CHECK)
        phase = self._temperature_check
        self._require_open("Temperature check", phase)
        record = vote.normalized(TemperatureChoice)
        phase.votes.append(record)
        logger.debug(
            f"[ProposalWorkflow] Temperature vote: {record.voter} → {record.choice} "
            f"(weight={record.weight}, total votes={len(phase.votes)})"
        )
        return record

    def finalize_temperature_check(self) -> TemperatureCheckResult:
        """
        Tally the temperature check and move on.

        Support above the threshold opens discussion immediately; otherwise
        the proposal is rejected (or, under the three-way rule, returned to
        DRAFT when enough voters asked for more discussion).
        """
        self._require("finalize_temperature_check", Stage.TEMPERATURE_CHECK)
        phase = self._temperature_check
        if phase.result is not None:
            raise GovernanceError("Temperature check already finalized")

        if not phase.votes:
            logger.warning("[ProposalWorkflow] No votes received during temperature check")

        result = tally_temperature_check(phase.votes)
        next_stage = decide_temperature_check(result, self._config)
        now = self._clock()

        phase.result = result
        summary = (
            f"support={result.support:.2%} opposition={result.opposition:.2%} "
            f"needs discussion={result.needs_discussion:.2%}"
        )
        if next_stage == Stage.DISCUSSION:
            self._open_discussion(f"Temperature check passed: {summary}", now)
        elif next_stage == Stage.DRAFT:
            self._transition_to(Stage.DRAFT, f"Returned for more discussion: {summary}", now)
        else:
            self._transition_to(Stage.REJECTED, f"Temperature check failed: {summary}", now)
        return result

    # ── Discussion ────────────────────────────────────────────────────

    def _open_discussion(self, reason: str, now: float) -> None:
        self._discussion = _DiscussionPhase(
            start_time=now,
            end_time=now + self._config.discussion_seconds,
        )
        self._transition_to(Stage.DISCUSSION, reason, now)

    def start_discussion(self) -> None:
        """
        Open the discussion period.

        Called automatically by a passing temperature check. Starting from
        DRAFT requires ``allow_direct_discussion`` in the config.
        """
        allowed = [Stage.TEMPERATURE_CHECK]
        if self._config.allow_direct_discussion:
            allowed.append(Stage.DRAFT)
        self._require("start_discussion", *allowed)
        self._open_discussion(
            f"Discussion open for {self._config.discussion_period} days", self._clock()
        )

    def add_discussion_comment(self, author: str, content: str) -> DiscussionComment:
        self._require("add_discussion_comment", Stage.DISCUSSION)
        if not author or not content:
            raise ConfigError("Discussion comments need an author and content")
        now = self._require_open("Discussion", self._discussion)
        comment = DiscussionComment(author=author, content=content, timestamp=now)
        self._discussion.comments.append(comment)
        logger.debug(
            f"[ProposalWorkflow] Comment by {author} "
            f"({len(self._discussion.comments)} total)"
        )
        return comment

    def finalize_discussion(self) -> None:
        """DISCUSSION → FINAL_PROPOSAL. Discussion is advisory; nothing is tallied."""
        self._require("finalize_discussion", Stage.DISCUSSION)
        self._transition_to(
            Stage.FINAL_PROPOSAL,
            f"Discussion closed with {len(self._discussion.comments)} comments",
            self._clock(),
        )

    # ── Voting ────────────────────────────────────────────────────────

    def start_voting(self) -> None:
        """FINAL_PROPOSAL → VOTING, using critical parameters when they apply."""
        self._require("start_voting", Stage.FINAL_PROPOSAL)
        now = self._clock()
        period = effective_voting_seconds(self._config, self._critical)
        quorum = effective_quorum(self._config, self._critical)
        self._voting = _VotingPhase(start_time=now, end_time=now + period, quorum=quorum)
        self._transition_to(
            Stage.VOTING,
            f"Voting open until {self._voting.end_time} (quorum={quorum}"
            f"{', critical' if self._critical else ''})",
            now,
        )

    def submit_vote(self, vote: ProposalVote) -> ProposalVote:
        """Record a binding vote; repeat votes from the same voter all count."""
        self._require("submit_vote", Stage.VOTING)
        phase = self._voting
        self._require_open("Voting", phase)
        record = vote.normalized(VotingChoice)
        phase.votes.append(record)
        logger.debug(
            f"[ProposalWorkflow] Vote: {record.voter} → {record.choice} "
            f"(weight={record.weight}, total votes={len(phase.votes)})"
        )
        return record

    def finalize_voting(self) -> VotingResult:
        """
        Tally the binding vote.

        Approved when summed weight reaches the effective quorum and the
        Support share of that weight reaches the approval threshold.
        """
        self._require("finalize_voting", Stage.VOTING)
        phase = self._voting
        if phase.result is not None:
            raise GovernanceError("Voting already finalized")

        result = tally_vote(phase.votes, phase.quorum, self._config.approval_threshold)
        now = self._clock()
        phase.result = result

        if result.approved:
            self._transition_to(
                Stage.EXECUTED, f"Approved (support={result.support_ratio:.2%})", now
            )
        elif not result.quorum_reached:
            self._transition_to(
                Stage.REJECTED,
                f"Quorum not reached ({result.total_weight}/{result.quorum})",
                now,
            )
        else:
            self._transition_to(
                Stage.REJECTED,
                f"Support {result.support_ratio:.2%} < "
                f"threshold {result.approval_threshold:.0%}",
                now,
            )
        return result

    # ── Queries ───────────────────────────────────────────────────────

    def _active_phase(self) -> Optional[_Phase]:
        return {
            Stage.TEMPERATURE_CHECK: self._temperature_check,
            Stage.DISCUSSION: self._discussion,
            Stage.VOTING: self._voting,
        }.get(self._stage)

    def time_remaining(self) -> float:
        """Seconds until the open phase closes (0 if lapsed or none is open)."""
        phase = self._active_phase()
        if phase is None:
            return 0.0
        return phase.time_remaining(self._clock())

    def is_phase_expired(self) -> bool:
        """True when a time-boxed phase is open but past its end time."""
        phase = self._active_phase()
        return phase is not None and self._clock() > phase.end_time

    def get_current_stage(self) -> Stage:
        return self._stage

    def get_state(self) -> WorkflowState:
        return WorkflowState(
            stage=self._stage,
            proposal=self._proposal,
            critical=self._critical,
            temperature_check=(
                self._temperature_check.freeze() if self._temperature_check else None
            ),
            discussion=self._discussion.freeze() if self._discussion else None,
            voting=self._voting.freeze() if self._voting else None,
            history=tuple(self._history),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = self.get_state().to_dict()
        data["config"] = self._config.to_dict()
        return data

    def __repr__(self) -> str:
        return (
            f"<ProposalWorkflow '{self._proposal.title}' "
            f"stage={self._stage.name} critical={self._critical}>"
        )
