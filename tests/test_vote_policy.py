"""
Vote Policy & Draft Model Test Suite

Coverage:
  - Choice vocabularies and vote validation
  - Weighted temperature check tally and decision rules
  - Binding vote tally: quorum, approval, zero-weight handling
  - Critical proposal detection and effective parameters
  - ProposalDraft / TemperatureCheckPoll construction and parsing
"""

import logging
import os
import sys
from decimal import Decimal

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from govflow.config import GovernanceOverride, WorkflowConfig
from govflow.constants import SECONDS_PER_DAY
from govflow.exceptions import ConfigError
from govflow.governance import (
    EstimatedImpact,
    ProposalDraft,
    ProposalSection,
    ProposalVote,
    SectionType,
    Stage,
    TemperatureCheckPoll,
    TemperatureChoice,
    VotingChoice,
)
from govflow.governance.policy import (
    TemperatureCheckResult,
    decide_temperature_check,
    effective_quorum,
    effective_voting_seconds,
    is_critical,
    tally_temperature_check,
    tally_vote,
    total_weight,
    weight_for,
)


# ══════════════════════════════════════════════════════════════════════
#  HELPERS
# ══════════════════════════════════════════════════════════════════════

def tvote(choice, weight=1, voter="v"):
    return ProposalVote(voter, TemperatureChoice.parse(choice), weight)


def bvote(choice, weight=1, voter="v"):
    return ProposalVote(voter, VotingChoice.parse(choice), weight)


def result(support, opposition="0", needs="0"):
    return TemperatureCheckResult(Decimal(support), Decimal(opposition), Decimal(needs))


# ══════════════════════════════════════════════════════════════════════
#  CHOICES & VOTES
# ══════════════════════════════════════════════════════════════════════


class TestChoices:
    """Closed vocabularies."""

    @pytest.mark.parametrize("raw", [
        "Strongly Support",
        "strongly support",
        "STRONGLY_SUPPORT",
        "StronglySupport",
        "strongly-support",
    ])
    def test_temperature_spellings(self, raw):
        assert TemperatureChoice.parse(raw) is TemperatureChoice.STRONGLY_SUPPORT

    def test_temperature_order_matches_poll(self):
        assert [c.value for c in TemperatureChoice] == [
            "Strongly Support",
            "Support with Minor Changes",
            "Need More Discussion",
            "Do Not Support",
        ]

    def test_voting_choices(self):
        assert VotingChoice.parse("Support") is VotingChoice.SUPPORT
        assert VotingChoice.parse("against") is VotingChoice.AGAINST
        assert VotingChoice.parse("ABSTAIN") is VotingChoice.ABSTAIN

    def test_cross_vocabulary_rejected(self):
        with pytest.raises(ConfigError):
            VotingChoice.parse(TemperatureChoice.STRONGLY_SUPPORT)
        with pytest.raises(ConfigError):
            TemperatureChoice.parse(VotingChoice.SUPPORT)

    def test_is_valid(self):
        assert VotingChoice.is_valid("support")
        assert not VotingChoice.is_valid("maybe")
        assert not VotingChoice.is_valid(None)

    def test_str_is_label(self):
        assert str(TemperatureChoice.DO_NOT_SUPPORT) == "Do Not Support"


class TestProposalVote:
    """Vote validation."""

    def test_weight_coerced_to_decimal(self):
        v = ProposalVote("alice", "Support", 2.5)
        assert v.weight == Decimal("2.5")

    def test_negative_weight_raises(self):
        with pytest.raises(ConfigError, match="non-negative"):
            ProposalVote("alice", "Support", -1)

    def test_nan_weight_raises(self):
        with pytest.raises(ConfigError, match="finite"):
            ProposalVote("alice", "Support", float("nan"))

    def test_missing_voter_raises(self):
        with pytest.raises(ConfigError, match="Voter"):
            ProposalVote("", "Support")

    def test_normalized_returns_copy(self):
        v = ProposalVote("alice", "support", 1, timestamp=5.0)
        n = v.normalized(VotingChoice)
        assert n.choice is VotingChoice.SUPPORT
        assert v.choice == "support"
        assert n.timestamp == 5.0

    def test_to_dict(self):
        d = ProposalVote("alice", VotingChoice.AGAINST, 3, timestamp=1.0).to_dict()
        assert d == {
            "voter": "alice",
            "choice": "Against",
            "weight": "3",
            "timestamp": 1.0,
            "delegation": None,
        }


# ══════════════════════════════════════════════════════════════════════
#  TALLIES
# ══════════════════════════════════════════════════════════════════════


class TestWeightSums:

    def test_total_weight_empty(self):
        assert total_weight([]) == 0

    def test_weight_for(self):
        votes = [bvote("Support", 2), bvote("Against", 3), bvote("Support", 1)]
        assert weight_for(votes, {VotingChoice.SUPPORT}) == Decimal("3")
        assert total_weight(votes) == Decimal("6")


class TestTemperatureTally:

    def test_weighted_fractions(self):
        votes = [
            tvote("Strongly Support", 2),
            tvote("Support with Minor Changes", 1),
            tvote("Need More Discussion", 1),
            tvote("Do Not Support", 4),
        ]
        r = tally_temperature_check(votes)
        assert r.support == Decimal("0.375")
        assert r.needs_discussion == Decimal("0.125")
        assert r.opposition == Decimal("0.5")
        assert r.total_weight == Decimal("8")

    def test_empty_is_all_zero(self):
        r = tally_temperature_check([])
        assert (r.support, r.opposition, r.needs_discussion) == (0, 0, 0)

    def test_zero_weight_is_all_zero(self):
        r = tally_temperature_check([tvote("Strongly Support", 0)])
        assert r.support == 0
        assert not r.support.is_nan()

    def test_to_dict(self):
        d = result("0.75", "0.25").to_dict()
        assert d["support"] == "0.75"
        assert d["needsDiscussion"] == "0"


class TestTemperatureDecision:

    def test_binary_pass(self):
        assert decide_temperature_check(result("0.51"), WorkflowConfig()) == Stage.DISCUSSION

    def test_binary_threshold_is_strict(self):
        assert decide_temperature_check(result("0.5"), WorkflowConfig()) == Stage.REJECTED

    def test_binary_ignores_needs_discussion(self):
        r = result("0.2", needs="0.8")
        assert decide_temperature_check(r, WorkflowConfig()) == Stage.REJECTED

    def test_three_way_returns_to_draft(self):
        cfg = WorkflowConfig(temperature_check_rule="three_way")
        assert decide_temperature_check(result("0.2", needs="0.31"), cfg) == Stage.DRAFT
        assert decide_temperature_check(result("0.2", needs="0.3"), cfg) == Stage.REJECTED
        assert decide_temperature_check(result("0.6", needs="0.4"), cfg) == Stage.DISCUSSION

    def test_custom_support_threshold(self):
        cfg = WorkflowConfig(temperature_support_threshold="0.66")
        assert decide_temperature_check(result("0.6"), cfg) == Stage.REJECTED
        assert decide_temperature_check(result("0.7"), cfg) == Stage.DISCUSSION


class TestVoteTally:

    def test_approved(self):
        votes = [bvote("Support")] * 6 + [bvote("Against")] * 4
        r = tally_vote(votes, Decimal("5"), Decimal("0.5"))
        assert r.quorum_reached
        assert r.support_ratio == Decimal("0.6")
        assert r.approved

    def test_empty(self):
        r = tally_vote([], Decimal("0.1"), Decimal("0.5"))
        assert r.total_weight == 0
        assert r.support_ratio == 0
        assert not r.quorum_reached
        assert not r.approved

    def test_quorum_is_inclusive(self):
        r = tally_vote([bvote("Support", 5)], Decimal("5"), Decimal("0.5"))
        assert r.quorum_reached

    def test_approval_is_inclusive(self):
        votes = [bvote("Support", 1), bvote("Against", 1)]
        r = tally_vote(votes, Decimal("0"), Decimal("0.5"))
        assert r.approved

    @pytest.mark.parametrize("support,against,abstain,quorum,threshold", [
        (0, 0, 0, "0", "0"),
        (3, 3, 4, "10", "0.3"),
        (1, 9, 0, "5", "0.5"),
        (7, 2, 1, "11", "0.6"),
        (0, 0, 5, "1", "0.5"),
    ])
    def test_approved_matches_rule(self, support, against, abstain, quorum, threshold):
        votes = (
            [bvote("Support", support)]
            + [bvote("Against", against)]
            + [bvote("Abstain", abstain)]
        )
        r = tally_vote(votes, Decimal(quorum), Decimal(threshold))
        assert not r.support_ratio.is_nan()
        assert r.approved == (r.quorum_reached and r.support_ratio >= Decimal(threshold))

    def test_to_dict(self):
        r = tally_vote([bvote("Support", 2)], Decimal("1"), Decimal("0.5"))
        d = r.to_dict()
        assert d["approved"] is True
        assert d["support"] == "1"
        assert d["quorumReached"] is True


# ══════════════════════════════════════════════════════════════════════
#  CRITICAL PROPOSALS
# ══════════════════════════════════════════════════════════════════════


class TestCriticalPolicy:

    def _draft(self, **impact):
        return ProposalDraft("Upgrade", "alice", estimated_impact=EstimatedImpact(**impact))

    def test_is_critical(self):
        cfg = WorkflowConfig()
        assert is_critical(self._draft(technical="0.8"), cfg)
        assert not is_critical(self._draft(technical="0.79"), cfg)
        assert not is_critical(self._draft(technical=1), WorkflowConfig(governance=None))

    def test_effective_quorum(self):
        cfg = WorkflowConfig(minimum_quorum=10, governance=GovernanceOverride(high_quorum=50))
        assert effective_quorum(cfg, critical=False) == Decimal("10")
        assert effective_quorum(cfg, critical=True) == Decimal("50")
        assert effective_quorum(WorkflowConfig(governance=None), critical=True) == Decimal("0.1")

    def test_effective_voting_seconds(self):
        cfg = WorkflowConfig()
        assert effective_voting_seconds(cfg, critical=False) == 7 * SECONDS_PER_DAY
        assert effective_voting_seconds(cfg, critical=True) == 14 * SECONDS_PER_DAY


# ══════════════════════════════════════════════════════════════════════
#  DRAFTS
# ══════════════════════════════════════════════════════════════════════


class TestDrafts:

    def test_missing_title_raises(self):
        with pytest.raises(ConfigError, match="title"):
            ProposalDraft("", "alice")

    def test_missing_author_raises(self):
        with pytest.raises(ConfigError, match="author"):
            ProposalDraft("Title", "")

    def test_collections_frozen(self):
        d = ProposalDraft("T", "a", sections=[ProposalSection("A", "b")], tags=["x", "x", "y"])
        assert isinstance(d.sections, tuple)
        assert d.tags == frozenset({"x", "y"})
        assert not d.has_poll

    def test_impact_out_of_range_raises(self):
        with pytest.raises(ConfigError, match="technical"):
            EstimatedImpact(technical="1.5")

    def test_poll_defaults(self):
        poll = TemperatureCheckPoll("Temperature Check: T")
        assert poll.options == tuple(c.value for c in TemperatureChoice)
        assert poll.duration_days == 3.0
        assert poll.threshold == Decimal("0.1")

    def test_poll_wrong_options_raises(self):
        with pytest.raises(ConfigError, match="options"):
            TemperatureCheckPoll("T", options=("Yes", "No"))

    def test_poll_reordered_options_raises(self):
        labels = [c.value for c in TemperatureChoice]
        with pytest.raises(ConfigError):
            TemperatureCheckPoll("T", options=tuple(reversed(labels)))

    def test_unknown_section_type_falls_back(self):
        assert ProposalSection("A", "b", "budget").type is SectionType.OTHER
        assert ProposalSection("A", "b", "summary").type is SectionType.SUMMARY

    def test_unknown_section_type_is_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="govflow.governance.draft"):
            ProposalSection("Budget", "b", "budget")
        assert "Unknown section type 'budget'" in caplog.text

    def test_from_dict(self):
        d = ProposalDraft.from_dict({
            "title": "Fund the docs team",
            "author": "DAOra Forum Analyzer",
            "createdAt": "2024-01-01T00:00:00Z",
            "sections": [
                {"title": "Abstract", "content": "Docs need funding.", "type": "summary"},
            ],
            "poll": {
                "title": "Temperature Check: Fund the docs team",
                "description": "Gauge support.",
                "options": [c.value for c in TemperatureChoice],
                "duration": 3,
                "threshold": 0.1,
            },
            "sourceDiscussions": ["https://forum.example.org/t/docs/7"],
            "tags": ["docs"],
            "estimatedImpact": {"technical": 0.2, "social": 0.6, "economic": 0.4},
        })
        assert d.created_at == 1704067200.0
        assert d.sections[0].type is SectionType.SUMMARY
        assert d.poll.threshold == Decimal("0.1")
        assert d.estimated_impact.highest == Decimal("0.6")

    def test_from_dict_bad_timestamp_raises(self):
        with pytest.raises(ConfigError, match="createdAt"):
            ProposalDraft.from_dict({"title": "T", "author": "a", "createdAt": "yesterday"})

    @pytest.mark.parametrize("created_at", [None, [], True, {"ts": 1}])
    def test_from_dict_non_numeric_timestamp_raises(self, created_at):
        with pytest.raises(ConfigError, match="createdAt"):
            ProposalDraft.from_dict({"title": "T", "author": "a", "createdAt": created_at})

    def test_naive_iso_timestamp_is_utc(self):
        d = ProposalDraft.from_dict({"title": "T", "author": "a", "createdAt": "2024-01-01T00:00:00"})
        assert d.created_at == 1704067200.0

    def test_impact_mapping_coerced(self):
        d = ProposalDraft("T", "a", estimated_impact={"technical": 0.9, "social": "0.1"})
        assert isinstance(d.estimated_impact, EstimatedImpact)
        assert d.estimated_impact.highest == Decimal("0.9")
        assert d.estimated_impact.economic == 0

    def test_missing_impact_defaults_to_zero(self):
        d = ProposalDraft.from_dict({"title": "T", "author": "a", "estimatedImpact": None})
        assert d.estimated_impact == EstimatedImpact()

    @pytest.mark.parametrize("impact", [0.9, "high", [0.1, 0.2, 0.3]])
    def test_invalid_impact_raises(self, impact):
        with pytest.raises(ConfigError, match="estimated impact"):
            ProposalDraft("T", "a", estimated_impact=impact)

    def test_poll_mapping_coerced(self):
        d = ProposalDraft("T", "a", poll={"title": "Temperature Check: T"})
        assert isinstance(d.poll, TemperatureCheckPoll)
        assert d.has_poll

    def test_invalid_poll_raises(self):
        with pytest.raises(ConfigError, match="poll"):
            ProposalDraft("T", "a", poll="yes please")

    def test_section_mappings_coerced(self):
        d = ProposalDraft("T", "a", sections=[{"title": "A", "content": "b", "type": "motivation"}])
        assert d.sections[0] == ProposalSection("A", "b", "motivation")

    @pytest.mark.parametrize("sections", ["Abstract", 5, ["Abstract"]])
    def test_invalid_sections_raise(self, sections):
        with pytest.raises(ConfigError, match="section"):
            ProposalDraft("T", "a", sections=sections)

    def test_to_dict(self):
        d = ProposalDraft(
            "T", "a", created_at=1.0, tags={"b", "a"},
            poll=TemperatureCheckPoll("Temperature Check: T"),
        ).to_dict()
        assert d["tags"] == ["a", "b"]
        assert d["poll"]["options"][0] == "Strongly Support"
        assert d["estimatedImpact"] == {"technical": "0", "social": "0", "economic": "0"}
