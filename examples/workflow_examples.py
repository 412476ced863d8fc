"""
Proposal Workflow Example

Demonstrates driving a draft from the forum analyzer through a
temperature check, discussion and a binding vote.
"""

from govflow.config import load_config
from govflow.exceptions import ExpiredError, GovernanceError
from govflow.governance import (
    EstimatedImpact,
    ProposalDraft,
    ProposalSection,
    ProposalVote,
    ProposalWorkflow,
    Stage,
    TemperatureCheckPoll,
)


def build_draft() -> ProposalDraft:
    """Example: the kind of draft an external generator hands over."""
    return ProposalDraft(
        title="Fund a documentation working group",
        author="DAOra Forum Analyzer",
        sections=(
            ProposalSection("Abstract", "Fund three writers for one quarter.", "summary"),
            ProposalSection("Motivation", "Onboarding questions dominate the forum.", "motivation"),
        ),
        poll=TemperatureCheckPoll(
            title="Temperature Check: Fund a documentation working group",
            description="Do you support this proposal moving forward?",
        ),
        source_discussions={"https://forum.example.org/t/docs-funding/118"},
        tags={"docs", "grants"},
        estimated_impact=EstimatedImpact(technical="0.3", social="0.7", economic="0.4"),
    )


def example_full_lifecycle():
    """Example: every phase, ending in EXECUTED."""
    workflow = ProposalWorkflow(build_draft(), load_config())

    workflow.start_temperature_check()
    for voter, choice, weight in [
        ("alice", "Strongly Support", 120),
        ("bob", "Support with Minor Changes", 80),
        ("carol", "Do Not Support", 40),
    ]:
        workflow.submit_temperature_check_vote(ProposalVote(voter, choice, weight))
    workflow.finalize_temperature_check()

    if workflow.get_current_stage() != Stage.DISCUSSION:
        print(f"Stopped at {workflow.get_current_stage().name}")
        return workflow

    workflow.add_discussion_comment("carol", "Please publish a monthly report.")
    workflow.finalize_discussion()

    workflow.start_voting()
    workflow.submit_vote(ProposalVote("alice", "Support", 120))
    workflow.submit_vote(ProposalVote("bob", "Support", 80))
    workflow.submit_vote(ProposalVote("carol", "Against", 40))

    try:
        result = workflow.finalize_voting()
    except GovernanceError as e:
        print(f"Finalization failed: {e}")
        return workflow

    print(f"Approved: {result.approved} (support={result.support_ratio:.2%})")
    print(f"Final stage: {workflow.get_current_stage().name}")
    return workflow


def example_late_vote():
    """Example: a vote submitted after the window closes is refused."""
    now = [0.0]
    workflow = ProposalWorkflow(build_draft(), clock=lambda: now[0])
    workflow.start_temperature_check()
    now[0] += workflow.config.temperature_check_seconds + 1

    try:
        workflow.submit_temperature_check_vote(ProposalVote("dave", "Strongly Support"))
    except ExpiredError as e:
        print(f"Late vote refused: {e}")


if __name__ == "__main__":
    example_full_lifecycle()
    example_late_vote()
