"""
govflow: Governance Proposal Workflow Engine

Core imports are lazily loaded so that importing the package does not
configure logging until something needs it.
For direct module access, import from submodules:

    from govflow.governance import ProposalWorkflow, ProposalDraft
    from govflow.config import WorkflowConfig
    from govflow.exceptions import StateError
"""

_LAZY = {
    'ProposalWorkflow': ('governance.workflow', 'ProposalWorkflow'),
    'ProposalDraft': ('governance.draft', 'ProposalDraft'),
    'ProposalVote': ('governance.votes', 'ProposalVote'),
    'Stage': ('governance.stages', 'Stage'),
    'WorkflowConfig': ('config.loader', 'WorkflowConfig'),
}

# Lazy imports to avoid loading everything at package import
def __getattr__(name):
    """Lazy module loading."""
    if name in _LAZY:
        from importlib import import_module
        module_name, attr = _LAZY[name]
        return getattr(import_module(f'.{module_name}', __name__), attr)
    raise AttributeError(f"module 'govflow' has no attribute {name!r}")

__all__ = list(_LAZY)
