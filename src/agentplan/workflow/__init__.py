"""Phase ordering, workflow resolution and issue reporting."""

from agentplan.workflow.phases import (
    DEFAULT_CATEGORY_PHASES,
    DEFAULT_PRECEDENCE,
    Phase,
    PhaseGraph,
    default_phase_graph,
)
from agentplan.workflow.reporter import ValidationSummary, exit_code, summarize
from agentplan.workflow.resolver import WorkflowPlan, WorkflowRequest, resolve

__all__ = [
    "DEFAULT_CATEGORY_PHASES",
    "DEFAULT_PRECEDENCE",
    "Phase",
    "PhaseGraph",
    "ValidationSummary",
    "WorkflowPlan",
    "WorkflowRequest",
    "default_phase_graph",
    "exit_code",
    "resolve",
    "summarize",
]
