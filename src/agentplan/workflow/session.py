"""Resolution session: load -> build graph -> resolve, with explicit states."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from agentplan.config import ResolverConfig
from agentplan.registry.errors import AgentPlanError
from agentplan.registry.loader import load_catalog
from agentplan.registry.models import Issue
from agentplan.registry.store import Registry
from agentplan.workflow.phases import Phase, PhaseGraph
from agentplan.workflow.reporter import ValidationSummary, exit_code, summarize
from agentplan.workflow.resolver import WorkflowPlan, WorkflowRequest, resolve

logger = logging.getLogger(__name__)


class SessionState(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    GRAPH_BUILT = "graph_built"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    FAILED = "failed"


SESSION_TRANSITIONS: dict[SessionState, set[SessionState]] = {
    SessionState.IDLE: {SessionState.LOADING},
    SessionState.LOADING: {SessionState.GRAPH_BUILT, SessionState.FAILED},
    SessionState.GRAPH_BUILT: {SessionState.RESOLVING, SessionState.FAILED},
    SessionState.RESOLVING: {SessionState.RESOLVED, SessionState.FAILED},
    SessionState.RESOLVED: set(),
    SessionState.FAILED: set(),
}


def transition_session_state(current: SessionState, target: SessionState) -> SessionState:
    """Return target state if the transition is allowed, else raise ValueError."""
    valid = SESSION_TRANSITIONS.get(current, set())
    if target not in valid:
        msg = f"Invalid transition: {current} -> {target}. Valid: {valid}"
        raise ValueError(msg)
    return target


@dataclass
class SessionResult:
    state: SessionState
    plan: WorkflowPlan | None = None
    issues: list[Issue] = field(default_factory=list)
    summary: ValidationSummary | None = None
    fatal: AgentPlanError | None = None
    exit_code: int = 0


class ResolutionSession:
    """One load/build/resolve pass over a catalog directory or a prepared registry."""

    def __init__(
        self,
        config: ResolverConfig | None = None,
        *,
        graph: PhaseGraph | None = None,
        cancel: threading.Event | None = None,
    ) -> None:
        self.config = config or ResolverConfig()
        self.state = SessionState.IDLE
        self.registry: Registry | None = None
        self.graph = graph if graph is not None else self.config.phase_graph()
        self.phases: list[Phase] = []
        self.issues: list[Issue] = []
        self._cancel = cancel

    def _enter(self, target: SessionState) -> None:
        self.state = transition_session_state(self.state, target)
        logger.debug(f"Session state -> {self.state}")

    def load(self, root_dir: Path | str | None = None, *, registry: Registry | None = None) -> None:
        """Load the catalog (or adopt an in-memory registry), then build the phase graph.

        A CycleError or PhaseConflictError leaves the session in GRAPH_BUILT so
        the caller can only move to FAILED.
        """
        self._enter(SessionState.LOADING)
        if registry is not None:
            self.registry = registry
        else:
            target = root_dir if root_dir is not None else self.config.agents_dir
            if target is None:
                target = Path.cwd()
            loaded = load_catalog(
                target,
                phase_table=self.graph.phase_table,
                workers=self.config.workers,
                timeout=self.config.load_timeout,
                cancel=self._cancel,
                exclude_names=self.config.exclude_names,
            )
            self.registry = loaded.registry
            self.issues.extend(loaded.issues)

        self._enter(SessionState.GRAPH_BUILT)
        self.phases = self.graph.build()

    def resolve(self, request: WorkflowRequest) -> WorkflowPlan:
        self._enter(SessionState.RESOLVING)
        assert self.registry is not None
        plan = resolve(request, self.registry, self.graph)
        self._enter(SessionState.RESOLVED)
        return plan

    def run(
        self,
        root_dir: Path | str | None = None,
        *,
        categories: Iterable[str] | None = None,
        stack: Iterable[str] = (),
        picks: dict[str, str] | None = None,
        strict: bool | None = None,
        registry: Registry | None = None,
    ) -> SessionResult:
        """Run every stage, turning fatal errors into a FAILED result.

        ``categories`` defaults to every ranked category of the phase graph.
        """
        try:
            self.load(root_dir, registry=registry)
            request = WorkflowRequest.build(
                categories if categories is not None else self.graph.ranked_categories(),
                stack=stack,
                picks=picks,
                strict=self.config.strict if strict is None else strict,
            )
            plan = self.resolve(request)
        except AgentPlanError as e:
            logger.error(f"Resolution failed: {e.message}")
            self._enter(SessionState.FAILED)
            issues = [*self.issues, e.to_issue()]
            summary = summarize(issues)
            return SessionResult(
                state=self.state,
                issues=issues,
                summary=summary,
                fatal=e,
                exit_code=exit_code(summary, e),
            )

        plan = plan.model_copy(update={"issues": (*self.issues, *plan.issues)})
        summary = summarize(plan.issues)
        return SessionResult(
            state=self.state,
            plan=plan,
            issues=list(plan.issues),
            summary=summary,
            exit_code=exit_code(summary),
        )
