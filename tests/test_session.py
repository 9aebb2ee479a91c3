"""Tests for workflow/session.py — the resolution state machine."""

from __future__ import annotations

from pathlib import Path

import pytest

from agentplan.config import ResolverConfig
from agentplan.registry.errors import CatalogIOError, CycleError, NotFoundError
from agentplan.registry.models import IssueKind, Severity
from agentplan.registry.store import Registry
from agentplan.workflow.phases import PhaseGraph
from agentplan.workflow.session import (
    ResolutionSession,
    SessionState,
    transition_session_state,
)


class TestTransitions:
    def test_happy_path(self):
        state = SessionState.IDLE
        for target in (
            SessionState.LOADING,
            SessionState.GRAPH_BUILT,
            SessionState.RESOLVING,
            SessionState.RESOLVED,
        ):
            state = transition_session_state(state, target)
        assert state == SessionState.RESOLVED

    def test_cannot_skip_loading(self):
        with pytest.raises(ValueError, match="Invalid transition"):
            transition_session_state(SessionState.IDLE, SessionState.RESOLVING)

    def test_terminal_states(self):
        with pytest.raises(ValueError):
            transition_session_state(SessionState.RESOLVED, SessionState.LOADING)
        with pytest.raises(ValueError):
            transition_session_state(SessionState.FAILED, SessionState.LOADING)


class TestRun:
    def test_resolves_catalog(self, catalog_dir: Path):
        session = ResolutionSession(ResolverConfig(workers=2))
        result = session.run(
            catalog_dir, categories=["testing", "architecture", "components"], stack=["react"]
        )
        assert result.state == SessionState.RESOLVED
        assert result.exit_code == 0
        assert result.plan is not None
        assert [a.id for a in result.plan.ordered_agents] == [
            "react-architect",
            "react-component-designer",
            "frontend-tester",
        ]
        # the broken document surfaces as a load warning on the plan
        assert [i.kind for i in result.plan.issues] == [IssueKind.PARSE_ERROR]

    def test_default_categories_are_all_ranked(self, scenario_registry: Registry):
        result = ResolutionSession().run(registry=scenario_registry)
        assert result.plan is not None
        assert "security" in result.plan.unresolved
        assert "architecture" not in result.plan.unresolved
        assert result.exit_code == 0

    def test_strict_unresolved_exits_one(self, scenario_registry: Registry):
        result = ResolutionSession().run(
            registry=scenario_registry, categories=["architecture", "security"], strict=True
        )
        assert result.state == SessionState.RESOLVED
        assert result.exit_code == 1
        assert result.plan is not None
        assert result.plan.unresolved == ("security",)
        errors = [i for i in result.issues if i.severity == Severity.ERROR]
        assert [(i.kind, i.context) for i in errors] == [
            (IssueKind.UNRESOLVED_CATEGORY, "security")
        ]

    def test_strict_from_config(self, scenario_registry: Registry):
        result = ResolutionSession(ResolverConfig(strict=True)).run(
            registry=scenario_registry, categories=["security"]
        )
        assert result.exit_code == 1

    def test_cycle_fails_before_resolution(self, scenario_registry: Registry):
        graph = PhaseGraph({"architecture": 1, "testing": 2})
        graph.add_precedence("architecture", "testing")
        graph.add_precedence("testing", "architecture")
        session = ResolutionSession(graph=graph)
        result = session.run(registry=scenario_registry, categories=["architecture"])
        assert result.state == SessionState.FAILED
        assert isinstance(result.fatal, CycleError)
        assert result.plan is None
        assert result.exit_code == 1

    def test_missing_directory_exits_two(self, tmp_path: Path):
        result = ResolutionSession().run(tmp_path / "missing")
        assert result.state == SessionState.FAILED
        assert isinstance(result.fatal, CatalogIOError)
        assert result.exit_code == 2

    def test_bad_pick_fails(self, scenario_registry: Registry):
        result = ResolutionSession().run(
            registry=scenario_registry,
            categories=["architecture"],
            picks={"architecture": "ghost"},
        )
        assert result.state == SessionState.FAILED
        assert isinstance(result.fatal, NotFoundError)
        assert result.exit_code == 1

    def test_session_is_single_use(self, scenario_registry: Registry):
        session = ResolutionSession()
        session.run(registry=scenario_registry, categories=["architecture"])
        with pytest.raises(ValueError):
            session.load(registry=scenario_registry)

    def test_agents_dir_from_config(self, catalog_dir: Path):
        result = ResolutionSession(ResolverConfig(agents_dir=str(catalog_dir))).run(
            categories=["architecture"], stack=["angular"]
        )
        assert result.plan is not None
        assert [a.id for a in result.plan.ordered_agents] == ["angular-architect"]
