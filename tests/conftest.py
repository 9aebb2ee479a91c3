"""Shared fixtures for agentplan tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from agentplan.registry.models import UNRANKED, AgentRecord
from agentplan.registry.store import Registry
from agentplan.workflow.phases import DEFAULT_CATEGORY_PHASES


def write_agent(root: Path, relpath: str, body: str = "Example code.", **frontmatter: str) -> Path:
    """Create an agent document with a ``---`` metadata block under ``root``."""
    path = root / relpath
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = ["---"]
    for key, value in frontmatter.items():
        lines.append(f"{key}: {value}")
    lines.append("---")
    lines.append("")
    lines.append(body)
    path.write_text("\n".join(lines), encoding="utf-8")
    return path


def make_record(agent_id: str, category: str, tags: tuple[str, ...] = ()) -> AgentRecord:
    return AgentRecord(
        id=agent_id,
        name=agent_id.replace("-", " ").title(),
        description=f"{agent_id} agent",
        category=category,
        stack_tags=frozenset(tags),
        phase=DEFAULT_CATEGORY_PHASES.get(category, UNRANKED),
        source_path=f"{category}/{agent_id}.md",
    )


@pytest.fixture
def catalog_dir(tmp_path: Path) -> Path:
    """A small catalog: three stacks, a README narrative and one broken document."""
    root = tmp_path / "agents"
    write_agent(
        root,
        "react/react-architect.md",
        name="react-architect",
        description="Designs React application architecture",
        category="architecture",
        stackTags="react, typescript",
        model="opus",
    )
    write_agent(
        root,
        "react/react-component-designer.md",
        name="react-component-designer",
        description="Builds reusable React components",
        category="components",
        stackTags="[react]",
    )
    write_agent(
        root,
        "angular/angular-architect.md",
        name="angular-architect",
        description="Designs Angular application architecture",
        category="architecture",
        stackTags="angular",
    )
    write_agent(
        root,
        "testing/frontend-tester.md",
        name="frontend-tester",
        description="Writes frontend test suites",
        category="testing",
        stackTags="react, angular",
    )
    (root / "react" / "README.md").write_text(
        "# React workflow\n\nPhase 1: Architecture -> Phase 2: Development\n", encoding="utf-8"
    )
    (root / "broken.md").write_text("# No metadata here\n", encoding="utf-8")
    return root


@pytest.fixture
def scenario_registry() -> Registry:
    return Registry(
        [
            make_record("react-architect", "architecture", ("react",)),
            make_record("react-component-designer", "components", ("react",)),
            make_record("frontend-tester", "testing", ("react",)),
        ]
    )
