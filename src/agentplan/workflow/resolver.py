"""Turn a set of requested categories into a phase-ordered agent plan."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from agentplan.registry.errors import UnresolvedCategoryError
from agentplan.registry.models import (
    AgentRecord,
    Issue,
    IssueKind,
    Severity,
    normalize_category,
    normalize_tag,
)
from agentplan.registry.store import Registry
from agentplan.workflow.phases import PhaseGraph

logger = logging.getLogger(__name__)


class WorkflowRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    required_categories: frozenset[str]
    explicit_picks: dict[str, str] = Field(default_factory=dict)  # category -> agent id
    stack_tags: frozenset[str] = Field(default_factory=frozenset)
    strict: bool = False

    @field_validator("required_categories", mode="after")
    @classmethod
    def _normalize_categories(cls, value: frozenset[str]) -> frozenset[str]:
        return frozenset(c for c in (normalize_category(v) for v in value) if c)

    @field_validator("explicit_picks", mode="after")
    @classmethod
    def _normalize_picks(cls, value: dict[str, str]) -> dict[str, str]:
        return {normalize_category(c): a.strip() for c, a in value.items()}

    @field_validator("stack_tags", mode="after")
    @classmethod
    def _normalize_tags(cls, value: frozenset[str]) -> frozenset[str]:
        return frozenset(t for t in (normalize_tag(v) for v in value) if t)

    @classmethod
    def build(
        cls,
        categories: Iterable[str],
        *,
        stack: Iterable[str] = (),
        picks: Mapping[str, str] | None = None,
        strict: bool = False,
    ) -> WorkflowRequest:
        return cls(
            required_categories=frozenset(categories),
            explicit_picks=dict(picks or {}),
            stack_tags=frozenset(stack),
            strict=strict,
        )


class WorkflowPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    ordered_agents: tuple[AgentRecord, ...] = ()
    unresolved: tuple[str, ...] = ()
    issues: tuple[Issue, ...] = ()

    def to_output(self) -> dict[str, object]:
        """The CLI's JSON shape."""
        return {
            "agents": [
                {"id": a.id, "name": a.name, "category": a.category, "phase": a.phase}
                for a in self.ordered_agents
            ],
            "unresolved": list(self.unresolved),
            "issues": [
                {"severity": i.severity.value, "kind": i.kind.value, "message": i.message}
                for i in self.issues
            ],
        }


def select_candidate(
    category: str,
    registry: Registry,
    stack_tags: frozenset[str],
) -> AgentRecord | None:
    """First tag-matching record in id order, else the first record, else None."""
    records = registry.list_by_category(category)
    if not records:
        return None
    if stack_tags:
        for record in records:
            if record.stack_tags & stack_tags:
                return record
    return records[0]


def resolve(request: WorkflowRequest, registry: Registry, graph: PhaseGraph) -> WorkflowPlan:
    """Resolve ``request`` against a loaded registry and a built phase graph.

    Raises NotFoundError when an explicit pick names an agent that is not
    registered. Never mutates its inputs.
    """
    selected: list[AgentRecord] = []
    unresolved: list[str] = []
    issues: list[Issue] = []

    for category in sorted(request.explicit_picks):
        if category not in request.required_categories:
            issues.append(
                Issue(
                    severity=Severity.WARNING,
                    kind=IssueKind.UNUSED_PICK,
                    message=(
                        f"Pick '{request.explicit_picks[category]}' ignored: "
                        f"category '{category}' was not requested"
                    ),
                    context=category,
                )
            )

    for category in sorted(request.required_categories):
        pick = request.explicit_picks.get(category)
        if pick is not None:
            record: AgentRecord | None = registry.lookup(category, pick)
        else:
            record = select_candidate(category, registry, request.stack_tags)

        if record is None:
            unresolved.append(category)
            severity = Severity.ERROR if request.strict else Severity.WARNING
            issues.append(UnresolvedCategoryError(category).to_issue(severity))
            logger.debug(f"No candidate for category '{category}'")
            continue
        selected.append(record)

    ordered = sorted(selected, key=lambda r: (graph.phase_of(r.category), r.category, r.id))
    logger.info(
        f"Resolved {len(ordered)} agent(s); {len(unresolved)} unresolved categor"
        f"{'y' if len(unresolved) == 1 else 'ies'}"
    )
    return WorkflowPlan(
        ordered_agents=tuple(ordered),
        unresolved=tuple(unresolved),
        issues=tuple(issues),
    )
