"""Exception taxonomy shared by the loader, registry, phase graph and resolver."""

from __future__ import annotations

from agentplan.registry.models import Issue, IssueKind, Severity


class AgentPlanError(Exception):
    """Base class for every agentplan failure."""

    kind: IssueKind = IssueKind.PARSE_ERROR

    def __init__(self, message: str, *, context: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_issue(self, severity: Severity = Severity.ERROR) -> Issue:
        return Issue(severity=severity, kind=self.kind, message=self.message, context=self.context)


class ParseError(AgentPlanError):
    """A document is unreadable or its metadata block is malformed or incomplete."""

    kind = IssueKind.PARSE_ERROR


class DuplicateNameError(AgentPlanError):
    """Two records claim the same (category, id) key."""

    kind = IssueKind.DUPLICATE_NAME

    def __init__(self, category: str, agent_id: str, *, context: str = "") -> None:
        super().__init__(
            f"Agent '{agent_id}' already registered in category '{category}'",
            context=context,
        )
        self.category = category
        self.agent_id = agent_id


class NotFoundError(AgentPlanError):
    """No record exists for the requested (category, id) key."""

    kind = IssueKind.NOT_FOUND

    def __init__(self, category: str, agent_id: str) -> None:
        super().__init__(
            f"No agent '{agent_id}' in category '{category}'",
            context=f"{category}/{agent_id}",
        )
        self.category = category
        self.agent_id = agent_id


class CycleError(AgentPlanError):
    """The category precedence relation contains a cycle."""

    kind = IssueKind.CYCLE

    def __init__(self, cycle: list[str]) -> None:
        super().__init__(
            "Phase precedence cycle: " + " -> ".join(cycle),
            context=",".join(cycle),
        )
        self.cycle = cycle


class PhaseConflictError(AgentPlanError):
    """A precedence edge disagrees with the declared category phases."""

    kind = IssueKind.PHASE_CONFLICT


class UnresolvedCategoryError(AgentPlanError):
    """A requested category has no matching agent."""

    kind = IssueKind.UNRESOLVED_CATEGORY

    def __init__(self, category: str) -> None:
        super().__init__(f"No agent available for category '{category}'", context=category)
        self.category = category


class CatalogIOError(AgentPlanError):
    """The catalog directory is missing or unreadable."""

    kind = IssueKind.IO_ERROR
