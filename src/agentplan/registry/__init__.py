"""Agent catalog: records, the in-memory registry, and the directory loader."""

from agentplan.registry.errors import (
    AgentPlanError,
    CatalogIOError,
    CycleError,
    DuplicateNameError,
    NotFoundError,
    ParseError,
    PhaseConflictError,
    UnresolvedCategoryError,
)
from agentplan.registry.loader import (
    CatalogLoader,
    LoadResult,
    load_catalog,
    parse_agent_document,
)
from agentplan.registry.models import UNRANKED, AgentRecord, Issue, IssueKind, Severity
from agentplan.registry.store import Registry

__all__ = [
    "UNRANKED",
    "AgentPlanError",
    "AgentRecord",
    "CatalogIOError",
    "CatalogLoader",
    "CycleError",
    "DuplicateNameError",
    "Issue",
    "IssueKind",
    "LoadResult",
    "NotFoundError",
    "ParseError",
    "PhaseConflictError",
    "Registry",
    "Severity",
    "UnresolvedCategoryError",
    "load_catalog",
    "parse_agent_document",
]
