"""Pydantic models for the agent catalog."""

from __future__ import annotations

import re
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

# Sorts after every ranked phase; declared ordinals must stay below it.
UNRANKED = 999

DEFAULT_CATEGORY = "other"

_CATEGORY_SEP = re.compile(r"[\s_]+")
_SLUG_STRIP = re.compile(r"[^a-z0-9]+")


class Severity(StrEnum):
    WARNING = "warning"
    ERROR = "error"


class IssueKind(StrEnum):
    PARSE_ERROR = "ParseError"
    DUPLICATE_NAME = "DuplicateNameError"
    NOT_FOUND = "NotFoundError"
    CYCLE = "CycleError"
    PHASE_CONFLICT = "PhaseConflictError"
    UNRESOLVED_CATEGORY = "UnresolvedCategoryError"
    UNRANKED_CATEGORY = "UnrankedCategory"
    UNUSED_PICK = "UnusedPick"
    LOAD_TRUNCATED = "LoadTruncated"
    IO_ERROR = "IOError"


class Issue(BaseModel):
    """A single finding raised while loading, building or resolving."""

    model_config = ConfigDict(frozen=True)

    severity: Severity
    kind: IssueKind
    message: str
    context: str = ""


class AgentRecord(BaseModel):
    """One catalog entry, derived from an agent document's metadata block."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    category: str = DEFAULT_CATEGORY
    stack_tags: frozenset[str] = Field(default_factory=frozenset)
    phase: int = UNRANKED
    source_path: str = ""
    model: str | None = None  # target model named by the document, if any

    @property
    def key(self) -> tuple[str, str]:
        return (self.category, self.id)


def normalize_category(value: str) -> str:
    """Lower-case a category name and join its words with dashes."""
    return _CATEGORY_SEP.sub("-", value.strip().lower()).strip("-")


def normalize_tag(value: str) -> str:
    return value.strip().lower()


def slugify(value: str) -> str:
    """Build an agent id from a display name ("React Architect" -> "react-architect")."""
    return _SLUG_STRIP.sub("-", value.lower()).strip("-")
