"""Issue aggregation and exit-code policy."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from agentplan.registry.errors import AgentPlanError, CatalogIOError
from agentplan.registry.models import Issue, IssueKind, Severity

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_IO_ERROR = 2

_SEVERITY_ORDER = (Severity.ERROR, Severity.WARNING)


class ValidationSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    has_errors: bool
    report: str
    counts: dict[str, int] = Field(default_factory=dict)  # "<severity>:<kind>" -> n


def summarize(issues: Iterable[Issue]) -> ValidationSummary:
    """Group issues by severity, then kind, into a plain-text report."""
    issues = list(issues)
    counts: Counter[tuple[Severity, IssueKind]] = Counter((i.severity, i.kind) for i in issues)

    if not issues:
        return ValidationSummary(has_errors=False, report="No issues.")

    lines: list[str] = []
    for severity in _SEVERITY_ORDER:
        of_severity = [i for i in issues if i.severity == severity]
        if not of_severity:
            continue
        lines.append(f"{severity.value.upper()}S ({len(of_severity)})")
        for kind in sorted({i.kind for i in of_severity}, key=lambda k: k.value):
            lines.append(f"  {kind.value} ({counts[(severity, kind)]})")
            for issue in of_severity:
                if issue.kind != kind:
                    continue
                suffix = f" [{issue.context}]" if issue.context else ""
                lines.append(f"    - {issue.message}{suffix}")

    return ValidationSummary(
        has_errors=any(i.severity == Severity.ERROR for i in issues),
        report="\n".join(lines),
        counts={f"{s.value}:{k.value}": n for (s, k), n in sorted(counts.items())},
    )


def exit_code(summary: ValidationSummary, fatal: AgentPlanError | None = None) -> int:
    """0 on success, 1 on validation/resolution failure, 2 when the catalog is unreadable."""
    if isinstance(fatal, CatalogIOError):
        return EXIT_IO_ERROR
    if fatal is not None or summary.has_errors:
        return EXIT_FAILURE
    return EXIT_OK
