"""Tests for workflow/reporter.py — issue grouping and exit codes."""

from __future__ import annotations

import pytest

from agentplan.registry.errors import CatalogIOError, CycleError
from agentplan.registry.models import Issue, IssueKind, Severity
from agentplan.workflow.reporter import (
    EXIT_FAILURE,
    EXIT_IO_ERROR,
    EXIT_OK,
    exit_code,
    summarize,
)


def _issue(severity: Severity, kind: IssueKind, message: str = "m", context: str = "") -> Issue:
    return Issue(severity=severity, kind=kind, message=message, context=context)


@pytest.mark.unit
def test_no_issues():
    summary = summarize([])
    assert summary.has_errors is False
    assert summary.report == "No issues."
    assert exit_code(summary) == EXIT_OK


@pytest.mark.unit
def test_warnings_only_exit_zero():
    summary = summarize(
        [
            _issue(Severity.WARNING, IssueKind.PARSE_ERROR, "Missing metadata block", "a.md"),
            _issue(Severity.WARNING, IssueKind.UNRESOLVED_CATEGORY, "no security", "security"),
        ]
    )
    assert summary.has_errors is False
    assert exit_code(summary) == EXIT_OK
    assert "WARNINGS (2)" in summary.report
    assert "Missing metadata block [a.md]" in summary.report


@pytest.mark.unit
def test_errors_listed_before_warnings_and_grouped_by_kind():
    summary = summarize(
        [
            _issue(Severity.WARNING, IssueKind.PARSE_ERROR, "w1"),
            _issue(Severity.ERROR, IssueKind.UNRESOLVED_CATEGORY, "e1"),
            _issue(Severity.ERROR, IssueKind.DUPLICATE_NAME, "e2"),
            _issue(Severity.ERROR, IssueKind.DUPLICATE_NAME, "e3"),
        ]
    )
    lines = summary.report.splitlines()
    assert lines[0] == "ERRORS (3)"
    assert lines[1] == "  DuplicateNameError (2)"
    assert lines.index("  UnresolvedCategoryError (1)") < lines.index("WARNINGS (1)")
    assert summary.counts == {
        "error:DuplicateNameError": 2,
        "error:UnresolvedCategoryError": 1,
        "warning:ParseError": 1,
    }
    assert summary.has_errors is True
    assert exit_code(summary) == EXIT_FAILURE


@pytest.mark.unit
def test_fatal_errors_map_to_exit_codes():
    summary = summarize([])
    assert exit_code(summary, CycleError(["a", "b", "a"])) == EXIT_FAILURE
    assert exit_code(summary, CatalogIOError("gone")) == EXIT_IO_ERROR
