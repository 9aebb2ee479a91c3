"""CatalogLoader: walk a directory of agent documents and build a Registry."""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Iterable, Mapping
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path

from agentplan.registry.errors import CatalogIOError, DuplicateNameError, ParseError
from agentplan.registry.models import (
    DEFAULT_CATEGORY,
    UNRANKED,
    AgentRecord,
    Issue,
    IssueKind,
    Severity,
    normalize_category,
    normalize_tag,
    slugify,
)
from agentplan.registry.store import Registry

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDE_NAMES: frozenset[str] = frozenset({"readme.md"})

_TAG_KEYS = ("stackTags", "stack_tags", "tags")


def parse_frontmatter(text: str) -> dict[str, str] | None:
    """Return the ``key: value`` pairs between leading ``---`` markers, or None."""
    lines = text.lstrip("\ufeff").splitlines()
    if not lines or lines[0].strip() != "---":
        return None

    fm: dict[str, str] = {}
    for line in lines[1:]:
        if line.strip() == "---":
            return fm
        if ":" in line and not line.startswith((" ", "\t", "#")):
            key, _, value = line.partition(":")
            fm[key.strip()] = value.strip().strip('"').strip("'")
    return None


def parse_tags(value: str) -> frozenset[str]:
    """Parse ``a, b`` or ``[a, b]`` into a set of normalized tags."""
    value = value.strip()
    if value.startswith("[") and value.endswith("]"):
        value = value[1:-1]
    tags = (normalize_tag(v.strip().strip('"').strip("'")) for v in value.split(","))
    return frozenset(t for t in tags if t)


def parse_agent_document(
    path: Path,
    phase_table: Mapping[str, int],
    *,
    root: Path | None = None,
) -> AgentRecord:
    """Parse one agent document into an AgentRecord.

    Raises ParseError if the file cannot be read, has no metadata block, or
    lacks ``name`` or ``description``.
    """
    source = str(path.relative_to(root)) if root is not None else str(path)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ParseError(f"Cannot read document: {e}", context=source) from e

    fm = parse_frontmatter(content)
    if fm is None:
        raise ParseError("Missing metadata block", context=source)

    missing = [key for key in ("name", "description") if not fm.get(key)]
    if missing:
        raise ParseError(f"Missing required field(s): {', '.join(missing)}", context=source)

    name = fm["name"]
    # A declared id is kept as written; only the name fallback is slugified.
    agent_id = fm["id"].strip() if fm.get("id") else slugify(name)
    if not agent_id:
        raise ParseError(f"Cannot derive an id from name '{name}'", context=source)

    category = normalize_category(fm.get("category") or DEFAULT_CATEGORY) or DEFAULT_CATEGORY
    tags_raw = next((fm[k] for k in _TAG_KEYS if fm.get(k)), "")

    return AgentRecord(
        id=agent_id,
        name=name,
        description=fm["description"],
        category=category,
        stack_tags=parse_tags(tags_raw),
        phase=phase_table.get(category, UNRANKED),
        source_path=source,
        model=fm.get("model") or None,
    )


def discover_documents(
    root: Path,
    exclude_names: Iterable[str] = DEFAULT_EXCLUDE_NAMES,
) -> list[Path]:
    """List agent documents under ``root`` in sorted order.

    Raises CatalogIOError if ``root`` is missing or cannot be listed.
    """
    if not root.exists():
        raise CatalogIOError(f"Catalog directory not found: {root}", context=str(root))
    if not root.is_dir():
        raise CatalogIOError(f"Catalog path is not a directory: {root}", context=str(root))

    def _raise(err: OSError) -> None:
        raise err

    excluded = {n.lower() for n in exclude_names}
    found: list[Path] = []
    try:
        for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
            dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
            for filename in filenames:
                if not filename.lower().endswith(".md"):
                    continue
                if filename.lower() in excluded:
                    logger.debug(f"Skipping narrative document {dirpath}/{filename}")
                    continue
                found.append(Path(dirpath) / filename)
    except OSError as e:
        raise CatalogIOError(f"Cannot read catalog directory {root}: {e}", context=str(root)) from e
    return sorted(found)


@dataclass
class LoadResult:
    registry: Registry
    issues: list[Issue] = field(default_factory=list)
    truncated: bool = False


class CatalogLoader:
    """Best-effort loader: bad documents become issues, never exceptions.

    Parsing is spread over a bounded thread pool; every parsed record is
    registered by the calling thread, so the registry has a single writer.
    """

    def __init__(
        self,
        phase_table: Mapping[str, int] | None = None,
        *,
        workers: int | None = None,
        timeout: float | None = None,
        cancel: threading.Event | None = None,
        exclude_names: Iterable[str] = DEFAULT_EXCLUDE_NAMES,
    ) -> None:
        if phase_table is None:
            from agentplan.workflow.phases import DEFAULT_CATEGORY_PHASES

            phase_table = DEFAULT_CATEGORY_PHASES
        self._phase_table = {normalize_category(c): p for c, p in phase_table.items()}
        self._workers = max(1, workers or os.cpu_count() or 1)
        self._timeout = timeout
        self._cancel = cancel or threading.Event()
        self._exclude_names = frozenset(exclude_names)

    def load(self, root_dir: Path | str) -> LoadResult:
        root = Path(root_dir)
        paths = discover_documents(root, self._exclude_names)
        logger.info(f"Loading {len(paths)} agent documents from {root}")

        result = LoadResult(registry=Registry())
        parsed: list[AgentRecord] = []
        failures: list[ParseError] = []

        executor = ThreadPoolExecutor(max_workers=self._workers, thread_name_prefix="agentplan-load")
        try:
            pending: set[Future[AgentRecord]] = {
                executor.submit(parse_agent_document, p, self._phase_table, root=root)
                for p in paths
            }
            deadline = _Deadline(self._timeout)
            while pending:
                if self._cancel.is_set() or deadline.expired():
                    result.truncated = True
                    break
                done, pending = wait(
                    pending, timeout=deadline.remaining(cap=0.1), return_when=FIRST_COMPLETED
                )
                for future in done:
                    try:
                        parsed.append(future.result())
                    except ParseError as e:
                        failures.append(e)
        finally:
            executor.shutdown(wait=not result.truncated, cancel_futures=True)

        # Completion order is arbitrary; register and report in path order.
        for err in sorted(failures, key=lambda e: e.context):
            logger.warning(f"Skipping {err.context}: {err.message}")
            result.issues.append(err.to_issue(Severity.WARNING))

        for record in sorted(parsed, key=lambda r: r.source_path):
            try:
                result.registry.register(record)
            except DuplicateNameError as e:
                logger.warning(e.message)
                result.issues.append(e.to_issue(Severity.ERROR))
                continue
            if record.phase == UNRANKED:
                result.issues.append(
                    Issue(
                        severity=Severity.WARNING,
                        kind=IssueKind.UNRANKED_CATEGORY,
                        message=(
                            f"Category '{record.category}' has no declared phase; "
                            f"'{record.id}' sorts after all ranked phases"
                        ),
                        context=record.source_path,
                    )
                )

        if result.truncated:
            skipped = len(paths) - len(parsed) - len(failures)
            result.issues.append(
                Issue(
                    severity=Severity.WARNING,
                    kind=IssueKind.LOAD_TRUNCATED,
                    message=f"Loading stopped early; {skipped} document(s) not parsed",
                    context=str(root),
                )
            )
            logger.warning(f"Catalog load truncated with {skipped} document(s) outstanding")

        logger.info(f"Loaded {len(result.registry)} agents with {len(result.issues)} issue(s)")
        return result


class _Deadline:
    def __init__(self, timeout: float | None) -> None:
        self._clock = time.monotonic
        self._end = None if timeout is None else self._clock() + timeout

    def expired(self) -> bool:
        return self._end is not None and self._clock() >= self._end

    def remaining(self, cap: float) -> float:
        if self._end is None:
            return cap
        return max(0.0, min(cap, self._end - self._clock()))


def load_catalog(
    root_dir: Path | str,
    *,
    phase_table: Mapping[str, int] | None = None,
    workers: int | None = None,
    timeout: float | None = None,
    cancel: threading.Event | None = None,
    exclude_names: Iterable[str] = DEFAULT_EXCLUDE_NAMES,
) -> LoadResult:
    """Load every agent document under ``root_dir`` into a fresh Registry."""
    loader = CatalogLoader(
        phase_table,
        workers=workers,
        timeout=timeout,
        cancel=cancel,
        exclude_names=exclude_names,
    )
    return loader.load(root_dir)
