"""Category precedence graph and the default phase ordering."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from pydantic import BaseModel, ConfigDict

from agentplan.registry.errors import CycleError, PhaseConflictError
from agentplan.registry.models import UNRANKED, normalize_category

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_PHASES: dict[str, int] = {
    "architecture": 1,
    "components": 2,
    "domain-modeling": 2,
    "state-management": 3,
    "business-logic": 3,
    "styling": 4,
    "data-access": 4,
    "build-tooling": 5,
    "testing": 6,
    "performance": 7,
    "security": 7,
}

DEFAULT_PRECEDENCE: list[tuple[str, str]] = [
    ("architecture", "components"),
    ("architecture", "domain-modeling"),
    ("components", "state-management"),
    ("domain-modeling", "business-logic"),
    ("state-management", "styling"),
    ("business-logic", "data-access"),
    ("styling", "build-tooling"),
    ("data-access", "build-tooling"),
    ("build-tooling", "testing"),
    ("testing", "performance"),
    ("testing", "security"),
]

# DFS colours
_WHITE, _GREY, _BLACK = 0, 1, 2


class Phase(BaseModel):
    model_config = ConfigDict(frozen=True)

    ordinal: int
    categories: tuple[str, ...]


class PhaseGraph:
    """Declared category phases plus explicit "A before B" edges.

    The graph is mutable until ``build`` succeeds; afterwards it only answers
    queries.
    """

    def __init__(self, phase_table: Mapping[str, int] | None = None) -> None:
        table = DEFAULT_CATEGORY_PHASES if phase_table is None else phase_table
        self._table: dict[str, int] = {normalize_category(c): int(p) for c, p in table.items()}
        self._edges: dict[str, set[str]] = {}
        self._phases: list[Phase] | None = None

    @property
    def built(self) -> bool:
        return self._phases is not None

    @property
    def phase_table(self) -> dict[str, int]:
        return dict(self._table)

    def add_precedence(self, before: str, after: str) -> None:
        """Declare that ``before``'s phase must come ahead of ``after``'s."""
        if self._phases is not None:
            raise RuntimeError("PhaseGraph is read-only after build()")
        a, b = normalize_category(before), normalize_category(after)
        self._edges.setdefault(a, set()).add(b)
        self._edges.setdefault(b, set())

    def edges(self) -> list[tuple[str, str]]:
        return [(a, b) for a in sorted(self._edges) for b in sorted(self._edges[a])]

    def build(self) -> list[Phase]:
        """Validate the graph and return phases in precedence order.

        Raises CycleError when the edges loop, PhaseConflictError when an edge
        names an undeclared category or does not move to a strictly later phase.
        """
        if self._phases is not None:
            return list(self._phases)

        cycle = self._find_cycle()
        if cycle:
            raise CycleError(cycle)

        for before, after in self.edges():
            for category in (before, after):
                if category not in self._table:
                    raise PhaseConflictError(
                        f"Category '{category}' has precedence edges but no declared phase",
                        context=category,
                    )
            if self._table[before] >= self._table[after]:
                raise PhaseConflictError(
                    f"'{before}' (phase {self._table[before]}) must precede "
                    f"'{after}' (phase {self._table[after]})",
                    context=f"{before},{after}",
                )

        for category, ordinal in self._table.items():
            if not 0 < ordinal < UNRANKED:
                raise PhaseConflictError(
                    f"Category '{category}' has out-of-range phase {ordinal}",
                    context=category,
                )

        by_ordinal: dict[int, list[str]] = {}
        for category, ordinal in self._table.items():
            by_ordinal.setdefault(ordinal, []).append(category)
        self._phases = [
            Phase(ordinal=ordinal, categories=tuple(sorted(cats)))
            for ordinal, cats in sorted(by_ordinal.items())
        ]
        logger.info(f"Phase graph built: {len(self._phases)} phases, {len(self.edges())} edges")
        return list(self._phases)

    def phase_of(self, category: str) -> int:
        return self._table.get(normalize_category(category), UNRANKED)

    def ranked_categories(self) -> list[str]:
        return sorted(self._table, key=lambda c: (self._table[c], c))

    def precedes(self, before: str, after: str) -> bool:
        """Whether ``after`` is reachable from ``before`` along precedence edges."""
        start, target = normalize_category(before), normalize_category(after)
        stack = list(self._edges.get(start, ()))
        seen: set[str] = set()
        while stack:
            node = stack.pop()
            if node == target:
                return True
            if node in seen:
                continue
            seen.add(node)
            stack.extend(self._edges.get(node, ()))
        return False

    def _find_cycle(self) -> list[str] | None:
        """Depth-first search with an explicit recursion stack; returns the first cycle."""
        color = dict.fromkeys(self._edges, _WHITE)
        for root in sorted(self._edges):
            if color[root] != _WHITE:
                continue
            path: list[str] = [root]
            iters = [iter(sorted(self._edges[root]))]
            color[root] = _GREY
            while iters:
                nxt = next(iters[-1], None)
                if nxt is None:
                    color[path.pop()] = _BLACK
                    iters.pop()
                    continue
                if color[nxt] == _GREY:
                    return path[path.index(nxt) :] + [nxt]
                if color[nxt] == _WHITE:
                    color[nxt] = _GREY
                    path.append(nxt)
                    iters.append(iter(sorted(self._edges[nxt])))
        return None


def default_phase_graph() -> PhaseGraph:
    """The architecture -> ... -> performance/security ordering."""
    return phase_graph_from(DEFAULT_CATEGORY_PHASES, DEFAULT_PRECEDENCE)


def phase_graph_from(
    phase_table: Mapping[str, int],
    precedence: Iterable[tuple[str, str]],
) -> PhaseGraph:
    graph = PhaseGraph(phase_table)
    for before, after in precedence:
        graph.add_precedence(before, after)
    return graph
