"""Registry: indexed, validated in-memory store of agent records."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable

from agentplan.registry.errors import DuplicateNameError, NotFoundError
from agentplan.registry.models import AgentRecord

logger = logging.getLogger(__name__)


class Registry:
    """Agent records keyed by (category, id).

    ``register`` is the single synchronized write path. Readers get sorted
    copies, so listings do not depend on registration order.
    """

    _records: dict[tuple[str, str], AgentRecord]

    def __init__(self, records: Iterable[AgentRecord] = ()) -> None:
        self._records = {}
        self._lock = threading.Lock()
        for record in records:
            self.register(record)

    def register(self, record: AgentRecord) -> None:
        """Add a record. Raises DuplicateNameError and leaves state unchanged on conflict."""
        with self._lock:
            existing = self._records.get(record.key)
            if existing is not None:
                raise DuplicateNameError(
                    record.category,
                    record.id,
                    context=f"{record.source_path} conflicts with {existing.source_path}",
                )
            self._records[record.key] = record
        logger.debug(f"Registered {record.category}/{record.id}")

    def lookup(self, category: str, agent_id: str) -> AgentRecord:
        record = self._records.get((category, agent_id))
        if record is None:
            raise NotFoundError(category, agent_id)
        return record

    def get(self, category: str, agent_id: str) -> AgentRecord | None:
        return self._records.get((category, agent_id))

    def list_by_category(self, category: str) -> list[AgentRecord]:
        records = [r for r in self._records.values() if r.category == category]
        return sorted(records, key=lambda r: r.id)

    def categories(self) -> list[str]:
        return sorted({category for category, _ in self._records})

    def all_records(self) -> list[AgentRecord]:
        return [self._records[key] for key in sorted(self._records)]

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._records
