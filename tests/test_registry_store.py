"""Tests for registry/store.py — Registry registration, lookup, listing."""

from __future__ import annotations

import threading

import pytest

from agentplan.registry.errors import DuplicateNameError, NotFoundError
from agentplan.registry.store import Registry
from tests.conftest import make_record


@pytest.mark.unit
def test_lookup_after_register_returns_same_record():
    registry = Registry()
    records = [make_record(f"agent-{i}", "components") for i in range(5)]
    for record in records:
        registry.register(record)
    for record in records:
        assert registry.lookup("components", record.id) is record
        assert registry.lookup("components", record.id) is record


@pytest.mark.unit
def test_duplicate_rejected_and_first_retained():
    """Registering tailwind-specialist twice keeps the first record."""
    registry = Registry()
    first = make_record("tailwind-specialist", "styling", ("tailwind",))
    second = first.model_copy(update={"description": "impostor", "source_path": "b.md"})
    registry.register(first)

    with pytest.raises(DuplicateNameError) as exc_info:
        registry.register(second)

    assert exc_info.value.category == "styling"
    assert exc_info.value.agent_id == "tailwind-specialist"
    assert registry.lookup("styling", "tailwind-specialist") is first
    assert len(registry) == 1


@pytest.mark.unit
def test_same_id_in_different_categories_allowed():
    registry = Registry()
    registry.register(make_record("specialist", "styling"))
    registry.register(make_record("specialist", "testing"))
    assert len(registry) == 2


@pytest.mark.unit
def test_lookup_missing_raises_not_found():
    registry = Registry([make_record("react-architect", "architecture")])
    with pytest.raises(NotFoundError, match="vue-architect"):
        registry.lookup("architecture", "vue-architect")
    assert registry.get("architecture", "vue-architect") is None


@pytest.mark.unit
def test_list_by_category_sorted_by_id():
    registry = Registry()
    for agent_id in ("zeta", "alpha", "mid"):
        registry.register(make_record(agent_id, "testing"))
    registry.register(make_record("other", "styling"))
    assert [r.id for r in registry.list_by_category("testing")] == ["alpha", "mid", "zeta"]
    assert registry.list_by_category("security") == []


@pytest.mark.unit
def test_categories_and_all_records_sorted():
    registry = Registry(
        [
            make_record("b", "testing"),
            make_record("a", "architecture"),
            make_record("c", "architecture"),
        ]
    )
    assert registry.categories() == ["architecture", "testing"]
    assert [r.key for r in registry.all_records()] == [
        ("architecture", "a"),
        ("architecture", "c"),
        ("testing", "b"),
    ]
    assert ("testing", "b") in registry


@pytest.mark.unit
def test_concurrent_register_keeps_one_winner():
    registry = Registry()
    errors: list[DuplicateNameError] = []
    record = make_record("race", "components")

    def _worker() -> None:
        try:
            registry.register(record)
        except DuplicateNameError as e:
            errors.append(e)

    threads = [threading.Thread(target=_worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(registry) == 1
    assert len(errors) == 7
