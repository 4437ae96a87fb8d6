import pytest

from factories import employee, overhead_type, snapshot
from ratehub.services.allocation_service import missing_allocation_count
from ratehub.services.effective_service import build_effective_dataset
from ratehub.services.settings_service import REQUIRED_SETTINGS
from ratehub.services.validation_service import find_missing_settings, is_allocation_valid, validate


@pytest.mark.parametrize("total,valid", [(1.0, True), (0.995, True), (1.005, True), (0.99, False), (1.01, False)])
def test_allocation_tolerance(total, valid):
    assert is_allocation_valid(total) is valid


def _split(first, second):
    return snapshot(
        employees=[employee("dev-1", shares={"office": first}), employee("dev-2", shares={"office": second})],
        overhead_types=[overhead_type("office", 1200)],
    )


def test_balanced_allocation_is_valid():
    report = validate(build_effective_dataset(_split(0.5, 0.5)))

    assert report.invalid_overhead_allocations == []
    assert report.allocation_stats[0].valid
    assert not report.has_warnings


def test_unbalanced_allocation_is_reported():
    report = validate(build_effective_dataset(_split(0.5, 0.4)))

    assert [a.type_id for a in report.invalid_overhead_allocations] == ["office"]
    assert report.invalid_overhead_allocations[0].sum == pytest.approx(0.9)
    assert report.has_warnings


def test_missing_settings_use_defaults_and_are_listed():
    assert find_missing_settings({}) == REQUIRED_SETTINGS
    report = validate(build_effective_dataset(snapshot(setting_values={"margin": "0.2"})))
    assert "margin" not in report.missing_settings
    assert "risk" in report.missing_settings


def test_zero_share_counts_as_missing():
    report = validate(build_effective_dataset(_split(1.0, 0.0)))

    assert report.employees_missing_allocation == ["dev-2"]
    assert report.allocation_stats[0].missing_count == 1
    assert report.allocation_stats[0].valid


def test_developer_without_stack_is_reported():
    snap = snapshot(employees=[employee("dev-1", tech_stack_id=None), employee("qa-1", category="QA", tech_stack_id=None)])
    assert validate(build_effective_dataset(snap)).employees_without_stack == ["dev-1"]


def test_inactive_employees_are_not_validated(mixed_snapshot):
    report = validate(build_effective_dataset(mixed_snapshot))
    assert report.employees_missing_allocation == ["ai-1"]

    snap = mixed_snapshot.model_copy(
        update={"employees": [e.model_copy(update={"is_active": e.id != "ai-1"}) for e in mixed_snapshot.employees]}
    )
    assert validate(build_effective_dataset(snap)).employees_missing_allocation == []


def test_missing_allocation_count_per_type():
    snap = snapshot(
        employees=[employee("dev-1", shares={"office": 1.0}), employee("dev-2", shares={"office": 0.0}), employee("dev-3")],
        overhead_types=[overhead_type("office", 1200)],
    )
    dataset = build_effective_dataset(snap)

    assert missing_allocation_count(dataset, "office") == 2
    assert validate(dataset).allocation_stats[0].missing_count == 2
