import pytest

from factories import JAVA_SETTINGS, employee, overhead_type, snapshot
from ratehub.services.dashboard_service import propose_allocation, summarize_costs, summarize_snapshot
from ratehub.services.effective_service import build_effective_dataset


def _team():
    return snapshot(
        employees=[
            employee("dev-1", gross_monthly=30000),
            employee("dev-2", gross_monthly=10000),
            employee("qa-1", category="QA", tech_stack_id=None, gross_monthly=5000, is_active=False),
        ],
        overhead_types=[overhead_type("office", 1200), overhead_type("legacy", 600, is_active=False)],
    )


def test_summary_splits_active_and_inactive():
    summary = summarize_costs(build_effective_dataset(_team()))
    by_category = {c.category: c for c in summary.categories}

    assert by_category["DEV"].active_count == 2
    assert by_category["DEV"].active_monthly_cost == pytest.approx(40000)
    assert by_category["QA"].inactive_count == 1
    assert by_category["QA"].inactive_monthly_cost == pytest.approx(5000)
    assert summary.total_active_monthly_cost == pytest.approx(40000)
    assert summary.total_inactive_monthly_cost == pytest.approx(5000)
    assert summary.total_overhead_monthly == pytest.approx(100)
    assert summary.inactive_overhead_type_count == 1


def test_equal_proposal_splits_evenly():
    proposal = propose_allocation(build_effective_dataset(_team()), "office")

    assert [s.employee_id for s in proposal.shares] == ["dev-1", "dev-2"]
    assert [s.share for s in proposal.shares] == [0.5, 0.5]


def test_proportional_proposal_follows_gross():
    proposal = propose_allocation(build_effective_dataset(_team()), "office", "proportional")

    assert [s.share for s in proposal.shares] == [pytest.approx(0.75), pytest.approx(0.25)]
    assert sum(s.share for s in proposal.shares) == pytest.approx(1.0)


def test_proportional_proposal_applies_annual_increase():
    values = dict(JAVA_SETTINGS, annual_increase="0.1")
    snap = snapshot(employees=[employee("dev-1"), employee("dev-2")], overhead_types=[overhead_type("office", 1200)], setting_values=values)
    proposal = propose_allocation(build_effective_dataset(snap), "office", "proportional")
    assert [s.share for s in proposal.shares] == [pytest.approx(0.5), pytest.approx(0.5)]


@pytest.mark.parametrize("type_id", ["legacy", "unknown"])
def test_proposal_requires_an_active_type(type_id):
    with pytest.raises(ValueError):
        propose_allocation(build_effective_dataset(_team()), type_id)


def test_proposal_requires_active_employees():
    snap = snapshot(employees=[employee("dev-1", is_active=False)], overhead_types=[overhead_type("office", 1200)])
    with pytest.raises(ValueError):
        propose_allocation(build_effective_dataset(snap), "office")


def test_proportional_proposal_rejects_zero_gross():
    snap = snapshot(employees=[employee("dev-1", gross_monthly=0)], overhead_types=[overhead_type("office", 1200)])
    with pytest.raises(ValueError):
        propose_allocation(build_effective_dataset(snap), "office", "proportional")


def test_summary_converted_with_exchange_ratio(java_snapshot):
    values = dict(JAVA_SETTINGS, exchange_ratio="4")
    snap = snapshot(employees=java_snapshot.employees, overhead_types=[overhead_type("office", 1200)], setting_values=values)

    summary = summarize_snapshot(snap)
    primary = summarize_costs(build_effective_dataset(snap), convert=False)

    assert summary.currency == "secondary"
    assert summary.exchange_ratio == 4
    assert summary.categories[0].active_monthly_cost == pytest.approx(7500)
    assert summary.total_active_monthly_cost == pytest.approx(7500)
    assert summary.total_overhead_monthly == pytest.approx(25)
    assert summary.categories[0].active_count == 1
    assert primary.currency == "primary"
    assert primary.total_active_monthly_cost == pytest.approx(30000)
