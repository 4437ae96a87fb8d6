"""Shared fixtures for RateHub tests."""
import pytest

from factories import employee, overhead_type, snapshot


@pytest.fixture
def java_snapshot():
    """One Java developer at 30000/month, no extras, no overheads."""
    return snapshot(employees=[employee("dev-1", oncost_rate=0)])


@pytest.fixture
def mixed_snapshot():
    """Two stacks, every category, two overhead types with uneven allocations."""
    shares_a = {"office": 0.4, "mgmt": 0.3}
    shares_b = {"office": 0.2, "mgmt": 0.3}
    shares_c = {"office": 0.2, "mgmt": 0.2}
    return snapshot(
        employees=[
            employee("dev-1", gross_monthly=10000, oncost_rate=0.2, annual_benefits=1200, annual_bonus=2400, shares=shares_a),
            employee("dev-2", gross_monthly=8000, fte=0.5, shares=shares_b),
            employee("qa-1", category="QA", tech_stack_id=None, gross_monthly=6000, shares=shares_c),
            employee("ba-1", category="BA", tech_stack_id=None, gross_monthly=7000, shares={"office": 0.1, "mgmt": 0.2}),
            employee("ai-1", category="AGENTIC_AI", gross_monthly=4000, shares={"office": 0.1}),
        ],
        overhead_types=[overhead_type("office", 120000), overhead_type("mgmt", 5000, period="monthly")],
        setting_values={
            "dev_releasable_hours_per_month": "100",
            "standard_hours_per_month": "160",
            "qa_ratio": "0.5",
            "ba_ratio": "0.25",
            "margin": "0.2",
            "risk": "0.1",
        },
        stacks=("java", "python"),
    )
