from typing import Dict, Iterable, List, Optional

from ..models.entities import EmployeeCategory, OverheadType
from ..models.pricing import EffectiveDataset, EmployeeCost, GroupAggregate
from .settings_service import DEV_RELEASABLE_HOURS, STANDARD_HOURS, get_setting


def group_costs(
    costs: Iterable[EmployeeCost],
    category: EmployeeCategory,
    tech_stack_id: Optional[str],
    hours_per_unit: float,
    active_types: List[OverheadType],
) -> GroupAggregate:
    members = [c for c in costs if c.category == category and (tech_stack_id is None or c.tech_stack_id == tech_stack_id)]
    fte = sum(c.fte for c in members)
    return GroupAggregate(
        category=category,
        tech_stack_id=tech_stack_id,
        employee_ids=[c.employee_id for c in members],
        fte=fte,
        hours_per_unit=hours_per_unit,
        hours_capacity=hours_per_unit * fte,
        monthly_cost=sum(c.fully_loaded_monthly for c in members),
        raw_monthly=sum(c.raw_monthly for c in members),
        overhead_monthly_by_type={
            t.id: sum(c.overhead_monthly_by_type.get(t.id, 0.0) for c in members) for t in active_types
        },
    )


def aggregate_stack(
    dataset: EffectiveDataset, costs: Dict[str, EmployeeCost], tech_stack_id: str, category: EmployeeCategory
) -> GroupAggregate:
    """DEV or AGENTIC_AI employees of one stack; capacity in releasable hours."""
    hours = get_setting(dataset.settings, DEV_RELEASABLE_HOURS)
    return group_costs(costs.values(), category, tech_stack_id, hours, dataset.active_overhead_types)


def aggregate_pool(dataset: EffectiveDataset, costs: Dict[str, EmployeeCost], category: EmployeeCategory) -> GroupAggregate:
    """QA or BA employees across all stacks; capacity in standard hours."""
    hours = get_setting(dataset.settings, STANDARD_HOURS)
    return group_costs(costs.values(), category, None, hours, dataset.active_overhead_types)
