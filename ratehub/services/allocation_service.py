from typing import Dict, Iterable, List

from ..models.entities import OverheadType
from ..models.pricing import EffectiveDataset, EffectiveEmployee, EmployeeCost
from .cost_service import annual_base, overhead_monthly_equivalent, raw_monthly
from .settings_service import ANNUAL_INCREASE, get_setting


def allocated_overhead_monthly_by_type(
    employee: EffectiveEmployee, active_types: Iterable[OverheadType]
) -> Dict[str, float]:
    """Monthly overhead attributed to ``employee`` per active type.

    A type the employee has no allocation row for contributes zero.
    """
    contributions: Dict[str, float] = {}
    for overhead_type in active_types:
        share = employee.shares.get(overhead_type.id)
        if share is None:
            continue
        contributions[overhead_type.id] = overhead_monthly_equivalent(overhead_type) * share
    return contributions


def allocated_overhead_monthly(employee: EffectiveEmployee, active_types: Iterable[OverheadType]) -> float:
    return sum(allocated_overhead_monthly_by_type(employee, active_types).values())


def employee_cost(
    employee: EffectiveEmployee, active_types: List[OverheadType], annual_increase: float = 0.0
) -> EmployeeCost:
    by_type = allocated_overhead_monthly_by_type(employee, active_types)
    allocated = sum(by_type.values())
    base = annual_base(employee.employee, annual_increase)
    fully_loaded_annual = base + allocated * 12
    return EmployeeCost(
        employee_id=employee.id,
        category=employee.category,
        tech_stack_id=employee.employee.tech_stack_id,
        fte=employee.employee.fte,
        annual_base=base,
        raw_monthly=raw_monthly(employee.employee, annual_increase),
        allocated_overhead_monthly=allocated,
        overhead_monthly_by_type=by_type,
        fully_loaded_annual=fully_loaded_annual,
        fully_loaded_monthly=fully_loaded_annual / 12,
    )


def employee_costs(dataset: EffectiveDataset, include_inactive: bool = False) -> Dict[str, EmployeeCost]:
    """Cost record per employee, keyed by id, in snapshot order."""
    annual_increase = get_setting(dataset.settings, ANNUAL_INCREASE)
    active_types = dataset.active_overhead_types
    employees = dataset.employees if include_inactive else dataset.active_employees
    return {e.id: employee_cost(e, active_types, annual_increase) for e in employees}


def allocation_sum(dataset: EffectiveDataset, overhead_type_id: str) -> float:
    return sum(e.shares.get(overhead_type_id, 0.0) for e in dataset.active_employees)


def missing_allocation_count(dataset: EffectiveDataset, overhead_type_id: str) -> int:
    return len(employees_missing_type(dataset, overhead_type_id))


def employees_missing_type(dataset: EffectiveDataset, overhead_type_id: str) -> List[str]:
    return [e.id for e in dataset.active_employees if not e.shares.get(overhead_type_id)]

