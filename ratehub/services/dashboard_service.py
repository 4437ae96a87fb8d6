from typing import Dict, List, Literal, Optional

from ..models.dashboard import AllocationProposal, CategoryCost, CostSummary, ProposedShare
from ..models.entities import PricingSnapshot
from ..models.pricing import EffectiveDataset
from .allocation_service import employee_costs
from .cost_service import adjusted_gross_monthly, overhead_monthly_equivalent
from .effective_service import build_effective_dataset
from .settings_service import ANNUAL_INCREASE, get_exchange_ratio, get_setting

CATEGORIES = ("DEV", "QA", "BA", "AGENTIC_AI")


def convert_summary(summary: CostSummary, exchange_ratio: Optional[float]) -> CostSummary:
    """Express every monthly cost in the secondary currency."""
    if not exchange_ratio or exchange_ratio <= 0:
        return summary
    categories = [
        c.model_copy(
            update={
                "active_monthly_cost": c.active_monthly_cost / exchange_ratio,
                "inactive_monthly_cost": c.inactive_monthly_cost / exchange_ratio,
            }
        )
        for c in summary.categories
    ]
    return summary.model_copy(
        update={
            "categories": categories,
            "currency": "secondary",
            "exchange_ratio": exchange_ratio,
            "total_active_monthly_cost": summary.total_active_monthly_cost / exchange_ratio,
            "total_inactive_monthly_cost": summary.total_inactive_monthly_cost / exchange_ratio,
            "total_overhead_monthly": summary.total_overhead_monthly / exchange_ratio,
        }
    )


def summarize_costs(dataset: EffectiveDataset, convert: bool = True) -> CostSummary:
    """Monthly fully loaded cost per category, split into active and inactive employees.

    Inactive employees are costed against the active overhead types, as if
    they were switched back on. Totals are computed in the primary currency
    and converted at the end when ``convert`` is set.
    """
    costs = employee_costs(dataset, include_inactive=True)
    inactive_ids = {e.id for e in dataset.inactive_employees}

    by_category: List[CategoryCost] = []
    for category in CATEGORIES:
        members = [c for c in costs.values() if c.category == category]
        active = [c for c in members if c.employee_id not in inactive_ids]
        inactive = [c for c in members if c.employee_id in inactive_ids]
        by_category.append(
            CategoryCost(
                category=category,
                active_count=len(active),
                inactive_count=len(inactive),
                active_monthly_cost=sum(c.fully_loaded_monthly for c in active),
                inactive_monthly_cost=sum(c.fully_loaded_monthly for c in inactive),
            )
        )

    summary = CostSummary(
        scenario_id=dataset.scenario_id,
        categories=by_category,
        total_active_monthly_cost=sum(c.active_monthly_cost for c in by_category),
        total_inactive_monthly_cost=sum(c.inactive_monthly_cost for c in by_category),
        total_overhead_monthly=sum(overhead_monthly_equivalent(t) for t in dataset.active_overhead_types),
        inactive_overhead_type_count=len(dataset.overhead_types) - len(dataset.active_overhead_types),
    )
    return convert_summary(summary, get_exchange_ratio(dataset.settings)) if convert else summary


def propose_allocation(
    dataset: EffectiveDataset, overhead_type_id: str, mode: Literal["equal", "proportional"] = "equal"
) -> AllocationProposal:
    """Shares of one overhead type across the active employees.

    ``equal`` splits evenly; ``proportional`` follows adjusted gross monthly
    pay. Raises ValueError when the type is unknown or inactive, nobody is
    active, or total gross is zero.
    """
    overhead_type = next((t for t in dataset.overhead_types if t.id == overhead_type_id), None)
    if overhead_type is None:
        raise ValueError("Overhead type not found")
    if not overhead_type.is_active:
        raise ValueError("Overhead type is not active")
    employees = dataset.active_employees
    if not employees:
        raise ValueError("No active employees found")

    if mode == "equal":
        weights: Dict[str, float] = {e.id: 1.0 for e in employees}
    else:
        annual_increase = get_setting(dataset.settings, ANNUAL_INCREASE)
        weights = {e.id: adjusted_gross_monthly(e.employee, annual_increase) for e in employees}
    total = sum(weights.values())
    if total == 0:
        raise ValueError("Total adjusted gross monthly is zero")

    return AllocationProposal(
        scenario_id=dataset.scenario_id,
        overhead_type_id=overhead_type_id,
        mode=mode,
        shares=[ProposedShare(employee_id=employee_id, share=weight / total) for employee_id, weight in weights.items()],
    )


def summarize_snapshot(snapshot: PricingSnapshot, scenario_id=None) -> CostSummary:
    return summarize_costs(build_effective_dataset(snapshot, scenario_id))
