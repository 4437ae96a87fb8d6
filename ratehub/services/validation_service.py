import logging
from typing import Dict, List

from ..models.entities import STACK_CATEGORIES
from ..models.pricing import AllocationStat, EffectiveDataset, InvalidAllocation, ValidationReport
from .allocation_service import allocation_sum, employees_missing_type, missing_allocation_count
from .settings_service import REQUIRED_SETTINGS

log = logging.getLogger(__name__)

ALLOCATION_TOLERANCE = 0.005
# Absorbs float noise so that 0.995 and 1.005 count as inside the band.
_EPSILON = 1e-9


def is_allocation_valid(total: float) -> bool:
    return abs(total - 1.0) <= ALLOCATION_TOLERANCE + _EPSILON


def find_missing_settings(settings: Dict[str, float]) -> List[str]:
    return [key for key in REQUIRED_SETTINGS if key not in settings]


def allocation_stats(dataset: EffectiveDataset) -> List[AllocationStat]:
    stats = []
    for overhead_type in dataset.active_overhead_types:
        total = allocation_sum(dataset, overhead_type.id)
        stats.append(
            AllocationStat(
                type_id=overhead_type.id,
                sum=total,
                missing_count=missing_allocation_count(dataset, overhead_type.id),
                valid=is_allocation_valid(total),
            )
        )
    return stats


def employees_missing_allocation(dataset: EffectiveDataset) -> List[str]:
    """Active employees with no row, or a zero share, for some active overhead type.

    Such employees still count with a zero contribution for that type.
    """
    missing = set()
    for overhead_type in dataset.active_overhead_types:
        missing.update(employees_missing_type(dataset, overhead_type.id))
    return [e.id for e in dataset.active_employees if e.id in missing]


def employees_without_stack(dataset: EffectiveDataset) -> List[str]:
    return [
        e.id
        for e in dataset.active_employees
        if e.category in STACK_CATEGORIES and not e.employee.tech_stack_id
    ]


def validate(dataset: EffectiveDataset) -> ValidationReport:
    stats = allocation_stats(dataset)
    report = ValidationReport(
        missing_settings=find_missing_settings(dataset.settings),
        invalid_overhead_allocations=[InvalidAllocation(type_id=s.type_id, sum=s.sum) for s in stats if not s.valid],
        employees_missing_allocation=employees_missing_allocation(dataset),
        malformed_settings=list(dataset.malformed_settings),
        employees_without_stack=employees_without_stack(dataset),
        allocation_stats=stats,
    )
    if report.has_warnings:
        log.info(
            "Scenario %s has data warnings: missing settings=%s, invalid allocations=%s, "
            "employees missing allocation=%d, malformed settings=%s, employees without stack=%d",
            dataset.scenario_id,
            report.missing_settings,
            [a.type_id for a in report.invalid_overhead_allocations],
            len(report.employees_missing_allocation),
            report.malformed_settings,
            len(report.employees_without_stack),
        )
    return report
