import logging
from typing import Dict, List, Optional

from ..core.database import fetch, fetchrow
from ..models.entities import (
    AllocationRow,
    Employee,
    EmployeeActiveOverride,
    OverheadAllocationOverride,
    OverheadType,
    OverheadTypeActiveOverride,
    PricingSnapshot,
    PricingView,
    Setting,
    SettingOverride,
    TechStack,
)

log = logging.getLogger(__name__)


class ScenarioNotFound(LookupError):
    pass


def _allocations_by_employee(rows: List[dict]) -> Dict[str, List[AllocationRow]]:
    grouped: Dict[str, List[AllocationRow]] = {}
    for row in rows:
        grouped.setdefault(row["employee_id"], []).append(
            AllocationRow(overhead_type_id=row["overhead_type_id"], share=row["share"])
        )
    return grouped


def _to_employee(row: dict, allocations: Dict[str, List[AllocationRow]]) -> Employee:
    return Employee(**row, overhead_allocs=allocations.get(row["id"], []))


async def load_snapshot(scenario_id: Optional[str] = None) -> PricingSnapshot:
    """Read every record pricing needs for the base configuration or one scenario.

    Override tables are only read for ``scenario_id``; without one the snapshot
    carries no overrides.
    """
    views: List[PricingView] = []
    if scenario_id is not None:
        view = await fetchrow("SELECT id, name FROM pricing_views WHERE id = %s", [scenario_id])
        if view is None:
            raise ScenarioNotFound(scenario_id)
        views = [PricingView(**view)]

    allocations = _allocations_by_employee(
        await fetch(
            "SELECT employee_id, overhead_type_id, share FROM employee_overhead_allocations ORDER BY employee_id ASC"
        )
    )
    employees = [
        _to_employee(r, allocations)
        for r in await fetch(
            """
            SELECT id, name, category, tech_stack_id, is_active, gross_monthly, net_monthly,
                   oncost_rate, annual_benefits, annual_bonus, fte
            FROM employees
            ORDER BY name ASC
            """
        )
    ]
    tech_stacks = [TechStack(**r) for r in await fetch("SELECT id, name FROM tech_stacks ORDER BY name ASC")]
    overhead_types = [
        OverheadType(**r)
        for r in await fetch("SELECT id, name, is_active, amount, period FROM overhead_types ORDER BY name ASC")
    ]
    settings = [
        Setting(**r) for r in await fetch('SELECT key, value, value_type, "group", unit FROM settings ORDER BY key ASC')
    ]

    snapshot = PricingSnapshot(
        employees=employees,
        tech_stacks=tech_stacks,
        overhead_types=overhead_types,
        settings=settings,
        views=views,
    )
    if scenario_id is None:
        log.debug("Loaded base snapshot with %d employees", len(employees))
        return snapshot

    params = [scenario_id]
    employee_overrides = [
        EmployeeActiveOverride(**r)
        for r in await fetch(
            "SELECT view_id, employee_id, is_active FROM employee_active_overrides WHERE view_id = %s", params
        )
    ]
    type_overrides = [
        OverheadTypeActiveOverride(**r)
        for r in await fetch(
            "SELECT view_id, overhead_type_id, is_active FROM overhead_type_active_overrides WHERE view_id = %s",
            params,
        )
    ]
    setting_overrides = [
        SettingOverride(**r)
        for r in await fetch(
            'SELECT view_id, key, value, value_type, "group", unit FROM setting_overrides WHERE view_id = %s',
            params,
        )
    ]
    allocation_overrides = [
        OverheadAllocationOverride(**r)
        for r in await fetch(
            """
            SELECT view_id, employee_id, overhead_type_id, share
            FROM overhead_allocation_overrides
            WHERE view_id = %s
            """,
            params,
        )
    ]
    log.debug(
        "Loaded snapshot for scenario %s with %d employees and %d overrides",
        scenario_id,
        len(employees),
        len(employee_overrides) + len(type_overrides) + len(setting_overrides) + len(allocation_overrides),
    )
    return snapshot.model_copy(
        update={
            "employee_active_overrides": employee_overrides,
            "overhead_type_active_overrides": type_overrides,
            "setting_overrides": setting_overrides,
            "allocation_overrides": allocation_overrides,
        }
    )
