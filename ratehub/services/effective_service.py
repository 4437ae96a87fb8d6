import logging
from typing import Dict, Optional, Tuple, TypeVar

from ..models.entities import PricingSnapshot
from ..models.pricing import EffectiveDataset, EffectiveEmployee, EffectiveOverheadType
from .settings_service import is_well_formed, parse_setting

log = logging.getLogger(__name__)

T = TypeVar("T")


def resolve(base: T, override: Optional[T]) -> T:
    """Effective value of one override channel: the override when present, else the base."""
    return base if override is None else override


def resolve_active(base_active: bool, override: Optional[bool]) -> Tuple[bool, bool]:
    effective = resolve(base_active, override)
    return effective, override is not None and effective != base_active


def resolve_share(base_share: Optional[float], override: Optional[float]) -> float:
    return resolve(resolve(0.0, base_share), override)


def resolve_setting(base_value: str, override_value: Optional[str], value_type: str) -> float:
    return parse_setting(resolve(base_value, override_value), value_type)


def build_effective_dataset(snapshot: PricingSnapshot, scenario_id: Optional[str] = None) -> EffectiveDataset:
    """Merge base records with the overrides of ``scenario_id`` (none when it is None)."""
    def in_scenario(rows):
        if scenario_id is None:
            return []
        return [row for row in rows if row.view_id == scenario_id]

    # Later rows win when a snapshot repeats a natural key.
    employee_active: Dict[str, bool] = {
        o.employee_id: o.is_active for o in in_scenario(snapshot.employee_active_overrides)
    }
    type_active: Dict[str, bool] = {
        o.overhead_type_id: o.is_active for o in in_scenario(snapshot.overhead_type_active_overrides)
    }
    share_overrides: Dict[Tuple[str, str], float] = {
        (o.employee_id, o.overhead_type_id): o.share for o in in_scenario(snapshot.allocation_overrides)
    }
    setting_overrides = {o.key: o for o in in_scenario(snapshot.setting_overrides)}

    overhead_types = []
    for overhead_type in snapshot.overhead_types:
        is_active, is_overridden = resolve_active(overhead_type.is_active, type_active.get(overhead_type.id))
        overhead_types.append(
            EffectiveOverheadType(overhead_type=overhead_type, is_active=is_active, is_overridden=is_overridden)
        )

    employees = []
    for employee in snapshot.employees:
        is_active, is_overridden = resolve_active(employee.is_active, employee_active.get(employee.id))
        base_shares = {row.overhead_type_id: row.share for row in employee.overhead_allocs}
        override_types = [type_id for (emp_id, type_id) in share_overrides if emp_id == employee.id]
        shares = {}
        for type_id in list(base_shares) + [t for t in override_types if t not in base_shares]:
            shares[type_id] = resolve_share(base_shares.get(type_id), share_overrides.get((employee.id, type_id)))
        employees.append(
            EffectiveEmployee(employee=employee, is_active=is_active, is_overridden=is_overridden, shares=shares)
        )

    settings: Dict[str, float] = {}
    malformed = []
    for setting in snapshot.settings:
        override = setting_overrides.get(setting.key)
        value_type = override.value_type if override else setting.value_type
        override_value = override.value if override else None
        settings[setting.key] = resolve_setting(setting.value, override_value, value_type)
        stored = resolve(setting.value, override_value)
        if not is_well_formed(stored, value_type):
            malformed.append(setting.key)
    for key, override in setting_overrides.items():
        if key in settings:
            continue
        settings[key] = parse_setting(override.value, override.value_type)
        if not is_well_formed(override.value, override.value_type):
            malformed.append(key)

    dataset = EffectiveDataset(
        scenario_id=scenario_id,
        employees=employees,
        overhead_types=overhead_types,
        tech_stacks=list(snapshot.tech_stacks),
        settings=settings,
        malformed_settings=malformed,
    )
    log.debug(
        "Resolved dataset for scenario %s: %d/%d active employees, %d/%d active overhead types",
        scenario_id,
        len(dataset.active_employees),
        len(employees),
        len(dataset.active_overhead_types),
        len(overhead_types),
    )
    return dataset
