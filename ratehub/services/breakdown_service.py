"""Audit trees for the per-stack pricing figures.

Every node is rebuilt from the same inputs and in the same order of
operations as the pricing engine, so ``build("final_price_hr").result`` is the
exact figure the engine reports for that stack.
"""
from typing import Callable, Dict, List, Optional

from ..models.breakdown import Breakdown
from ..models.entities import EmployeeCategory
from ..models.pricing import EffectiveDataset, EmployeeCost
from .cost_service import MONTHS_PER_PERIOD
from .settings_service import (
    ANNUAL_INCREASE,
    BA_RATIO,
    DEV_RELEASABLE_HOURS,
    MARGIN,
    QA_RATIO,
    RISK,
    STANDARD_HOURS,
    get_setting,
)

PREFIXES = {"DEV": "dev", "AGENTIC_AI": "agentic"}
POOL_LABELS = {"qa": "QA", "ba": "BA"}
POOL_RATIOS = {"qa": QA_RATIO, "ba": BA_RATIO}


class BreakdownBuilder:
    """Builds breakdown nodes for one stack and category on request.

    Only the subtree under the requested key is computed; nodes are memoized
    for the lifetime of the builder.
    """

    def __init__(
        self,
        dataset: EffectiveDataset,
        costs: Dict[str, EmployeeCost],
        tech_stack_id: str,
        category: EmployeeCategory = "DEV",
    ):
        if category not in PREFIXES:
            raise ValueError(f"Breakdowns are built for DEV or AGENTIC_AI, not {category}")
        self.dataset = dataset
        self.costs = costs
        self.tech_stack_id = tech_stack_id
        self.category = category
        self.prefix = PREFIXES[category]
        self._types = {t.id: t for t in dataset.active_overhead_types}
        self._employees = {e.id: e for e in dataset.active_employees}
        self._cache: Dict[str, Breakdown] = {}

        p = self.prefix
        self._handlers: Dict[str, Callable[[str], Breakdown]] = {
            f"{p}_monthly_cost": lambda _: self._group_sum(f"{p}_monthly_cost", "Fully loaded monthly cost", self._members(), "employee_fully_loaded_monthly"),
            f"{p}_raw_monthly": lambda _: self._group_sum(f"{p}_raw_monthly", "Raw monthly cost", self._members(), "employee_raw_monthly"),
            f"{p}_fte": lambda _: self._fte(),
            f"{p}_capacity_hr": lambda _: self._capacity(),
            f"{p}_cost_hr": lambda _: Breakdown.ratio(
                f"{p}_cost_hr", "Fully loaded cost per releasable hour", self.build(f"{p}_monthly_cost"), self.build(f"{p}_capacity_hr")
            ),
            f"{p}_raw_hr": lambda _: Breakdown.ratio(
                f"{p}_raw_hr", "Raw cost per releasable hour", self.build(f"{p}_raw_monthly"), self.build(f"{p}_capacity_hr")
            ),
            f"{p}_overhead_monthly": self._group_overhead_monthly,
            f"{p}_overhead_hr": lambda type_id: Breakdown.ratio(
                f"{p}_overhead_hr:{type_id}",
                f"{self._type_name(type_id)} overhead per releasable hour",
                self.build(f"{p}_overhead_monthly:{type_id}"),
                self.build(f"{p}_capacity_hr"),
            ),
            "total_overhead_hr": self._total_overhead,
            "total_overheads_hr": lambda _: Breakdown.sum(
                "total_overheads_hr",
                "Total overheads per releasable hour",
                [self.build(f"total_overhead_hr:{type_id}") for type_id in self._types],
            ),
            "cogs_hr": lambda _: self._cogs(),
            "total_releaseable_cost_hr": lambda _: Breakdown.sum(
                "total_releaseable_cost_hr",
                "Total releasable cost per hour",
                [self.build("cogs_hr"), self.build("total_overheads_hr")],
            ),
            "final_price_hr": lambda _: self._final_price(),
            "pct": lambda key: Breakdown.ratio(
                f"pct:{key}", f"Share of releasable cost: {key}", self.build(key), self.build("total_releaseable_cost_hr"), money=False
            ),
            "overhead_monthly_equivalent": self._overhead_monthly_equivalent,
            "employee_fully_loaded_monthly": self._employee_fully_loaded_monthly,
            "employee_annual_base": self._employee_annual_base,
            "employee_adjusted_gross": self._employee_adjusted_gross,
            "employee_oncost_factor": self._employee_oncost_factor,
            "employee_raw_monthly": self._employee_raw_monthly,
            "employee_overhead_monthly": self._employee_overhead_monthly,
            "employee_type_overhead_monthly": self._employee_type_overhead_monthly,
        }
        if category == "DEV":
            for pool in POOL_LABELS:
                self._handlers.update(self._pool_handlers(pool))

    # -- public ---------------------------------------------------------

    def build(self, key: str) -> Breakdown:
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        name, _, arg = key.partition(":")
        handler = self._handlers.get(name)
        if handler is None:
            raise KeyError(key)
        node = handler(arg)
        self._cache[key] = node
        return node

    @property
    def keys(self) -> List[str]:
        """Top-level metric keys for this stack, as shown in a results table."""
        p = self.prefix
        keys = [f"{p}_raw_hr"] + [f"{p}_overhead_hr:{type_id}" for type_id in self._types]
        if self.category == "DEV":
            keys += ["qa_raw_addon_hr", "ba_raw_addon_hr"]
        return keys + ["total_overheads_hr", "cogs_hr", "total_releaseable_cost_hr", "final_price_hr"]

    # -- leaves ---------------------------------------------------------

    def _setting(self, key: str) -> Breakdown:
        present = key in self.dataset.settings
        return Breakdown.value(
            key, key.replace("_", " ").capitalize(), get_setting(self.dataset.settings, key), "setting" if present else "default"
        )

    @staticmethod
    def _constant(key: str, value: float) -> Breakdown:
        return Breakdown.value(key, key.replace("_", " ").capitalize(), value, "constant")

    def _factor(self, key: str, setting_key: str) -> Breakdown:
        return Breakdown.sum(key, f"1 + {setting_key}", [self._constant("one", 1.0), self._setting(setting_key)], money=False)

    def _type(self, type_id: str):
        overhead_type = self._types.get(type_id)
        if overhead_type is None:
            raise KeyError(f"overhead type {type_id}")
        return overhead_type

    def _type_name(self, type_id: str) -> str:
        return self._type(type_id).name

    def _employee(self, employee_id: str):
        employee = self._employees.get(employee_id)
        if employee is None:
            raise KeyError(f"employee {employee_id}")
        return employee

    # -- groups ---------------------------------------------------------

    def _members(self) -> List[str]:
        return [
            c.employee_id
            for c in self.costs.values()
            if c.category == self.category and c.tech_stack_id == self.tech_stack_id
        ]

    def _pool_members(self, pool: str) -> List[str]:
        category = POOL_LABELS[pool]
        return [c.employee_id for c in self.costs.values() if c.category == category]

    def _group_sum(self, key: str, label: str, employee_ids: List[str], child: str) -> Breakdown:
        return Breakdown.sum(key, label, [self.build(f"{child}:{employee_id}") for employee_id in employee_ids])

    def _fte(self) -> Breakdown:
        key = f"{self.prefix}_fte"
        inputs = [
            Breakdown.value(f"employee_fte:{employee_id}", self._employee(employee_id).employee.name, self.costs[employee_id].fte)
            for employee_id in self._members()
        ]
        return Breakdown.sum(key, "Total FTE", inputs, money=False)

    def _capacity(self) -> Breakdown:
        return Breakdown.product(
            f"{self.prefix}_capacity_hr",
            "Releasable hours per month",
            [self._setting(DEV_RELEASABLE_HOURS), self.build(f"{self.prefix}_fte")],
            money=False,
        )

    def _group_overhead_monthly(self, type_id: str) -> Breakdown:
        return self._overhead_monthly_for(f"{self.prefix}_overhead_monthly:{type_id}", type_id, self._members())

    def _overhead_monthly_for(self, key: str, type_id: str, employee_ids: List[str]) -> Breakdown:
        inputs = [
            self.build(f"employee_type_overhead_monthly:{employee_id}:{type_id}")
            for employee_id in employee_ids
            if type_id in self._employee(employee_id).shares
        ]
        return Breakdown.sum(key, f"{self._type_name(type_id)} overhead per month", inputs)

    def _pool_handlers(self, pool: str) -> Dict[str, Callable[[str], Breakdown]]:
        label = POOL_LABELS[pool]

        def add_on(key: str, title: str, monthly_key: str, per_hour_key: str) -> Breakdown:
            if not self._pool_members(pool):
                return Breakdown.value(key, title, 0.0, f"no active {label} employees", money=True)
            per_hour = Breakdown.ratio(per_hour_key, f"{title} per {label} hour", self.build(monthly_key), self._setting(STANDARD_HOURS))
            return Breakdown.product(key, title, [self._setting(POOL_RATIOS[pool]), per_hour])

        return {
            f"{pool}_monthly_cost": lambda _: self._group_sum(f"{pool}_monthly_cost", f"{label} fully loaded monthly cost", self._pool_members(pool), "employee_fully_loaded_monthly"),
            f"{pool}_raw_monthly": lambda _: self._group_sum(f"{pool}_raw_monthly", f"{label} raw monthly cost", self._pool_members(pool), "employee_raw_monthly"),
            f"{pool}_overhead_monthly": lambda type_id: self._overhead_monthly_for(f"{pool}_overhead_monthly:{type_id}", type_id, self._pool_members(pool)),
            f"{pool}_cost_per_dev_rel_hr": lambda _: add_on(
                f"{pool}_cost_per_dev_rel_hr", f"{label} cost per dev releasable hour", f"{pool}_monthly_cost", f"{pool}_cost_per_{pool}_hr"
            ),
            f"{pool}_raw_addon_hr": lambda _: add_on(
                f"{pool}_raw_addon_hr", f"{label} raw add-on per releasable hour", f"{pool}_raw_monthly", f"{pool}_raw_per_{pool}_hr"
            ),
            f"{pool}_overhead_addon_hr": lambda type_id: add_on(
                f"{pool}_overhead_addon_hr:{type_id}",
                f"{label} {self._type_name(type_id)} add-on per releasable hour",
                f"{pool}_overhead_monthly:{type_id}",
                f"{pool}_overhead_per_{pool}_hr:{type_id}",
            ),
        }

    # -- totals ---------------------------------------------------------

    def _total_overhead(self, type_id: str) -> Breakdown:
        inputs = [self.build(f"{self.prefix}_overhead_hr:{type_id}")]
        if self.category == "DEV":
            inputs += [self.build(f"qa_overhead_addon_hr:{type_id}"), self.build(f"ba_overhead_addon_hr:{type_id}")]
        return Breakdown.sum(f"total_overhead_hr:{type_id}", f"Total {self._type_name(type_id)} per releasable hour", inputs)

    def _cogs(self) -> Breakdown:
        inputs = [self.build(f"{self.prefix}_raw_hr")]
        if self.category == "DEV":
            inputs += [self.build("qa_raw_addon_hr"), self.build("ba_raw_addon_hr")]
        return Breakdown.sum("cogs_hr", "Cost of goods sold per releasable hour", inputs)

    def _final_price(self) -> Breakdown:
        return Breakdown.product(
            "final_price_hr",
            "Final price per releasable hour",
            [self.build("total_releaseable_cost_hr"), self._factor("margin_factor", MARGIN), self._factor("risk_factor", RISK)],
        )

    # -- employees and overhead types -----------------------------------

    def _overhead_monthly_equivalent(self, type_id: str) -> Breakdown:
        overhead_type = self._type(type_id)
        return Breakdown.ratio(
            f"overhead_monthly_equivalent:{type_id}",
            f"{overhead_type.name} per month",
            Breakdown.value(f"overhead_amount:{type_id}", f"{overhead_type.name} ({overhead_type.period})", overhead_type.amount, money=True),
            self._constant(f"months_per_{overhead_type.period}_period", float(MONTHS_PER_PERIOD[overhead_type.period])),
        )

    def _employee_adjusted_gross(self, employee_id: str) -> Breakdown:
        employee = self._employee(employee_id).employee
        return Breakdown.product(
            f"employee_adjusted_gross:{employee_id}",
            f"{employee.name} adjusted gross monthly",
            [
                Breakdown.value(f"employee_gross_monthly:{employee_id}", "Gross monthly", employee.gross_monthly, money=True),
                self._factor("annual_increase_factor", ANNUAL_INCREASE),
            ],
        )

    def _employee_oncost_factor(self, employee_id: str) -> Breakdown:
        employee = self._employee(employee_id).employee
        return Breakdown.sum(
            f"employee_oncost_factor:{employee_id}",
            "1 + oncost rate",
            [self._constant("one", 1.0), Breakdown.value(f"employee_oncost_rate:{employee_id}", "Oncost rate", employee.oncost_rate or 0.0)],
            money=False,
        )

    def _employee_annual_base(self, employee_id: str) -> Breakdown:
        employee = self._employee(employee_id).employee
        pay = Breakdown.product(
            f"employee_annual_pay:{employee_id}",
            "Annual gross with oncost",
            [
                self.build(f"employee_adjusted_gross:{employee_id}"),
                self._constant("months_per_year", 12.0),
                self.build(f"employee_oncost_factor:{employee_id}"),
            ],
        )
        return Breakdown.sum(
            f"employee_annual_base:{employee_id}",
            f"{employee.name} annual base",
            [
                pay,
                Breakdown.value(f"employee_annual_benefits:{employee_id}", "Annual benefits", employee.annual_benefits or 0.0, money=True),
                Breakdown.value(f"employee_annual_bonus:{employee_id}", "Annual bonus", employee.annual_bonus or 0.0, money=True),
            ],
        )

    def _employee_raw_monthly(self, employee_id: str) -> Breakdown:
        employee = self._employee(employee_id).employee
        months = self._constant("months_per_year", 12.0)
        return Breakdown.sum(
            f"employee_raw_monthly:{employee_id}",
            f"{employee.name} raw monthly cost",
            [
                Breakdown.product(
                    f"employee_monthly_pay:{employee_id}",
                    "Monthly gross with oncost",
                    [self.build(f"employee_adjusted_gross:{employee_id}"), self.build(f"employee_oncost_factor:{employee_id}")],
                ),
                Breakdown.ratio(
                    f"employee_monthly_benefits:{employee_id}",
                    "Benefits per month",
                    Breakdown.value(f"employee_annual_benefits:{employee_id}", "Annual benefits", employee.annual_benefits or 0.0, money=True),
                    months,
                ),
                Breakdown.ratio(
                    f"employee_monthly_bonus:{employee_id}",
                    "Bonus per month",
                    Breakdown.value(f"employee_annual_bonus:{employee_id}", "Annual bonus", employee.annual_bonus or 0.0, money=True),
                    months,
                ),
            ],
        )

    def _employee_type_overhead_monthly(self, arg: str) -> Breakdown:
        employee_id, _, type_id = arg.partition(":")
        employee = self._employee(employee_id)
        name = self._type_name(type_id)
        share: Optional[float] = employee.shares.get(type_id)
        return Breakdown.product(
            f"employee_type_overhead_monthly:{employee_id}:{type_id}",
            f"{employee.employee.name} share of {name}",
            [
                self.build(f"overhead_monthly_equivalent:{type_id}"),
                Breakdown.value(f"allocation_share:{employee_id}:{type_id}", "Allocation share", share or 0.0),
            ],
        )

    def _employee_overhead_monthly(self, employee_id: str) -> Breakdown:
        employee = self._employee(employee_id)
        return Breakdown.sum(
            f"employee_overhead_monthly:{employee_id}",
            f"{employee.employee.name} allocated overhead per month",
            [
                self.build(f"employee_type_overhead_monthly:{employee_id}:{type_id}")
                for type_id in self._types
                if type_id in employee.shares
            ],
        )

    def _employee_fully_loaded_monthly(self, employee_id: str) -> Breakdown:
        employee = self._employee(employee_id).employee
        months = self._constant("months_per_year", 12.0)
        annual = Breakdown.sum(
            f"employee_fully_loaded_annual:{employee_id}",
            "Fully loaded annual cost",
            [
                self.build(f"employee_annual_base:{employee_id}"),
                Breakdown.product(
                    f"employee_overhead_annual:{employee_id}",
                    "Allocated overhead per year",
                    [self.build(f"employee_overhead_monthly:{employee_id}"), months],
                ),
            ],
        )
        return Breakdown.ratio(f"employee_fully_loaded_monthly:{employee_id}", f"{employee.name} fully loaded monthly", annual, months)
