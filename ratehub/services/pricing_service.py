import logging
from typing import Dict, List, Optional, Tuple

from ..core.arithmetic import Number, add, divide, multiply, pct
from ..models.breakdown import Breakdown
from ..models.entities import EmployeeCategory, OverheadType, PricingSnapshot
from ..models.pricing import (
    CategoryPricing,
    EffectiveDataset,
    EmployeeCost,
    GroupAggregate,
    PoolAddOns,
    PricingResponse,
    SharedCosts,
    StackPricing,
    ValidationReport,
)
from .aggregation_service import aggregate_pool, aggregate_stack
from .allocation_service import employee_costs
from .breakdown_service import BreakdownBuilder
from .effective_service import build_effective_dataset
from .settings_service import BA_RATIO, MARGIN, QA_RATIO, RISK, get_exchange_ratio, get_setting
from .validation_service import validate

log = logging.getLogger(__name__)


def cost_per_rel_hour(monthly_cost: Number, hours_capacity: Number) -> Number:
    return divide(monthly_cost, hours_capacity)


def pool_add_on(ratio: float, monthly_cost: float, standard_hours: float, headcount: int) -> Number:
    """``ratio * monthly_cost / standard_hours``; zero when the pool has nobody in it."""
    if headcount == 0:
        return 0.0
    return multiply([ratio, divide(monthly_cost, standard_hours)])


def final_price(releaseable_cost: Number, margin: float, risk: float) -> Number:
    return multiply([releaseable_cost, add([1.0, margin]), add([1.0, risk])])


def pool_add_ons(pool: GroupAggregate, ratio: float, active_types: List[OverheadType]) -> PoolAddOns:
    hours = pool.hours_per_unit
    return PoolAddOns(
        category=pool.category,
        cost_per_dev_rel_hour=pool_add_on(ratio, pool.monthly_cost, hours, pool.headcount),
        raw_add_on_per_rel_hour=pool_add_on(ratio, pool.raw_monthly, hours, pool.headcount),
        overhead_add_on_per_rel_hour={
            t.id: pool_add_on(ratio, pool.overhead_monthly_by_type[t.id], hours, pool.headcount) for t in active_types
        },
    )


def price_category(
    group: GroupAggregate,
    active_types: List[OverheadType],
    margin: float,
    risk: float,
    qa: Optional[PoolAddOns] = None,
    ba: Optional[PoolAddOns] = None,
) -> CategoryPricing:
    """Price one category of one stack.

    QA and BA add-ons are passed for DEV only; AGENTIC_AI is priced on its own
    cost. Everything downstream of a zero capacity is None.
    """
    capacity = group.hours_capacity
    raw = cost_per_rel_hour(group.raw_monthly, capacity)
    overhead = {t.id: cost_per_rel_hour(group.overhead_monthly_by_type[t.id], capacity) for t in active_types}

    pools = [p for p in (qa, ba) if p is not None]
    total_overhead = {
        t.id: add([overhead[t.id]] + [p.overhead_add_on_per_rel_hour[t.id] for p in pools]) for t in active_types
    }
    cogs = add([raw] + [p.raw_add_on_per_rel_hour for p in pools])
    total_overheads = add(total_overhead.values())
    releaseable = add([cogs, total_overheads])

    return CategoryPricing(
        category=group.category,
        has_employees=group.headcount > 0,
        cost_per_rel_hour=cost_per_rel_hour(group.monthly_cost, capacity),
        raw_cost_per_rel_hour=raw,
        overhead_per_rel_hour=overhead,
        qa_add_on_per_rel_hour=qa.cost_per_dev_rel_hour if qa else None,
        ba_add_on_per_rel_hour=ba.cost_per_dev_rel_hour if ba else None,
        total_overhead_per_rel_hour=total_overhead,
        total_overheads_per_rel_hour=total_overheads,
        cogs=cogs,
        releaseable_cost=releaseable,
        final_price=final_price(releaseable, margin, risk),
    )


def _scale(value: Number, exchange_ratio: Optional[float]) -> Number:
    if not exchange_ratio:
        return value
    return divide(value, exchange_ratio)


def _scale_category(pricing: CategoryPricing, exchange_ratio: float) -> CategoryPricing:
    scalars = {
        field: _scale(getattr(pricing, field), exchange_ratio)
        for field in (
            "cost_per_rel_hour",
            "raw_cost_per_rel_hour",
            "qa_add_on_per_rel_hour",
            "ba_add_on_per_rel_hour",
            "total_overheads_per_rel_hour",
            "cogs",
            "releaseable_cost",
            "final_price",
        )
    }
    scalars["overhead_per_rel_hour"] = {k: _scale(v, exchange_ratio) for k, v in pricing.overhead_per_rel_hour.items()}
    scalars["total_overhead_per_rel_hour"] = {
        k: _scale(v, exchange_ratio) for k, v in pricing.total_overhead_per_rel_hour.items()
    }
    return pricing.model_copy(update=scalars)


def convert_response(response: PricingResponse, exchange_ratio: Optional[float]) -> PricingResponse:
    """Express every money value in the secondary currency.

    Display-layer transform: the computation itself always runs in the
    primary currency.
    """
    if not exchange_ratio or exchange_ratio <= 0:
        return response
    stacks = []
    for stack in response.stacks:
        dev = _scale_category(stack.dev, exchange_ratio)
        agentic = _scale_category(stack.agentic, exchange_ratio)
        stacks.append(
            stack.model_copy(
                update={
                    "dev": dev,
                    "agentic": agentic,
                    "dev_cost_per_rel_hour": dev.cost_per_rel_hour,
                    "agentic_cost_per_rel_hour": agentic.cost_per_rel_hour,
                    "releaseable_cost": dev.releaseable_cost,
                    "final_price": dev.final_price,
                }
            )
        )
    shared = SharedCosts(
        qa_cost_per_dev_rel_hour=_scale(response.shared.qa_cost_per_dev_rel_hour, exchange_ratio),
        ba_cost_per_dev_rel_hour=_scale(response.shared.ba_cost_per_dev_rel_hour, exchange_ratio),
    )
    return response.model_copy(
        update={"stacks": stacks, "shared": shared, "currency": "secondary", "exchange_ratio": exchange_ratio}
    )


class PricingReport:
    """Result of one pricing run over an effective dataset.

    Figures are held in the primary currency; ``response()`` applies the
    exchange ratio. Breakdowns are built on request.
    """

    def __init__(
        self,
        dataset: EffectiveDataset,
        costs: Dict[str, EmployeeCost],
        stacks: List[StackPricing],
        shared: SharedCosts,
        validation: ValidationReport,
    ):
        self.dataset = dataset
        self.costs = costs
        self.stacks = stacks
        self.shared = shared
        self.validation = validation
        self.exchange_ratio = get_exchange_ratio(dataset.settings)
        self._builders: Dict[Tuple[str, str], BreakdownBuilder] = {}

    def stack(self, stack_id: str) -> StackPricing:
        for stack in self.stacks:
            if stack.stack_id == stack_id:
                return stack
        raise KeyError(f"stack {stack_id}")

    def breakdown(self, stack_id: str, key: str, category: EmployeeCategory = "DEV", convert: bool = False) -> Breakdown:
        self.stack(stack_id)
        builder = self._builders.get((stack_id, category))
        if builder is None:
            builder = BreakdownBuilder(self.dataset, self.costs, stack_id, category)
            self._builders[(stack_id, category)] = builder
        node = builder.build(key)
        return node.scaled(self.exchange_ratio) if convert else node

    def pct(self, stack_id: str, key: str, category: EmployeeCategory = "DEV") -> Number:
        """Share of the stack's releasable cost taken by the figure under ``key``."""
        return pct(
            self.breakdown(stack_id, key, category).result,
            self.breakdown(stack_id, "total_releaseable_cost_hr", category).result,
        )

    def response(self, convert: bool = True) -> PricingResponse:
        response = PricingResponse(
            scenario_id=self.dataset.scenario_id,
            stacks=self.stacks,
            shared=self.shared,
            validation=self.validation,
        )
        return convert_response(response, self.exchange_ratio) if convert else response


def price_dataset(dataset: EffectiveDataset) -> PricingReport:
    settings = dataset.settings
    active_types = dataset.active_overhead_types
    margin = get_setting(settings, MARGIN)
    risk = get_setting(settings, RISK)

    costs = employee_costs(dataset)
    qa = pool_add_ons(aggregate_pool(dataset, costs, "QA"), get_setting(settings, QA_RATIO), active_types)
    ba = pool_add_ons(aggregate_pool(dataset, costs, "BA"), get_setting(settings, BA_RATIO), active_types)

    stacks = []
    for tech_stack in dataset.tech_stacks:
        dev = price_category(aggregate_stack(dataset, costs, tech_stack.id, "DEV"), active_types, margin, risk, qa, ba)
        agentic = price_category(aggregate_stack(dataset, costs, tech_stack.id, "AGENTIC_AI"), active_types, margin, risk)
        stacks.append(
            StackPricing(
                stack_id=tech_stack.id,
                stack_name=tech_stack.name,
                dev_cost_per_rel_hour=dev.cost_per_rel_hour,
                agentic_cost_per_rel_hour=agentic.cost_per_rel_hour,
                releaseable_cost=dev.releaseable_cost,
                final_price=dev.final_price,
                dev=dev,
                agentic=agentic,
            )
        )
        if not dev.has_employees and not agentic.has_employees:
            log.debug("Stack %s has no employees assigned", tech_stack.id)

    shared = SharedCosts(qa_cost_per_dev_rel_hour=qa.cost_per_dev_rel_hour, ba_cost_per_dev_rel_hour=ba.cost_per_dev_rel_hour)
    return PricingReport(dataset, costs, stacks, shared, validate(dataset))


def compute_pricing(snapshot: PricingSnapshot, scenario_id: Optional[str] = None) -> PricingReport:
    """Resolve ``snapshot`` for ``scenario_id`` and price every tech stack."""
    dataset = build_effective_dataset(snapshot, scenario_id)
    report = price_dataset(dataset)
    log.debug("Priced %d stacks for scenario %s", len(report.stacks), scenario_id)
    return report
