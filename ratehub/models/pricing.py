from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .entities import Employee, EmployeeCategory, OverheadType, PricingSnapshot, TechStack

Currency = Literal["primary", "secondary"]


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class EffectiveEmployee(CamelModel):
    employee: Employee
    is_active: bool
    is_overridden: bool = False
    # overhead_type_id -> effective share, for every base or override row
    shares: Dict[str, float] = {}

    @property
    def id(self) -> str:
        return self.employee.id

    @property
    def category(self) -> EmployeeCategory:
        return self.employee.category


class EffectiveOverheadType(CamelModel):
    overhead_type: OverheadType
    is_active: bool
    is_overridden: bool = False

    @property
    def id(self) -> str:
        return self.overhead_type.id


class EffectiveDataset(CamelModel):
    scenario_id: Optional[str] = None
    employees: List[EffectiveEmployee] = []
    overhead_types: List[EffectiveOverheadType] = []
    tech_stacks: List[TechStack] = []
    settings: Dict[str, float] = {}
    malformed_settings: List[str] = []

    @property
    def active_employees(self) -> List[EffectiveEmployee]:
        return [e for e in self.employees if e.is_active]

    @property
    def inactive_employees(self) -> List[EffectiveEmployee]:
        return [e for e in self.employees if not e.is_active]

    @property
    def active_overhead_types(self) -> List[OverheadType]:
        return [t.overhead_type for t in self.overhead_types if t.is_active]


class EmployeeCost(CamelModel):
    employee_id: str
    category: EmployeeCategory
    tech_stack_id: Optional[str] = None
    fte: float
    annual_base: float
    raw_monthly: float
    allocated_overhead_monthly: float
    overhead_monthly_by_type: Dict[str, float] = {}
    fully_loaded_annual: float
    fully_loaded_monthly: float


class GroupAggregate(CamelModel):
    """Pooled figures for one category, either per stack or pool-wide."""

    category: EmployeeCategory
    tech_stack_id: Optional[str] = None
    employee_ids: List[str] = []
    fte: float = 0.0
    hours_per_unit: float = 0.0
    hours_capacity: float = 0.0
    monthly_cost: float = 0.0
    raw_monthly: float = 0.0
    overhead_monthly_by_type: Dict[str, float] = {}

    @property
    def headcount(self) -> int:
        return len(self.employee_ids)


class PoolAddOns(CamelModel):
    """QA or BA cost expressed per DEV releasable hour."""

    category: EmployeeCategory
    cost_per_dev_rel_hour: Optional[float] = None
    raw_add_on_per_rel_hour: Optional[float] = None
    overhead_add_on_per_rel_hour: Dict[str, Optional[float]] = {}


class CategoryPricing(CamelModel):
    category: EmployeeCategory
    has_employees: bool
    cost_per_rel_hour: Optional[float] = None
    raw_cost_per_rel_hour: Optional[float] = None
    overhead_per_rel_hour: Dict[str, Optional[float]] = {}
    qa_add_on_per_rel_hour: Optional[float] = None
    ba_add_on_per_rel_hour: Optional[float] = None
    total_overhead_per_rel_hour: Dict[str, Optional[float]] = {}
    total_overheads_per_rel_hour: Optional[float] = None
    cogs: Optional[float] = None
    releaseable_cost: Optional[float] = None
    final_price: Optional[float] = None


class StackPricing(CamelModel):
    stack_id: str
    stack_name: str
    dev_cost_per_rel_hour: Optional[float] = None
    agentic_cost_per_rel_hour: Optional[float] = None
    releaseable_cost: Optional[float] = None
    final_price: Optional[float] = None
    dev: CategoryPricing
    agentic: CategoryPricing

    @property
    def no_employees_assigned(self) -> bool:
        return not self.dev.has_employees and not self.agentic.has_employees


class SharedCosts(CamelModel):
    qa_cost_per_dev_rel_hour: Optional[float] = None
    ba_cost_per_dev_rel_hour: Optional[float] = None


class AllocationStat(CamelModel):
    type_id: str
    sum: float
    missing_count: int
    valid: bool


class InvalidAllocation(CamelModel):
    type_id: str
    sum: float


class ValidationReport(CamelModel):
    missing_settings: List[str] = []
    invalid_overhead_allocations: List[InvalidAllocation] = []
    employees_missing_allocation: List[str] = []
    malformed_settings: List[str] = []
    employees_without_stack: List[str] = []
    allocation_stats: List[AllocationStat] = []

    @property
    def has_warnings(self) -> bool:
        return bool(
            self.missing_settings
            or self.invalid_overhead_allocations
            or self.employees_missing_allocation
            or self.malformed_settings
            or self.employees_without_stack
        )


class PricingResponse(CamelModel):
    scenario_id: Optional[str] = None
    currency: Currency = "primary"
    exchange_ratio: Optional[float] = None
    stacks: List[StackPricing] = []
    shared: SharedCosts
    validation: ValidationReport


class PricingRequest(CamelModel):
    snapshot: PricingSnapshot
    scenario_id: Optional[str] = None


class BreakdownRequest(PricingRequest):
    stack_id: str
    key: str
    category: Literal["DEV", "AGENTIC_AI"] = "DEV"
