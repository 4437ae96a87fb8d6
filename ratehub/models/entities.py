from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

EmployeeCategory = Literal["DEV", "QA", "BA", "AGENTIC_AI"]
OverheadPeriod = Literal["annual", "monthly", "quarterly"]
SettingValueType = Literal["string", "number", "float", "integer", "boolean"]

STACK_CATEGORIES = ("DEV", "AGENTIC_AI")


class EntityModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, frozen=True)


class AllocationRow(EntityModel):
    overhead_type_id: str
    share: float = Field(ge=0, le=1)


class Employee(EntityModel):
    id: str
    name: str
    category: EmployeeCategory
    tech_stack_id: Optional[str] = None
    is_active: bool = True
    gross_monthly: float = Field(ge=0)
    net_monthly: float = 0
    oncost_rate: Optional[float] = Field(default=None, ge=0)
    annual_benefits: Optional[float] = Field(default=None, ge=0)
    annual_bonus: Optional[float] = Field(default=None, ge=0)
    fte: float = Field(default=1.0, ge=0)
    overhead_allocs: List[AllocationRow] = []


class TechStack(EntityModel):
    id: str
    name: str


class OverheadType(EntityModel):
    id: str
    name: str
    is_active: bool = True
    amount: float = Field(ge=0)
    period: OverheadPeriod = "annual"


class Setting(EntityModel):
    key: str
    value: str
    value_type: SettingValueType = "float"
    group: Optional[str] = None
    unit: Optional[str] = None


class PricingView(EntityModel):
    id: str
    name: str


class EmployeeActiveOverride(EntityModel):
    view_id: str
    employee_id: str
    is_active: bool


class OverheadTypeActiveOverride(EntityModel):
    view_id: str
    overhead_type_id: str
    is_active: bool


class SettingOverride(EntityModel):
    view_id: str
    key: str
    value: str
    value_type: SettingValueType = "float"
    group: Optional[str] = None
    unit: Optional[str] = None


class OverheadAllocationOverride(EntityModel):
    view_id: str
    employee_id: str
    overhead_type_id: str
    share: float = Field(ge=0, le=1)


class PricingSnapshot(EntityModel):
    """Read-only copy of every record the engine consumes for one request."""

    employees: List[Employee] = []
    tech_stacks: List[TechStack] = []
    overhead_types: List[OverheadType] = []
    settings: List[Setting] = []
    views: List[PricingView] = []
    employee_active_overrides: List[EmployeeActiveOverride] = []
    overhead_type_active_overrides: List[OverheadTypeActiveOverride] = []
    setting_overrides: List[SettingOverride] = []
    allocation_overrides: List[OverheadAllocationOverride] = []
