from typing import List, Literal, Optional

from .entities import EmployeeCategory, PricingSnapshot
from .pricing import CamelModel, Currency


class CategoryCost(CamelModel):
    category: EmployeeCategory
    active_count: int = 0
    inactive_count: int = 0
    active_monthly_cost: float = 0.0
    inactive_monthly_cost: float = 0.0


class CostSummary(CamelModel):
    scenario_id: Optional[str] = None
    currency: Currency = "primary"
    exchange_ratio: Optional[float] = None
    categories: List[CategoryCost] = []
    total_active_monthly_cost: float = 0.0
    total_inactive_monthly_cost: float = 0.0
    total_overhead_monthly: float = 0.0
    inactive_overhead_type_count: int = 0


class ProposedShare(CamelModel):
    employee_id: str
    share: float


class AllocationProposal(CamelModel):
    scenario_id: Optional[str] = None
    overhead_type_id: str
    mode: Literal["equal", "proportional"]
    shares: List[ProposedShare] = []


class AllocationProposalRequest(CamelModel):
    snapshot: PricingSnapshot
    scenario_id: Optional[str] = None
    overhead_type_id: str
    mode: Literal["equal", "proportional"] = "equal"
