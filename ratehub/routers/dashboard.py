from fastapi import APIRouter, Body, HTTPException

from ..models.dashboard import AllocationProposal, AllocationProposalRequest, CostSummary
from ..models.pricing import PricingRequest
from ..services.dashboard_service import propose_allocation, summarize_snapshot
from ..services.effective_service import build_effective_dataset

router = APIRouter()


@router.post("/dashboard/summary", response_model=CostSummary)
async def cost_summary(payload: PricingRequest = Body(...)):
    return summarize_snapshot(payload.snapshot, payload.scenario_id)


@router.post("/allocations/proposal", response_model=AllocationProposal)
async def allocation_proposal(payload: AllocationProposalRequest = Body(...)):
    dataset = build_effective_dataset(payload.snapshot, payload.scenario_id)
    try:
        return propose_allocation(dataset, payload.overhead_type_id, payload.mode)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
