import logging
from typing import Optional

from fastapi import APIRouter, Body, HTTPException, Query

from ..models.breakdown import Breakdown
from ..models.pricing import BreakdownRequest, PricingRequest, PricingResponse
from ..services.pricing_service import compute_pricing
from ..services.snapshot_service import ScenarioNotFound, load_snapshot

router = APIRouter()
log = logging.getLogger(__name__)


@router.post("/pricing/compute", response_model=PricingResponse)
async def compute(payload: PricingRequest = Body(...)):
    report = compute_pricing(payload.snapshot, payload.scenario_id)
    return report.response()


@router.post("/pricing/breakdown", response_model=Breakdown)
async def breakdown(payload: BreakdownRequest = Body(...)):
    report = compute_pricing(payload.snapshot, payload.scenario_id)
    try:
        return report.breakdown(payload.stack_id, payload.key, payload.category, convert=True)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown breakdown: {exc.args[0]}") from exc


@router.get("/pricing", response_model=PricingResponse)
async def stored_pricing(scenario_id: Optional[str] = Query(default=None, alias="scenarioId")):
    try:
        snapshot = await load_snapshot(scenario_id)
    except ScenarioNotFound as exc:
        raise HTTPException(status_code=404, detail="Scenario not found") from exc
    except Exception as exc:  # pragma: no cover
        log.exception("Failed to load pricing snapshot for scenario %s", scenario_id)
        raise HTTPException(status_code=503, detail="Pricing data unavailable") from exc
    return compute_pricing(snapshot, scenario_id).response()
