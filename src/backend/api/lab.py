from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from api.automations import get_store
from common.growth_lab import GrowthInputs, GrowthPlan, compute_growth_plan, current_state
from pipelines.entity_store import EntityStore


router = APIRouter(prefix="/lab", tags=["lab"])


@router.get("/growth-plan", response_model=GrowthPlan)
def growth_plan(
    target_mrr: float = Query(10000, ge=0),
    avg_ticket: float | None = Query(None, ge=0),
    close_rate_pct: float = Query(20, gt=0, le=100),
    lead_to_call_rate_pct: float = Query(10, gt=0, le=100),
    store: EntityStore = Depends(get_store),
):
    state = current_state(store.list_projects())
    ticket = avg_ticket
    if ticket is None:
        ticket = state.avg_ticket if state.avg_ticket is not None else 1000
    inputs = GrowthInputs(
        current_mrr=state.mrr,
        target_mrr=target_mrr,
        avg_ticket=ticket,
        close_rate_pct=close_rate_pct,
        lead_to_call_rate_pct=lead_to_call_rate_pct,
    )
    return compute_growth_plan(inputs)
