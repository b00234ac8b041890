from __future__ import annotations

import math
from typing import Iterable

from pydantic import BaseModel, Field

from common.automation_engine.models import Project, ProjectStatus

REVENUE_STATUSES = (ProjectStatus.ACTIVE, ProjectStatus.ONBOARDING)


class GrowthInputs(BaseModel):
    current_mrr: float = Field(0, ge=0)
    target_mrr: float = Field(10000, ge=0)
    avg_ticket: float = Field(1000, ge=0)
    close_rate_pct: float = Field(20, gt=0, le=100)
    lead_to_call_rate_pct: float = Field(10, gt=0, le=100)


class GrowthPlan(BaseModel):
    inputs: GrowthInputs
    gap: float
    new_clients_needed: int
    calls_needed: int
    leads_needed: int
    progress_pct: int


class CurrentState(BaseModel):
    mrr: float = 0
    active_clients: int = 0
    avg_ticket: int | None = None


def current_state(projects: Iterable[Project]) -> CurrentState:
    active = [p for p in projects if p.status in REVENUE_STATUSES]
    mrr = sum(p.monthly_revenue or 0 for p in active)
    avg_ticket = round(mrr / len(active)) if active else None
    return CurrentState(mrr=mrr, active_clients=len(active), avg_ticket=avg_ticket)


def compute_growth_plan(inputs: GrowthInputs) -> GrowthPlan:
    """Work backwards from the MRR target: revenue gap -> clients -> sales calls -> leads."""
    gap = max(0.0, inputs.target_mrr - inputs.current_mrr)
    new_clients = math.ceil(gap / (inputs.avg_ticket or 1))
    # Multiply before dividing so 3 clients at 10% is 30 calls, not 31.
    calls = math.ceil(new_clients * 100 / inputs.close_rate_pct)
    leads = math.ceil(calls * 100 / inputs.lead_to_call_rate_pct)
    progress = round(inputs.current_mrr / inputs.target_mrr * 100) if inputs.target_mrr else 0
    return GrowthPlan(
        inputs=inputs,
        gap=gap,
        new_clients_needed=new_clients,
        calls_needed=calls,
        leads_needed=leads,
        progress_pct=progress,
    )
