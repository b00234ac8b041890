from __future__ import annotations

import os
from datetime import date
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from common.automation_engine.authoring import RecipeDraft, build_recipe, validate_recipe
from common.automation_engine.config import AutomationEngineConfig
from common.automation_engine.engine import AutomationEngine
from common.automation_engine.errors import NotFoundError, RecipeValidationError
from common.automation_engine.models import (
    AutomationRecipe,
    AutomationRunSummary,
    Project,
    ProjectCreate,
    ProjectStatus,
)
from pipelines.entity_store import EntityStore, get_entity_store
from pipelines.project_flow import ProjectChange, ProjectFlow


router = APIRouter(prefix="/automations", tags=["automations"])


@lru_cache(maxsize=1)
def get_store() -> EntityStore:
    return get_entity_store()


def get_engine_config() -> AutomationEngineConfig:
    flag = os.getenv("AUTOMATION_CASE_SENSITIVE", "").strip().lower()
    return AutomationEngineConfig(case_sensitive_conditions=flag in ("1", "true", "yes"))


def get_flow(
    store: EntityStore = Depends(get_store),
    config: AutomationEngineConfig = Depends(get_engine_config),
) -> ProjectFlow:
    return ProjectFlow(store, AutomationEngine(store, config=config))


class ActiveToggle(BaseModel):
    is_active: bool


class StatusChange(BaseModel):
    status: ProjectStatus


class ProjectChangeResponse(BaseModel):
    project: Project
    summary: AutomationRunSummary
    automations_triggered: int


def _change_response(change: ProjectChange) -> ProjectChangeResponse:
    return ProjectChangeResponse(
        project=change.project,
        summary=change.summary,
        automations_triggered=change.automations_triggered,
    )


@router.get("/recipes", response_model=list[AutomationRecipe])
def list_recipes(store: EntityStore = Depends(get_store)):
    return store.list_recipes()


@router.post("/recipes", response_model=AutomationRecipe, status_code=201)
def create_recipe(draft: RecipeDraft, store: EntityStore = Depends(get_store)):
    try:
        recipe = validate_recipe(build_recipe(draft))
    except RecipeValidationError as exc:
        raise HTTPException(status_code=400, detail={"message": str(exc), "problems": exc.problems})
    return store.create_recipe(recipe)


@router.put("/recipes/{recipe_id}", response_model=AutomationRecipe)
def update_recipe(recipe_id: str, draft: RecipeDraft, store: EntityStore = Depends(get_store)):
    current = store.get_recipe(recipe_id)
    if current is None:
        raise HTTPException(status_code=404, detail=str(NotFoundError("AutomationRecipe", recipe_id)))
    recipe = build_recipe(draft).model_copy(update={"is_active": current.is_active})
    try:
        return store.update_recipe(recipe_id, validate_recipe(recipe))
    except RecipeValidationError as exc:
        raise HTTPException(status_code=400, detail={"message": str(exc), "problems": exc.problems})
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.patch("/recipes/{recipe_id}/active", response_model=AutomationRecipe)
def set_recipe_active(recipe_id: str, body: ActiveToggle, store: EntityStore = Depends(get_store)):
    try:
        return store.set_recipe_active(recipe_id, body.is_active)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.delete("/recipes/{recipe_id}", status_code=204)
def delete_recipe(recipe_id: str, store: EntityStore = Depends(get_store)):
    try:
        store.delete_recipe(recipe_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.post("/projects", response_model=ProjectChangeResponse, status_code=201)
def create_project(fields: ProjectCreate, flow: ProjectFlow = Depends(get_flow)):
    return _change_response(flow.create_project(fields))


@router.post("/projects/check-expirations", response_model=list[ProjectChangeResponse])
def check_expirations(today: date | None = None, flow: ProjectFlow = Depends(get_flow)):
    return [_change_response(c) for c in flow.check_expirations(today)]


@router.post("/projects/{project_id}/status", response_model=ProjectChangeResponse)
def change_project_status(project_id: str, body: StatusChange, flow: ProjectFlow = Depends(get_flow)):
    try:
        change = flow.change_status(project_id, body.status)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return _change_response(change)
