from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel

from .models import (
    TRIGGER_ELIGIBLE_STATUSES,
    AutomationRecipe,
    Condition,
    ConditionOperator,
    CreateTaskAction,
    CreateTaskPayload,
    ProjectStatus,
    TaskPriority,
    TriggerType,
    UnhandledAction,
)
from .errors import RecipeValidationError


class RecipeDraft(BaseModel):
    """Fields of the recipe authoring form: one trigger, one optional condition, one task."""

    name: str
    trigger_type: TriggerType = TriggerType.PROJECT_STATUS_CHANGE
    trigger_value: Optional[ProjectStatus] = ProjectStatus.ACTIVE
    condition_industry: str = ""
    task_title: str
    task_priority: TaskPriority = TaskPriority.MEDIUM
    task_delay_days: int = 0


def build_recipe(draft: RecipeDraft) -> AutomationRecipe:
    conditions: List[Condition] = []
    if draft.condition_industry.strip():
        conditions.append(
            Condition(
                field="industry",
                operator=ConditionOperator.CONTAINS,
                value=draft.condition_industry,
            )
        )

    return AutomationRecipe(
        name=draft.name,
        trigger_type=draft.trigger_type,
        trigger_value=draft.trigger_value if draft.trigger_type == TriggerType.PROJECT_STATUS_CHANGE else None,
        conditions=conditions,
        actions=[
            CreateTaskAction(
                payload=CreateTaskPayload(
                    title=draft.task_title,
                    priority=draft.task_priority,
                    delay_days=draft.task_delay_days if draft.task_delay_days > 0 else None,
                )
            )
        ],
        is_active=True,
    )


def recipe_problems(recipe: AutomationRecipe) -> List[str]:
    problems: List[str] = []
    if not recipe.name.strip():
        problems.append("Recipe name is required.")

    if recipe.trigger_type == TriggerType.PROJECT_STATUS_CHANGE:
        if recipe.trigger_value is None:
            problems.append("A status-change trigger requires a trigger value.")
        elif recipe.trigger_value not in TRIGGER_ELIGIBLE_STATUSES:
            problems.append(f"Status {recipe.trigger_value.value} cannot trigger automations.")
    elif recipe.trigger_value is not None:
        problems.append("A new-project trigger does not take a trigger value.")

    for index, condition in enumerate(recipe.conditions):
        if not condition.field.strip():
            problems.append(f"Condition #{index} has no field.")
        if not isinstance(condition.operator, ConditionOperator):
            problems.append(f"Condition #{index} has unsupported operator {condition.operator!r}.")

    if not recipe.actions:
        problems.append("At least one action is required.")
    for index, action in enumerate(recipe.actions):
        if isinstance(action, UnhandledAction):
            problems.append(f"Action #{index} has unsupported type {action.type!r}.")
            continue
        if not action.payload.title.strip():
            problems.append(f"Action #{index} needs a task title.")
        if action.payload.delay_days is not None and action.payload.delay_days < 0:
            problems.append(f"Action #{index} delay cannot be negative.")
    return problems


def validate_recipe(recipe: AutomationRecipe) -> AutomationRecipe:
    problems = recipe_problems(recipe)
    if problems:
        raise RecipeValidationError("; ".join(problems), problems)
    return recipe
