from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Type

from pydantic import BaseModel

from .errors import DownstreamWriteError, NotFoundError
from .models import (
    ActionResult,
    ActionStatus,
    ActionType,
    CreateTaskAction,
    CreateTaskPayload,
    Project,
    RecipeAction,
    Task,
    TaskCreate,
    TaskStatus,
)

logger = logging.getLogger(__name__)


class TaskWriter(Protocol):
    def create_task(self, fields: TaskCreate) -> Task:
        ...


class ActionContext(BaseModel):
    recipe_id: str
    record: Project
    today: date


ActionHandler = Callable[[Any, ActionContext, TaskWriter], Task]


class ActionRegistry:
    def __init__(self):
        self._handlers: Dict[ActionType, ActionHandler] = {}
        self._payload_models: Dict[ActionType, Type[BaseModel]] = {}

    def register(self, action_type: ActionType, payload_model: Type[BaseModel], handler: ActionHandler) -> None:
        if action_type in self._handlers:
            raise ValueError(f"Duplicate action handler registered: {action_type.value}")
        self._handlers[action_type] = handler
        self._payload_models[action_type] = payload_model

    def get(self, action_type: str) -> Optional[ActionHandler]:
        try:
            return self._handlers.get(ActionType(action_type))
        except ValueError:
            return None

    def payload_model(self, action_type: ActionType) -> Type[BaseModel]:
        return self._payload_models[action_type]

    def ids(self) -> Iterable[ActionType]:
        return self._handlers.keys()


actions = ActionRegistry()


def register_action(action_type: ActionType, payload_model: Type[BaseModel]) -> Callable[[ActionHandler], ActionHandler]:
    def _decorator(fn: ActionHandler) -> ActionHandler:
        actions.register(action_type, payload_model, fn)
        return fn

    return _decorator


def due_date_for(today: date, delay_days: Optional[int]) -> date:
    # Calendar days; business-day calendars are not modelled.
    return today + timedelta(days=delay_days or 0)


@register_action(ActionType.CREATE_TASK, CreateTaskPayload)
def _create_task(action: CreateTaskAction, ctx: ActionContext, store: TaskWriter) -> Task:
    payload = action.payload
    fields = TaskCreate(
        title=payload.title,
        priority=payload.priority,
        status=TaskStatus.TODO,
        project_id=ctx.record.id,
        due_date=due_date_for(ctx.today, payload.delay_days),
    )
    return store.create_task(fields)


def execute(
    recipe_actions: Iterable[RecipeAction],
    record: Project,
    *,
    store: TaskWriter,
    today: date,
    recipe_id: str = "",
) -> List[ActionResult]:
    """Run each action in order; a failed action never stops the ones after it."""
    ctx = ActionContext(recipe_id=recipe_id, record=record, today=today)
    results: List[ActionResult] = []
    for index, action in enumerate(recipe_actions):
        handler = actions.get(action.type)
        if handler is None:
            logger.warning("Unhandled action type %r in recipe %s (index %d); skipping.", action.type, recipe_id, index)
            results.append(
                ActionResult(
                    recipe_id=recipe_id,
                    action_index=index,
                    action_type=action.type,
                    status=ActionStatus.SKIPPED,
                    error="Unhandled action type.",
                )
            )
            continue

        try:
            task = handler(action, ctx, store)
        except (DownstreamWriteError, NotFoundError) as exc:
            logger.error("Action %s #%d for recipe %s failed: %s", action.type, index, recipe_id, exc)
            results.append(
                ActionResult(
                    recipe_id=recipe_id,
                    action_index=index,
                    action_type=action.type,
                    status=ActionStatus.FAILED,
                    error_kind=type(exc).__name__,
                    error=str(exc),
                )
            )
            continue

        results.append(
            ActionResult(
                recipe_id=recipe_id,
                action_index=index,
                action_type=action.type,
                status=ActionStatus.CREATED,
                task=task,
            )
        )
    return results
