from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Callable, Iterable, List, Optional, Protocol

from .actions import execute
from .conditions import evaluate
from .config import AutomationEngineConfig
from .errors import NotFoundError
from .models import (
    ActionResult,
    ActionStatus,
    AutomationRecipe,
    AutomationRunSummary,
    DomainEvent,
    Project,
    ProjectCreatedEvent,
    ProjectStatus,
    ProjectStatusChangedEvent,
    Task,
    TaskCreate,
)
from .triggers import matches

logger = logging.getLogger(__name__)


class AutomationStore(Protocol):
    def list_active_recipes(self) -> List[AutomationRecipe]:
        ...

    def create_task(self, fields: TaskCreate) -> Task:
        ...

    def get_project_by_id(self, project_id: str) -> Optional[Project]:
        ...


class AutomationEngine:
    """Runs recipes against project events, synchronously and in recipe list order.

    There is no idempotency key: feeding the same event twice creates the tasks twice.
    """

    def __init__(
        self,
        store: AutomationStore,
        *,
        recipes: Optional[Iterable[AutomationRecipe]] = None,
        config: Optional[AutomationEngineConfig] = None,
        today: Callable[[], date] = date.today,
    ):
        self._store = store
        self._recipes = list(recipes) if recipes is not None else None
        self._config = config or AutomationEngineConfig()
        self._today = today

    def _load_recipes(self) -> List[AutomationRecipe]:
        if self._recipes is not None:
            return self._recipes
        return list(self._store.list_active_recipes())

    def on_event(self, event: DomainEvent) -> AutomationRunSummary:
        project = event.project
        summary = AutomationRunSummary(
            run_id=str(uuid.uuid4()),
            generated_at=datetime.now(timezone.utc),
            event_kind=event.kind,
            project_id=project.id,
        )

        today = self._today()
        project_checked = False
        project_missing = False

        for recipe in self._load_recipes():
            if not matches(recipe, event):
                continue
            summary.matched_recipe_ids.append(recipe.id)

            if not evaluate(
                recipe.conditions,
                project,
                case_sensitive=self._config.case_sensitive_conditions,
            ):
                logger.debug("Recipe %s matched but its conditions did not hold.", recipe.id)
                continue
            summary.fired_recipe_ids.append(recipe.id)

            if self._config.verify_project_exists and not project_checked:
                project_missing = self._store.get_project_by_id(project.id) is None
                project_checked = True

            if project_missing:
                summary.action_results.extend(_not_found_results(recipe, project.id))
                continue

            summary.action_results.extend(
                execute(recipe.actions, project, store=self._store, today=today, recipe_id=recipe.id)
            )

        logger.info(
            "Event %s for project %s: %d matched, %d fired, %d failed action(s).",
            event.kind,
            project.id,
            len(summary.matched_recipe_ids),
            len(summary.fired_recipe_ids),
            len(summary.failures),
        )
        return summary

    def on_project_created(self, project: Project) -> AutomationRunSummary:
        return self.on_event(ProjectCreatedEvent(project=project))

    def on_project_status_changed(
        self,
        project: Project,
        new_status: ProjectStatus,
        *,
        previous_status: Optional[ProjectStatus] = None,
    ) -> AutomationRunSummary:
        return self.on_event(
            ProjectStatusChangedEvent(project=project, new_status=new_status, previous_status=previous_status)
        )


def _not_found_results(recipe: AutomationRecipe, project_id: str) -> List[ActionResult]:
    err = NotFoundError("Project", project_id)
    logger.error("Recipe %s fired for project %s, which no longer exists.", recipe.id, project_id)
    return [
        ActionResult(
            recipe_id=recipe.id,
            action_index=index,
            action_type=action.type,
            status=ActionStatus.FAILED,
            error_kind=type(err).__name__,
            error=str(err),
        )
        for index, action in enumerate(recipe.actions)
    ]
