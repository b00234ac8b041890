from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from common.automation_engine.engine import AutomationEngine
from common.automation_engine.errors import NotFoundError
from common.automation_engine.models import (
    AutomationRunSummary,
    Project,
    ProjectCreate,
    ProjectStatus,
)

from .entity_store import EntityStore

logger = logging.getLogger(__name__)

# Statuses whose contracts can lapse into PAUSED.
RUNNING_STATUSES = (ProjectStatus.ACTIVE, ProjectStatus.ONBOARDING)


@dataclass(frozen=True)
class ProjectChange:
    project: Project
    summary: AutomationRunSummary

    @property
    def automations_triggered(self) -> int:
        return len(self.summary.fired_recipe_ids)


class ProjectFlow:
    """Project mutations that feed the automation engine and report what fired."""

    def __init__(self, store: EntityStore, engine: AutomationEngine | None = None) -> None:
        self._store = store
        self._engine = engine or AutomationEngine(store)

    def create_project(self, fields: ProjectCreate) -> ProjectChange:
        project = self._store.create_project(fields)
        summary = self._engine.on_project_created(project)
        return ProjectChange(project=project, summary=summary)

    def change_status(self, project_id: str, new_status: ProjectStatus) -> ProjectChange:
        current = self._store.get_project_by_id(project_id)
        if current is None:
            raise NotFoundError("Project", project_id)
        project = self._store.update_project(project_id, {"status": new_status})
        summary = self._engine.on_project_status_changed(
            project,
            new_status,
            previous_status=current.status,
        )
        return ProjectChange(project=project, summary=summary)

    def archive_project(self, project_id: str) -> ProjectChange:
        return self.change_status(project_id, ProjectStatus.ARCHIVED)

    def check_expirations(self, today: date | None = None) -> list[ProjectChange]:
        """Pause running projects whose contract ended before `today`."""
        today = today or date.today()
        changes: list[ProjectChange] = []
        for project in self._store.list_projects():
            if project.status not in RUNNING_STATUSES:
                continue
            if project.contract_end_date is None or project.contract_end_date >= today:
                continue
            logger.info("Contract for project %s ended %s; pausing.", project.id, project.contract_end_date)
            changes.append(self.change_status(project.id, ProjectStatus.PAUSED))
        return changes
