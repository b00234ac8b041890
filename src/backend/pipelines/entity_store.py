from __future__ import annotations

import json
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

from adapters.supabase.rows import (
    contractor_from_row,
    project_from_row,
    recipe_from_row,
    task_from_row,
)
from common.automation_engine.authoring import validate_recipe
from common.automation_engine.errors import NotFoundError
from common.automation_engine.models import (
    AutomationRecipe,
    Contractor,
    ContractorCreate,
    Project,
    ProjectCreate,
    ProjectStatus,
    Task,
    TaskCreate,
    TaskStatus,
)


CLIENT_TABLE = "Client"
TASK_TABLE = "Task"
CONTRACTOR_TABLE = "Contractor"
RECIPE_TABLE = "AutomationRecipe"


class EntityStore(Protocol):
    # Projects (stored in the Client table)
    def list_projects(self, *, include_archived: bool = False) -> list[Project]:
        ...

    def get_project_by_id(self, project_id: str) -> Project | None:
        ...

    def create_project(self, fields: ProjectCreate) -> Project:
        ...

    def update_project(self, project_id: str, changes: dict[str, Any]) -> Project:
        ...

    def delete_project(self, project_id: str) -> None:
        ...

    # Tasks
    def list_tasks(self) -> list[Task]:
        ...

    def get_task(self, task_id: str) -> Task | None:
        ...

    def create_task(self, fields: TaskCreate) -> Task:
        ...

    def update_task(self, task_id: str, changes: dict[str, Any]) -> Task:
        ...

    def update_task_status(self, task_id: str, status: TaskStatus) -> Task:
        ...

    def delete_task(self, task_id: str) -> None:
        ...

    # Contractors
    def list_contractors(self) -> list[Contractor]:
        ...

    def get_contractor(self, contractor_id: str) -> Contractor | None:
        ...

    def create_contractor(self, fields: ContractorCreate) -> Contractor:
        ...

    def update_contractor(self, contractor_id: str, changes: dict[str, Any]) -> Contractor:
        ...

    def delete_contractor(self, contractor_id: str) -> None:
        ...

    # Automation recipes
    def list_recipes(self) -> list[AutomationRecipe]:
        ...

    def list_active_recipes(self) -> list[AutomationRecipe]:
        """Active recipes only, filtered by the store rather than the caller."""
        ...

    def get_recipe(self, recipe_id: str) -> AutomationRecipe | None:
        ...

    def create_recipe(self, recipe: AutomationRecipe) -> AutomationRecipe:
        ...

    def update_recipe(self, recipe_id: str, recipe: AutomationRecipe) -> AutomationRecipe:
        """Replace the recipe definition; the id is kept."""
        ...

    def set_recipe_active(self, recipe_id: str, is_active: bool) -> AutomationRecipe:
        ...

    def delete_recipe(self, recipe_id: str) -> None:
        ...


def get_entity_store(name: str | None = None) -> EntityStore:
    """Resolve a store implementation by name (memory|live); defaults to $DATA_SOURCE."""
    source = (name if name is not None else os.getenv("DATA_SOURCE", "memory")).strip().lower()
    if source in ("memory", "fixtures", ""):
        fixtures_dir = os.getenv("FIXTURES_DIR", "").strip()
        if fixtures_dir:
            return InMemoryEntityStore.from_fixtures(Path(fixtures_dir))
        return InMemoryEntityStore()
    if source == "live":
        from .live_supabase import SupabaseEntityStore

        return SupabaseEntityStore()
    raise ValueError(f"Unknown data source '{name}' (expected 'memory' or 'live').")


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryEntityStore:
    def __init__(
        self,
        *,
        projects: list[Project] | None = None,
        tasks: list[Task] | None = None,
        contractors: list[Contractor] | None = None,
        recipes: list[AutomationRecipe] | None = None,
    ) -> None:
        self.projects: dict[str, Project] = {p.id: p for p in projects or []}
        self.tasks: dict[str, Task] = {t.id: t for t in tasks or []}
        self.contractors: dict[str, Contractor] = {c.id: c for c in contractors or []}
        self.recipes: dict[str, AutomationRecipe] = {r.id: r for r in recipes or []}

    @classmethod
    def from_fixtures(cls, fixtures_dir: Path) -> "InMemoryEntityStore":
        """Load `<Table>.json` row dumps (as exported from the database) from a directory."""

        def _rows(table: str) -> list[Any]:
            path = fixtures_dir / f"{table}.json"
            if not path.exists():
                return []
            rows = json.loads(path.read_text(encoding="utf-8"))
            return rows if isinstance(rows, list) else []

        return cls(
            projects=[project_from_row(r) for r in _rows(CLIENT_TABLE)],
            tasks=[task_from_row(r) for r in _rows(TASK_TABLE)],
            contractors=[contractor_from_row(r) for r in _rows(CONTRACTOR_TABLE)],
            recipes=[recipe_from_row(r) for r in _rows(RECIPE_TABLE)],
        )

    # Projects

    def list_projects(self, *, include_archived: bool = False) -> list[Project]:
        return [
            p
            for p in self.projects.values()
            if include_archived or p.status != ProjectStatus.ARCHIVED
        ]

    def get_project_by_id(self, project_id: str) -> Project | None:
        return self.projects.get(project_id)

    def create_project(self, fields: ProjectCreate) -> Project:
        project = Project(id=_new_id(), created_at=_now(), **fields.model_dump())
        self.projects[project.id] = project
        return project

    def update_project(self, project_id: str, changes: dict[str, Any]) -> Project:
        current = self.projects.get(project_id)
        if current is None:
            raise NotFoundError("Project", project_id)
        updated = Project.model_validate({**current.model_dump(), **changes, "id": project_id})
        self.projects[project_id] = updated
        return updated

    def delete_project(self, project_id: str) -> None:
        if self.projects.pop(project_id, None) is None:
            raise NotFoundError("Project", project_id)

    # Tasks

    def list_tasks(self) -> list[Task]:
        epoch = datetime.min.replace(tzinfo=timezone.utc)
        ordered = sorted(self.tasks.values(), key=lambda t: t.created_at or epoch, reverse=True)
        return [self._with_assignee(t) for t in ordered]

    def _with_assignee(self, task: Task) -> Task:
        contractor = self.contractors.get(task.assignee_id) if task.assignee_id else None
        return task.model_copy(update={"assignee": contractor}) if contractor else task

    def get_task(self, task_id: str) -> Task | None:
        task = self.tasks.get(task_id)
        return self._with_assignee(task) if task else None

    def create_task(self, fields: TaskCreate) -> Task:
        task = Task(id=_new_id(), created_at=_now(), **fields.model_dump())
        self.tasks[task.id] = task
        return task

    def update_task_status(self, task_id: str, status: TaskStatus) -> Task:
        current = self.tasks.get(task_id)
        if current is None:
            raise NotFoundError("Task", task_id)
        updated = current.model_copy(update={"status": status})
        self.tasks[task_id] = updated
        return updated

    def update_task(self, task_id: str, changes: dict[str, Any]) -> Task:
        current = self.tasks.get(task_id)
        if current is None:
            raise NotFoundError("Task", task_id)
        updated = Task.model_validate({**current.model_dump(), **changes, "id": task_id})
        self.tasks[task_id] = updated
        return updated

    def delete_task(self, task_id: str) -> None:
        if self.tasks.pop(task_id, None) is None:
            raise NotFoundError("Task", task_id)

    # Contractors

    def list_contractors(self) -> list[Contractor]:
        return list(self.contractors.values())

    def get_contractor(self, contractor_id: str) -> Contractor | None:
        return self.contractors.get(contractor_id)

    def create_contractor(self, fields: ContractorCreate) -> Contractor:
        contractor = Contractor(id=_new_id(), **fields.model_dump())
        self.contractors[contractor.id] = contractor
        return contractor

    def update_contractor(self, contractor_id: str, changes: dict[str, Any]) -> Contractor:
        current = self.contractors.get(contractor_id)
        if current is None:
            raise NotFoundError("Contractor", contractor_id)
        updated = Contractor.model_validate({**current.model_dump(), **changes, "id": contractor_id})
        self.contractors[contractor_id] = updated
        return updated

    def delete_contractor(self, contractor_id: str) -> None:
        if self.contractors.pop(contractor_id, None) is None:
            raise NotFoundError("Contractor", contractor_id)

    # Automation recipes

    def list_recipes(self) -> list[AutomationRecipe]:
        return list(self.recipes.values())

    def list_active_recipes(self) -> list[AutomationRecipe]:
        return [r for r in self.recipes.values() if r.is_active]

    def get_recipe(self, recipe_id: str) -> AutomationRecipe | None:
        return self.recipes.get(recipe_id)

    def create_recipe(self, recipe: AutomationRecipe) -> AutomationRecipe:
        validate_recipe(recipe)
        created = recipe.model_copy(update={"id": recipe.id or _new_id()})
        self.recipes[created.id] = created
        return created

    def update_recipe(self, recipe_id: str, recipe: AutomationRecipe) -> AutomationRecipe:
        if recipe_id not in self.recipes:
            raise NotFoundError("AutomationRecipe", recipe_id)
        validate_recipe(recipe)
        updated = recipe.model_copy(update={"id": recipe_id})
        self.recipes[recipe_id] = updated
        return updated

    def set_recipe_active(self, recipe_id: str, is_active: bool) -> AutomationRecipe:
        current = self.recipes.get(recipe_id)
        if current is None:
            raise NotFoundError("AutomationRecipe", recipe_id)
        updated = current.model_copy(update={"is_active": is_active})
        self.recipes[recipe_id] = updated
        return updated

    def delete_recipe(self, recipe_id: str) -> None:
        if self.recipes.pop(recipe_id, None) is None:
            raise NotFoundError("AutomationRecipe", recipe_id)
