from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from adapters.supabase.rows import (
    CONTRACTOR_COLUMNS,
    PROJECT_COLUMNS,
    TASK_COLUMNS,
    SupabaseRowAdapterError,
    contractor_from_row,
    project_from_row,
    recipe_from_row,
    recipe_to_row,
    task_from_row,
    to_row,
)
from common.automation_engine.authoring import validate_recipe
from common.automation_engine.errors import DownstreamWriteError, NotFoundError
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
from connectors.supabase.client import SupabaseHttpError, eq, supabase_request
from connectors.supabase.config import SupabaseConfig, get_supabase_config

from .entity_store import CLIENT_TABLE, CONTRACTOR_TABLE, RECIPE_TABLE, TASK_TABLE

logger = logging.getLogger(__name__)

RETURN_ROW = "return=representation"
# PostgREST: embedded resource relationship missing.
MISSING_RELATIONSHIP_CODE = "PGRST200"


class SupabaseEntityStore:
    def __init__(self, *, config: SupabaseConfig | None = None) -> None:
        self._config = config or get_supabase_config()

    # Helpers

    def _select(self, table: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        rows = supabase_request(self._config, "GET", table, params={"select": "*", **(params or {})})
        return [r for r in rows or [] if isinstance(r, dict)]

    def _select_one(self, table: str, row_id: str) -> dict[str, Any] | None:
        rows = self._select(table, {"id": eq(row_id), "limit": 1})
        return rows[0] if rows else None

    def _insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        try:
            rows = supabase_request(self._config, "POST", table, body=row, prefer=RETURN_ROW)
        except SupabaseHttpError as exc:
            raise DownstreamWriteError(f"insert into {table}", str(exc), exc.body) from exc
        if not isinstance(rows, list) or not rows:
            raise DownstreamWriteError(f"insert into {table}", "no row returned")
        return rows[0]

    def _update(self, table: str, row_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        try:
            rows = supabase_request(
                self._config,
                "PATCH",
                table,
                params={"id": eq(row_id)},
                body=changes,
                prefer=RETURN_ROW,
            )
        except SupabaseHttpError as exc:
            raise DownstreamWriteError(f"update {table}", str(exc), exc.body) from exc
        if not isinstance(rows, list) or not rows:
            raise NotFoundError(table, row_id)
        return rows[0]

    def _delete(self, table: str, row_id: str) -> None:
        try:
            rows = supabase_request(
                self._config,
                "DELETE",
                table,
                params={"id": eq(row_id)},
                prefer=RETURN_ROW,
            )
        except SupabaseHttpError as exc:
            raise DownstreamWriteError(f"delete from {table}", str(exc), exc.body) from exc
        if not rows:
            raise NotFoundError(table, row_id)

    # Projects

    def list_projects(self, *, include_archived: bool = False) -> list[Project]:
        params = {} if include_archived else {"status": f"neq.{ProjectStatus.ARCHIVED.value}"}
        return [project_from_row(r) for r in self._select(CLIENT_TABLE, params)]

    def get_project_by_id(self, project_id: str) -> Project | None:
        row = self._select_one(CLIENT_TABLE, project_id)
        return project_from_row(row) if row else None

    def create_project(self, fields: ProjectCreate) -> Project:
        row = to_row(fields.model_dump(exclude_none=True), PROJECT_COLUMNS)
        row["createdAt"] = datetime.now(timezone.utc).isoformat()
        return project_from_row(self._insert(CLIENT_TABLE, row))

    def update_project(self, project_id: str, changes: dict[str, Any]) -> Project:
        return project_from_row(self._update(CLIENT_TABLE, project_id, to_row(changes, PROJECT_COLUMNS)))

    def delete_project(self, project_id: str) -> None:
        self._delete(CLIENT_TABLE, project_id)

    # Tasks

    def list_tasks(self) -> list[Task]:
        params = {"order": "created_at.desc"}
        try:
            rows = self._select(TASK_TABLE, {**params, "select": "*,assignee:Contractor(*)"})
        except SupabaseHttpError as exc:
            if exc.code != MISSING_RELATIONSHIP_CODE:
                raise
            logger.warning("Task -> Contractor relationship missing; loading tasks without assignees.")
            rows = self._select(TASK_TABLE, params)
        return [task_from_row(r) for r in rows]

    def get_task(self, task_id: str) -> Task | None:
        row = self._select_one(TASK_TABLE, task_id)
        return task_from_row(row) if row else None

    def create_task(self, fields: TaskCreate) -> Task:
        row = to_row(fields.model_dump(exclude_none=True), TASK_COLUMNS)
        return task_from_row(self._insert(TASK_TABLE, row))

    def update_task(self, task_id: str, changes: dict[str, Any]) -> Task:
        return task_from_row(self._update(TASK_TABLE, task_id, to_row(changes, TASK_COLUMNS)))

    def update_task_status(self, task_id: str, status: TaskStatus) -> Task:
        return task_from_row(self._update(TASK_TABLE, task_id, {"status": status.value}))

    def delete_task(self, task_id: str) -> None:
        self._delete(TASK_TABLE, task_id)

    # Contractors

    def list_contractors(self) -> list[Contractor]:
        return [contractor_from_row(r) for r in self._select(CONTRACTOR_TABLE)]

    def get_contractor(self, contractor_id: str) -> Contractor | None:
        row = self._select_one(CONTRACTOR_TABLE, contractor_id)
        return contractor_from_row(row) if row else None

    def create_contractor(self, fields: ContractorCreate) -> Contractor:
        row = to_row(fields.model_dump(exclude_none=True), CONTRACTOR_COLUMNS)
        return contractor_from_row(self._insert(CONTRACTOR_TABLE, row))

    def update_contractor(self, contractor_id: str, changes: dict[str, Any]) -> Contractor:
        return contractor_from_row(
            self._update(CONTRACTOR_TABLE, contractor_id, to_row(changes, CONTRACTOR_COLUMNS))
        )

    def delete_contractor(self, contractor_id: str) -> None:
        self._delete(CONTRACTOR_TABLE, contractor_id)

    # Automation recipes

    def _recipes(self, rows: list[dict[str, Any]]) -> list[AutomationRecipe]:
        # Unreadable rows are logged and skipped.
        recipes: list[AutomationRecipe] = []
        for row in rows:
            try:
                recipes.append(recipe_from_row(row))
            except SupabaseRowAdapterError as exc:
                logger.error("Skipping AutomationRecipe row %r: %s", row.get("id"), exc)
        return recipes

    def list_recipes(self) -> list[AutomationRecipe]:
        return self._recipes(self._select(RECIPE_TABLE))

    def list_active_recipes(self) -> list[AutomationRecipe]:
        return self._recipes(self._select(RECIPE_TABLE, {"isActive": "is.true"}))

    def get_recipe(self, recipe_id: str) -> AutomationRecipe | None:
        row = self._select_one(RECIPE_TABLE, recipe_id)
        return recipe_from_row(row) if row else None

    def create_recipe(self, recipe: AutomationRecipe) -> AutomationRecipe:
        validate_recipe(recipe)
        return recipe_from_row(self._insert(RECIPE_TABLE, recipe_to_row(recipe)))

    def update_recipe(self, recipe_id: str, recipe: AutomationRecipe) -> AutomationRecipe:
        validate_recipe(recipe)
        row = recipe_to_row(recipe)
        row.pop("id", None)
        return recipe_from_row(self._update(RECIPE_TABLE, recipe_id, row))

    def set_recipe_active(self, recipe_id: str, is_active: bool) -> AutomationRecipe:
        return recipe_from_row(self._update(RECIPE_TABLE, recipe_id, {"isActive": is_active}))

    def delete_recipe(self, recipe_id: str) -> None:
        self._delete(RECIPE_TABLE, recipe_id)
