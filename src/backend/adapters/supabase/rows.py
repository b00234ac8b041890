from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, Mapping

from pydantic import ValidationError

from common.automation_engine.models import (
    AutomationRecipe,
    Contractor,
    CreateTaskAction,
    Project,
    ProjectStatus,
    Task,
)


class SupabaseRowAdapterError(ValueError):
    pass


# model field -> table column. The dashboard writes camelCase columns; a few tables
# were migrated with snake_case duplicates, which are accepted on read.
PROJECT_COLUMNS = {
    "id": "id",
    "name": "name",
    "industry": "industry",
    "email": "email",
    "phone": "phone",
    "location": "location",
    "created_at": "createdAt",
    "status": "status",
    "monthly_revenue": "monthlyRevenue",
    "billing_day": "billingDay",
    "next_billing_date": "nextBillingDate",
    "notes": "notes",
    "assigned_partner_id": "assignedPartnerId",
    "outsourcing_cost": "outsourcingCost",
    "contract_end_date": "contractEndDate",
    "last_contact_date": "lastContactDate",
    "service_details": "serviceDetails",
}

TASK_COLUMNS = {
    "id": "id",
    "title": "title",
    "description": "description",
    "status": "status",
    "project_id": "projectId",
    "due_date": "dueDate",
    "priority": "priority",
    "assignee_id": "assigneeId",
    "created_at": "created_at",
}

CONTRACTOR_COLUMNS = {
    "id": "id",
    "name": "name",
    "role": "role",
    "hourly_rate": "hourlyRate",
    "email": "email",
    "phone": "phone",
    "status": "status",
}

RECIPE_COLUMNS = {
    "id": "id",
    "name": "name",
    "trigger_type": "triggerType",
    "trigger_value": "triggerValue",
    "conditions": "conditions",
    "actions": "actions",
    "is_active": "isActive",
}

_DATE_FIELDS = {"next_billing_date", "contract_end_date", "last_contact_date", "due_date"}


def _parse_iso_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return None
    return None


def _read(row: Mapping[str, Any], field: str, columns: Mapping[str, str]) -> Any:
    column = columns[field]
    value = row.get(column)
    if value is None and field != column:
        value = row.get(field)
    return value


def _fields_from_row(row: Any, columns: Mapping[str, str], entity: str) -> dict[str, Any]:
    if not isinstance(row, Mapping):
        raise SupabaseRowAdapterError(f"{entity} row must be a JSON object.")
    out: dict[str, Any] = {}
    for field in columns:
        value = _read(row, field, columns)
        if value is None:
            continue
        if field in _DATE_FIELDS:
            value = _parse_iso_date(value)
            if value is None:
                continue
        out[field] = value
    if "id" in out:
        out["id"] = str(out["id"])
    return out


def _to_json_value(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if hasattr(value, "value"):
        return getattr(value, "value")
    return value


def to_row(values: Mapping[str, Any], columns: Mapping[str, str]) -> dict[str, Any]:
    """Map model field names to table columns, dropping fields the table does not know."""
    return {columns[k]: _to_json_value(v) for k, v in values.items() if k in columns}


def project_from_row(row: Any) -> Project:
    fields = _fields_from_row(row, PROJECT_COLUMNS, "Client")
    fields["status"] = fields.get("status") or ProjectStatus.ACTIVE
    fields["monthly_revenue"] = fields.get("monthly_revenue") or 0
    fields["billing_day"] = fields.get("billing_day") or 1
    fields["notes"] = fields.get("notes") or ""
    fields["industry"] = fields.get("industry") or ""
    try:
        return Project.model_validate(fields)
    except ValidationError as exc:
        raise SupabaseRowAdapterError(f"Invalid Client row {fields.get('id')!r}: {exc}") from exc


def task_from_row(row: Any) -> Task:
    fields = _fields_from_row(row, TASK_COLUMNS, "Task")
    # Present when the select embeds `assignee:Contractor(*)`.
    assignee = row.get("assignee")
    if isinstance(assignee, Mapping):
        fields["assignee"] = contractor_from_row(assignee)
    try:
        return Task.model_validate(fields)
    except ValidationError as exc:
        raise SupabaseRowAdapterError(f"Invalid Task row {fields.get('id')!r}: {exc}") from exc


def contractor_from_row(row: Any) -> Contractor:
    fields = _fields_from_row(row, CONTRACTOR_COLUMNS, "Contractor")
    try:
        return Contractor.model_validate(fields)
    except ValidationError as exc:
        raise SupabaseRowAdapterError(f"Invalid Contractor row {fields.get('id')!r}: {exc}") from exc


def _json_list(value: Any, column: str) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value) if value.strip() else []
        except ValueError as exc:
            raise SupabaseRowAdapterError(f"Recipe column {column} is not valid JSON.") from exc
    if not isinstance(value, list):
        raise SupabaseRowAdapterError(f"Recipe column {column} must be a list.")
    return value


def _action_from_row(raw: Any) -> Any:
    if not isinstance(raw, Mapping):
        return raw
    payload = raw.get("payload")
    if not isinstance(payload, Mapping):
        return dict(raw)
    return {
        "type": raw.get("type"),
        "payload": {
            "title": payload.get("title"),
            "priority": payload.get("priority") or "MEDIUM",
            "delay_days": payload.get("delayDays", payload.get("delay_days")),
            "assignee_role": payload.get("assigneeRole", payload.get("assignee_role")),
        }
        if raw.get("type") == "CREATE_TASK"
        else dict(payload),
    }


def recipe_from_row(row: Any) -> AutomationRecipe:
    fields = _fields_from_row(row, RECIPE_COLUMNS, "AutomationRecipe")
    fields["conditions"] = _json_list(fields.get("conditions"), "conditions")
    fields["actions"] = [_action_from_row(a) for a in _json_list(fields.get("actions"), "actions")]
    if fields.get("trigger_value") == "":
        fields.pop("trigger_value")
    try:
        return AutomationRecipe.model_validate(fields)
    except ValidationError as exc:
        raise SupabaseRowAdapterError(f"Invalid AutomationRecipe row {fields.get('id')!r}: {exc}") from exc


def recipe_to_row(recipe: AutomationRecipe) -> dict[str, Any]:
    actions: list[dict[str, Any]] = []
    for action in recipe.actions:
        if isinstance(action, CreateTaskAction):
            payload: dict[str, Any] = {
                "title": action.payload.title,
                "priority": action.payload.priority.value,
            }
            if action.payload.delay_days is not None:
                payload["delayDays"] = action.payload.delay_days
            if action.payload.assignee_role:
                payload["assigneeRole"] = action.payload.assignee_role
            actions.append({"type": action.type, "payload": payload})
        else:
            actions.append({"type": action.type, "payload": dict(action.payload)})

    row = {
        "name": recipe.name,
        "triggerType": recipe.trigger_type.value,
        "triggerValue": recipe.trigger_value.value if recipe.trigger_value else None,
        "conditions": [c.model_dump(mode="json") for c in recipe.conditions],
        "actions": actions,
        "isActive": recipe.is_active,
    }
    if recipe.id:
        row["id"] = recipe.id
    return row
