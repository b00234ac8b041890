import json
from datetime import date
from pathlib import Path

import pytest

from adapters.supabase.rows import (
    PROJECT_COLUMNS,
    SupabaseRowAdapterError,
    contractor_from_row,
    project_from_row,
    recipe_from_row,
    recipe_to_row,
    task_from_row,
    to_row,
)
from common.automation_engine.models import (
    ConditionOperator,
    CreateTaskAction,
    ProjectStatus,
    TaskPriority,
    TaskStatus,
    TriggerType,
    UnhandledAction,
)


FIXTURES = Path(__file__).parent / "fixtures" / "supabase"


def _rows(table: str) -> list[dict]:
    return json.loads((FIXTURES / f"{table}.json").read_text(encoding="utf-8"))


def test_client_rows_map_to_projects():
    projects = {p.id: p for p in map(project_from_row, _rows("Client"))}

    northwind = projects["c-101"]
    assert northwind.name == "Northwind Analytics"
    assert northwind.status == ProjectStatus.ACTIVE
    assert northwind.monthly_revenue == 2500
    assert northwind.billing_day == 5
    assert northwind.next_billing_date == date(2026, 3, 5)
    assert northwind.contract_end_date == date(2026, 12, 31)
    assert northwind.assigned_partner_id == "k-7"
    assert northwind.service_details == "Paid social + reporting"


def test_client_rows_fill_dashboard_defaults():
    projects = {p.id: p for p in map(project_from_row, _rows("Client"))}

    greenleaf = projects["c-102"]
    assert greenleaf.billing_day == 1
    assert greenleaf.notes == ""

    old_harbor = projects["c-103"]
    assert old_harbor.industry == ""
    assert old_harbor.monthly_revenue == 800
    assert old_harbor.billing_day == 15

    lead = projects["c-104"]
    assert lead.status == ProjectStatus.ACTIVE
    assert lead.monthly_revenue == 0


def test_task_rows():
    tasks = {t.id: t for t in map(task_from_row, _rows("Task"))}

    assert tasks["t-1"].status == TaskStatus.DONE
    assert tasks["t-1"].project_id == "c-101"
    assert tasks["t-1"].priority == TaskPriority.HIGH
    assert tasks["t-2"].due_date == date(2026, 2, 4)
    assert tasks["t-3"].project_id == "c-101"
    assert tasks["t-3"].due_date is None


def test_contractor_rows():
    (contractor,) = map(contractor_from_row, _rows("Contractor"))
    assert contractor.hourly_rate == 45
    assert contractor.role == "Media Buyer"


def test_recipe_rows_accept_json_text_columns():
    recipes = {r.id: r for r in map(recipe_from_row, _rows("AutomationRecipe"))}

    welcome = recipes["r-welcome"]
    assert welcome.trigger_type == TriggerType.NEW_PROJECT
    assert welcome.trigger_value is None
    assert welcome.actions[0].payload.delay_days == 0

    saas = recipes["r-saas"]
    assert saas.trigger_value == ProjectStatus.ACTIVE
    assert saas.conditions[0].value == "SaaS"
    create, unknown = saas.actions
    assert isinstance(create, CreateTaskAction)
    assert create.payload.delay_days == 2
    assert create.payload.assignee_role == "Account Manager"
    assert isinstance(unknown, UnhandledAction)
    assert unknown.payload == {"template": "kickoff"}

    paused = recipes["r-paused"]
    assert paused.is_active is False
    assert paused.conditions == []
    assert paused.actions[0].payload.priority == TaskPriority.MEDIUM


def test_recipe_to_row_uses_dashboard_columns():
    recipe = recipe_from_row(_rows("AutomationRecipe")[1])
    row = recipe_to_row(recipe)

    assert row["id"] == "r-saas"
    assert row["triggerType"] == "PROJECT_STATUS_CHANGE"
    assert row["triggerValue"] == "ACTIVE"
    assert row["isActive"] is True
    assert row["conditions"] == [{"field": "industry", "operator": "contains", "value": "SaaS"}]
    assert row["actions"][0] == {
        "type": "CREATE_TASK",
        "payload": {
            "title": "Schedule onboarding call",
            "priority": "MEDIUM",
            "delayDays": 2,
            "assigneeRole": "Account Manager",
        },
    }
    assert row["actions"][1] == {"type": "SEND_EMAIL", "payload": {"template": "kickoff"}}


def test_to_row_serializes_dates_and_enums():
    row = to_row(
        {"status": ProjectStatus.PAUSED, "contract_end_date": date(2026, 5, 1), "unknown": 1},
        PROJECT_COLUMNS,
    )
    assert row == {"status": "PAUSED", "contractEndDate": "2026-05-01"}


def test_bad_rows_raise_adapter_errors():
    with pytest.raises(SupabaseRowAdapterError):
        project_from_row(["not", "an", "object"])
    with pytest.raises(SupabaseRowAdapterError):
        project_from_row({"id": "c-9"})
    with pytest.raises(SupabaseRowAdapterError):
        recipe_from_row({"id": "r-9", "name": "x", "triggerType": "NEW_PROJECT", "actions": "{not json"})
    with pytest.raises(SupabaseRowAdapterError):
        recipe_from_row({"id": "r-9", "name": "x", "triggerType": "SOMETHING_ELSE"})


def test_task_row_with_embedded_assignee():
    (row,) = [r for r in _rows("Task") if r["id"] == "t-1"]
    (contractor,) = _rows("Contractor")

    task = task_from_row({**row, "assignee": contractor})
    assert task.assignee.name == "Dana Ortiz"
    assert task.assignee.hourly_rate == 45
    assert task_from_row({**row, "assignee": None}).assignee is None


def test_recipe_rows_accept_camel_case_operators():
    recipe = recipe_from_row(
        {
            "id": "r-big",
            "name": "Big accounts",
            "triggerType": "NEW_PROJECT",
            "conditions": json.dumps([{"field": "monthlyRevenue", "operator": "greaterThan", "value": 5000}]),
            "actions": [{"type": "CREATE_TASK", "payload": {"title": "Assign senior lead"}}],
        }
    )
    (condition,) = recipe.conditions
    assert condition.operator == ConditionOperator.GREATER_THAN
    assert condition.value == "5000"
