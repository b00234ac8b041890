from datetime import date

import pytest

from common.automation_engine.actions import actions, due_date_for, execute
from common.automation_engine.errors import NotFoundError
from common.automation_engine.models import (
    ActionStatus,
    ActionType,
    AutomationRecipe,
    CreateTaskAction,
    TriggerType,
    UnhandledAction,
)


@pytest.mark.parametrize(
    "delay,expected",
    [(None, date(2026, 3, 2)), (0, date(2026, 3, 2)), (5, date(2026, 3, 7)), (30, date(2026, 4, 1))],
)
def test_due_date_counts_calendar_days(delay, expected):
    assert due_date_for(date(2026, 3, 2), delay) == expected


def test_actions_are_tagged_by_type():
    recipe = AutomationRecipe(
        name="mixed",
        trigger_type=TriggerType.NEW_PROJECT,
        actions=[
            {"type": "CREATE_TASK", "payload": {"title": "Kickoff", "priority": "LOW"}},
            {"type": "NOTIFY_SLACK", "payload": {"channel": "#ops"}},
        ],
    )
    assert isinstance(recipe.actions[0], CreateTaskAction)
    assert recipe.actions[0].payload.title == "Kickoff"
    assert isinstance(recipe.actions[1], UnhandledAction)
    assert recipe.actions[1].payload == {"channel": "#ops"}


def test_create_task_requires_a_title():
    with pytest.raises(ValueError):
        AutomationRecipe(
            name="broken",
            trigger_type=TriggerType.NEW_PROJECT,
            actions=[{"type": "CREATE_TASK", "payload": {"priority": "HIGH"}}],
        )


def test_only_create_task_is_registered():
    assert list(actions.ids()) == [ActionType.CREATE_TASK]


def test_not_found_from_store_is_reported(make_project, make_recipe, today):
    class MissingProjectStore:
        def create_task(self, fields):
            raise NotFoundError("Project", fields.project_id)

    recipe = make_recipe(recipe_id="r")
    results = execute(recipe.actions, make_project(), store=MissingProjectStore(), today=today, recipe_id="r")

    assert [r.status for r in results] == [ActionStatus.FAILED]
    assert results[0].error_kind == "NotFoundError"


def test_unexpected_errors_propagate(make_project, make_recipe, today):
    class BrokenStore:
        def create_task(self, fields):
            raise KeyError("boom")

    with pytest.raises(KeyError):
        execute(make_recipe().actions, make_project(), store=BrokenStore(), today=today)


def test_later_actions_run_after_a_failure(make_store, make_project, make_recipe, today):
    recipe = make_recipe(
        actions=[
            {"type": "CREATE_TASK", "payload": {"title": "First"}},
            {"type": "CREATE_TASK", "payload": {"title": "Second"}},
        ]
    )
    store = make_store(failing_titles={"First"})

    results = execute(recipe.actions, make_project(), store=store, today=today, recipe_id=recipe.id)

    assert [r.status for r in results] == [ActionStatus.FAILED, ActionStatus.CREATED]
    assert [r.action_index for r in results] == [0, 1]
    assert results[1].task.title == "Second"
