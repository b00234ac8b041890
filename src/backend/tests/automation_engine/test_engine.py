from datetime import timedelta

from common.automation_engine.models import (
    ActionStatus,
    Condition,
    ProjectStatus,
    TaskPriority,
    TaskStatus,
    TriggerType,
)


def test_new_project_recipe_creates_one_task_due_today(make_store, make_engine, make_project, make_recipe, today):
    project = make_project(project_id="proj-x")
    recipe = make_recipe(recipe_id="welcome", title="Send contract", priority="HIGH", delay_days=0)
    store = make_store(projects=[project], recipes=[recipe])

    summary = make_engine(store).on_project_created(project)

    assert summary.fired_recipe_ids == ["welcome"]
    assert summary.failures == []
    assert len(store.tasks) == 1
    task = next(iter(store.tasks.values()))
    assert task.title == "Send contract"
    assert task.priority == TaskPriority.HIGH
    assert task.status == TaskStatus.TODO
    assert task.project_id == "proj-x"
    assert task.due_date == today
    assert summary.created_tasks == [task]


def test_condition_mismatch_creates_nothing(make_store, make_engine, make_project, make_recipe):
    project = make_project(industry="Consulting")
    recipe = make_recipe(
        recipe_id="saas-kickoff",
        trigger_type=TriggerType.PROJECT_STATUS_CHANGE,
        trigger_value=ProjectStatus.ACTIVE,
        conditions=[Condition(field="industry", value="SaaS")],
    )
    store = make_store(projects=[project], recipes=[recipe])

    summary = make_engine(store).on_project_status_changed(project, ProjectStatus.ACTIVE)

    assert summary.matched_recipe_ids == ["saas-kickoff"]
    assert summary.fired_recipe_ids == []
    assert summary.action_results == []
    assert store.tasks == {}


def test_failure_in_first_recipe_does_not_stop_second(make_store, make_engine, make_project, make_recipe):
    project = make_project()
    first = make_recipe(recipe_id="first", title="Book kickoff call")
    second = make_recipe(recipe_id="second", title="Create shared folder")
    store = make_store(projects=[project], recipes=[first, second], failing_titles={"Book kickoff call"})

    summary = make_engine(store).on_project_created(project)

    assert summary.fired_recipe_ids == ["first", "second"]
    assert [r.status for r in summary.action_results] == [ActionStatus.FAILED, ActionStatus.CREATED]
    failure = summary.failures[0]
    assert failure.recipe_id == "first"
    assert failure.error_kind == "DownstreamWriteError"
    assert [t.title for t in store.tasks.values()] == ["Create shared folder"]
    assert [c.title for c in store.create_calls] == ["Book kickoff call", "Create shared folder"]


def test_same_event_twice_creates_duplicate_tasks(make_store, make_engine, make_project, make_recipe):
    # No idempotency key: replaying an event is the caller's responsibility.
    project = make_project()
    store = make_store(projects=[project], recipes=[make_recipe()])
    engine = make_engine(store)

    engine.on_project_created(project)
    engine.on_project_created(project)

    titles = [t.title for t in store.tasks.values()]
    assert titles == ["Send contract", "Send contract"]


def test_delay_days_sets_due_date(make_store, make_engine, make_project, make_recipe, today):
    project = make_project()
    store = make_store(projects=[project], recipes=[make_recipe(delay_days=3)])

    summary = make_engine(store).on_project_created(project)

    assert summary.created_tasks[0].due_date == today + timedelta(days=3)


def test_inactive_recipes_are_not_loaded(make_store, make_engine, make_project, make_recipe):
    project = make_project()
    store = make_store(projects=[project], recipes=[make_recipe(is_active=False)])

    summary = make_engine(store).on_project_created(project)

    assert summary.matched_recipe_ids == []
    assert store.tasks == {}


def test_explicit_recipe_list_overrides_store(make_store, make_engine, make_project, make_recipe):
    project = make_project()
    store = make_store(projects=[project], recipes=[make_recipe(recipe_id="stored")])

    summary = make_engine(store, recipes=[make_recipe(recipe_id="given")]).on_project_created(project)

    assert summary.fired_recipe_ids == ["given"]


def test_recipes_fire_in_list_order(make_store, make_engine, make_project, make_recipe):
    project = make_project()
    recipes = [make_recipe(recipe_id=f"r{i}", title=f"Step {i}") for i in range(3)]
    store = make_store(projects=[project], recipes=recipes)

    summary = make_engine(store).on_project_created(project)

    assert summary.fired_recipe_ids == ["r0", "r1", "r2"]
    assert [r.task.title for r in summary.action_results] == ["Step 0", "Step 1", "Step 2"]


def test_vanished_project_reports_not_found(make_store, make_engine, make_project, make_recipe):
    project = make_project(project_id="gone")
    store = make_store(recipes=[make_recipe()])

    summary = make_engine(store).on_project_created(project)

    assert summary.fired_recipe_ids == ["rec-1"]
    assert len(summary.failures) == 1
    assert summary.failures[0].error_kind == "NotFoundError"
    assert "gone" in summary.failures[0].error
    assert store.create_calls == []


def test_project_check_can_be_disabled(make_store, make_engine, make_project, make_recipe):
    project = make_project(project_id="unsaved")
    store = make_store(recipes=[make_recipe()])

    summary = make_engine(store, verify_project_exists=False).on_project_created(project)

    assert summary.failures == []
    assert len(store.tasks) == 1


def test_unknown_action_is_skipped_and_rest_run(make_store, make_engine, make_project, make_recipe):
    project = make_project()
    recipe = make_recipe(
        actions=[
            {"type": "SEND_EMAIL", "payload": {"to": "owner"}},
            {"type": "CREATE_TASK", "payload": {"title": "Send contract"}},
        ]
    )
    store = make_store(projects=[project], recipes=[recipe])

    summary = make_engine(store).on_project_created(project)

    assert [r.status for r in summary.action_results] == [ActionStatus.SKIPPED, ActionStatus.CREATED]
    assert summary.action_results[0].action_type == "SEND_EMAIL"
    assert summary.failures == []


def test_case_sensitive_conditions_when_configured(make_store, make_engine, make_project, make_recipe):
    project = make_project(industry="b2b saas tools")
    recipe = make_recipe(conditions=[Condition(field="industry", value="SaaS")])
    store = make_store(projects=[project], recipes=[recipe])

    assert make_engine(store).on_project_created(project).fired_recipe_ids == ["rec-1"]
    assert make_engine(store, case_sensitive_conditions=True).on_project_created(project).fired_recipe_ids == []
