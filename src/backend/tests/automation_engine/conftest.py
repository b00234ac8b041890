from datetime import date

import pytest

from common.automation_engine.config import AutomationEngineConfig
from common.automation_engine.engine import AutomationEngine
from common.automation_engine.errors import DownstreamWriteError
from common.automation_engine.models import (
    AutomationRecipe,
    Condition,
    Project,
    ProjectStatus,
    Task,
    TaskCreate,
    TriggerType,
)
from pipelines.entity_store import InMemoryEntityStore


class FlakyTaskStore(InMemoryEntityStore):
    """In-memory store whose task inserts fail for the listed titles."""

    def __init__(self, *, failing_titles=(), **kwargs):
        super().__init__(**kwargs)
        self.failing_titles = set(failing_titles)
        self.create_calls: list[TaskCreate] = []

    def create_task(self, fields: TaskCreate) -> Task:
        self.create_calls.append(fields)
        if fields.title in self.failing_titles:
            raise DownstreamWriteError("insert into Task", "connection reset")
        return super().create_task(fields)


@pytest.fixture
def today() -> date:
    return date(2026, 3, 2)


@pytest.fixture
def make_project():
    def _make(
        *,
        project_id: str = "proj-1",
        name: str = "Acme",
        industry: str = "B2B SaaS Tools",
        status: ProjectStatus = ProjectStatus.ACTIVE,
        **extra,
    ) -> Project:
        return Project(id=project_id, name=name, industry=industry, status=status, **extra)

    return _make


@pytest.fixture
def make_recipe():
    def _make(
        *,
        recipe_id: str = "rec-1",
        trigger_type: TriggerType = TriggerType.NEW_PROJECT,
        trigger_value=None,
        conditions=(),
        title: str = "Send contract",
        priority: str = "HIGH",
        delay_days=None,
        actions=None,
        is_active: bool = True,
    ) -> AutomationRecipe:
        if actions is None:
            payload = {"title": title, "priority": priority}
            if delay_days is not None:
                payload["delay_days"] = delay_days
            actions = [{"type": "CREATE_TASK", "payload": payload}]
        return AutomationRecipe(
            id=recipe_id,
            name=f"Recipe {recipe_id}",
            trigger_type=trigger_type,
            trigger_value=trigger_value,
            conditions=[c if isinstance(c, Condition) else Condition(**c) for c in conditions],
            actions=actions,
            is_active=is_active,
        )

    return _make


@pytest.fixture
def make_store():
    def _make(*, projects=(), recipes=(), failing_titles=()) -> FlakyTaskStore:
        return FlakyTaskStore(
            projects=list(projects),
            recipes=list(recipes),
            failing_titles=failing_titles,
        )

    return _make


@pytest.fixture
def make_engine(today):
    def _make(store, *, recipes=None, **config) -> AutomationEngine:
        return AutomationEngine(
            store,
            recipes=recipes,
            config=AutomationEngineConfig(**config),
            today=lambda: today,
        )

    return _make
