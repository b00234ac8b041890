from __future__ import annotations

import re
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


class ProjectStatus(str, Enum):
    # Sales stages
    LEAD = "LEAD"
    DISCOVERY = "DISCOVERY"
    PROPOSAL = "PROPOSAL"
    NEGOTIATION = "NEGOTIATION"
    LOST = "LOST"

    # Delivery stages
    ONBOARDING = "ONBOARDING"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    PAUSED = "PAUSED"
    ARCHIVED = "ARCHIVED"


# Archived projects are filtered out upstream, so they never trigger recipes.
TRIGGER_ELIGIBLE_STATUSES = frozenset(
    {
        ProjectStatus.ONBOARDING,
        ProjectStatus.ACTIVE,
        ProjectStatus.COMPLETED,
        ProjectStatus.PAUSED,
    }
)


class TaskStatus(str, Enum):
    TODO = "TODO"
    DONE = "DONE"


class TaskPriority(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class ContractorStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class TriggerType(str, Enum):
    PROJECT_STATUS_CHANGE = "PROJECT_STATUS_CHANGE"
    NEW_PROJECT = "NEW_PROJECT"


class ConditionOperator(str, Enum):
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    EQUALS = "equals"
    GREATER_THAN = "greater_than"


_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def camel_to_snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


class ActionType(str, Enum):
    CREATE_TASK = "CREATE_TASK"


class ActionStatus(str, Enum):
    CREATED = "CREATED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


class Project(BaseModel):
    id: str
    name: str
    industry: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    created_at: Optional[datetime] = None

    status: ProjectStatus = ProjectStatus.ACTIVE
    monthly_revenue: float = 0
    billing_day: int = 1
    next_billing_date: Optional[date] = None
    notes: str = ""

    assigned_partner_id: Optional[str] = None
    outsourcing_cost: Optional[float] = None
    contract_end_date: Optional[date] = None
    last_contact_date: Optional[date] = None
    service_details: Optional[str] = None


class ProjectCreate(BaseModel):
    name: str
    industry: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    status: ProjectStatus = ProjectStatus.ONBOARDING
    monthly_revenue: float = 0
    billing_day: int = 1
    notes: str = ""
    assigned_partner_id: Optional[str] = None
    contract_end_date: Optional[date] = None
    service_details: Optional[str] = None


class Contractor(BaseModel):
    id: str
    name: str
    role: str = ""
    hourly_rate: float = 0
    email: Optional[str] = None
    phone: Optional[str] = None
    status: ContractorStatus = ContractorStatus.ACTIVE


class Task(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    project_id: Optional[str] = None
    due_date: Optional[date] = None
    priority: Optional[TaskPriority] = None
    assignee_id: Optional[str] = None
    created_at: Optional[datetime] = None
    # Joined from the Contractor table when the store can resolve it.
    assignee: Optional[Contractor] = None


class TaskCreate(BaseModel):
    title: str
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.TODO
    project_id: Optional[str] = None
    due_date: Optional[date] = None
    description: Optional[str] = None


class ContractorCreate(BaseModel):
    name: str
    role: str = ""
    hourly_rate: float = 0
    email: Optional[str] = None
    phone: Optional[str] = None
    status: ContractorStatus = ContractorStatus.ACTIVE


class Condition(BaseModel):
    field: str
    # Tags without a registered operator are kept as text and never hold.
    operator: Union[ConditionOperator, str] = Field(ConditionOperator.CONTAINS, union_mode="left_to_right")
    value: str = ""

    @field_validator("operator", mode="before")
    @classmethod
    def _normalize_operator(cls, value: Any) -> Any:
        if isinstance(value, str) and not isinstance(value, ConditionOperator):
            raw = value.strip()
            for tag in (raw.lower(), camel_to_snake(raw)):
                try:
                    return ConditionOperator(tag)
                except ValueError:
                    continue
        return value

    @field_validator("value", mode="before")
    @classmethod
    def _value_as_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class CreateTaskPayload(BaseModel):
    title: str
    priority: TaskPriority = TaskPriority.MEDIUM
    delay_days: Optional[int] = None
    # Carried for a future auto-assignment; not read by the dispatcher.
    assignee_role: Optional[str] = None


class CreateTaskAction(BaseModel):
    type: Literal["CREATE_TASK"] = "CREATE_TASK"
    payload: CreateTaskPayload


class UnhandledAction(BaseModel):
    """An action row whose `type` has no registered handler."""

    type: str
    payload: Dict[str, Any] = Field(default_factory=dict)


RecipeAction = Union[CreateTaskAction, UnhandledAction]


def _coerce_action(raw: Any) -> Any:
    if isinstance(raw, (CreateTaskAction, UnhandledAction)):
        return raw
    if isinstance(raw, dict) and raw.get("type") == ActionType.CREATE_TASK.value:
        return CreateTaskAction.model_validate(raw)
    if isinstance(raw, dict):
        return UnhandledAction.model_validate(raw)
    return raw


class AutomationRecipe(BaseModel):
    id: str = ""
    name: str
    trigger_type: TriggerType
    trigger_value: Optional[ProjectStatus] = None
    conditions: List[Condition] = Field(default_factory=list)
    actions: List[RecipeAction] = Field(default_factory=list)
    is_active: bool = True

    @field_validator("actions", mode="before")
    @classmethod
    def _tag_actions(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [_coerce_action(item) for item in value]
        return value


class ProjectCreatedEvent(BaseModel):
    kind: Literal["NEW_PROJECT"] = "NEW_PROJECT"
    project: Project


class ProjectStatusChangedEvent(BaseModel):
    kind: Literal["PROJECT_STATUS_CHANGE"] = "PROJECT_STATUS_CHANGE"
    project: Project
    new_status: ProjectStatus
    previous_status: Optional[ProjectStatus] = None


DomainEvent = Union[ProjectCreatedEvent, ProjectStatusChangedEvent]


class ActionResult(BaseModel):
    recipe_id: str
    action_index: int
    action_type: str
    status: ActionStatus
    task: Optional[Task] = None
    error_kind: Optional[str] = None
    error: Optional[str] = None


class AutomationRunSummary(BaseModel):
    run_id: str
    generated_at: datetime
    event_kind: str
    project_id: str

    matched_recipe_ids: List[str] = Field(default_factory=list)
    fired_recipe_ids: List[str] = Field(default_factory=list)
    action_results: List[ActionResult] = Field(default_factory=list)

    @property
    def failures(self) -> List[ActionResult]:
        return [r for r in self.action_results if r.status == ActionStatus.FAILED]

    @property
    def created_tasks(self) -> List[Task]:
        return [r.task for r in self.action_results if r.status == ActionStatus.CREATED and r.task]
