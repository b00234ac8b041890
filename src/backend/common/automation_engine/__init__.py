"""Project automation recipes: trigger matching, condition evaluation, task dispatch.

Inputs are recipes, project events and a store exposing three calls.
Database and HTTP access live in `connectors/` and `pipelines/`.
"""

from .authoring import RecipeDraft, build_recipe, validate_recipe
from .config import AutomationEngineConfig
from .engine import AutomationEngine, AutomationStore
from .errors import DownstreamWriteError, NotFoundError, RecipeValidationError
from .models import (
    AutomationRecipe,
    AutomationRunSummary,
    Condition,
    CreateTaskAction,
    Project,
    ProjectCreatedEvent,
    ProjectStatus,
    ProjectStatusChangedEvent,
    Task,
)
