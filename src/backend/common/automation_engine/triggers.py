from __future__ import annotations

from .models import (
    TRIGGER_ELIGIBLE_STATUSES,
    AutomationRecipe,
    DomainEvent,
    ProjectCreatedEvent,
    ProjectStatusChangedEvent,
    TriggerType,
)


def matches(recipe: AutomationRecipe, event: DomainEvent) -> bool:
    """Decide whether `recipe` listens for `event`.

    A status-change recipe matches exactly one discrete transition: the one whose new
    status equals its `trigger_value`. A recipe with no `trigger_value` never matches.
    """
    if not recipe.is_active:
        return False

    if isinstance(event, ProjectCreatedEvent):
        return recipe.trigger_type == TriggerType.NEW_PROJECT

    if isinstance(event, ProjectStatusChangedEvent):
        if recipe.trigger_type != TriggerType.PROJECT_STATUS_CHANGE:
            return False
        if recipe.trigger_value is None:
            return False
        if event.new_status not in TRIGGER_ELIGIBLE_STATUSES:
            return False
        if event.previous_status is not None and event.previous_status == event.new_status:
            return False
        return recipe.trigger_value == event.new_status

    return False
