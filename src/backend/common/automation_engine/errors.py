from __future__ import annotations


class AutomationError(RuntimeError):
    """Base class for errors raised around recipe evaluation."""


class RecipeValidationError(ValueError):
    def __init__(self, message: str, problems: list[str] | None = None):
        super().__init__(message)
        self.problems = list(problems or [message])


class NotFoundError(AutomationError):
    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} '{entity_id}' not found.")
        self.entity = entity
        self.entity_id = entity_id


class DownstreamWriteError(AutomationError):
    def __init__(self, operation: str, message: str, body: str | None = None):
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.body = body
