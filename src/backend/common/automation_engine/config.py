from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel


class AutomationEngineConfig(BaseModel):
    # Authored condition values are not normalized, so matching ignores case unless enabled.
    case_sensitive_conditions: bool = False
    # Re-read the triggering project before dispatching so vanished records are reported.
    verify_project_exists: bool = True

    @classmethod
    def from_mapping(cls, raw: Dict[str, Any] | None) -> "AutomationEngineConfig":
        if not raw:
            return cls()
        return cls.model_validate(raw)
