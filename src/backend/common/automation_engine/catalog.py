from __future__ import annotations

import argparse
import json
from typing import Any, Dict, List

import yaml
from pydantic import BaseModel, Field

from .actions import actions
from .conditions import operators
from .models import TRIGGER_ELIGIBLE_STATUSES, TriggerType


class ActionCatalogEntry(BaseModel):
    action_type: str
    payload_model: str
    payload_schema: Dict[str, Any] = Field(default_factory=dict)


class AutomationCatalog(BaseModel):
    trigger_types: List[str]
    trigger_statuses: List[str]
    condition_operators: List[str]
    actions: List[ActionCatalogEntry]


def build_catalog() -> AutomationCatalog:
    entries: List[ActionCatalogEntry] = []
    for action_type in actions.ids():
        payload_model = actions.payload_model(action_type)
        entries.append(
            ActionCatalogEntry(
                action_type=action_type.value,
                payload_model=payload_model.__name__,
                payload_schema=payload_model.model_json_schema(),
            )
        )
    entries.sort(key=lambda e: e.action_type)

    return AutomationCatalog(
        trigger_types=sorted(t.value for t in TriggerType),
        trigger_statuses=sorted(s.value for s in TRIGGER_ELIGIBLE_STATUSES),
        condition_operators=sorted(op.value for op in operators.ids()),
        actions=entries,
    )


def _dump_json(catalog: dict[str, Any]) -> str:
    return json.dumps(catalog, indent=2, sort_keys=True)


def _dump_yaml(catalog: dict[str, Any]) -> str:
    return yaml.safe_dump(catalog, sort_keys=True)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Print the automation triggers, operators and actions available to recipes.")
    parser.add_argument(
        "--format",
        choices=("yaml", "json"),
        default="yaml",
        help="Output format (default: yaml).",
    )
    args = parser.parse_args(argv)

    catalog = build_catalog().model_dump()
    if args.format == "json":
        print(_dump_json(catalog))
    else:
        print(_dump_yaml(catalog))


if __name__ == "__main__":
    main()
