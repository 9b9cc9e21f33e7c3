"""Human readable texts for ``log_event`` calls, keyed by (domain, action).

The texts live in ``event_templates.json`` next to this module as
``{"domain": {"action": "template with {fields}"}}``.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

TEMPLATES_PATH = Path(__file__).with_name("event_templates.json")

EVENT_TEMPLATES: dict[tuple[str, str], str] = {}


def _flatten(raw: Any) -> dict[tuple[str, str], str]:
    if not isinstance(raw, Mapping):
        raise ValueError("top level must be an object")
    flat: dict[tuple[str, str], str] = {}
    for domain, actions in raw.items():
        if not isinstance(actions, Mapping):
            continue
        for action, template in actions.items():
            if isinstance(template, str):
                flat[(str(domain), str(action))] = template
    return flat


def load_event_templates(path: Path | None = None) -> dict[tuple[str, str], str]:
    """Read the catalog; on failure return only an ``app/load_error`` entry."""
    try:
        with (path or TEMPLATES_PATH).open("r", encoding="utf-8") as f:
            return _flatten(json.load(f))
    except FileNotFoundError:
        return {("app", "load_error"): "Event templates file missing"}
    except (OSError, ValueError) as e:
        return {("app", "load_error"): f"Failed to load event templates: {e}"[:200]}


def reload_event_templates(path: Path | None = None) -> None:
    # In place: ClientLogger reads this dict at call time.
    templates = load_event_templates(path)
    EVENT_TEMPLATES.clear()
    EVENT_TEMPLATES.update(templates)


reload_event_templates()

__all__ = ["EVENT_TEMPLATES", "load_event_templates", "reload_event_templates"]
