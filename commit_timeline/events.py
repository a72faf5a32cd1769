"""
Event scripts: recorded input sequences replayed against a session.

A script is a JSON or YAML list of events, e.g.

    - {type: slider, position: 50}
    - {type: step, commit: 3f2a9c1}
    - {type: brush, phase: end, selection: [[100, 50], [400, 300]]}
    - {type: hover, commit: 3f2a9c1, pointer: [120, 80]}
    - {type: hover, commit: null}
"""

import json
import math
import os
from typing import Any, Dict, List

import jsonschema
import yaml

from .controller import BrushMoved, Hovered, Message, SliderMoved, StepEntered
from .errors import ConfigError
from .selection import SelectionRect

_POINT = {
    "type": "array",
    "items": {"type": "number"},
    "minItems": 2,
    "maxItems": 2,
}

EVENT_SCHEMA = {
    "type": "array",
    "items": {
        "oneOf": [
            {
                "type": "object",
                "properties": {
                    "type": {"const": "slider"},
                    "position": {"type": "number"},
                },
                "required": ["type", "position"],
                "additionalProperties": False,
            },
            {
                "type": "object",
                "properties": {
                    "type": {"const": "step"},
                    "commit": {"type": "string"},
                },
                "required": ["type", "commit"],
                "additionalProperties": False,
            },
            {
                "type": "object",
                "properties": {
                    "type": {"const": "brush"},
                    "phase": {"enum": ["start", "brush", "end"]},
                    "selection": {
                        "oneOf": [
                            {"type": "null"},
                            {"type": "array", "items": _POINT, "minItems": 2, "maxItems": 2},
                        ]
                    },
                },
                "required": ["type", "selection"],
                "additionalProperties": False,
            },
            {
                "type": "object",
                "properties": {
                    "type": {"const": "hover"},
                    "commit": {"type": ["string", "null"]},
                    "pointer": _POINT,
                },
                "required": ["type", "commit"],
                "additionalProperties": False,
            },
        ]
    },
}


def message_from_dict(event: Dict[str, Any]) -> Message:
    kind = event["type"]
    if kind == "slider":
        position = float(event["position"])
        if not math.isfinite(position):
            raise ConfigError(f"Slider position must be a finite number, got {position}")
        return SliderMoved(position)
    if kind == "step":
        return StepEntered(str(event["commit"]))
    if kind == "brush":
        selection = event.get("selection")
        rect = SelectionRect.from_corners(selection) if selection else None
        return BrushMoved(event.get("phase", "end"), rect)
    if kind == "hover":
        pointer = tuple(event.get("pointer", (0.0, 0.0)))
        return Hovered(event.get("commit"), pointer)
    raise ConfigError(f"Unknown event type: {kind}")


def parse_events(events: Any) -> List[Message]:
    """Validate a decoded event list and convert it into messages."""
    try:
        jsonschema.validate(instance=events, schema=EVENT_SCHEMA)
    except jsonschema.ValidationError as e:
        raise ConfigError(f"Invalid event script: {e.message}") from e
    return [message_from_dict(event) for event in events]


def load_event_script(path: str) -> List[Message]:
    """Load a JSON or YAML event script."""
    file_ext = os.path.splitext(path)[1].lower()
    with open(path, "r", encoding="utf-8") as f:
        try:
            if file_ext in [".yaml", ".yml"]:
                events = yaml.safe_load(f)
            elif file_ext == ".json":
                events = json.load(f)
            else:
                raise ConfigError(f"Unsupported event script format: {file_ext}")
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to parse {path}: {e}") from e
    return parse_events(events or [])
