"""
Configuration file support and resolution.

Precedence: CLI > config file > preset > defaults. Config files are YAML
or JSON and are auto-discovered next to the dataset or in the current
directory when not given explicitly.
"""

import json
import logging
import math
import os
from typing import Any, Dict, Optional

import jsonschema
import yaml

from .errors import ConfigError
from .scales import PlotLayout

logger = logging.getLogger(__name__)

CONFIG_NAMES = (
    ".commit-timeline.yaml",
    ".commit-timeline.yml",
    ".commit-timeline.json",
)

_NUMBER = {"type": "number", "minimum": 0}

CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "preset": {"type": "string", "enum": ["standard", "compact", "wide"]},
        "width": {"type": "number", "exclusiveMinimum": 0},
        "height": {"type": "number", "exclusiveMinimum": 0},
        "margin_top": _NUMBER,
        "margin_right": _NUMBER,
        "margin_bottom": _NUMBER,
        "margin_left": _NUMBER,
        "radius_min": _NUMBER,
        "radius_max": _NUMBER,
        "repo_url": {"type": "string"},
        "initial_progress": {"type": "number", "minimum": 0, "maximum": 100},
        "quiet": {"type": "boolean"},
        "verbose": {"type": "boolean"},
        "no_color": {"type": "boolean"},
    },
    "additionalProperties": False,
}

PRESETS: Dict[str, Dict[str, Any]] = {
    "standard": {"width": 1000, "height": 600},
    "compact": {"width": 640, "height": 400, "radius_min": 1, "radius_max": 18},
    "wide": {"width": 1600, "height": 600},
}

DEFAULTS: Dict[str, Any] = {
    "width": 1000,
    "height": 600,
    "margin_top": 10,
    "margin_right": 10,
    "margin_bottom": 30,
    "margin_left": 20,
    "radius_min": 2,
    "radius_max": 30,
    "repo_url": "",
    "initial_progress": 100,
}


def load_config_file(config_path: str) -> Dict[str, Any]:
    """
    Load and validate configuration from a YAML or JSON file.

    Raises:
        FileNotFoundError: if the file does not exist
        ConfigError: on an unsupported extension or invalid contents
    """
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    file_ext = os.path.splitext(config_path)[1].lower()

    with open(config_path, "r", encoding="utf-8") as f:
        try:
            if file_ext in [".yaml", ".yml"]:
                data = yaml.safe_load(f)
            elif file_ext == ".json":
                data = json.load(f)
            else:
                raise ConfigError(f"Unsupported config file format: {file_ext}")
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to parse {config_path}: {e}") from e

    data = data or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path}: top level must be a mapping")

    # Normalize config keys (kebab-case to snake_case)
    data = {k.replace("-", "_"): v for k, v in data.items()}
    try:
        jsonschema.validate(instance=data, schema=CONFIG_SCHEMA)
    except jsonschema.ValidationError as e:
        raise ConfigError(f"{config_path}: {e.message}") from e

    # JSON-schema range checks let NaN through
    for key, value in data.items():
        if isinstance(value, float) and not math.isfinite(value):
            raise ConfigError(f"{config_path}: {key} must be a finite number")
    return data


def find_config_file(dataset_dir: str) -> Optional[str]:
    """Look for a config file next to the dataset, then in the working directory."""
    for search_dir in (dataset_dir, os.getcwd()):
        for config_name in CONFIG_NAMES:
            config_path = os.path.join(search_dir, config_name)
            if os.path.exists(config_path):
                return config_path
    return None


class ConfigResolver:
    """Resolve configuration with precedence: CLI > Config File > Preset > Defaults"""

    def __init__(
        self,
        cli_args: Dict[str, Any],
        config_path: Optional[str],
        preset_name: Optional[str],
        dataset_dir: str,
    ):
        self.cli = {k: v for k, v in cli_args.items() if v is not None}
        self.config = {}
        self.config_path = config_path or find_config_file(dataset_dir)

        if self.config_path:
            self.config = load_config_file(self.config_path)
            logger.info(f"Using configuration: {self.config_path}")

        final_preset_name = preset_name or self.config.get("preset")
        if final_preset_name and final_preset_name not in PRESETS:
            raise ConfigError(f"Unknown preset: {final_preset_name}")
        self.preset = PRESETS.get(final_preset_name, {}) if final_preset_name else {}

    def get(self, key: str, default: Any = None) -> Any:
        """Resolve value based on precedence"""
        if key in self.cli:
            return self.cli[key]
        if key in self.config:
            return self.config[key]
        if key in self.preset:
            return self.preset[key]
        if key in DEFAULTS:
            return DEFAULTS[key]
        return default

    def layout(self) -> PlotLayout:
        return PlotLayout(
            width=self.get("width"),
            height=self.get("height"),
            margin_top=self.get("margin_top"),
            margin_right=self.get("margin_right"),
            margin_bottom=self.get("margin_bottom"),
            margin_left=self.get("margin_left"),
        )

    def radius_range(self):
        lo, hi = self.get("radius_min"), self.get("radius_max")
        if lo > hi:
            raise ConfigError(f"radius_min ({lo}) exceeds radius_max ({hi})")
        return float(lo), float(hi)
