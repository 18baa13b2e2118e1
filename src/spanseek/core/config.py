"""
Configuration management for SpanSeek.

Search defaults are layered, later layers winning:
1. ~/.spanseek/config.json (global)
2. .spanseek/project.json in the working directory (project)
3. SPANSEEK_* environment variables
4. Explicit overrides (CLI options)
"""

import json
import os
from pathlib import Path
from typing import Any

from spanseek.models import SearchConfig

SPANSEEK_HOME = Path.home() / ".spanseek"
GLOBAL_CONFIG_FILE = SPANSEEK_HOME / "config.json"

PROJECT_CONFIG_DIR = ".spanseek"
PROJECT_CONFIG_FILE = "project.json"

# Environment variable -> (config key, parser)
ENV_OVERRIDES = {
    "SPANSEEK_MIN_LINES": ("min_lines", int),
    "SPANSEEK_MAX_LINES": ("max_lines", int),
    "SPANSEEK_TOP_K": ("top_k", int),
    "SPANSEEK_SMART_EXPAND": ("smart_expand", lambda v: v.strip().lower() in ("1", "true", "yes", "on")),
}


def get_config_path() -> Path:
    """Location of the global settings file."""
    return GLOBAL_CONFIG_FILE


def get_project_config_path() -> Path | None:
    """Location of the project settings file, or None when there is none."""
    path = Path.cwd() / PROJECT_CONFIG_DIR / PROJECT_CONFIG_FILE
    return path if path.exists() else None


def ensure_config_dir():
    SPANSEEK_HOME.mkdir(parents=True, exist_ok=True)


def _read_settings(path: Path | None) -> dict[str, Any]:
    if path is None or not path.exists():
        return {}
    with open(path) as f:
        return json.load(f)


def _env_settings() -> dict[str, Any]:
    settings = {}
    for env_name, (key, parse) in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            settings[key] = parse(value)
    return settings


def load_config() -> dict[str, Any]:
    """Merge global, project and environment settings (later wins)."""
    merged: dict[str, Any] = {}
    for layer in (
        _read_settings(GLOBAL_CONFIG_FILE),
        _read_settings(get_project_config_path()),
        _env_settings(),
    ):
        merged.update(layer)
    return merged


def save_config(config: dict[str, Any], project_level: bool = False):
    """Write settings to the global file, or to the project file.

    Args:
        config: Settings to store (replaces the file's contents)
        project_level: Write .spanseek/project.json in the working directory
    """
    if project_level:
        target = Path.cwd() / PROJECT_CONFIG_DIR / PROJECT_CONFIG_FILE
        target.parent.mkdir(parents=True, exist_ok=True)
    else:
        ensure_config_dir()
        target = GLOBAL_CONFIG_FILE

    target.write_text(json.dumps(config, indent=2))


def get_search_config(**overrides: Any) -> SearchConfig:
    """Build a SearchConfig from stored settings plus explicit overrides.

    Overrides set to None are ignored, so CLI options can be passed
    straight through.
    """
    settings = {k: v for k, v in load_config().items() if k in SearchConfig.model_fields}
    settings.update({k: v for k, v in overrides.items() if v is not None})
    return SearchConfig(**settings)
