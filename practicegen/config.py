#!/usr/bin/env python3
"""
Configuration management for practicegen.
Merges user preferences (~/.practicegen/config.json) with per-project
settings (<project>/practicegen.json).
"""

import os
import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

PROJECT_CONFIG_NAME = 'practicegen.json'
GODOT_ENV_VAR = 'GODOT_BIN'

DIFF_SCRIPT_NAME = 'diff.py'
SOLUTION_ONLY_GROUP = 'solution_only'
DEFAULT_PROCESSABLE_EXTENSIONS = ['.gd', '.tscn', '.tres', '.cfg']

# Companion files that never become practice files
DEFAULT_EXCLUDES = [
    'test_*',       # Checks consumed by the validation harness
    '*_test.*',
    DIFF_SCRIPT_NAME,
    '*.import',     # Engine import metadata
    '*.uid',
    '*.pyc',
]


def get_config_dir() -> Path:
    """Get the practicegen config directory (~/.practicegen)"""
    config_dir = Path.home() / '.practicegen'
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_path() -> Path:
    """Get the user config file path"""
    return get_config_dir() / 'config.json'


def _read_json(path: Path) -> Dict[str, Any]:
    if path.exists():
        try:
            with open(path, 'r') as f:
                data = json.load(f)
            return data if isinstance(data, dict) else {}
        except (json.JSONDecodeError, IOError):
            return {}
    return {}


def load_config() -> Dict[str, Any]:
    """Load user configuration from file"""
    return _read_json(get_config_path())


def save_config(config: Dict[str, Any]) -> None:
    """Save user configuration to file"""
    config_path = get_config_path()
    with open(config_path, 'w') as f:
        json.dump(config, f, indent=2)


def get_config_value(key: str, default: Any = None) -> Any:
    """Get a specific config value"""
    config = load_config()
    return config.get(key, default)


def set_config_value(key: str, value: Any) -> None:
    """Set a specific config value"""
    config = load_config()
    config[key] = value
    save_config(config)


def load_project_config(project_root: Path) -> Dict[str, Any]:
    """Load settings stored next to the project"""
    return _read_json(Path(project_root) / PROJECT_CONFIG_NAME)


def get_godot_executable() -> Optional[str]:
    """
    Get the Godot executable to run for project imports.

    Priority:
    1. GODOT_BIN environment variable
    2. 'godot_executable' in the user config
    """
    executable = os.getenv(GODOT_ENV_VAR)
    if executable:
        return executable
    return get_config_value('godot_executable')


@dataclass
class BuilderSettings:
    """Settings for building practices and exporting projects"""
    solutions_dir: str = 'solutions'
    practices_dir: str = 'practices'
    resource_scheme: str = 'res://'
    processable_extensions: List[str] = field(
        default_factory=lambda: list(DEFAULT_PROCESSABLE_EXTENSIONS)
    )
    scene_extensions: List[str] = field(default_factory=lambda: ['.tscn'])
    excludes: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDES))
    diff_script_name: str = DIFF_SCRIPT_NAME
    solution_only_group: str = SOLUTION_ONLY_GROUP
    indent_unit: str = '\t'
    godot_executable: Optional[str] = None
    project_file: str = 'project.godot'

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BuilderSettings':
        """Build settings from a dict, ignoring unknown keys"""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def load(cls, project_root: Path, **overrides) -> 'BuilderSettings':
        """
        Resolve settings for a project.

        Order (later wins): defaults, user config, project config, overrides.
        Overrides set to None are ignored.
        """
        data: Dict[str, Any] = {}
        user = load_config()
        data.update(user.get('builder', {}))
        data.update(load_project_config(project_root))
        data.update({key: value for key, value in overrides.items() if value is not None})

        settings = cls.from_dict(data)
        if settings.godot_executable is None:
            settings.godot_executable = get_godot_executable()
        return settings
