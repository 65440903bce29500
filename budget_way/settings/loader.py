"""Settings loader for the step and milestone catalogues."""

from __future__ import annotations

import copy
import functools
import json
from pathlib import Path
from typing import Any, Dict, Optional

from .. import config


def _settings_path(settings_name: str, settings_dir: Optional[Path] = None) -> Path:
    return Path(settings_dir or config.SETTINGS_DIR) / f"{settings_name}.json"


def load_settings(settings_name: str, settings_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Load a settings file by name.

    Args:
        settings_name: Name of the settings file (without .json extension)
        settings_dir: Optional directory override, defaults to ``config.SETTINGS_DIR``

    Returns:
        Dictionary containing the settings

    Raises:
        FileNotFoundError: If the settings file doesn't exist
        json.JSONDecodeError: If the settings file is invalid JSON

    Example:
        >>> settings = load_settings('budget_way')
        >>> settings['steps'][0]['id']
        'essentials'
    """
    settings_path = _settings_path(settings_name, settings_dir)

    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with open(settings_path, 'r', encoding='utf-8') as f:
        return json.load(f)


@functools.lru_cache(maxsize=None)
def _cached_settings(settings_name: str, settings_dir: str) -> Dict[str, Any]:
    return load_settings(settings_name, Path(settings_dir))


def get_budget_way_settings() -> Dict[str, Any]:
    """Get the step and milestone catalogue used by the engine.

    The file is read once per settings directory; callers get their own
    copy so the cached catalogue cannot be modified.
    """
    return copy.deepcopy(_cached_settings('budget_way', str(config.SETTINGS_DIR)))


def clear_settings_cache() -> None:
    """Forget cached catalogues so the next call reads them from disk again."""
    _cached_settings.cache_clear()


def get_setting(settings_name: str, *keys: Any, default: Any = None) -> Any:
    """Get a nested settings value by key path.

    Args:
        settings_name: Name of the settings file
        *keys: Path to the nested value (e.g., 'steps', 0, 'title')
        default: Default value if the key path doesn't exist

    Returns:
        The value at the specified path, or default if not found

    Example:
        >>> get_setting('budget_way', 'milestones', 0, 'label')
        'Essentials Covered'
    """
    try:
        value = load_settings(settings_name)
        for key in keys:
            value = value[key]
        return value
    except (KeyError, IndexError, TypeError, FileNotFoundError):
        return default
