from __future__ import annotations

"""Configuration loading and access helpers.

This module centralises the declarative rules of the list editing commands
(kind aliases, merge and renumbering policy) and the logging setup. It loads
YAML files packaged with *outline_toolkit* and merges them with optional
user overrides.

User overrides are looked up in, by priority:

- the directory named by ``OUTLINE_CONFIG_DIR``;
- on Windows: ``%LOCALAPPDATA%\\OutlineToolkit\\config\\*.yml``;
- on Unix: ``~/.outline_toolkit/*.yml``.

Override files are only read, never created. Missing PyYAML falls back to
built-in defaults so the engine stays usable.
"""

import importlib.resources as pkg_resources
import logging
import os
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

__all__ = ["ConfigManager"]


def _get_user_config_dir() -> Path:
    """Return the directory holding user override files."""
    explicit = os.environ.get("OUTLINE_CONFIG_DIR")
    if explicit:
        return Path(explicit)
    if os.name == 'nt':  # Windows
        local_appdata = os.environ.get('LOCALAPPDATA')
        if local_appdata:
            return Path(local_appdata) / "OutlineToolkit" / "config"
        return Path.home() / "AppData" / "Local" / "OutlineToolkit" / "config"
    return Path.home() / ".outline_toolkit"


class _Singleton(type):
    _instance: "ConfigManager" | None = None

    def __call__(cls, *args, **kwargs):  # type: ignore[no-self-use]
        if cls._instance is None:
            cls._instance = super().__call__(*args, **kwargs)
        return cls._instance


class ConfigManager(metaclass=_Singleton):
    """Lazy-loads and exposes configuration sections as dictionaries."""

    _DEFAULT_FILENAMES = {
        "list_rules": "list_rules.yml",
        "logging": "logging.yml",
    }

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, Any]] = {}
        self._ensure_loaded()

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------
    def get_list_rules(self) -> Dict[str, Any]:
        return self._data.get("list_rules", {})

    def get_list_rule(self, name: str, default: Any = None) -> Any:
        return self.get_list_rules().get(name, default)

    def get_logging_config(self) -> Dict[str, Any]:
        return self._data.get("logging", {})

    @classmethod
    def reset(cls) -> None:
        """Forget the loaded instance so the next call re-reads all files."""
        cls._instance = None

    # ------------------------------------------------------------------
    # Internal loading logic
    # ------------------------------------------------------------------
    def _ensure_loaded(self) -> None:
        if self._data:
            return  # already loaded

        try:
            import yaml  # type: ignore
        except ModuleNotFoundError:
            logger.warning("PyYAML not installed – falling back to built-in defaults")
            self._data = self._builtin_defaults()
            return

        startup_summary = []
        user_config_dir = _get_user_config_dir()

        for key, filename in self._DEFAULT_FILENAMES.items():
            merged_cfg: Dict[str, Any] = {}
            status = "missing"

            # 1. load packaged default
            try:
                text = pkg_resources.files(__package__).joinpath(filename).read_text(encoding="utf-8")
                merged_cfg.update(yaml.safe_load(text) or {})
                status = "loaded"
            except (FileNotFoundError, OSError):
                logger.error("Missing packaged config for %s (%s)", key, filename)
                merged_cfg.update(self._builtin_defaults()[key])
                status = "missing"
            except yaml.YAMLError as exc:
                logger.error("Invalid packaged config for %s (%s): %s", key, filename, exc)
                merged_cfg.update(self._builtin_defaults()[key])
                status = "invalid"

            # 2. load user overrides
            user_path = user_config_dir / filename
            if user_path.exists():
                try:
                    user_data = yaml.safe_load(user_path.read_text(encoding="utf-8")) or {}
                    merged_cfg.update(user_data)
                    if status == "loaded":
                        status = "loaded+overrides"
                except (OSError, yaml.YAMLError) as exc:
                    logger.error("Could not parse user config %s: %s", user_path, exc)

            self._data[key] = merged_cfg
            startup_summary.append(f"{key}: {status}")

        logger.info("Config startup: %s", " | ".join(startup_summary))

    @staticmethod
    def _builtin_defaults() -> Dict[str, Dict[str, Any]]:
        """Return the list rules the engine needs and no logging config."""
        return {
            "list_rules": {
                "kind_aliases": {},
                "merge_requires_matching_start": False,
                "renumber_after_edit": True,
                "validate_after_edit": True,
            },
            "logging": {},
        }
