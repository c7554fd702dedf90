from __future__ import annotations

"""Central logging configuration for Outline Toolkit.

Import and call :func:`setup_logging` at application start-up.
"""

import logging
import os
import logging.config
from outline_toolkit.config import ConfigManager

__all__ = ["setup_logging", "LIST_ENGINE_LOGGERS"]

# Loggers switched to DEBUG by OUTLINE_DEBUG_LISTS.
LIST_ENGINE_LOGGERS = (
    "outline_toolkit.core.lists.format_list",
    "outline_toolkit.core.lists.utils",
    "outline_toolkit.core.services.list_editing_service",
)


def setup_logging() -> None:
    """Configure logging for the application using configuration from YAML files."""
    log_dir = os.environ.get("OUTLINE_LOG_DIR", "logs")
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "outline.log")

    try:
        logging_config = ConfigManager().get_logging_config()

        if logging_config and isinstance(logging_config, dict) and logging_config.get("version"):
            # dictConfig mutates nested dicts, work on a copy with the resolved file name.
            logging_config = {**logging_config, "handlers": {
                name: dict(handler) for name, handler in logging_config.get("handlers", {}).items()
            }}
            if "file" in logging_config["handlers"]:
                logging_config["handlers"]["file"]["filename"] = log_file

            logging.config.dictConfig(logging_config)
            logging.info("===== Logging initialised from config files =====")
        else:
            _setup_minimal_logging()
    except (ValueError, TypeError, AttributeError, ImportError) as exc:
        print(f"Error loading logging config: {exc}")
        _setup_minimal_logging()

    _apply_debug_overrides()


def _setup_minimal_logging() -> None:
    """Set up minimal console-only logging when config is unavailable."""
    minimal_config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'simple': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'simple',
                'level': 'INFO',
            },
        },
        'root': {
            'level': 'INFO',
            'handlers': ['console'],
        },
    }

    logging.config.dictConfig(minimal_config)
    logging.warning("===== Logging initialised with minimal fallback =====")


def _apply_debug_overrides() -> None:
    """Apply environment-driven module-specific debug overrides.

    Supports:
    - OUTLINE_DEBUG_LISTS=true  -> DEBUG for the list engine and its service
    - OUTLINE_DEBUG_MODULES=comma,separated,logger,names -> DEBUG for listed loggers
    """
    debug_lists = os.environ.get('OUTLINE_DEBUG_LISTS', '').strip().lower() in {'1', 'true', 'yes', 'on'}
    extra_modules = os.environ.get('OUTLINE_DEBUG_MODULES', '').strip()
    targets = []
    if debug_lists:
        targets.extend(LIST_ENGINE_LOGGERS)
    if extra_modules:
        targets.extend([m.strip() for m in extra_modules.split(',') if m.strip()])

    for name in targets:
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
        # Ensure at least one handler emits DEBUG for this logger
        has_debug_handler = any(
            h.level == logging.NOTSET or h.level <= logging.DEBUG for h in logger.handlers
        )
        if not has_debug_handler:
            h = logging.StreamHandler()
            h.setLevel(logging.DEBUG)
            h.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
            logger.addHandler(h)
        logger.info("Debug override active for logger '%s'", name)
