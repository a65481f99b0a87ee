"""
Logging helpers for the id injector.

- Module-wide stdlib logger writing "LEVEL: message" lines to stderr.
- Level comes from the INTL_ID_INJECTOR_LOG_LEVEL environment variable, or from
  the "log_level" key of the config file once the CLI has loaded it.
- Optional rotating log file for long batch runs (`--log-file`).
- Small helper to compact AST fragments for log lines.
"""

import json
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Any, Optional


LOG_LEVEL_ENV_VAR = "INTL_ID_INJECTOR_LOG_LEVEL"


# ---------------------------
# Level helpers
# ---------------------------

def level_from_string(level_str: Optional[str], default: int = logging.WARNING) -> int:
    """Map string level to logging constant; defaults to `default` on unknown."""
    level = getattr(logging, str(level_str).upper(), None) if level_str else None
    return level if isinstance(level, int) else default


def _level_from_env(default: int = logging.WARNING) -> int:
    return level_from_string(os.environ.get(LOG_LEVEL_ENV_VAR), default=default)


# ---------------------------
# Public logger factory
# ---------------------------

def get_injector_logger(
    name: str = "intl_id_injector",
    *,
    log_file: Optional[str] = None,
    file_count: int = 5,
    default_level: int = logging.WARNING,
) -> logging.Logger:
    """
    Create or return the injector logger.

    A stderr handler is attached once; `log_file` adds a rotating file handler
    keeping `file_count` backups.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        logger.addHandler(h)
    if log_file and not any(
        isinstance(h, RotatingFileHandler) and h.baseFilename == os.path.abspath(log_file) for h in logger.handlers
    ):
        fh = RotatingFileHandler(log_file, maxBytes=1024 * 1024, backupCount=file_count, encoding="utf-8")
        fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(fh)
    logger.setLevel(_level_from_env(default=default_level))
    return logger


# Singleton logger used across the package
injector_logger = get_injector_logger()


def apply_level(level_str: Optional[str]) -> None:
    """Set the injector logger level unless the environment overrides it."""
    if os.environ.get(LOG_LEVEL_ENV_VAR):
        return
    injector_logger.setLevel(level_from_string(level_str, default=injector_logger.level))


# ---------------------------
# Format utilities
# ---------------------------

def compact_json(obj: Any, limit: int = 1200) -> str:
    """Compact JSON string for logging; truncate if too long."""
    try:
        s = json.dumps(obj, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError):
        s = str(obj)
    except RecursionError:
        s = f"<{type(obj).__name__} nested too deeply>"
    return s if len(s) <= limit else s[:limit] + "…(truncated)"

