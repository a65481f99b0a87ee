import json
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional, Union

from .. import hooks
from .logging import injector_logger


CONFIG_ENV_VAR = "INTL_ID_INJECTOR_CONFIG"

INJECTOR_DEFAULTS = {
    "component_names": list(hooks.component_names),
    "function_names": list(hooks.function_names),
    "hash_missing_message": True,
    "log_level": "WARNING",
}


class ConfigError(Exception):
    """Raised when a config file is unreadable or holds invalid values."""


@dataclass(frozen=True)
class RewriterConfig:
    component_names: FrozenSet[str] = frozenset(hooks.component_names)
    function_names: FrozenSet[str] = frozenset(hooks.function_names)
    # Records with neither `id` nor `defaultMessage` get the id of the empty message
    hash_missing_message: bool = True
    log_level: str = "WARNING"

    @classmethod
    def define_only(cls, **overrides: Any) -> "RewriterConfig":
        """Preset that recognizes `defineMessages(...)` as the only message call."""
        return cls(function_names=frozenset(hooks.define_only_function_names), **overrides)

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "RewriterConfig":
        merged = {**INJECTOR_DEFAULTS, **data}
        try:
            return cls(
                component_names=_name_set(merged["component_names"], "component_names"),
                function_names=_name_set(merged["function_names"], "function_names"),
                hash_missing_message=_flag(merged["hash_missing_message"], "hash_missing_message"),
                log_level=str(merged["log_level"]).upper(),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(str(e)) from e

    def to_mapping(self) -> Dict[str, Any]:
        return {
            "component_names": sorted(self.component_names),
            "function_names": sorted(self.function_names),
            "hash_missing_message": self.hash_missing_message,
            "log_level": self.log_level,
        }

    def with_overrides(self, **changes: Any) -> "RewriterConfig":
        return replace(self, **changes)


def _name_set(value: Any, key: str) -> FrozenSet[str]:
    if isinstance(value, str):
        value = [v.strip() for v in value.split(",")]
    if not isinstance(value, (list, tuple, set, frozenset)):
        raise TypeError(f"{key} must be a list of names")
    if not all(isinstance(v, str) for v in value):
        raise ValueError(f"{key} must only contain strings")
    return frozenset(v for v in value if v)


def _flag(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise TypeError(f"{key} must be a boolean")


def config_path(path: Optional[Union[str, Path]] = None) -> Path:
    """Explicit path, then $INTL_ID_INJECTOR_CONFIG, then ./intl_ids.json."""
    if path:
        return Path(path)
    env = os.environ.get(CONFIG_ENV_VAR)
    if env:
        return Path(env)
    return Path.cwd() / hooks.config_file


def read_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        raw = path.read_text(encoding="utf-8")
        data = json.loads(raw or "{}")
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ConfigError(f"Failed to read/parse {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a JSON object")
    return data


def load_config(path: Optional[Union[str, Path]] = None) -> RewriterConfig:
    """Build a RewriterConfig from defaults overlaid with the JSON config file."""
    cfg_path = config_path(path)
    if path and not cfg_path.exists():
        raise ConfigError(f"Config file not found: {cfg_path}")
    data = read_config_file(cfg_path)
    for key in sorted(set(data) - set(INJECTOR_DEFAULTS)):
        injector_logger.warning("Ignoring unknown config key %r in %s", key, cfg_path)
        data.pop(key)
    config = RewriterConfig.from_mapping(data)
    injector_logger.debug("Loaded config from %s: %s", cfg_path, config.to_mapping())
    return config


def ensure_config_file(path: Union[str, Path]) -> bool:
    """Write missing default keys into a JSON config file.

    Idempotent: existing keys are left alone. Returns True when the file changed.
    """
    cfg_path = Path(path)
    data = read_config_file(cfg_path)

    changed = False
    for key, value in INJECTOR_DEFAULTS.items():
        if key not in data:
            data[key] = value
            changed = True

    if not changed:
        injector_logger.debug("No config changes needed for %s", cfg_path)
        return False

    tmp_path = cfg_path.with_suffix(cfg_path.suffix + ".tmp")
    try:
        tmp_path.write_text(
            json.dumps(data, indent=2, ensure_ascii=False) + "\n",
            encoding="utf-8",
        )
        os.replace(tmp_path, cfg_path)
        injector_logger.info("Updated config file %s", cfg_path)
    except OSError as e:
        injector_logger.exception("Failed to update %s", cfg_path)
        try:
            if tmp_path.exists():
                tmp_path.unlink()
        except OSError:
            pass
        raise ConfigError(f"Failed to write {cfg_path}: {e}") from e
    return True
