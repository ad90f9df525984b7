"""
zipserve configuration management (YAML files + environment overrides).
"""
from __future__ import annotations

import copy
import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import yaml
from jsonschema import Draft202012Validator

from zipserve.core.exceptions import ConfigError
from zipserve.core.utils.merge import deep_merge
from zipserve.data import read_yaml as read_data_yaml

logger = logging.getLogger(__name__)

ENV_PREFIX = "ZIPSERVE_"
USER_CONFIG_DIR_ENV = "ZIPSERVE_USER_CONFIG_DIR"
CONFIG_FILE_NAME = "config.yaml"
SCHEMA_NAME = "config.schema.yaml"


def get_user_config_dir() -> Path:
    """Return the per-user config directory (``$ZIPSERVE_USER_CONFIG_DIR`` or ``~/.zipserve``)."""
    override = os.environ.get(USER_CONFIG_DIR_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / ".zipserve"


class ConfigManager:
    """Load, merge, and validate zipserve configuration.

    Configuration sources (highest to lowest priority):
    1. Environment variables: ZIPSERVE_<SECTION>__<KEY>
    2. Explicit config file (``--config``), or else <user-config-dir>/config.yaml
    3. Bundled defaults: zipserve.data/config/defaults.yaml

    Command-line flags are applied on top by the CLI.
    """

    def __init__(self, config_path: Optional[Path] = None, *, user_config_dir: Optional[Path] = None) -> None:
        self.config_path = Path(config_path).expanduser() if config_path is not None else None
        self.user_config_dir = user_config_dir if user_config_dir is not None else get_user_config_dir()

    # ---------------------------------------------------------- file layers

    def load_defaults(self) -> Dict[str, Any]:
        # read_data_yaml is cached; never hand out the shared instance.
        return copy.deepcopy(read_data_yaml("config", "defaults.yaml") or {})

    def load_yaml(self, path: Path) -> Dict[str, Any]:
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigError(f"Cannot read config file {path}: {exc}", context={"path": str(path)}) from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in config file {path}: {exc}", context={"path": str(path)}) from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(
                f"Config file {path} must contain a mapping, got {type(data).__name__}",
                context={"path": str(path)},
            )
        return data

    def _user_layer(self) -> Dict[str, Any]:
        if self.config_path is not None:
            if not self.config_path.is_file():
                raise ConfigError(
                    f"Config file not found: {self.config_path}",
                    context={"path": str(self.config_path)},
                )
            logger.debug("Loading config file %s", self.config_path)
            return self.load_yaml(self.config_path)

        candidate = self.user_config_dir / CONFIG_FILE_NAME
        if candidate.is_file():
            logger.debug("Loading user config %s", candidate)
            return self.load_yaml(candidate)
        return {}

    # ------------------------------------------------------ env overrides

    def _as_bool(self, v: str) -> Optional[bool]:
        low = v.strip().lower()
        if low in {"true", "false"}:
            return low == "true"
        return None

    def _as_int(self, v: str) -> Optional[int]:
        if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
            try:
                return int(v)
            except Exception:
                return None
        return None

    def _as_float(self, v: str) -> Optional[float]:
        s = v.strip()
        if re.fullmatch(r"[-+]?\d*\.\d+", s) or re.fullmatch(r"[-+]?\d+\.\d*", s):
            try:
                return float(s)
            except Exception:
                return None
        return None

    def _as_json(self, v: str) -> Optional[Any]:
        s = v.strip()
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except Exception:
                return None
        return None

    def _coerce_type(self, value: str) -> Any:
        for caster in (self._as_bool, self._as_int, self._as_float, self._as_json):
            result = caster(value)
            if result is not None:
                return result
        return value.strip()

    def _parse_env_key(self, raw: str) -> List[str]:
        # Only SECTION__KEY forms are overrides; ZIPSERVE_USER_CONFIG_DIR and
        # similar single-segment names are settings of their own.
        if "__" not in raw:
            return []
        segs = raw.split("__")
        if any(seg == "" for seg in segs):
            logger.warning("Ignoring malformed %s* variable: %s%s", ENV_PREFIX, ENV_PREFIX, raw)
            return []
        return [seg.lower() for seg in segs]

    def _iter_env_overrides(self) -> Iterator[Tuple[List[str], Any]]:
        for key in sorted(os.environ.keys()):
            if not key.startswith(ENV_PREFIX):
                continue
            path = self._parse_env_key(key[len(ENV_PREFIX):])
            if not path:
                continue
            yield path, self._coerce_type(os.environ[key])

    def _set_nested(self, root: Dict[str, Any], path: List[str], value: Any) -> None:
        cur: Any = root
        for part in path[:-1]:
            nxt = cur.get(part)
            if not isinstance(nxt, dict):
                nxt = {}
                cur[part] = nxt
            cur = nxt
        cur[path[-1]] = value

    def apply_env_overrides(self, cfg: Dict[str, Any]) -> None:
        for path, typed_value in self._iter_env_overrides():
            logger.debug("Config override from environment: %s", ".".join(path))
            self._set_nested(cfg, path, typed_value)

    # ----------------------------------------------------------- validation

    def validate(self, cfg: Dict[str, Any]) -> None:
        """Validate ``cfg`` against the bundled schema, reporting every violation.

        Raises:
            ConfigError: If any part of ``cfg`` violates the schema.
        """
        schema = read_data_yaml("schemas", SCHEMA_NAME)
        validator = Draft202012Validator(schema)
        errors = sorted(validator.iter_errors(cfg), key=lambda e: list(e.absolute_path))
        if not errors:
            return
        lines = []
        for err in errors:
            where = ".".join(str(p) for p in err.absolute_path) or "<root>"
            lines.append(f"{where}: {err.message}")
        raise ConfigError(
            "Invalid configuration:\n" + "\n".join(f"  - {line}" for line in lines),
            context={"errors": lines},
        )

    # ----------------------------------------------------------------- load

    def load_config(self, *, validate: bool = True) -> Dict[str, Any]:
        """Return the merged configuration (defaults < file < environment)."""
        cfg = self.load_defaults()
        cfg = deep_merge(cfg, self._user_layer())
        self.apply_env_overrides(cfg)
        if validate:
            self.validate(cfg)
        return cfg


__all__ = ["ConfigManager", "get_user_config_dir", "ENV_PREFIX", "USER_CONFIG_DIR_ENV"]
