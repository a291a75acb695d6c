from __future__ import annotations

import os
import sys
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional

# YAML is a superset of JSON, so one loader serves both file formats.
import yaml

from closura.closura_datatypes import ResolveStrategy
from closura.closura_errors import ConfigError

ENV_DEBUG = "CLOSURA_DEBUG"
ENV_COERCE = "CLOSURA_COERCE_NUMERICS"
ENV_STRATEGY = "CLOSURA_RESOLVE_STRATEGY"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class DispatchConfig:
    """Process-wide dispatch settings, fixed once a registry is built."""
    default_resolve_strategy: ResolveStrategy = ResolveStrategy.OWNER_FIRST
    coerce_numerics: bool = False
    debug: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DispatchConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown keys {unknown}")
        values = dict(data)
        if "default_resolve_strategy" in values:
            values["default_resolve_strategy"] = _strategy(values["default_resolve_strategy"])
        for key in ("coerce_numerics", "debug"):
            if key in values:
                values[key] = _flag(key, values[key])
        return cls(**values)

    def with_env(self, environ: Optional[Mapping[str, str]] = None) -> "DispatchConfig":
        env = os.environ if environ is None else environ
        changes = {}
        if ENV_DEBUG in env:
            changes["debug"] = _flag(ENV_DEBUG, env[ENV_DEBUG])
        if ENV_COERCE in env:
            changes["coerce_numerics"] = _flag(ENV_COERCE, env[ENV_COERCE])
        if ENV_STRATEGY in env:
            changes["default_resolve_strategy"] = _strategy(env[ENV_STRATEGY])
        return replace(self, **changes) if changes else self


def _flag(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigError(f"{key} must be a boolean, got {value!r}")


def _strategy(value: Any) -> ResolveStrategy:
    try:
        return ResolveStrategy.coerce(value)
    except ValueError as e:
        raise ConfigError(str(e)) from None


def load_config(path: Optional[str | Path] = None, *, environ: Optional[Mapping[str, str]] = None) -> DispatchConfig:
    """
    Build a DispatchConfig from an optional YAML/JSON file, then apply
    environment overrides (CLOSURA_DEBUG, CLOSURA_COERCE_NUMERICS,
    CLOSURA_RESOLVE_STRATEGY).
    """
    config = DispatchConfig()
    if path is not None:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"cannot read {path}: {e.strerror or e}") from None
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(f"cannot parse {path}: {e}") from None
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ConfigError(f"{path} must contain a mapping, not {type(data).__name__}")
        # Accept either a bare mapping or one nested under a 'closura' key.
        if set(data) == {"closura"} and isinstance(data["closura"], Mapping):
            data = data["closura"]
        config = DispatchConfig.from_mapping(data)
    return config.with_env(environ)


def dbg(config: DispatchConfig, *parts):
    if config.debug or os.environ.get(ENV_DEBUG, "").strip().lower() in _TRUE:
        print("[DBG]", *parts, file=sys.stderr)


__all__ = [
    "DispatchConfig",
    "load_config",
    "dbg",
]
