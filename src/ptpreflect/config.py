"""YAML configuration for the reflector.

Ports and the multicast group are fixed; the file only carries the
settings around them:

    log_level: INFO
    multicast_loop: false
    dump_packets: false
"""
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional, Union

import yaml

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ReflectorConfig:
    log_level: str = "INFO"
    multicast_loop: bool = False
    dump_packets: bool = False

    def __post_init__(self):
        if not isinstance(self.log_level, str) or self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}")
        object.__setattr__(self, "log_level", self.log_level.upper())
        for name in ("multicast_loop", "dump_packets"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigError(f"{name} must be true or false, got {getattr(self, name)!r}")

    def merged(self, **overrides) -> "ReflectorConfig":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)


def load_config(path: Optional[Union[str, Path]] = None) -> ReflectorConfig:
    if path is None:
        return ReflectorConfig()
    config_file = Path(path)
    if not config_file.exists():
        raise FileNotFoundError(f"Config file not found: {config_file}")
    with open(config_file, "r", encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"{config_file}: {e}") from e

    if raw is None:
        return ReflectorConfig()
    if not isinstance(raw, dict):
        raise ConfigError(f"{config_file}: expected a mapping at the top level")

    known = {f.name for f in fields(ReflectorConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"{config_file}: unknown keys {', '.join(map(str, unknown))}")
    return ReflectorConfig(**raw)
