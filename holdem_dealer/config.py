"""
Table configuration: dataclass defaults, YAML/JSON loading and validation.
"""

from __future__ import annotations

import json
import os
import pathlib
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

import yaml

ENV_PREFIX = "HOLDEM_"


def load_config(path: str | pathlib.Path) -> Dict[str, Any]:
    path = pathlib.Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(text)
    else:
        data = json.loads(text)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping at the top level")
    return data


@dataclass
class TableConfig:
    starting_stack: int = 1000
    small_blind: int = 10
    big_blind: int = 20
    # Minimum raise increment; falls back to the big blind.
    min_raise_increment: Optional[int] = None
    dealer: str = "tag"
    judge: str = "evaluator"
    decision_timeout_s: float = 20.0
    runout_delay_s: float = 0.0
    seed: Optional[int] = None
    log_dir: Optional[str] = None
    images_enabled: bool = False
    host: str = "127.0.0.1"
    port: int = 8080

    @property
    def raise_increment(self) -> int:
        if self.min_raise_increment is None:
            return self.big_blind
        return self.min_raise_increment

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TableConfig":
        known = {f.name for f in fields(cls)} | {"blinds"}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"unknown config keys: {', '.join(unknown)}")
        blinds = data.get("blinds")
        values = dict(data)
        if isinstance(blinds, dict):
            values.pop("blinds")
            values.setdefault("small_blind", blinds.get("sb", cls.small_blind))
            values.setdefault("big_blind", blinds.get("bb", cls.big_blind))
        config = cls(**values)
        config.validate()
        return config

    @classmethod
    def from_file(cls, path: str | pathlib.Path) -> "TableConfig":
        return cls.from_dict(load_config(path))

    @classmethod
    def from_env(cls, base: Optional["TableConfig"] = None) -> "TableConfig":
        """Overlay ``HOLDEM_*`` environment variables on ``base``."""
        config = base or cls()
        values = asdict(config)
        for f in fields(cls):
            raw = os.environ.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            current = values[f.name]
            if isinstance(current, bool):
                values[f.name] = raw.strip().lower() in {"1", "true", "yes", "on"}
            elif isinstance(current, int) or f.name in {"min_raise_increment", "seed"}:
                values[f.name] = int(raw)
            elif isinstance(current, float):
                values[f.name] = float(raw)
            else:
                values[f.name] = raw
        merged = cls(**values)
        merged.validate()
        return merged

    def validate(self) -> None:
        if self.small_blind <= 0 or self.big_blind <= 0:
            raise ValueError("blinds must be positive")
        if self.small_blind > self.big_blind:
            raise ValueError("small blind cannot exceed the big blind")
        if self.starting_stack <= 0:
            raise ValueError("starting_stack must be positive")
        if self.min_raise_increment is not None and self.min_raise_increment <= 0:
            raise ValueError("min_raise_increment must be positive")
        if self.decision_timeout_s <= 0:
            raise ValueError("decision_timeout_s must be positive")
        if self.runout_delay_s < 0:
            raise ValueError("runout_delay_s cannot be negative")
