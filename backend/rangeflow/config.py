"""
Evaluator configuration.

Settings come from an optional YAML file, overlaid by the DEBUG environment
variable, on top of the defaults for the standard x/m/a/s puzzle domain.

Example config.yaml:

    entry: in
    dimensions: [x, m, a, s]
    min_rating: 1
    max_rating: 4000
    max_steps: 10000
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import ConfigError
from .logic.evaluator import DEFAULT_MAX_STEPS
from .logic.intervals import Interval
from .models import ENTRY_WORKFLOW

DEBUG_VALUES = {"1", "true"}


class EvaluatorConfig(BaseModel):
    """Domain and safety limits for evaluation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    entry: str = ENTRY_WORKFLOW
    dimensions: List[str] = Field(default_factory=lambda: ["x", "m", "a", "s"])
    min_rating: int = 1
    max_rating: int = 4000
    max_steps: int = Field(default=DEFAULT_MAX_STEPS, gt=0)
    debug: bool = False

    @field_validator("dimensions")
    @classmethod
    def check_dimensions(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("at least one dimension is required")
        if len(set(v)) != len(v):
            raise ValueError(f"dimensions must be unique, got {v}")
        return v

    @model_validator(mode="after")
    def check_range(self) -> "EvaluatorConfig":
        if self.min_rating > self.max_rating:
            raise ValueError(
                f"min_rating ({self.min_rating}) must not exceed max_rating ({self.max_rating})"
            )
        return self

    def domain(self) -> Interval:
        """The full box every range evaluation starts from."""
        return Interval.full(self.dimensions, self.min_rating, self.max_rating)


def is_debugging(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Check the DEBUG environment variable."""
    environ = os.environ if environ is None else environ
    return environ.get("DEBUG", "").lower() in DEBUG_VALUES


def load_config(
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> EvaluatorConfig:
    """
    Load configuration.

    Args:
        path: Optional YAML file. Missing keys keep their defaults.
        environ: Environment to read DEBUG from (defaults to os.environ).

    Returns:
        The validated EvaluatorConfig.

    Raises:
        ConfigError: If the file cannot be read or fails validation.
    """
    data = {}
    if path is not None:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigError(f"Cannot read config {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config {path} must be a mapping, got {type(data).__name__}")

    if is_debugging(environ):
        data = {**data, "debug": True}

    try:
        return EvaluatorConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config: {e}") from e
