"""Metric definitions loaded from a YAML file."""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from exporter.exceptions import ConfigurationError, InvalidMetricException
from exporter.services.metric_registry import MetricRegistry

logger = logging.getLogger(__name__)


class MetricDefinitionConfig(BaseModel):
    """One metric entry in the definitions file."""

    name: str
    help: str | None = None
    type: str | None = None
    has_timestamp: bool = False


class MetricDefinitionsFile(BaseModel):
    """Root of the definitions file."""

    metrics: list[MetricDefinitionConfig] = Field(default_factory=list)

    @field_validator("metrics")
    @classmethod
    def validate_unique_names(cls, v: list[MetricDefinitionConfig]) -> list[MetricDefinitionConfig]:
        names = [m.name for m in v]
        if len(names) != len(set(names)):
            raise ValueError("Metric names must be unique")
        return v


def load_metric_definitions(path: str | Path) -> MetricDefinitionsFile:
    """Load and validate a metric definitions file."""
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Metric definitions file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Metric definitions file {path} is not valid YAML: {e}") from e

    try:
        return MetricDefinitionsFile.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Metric definitions validation failed: {e}") from e


def register_metric_definitions(metric_registry: MetricRegistry, path: str | Path) -> int:
    """Register every metric of the definitions file. Returns the count."""
    definitions = load_metric_definitions(path)
    for metric in definitions.metrics:
        try:
            metric_registry.register(
                metric.name,
                help=metric.help,
                type=metric.type,
                has_timestamp=metric.has_timestamp,
            )
        except InvalidMetricException as e:
            raise ConfigurationError(f"{path}: {e.message}") from e
    logger.info(f"Registered {len(definitions.metrics)} metric(s) from {path}")
    return len(definitions.metrics)
