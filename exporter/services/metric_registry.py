"""Metric registry: the table of metrics the exporter knows about."""

import logging
import re
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from exporter.exceptions import InvalidMetricException, UnregisteredMetricException

logger = logging.getLogger(__name__)

METRIC_NAME_RE = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")

# A data callback returns a scalar, a mapping of canonical label string to
# value, or None/False for "no data".
SeriesData = str | int | float | Mapping[str, Any] | None | bool
DataCallback = Callable[[str], SeriesData]


@dataclass(frozen=True)
class MetricDefinition:
    """Metadata of one registered metric."""

    name: str
    help: str | None = None
    type: str | None = None
    has_timestamp: bool = False
    data_callback: DataCallback | None = None

    @property
    def is_computed(self) -> bool:
        return self.data_callback is not None


class MetricRegistry:
    """Maps metric names to definitions, in registration order.

    Populated at startup; read-only while requests are served. Registering
    an existing name replaces its definition but keeps its position.
    """

    def __init__(self) -> None:
        self._metrics: dict[str, MetricDefinition] = {}

    def register(
        self,
        name: str,
        *,
        help: str | None = None,
        type: str | None = None,
        has_timestamp: bool = False,
        data_callback: DataCallback | None = None,
    ) -> MetricDefinition:
        definition = MetricDefinition(
            name=name,
            help=help,
            type=type,
            has_timestamp=has_timestamp,
            data_callback=data_callback,
        )
        return self.register_definition(definition)

    def register_definition(self, definition: MetricDefinition) -> MetricDefinition:
        name = definition.name
        if not name or not name.strip():
            raise InvalidMetricException(name, "the name is empty")
        if not METRIC_NAME_RE.match(name):
            raise InvalidMetricException(name, "it is not a valid Prometheus metric name")

        if name in self._metrics:
            logger.debug(f"Replacing definition of metric {name}")
        else:
            logger.debug(f"Registered metric {name}")
        self._metrics[name] = definition
        return definition

    def lookup(self, name: str) -> MetricDefinition:
        try:
            return self._metrics[name]
        except KeyError:
            raise UnregisteredMetricException(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._metrics

    def __iter__(self) -> Iterator[MetricDefinition]:
        return iter(list(self._metrics.values()))

    def __len__(self) -> int:
        return len(self._metrics)
