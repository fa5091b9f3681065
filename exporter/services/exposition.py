"""Render the metric registry in the Prometheus text exposition format."""

import logging
from collections.abc import Mapping
from typing import Any

from exporter.services.metric_registry import MetricDefinition, MetricRegistry
from exporter.services.option_store import OptionStore

logger = logging.getLogger(__name__)

CONTENT_TYPE = "text/plain; version=0.0.4"

NO_DATA = "# No data"


def _escape_help(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n")


class ExpositionRenderer:
    """Serializes every registered metric, in registration order.

    Data comes from the metric's data callback when it has one, otherwise
    from the option store. Stored timestamps are kept on the wire line
    (``name{labels} value timestamp``).
    """

    def __init__(self, metric_registry: MetricRegistry, option_store: OptionStore) -> None:
        self.metric_registry = metric_registry
        self.option_store = option_store

    def render(self) -> str:
        lines: list[str] = []
        for definition in self.metric_registry:
            lines.extend(self.render_metric(definition))
            lines.append("")
        return "".join(f"{line}\n" for line in lines)

    def render_metric(self, definition: MetricDefinition) -> list[str]:
        """Lines of one metric block, without the trailing blank line."""
        name = definition.name
        lines: list[str] = []
        if definition.help:
            lines.append(f"# HELP {name} {_escape_help(definition.help)}")
        if definition.type:
            lines.append(f"# TYPE {name} {definition.type}")

        try:
            data = self._resolve(definition)
        except Exception as e:
            # One failing metric must not take the whole scrape down
            logger.exception(
                f"Failed to collect data for metric {name}: {e}",
                extra={"metric": name},
            )
            data = None

        lines.extend(self._data_lines(name, data))
        return lines

    def _resolve(self, definition: MetricDefinition) -> Any:
        if definition.data_callback is not None:
            return definition.data_callback(definition.name)
        return self.option_store.load(definition.name)

    def _data_lines(self, name: str, data: Any) -> list[str]:
        if isinstance(data, Mapping):
            if not data:
                return [NO_DATA]
            return [f"{name}{{{labels}}} {value}" for labels, value in data.items()]
        if data is not None and data is not False:
            return [f"{name} {data}"]
        return [NO_DATA]
