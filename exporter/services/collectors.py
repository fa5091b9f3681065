"""Built-in metrics whose values are computed when scraped."""

from collections.abc import Callable, Mapping

from exporter.services.metric_registry import MetricRegistry
from exporter.services.option_store import OptionStore
from exporter.services.series import LabelSet

# Registering a collector must not resolve the store scope, which reads the
# options table; the store is only obtained when the collector runs.
StoreProvider = Callable[[], OptionStore]


class StoredSeriesCollector:
    """Number of stored series per registered, store-backed metric."""

    metric_name = "exporter_stored_series"

    def __init__(self, metric_registry: MetricRegistry, option_store: StoreProvider) -> None:
        self.metric_registry = metric_registry
        self._option_store = option_store

    def register(self) -> None:
        self.metric_registry.register(
            self.metric_name,
            help="Number of stored series per metric",
            type="gauge",
            data_callback=self,
        )

    def __call__(self, metric_name: str) -> dict[str, int]:
        store = self._option_store()
        data: dict[str, int] = {}
        for definition in self.metric_registry:
            if definition.is_computed:
                continue
            state = store.load(definition.name)
            if state is None:
                continue
            count = len(state) if isinstance(state, Mapping) else 1
            data[LabelSet.of({"metric": definition.name}).canonical()] = count
        return data


class StoreOperationsCollector:
    """Option store operation counts of this process."""

    metric_name = "exporter_store_operations_total"

    def __init__(self, metric_registry: MetricRegistry, option_store: StoreProvider) -> None:
        self.metric_registry = metric_registry
        self._option_store = option_store

    def register(self) -> None:
        self.metric_registry.register(
            self.metric_name,
            help="Option store operations performed by this process",
            type="counter",
            data_callback=self,
        )

    def __call__(self, metric_name: str) -> dict[str, int]:
        snapshot = self._option_store().instrumentation.snapshot()
        return {
            LabelSet.of({"operation": operation}).canonical(): int(count)
            for operation, count in snapshot.items()
        }


def register_builtin_metrics(
    metric_registry: MetricRegistry, option_store: StoreProvider
) -> None:
    StoredSeriesCollector(metric_registry, option_store).register()
    StoreOperationsCollector(metric_registry, option_store).register()
