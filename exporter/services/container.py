"""Application dependency injection container."""

from dependency_injector import containers, providers
from sqlalchemy.orm import sessionmaker

from exporter.config import Settings
from exporter.services.exposition import ExpositionRenderer
from exporter.services.metric_registry import MetricRegistry
from exporter.services.option_store import OptionStore, StoreInstrumentation
from exporter.services.scope import resolve_store_scope
from exporter.services.series import SeriesService


class ServiceContainer(containers.DeclarativeContainer):
    """Service container for the exporter.

    ``config`` and ``session_maker`` must be provided by the app factory.
    """

    # Configuration - must be overridden by app
    config = providers.Dependency(instance_of=Settings)

    # Database session maker - must be overridden by app
    session_maker = providers.Dependency(instance_of=sessionmaker)

    # Store scope is resolved once and shared by every store operation
    store_scope = providers.Singleton(
        resolve_store_scope,
        settings=config,
        session_maker=session_maker,
    )

    store_instrumentation = providers.Singleton(StoreInstrumentation)

    option_store = providers.Singleton(
        OptionStore,
        session_maker=session_maker,
        scope=store_scope,
        slug=config.provided.plugin_slug,
        max_retries=config.provided.store_max_retries,
        instrumentation=store_instrumentation,
    )

    # Populated at startup, read-only afterwards
    metric_registry = providers.Singleton(MetricRegistry)

    series_service = providers.Singleton(
        SeriesService,
        metric_registry=metric_registry,
        option_store=option_store,
    )

    exposition_renderer = providers.Singleton(
        ExpositionRenderer,
        metric_registry=metric_registry,
        option_store=option_store,
    )
