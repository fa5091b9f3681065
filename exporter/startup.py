"""Startup hooks for the exporter.

Hook points called by create_app():
  - create_container()
  - register_metrics()
  - register_blueprints()
  - register_error_handlers()
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from flask import Blueprint, Flask

from exporter.services.container import ServiceContainer

if TYPE_CHECKING:
    from exporter.config import Settings


def create_container() -> ServiceContainer:
    """Create the application's service container."""
    return ServiceContainer()


def register_metrics(container: ServiceContainer, settings: Settings) -> None:
    """Populate the metric registry before any request is served."""
    from exporter.services.collectors import register_builtin_metrics
    from exporter.services.metric_definitions import register_metric_definitions

    metric_registry = container.metric_registry()

    if settings.register_builtin_metrics:
        register_builtin_metrics(metric_registry, container.option_store)

    if settings.metrics_config_file:
        register_metric_definitions(metric_registry, settings.metrics_config_file)


def register_blueprints(api_bp: Blueprint, app: Flask) -> None:
    """Register all blueprints on api_bp (under /api prefix)."""
    if not api_bp._got_registered_once:  # type: ignore[attr-defined]
        from exporter.api.series import definitions_bp, series_bp

        api_bp.register_blueprint(series_bp)
        api_bp.register_blueprint(definitions_bp)


def register_error_handlers(app: Flask) -> None:
    """Register domain error handlers."""
    from exporter.utils.error_handlers import register_error_handlers as register

    register(app)
