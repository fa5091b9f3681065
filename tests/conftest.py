"""Pytest fixtures for the exporter tests.

Every test gets its own file-backed SQLite database, so option store
transactions run on real, separate connections (needed for the concurrency
tests) and nothing leaks between tests.
"""

from collections.abc import Generator
from pathlib import Path

import pytest
from flask.testing import FlaskClient

from exporter import create_app
from exporter.app import App
from exporter.config import Settings
from exporter.database import init_db
from exporter.extensions import db
from exporter.services.container import ServiceContainer
from exporter.services.metric_registry import MetricRegistry
from exporter.services.option_store import OptionStore
from exporter.services.series import SeriesService


def _build_test_settings(database_url: str) -> Settings:
    """Construct base Settings object for tests."""
    return Settings(
        database_url=database_url,
        secret_key="test-secret-key",
        debug=True,
        flask_env="testing",
        cors_origins=["http://localhost:3000"],
        plugin_slug="prometheus_exporter",
        metrics_scope="site",
        site_id=1,
        store_max_retries=5,
        metrics_config_file=None,
        register_builtin_metrics=False,
    )


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'exporter.db'}"


@pytest.fixture
def test_settings(database_url: str) -> Settings:
    """Create test settings."""
    return _build_test_settings(database_url)


@pytest.fixture
def app(test_settings: Settings) -> Generator[App, None, None]:
    """Create the Flask app with a freshly created options table."""
    application = create_app(test_settings)
    with application.app_context():
        init_db()

    try:
        yield application
    finally:
        with application.app_context():
            db.engine.dispose()


@pytest.fixture
def client(app: App) -> FlaskClient:
    """Create test client."""
    return app.test_client()


@pytest.fixture
def container(app: App) -> ServiceContainer:
    return app.container


@pytest.fixture
def metric_registry(container: ServiceContainer) -> MetricRegistry:
    return container.metric_registry()


@pytest.fixture
def option_store(container: ServiceContainer) -> OptionStore:
    return container.option_store()


@pytest.fixture
def series_service(container: ServiceContainer) -> SeriesService:
    return container.series_service()
