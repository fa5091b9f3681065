"""Flask application factory."""

from flask_cors import CORS

from exporter.app import App
from exporter.config import Settings
from exporter.extensions import db


def create_app(settings: "Settings | None" = None, skip_background_services: bool = False) -> App:
    """Create and configure the exporter application.

    App-specific behavior is injected through the hooks in exporter/startup.py:
    - create_container(): builds the DI container
    - register_metrics(): populates the metric registry
    - register_blueprints(): registers resource blueprints on /api
    - register_error_handlers(): maps domain exceptions to responses

    With ``skip_background_services`` (CLI, tests) the store scope is resolved
    on first use instead of at startup.
    """
    app = App(__name__)

    # Load configuration
    if settings is None:
        settings = Settings.load()

    # Validate configuration before proceeding
    settings.validate_production_config()

    app.config.from_object(settings.to_flask_config())

    # Initialize extensions
    db.init_app(app)

    # Import models to register them with SQLAlchemy
    from exporter import models  # noqa: F401

    # Each option store call opens its own session from this factory
    with app.app_context():
        from sqlalchemy.orm import Session, sessionmaker

        SessionLocal: sessionmaker[Session] = sessionmaker(
            class_=Session,
            bind=db.engine,
            autoflush=True,
            expire_on_commit=False,
        )

    # Initialize SpecTree for OpenAPI docs (before any API module is imported)
    from exporter.utils.spectree_config import configure_spectree

    configure_spectree(app)

    # --- Hook 1: Create service container ---
    from exporter.startup import create_container

    container = create_container()
    container.config.override(settings)
    container.session_maker.override(SessionLocal)

    # Wire container to all API modules via package scanning
    container.wire(packages=["exporter.api"])

    app.container = container

    # Configure CORS
    CORS(app, origins=settings.cors_origins)

    # --- Hook 2: Error handlers ---
    from exporter.startup import register_error_handlers

    register_error_handlers(app)

    # --- Hook 3: Metric registration ---
    from exporter.startup import register_metrics

    register_metrics(container, settings)

    # --- Hook 4: Blueprints ---
    from exporter.api import api_bp
    from exporter.startup import register_blueprints

    register_blueprints(api_bp, app)
    app.register_blueprint(api_bp)

    # Scrape endpoint lives at the root, not under /api
    from exporter.api.metrics import metrics_bp

    app.register_blueprint(metrics_bp)

    if not skip_background_services:
        # Fix the store scope for the lifetime of the process
        scope = container.store_scope()
        app.logger.info(f"Option store scope: {scope.namespace}")

    return app
