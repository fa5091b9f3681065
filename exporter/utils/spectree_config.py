"""Spectree configuration for request validation and OpenAPI docs."""

from typing import Any

from flask import Flask, redirect
from spectree import SpecTree

API_TITLE = "Prometheus Option Exporter"
API_DESCRIPTION = "Read and update the stored series served on /metrics"

# Global Spectree instance imported by the API modules.
# Initialized by configure_spectree() before any API module is imported.
api: SpecTree = None  # type: ignore


def configure_spectree(app: Flask) -> SpecTree:
    """Create the Spectree instance and register its docs routes on ``app``."""
    global api

    api = SpecTree(
        backend_name="flask",
        title=API_TITLE,
        version="1.0.0",
        description=API_DESCRIPTION,
        path="api/docs",  # OpenAPI docs available at /api/docs
        validation_error_status=400,
    )

    api.register(app)

    @app.route("/api/docs")
    @app.route("/api/docs/")
    def docs_redirect() -> Any:
        return redirect("/api/docs/swagger/", code=302)

    return api
