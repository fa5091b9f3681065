"""Metrics endpoint for Prometheus scraping."""

from typing import Any

from dependency_injector.wiring import Provide, inject
from flask import Blueprint, Response

from exporter.services.container import ServiceContainer
from exporter.services.exposition import CONTENT_TYPE, ExpositionRenderer

metrics_bp = Blueprint("metrics", __name__)


@metrics_bp.route("/metrics", methods=["GET"], strict_slashes=False)
@metrics_bp.route("/metrics/", methods=["GET"], strict_slashes=False)
@metrics_bp.route("/<path:prefix>/metrics", methods=["GET"], strict_slashes=False)
@metrics_bp.route("/<path:prefix>/metrics/", methods=["GET"], strict_slashes=False)
@inject
def get_metrics(
    prefix: str | None = None,
    exposition_renderer: ExpositionRenderer = Provide[ServiceContainer.exposition_renderer],
) -> Any:
    """Return every registered metric in Prometheus text format.

    Any path ending in ``/metrics`` or ``/metrics/`` is served directly, with no
    slash redirect, so the exporter also answers below a site prefix.
    """
    body = exposition_renderer.render()

    return Response(body, status=200, content_type=CONTENT_TYPE)
