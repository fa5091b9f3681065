"""Series API endpoints: read and update stored series."""

from dependency_injector.wiring import Provide, inject
from flask import Blueprint, request
from spectree import Response as SpectreeResponse

from exporter.exceptions import ValidationException
from exporter.schemas.series_schema import (
    MetricDefinitionListSchema,
    MetricDefinitionSchema,
    SeriesResponseSchema,
    SeriesUpdateSchema,
)
from exporter.services.container import ServiceContainer
from exporter.services.metric_registry import MetricRegistry
from exporter.services.series import LabelSet, SeriesHandle, SeriesSample, SeriesService
from exporter.utils.spectree_config import api

series_bp = Blueprint("series", __name__, url_prefix="/series")
definitions_bp = Blueprint("definitions", __name__, url_prefix="/definitions")


def _labels_from_query() -> LabelSet:
    items = request.args.getlist("label")
    for labels in request.args.getlist("labels"):
        items.extend(labels.split(","))
    return LabelSet.parse(items)


def _series_response(handle: SeriesHandle, sample: SeriesSample) -> dict:
    return SeriesResponseSchema(
        name=handle.name,
        labels=handle.labels.as_dict(),
        value=sample.value,
        timestamp=sample.timestamp_ms,
    ).model_dump()


@definitions_bp.route("", methods=["GET"])
@api.validate(resp=SpectreeResponse(HTTP_200=MetricDefinitionListSchema))
@inject
def list_definitions(
    metric_registry: MetricRegistry = Provide[ServiceContainer.metric_registry],
):
    """List registered metrics in registration order."""
    definitions = [MetricDefinitionSchema.model_validate(d) for d in metric_registry]
    return MetricDefinitionListSchema(
        definitions=definitions, total=len(definitions)
    ).model_dump()


@series_bp.route("/<name>", methods=["GET"])
@api.validate(resp=SpectreeResponse(HTTP_200=SeriesResponseSchema))
@inject
def get_series(
    name: str,
    series_service: SeriesService = Provide[ServiceContainer.series_service],
):
    """Get the stored value of one series."""
    handle = series_service.series(name, _labels_from_query())
    return _series_response(handle, handle.fetch_sample())


@series_bp.route("/<name>", methods=["PUT"])
@api.validate(resp=SpectreeResponse(HTTP_200=SeriesResponseSchema), json=SeriesUpdateSchema)
@inject
def update_series(
    name: str,
    series_service: SeriesService = Provide[ServiceContainer.series_service],
):
    """Update one series."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationException("Request body must be a JSON object")

    data = SeriesUpdateSchema(**payload)
    handle = series_service.series(name, data.labels)
    sample = handle.update(data.value)
    return _series_response(handle, sample)
