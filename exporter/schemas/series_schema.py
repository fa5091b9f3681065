"""Request and response schemas for the series API."""

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr


class SeriesUpdateSchema(BaseModel):
    """Body of PUT /api/series/<name>."""

    model_config = ConfigDict(extra="forbid")

    value: StrictStr | StrictInt | StrictFloat
    labels: dict[str, str] = Field(default_factory=dict)


class SeriesResponseSchema(BaseModel):
    """One series with its current value."""

    name: str
    labels: dict[str, str]
    value: str
    timestamp: int | None = None


class MetricDefinitionSchema(BaseModel):
    """A registered metric, as listed by GET /api/definitions."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    help: str | None = None
    type: str | None = None
    has_timestamp: bool = False
    is_computed: bool = False


class MetricDefinitionListSchema(BaseModel):
    definitions: list[MetricDefinitionSchema]
    total: int
