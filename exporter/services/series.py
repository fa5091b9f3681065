"""Series handles: one metric plus one label set, backed by the option store."""

import logging
import math
import re
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from exporter.exceptions import (
    DataCallbackConflictException,
    InvalidLabelsException,
    NoSuchSeriesException,
    ValidationException,
)
from exporter.services.metric_registry import MetricRegistry
from exporter.services.option_store import OptionStore

logger = logging.getLogger(__name__)

LABEL_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

Clock = Callable[[], float]


def _escape_label_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


@dataclass(frozen=True)
class LabelSet:
    """Label pairs sorted by key.

    Two label assignments with the same pairs in a different order produce
    the same canonical string, and therefore the same storage slot.
    """

    pairs: tuple[tuple[str, str], ...] = ()

    @classmethod
    def of(cls, labels: "LabelsLike") -> "LabelSet":
        if labels is None:
            return cls()
        if isinstance(labels, LabelSet):
            return labels

        items = list(labels.items()) if isinstance(labels, Mapping) else list(labels)
        seen: set[str] = set()
        for key, _ in items:
            if not isinstance(key, str) or not LABEL_NAME_RE.match(key):
                raise InvalidLabelsException(f"{key!r} is not a valid label name")
            if key in seen:
                raise InvalidLabelsException(f"label {key!r} appears more than once")
            seen.add(key)

        return cls(tuple(sorted(((k, str(v)) for k, v in items), key=lambda p: p[0])))

    @classmethod
    def parse(cls, text: str | Iterable[str]) -> "LabelSet":
        """Parse ``k=v,k2=v2`` (or a list of ``k=v`` items) as typed on a command line."""
        parts = text.split(",") if isinstance(text, str) else list(text)
        pairs = []
        for part in parts:
            part = part.strip()
            if not part:
                continue
            key, sep, value = part.partition("=")
            if not sep:
                raise InvalidLabelsException(f"expected key=value, got {part!r}")
            value = value.strip()
            if len(value) >= 2 and value[0] == value[-1] == '"':
                value = value[1:-1]
            pairs.append((key.strip(), value))
        return cls.of(pairs)

    def canonical(self) -> str:
        """Render as ``key1="v1",key2="v2"``; used as storage sub-key and on the wire."""
        return ",".join(f'{k}="{_escape_label_value(v)}"' for k, v in self.pairs)

    def as_dict(self) -> dict[str, str]:
        return dict(self.pairs)

    def __bool__(self) -> bool:
        return bool(self.pairs)


LabelsLike = Union[Mapping[str, Any], Iterable[tuple[str, Any]], LabelSet, None]


@dataclass(frozen=True)
class SeriesSample:
    """A stored value with its optional timestamp in milliseconds."""

    value: str
    timestamp_ms: int | None = None

    def encode(self) -> str:
        """Storage form: ``"<value> <timestamp>"`` or just ``"<value>"``."""
        if self.timestamp_ms is None:
            return self.value
        return f"{self.value} {self.timestamp_ms}"

    @classmethod
    def decode(cls, raw: Any) -> "SeriesSample":
        value, _, rest = str(raw).partition(" ")
        rest = rest.strip()
        try:
            timestamp_ms = int(rest) if rest else None
        except ValueError:
            timestamp_ms = None
        return cls(value=value, timestamp_ms=timestamp_ms)


def format_value(value: Any) -> str:
    """Turn a caller-supplied value into its exposition text."""
    if isinstance(value, bool):
        raise ValidationException("Series values must be numeric, not boolean")
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "+Inf" if value > 0 else "-Inf"
    text = str(value).strip()
    if not text:
        raise ValidationException("Series values must not be empty")
    if any(c.isspace() for c in text):
        raise ValidationException("Series values must not contain whitespace")
    return text


class SeriesHandle:
    """Fetch or update the stored value of one series.

    When the metric has ``has_timestamp``, the timestamp is captured once,
    at construction, and every ``update()`` through this handle reuses it.
    Create a new handle to record a new timestamp.
    """

    def __init__(
        self,
        registry: MetricRegistry,
        store: OptionStore,
        name: str,
        labels: LabelsLike = None,
        clock: Clock = time.time,
    ) -> None:
        self.definition = registry.lookup(name)
        self.name = name
        self.labels = LabelSet.of(labels)
        self._store = store
        self.timestamp_ms: int | None = (
            int(clock() * 1000) if self.definition.has_timestamp else None
        )

    @property
    def label_string(self) -> str:
        return self.labels.canonical()

    def fetch(self) -> str:
        """Return the stored value, without its timestamp."""
        return self.fetch_sample().value

    def fetch_sample(self) -> SeriesSample:
        state = self._store.load(self.name)
        if self.labels:
            raw = state.get(self.label_string) if isinstance(state, Mapping) else None
        else:
            raw = None if isinstance(state, Mapping) else state

        if raw is None or raw is False:
            raise NoSuchSeriesException(self.name, self.label_string)
        return SeriesSample.decode(raw)

    def update(self, value: Any) -> SeriesSample:
        """Store ``value`` for this series.

        Unlabeled series are a single overwrite. Labeled series share one
        stored mapping per metric, so the update is a read-modify-write
        transaction against the store.
        """
        if self.definition.data_callback is not None:
            raise DataCallbackConflictException(self.name)

        sample = SeriesSample(format_value(value), self.timestamp_ms)
        encoded = sample.encode()

        if not self.labels:
            self._store.save(self.name, encoded)
            return sample

        label_key = self.label_string

        def put(state: Any) -> dict[str, Any]:
            mapping = dict(state) if isinstance(state, Mapping) else {}
            mapping[label_key] = encoded
            return mapping

        self._store.mutate(self.name, put)
        return sample


class SeriesService:
    """Creates series handles bound to the process registry and store."""

    def __init__(
        self,
        metric_registry: MetricRegistry,
        option_store: OptionStore,
        clock: Clock = time.time,
    ) -> None:
        self.metric_registry = metric_registry
        self.option_store = option_store
        self._clock = clock

    def series(self, name: str, labels: LabelsLike = None) -> SeriesHandle:
        return SeriesHandle(
            self.metric_registry, self.option_store, name, labels, clock=self._clock
        )
