"""Option store adapter: durable string-keyed values on top of SQLAlchemy."""

import logging
import random
import time
from collections.abc import Callable
from typing import Any, NoReturn, TypeVar

from prometheus_client import CollectorRegistry, Counter
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from exporter.exceptions import StorageException
from exporter.models.option import Option
from exporter.services.scope import StoreScope

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StoreInstrumentation:
    """Operation counters for the option store.

    Kept in a private CollectorRegistry; the values are surfaced through the
    exporter's own registry by a data callback (see services/collectors.py).
    """

    OPERATIONS = ("load", "save", "mutate", "retry", "error")

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self.operations_total = Counter(
            "option_store_operations",
            "Option store operations by kind",
            ["operation"],
            registry=self.registry,
        )
        for operation in self.OPERATIONS:
            self.operations_total.labels(operation=operation)

    def record(self, operation: str) -> None:
        self.operations_total.labels(operation=operation).inc()

    def snapshot(self) -> dict[str, float]:
        """Current count per operation."""
        return {
            operation: self.registry.get_sample_value(
                "option_store_operations_total", {"operation": operation}
            )
            or 0.0
            for operation in self.OPERATIONS
        }


class OptionStore:
    """Load and save option values within the resolved store scope.

    Every call opens its own session, so nothing is served from a session
    identity map: writes from other threads or processes are visible on the
    next load.
    """

    def __init__(
        self,
        session_maker: sessionmaker[Session],
        scope: StoreScope,
        slug: str,
        max_retries: int = 5,
        retry_backoff: float = 0.01,
        instrumentation: StoreInstrumentation | None = None,
    ) -> None:
        self._session_maker = session_maker
        self.scope = scope
        self.slug = slug
        self._max_retries = max_retries
        self._retry_backoff = retry_backoff
        self._instrumentation = instrumentation or StoreInstrumentation()

    @property
    def instrumentation(self) -> StoreInstrumentation:
        return self._instrumentation

    def option_name(self, key: str) -> str:
        return self.scope.option_name(self.slug, key)

    def load(self, key: str) -> Any | None:
        """Return the stored value for ``key``, or None if nothing is stored."""
        name = self.option_name(key)
        self._instrumentation.record("load")
        try:
            with self._session_maker() as session:
                option = self._select(session, name)
                return option.value if option is not None else None
        except SQLAlchemyError as e:
            self._fail("load", name, e)

    def save(self, key: str, value: Any) -> bool:
        """Store ``value`` under ``key``; last writer wins.

        Returns:
            True when the stored value changed
        """

        def work(session: Session) -> bool:
            option = self._select(session, name)
            if option is None:
                session.add(Option(namespace=self.scope.namespace, name=name, value=value))
                return True
            if option.value == value:
                return False
            option.value = value
            return True

        name = self.option_name(key)
        self._instrumentation.record("save")
        return self._transaction("save", name, work)

    def mutate(self, key: str, mutator: Callable[[Any | None], Any]) -> Any:
        """Read-modify-write ``key`` inside one transaction.

        ``mutator`` receives the current value (None if absent) and returns
        the new value. It may be called more than once when a concurrent
        writer wins the race, so it must not have side effects.

        Returns:
            The value that was committed
        """

        def work(session: Session) -> Any:
            option = self._select(session, name, for_update=True)
            current = option.value if option is not None else None
            updated = mutator(current)
            if option is None:
                session.add(Option(namespace=self.scope.namespace, name=name, value=updated))
            else:
                option.value = updated
            return updated

        name = self.option_name(key)
        self._instrumentation.record("mutate")
        return self._transaction("mutate", name, work)

    def delete(self, key: str) -> bool:
        """Remove ``key``. Returns True if a value was stored."""

        def work(session: Session) -> bool:
            option = self._select(session, name, for_update=True)
            if option is None:
                return False
            session.delete(option)
            return True

        name = self.option_name(key)
        return self._transaction("delete", name, work)

    def _select(self, session: Session, name: str, for_update: bool = False) -> Option | None:
        stmt = (
            select(Option)
            .where(Option.namespace == self.scope.namespace, Option.name == name)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        return session.execute(stmt).scalar_one_or_none()

    def _transaction(self, operation: str, name: str, work: Callable[[Session], T]) -> T:
        attempt = 0
        while True:
            attempt += 1
            try:
                with self._session_maker() as session, session.begin():
                    return work(session)
            except (StaleDataError, IntegrityError) as e:
                if attempt > self._max_retries:
                    self._fail(
                        operation,
                        name,
                        e,
                        cause=f"it was concurrently modified {attempt} times in a row",
                    )
                self._instrumentation.record("retry")
                logger.warning(
                    "Concurrent option update, retrying",
                    extra={"option": name, "attempt": attempt},
                )
                time.sleep(random.uniform(0, self._retry_backoff * attempt))
            except SQLAlchemyError as e:
                self._fail(operation, name, e)

    def _fail(
        self, operation: str, name: str, error: Exception, cause: str | None = None
    ) -> NoReturn:
        self._instrumentation.record("error")
        logger.error(
            f"Option store {operation} failed for {name}: {error}",
            extra={"option": name, "operation": operation},
        )
        raise StorageException(operation, name, cause or str(error)) from error
