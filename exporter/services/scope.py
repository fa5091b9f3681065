"""Store scope resolution: network-wide versus per-site option storage."""

import logging
import time
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from exporter.config import Settings
from exporter.exceptions import StorageException
from exporter.models.option import Option

logger = logging.getLogger(__name__)

NETWORK_NAMESPACE = "network"

# Network-scoped option in which the host platform records network activations,
# as a mapping of plugin slug to activation time.
ACTIVE_SITEWIDE_PLUGINS = "active_sitewide_plugins"


@dataclass(frozen=True)
class StoreScope:
    """Resolved storage scope, fixed for the lifetime of the process."""

    is_network: bool
    site_id: int = 1

    @property
    def namespace(self) -> str:
        if self.is_network:
            return NETWORK_NAMESPACE
        return f"site:{self.site_id}"

    def option_name(self, slug: str, key: str) -> str:
        """Build the persisted option name for ``key``.

        The format must stay stable so previously stored values remain
        readable: ``plugin:<slug>:network:<key>`` or ``plugin:<slug>:<key>``.
        """
        if self.is_network:
            return f"plugin:{slug}:network:{key}"
        return f"plugin:{slug}:{key}"


def is_network_activated(session_maker: sessionmaker[Session], slug: str) -> bool:
    """Check whether ``slug`` is recorded as network activated."""
    try:
        with session_maker() as session:
            option = session.get(Option, (NETWORK_NAMESPACE, ACTIVE_SITEWIDE_PLUGINS))
            active = option.value if option is not None else None
    except SQLAlchemyError as e:
        raise StorageException("load", ACTIVE_SITEWIDE_PLUGINS, str(e)) from e

    if isinstance(active, (dict, list)):
        return slug in active
    return False


def set_network_activation(
    session_maker: sessionmaker[Session], slug: str, active: bool
) -> None:
    """Record or remove the network activation of ``slug``."""
    try:
        with session_maker() as session, session.begin():
            option = session.get(
                Option,
                (NETWORK_NAMESPACE, ACTIVE_SITEWIDE_PLUGINS),
                with_for_update=True,
            )
            current = dict(option.value or {}) if option is not None else {}
            if active:
                current[slug] = int(time.time())
            else:
                current.pop(slug, None)

            if option is None:
                session.add(
                    Option(
                        namespace=NETWORK_NAMESPACE,
                        name=ACTIVE_SITEWIDE_PLUGINS,
                        value=current,
                    )
                )
            else:
                option.value = current
    except SQLAlchemyError as e:
        raise StorageException("save", ACTIVE_SITEWIDE_PLUGINS, str(e)) from e


def resolve_store_scope(
    settings: Settings, session_maker: sessionmaker[Session]
) -> StoreScope:
    """Decide the store scope once; the result is injected into the option store."""
    mode = settings.metrics_scope
    if mode == "network":
        is_network = True
    elif mode == "site":
        is_network = False
    else:
        is_network = is_network_activated(session_maker, settings.plugin_slug)

    scope = StoreScope(is_network=is_network, site_id=settings.site_id)
    logger.info(
        "Resolved option store scope",
        extra={"mode": mode, "namespace": scope.namespace},
    )
    return scope
