"""Tests for store scope resolution."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from exporter import create_app
from exporter.exceptions import StorageException
from exporter.services.scope import (
    StoreScope,
    is_network_activated,
    resolve_store_scope,
    set_network_activation,
)


class TestStoreScope:
    """Namespaces and option names."""

    def test_site_scope(self):
        scope = StoreScope(is_network=False, site_id=3)

        assert scope.namespace == "site:3"
        assert scope.option_name("exporter", "up") == "plugin:exporter:up"

    def test_network_scope(self):
        scope = StoreScope(is_network=True)

        assert scope.namespace == "network"
        assert scope.option_name("exporter", "up") == "plugin:exporter:network:up"


class TestResolveStoreScope:
    """Resolution from configuration and the network activation record."""

    def test_explicit_network(self, test_settings):
        settings = test_settings.model_copy(update={"metrics_scope": "network"})
        session_maker = MagicMock()

        scope = resolve_store_scope(settings, session_maker)

        assert scope.is_network is True
        session_maker.assert_not_called()

    def test_explicit_site(self, test_settings):
        settings = test_settings.model_copy(update={"metrics_scope": "site", "site_id": 4})

        scope = resolve_store_scope(settings, MagicMock())

        assert scope == StoreScope(is_network=False, site_id=4)

    def test_auto_without_activation_is_site(self, container, test_settings):
        settings = test_settings.model_copy(update={"metrics_scope": "auto"})

        scope = resolve_store_scope(settings, container.session_maker())

        assert scope.is_network is False

    def test_auto_with_activation_is_network(self, container, test_settings):
        session_maker = container.session_maker()
        set_network_activation(session_maker, test_settings.plugin_slug, True)
        settings = test_settings.model_copy(update={"metrics_scope": "auto"})

        scope = resolve_store_scope(settings, session_maker)

        assert scope.is_network is True

    def test_auto_storage_failure_raises(self, test_settings):
        session = MagicMock()
        session.__enter__.return_value = session
        session.get.side_effect = OperationalError("SELECT", {}, Exception("no such table"))
        settings = test_settings.model_copy(update={"metrics_scope": "auto"})

        with pytest.raises(StorageException):
            resolve_store_scope(settings, MagicMock(return_value=session))


class TestNetworkActivation:
    """Recording network activations."""

    def test_activate_and_deactivate(self, container):
        session_maker = container.session_maker()

        assert is_network_activated(session_maker, "exporter") is False

        set_network_activation(session_maker, "exporter", True)
        set_network_activation(session_maker, "other_plugin", True)
        assert is_network_activated(session_maker, "exporter") is True

        set_network_activation(session_maker, "exporter", False)
        assert is_network_activated(session_maker, "exporter") is False
        assert is_network_activated(session_maker, "other_plugin") is True


class TestScopeIsResolvedOnce:
    """The app fixes the scope at startup."""

    def test_scope_does_not_change_after_startup(self, app, test_settings):
        settings = test_settings.model_copy(update={"metrics_scope": "auto"})
        auto_app = create_app(settings)
        container = auto_app.container

        assert container.store_scope().is_network is False

        set_network_activation(container.session_maker(), settings.plugin_slug, True)

        assert container.store_scope().is_network is False
        assert container.option_store().scope.is_network is False
