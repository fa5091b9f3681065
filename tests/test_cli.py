"""Tests for CLI command handlers."""

import pytest
from flask import Flask

import exporter.cli as cli


def _make_app(db_uri: str = "sqlite:///cli-test.db") -> Flask:
    """Create a minimal Flask app for CLI tests."""
    app = Flask(__name__)
    app.config["SQLALCHEMY_DATABASE_URI"] = db_uri
    return app


class TestHandleUpgradeDb:
    """Tests for the upgrade-db CLI handler."""

    def test_reports_target_database(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """The CLI should print the target database URI."""
        app = _make_app("sqlite:///upgrade-test.db")

        monkeypatch.setattr(cli, "check_db_connection", lambda: True)
        monkeypatch.setattr(cli, "get_current_revision", lambda: "001")
        monkeypatch.setattr(cli, "get_pending_migrations", lambda: [])

        cli.handle_upgrade_db(app=app)

        output = capsys.readouterr().out
        assert "sqlite:///upgrade-test.db" in output
        assert "Current database revision: 001" in output
        assert "Database is up to date." in output

    def test_applies_pending_migrations(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        app = _make_app()
        calls: list[bool] = []

        def _fake_upgrade(recreate: bool = False) -> list[tuple[str, str]]:
            calls.append(recreate)
            return [("001", "Create options table")]

        monkeypatch.setattr(cli, "check_db_connection", lambda: True)
        monkeypatch.setattr(cli, "get_current_revision", lambda: None)
        monkeypatch.setattr(cli, "get_pending_migrations", lambda: ["001"])
        monkeypatch.setattr(cli, "upgrade_database", _fake_upgrade)

        cli.handle_upgrade_db(app=app)

        output = capsys.readouterr().out
        assert calls == [False]
        assert "Database has no migration version" in output
        assert "Successfully applied 1 migration(s)" in output

    def test_connection_failure_exits(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        app = _make_app()
        monkeypatch.setattr(cli, "check_db_connection", lambda: False)

        with pytest.raises(SystemExit) as exc_info:
            cli.handle_upgrade_db(app=app)

        assert exc_info.value.code == 1
        assert "Cannot connect to database." in capsys.readouterr().err

    def test_recreate_without_confirm_exits(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """--recreate without --yes-i-am-sure exits before any work."""
        app = _make_app()
        upgrade_calls: list[bool] = []

        monkeypatch.setattr(cli, "check_db_connection", lambda: True)
        monkeypatch.setattr(
            cli, "upgrade_database", lambda recreate=False: upgrade_calls.append(recreate)
        )

        with pytest.raises(SystemExit) as exc_info:
            cli.handle_upgrade_db(app=app, recreate=True, confirmed=False)

        assert exc_info.value.code == 1
        assert upgrade_calls == []

    def test_migration_failure_exits(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        app = _make_app()

        def _exploding_upgrade(recreate: bool = False) -> list[tuple[str, str]]:
            raise RuntimeError("boom")

        monkeypatch.setattr(cli, "check_db_connection", lambda: True)
        monkeypatch.setattr(cli, "get_current_revision", lambda: None)
        monkeypatch.setattr(cli, "get_pending_migrations", lambda: ["001"])
        monkeypatch.setattr(cli, "upgrade_database", _exploding_upgrade)

        with pytest.raises(SystemExit) as exc_info:
            cli.handle_upgrade_db(app=app)

        assert exc_info.value.code == 1
        assert "Migration failed: boom" in capsys.readouterr().err


class TestSeriesCommands:
    """Tests for the update, fetch and render handlers."""

    def test_update_then_fetch(self, app, metric_registry, capsys: pytest.CaptureFixture[str]) -> None:
        metric_registry.register("posts", type="gauge")

        cli.handle_update(app, "posts", "12", ["status=publish", "type=post"])
        cli.handle_fetch(app, "posts", ["type=post", "status=publish"])

        output = capsys.readouterr().out
        assert output == "Updated posts\n12\n"

    def test_render(self, app, metric_registry, capsys: pytest.CaptureFixture[str]) -> None:
        metric_registry.register("up", help="Up", data_callback=lambda name: 1)

        cli.handle_render(app)

        assert capsys.readouterr().out == "# HELP up Up\nup 1\n\n"

    def test_update_unregistered_metric_exits(
        self, app, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.handle_update(app, "missing", "1", [])

        assert exc_info.value.code == 1
        assert "Attempt to access unregistered metric missing" in capsys.readouterr().err

    def test_fetch_missing_series_exits(
        self, app, metric_registry, capsys: pytest.CaptureFixture[str]
    ) -> None:
        metric_registry.register("up")

        with pytest.raises(SystemExit) as exc_info:
            cli.handle_fetch(app, "up", [])

        assert exc_info.value.code == 1
        assert "has no stored value" in capsys.readouterr().err

    def test_malformed_label_exits(self, app, metric_registry) -> None:
        metric_registry.register("posts")

        with pytest.raises(SystemExit) as exc_info:
            cli.handle_update(app, "posts", "1", ["status"])

        assert exc_info.value.code == 1


class TestNetworkActivate:
    """Tests for the network-activate handler."""

    def test_activate_and_deactivate(self, app, capsys: pytest.CaptureFixture[str]) -> None:
        from exporter.services.scope import is_network_activated

        session_maker = app.container.session_maker()

        cli.handle_network_activate(app)
        assert is_network_activated(session_maker, "prometheus_exporter") is True

        cli.handle_network_activate(app, deactivate=True)
        assert is_network_activated(session_maker, "prometheus_exporter") is False

        output = capsys.readouterr().out
        assert "Network activated prometheus_exporter" in output
        assert "Network deactivated prometheus_exporter" in output


class TestParser:
    """Argument parsing."""

    def test_update_collects_labels(self) -> None:
        args = cli.create_parser().parse_args(
            ["update", "posts", "12", "-l", "status=publish", "--label", "type=post"]
        )

        assert args.command == "update"
        assert args.name == "posts"
        assert args.value == "12"
        assert args.label == ["status=publish", "type=post"]

    def test_upgrade_db_flags(self) -> None:
        args = cli.create_parser().parse_args(["upgrade-db", "--recreate", "--yes-i-am-sure"])

        assert args.recreate is True
        assert args.yes_i_am_sure is True
