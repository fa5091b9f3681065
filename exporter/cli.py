"""CLI commands for database and series operations."""

import argparse
import sys
from typing import NoReturn

from dotenv import load_dotenv
from flask import Flask

from exporter import create_app
from exporter.app import App
from exporter.database import (
    check_db_connection,
    get_current_revision,
    get_pending_migrations,
    upgrade_database,
)
from exporter.exceptions import BusinessLogicException
from exporter.services.scope import set_network_activation
from exporter.services.series import LabelSet


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Prometheus option exporter CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    upgrade_parser = subparsers.add_parser(
        "upgrade-db",
        help="Apply database migrations",
    )
    upgrade_parser.add_argument("--recreate", action="store_true")
    upgrade_parser.add_argument("--yes-i-am-sure", action="store_true")

    subparsers.add_parser("render", help="Print the metrics exposition")

    update_parser = subparsers.add_parser("update", help="Update one series")
    update_parser.add_argument("name")
    update_parser.add_argument("value")
    update_parser.add_argument(
        "--label", "-l", action="append", default=[], metavar="KEY=VALUE"
    )

    fetch_parser = subparsers.add_parser("fetch", help="Print the value of one series")
    fetch_parser.add_argument("name")
    fetch_parser.add_argument(
        "--label", "-l", action="append", default=[], metavar="KEY=VALUE"
    )

    network_parser = subparsers.add_parser(
        "network-activate",
        help="Record the exporter as network activated (takes effect on restart)",
    )
    network_parser.add_argument("--deactivate", action="store_true")

    return parser


def handle_upgrade_db(
    app: Flask, recreate: bool = False, confirmed: bool = False
) -> None:
    with app.app_context():
        if not check_db_connection():
            print("Cannot connect to database.", file=sys.stderr)
            sys.exit(1)

        print(f"Using database: {app.config['SQLALCHEMY_DATABASE_URI']}")

        if recreate and not confirmed:
            print("--recreate requires --yes-i-am-sure flag", file=sys.stderr)
            sys.exit(1)

        current_rev = get_current_revision()
        pending = get_pending_migrations()

        if current_rev:
            print(f"Current database revision: {current_rev}")
        else:
            print("Database has no migration version")

        if recreate or pending:
            try:
                applied = upgrade_database(recreate=recreate)
                if applied:
                    print(f"Successfully applied {len(applied)} migration(s)")
                else:
                    print("Database migration completed")
            except Exception as e:
                print(f"Migration failed: {e}", file=sys.stderr)
                sys.exit(1)
        else:
            print("Database is up to date.")


def handle_render(app: App) -> None:
    print(app.container.exposition_renderer().render(), end="")


def handle_update(app: App, name: str, value: str, labels: list[str]) -> None:
    try:
        handle = app.container.series_service().series(name, LabelSet.parse(labels))
        handle.update(value)
    except BusinessLogicException as e:
        print(e.message, file=sys.stderr)
        sys.exit(1)
    print(f"Updated {name}")


def handle_fetch(app: App, name: str, labels: list[str]) -> None:
    try:
        handle = app.container.series_service().series(name, LabelSet.parse(labels))
        value = handle.fetch()
    except BusinessLogicException as e:
        print(e.message, file=sys.stderr)
        sys.exit(1)
    print(value)


def handle_network_activate(app: App, deactivate: bool = False) -> None:
    settings = app.container.config()
    try:
        set_network_activation(
            app.container.session_maker(), settings.plugin_slug, not deactivate
        )
    except BusinessLogicException as e:
        print(e.message, file=sys.stderr)
        sys.exit(1)
    state = "deactivated" if deactivate else "activated"
    print(f"Network {state} {settings.plugin_slug}")


def main() -> NoReturn:
    load_dotenv()

    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    app = create_app(skip_background_services=True)

    if args.command == "upgrade-db":
        handle_upgrade_db(
            app=app,
            recreate=args.recreate,
            confirmed=args.yes_i_am_sure,
        )
    elif args.command == "render":
        handle_render(app)
    elif args.command == "update":
        handle_update(app, args.name, args.value, args.label)
    elif args.command == "fetch":
        handle_fetch(app, args.name, args.label)
    elif args.command == "network-activate":
        handle_network_activate(app, deactivate=args.deactivate)
    else:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()
