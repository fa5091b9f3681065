"""Alembic environment configuration."""

import os
from logging.config import fileConfig
from typing import TYPE_CHECKING

from sqlalchemy import engine_from_config, pool

from alembic import context

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

config = context.config

# Set up loggers from the ini file, unless the app already configured logging
if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name, disable_existing_loggers=False)

import exporter.models  # noqa: F401, E402
from exporter.extensions import db  # noqa: E402

target_metadata = db.metadata


def get_url() -> str:
    """Database URL from the config, falling back to DATABASE_URL."""
    url = config.get_main_option("sqlalchemy.url", "")
    return url or os.getenv("DATABASE_URL", "")


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode, emitting SQL to the script output."""
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations against a live connection."""
    configuration = config.get_section(config.config_ini_section) or {}
    configuration["sqlalchemy.url"] = get_url()

    connectable: Engine = engine_from_config(
        configuration,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
