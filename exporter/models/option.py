"""Option model: one durable key/value slot in the option store."""

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from exporter.extensions import db


class Option(db.Model):  # type: ignore[name-defined]
    """A JSON value stored under a string key within a namespace.

    The namespace is ``network`` for deployment-wide options and
    ``site:<id>`` for per-tenant options. ``version`` is bumped on every
    UPDATE and checked by SQLAlchemy, so a concurrent writer that changed the
    row in between fails with ``StaleDataError`` instead of clobbering it.
    """

    __tablename__ = "options"

    namespace: Mapped[str] = mapped_column(sa.String(64), primary_key=True)
    name: Mapped[str] = mapped_column(sa.String(255), primary_key=True)
    value: Mapped[Any] = mapped_column(sa.JSON, nullable=True)
    version: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
        onupdate=sa.func.now(),
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Option namespace={self.namespace!r} name={self.name!r}>"
