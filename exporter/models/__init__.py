"""Application models.

Import all SQLAlchemy models here so they are registered when the app starts.
"""

from exporter.models.option import Option

__all__ = ["Option"]
