"""API blueprints."""

from flask import Blueprint

# Create main API blueprint
api_bp = Blueprint("api", __name__, url_prefix="/api")

# App-specific blueprints are registered in exporter/startup.py:register_blueprints()
