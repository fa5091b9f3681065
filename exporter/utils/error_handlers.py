"""Flask error handlers mapping domain exceptions to JSON responses."""

import logging
from typing import Any

from flask import Flask, jsonify
from pydantic import ValidationError

from exporter.exceptions import (
    BusinessLogicException,
    DataCallbackConflictException,
    InvalidLabelsException,
    InvalidMetricException,
    NoSuchSeriesException,
    StorageException,
    UnregisteredMetricException,
    ValidationException,
)

logger = logging.getLogger(__name__)

_STATUS_CODES: list[tuple[type[BusinessLogicException], int]] = [
    (InvalidMetricException, 400),
    (InvalidLabelsException, 400),
    (ValidationException, 400),
    (UnregisteredMetricException, 404),
    (NoSuchSeriesException, 404),
    (DataCallbackConflictException, 409),
    (StorageException, 503),
]


def status_code_for(error: BusinessLogicException) -> int:
    for exception_type, status_code in _STATUS_CODES:
        if isinstance(error, exception_type):
            return status_code
    return 400


def register_error_handlers(app: Flask) -> None:
    """Register handlers for domain and request validation errors."""

    @app.errorhandler(BusinessLogicException)
    def handle_business_logic_exception(error: BusinessLogicException) -> Any:
        status_code = status_code_for(error)
        if status_code >= 500:
            logger.error(f"Request failed: {error.message}")
        return jsonify({"error": error.message, "code": error.error_code}), status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError) -> Any:
        details = [
            f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in error.errors()
        ]
        return (
            jsonify(
                {
                    "error": "Validation failed",
                    "code": "VALIDATION_FAILED",
                    "details": details,
                }
            ),
            400,
        )
