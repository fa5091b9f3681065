"""Domain-specific exceptions with user-ready messages."""


class ConfigurationError(Exception):
    """Raised when application configuration is invalid."""

    pass


class BusinessLogicException(Exception):
    """Base exception class for business logic errors."""

    def __init__(self, message: str, error_code: str) -> None:
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class InvalidMetricException(BusinessLogicException):
    """Exception raised when a metric name or definition is not acceptable."""

    def __init__(self, name: str, cause: str) -> None:
        self.name = name
        self.cause = cause
        message = f"Metric {name!r} is invalid because {cause}"
        super().__init__(message, error_code="INVALID_METRIC")


class InvalidLabelsException(BusinessLogicException):
    """Exception raised when a label set cannot be canonicalized."""

    def __init__(self, cause: str) -> None:
        self.cause = cause
        super().__init__(f"Invalid labels: {cause}", error_code="INVALID_LABELS")


class UnregisteredMetricException(BusinessLogicException):
    """Exception raised when accessing a metric that was never registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        message = f"Attempt to access unregistered metric {name}"
        super().__init__(message, error_code="UNREGISTERED_METRIC")


class NoSuchSeriesException(BusinessLogicException):
    """Exception raised when fetching a series that was never updated."""

    def __init__(self, name: str, labels: str = "") -> None:
        self.name = name
        self.labels = labels
        series = f"{name}{{{labels}}}" if labels else name
        super().__init__(f"Series {series} has no stored value", error_code="NO_SUCH_SERIES")


class DataCallbackConflictException(BusinessLogicException):
    """Exception raised when updating a metric whose data comes from a callback."""

    def __init__(self, name: str) -> None:
        self.name = name
        message = f"Cannot update metric `{name}' that has a data callback"
        super().__init__(message, error_code="DATA_CALLBACK_CONFLICT")


class StorageException(BusinessLogicException):
    """Exception raised when the option store fails to load or save."""

    def __init__(self, operation: str, key: str, cause: str) -> None:
        self.operation = operation
        self.key = key
        self.cause = cause
        message = f"Cannot {operation} option {key} because {cause}"
        super().__init__(message, error_code="STORAGE_ERROR")


class ValidationException(BusinessLogicException):
    """Exception raised for request validation failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message, error_code="VALIDATION_FAILED")
