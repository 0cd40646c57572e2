"""
Error models and exception classes.

This module defines custom exception classes and error models
for the Newsletter Generator system.
"""

from datetime import datetime
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, Field


# Substrings that identify provider failures an operator has to fix by hand
TERMINAL_ERROR_MARKERS = {
    'quota': ('exceeded your current quota',),
    'billing': ('Insufficient Balance', 'billing'),
    'auth': ('401', '403'),
}


class NewsletterGeneratorError(Exception):
    """Base exception for Newsletter Generator."""

    def __init__(self, message: str, error_code: str = None, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(NewsletterGeneratorError):
    """Validation error."""

    def __init__(self, message: str, field: str = None, value: Any = None):
        self.field = field
        self.value = value
        super().__init__(message, "VALIDATION_ERROR", {"field": field, "value": value})


class ProviderError(NewsletterGeneratorError):
    """A single provider call failed."""

    def __init__(self, message: str, provider: str = None, kind: str = None, status_code: int = None):
        self.provider = provider
        self.kind = kind
        self.status_code = status_code
        super().__init__(
            message,
            "PROVIDER_ERROR",
            {"provider": provider, "kind": kind, "status_code": status_code}
        )


class ProviderExhaustedError(NewsletterGeneratorError):
    """Every provider in a fallback chain failed."""

    def __init__(self, label: str, last_error: Optional[Exception] = None,
                 attempts: int = 0, skipped: List[str] = None):
        self.label = label
        self.last_error = last_error
        self.attempts = attempts
        self.skipped = skipped or []

        if last_error is None:
            message = f"No {label.lower()} providers available"
        else:
            message = f"{label} failed with all available providers. Last error: {last_error}"

        super().__init__(
            message,
            "PROVIDER_EXHAUSTED",
            {
                "label": label,
                "attempts": attempts,
                "skipped": self.skipped,
                "last_error": str(last_error) if last_error else None
            }
        )


class ConfigurationError(NewsletterGeneratorError):
    """Configuration error."""

    def __init__(self, message: str, config_key: str = None):
        self.config_key = config_key
        super().__init__(
            message,
            "CONFIGURATION_ERROR",
            {"config_key": config_key}
        )


class PersistenceError(NewsletterGeneratorError):
    """Failure to read or write job state."""

    def __init__(self, message: str, table: str = None, job_id: str = None):
        self.table = table
        self.job_id = job_id
        super().__init__(
            message,
            "PERSISTENCE_ERROR",
            {"table": table, "job_id": job_id}
        )


class TaskError(NewsletterGeneratorError):
    """Task processing error."""

    def __init__(self, message: str, task_id: str = None):
        self.task_id = task_id
        super().__init__(
            message,
            "TASK_ERROR",
            {"task_id": task_id}
        )


class ExternalServiceError(NewsletterGeneratorError):
    """External service error."""

    def __init__(self, message: str, service: str = None, status_code: int = None):
        self.service = service
        self.status_code = status_code
        super().__init__(
            message,
            "EXTERNAL_SERVICE_ERROR",
            {"service": service, "status_code": status_code}
        )


def classify_provider_error(message: str) -> Optional[str]:
    """
    Classify a provider failure message into a terminal category.

    Args:
        message: Error message returned by the provider

    Returns:
        'quota', 'billing', 'auth' or None when the failure looks transient
    """
    if not message:
        return None

    for category, markers in TERMINAL_ERROR_MARKERS.items():
        if any(marker in message for marker in markers):
            return category

    return None


class ErrorResponse(BaseModel):
    """Error response model."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Error code")
    status: int = Field(..., description="HTTP status code")

    # Optional Details
    details: Optional[Dict[str, Any]] = Field(None, description="Error details")
    field: Optional[str] = Field(None, description="Field that caused error")
    value: Optional[Any] = Field(None, description="Value that caused error")

    # Request Information
    request_id: Optional[str] = Field(None, description="Request ID")
    job_id: Optional[str] = Field(None, description="Job ID")

    # Timestamp
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Error timestamp")

    @classmethod
    def from_exception(cls, exc: NewsletterGeneratorError, status: int = 500) -> 'ErrorResponse':
        """Create error response from exception."""
        return cls(
            error=exc.__class__.__name__,
            message=exc.message,
            error_code=exc.error_code or "UNKNOWN_ERROR",
            status=status,
            details=exc.details
        )


class ValidationErrorResponse(BaseModel):
    """Validation error response model."""

    error: str = Field(default="validation_error", description="Error type")
    message: str = Field(default="Validation failed", description="Error message")
    status: int = Field(default=400, description="HTTP status code")

    validation_errors: List[Dict[str, Any]] = Field(default_factory=list, description="Validation errors")

    # Timestamp
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Error timestamp")

    def add_validation_error(self, field: str, message: str, value: Any = None):
        """Add a validation error."""
        error = {
            "field": field,
            "message": message
        }
        if value is not None:
            error["value"] = value

        self.validation_errors.append(error)
