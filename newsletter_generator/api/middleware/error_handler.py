"""
Error handling middleware for Newsletter Generator.

Application exceptions are rendered as ``ErrorResponse`` JSON bodies.
Each exception class maps to an error slug, an HTTP status and the
attributes copied into ``details``.
"""

import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

from ...core.models.errors import (
    ErrorResponse,
    NewsletterGeneratorError,
    ValidationError,
    ProviderError,
    ProviderExhaustedError,
    ConfigurationError,
    PersistenceError,
    TaskError,
    ExternalServiceError
)


logger = logging.getLogger(__name__)


# exception class -> (error slug, status, log level, details)
ERROR_RESPONSES = {
    ValidationError: ('validation_error', 400, logging.WARNING, lambda e: {}),
    ProviderError: ('provider_error', 502, logging.ERROR,
                    lambda e: {'provider': e.provider, 'kind': e.kind}),
    ProviderExhaustedError: ('providers_exhausted', 503, logging.ERROR,
                             lambda e: {'label': e.label, 'attempts': e.attempts, 'skipped': e.skipped}),
    ConfigurationError: ('configuration_error', 500, logging.ERROR,
                         lambda e: {'config_key': e.config_key}),
    PersistenceError: ('persistence_error', 503, logging.ERROR,
                       lambda e: {'table': e.table}),
    TaskError: ('task_error', 409, logging.ERROR, lambda e: {}),
    ExternalServiceError: ('external_service_error', 503, logging.ERROR,
                           lambda e: {'service': e.service, 'status_code': e.status_code}),
}


class ErrorHandler:
    """Centralized error handling for the API."""

    @staticmethod
    def register_handlers(app):
        """Register error handlers with Flask app."""
        # Flask resolves subclasses through the MRO
        app.register_error_handler(NewsletterGeneratorError, ErrorHandler.handle_application_error)
        app.register_error_handler(Exception, ErrorHandler.handle_generic_error)

    @staticmethod
    def build_response(error: NewsletterGeneratorError) -> ErrorResponse:
        """Translate an application exception into its response body."""
        mapping = ERROR_RESPONSES.get(type(error))
        if mapping is None:
            return ErrorResponse.from_exception(error, status=500)

        slug, status, _, details = mapping
        body = ErrorResponse(
            error=slug,
            message=error.message,
            error_code=error.error_code,
            status=status,
            details=details(error) or None
        )

        if isinstance(error, ValidationError):
            body.field = error.field
            body.value = error.value
        elif isinstance(error, PersistenceError):
            body.job_id = error.job_id
        elif isinstance(error, TaskError):
            body.job_id = error.task_id

        return body

    @staticmethod
    def handle_application_error(error: NewsletterGeneratorError):
        """Handle any NewsletterGeneratorError."""
        mapping = ERROR_RESPONSES.get(type(error))
        level = mapping[2] if mapping else logging.ERROR
        logger.log(level, f"{type(error).__name__}: {error.message}")

        body = ErrorHandler.build_response(error)
        return jsonify(body.model_dump(mode='json')), body.status

    @staticmethod
    def handle_generic_error(error: Exception):
        """Handle anything without a dedicated handler."""
        if isinstance(error, HTTPException):
            return jsonify(ErrorResponse(
                error=(error.name or "http_error").lower().replace(' ', '_'),
                message=error.description or "Request failed",
                status=error.code or 500
            ).model_dump(mode='json')), error.code or 500

        logger.error(f"Unexpected error: {str(error)}", exc_info=True)

        return jsonify(ErrorResponse(
            error="internal_server_error",
            message="An unexpected error occurred",
            error_code="INTERNAL_SERVER_ERROR",
            status=500
        ).model_dump(mode='json')), 500
