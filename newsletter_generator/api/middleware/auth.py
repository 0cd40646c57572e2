"""
API key authentication for Newsletter Generator.

Every endpoint outside ``PUBLIC_ENDPOINTS`` needs one of the configured
API keys in the ``API_KEY_HEADER`` request header.
"""

import hmac
import logging
from functools import wraps
from flask import request, jsonify, g, current_app

from ...core.models.errors import ErrorResponse


logger = logging.getLogger(__name__)

# Endpoints reachable without an API key
PUBLIC_ENDPOINTS = frozenset([
    'root',
    'api_docs',
    'health.health_check',
    'health.readiness_check',
    'health.liveness_check',
])


def _reject(error: str, message: str):
    return jsonify(ErrorResponse(error=error, message=message, status=401).model_dump(mode='json')), 401


class AuthMiddleware:
    """Checks the API key before any protected view runs."""

    @staticmethod
    def before_request():
        if request.endpoint is None or request.endpoint in PUBLIC_ENDPOINTS:
            return None

        api_key = request.headers.get(current_app.config.get('API_KEY_HEADER', 'X-API-Key'))
        if not api_key:
            return _reject("authentication_required", "API key is required")

        if not AuthMiddleware.validate_api_key(api_key):
            logger.warning(f"Rejected API key for {request.method} {request.path}")
            return _reject("invalid_api_key", "Invalid API key")

        g.api_key = api_key
        return None

    @staticmethod
    def validate_api_key(api_key: str) -> bool:
        """True when the key matches one of the app's configured keys."""
        valid_keys = current_app.config.get('API_KEYS') or frozenset()

        if not valid_keys:
            logger.warning("No API keys configured")
            return False

        return any(hmac.compare_digest(api_key, key) for key in valid_keys)


def require_api_key(f):
    """
    Require an authenticated request for a view.

    ``AuthMiddleware.before_request`` sets ``g.api_key``; this guards views
    even when the middleware is not installed.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not getattr(g, 'api_key', None):
            return _reject("authentication_required", "API key is required")
        return f(*args, **kwargs)

    return decorated_function
