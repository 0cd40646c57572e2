"""
Middleware components for Newsletter Generator.

This module contains middleware for authentication, logging
and error handling.
"""

from .auth import AuthMiddleware, require_api_key
from .logging import LoggingMiddleware
from .error_handler import ErrorHandler

__all__ = [
    'AuthMiddleware',
    'require_api_key',
    'LoggingMiddleware',
    'ErrorHandler'
]
