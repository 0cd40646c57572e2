"""
HTTP API for Newsletter Generator.

Job intake and polling endpoints plus health checks.
"""

from .app import create_app

__all__ = ['create_app']
