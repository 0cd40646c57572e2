"""
API endpoints for Newsletter Generator.
"""

from .newsletters import newsletters_bp
from .health import health_bp

__all__ = [
    'newsletters_bp',
    'health_bp'
]
