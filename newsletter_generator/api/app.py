"""
Main Flask application for Newsletter Generator.

This module creates and configures the Flask application
with all necessary middleware, blueprints, and error handlers.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List

from flask import Flask, jsonify
from flask_cors import CORS

from .. import __version__
from .endpoints import newsletters_bp, health_bp
from .endpoints.newsletters import STORE_EXTENSION
from .extensions import limiter
from .middleware.auth import AuthMiddleware, PUBLIC_ENDPOINTS
from .middleware.logging import LoggingMiddleware
from .middleware.error_handler import ErrorHandler
from ..core.models.errors import ErrorResponse
from ..integrations.supabase_store import NewsletterStore
from ..utils.config import get_config
from ..utils.logging import setup_logging

# status code -> (error slug, message)
HTTP_ERROR_PAGES = {
    404: ("not_found", "The requested resource was not found"),
    405: ("method_not_allowed", "The method is not allowed for the requested URL"),
    429: ("rate_limit_exceeded", "Rate limit exceeded"),
}


def _http_error_page(slug: str, message: str):
    def handler(error):
        code = getattr(error, 'code', None) or 500
        if code == 429 and error.description:
            text = f"{message}: {error.description}"
        else:
            text = message
        return jsonify(ErrorResponse(error=slug, message=text, status=code).model_dump(mode='json')), code
    return handler


def describe_routes(app: Flask) -> List[Dict[str, Any]]:
    """
    List the API routes with their methods and handler summaries.

    The summary is the first docstring line of the view function.
    """
    routes = []
    for rule in sorted(app.url_map.iter_rules(), key=lambda r: r.rule):
        if not rule.rule.startswith('/api/'):
            continue
        view = app.view_functions[rule.endpoint]
        doc = (view.__doc__ or '').strip().splitlines()
        routes.append({
            "path": rule.rule,
            "methods": sorted(rule.methods - {'HEAD', 'OPTIONS'}),
            "endpoint": rule.endpoint,
            "summary": doc[0] if doc else ""
        })
    return routes


def create_app(config_name: str = None, store: NewsletterStore = None) -> Flask:
    """
    Create and configure Flask application.

    Args:
        config_name: Configuration name (development, production, testing)
        store: Job store to serve; the Supabase store is created on first use when omitted

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)

    # Load configuration
    config = get_config(config_name)
    app.config.from_object(config)
    app.config.setdefault('RATELIMIT_STORAGE_URI', app.config.get('RATELIMIT_STORAGE_URL', 'memory://'))

    # Setup logging
    setup_logging(app.config)

    # Initialize extensions
    CORS(app, origins=app.config.get('CORS_ORIGINS', ['*']))
    limiter.init_app(app)

    if store is not None:
        app.extensions[STORE_EXTENSION] = store

    # Register middleware
    app.before_request(LoggingMiddleware.before_request)
    app.before_request(AuthMiddleware.before_request)
    app.after_request(LoggingMiddleware.after_request)

    # Register blueprints
    app.register_blueprint(newsletters_bp)
    app.register_blueprint(health_bp)

    # Register error handlers
    ErrorHandler.register_handlers(app)

    for code, (slug, message) in HTTP_ERROR_PAGES.items():
        app.register_error_handler(code, _http_error_page(slug, message))

    @app.route('/')
    def root():
        return jsonify({
            "service": "newsletter-generator",
            "version": __version__,
            "status": "running",
            "timestamp": datetime.utcnow().isoformat(),
            "endpoints": {
                "health": "/api/v1/health",
                "newsletters": "/api/v1/newsletters",
                "docs": "/api/v1/docs"
            }
        })

    @app.route('/api/v1/docs')
    def api_docs():
        """Describe the API routes."""
        return jsonify({
            "title": "Newsletter Generator API",
            "version": __version__,
            "description": "Background newsletter generation with provider fallback",
            "endpoints": describe_routes(app),
            "authentication": {
                "type": "API Key",
                "header": app.config.get('API_KEY_HEADER', 'X-API-Key'),
                "public": sorted(PUBLIC_ENDPOINTS)
            },
            "rate_limiting": {
                "newsletter_creation": app.config.get('RATELIMIT_CREATE')
            }
        })

    logger = logging.getLogger(__name__)
    logger.info(f"Flask application created with config: {config_name}")

    return app


def run_app(host: str = '0.0.0.0', port: int = 5001, debug: bool = False):
    """
    Run the Flask application.

    Args:
        host: Host to bind to
        port: Port to bind to
        debug: Enable debug mode
    """
    app = create_app()

    logger = logging.getLogger(__name__)
    logger.info(f"Starting Newsletter Generator on {host}:{port}")

    app.run(host=host, port=port, debug=debug)


if __name__ == '__main__':
    run_app()
