"""
Health check endpoints for Newsletter Generator.
"""

import logging
from datetime import datetime
from flask import Blueprint, jsonify, current_app

from ... import __version__
from ...utils.health import HealthChecker, overall_status


logger = logging.getLogger(__name__)

health_bp = Blueprint('health', __name__, url_prefix='/api/v1')

SERVICE_NAME = "newsletter-generator"


def _service_status(status: str, **extra):
    return {
        "status": status,
        "timestamp": datetime.utcnow().isoformat(),
        "version": __version__,
        "service": SERVICE_NAME,
        **extra
    }


@health_bp.route('/health', methods=['GET'])
def health_check():
    """Basic health check; answers as long as the API process runs."""
    return jsonify(_service_status("healthy")), 200


@health_bp.route('/health/detailed', methods=['GET'])
def detailed_health_check():
    """
    Detailed health check.

    Returns 503 only when the broker is down; a degraded service still
    accepts jobs.
    """
    components = HealthChecker().get_detailed_status()
    status = overall_status(components)

    return jsonify(_service_status(status, components=components)), 503 if status == "unhealthy" else 200


@health_bp.route('/health/ready', methods=['GET'])
def readiness_check():
    """
    Readiness check.

    Ready means the broker answers and at least one worker is up.
    """
    checker = HealthChecker()
    checks = {
        "redis": checker.check_redis()["status"],
        "celery": checker.check_celery()["status"]
    }
    ready = all(status == "healthy" for status in checks.values())

    return jsonify({
        "status": "ready" if ready else "not_ready",
        "timestamp": datetime.utcnow().isoformat(),
        "checks": checks
    }), 200 if ready else 503


@health_bp.route('/health/live', methods=['GET'])
def liveness_check():
    """Liveness check with process resource usage."""
    metrics = HealthChecker().get_system_metrics()

    if current_app.config.get('DEBUG'):
        logger.debug(f"Liveness metrics: {metrics}")

    return jsonify({
        "status": "alive",
        "timestamp": datetime.utcnow().isoformat(),
        "metrics": metrics
    }), 200
