"""
Request logging for Newsletter Generator.

Each request gets an id that is logged on entry and exit and returned
in the ``X-Request-ID`` response header.
"""

import logging
import time
import uuid
from flask import request, g, current_app


logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = 'X-Request-ID'

# Never written to logs
SENSITIVE_FIELDS = frozenset(['api_key', 'api_key_encrypted', 'password', 'credential'])


def redact(data: dict) -> dict:
    return {key: '***' if key in SENSITIVE_FIELDS else value for key, value in data.items()}


class LoggingMiddleware:
    """Logs request start, completion and error responses."""

    @staticmethod
    def before_request():
        g.start_time = time.time()
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]

        if not current_app.config.get('LOG_REQUESTS', True):
            return

        logger.info(f"[{g.request_id}] {request.method} {request.path} from {request.remote_addr}")

        if request.method == 'POST' and request.is_json:
            data = request.get_json(silent=True)
            if isinstance(data, dict):
                logger.debug(f"[{g.request_id}] body: {redact(data)}")

    @staticmethod
    def after_request(response):
        request_id = getattr(g, 'request_id', None)
        if request_id:
            response.headers[REQUEST_ID_HEADER] = request_id

        if hasattr(g, 'start_time') and current_app.config.get('LOG_REQUESTS', True):
            duration = time.time() - g.start_time
            level = logging.WARNING if response.status_code >= 400 else logging.INFO
            logger.log(level, f"[{request_id}] {request.method} {request.path} -> "
                              f"{response.status_code} in {duration:.3f}s")

        return response
