"""
Newsletter API endpoints for Newsletter Generator.

This module provides the endpoints for starting a generation job
and polling its progress.
"""

import logging
from flask import Blueprint, request, jsonify, current_app
from pydantic import ValidationError as PydanticValidationError

from ...core.models.errors import ErrorResponse, ValidationErrorResponse
from ...core.models.job import GenerationRequest
from ...integrations.supabase_store import NewsletterStore, create_newsletter_store
from ...pipeline.reporter import timestamped
from ...tasks.newsletter import create_newsletter_job, get_job_status, process_newsletter_task
from ..extensions import limiter
from ..middleware.auth import require_api_key
from ..schemas.newsletter import NewsletterCreateResponse, NewsletterStatusResponse


logger = logging.getLogger(__name__)

# Create blueprint
newsletters_bp = Blueprint('newsletters', __name__, url_prefix='/api/v1')

STORE_EXTENSION = 'newsletter_store'


def get_store() -> NewsletterStore:
    """Job store bound to the current app, created on first use."""
    store = current_app.extensions.get(STORE_EXTENSION)
    if store is None:
        store = create_newsletter_store()
        current_app.extensions[STORE_EXTENSION] = store
    return store


@newsletters_bp.route('/newsletters', methods=['POST'])
@require_api_key
@limiter.limit(lambda: current_app.config.get('RATELIMIT_CREATE', '10 per minute'))
def create_newsletter():
    """
    Start a newsletter generation job.

    Expected JSON body:
    {
        "organization_id": "Owning organization",
        "topic": "Newsletter topic",
        "mode": "quick | detailed | custom",
        "include_events": true,
        "include_knowledge": true,
        "num_sections": 4,
        "section_length": "short | medium | long",
        "include_images": false,
        "image_source": "ai | web",
        "image_placement": "all | header",
        "tone": "Tone preset id (optional)"
    }

    The job record exists before the task is queued, so a client can poll
    the returned job_id immediately.
    """
    if not request.is_json:
        return jsonify(ErrorResponse(
            error="invalid_content_type",
            message="Content-Type must be application/json",
            error_code="INVALID_CONTENT_TYPE",
            status=400
        ).model_dump(mode='json')), 400

    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return jsonify(ErrorResponse(
            error="invalid_request",
            message="Request body is required",
            error_code="INVALID_REQUEST",
            status=400
        ).model_dump(mode='json')), 400

    try:
        generation_request = GenerationRequest(**data)
    except PydanticValidationError as e:
        response = ValidationErrorResponse()
        for error in e.errors():
            field = '.'.join(str(part) for part in error.get('loc', ())) or 'request_data'
            response.add_validation_error(field, error.get('msg', 'Invalid value'))
        return jsonify(response.model_dump(mode='json')), 400

    store = get_store()
    job_id = create_newsletter_job(store, generation_request)

    try:
        process_newsletter_task.delay(job_id, generation_request.model_dump(mode='json'))
    except Exception as e:
        logger.error(f"Failed to queue newsletter job {job_id}: {str(e)}")
        record = store.get_job(job_id) or {}
        logs = list(record.get('generation_logs') or [])
        logs.append(timestamped(f"Failed to queue generation task: {str(e)}"))
        store.fail_job(job_id, logs)
        return jsonify(ErrorResponse(
            error="task_queue_unavailable",
            message="Newsletter generation could not be started",
            error_code="TASK_QUEUE_UNAVAILABLE",
            status=503,
            job_id=job_id
        ).model_dump(mode='json')), 503

    logger.info(f"Queued newsletter job {job_id} for topic: {generation_request.topic}")
    return jsonify(NewsletterCreateResponse(job_id=job_id).model_dump(mode='json')), 202


@newsletters_bp.route('/newsletters/<job_id>', methods=['GET'])
@require_api_key
def get_newsletter(job_id: str):
    """
    Get job status, progress, logs and, once ready, the final document.
    """
    job = get_job_status(get_store(), job_id)

    if job is None:
        return jsonify(ErrorResponse(
            error="not_found",
            message=f"Newsletter job {job_id} not found",
            status=404,
            job_id=job_id
        ).model_dump(mode='json')), 404

    return jsonify(NewsletterStatusResponse.from_job(job).model_dump(mode='json')), 200
