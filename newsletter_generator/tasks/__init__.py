"""
Background tasks for Newsletter Generator.
"""

from .celery_app import celery_app
from .newsletter import (
    PipelineServices,
    create_newsletter_job,
    get_job_status,
    process_newsletter_task,
    run_generation
)

__all__ = [
    'celery_app',
    'PipelineServices',
    'create_newsletter_job',
    'get_job_status',
    'process_newsletter_task',
    'run_generation'
]
