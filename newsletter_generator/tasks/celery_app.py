"""
Celery application for Newsletter Generator.

Generation jobs run on a single ``newsletters`` queue. Tasks are
acknowledged after they finish so a worker crash re-delivers the job.
"""

from celery import Celery
from kombu import Queue

from ..utils.config import Config, get_config

NEWSLETTER_QUEUE = 'newsletters'

# Celery's own log lines; pipeline records go through the root logger
WORKER_LOG_FORMAT = '[%(asctime)s: %(levelname)s/%(processName)s] %(message)s'
WORKER_TASK_LOG_FORMAT = (
    '[%(asctime)s: %(levelname)s/%(processName)s][%(task_name)s(%(task_id)s)] %(message)s'
)


def create_celery_app(config: Config) -> Celery:
    """Build the Celery app from the environment configuration."""
    app = Celery('newsletter_generator', include=['newsletter_generator.tasks.newsletter'])

    app.conf.update(
        broker_url=config.CELERY_BROKER_URL,
        result_backend=config.CELERY_RESULT_BACKEND,
        task_serializer='json',
        result_serializer='json',
        accept_content=['json'],
        timezone='UTC',
        enable_utc=True,

        # Long-running generation jobs
        task_track_started=True,
        task_time_limit=config.CELERY_TASK_TIME_LIMIT,
        task_soft_time_limit=config.CELERY_TASK_SOFT_TIME_LIMIT,
        worker_prefetch_multiplier=config.CELERY_WORKER_PREFETCH_MULTIPLIER,
        worker_max_tasks_per_child=config.CELERY_WORKER_MAX_TASKS_PER_CHILD,
        task_acks_late=True,
        task_reject_on_worker_lost=True,

        task_default_queue=NEWSLETTER_QUEUE,
        task_queues=(Queue(NEWSLETTER_QUEUE, routing_key=NEWSLETTER_QUEUE),),
        task_routes={'newsletter_generator.tasks.newsletter.*': {'queue': NEWSLETTER_QUEUE}},

        result_expires=3600,

        worker_hijack_root_logger=False,
        worker_log_format=WORKER_LOG_FORMAT,
        worker_task_log_format=WORKER_TASK_LOG_FORMAT,
    )
    return app


celery_app = create_celery_app(get_config())
