#!/usr/bin/env python3
"""
Celery worker runner for Newsletter Generator.

This script starts a Celery worker to process newsletter generation jobs.
"""

import sys
import logging

from newsletter_generator.tasks import celery_app
from newsletter_generator.tasks.celery_app import NEWSLETTER_QUEUE
from newsletter_generator.utils.config import get_config, validate_config
from newsletter_generator.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def main():
    """Start the Celery worker."""
    config = get_config()
    setup_logging(vars(config))

    for problem in validate_config(config):
        logger.warning(f"Configuration problem: {problem}")

    try:
        logger.info("Starting Newsletter Generator Celery Worker...")
        logger.info(f"Worker will process tasks from the '{NEWSLETTER_QUEUE}' queue")

        worker = celery_app.Worker(
            queues=[NEWSLETTER_QUEUE],
            concurrency=2,
            loglevel=config.LOG_LEVEL.lower(),
            hostname='newsletter-generator-worker@%h'
        )

        worker.start()

    except KeyboardInterrupt:
        logger.info("Worker stopped by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Worker failed to start: {str(e)}")
        sys.exit(1)


if __name__ == '__main__':
    main()
