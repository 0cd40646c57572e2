"""
Logging setup shared by the API process and the Celery worker.

Pipeline code logs through ``JobLogger`` so every record about a job
carries the job id and, inside the worker, the Celery task id.
"""

import logging
import logging.handlers
import os
from datetime import datetime
from typing import Dict, Any, Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Third-party loggers that are too chatty at the root level
QUIET_LOGGERS = {
    'werkzeug': logging.WARNING,
    'celery': logging.INFO,
    'openai': logging.WARNING,
    'anthropic': logging.WARNING,
    'google': logging.WARNING,
    'httpx': logging.WARNING,
    'httpcore': logging.WARNING,
    'requests': logging.WARNING,
    'urllib3': logging.WARNING,
}


def setup_logging(config: Dict[str, Any]):
    """
    Install console and rotating file handlers on the root logger.

    Args:
        config: Mapping with LOG_LEVEL, LOG_FILE, LOG_MAX_BYTES and
            LOG_BACKUP_COUNT; missing keys fall back to defaults.
            An empty LOG_FILE disables the file handler.
    """
    level = getattr(logging, str(config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    handlers = [logging.StreamHandler()]

    log_file = config.get('LOG_FILE', 'logs/newsletter_generator.log')
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=config.get('LOG_MAX_BYTES', 10 * 1024 * 1024),
            backupCount=config.get('LOG_BACKUP_COUNT', 5)
        ))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    configure_loggers()


def configure_loggers():
    """Raise the level of noisy library loggers."""
    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


class JobLogger:
    """
    Logger bound to one newsletter job.

    Keyword arguments passed to a log call are attached to the record
    as ``extra`` fields, next to the bound job and task ids.
    """

    def __init__(self, job_id: str, task_id: Optional[str] = None, name: str = 'newsletter.job'):
        self.job_id = job_id
        self.task_id = task_id
        self.logger = logging.getLogger(name)

    def info(self, message: str, **fields):
        self._log(logging.INFO, message, fields)

    def error(self, message: str, **fields):
        self._log(logging.ERROR, message, fields)

    def _log(self, level: int, message: str, fields: Dict[str, Any]):
        extra = {
            'job_id': self.job_id,
            'task_id': self.task_id,
            'logged_at': datetime.utcnow().isoformat(),
            **fields
        }
        self.logger.log(level, f"[job {self.job_id}] {message}", extra=extra)

    def task_started(self, task_name: str):
        self.info(f"Task started: {task_name}", task_name=task_name)

    def stage_reached(self, stage: str, progress: int):
        self.info(f"Stage {stage} at {progress}%", stage=stage, progress=progress)

    def task_finished(self, task_name: str, duration: float, **summary):
        self.info(f"Task completed: {task_name} in {duration:.1f}s",
                  task_name=task_name, duration=duration, **summary)

    def task_failed(self, task_name: str, error: str):
        self.error(f"Task error: {error}", task_name=task_name, error=error)
