"""
Job context and progress reporting.

The JobContext carries one job's data through every stage. The
ProgressReporter is the only writer of the job record while the
pipeline runs: it appends timestamped log lines, advances progress
monotonically to fixed checkpoints and performs the single terminal
transition to ``ready`` or ``failed``.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from ..core.models.content import ContentPlan, EventItem, FinalDocument, KnowledgeItem, Section
from ..core.models.errors import TaskError
from ..core.models.job import GenerationRequest, JobStatus
from ..core.models.provider import BrandConfig, ProviderSet
from ..integrations.supabase_store import NewsletterStore
from ..utils.logging import JobLogger

logger = logging.getLogger(__name__)

TASK_STATUS = {
    'PENDING': 'PENDING',
    'PROGRESS': 'PROGRESS',
    'SUCCESS': 'SUCCESS',
    'FAILURE': 'FAILURE',
}

COMPLETION_MESSAGE = "Newsletter generation completed successfully!"


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def timestamped(message: str) -> str:
    """Format a job log line."""
    return f"[{utc_timestamp()}] {message}"


@dataclass
class JobContext:
    """Everything one generation job accumulates across stages."""
    job_id: str
    request: GenerationRequest
    status: JobStatus = JobStatus.GENERATING
    progress: int = 0
    current_stage: str = 'INITIALIZED'
    logs: List[str] = field(default_factory=list)

    providers: ProviderSet = field(default_factory=ProviderSet)
    brand: BrandConfig = field(default_factory=BrandConfig)
    plan: Optional[ContentPlan] = None
    research: str = ""
    knowledge: List[KnowledgeItem] = field(default_factory=list)
    events: List[EventItem] = field(default_factory=list)
    sections: List[Section] = field(default_factory=list)
    document: Optional[FinalDocument] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


class ProgressReporter:
    """Persists progress, logs and terminal state for one job."""

    def __init__(self, store: NewsletterStore, task=None):
        """
        Args:
            store: Job store
            task: Bound Celery task whose state mirrors every checkpoint
        """
        self.store = store
        self.task = task
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def advance(self, context: JobContext, stage: str, progress: int, message: str):
        """
        Record a stage boundary.

        Progress never decreases: a checkpoint lower than the current
        value only appends the log line.
        """
        self._ensure_open(context)

        context.progress = max(context.progress, progress)
        context.current_stage = stage
        context.logs.append(timestamped(message))
        self.store.update_progress(context.job_id, context.progress, list(context.logs))

        if self.task is not None:
            self.task.update_state(
                state=TASK_STATUS['PROGRESS'],
                meta={
                    'current_stage': stage,
                    'progress': context.progress,
                    'message': message
                }
            )

        JobLogger(context.job_id).stage_reached(stage, context.progress)

    def note(self, context: JobContext, message: str):
        """Append a log line without moving progress."""
        self._ensure_open(context)
        context.logs.append(timestamped(message))
        self.store.update_progress(context.job_id, context.progress, list(context.logs))

    def complete(self, context: JobContext, document: FinalDocument):
        """Write the final document and mark the job ready."""
        self._ensure_open(context)

        context.logs.append(timestamped(COMPLETION_MESSAGE))
        self.store.complete_job(context.job_id, document.to_content(), document.header.title, list(context.logs))

        context.document = document
        context.progress = 100
        context.status = JobStatus.READY
        self.logger.info(f"Newsletter {context.job_id} generation completed successfully")

    def fail(self, context: JobContext, message: str):
        """Mark the job failed with an error log line."""
        self._ensure_open(context)

        context.logs.append(timestamped(f"Generation failed: {message}"))
        context.status = JobStatus.FAILED
        self.store.fail_job(context.job_id, list(context.logs))
        self.logger.error(f"Newsletter {context.job_id} generation failed: {message}")

    def _ensure_open(self, context: JobContext):
        if context.is_terminal:
            raise TaskError(
                f"Job {context.job_id} is already {context.status.value} and cannot be updated",
                task_id=context.job_id
            )
