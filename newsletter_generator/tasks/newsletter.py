"""
Celery tasks for Newsletter Generator.

This module contains the newsletter generation task and the fixed
stage sequence it runs: configuration, planning, research, knowledge
retrieval, section generation, branding, validation and assembly.
"""

import logging
import time
from dataclasses import dataclass
from typing import Dict, Any, Optional

from ..core.models.errors import NewsletterGeneratorError, PersistenceError
from ..core.models.job import GenerationJob, GenerationRequest, JobStatus
from ..integrations.images import ImageGenerator, generate_ai_image
from ..integrations.llm import TextGenerator, generate_text
from ..integrations.research import ResearchRunner, research_topic
from ..integrations.supabase_store import NewsletterStore, create_newsletter_store
from ..pipeline.assembler import apply_brand, assemble_document
from ..pipeline.config_loader import load_configuration
from ..pipeline.knowledge import KnowledgeRetriever, collect_events
from ..pipeline.planner import create_topic_planner
from ..pipeline.reporter import TASK_STATUS, JobContext, ProgressReporter, timestamped
from ..pipeline.research import gather_research
from ..pipeline.sanitizer import sanitize
from ..pipeline.sections import SectionGenerator
from ..utils.config import get_config
from ..utils.logging import JobLogger
from .celery_app import celery_app

# Configure logging
logger = logging.getLogger(__name__)

TASK_NAME = "process_newsletter_task"

# stage -> (checkpoint, log line)
PIPELINE_CHECKPOINTS = {
    'CONFIGURATION': (5, 'Fetching AI providers and brand configuration...'),
    'PLANNING': (15, 'Analyzing topic and planning newsletter structure...'),
    'RESEARCH': (30, 'Conducting web research on the topic...'),
    'RESEARCH_UNAVAILABLE': (35, 'Research unavailable, continuing with knowledge base only...'),
    'RESEARCH_SKIPPED': (35, 'Skipping web research as requested...'),
    'RESEARCH_NOT_CONFIGURED': (35, 'No research providers configured, continuing without research...'),
    'KNOWLEDGE': (45, 'Querying knowledge base for relevant content...'),
    'SECTION_GENERATION': (70, 'Generating newsletter sections with AI...'),
    'BRANDING': (85, 'Applying brand styling and voice...'),
    'VALIDATION': (95, 'Validating content quality and completeness...'),
    'ASSEMBLY': (100, 'Assembling final newsletter draft...'),
}


@dataclass
class PipelineServices:
    """External collaborators used by the pipeline."""
    store: NewsletterStore
    text_generator: TextGenerator = generate_text
    research_runner: ResearchRunner = research_topic
    image_generator: ImageGenerator = generate_ai_image


def create_newsletter_job(store: NewsletterStore, request: GenerationRequest) -> str:
    """
    Create the job record a generation task will fill in.

    Returns:
        Job identifier
    """
    job_id = store.create_job(
        request.organization_id,
        f"Newsletter: {request.topic}",
        timestamped(f"Starting generation for topic: {request.topic}")
    )
    logger.info(f"Created newsletter job {job_id} for organization {request.organization_id}")
    return job_id


def get_job_status(store: NewsletterStore, job_id: str) -> Optional[GenerationJob]:
    """Current state of a job, or None when it does not exist."""
    record = store.get_job(job_id)
    return GenerationJob.from_record(record) if record else None


def _advance(reporter: ProgressReporter, context: JobContext, stage: str):
    progress, message = PIPELINE_CHECKPOINTS[stage]
    reporter.advance(context, stage, progress, message)


def run_generation(context: JobContext, services: PipelineServices,
                   reporter: ProgressReporter) -> JobContext:
    """
    Run every pipeline stage for one job.

    Optional stages degrade silently; a fatal error marks the job failed
    instead of assembling it. The job always ends ``ready`` or ``failed``
    unless the failure itself cannot be persisted.

    Args:
        context: Job context, usually fresh
        services: External collaborators
        reporter: Progress reporter for the job

    Returns:
        The same context, in a terminal state
    """
    request = context.request
    config = get_config()

    try:
        # Stage 1: Configuration
        _advance(reporter, context, 'CONFIGURATION')
        context.providers, context.brand = load_configuration(services.store, request.organization_id)

        # Stage 2: Planning
        _advance(reporter, context, 'PLANNING')
        planner = create_topic_planner(context.providers.generation, services.text_generator)
        context.plan = planner.plan(request)

        # Stage 3: Research (optional)
        if request.skip_research:
            _advance(reporter, context, 'RESEARCH_SKIPPED')
        elif context.providers.research:
            _advance(reporter, context, 'RESEARCH')
            context.research = gather_research(context.providers.research, request.topic,
                                               services.research_runner)
            if not context.research:
                _advance(reporter, context, 'RESEARCH_UNAVAILABLE')
        else:
            _advance(reporter, context, 'RESEARCH_NOT_CONFIGURED')

        # Stage 4: Knowledge (optional)
        if request.include_knowledge:
            _advance(reporter, context, 'KNOWLEDGE')
            retriever = KnowledgeRetriever(services.store, config.KNOWLEDGE_RESULT_LIMIT)
            context.knowledge = retriever.retrieve(request.organization_id, request.topic)

        # Stage 5: Section generation
        _advance(reporter, context, 'SECTION_GENERATION')
        if request.include_events:
            context.events = collect_events(services.store, request.organization_id, config.EVENTS_RESULT_LIMIT)

        generator = SectionGenerator(
            context.providers.generation,
            services.text_generator,
            services.image_generator,
            on_section=lambda index, total, section: reporter.note(
                context, f"Generated section {index + 1}/{total}: {section.title}"
            )
        )
        context.sections = generator.generate_sections(
            context.plan, context.research, context.knowledge, context.events, request
        )

        # Stage 6: Branding
        _advance(reporter, context, 'BRANDING')
        context.sections = apply_brand(context.sections, context.brand, request.topic)

        # Stage 7: Validation
        _advance(reporter, context, 'VALIDATION')
        context.sections = sanitize(context.sections)

        # Stage 8: Assembly
        _advance(reporter, context, 'ASSEMBLY')
        document = assemble_document(context.plan, context.sections, context.brand, request.topic)
        reporter.complete(context, document)

    except Exception as e:
        message = e.message if isinstance(e, NewsletterGeneratorError) else str(e)
        logger.error(f"Generation process error for job {context.job_id}: {message}", exc_info=True)

        if not context.is_terminal:
            try:
                reporter.fail(context, message)
            except PersistenceError as persist_error:
                # The job stays in generating; nothing else can record it
                logger.error(f"Failed to record failure for job {context.job_id}: {persist_error.message}")

    return context


def summarize(context: JobContext) -> Dict[str, Any]:
    """Task result returned to the Celery backend."""
    status = context.status.value if isinstance(context.status, JobStatus) else context.status
    return {
        'job_id': context.job_id,
        'status': status,
        'progress': context.progress,
        'sections': len(context.document.sections) if context.document else 0,
    }


@celery_app.task(bind=True, name='newsletter_generator.tasks.newsletter.process_newsletter_task')
def process_newsletter_task(self, job_id: str, request_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Generate the newsletter for an existing job record.

    Args:
        job_id: Job created by the intake endpoint
        request_data: Serialized GenerationRequest

    Returns:
        Summary of the finished job
    """
    task_id = self.request.id
    started = time.time()
    job_logger = JobLogger(job_id, task_id)
    job_logger.task_started(TASK_NAME)

    try:
        store = create_newsletter_store()
        request = GenerationRequest(**request_data)
        record = store.get_job(job_id) or {}
    except Exception as e:
        job_logger.task_failed(TASK_NAME, str(e))
        self.update_state(
            state=TASK_STATUS['FAILURE'],
            meta={
                'current_stage': 'INITIALIZED',
                'progress': 0,
                'error': str(e),
                'message': f'Task failed: {str(e)}'
            }
        )
        return {'job_id': job_id, 'status': JobStatus.FAILED.value, 'progress': 0, 'sections': 0}

    status = JobStatus(record.get('status') or JobStatus.GENERATING.value)
    if status.is_terminal:
        # Redelivered or already finished; the record is final
        logger.warning(f"Job {job_id} is already {status.value}, skipping generation")
        return {
            'job_id': job_id,
            'status': status.value,
            'progress': record.get('generation_progress') or 0,
            'sections': len((record.get('content') or {}).get('sections') or []),
        }

    context = JobContext(
        job_id=job_id,
        request=request,
        progress=record.get('generation_progress') or 0,
        logs=list(record.get('generation_logs') or [])
    )
    context = run_generation(context, PipelineServices(store), ProgressReporter(store, task=self))

    result = summarize(context)
    job_logger.task_finished(TASK_NAME, time.time() - started, **result)
    return result
