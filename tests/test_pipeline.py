"""
End-to-end tests for the generation pipeline.

These run every stage against the in-memory store with scripted
providers; no network access is needed.
"""

import logging
import warnings

import pytest
from pydantic.warnings import PydanticDeprecatedSince20

from newsletter_generator.core.models.errors import TaskError
from newsletter_generator.core.models.job import JobStatus
from newsletter_generator.pipeline.reporter import JobContext, ProgressReporter
from newsletter_generator.tasks.newsletter import (
    PipelineServices,
    create_newsletter_job,
    get_job_status,
    run_generation,
    summarize
)
from tests.conftest import (
    InMemoryNewsletterStore,
    ScriptedGenerator,
    make_request,
    provider_row
)


def no_research(provider, topic, text_generator=None):
    raise AssertionError("research should not run")


def no_images(api_key, section_title, topic):
    raise AssertionError("image generation should not run")


def run_job(store, request, generator, research_runner=no_research):
    job_id = create_newsletter_job(store, request)
    record = store.get_job(job_id)
    context = JobContext(job_id=job_id, request=request, logs=list(record['generation_logs']))
    services = PipelineServices(
        store=store,
        text_generator=generator,
        research_runner=research_runner,
        image_generator=no_images
    )
    run_generation(context, services, ProgressReporter(store))
    return context, get_job_status(store, job_id)


def test_job_fails_without_generation_providers():
    """Zero usable providers: the job fails and no content is written."""
    store = InMemoryNewsletterStore(providers=[])
    generator = ScriptedGenerator()

    context, job = run_job(store, make_request(num_sections=4), generator)

    assert job.status == JobStatus.FAILED.value
    assert job.content is None
    assert any("No generation AI providers configured" in line for line in job.logs)
    assert generator.calls == []
    assert context.status == JobStatus.FAILED


def test_job_completes_with_one_healthy_provider(sample_plan):
    """One healthy provider, no research or knowledge: the job ends ready."""
    store = InMemoryNewsletterStore(providers=[provider_row("OpenAI")])
    request = make_request(num_sections=3, skip_research=True, include_knowledge=False)

    context, job = run_job(store, request, ScriptedGenerator(plan=sample_plan))

    assert job.status == JobStatus.READY.value
    assert job.progress == 100
    assert 1 <= len(job.content['sections']) <= 3
    assert job.content['header']['title'] != request.topic
    assert job.title == job.content['header']['title']
    assert job.logs[0].endswith("Starting generation for topic: AI in Healthcare")
    assert job.logs[-1].endswith("Newsletter generation completed successfully!")
    assert any("Skipping web research as requested..." in line for line in job.logs)
    assert summarize(context)['status'] == 'ready'


def test_malformed_credential_is_skipped_not_attempted(sample_plan, caplog):
    """A provider whose key does not decode never reaches the generator."""
    caplog.set_level(logging.WARNING, logger='newsletter_generator.pipeline.config_loader')
    store = InMemoryNewsletterStore(providers=[
        provider_row("Broken OpenAI", encrypted="%%%not-base64%%%"),
        provider_row("Gemini"),
    ])
    generator = ScriptedGenerator(plan=sample_plan)

    context, job = run_job(store, make_request(num_sections=3), generator)

    assert job.status == JobStatus.READY.value
    assert "Broken OpenAI" not in generator.providers_called()
    assert set(generator.providers_called()) == {"Gemini"}
    assert "Dropping provider Broken OpenAI" in caplog.text
    assert all(not section['metadata'].get('fallback_used') for section in job.content['sections'])


def test_progress_checkpoints_are_monotonic(sample_plan):
    store = InMemoryNewsletterStore(providers=[provider_row("OpenAI")])

    run_job(store, make_request(num_sections=2), ScriptedGenerator(plan=sample_plan))

    assert store.progress_history == sorted(store.progress_history)
    assert {5, 15, 35, 70, 85, 95, 100} <= set(store.progress_history)


def test_research_failure_degrades_to_no_research(sample_plan):
    store = InMemoryNewsletterStore(providers=[
        provider_row("OpenAI"),
        provider_row("Perplexity", type='research'),
    ])

    def failing_research(provider, topic, text_generator=None):
        raise RuntimeError("Research API error: 500")

    context, job = run_job(
        store, make_request(skip_research=False), ScriptedGenerator(plan=sample_plan), failing_research
    )

    assert job.status == JobStatus.READY.value
    assert context.research == ""
    assert any("Research unavailable" in line for line in job.logs)


def test_research_text_reaches_section_prompts(sample_plan):
    store = InMemoryNewsletterStore(providers=[
        provider_row("OpenAI"),
        provider_row("Tavily", type='research'),
    ])
    generator = ScriptedGenerator(plan=sample_plan)

    context, job = run_job(
        store, make_request(skip_research=False), generator,
        lambda provider, topic, text_generator=None: "Hospitals report 30% faster triage."
    )

    assert context.research == "Hospitals report 30% faster triage."
    assert all("Hospitals report 30% faster triage." in prompt for prompt in generator.section_prompts())


def test_knowledge_and_events_feed_section_prompts(sample_plan):
    store = InMemoryNewsletterStore(
        providers=[provider_row("OpenAI")],
        knowledge=[{'id': 'k1', 'title': "Clinic handbook", 'content': "AI in Healthcare policies"}],
        events=[{'id': 'e1', 'title': "Health Tech Summit", 'location': "Boston"}]
    )
    store.vector_search_error = RuntimeError("vector search unavailable")
    generator = ScriptedGenerator(plan=sample_plan)

    context, job = run_job(
        store, make_request(include_knowledge=True, include_events=True), generator
    )

    assert [item.title for item in context.knowledge] == ["Clinic handbook"]
    assert [event.title for event in context.events] == ["Health Tech Summit"]
    assert "Clinic handbook" in generator.section_prompts()[0]
    assert "Health Tech Summit - TBD at Boston" in generator.section_prompts()[0]
    assert any("Querying knowledge base" in line for line in job.logs)


def test_failed_sections_still_produce_a_document():
    """Planning falls back and every section becomes a placeholder."""
    store = InMemoryNewsletterStore(providers=[provider_row("OpenAI")])
    generator = ScriptedGenerator(failing={"OpenAI": "Insufficient Balance"})

    context, job = run_job(store, make_request(topic="Retail trends", num_sections=2), generator)

    assert job.status == JobStatus.READY.value
    assert job.content['header']['title'] == "Retail trends: What's Coming Next"
    sections = job.content['sections']
    assert len(sections) == 2
    assert all(section['metadata']['fallback_used'] for section in sections)


def test_brand_applied_to_document(sample_plan):
    store = InMemoryNewsletterStore(
        providers=[provider_row("OpenAI")],
        brand={'template': 'classic', 'footer_text': "Sent by Acme Health", 'logo_url': "https://acme.test/logo.png"}
    )

    context, job = run_job(store, make_request(), ScriptedGenerator(plan=sample_plan))

    content = job.content
    assert content['header']['logoUrl'] == "https://acme.test/logo.png"
    assert content['footer']['text'] == "Sent by Acme Health"
    assert [link['text'] for link in content['footer']['links']] == ["Unsubscribe", "Privacy Policy", "Contact Us"]
    assert all(section['metadata']['brand_template'] == 'classic' for section in content['sections'])


def test_pipeline_models_raise_no_deprecation_warnings(sample_plan):
    store = InMemoryNewsletterStore(providers=[provider_row("OpenAI")])

    with warnings.catch_warnings():
        warnings.simplefilter('error', PydanticDeprecatedSince20)
        context, job = run_job(store, make_request(), ScriptedGenerator(plan=sample_plan))

    assert job.status == JobStatus.READY.value


def test_reporter_keeps_progress_monotonic(store):
    request = make_request()
    job_id = create_newsletter_job(store, request)
    context = JobContext(job_id=job_id, request=request, progress=40)
    reporter = ProgressReporter(store)

    reporter.advance(context, 'PLANNING', 15, "Analyzing topic...")

    assert context.progress == 40
    assert store.get_job(job_id)['generation_progress'] == 40
    assert store.get_job(job_id)['generation_logs'][-1].endswith("Analyzing topic...")


def test_reporter_rejects_updates_after_terminal_state(store):
    request = make_request()
    job_id = create_newsletter_job(store, request)
    context = JobContext(job_id=job_id, request=request)
    reporter = ProgressReporter(store)

    reporter.fail(context, "boom")

    with pytest.raises(TaskError):
        reporter.advance(context, 'PLANNING', 15, "Analyzing topic...")
    with pytest.raises(TaskError):
        reporter.fail(context, "again")

    assert store.get_job(job_id)['status'] == 'failed'
    assert store.get_job(job_id)['generation_logs'][-1].endswith("Generation failed: boom")


def test_reporter_mirrors_progress_to_task_state(store):
    class FakeTask:
        def __init__(self):
            self.states = []

        def update_state(self, state, meta):
            self.states.append((state, meta))

    request = make_request()
    job_id = create_newsletter_job(store, request)
    context = JobContext(job_id=job_id, request=request)
    task = FakeTask()

    ProgressReporter(store, task=task).advance(context, 'CONFIGURATION', 5, "Fetching AI providers...")

    assert task.states == [('PROGRESS', {
        'current_stage': 'CONFIGURATION',
        'progress': 5,
        'message': "Fetching AI providers..."
    })]


@pytest.mark.parametrize('finished', [JobStatus.READY, JobStatus.FAILED])
def test_task_leaves_finished_jobs_untouched(finished, monkeypatch):
    """A redelivered task must not regenerate a job that already ended."""
    from newsletter_generator.tasks import newsletter as newsletter_tasks

    store = InMemoryNewsletterStore(providers=[])
    request = make_request()
    job_id = create_newsletter_job(store, request)
    store.jobs[job_id].update(
        status=finished.value,
        generation_progress=100,
        content={'sections': [{'title': "The Diagnostic Shift"}]},
        generation_logs=["[10:00:00] Newsletter generated successfully!"]
    )
    before = dict(store.jobs[job_id])
    monkeypatch.setattr(newsletter_tasks, 'create_newsletter_store', lambda: store)

    result = newsletter_tasks.process_newsletter_task.run(job_id, request.model_dump(mode='json'))

    assert store.jobs[job_id] == before
    assert result == {'job_id': job_id, 'status': finished.value, 'progress': 100, 'sections': 1}
