"""
Basic tests for Newsletter Generator.

This module contains basic tests to verify the system structure
and basic functionality.
"""

import pytest

from newsletter_generator.core.models.content import FinalDocument
from newsletter_generator.core.models.job import GenerationJob, GenerationRequest, JobStatus
from newsletter_generator.integrations.llm import strip_code_fence
from newsletter_generator.pipeline.presets import build_preset_modifiers
from newsletter_generator.utils.config import get_config, validate_config
from tests.conftest import make_request


def test_generation_request_creation():
    """Test creating a generation request."""
    request = GenerationRequest(
        organization_id="org-1",
        topic="  AI in Healthcare  ",
        mode="detailed",
        include_events=True,
        include_knowledge=False
    )

    assert request.topic == "AI in Healthcare"
    assert request.mode == "detailed"
    assert request.num_sections == 4
    assert request.section_length == "medium"
    assert request.include_images is False
    assert request.image_source == "web"
    assert request.image_placement == "header"


@pytest.mark.parametrize("overrides", [
    {'topic': "   "},
    {'num_sections': 0},
    {'num_sections': 13},
    {'mode': 'automatic'},
    {'section_length': 'epic'},
])
def test_generation_request_validation(overrides):
    """Test generation request validation."""
    values = {
        'organization_id': "org-1",
        'topic': "AI in Healthcare",
        'mode': "quick",
        'include_events': False,
        'include_knowledge': False,
    }
    values.update(overrides)

    with pytest.raises(Exception):  # Pydantic validation error
        GenerationRequest(**values)


def test_job_from_record():
    job = GenerationJob.from_record({
        'id': 42,
        'organization_id': "org-1",
        'title': "Newsletter: AI",
        'status': 'ready',
        'generation_progress': 100,
        'generation_logs': ["[ts] done"],
        'content': {},
    })

    assert job.id == "42"
    assert job.status == JobStatus.READY.value
    assert job.content is None


def test_job_status_terminal_states():
    assert not JobStatus.GENERATING.is_terminal
    assert JobStatus.READY.is_terminal
    assert JobStatus.FAILED.is_terminal


def test_final_document_is_immutable():
    document = FinalDocument(
        header={'title': "T", 'subtitle': "S", 'date': "2024-01-01", 'logo_url': ""},
        footer={'text': "F"}
    )

    with pytest.raises(Exception):
        document.header = None

    assert document.to_content()['header']['logoUrl'] == ""


def test_preset_modifiers():
    assert build_preset_modifiers(make_request()) == ""

    modifiers = build_preset_modifiers(make_request(tone='educational', guide='unknown-guide'))
    assert modifiers.startswith("\n\nCUSTOMIZATION REQUIREMENTS")
    assert "TONE: Use an educational, instructive tone." in modifiers
    assert "STRUCTURE:" not in modifiers


@pytest.mark.parametrize("raw,expected", [
    ('```json\n{"a": 1}\n```', '{"a": 1}'),
    ('```\nplain\n```', 'plain'),
    ('{"a": 1}', '{"a": 1}'),
])
def test_strip_code_fence(raw, expected):
    assert strip_code_fence(raw) == expected


def test_config_loading():
    """Test configuration loading."""
    config = get_config('testing')

    assert config.TESTING is True
    assert config.DEBUG is True
    assert config.LOG_LEVEL == 'CRITICAL'
    assert 'test-api-key' in config.API_KEYS
    assert config.RATELIMIT_ENABLED is False


def test_validate_config_reports_missing_settings():
    config = get_config('testing')
    config.SUPABASE_URL = None

    assert "SUPABASE_URL must be configured" in validate_config(config)


def test_imports():
    """Test that all modules can be imported."""
    from newsletter_generator.api.app import create_app
    from newsletter_generator.pipeline import first_success, sanitize, assemble_document
    from newsletter_generator.tasks import process_newsletter_task, run_generation

    assert create_app is not None
    assert first_success is not None
    assert sanitize is not None
    assert assemble_document is not None
    assert process_newsletter_task is not None
    assert run_generation is not None
