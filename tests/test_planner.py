"""
Tests for topic planning and the fallback plan.
"""

import json

import pytest

from newsletter_generator.core.models.errors import ValidationError
from newsletter_generator.pipeline.planner import (
    TopicPlanner,
    build_fallback_plan,
    build_plan_prompt,
    enforce_section_count,
    parse_plan_response,
    select_fallback_template
)
from tests.conftest import ScriptedGenerator, make_provider, make_request


def test_parse_plan_response_accepts_fenced_json(sample_plan):
    raw = f"```json\n{json.dumps(sample_plan)}\n```"

    plan = parse_plan_response(raw, "AI in Healthcare")

    assert plan.title == sample_plan['title']
    assert [section.type for section in plan.sections] == ['hero', 'article', 'summary']
    assert plan.fallback_used is False


@pytest.mark.parametrize("raw", [
    "Here is your plan!",
    json.dumps(["not", "an", "object"]),
    json.dumps({'title': "Something Specific"}),
    json.dumps({'title': "Something Specific", 'sections': []}),
    json.dumps({'title': "Something Specific", 'sections': [{'type': 'hero', 'title': "  "}]}),
])
def test_parse_plan_response_rejects_unusable_output(raw):
    with pytest.raises(ValidationError):
        parse_plan_response(raw, "AI in Healthcare")


def test_parse_plan_response_rejects_title_restating_topic(sample_plan):
    sample_plan['title'] = "ai in healthcare"

    with pytest.raises(ValidationError) as exc_info:
        parse_plan_response(json.dumps(sample_plan), "AI in Healthcare")

    assert exc_info.value.field == 'title'


def test_unknown_section_types_become_articles(sample_plan):
    sample_plan['sections'][1]['type'] = 'sidebar'

    plan = parse_plan_response(json.dumps(sample_plan), "AI in Healthcare")

    assert plan.sections[1].type == 'article'


@pytest.mark.parametrize("topic,title,approach", [
    ("How to start a podcast", "Complete Guide: How to start a podcast", 'actionable_guide'),
    ("Best running shoes", "Best running shoes - Expert Picks", 'curated_list'),
    ("Retail trends", "Retail trends: What's Coming Next", 'insightful_analysis'),
    ("Passive income ideas", "Proven Strategies: Passive income ideas", 'actionable_guide'),
    ("Quantum computing", "Essential Insights: Quantum computing", 'educational_breakdown'),
])
def test_fallback_template_selected_by_keyword(topic, title, approach):
    template = select_fallback_template(topic)

    assert template.title.format(topic=topic) == title
    assert template.content_approach == approach


def test_fallback_plan_is_deterministic():
    request = make_request(topic="How to start a podcast", num_sections=3)

    plan = build_fallback_plan(request)

    assert plan == build_fallback_plan(request)
    assert plan.fallback_used is True
    assert plan.tone == 'conversational'
    assert [section.title for section in plan.sections] == [
        "Step 1: How to start a podcast",
        "Step 2: How to start a podcast",
        "Step 3: How to start a podcast",
    ]
    assert [section.type for section in plan.sections] == ['hero', 'article', 'article']


def test_fallback_stub_titles_for_default_template():
    plan = build_fallback_plan(make_request(topic="Quantum computing", num_sections=2))

    assert plan.sections[1].title == "Quantum computing - Key Insight #2"


def test_enforce_section_count_pads_and_truncates(sample_plan):
    plan = parse_plan_response(json.dumps(sample_plan), "AI in Healthcare")

    padded = enforce_section_count(plan, make_request(num_sections=5, section_length='long'))
    assert len(padded.sections) == 5
    assert padded.sections[3].title == "AI in Healthcare Update #4"
    assert padded.sections[4].description == "Additional content about AI in Healthcare (long length)"

    truncated = enforce_section_count(plan, make_request(num_sections=1))
    assert [section.title for section in truncated.sections] == ["The Diagnostic Shift"]


def test_plan_prompt_carries_request_options():
    request = make_request(num_sections=5, tone='professional', instructions="Mention our clinic")

    prompt = build_plan_prompt(request)

    assert "Create exactly 5 sections" in prompt
    assert "Use a professional, authoritative tone." in prompt
    assert "Mention our clinic" in prompt
    assert "Research included: No" in prompt


def test_planner_uses_next_provider_after_malformed_plan(sample_plan):
    broken = ScriptedGenerator(plan=None)
    working = ScriptedGenerator(plan=sample_plan)

    def generator(provider, prompt, settings=None):
        source = broken if provider.name == "broken" else working
        return source(provider, prompt, settings)

    planner = TopicPlanner([make_provider("broken"), make_provider("working")], generator)
    plan = planner.plan(make_request(num_sections=3))

    assert plan.title == sample_plan['title']
    assert plan.fallback_used is False
    assert len(broken.calls) == 1


def test_planner_falls_back_when_every_provider_fails():
    generator = ScriptedGenerator(failing={"a": "Timeout", "b": "401 Unauthorized"})
    planner = TopicPlanner([make_provider("a"), make_provider("b")], generator)

    plan = planner.plan(make_request(topic="Retail trends", num_sections=4))

    assert plan.fallback_used is True
    assert plan.title == "Retail trends: What's Coming Next"
    assert len(plan.sections) == 4
    assert generator.providers_called() == ["a", "b"]


def test_planner_without_providers_uses_fallback():
    plan = TopicPlanner([], ScriptedGenerator()).plan(make_request(num_sections=2))

    assert plan.fallback_used is True
    assert len(plan.sections) == 2
