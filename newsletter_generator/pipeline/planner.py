"""
Topic Planner for Newsletter Generator.

This module turns a topic and its generation options into a content
plan: title, subtitle and exactly ``num_sections`` ordered section stubs.
The plan comes from the first generation provider that returns a valid
structure, or from a deterministic keyword-driven template when every
provider fails.
"""

import json
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from ..core.models.content import ContentPlan, SectionPlan, SectionType
from ..core.models.errors import ValidationError
from ..core.models.job import GenerationRequest
from ..core.models.provider import Provider
from ..integrations.llm import TextGenerator, generate_text, strip_code_fence
from .executor import first_success
from .presets import build_preset_modifiers

logger = logging.getLogger(__name__)

PLAN_SAMPLING = {
    'temperature': 0.7,
    'max_tokens': 1000,
}

FALLBACK_TARGET_AUDIENCE = "Professionals and enthusiasts seeking practical insights"


@dataclass(frozen=True)
class FallbackTemplate:
    """Canned plan used when no provider produced a plan."""
    keywords: Tuple[str, ...]
    title: str
    subtitle: str
    content_approach: str


# First match wins
FALLBACK_TEMPLATES: List[FallbackTemplate] = [
    FallbackTemplate(
        ('how to', 'ways to'),
        "Complete Guide: {topic}",
        "Step-by-step strategies to master {topic}",
        'actionable_guide'
    ),
    FallbackTemplate(
        ('top ', 'best '),
        "{topic} - Expert Picks",
        "Hand-selected recommendations and insights",
        'curated_list'
    ),
    FallbackTemplate(
        ('trends', 'future'),
        "{topic}: What's Coming Next",
        "Analysis and predictions for the future",
        'insightful_analysis'
    ),
    FallbackTemplate(
        ('money', 'profit', 'income'),
        "Proven Strategies: {topic}",
        "Real tactics and actionable steps to succeed",
        'actionable_guide'
    ),
]

DEFAULT_FALLBACK_TEMPLATE = FallbackTemplate(
    (),
    "Essential Insights: {topic}",
    "Everything you need to know about {topic}",
    'educational_breakdown'
)

# content approach -> (stub title, stub description)
FALLBACK_STUBS = {
    'actionable_guide': ("Step {n}: {topic}", "Practical step-by-step guidance for {topic}"),
    'curated_list': ("{topic} - Part {n}", "Curated insights and recommendations for {topic}"),
}
DEFAULT_FALLBACK_STUB = ("{topic} - Key Insight #{n}", "Important information and takeaways about {topic}")


def build_plan_prompt(request: GenerationRequest) -> str:
    """Build the structured-output planning prompt."""
    topic = request.topic
    count = request.num_sections
    instructions = (
        f"\n\nADDITIONAL USER INSTRUCTIONS (Supplement the above):\n{request.instructions}"
        if request.instructions else ""
    )

    return f"""You are an expert newsletter content strategist. Analyze the topic "{topic}" and create an engaging, reader-friendly newsletter content plan.

CONTENT STRATEGY:
- Mode: {request.mode}
- Sections needed: {count}
- Section length: {request.section_length}
- Research included: {'No' if request.skip_research else 'Yes'}

TITLE GENERATION REQUIREMENTS:
- Create a SPECIFIC, COMPELLING title that directly relates to "{topic}"
- Transform the user's topic into an engaging headline, not a literal repetition
- Make it promise clear value to readers (e.g., "5 Game-Changing AI Tools That Will Transform Your Workflow" instead of "AI Tools Newsletter")
- Use action words, numbers, or benefit-focused language when appropriate
- Avoid generic phrases like "Weekly Update" or "Latest News"

CONTENT APPROACH:
Based on the topic "{topic}", determine the most engaging format:
- If it's about "how to" or "ways to": create actionable step-by-step guidance
- If it's about "top X" or "best": create curated lists with explanations
- If it's about trends or news: create insightful analysis with takeaways
- If it's about making money: focus on practical strategies and real examples
- If it's educational: break down complex concepts into digestible insights

NEWSLETTER CONTINUITY - CRITICAL:
This is ONE cohesive newsletter document, not separate emails or blog posts:
- Sections are chapters in a continuous narrative that build upon each other
- Each section should build upon previous sections where appropriate
- Avoid repetitive introductions or re-explaining the same concepts
- DO NOT use greetings like "Hey there", "Hello", "Welcome" in individual sections{build_preset_modifiers(request)}

SECTION PLANNING GUIDELINES:
- Each section should explore a DIFFERENT aspect or angle of the topic
- Avoid creating sections with nearly identical titles or purposes
- Plan transitions so sections feel connected, not isolated{instructions}

CRITICAL REQUIREMENTS:
- Create exactly {count} sections (no more, no fewer)
- Each section must provide UNIQUE value
- Create a logical progression from introduction through main content to conclusion

Respond with valid JSON only:
{{
  "title": "Compelling, specific title directly about {topic} that promises clear value",
  "subtitle": "Clear subtitle that explains exactly what readers will learn",
  "sections": [
    {{
      "type": "hero",
      "title": "Engaging section title (introductory)",
      "description": "Opens the newsletter and introduces the main theme"
    }},
    {{
      "type": "article",
      "title": "Next section title (builds on intro)",
      "description": "Expands on the introduction with specific details"
    }}
  ],
  "tone": "conversational|professional|casual|educational",
  "target_audience": "Who will benefit most from this content",
  "content_approach": "actionable_guide|curated_list|insightful_analysis|educational_breakdown"
}}"""


def parse_plan_response(raw: str, topic: str) -> ContentPlan:
    """
    Parse a provider's planning response.

    Raises:
        ValidationError: If the response is not a usable plan
    """
    text = strip_code_fence(raw or "")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Plan response is not valid JSON: {str(e)}", field='plan') from e

    if not isinstance(data, dict):
        raise ValidationError("Plan response must be a JSON object", field='plan')

    sections = data.get('sections')
    if not isinstance(sections, list) or not sections:
        raise ValidationError("Invalid response: sections array missing", field='sections')

    try:
        plan = ContentPlan(**{key: value for key, value in data.items() if value is not None})
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid content plan: {str(e)}", field='sections') from e

    if plan.title and plan.title.strip().lower() == topic.strip().lower():
        raise ValidationError("Plan title restates the topic", field='title', value=plan.title)

    return plan


def select_fallback_template(topic: str) -> FallbackTemplate:
    """Match topic keywords against the ordered fallback templates."""
    topic_lower = topic.lower()
    for template in FALLBACK_TEMPLATES:
        if any(keyword in topic_lower for keyword in template.keywords):
            return template
    return DEFAULT_FALLBACK_TEMPLATE


def build_fallback_plan(request: GenerationRequest) -> ContentPlan:
    """Deterministic plan built from topic keywords alone."""
    topic = request.topic
    template = select_fallback_template(topic)
    stub_title, stub_description = FALLBACK_STUBS.get(template.content_approach, DEFAULT_FALLBACK_STUB)

    sections = [
        SectionPlan(
            type=SectionType.HERO if n == 1 else SectionType.ARTICLE,
            title=stub_title.format(n=n, topic=topic),
            description=stub_description.format(topic=topic)
        )
        for n in range(1, request.num_sections + 1)
    ]

    return ContentPlan(
        title=template.title.format(topic=topic),
        subtitle=template.subtitle.format(topic=topic),
        sections=sections,
        tone='conversational',
        target_audience=FALLBACK_TARGET_AUDIENCE,
        content_approach=template.content_approach,
        fallback_used=True
    )


def enforce_section_count(plan: ContentPlan, request: GenerationRequest) -> ContentPlan:
    """Pad with synthesized stubs or truncate so the plan has exactly ``num_sections`` sections."""
    count = request.num_sections
    sections = list(plan.sections[:count])

    while len(sections) < count:
        n = len(sections) + 1
        sections.append(SectionPlan(
            type=SectionType.HERO if n == 1 else SectionType.ARTICLE,
            title=f"{request.topic} Update #{n}",
            description=f"Additional content about {request.topic} ({request.section_length} length)"
        ))

    if len(plan.sections) != count:
        logger.info(f"Adjusted plan from {len(plan.sections)} to {count} sections")

    return plan.model_copy(update={'sections': sections})


class TopicPlanner:
    """Produces content plans through the generation provider chain."""

    def __init__(self, providers: List[Provider], text_generator: TextGenerator = generate_text):
        self.providers = providers
        self.text_generator = text_generator
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def plan(self, request: GenerationRequest) -> ContentPlan:
        """
        Plan a newsletter.

        Args:
            request: Generation request

        Returns:
            ContentPlan with exactly ``request.num_sections`` sections
        """
        prompt = build_plan_prompt(request)

        def operation(provider: Provider) -> ContentPlan:
            raw = self.text_generator(provider, prompt, PLAN_SAMPLING)
            return parse_plan_response(raw, request.topic)

        result = first_success(self.providers, operation, "Topic analysis")

        if result.ok:
            plan = result.value
        else:
            self.logger.warning(f"Using fallback plan: {result.error.message}")
            plan = build_fallback_plan(request)

        plan = enforce_section_count(plan, request)
        self.logger.info(f"Content plan validated: {len(plan.sections)} sections")
        return plan


def create_topic_planner(providers: List[Provider],
                         text_generator: TextGenerator = generate_text) -> TopicPlanner:
    """
    Create a topic planner.

    Args:
        providers: Generation providers in priority order
        text_generator: Callable used to reach a provider

    Returns:
        TopicPlanner instance
    """
    return TopicPlanner(providers, text_generator)


def plan_topic(request: GenerationRequest, providers: List[Provider],
               text_generator: Optional[TextGenerator] = None) -> ContentPlan:
    """Plan a newsletter with the given generation providers."""
    return create_topic_planner(providers, text_generator or generate_text).plan(request)
