"""
Section Generator for Newsletter Generator.

This module writes the body of every planned section through the
generation provider chain, one section at a time and in plan order.
Each section has its own fallback chain; when that chain is exhausted a
placeholder section is produced instead so one failing section never
aborts the newsletter.
"""

import logging
from typing import Callable, List, Optional

from ..core.models.content import (
    ContentPlan, EventItem, KnowledgeItem, Section, SectionMetadata, SectionPlan
)
from ..core.models.job import GenerationRequest, ImagePlacement, ImageSource
from ..core.models.provider import Provider, ProviderKind
from ..integrations.images import (
    ImageGenerator, default_image_for_section, generate_ai_image, select_catalog_image
)
from ..integrations.llm import TextGenerator, generate_text
from .executor import first_success
from .presets import build_preset_modifiers

logger = logging.getLogger(__name__)

SECTION_TOKENS = {
    'short': 300,
    'medium': 600,
    'long': 900,
}

WORD_BANDS = {
    'short': '100-250 words',
    'medium': '200-400 words',
    'long': '350-600 words',
}

SECTION_TEMPERATURE = 0.7
RESEARCH_EXCERPT_CHARS = 1000
KNOWLEDGE_EXCERPT_CHARS = 300
MAX_KNOWLEDGE_ITEMS = 2
MAX_EVENTS = 3

POSITION_RULES = {
    'opening': """- As the OPENING section, set the stage and hook readers
- Introduce the main theme naturally without "Hey there" or "Welcome"
- Start with a compelling statement, question, or insight
- Preview the value readers will get from this newsletter""",
    'middle': """- As a MIDDLE section, advance the narrative
- Build on insights from previous sections
- Explore a new angle or aspect of the topic
- Provide specific, actionable information
- Maintain momentum and reader engagement""",
    'closing': """- As the CLOSING section, synthesize and conclude
- Tie together insights from earlier sections
- Provide clear takeaways or next steps
- End with impact - leave readers with something valuable
- Include a call-to-action if appropriate""",
}

SectionCallback = Callable[[int, int, Section], None]


def position_marker(index: int, total: int) -> str:
    """Label for a section's place in the narrative."""
    if index == 0:
        return 'OPENING/INTRODUCTION'
    if index == total - 1:
        return 'CLOSING/CONCLUSION'
    return f'MIDDLE SECTION {index + 1}'


def _position_rules(index: int, total: int) -> str:
    rules = []
    if index == 0:
        rules.append(POSITION_RULES['opening'])
    if 0 < index < total - 1:
        rules.append(POSITION_RULES['middle'])
    # A single-section newsletter is both opening and closing
    if index == total - 1:
        rules.append(POSITION_RULES['closing'])
    return "\n".join(rules)


def build_context_lines(request: GenerationRequest, plan: ContentPlan, section_plan: SectionPlan,
                        research: str, knowledge: List[KnowledgeItem],
                        events: List[EventItem]) -> List[str]:
    """Context block describing the newsletter and this section's inputs."""
    lines = [
        f"Newsletter Topic: {request.topic}",
        f"Section Focus: {section_plan.title}",
        f"Section Goal: {section_plan.description}",
        f"Content Approach: {plan.content_approach or 'informative'}",
        f"Writing Tone: {plan.tone}",
        f"Target Readers: {plan.target_audience}",
    ]

    if research:
        lines.append(f"Web Research Insights: {research[:RESEARCH_EXCERPT_CHARS]}...")

    if knowledge:
        snippets = "\n".join(
            f"{item.title}: {item.content[:KNOWLEDGE_EXCERPT_CHARS]}..."
            for item in knowledge[:MAX_KNOWLEDGE_ITEMS]
        )
        lines.append(f"Your Knowledge Base: {snippets}")

    if events:
        lines.append("Relevant Upcoming Events: " + "\n".join(
            event.describe() for event in events[:MAX_EVENTS]
        ))

    return lines


def build_section_prompt(request: GenerationRequest, plan: ContentPlan, index: int,
                         previous_titles: List[str], research: str = "",
                         knowledge: Optional[List[KnowledgeItem]] = None,
                         events: Optional[List[EventItem]] = None) -> str:
    """
    Build the position-aware prompt for one section.

    Args:
        request: Generation request
        plan: Content plan
        index: Zero-based section index
        previous_titles: Titles of the sections generated so far
        research: Research text
        knowledge: Knowledge items
        events: Upcoming events

    Returns:
        Prompt text
    """
    total = len(plan.sections)
    section_plan = plan.sections[index]
    number = index + 1

    context = "\n".join(build_context_lines(
        request, plan, section_plan, research, knowledge or [], events or []
    ))
    previous = "; ".join(f"Section {n}: {title}" for n, title in enumerate(previous_titles, start=1))
    previous_line = f"- Previous sections covered: {previous}" if previous else "- This is the first section"
    instructions = (
        f"\n\nADDITIONAL USER INSTRUCTIONS (PRIORITY LEVEL 3 - Supplements presets and guidelines):\n"
        f"{request.instructions}"
        if request.instructions else ""
    )
    length = request.section_length

    return f"""You are an expert newsletter writer creating engaging, valuable content for readers. Write section {number} of {total} for this newsletter.

{context}

NEWSLETTER CONTEXT AND CONTINUITY - CRITICAL:
- This is section {number} of {total} in ONE cohesive newsletter document
- Position in newsletter: {position_marker(index, total)}
{previous_line}
- Build upon what came before, don't repeat it
- Each section should provide UNIQUE value and explore DIFFERENT aspects
- Avoid re-introducing the topic - readers already know what this newsletter is about

CRITICAL FORMATTING REQUIREMENTS:
- Output content in clean HTML format using proper tags
- Use <p></p> tags for each paragraph (2-6 sentences per paragraph based on style)
- Use <ul><li></li></ul> for bullet points when listing items
- Use <ol><li></li></ol> for numbered lists when showing steps
- Use <strong></strong> for emphasis and <em></em> for subtle emphasis or quotes
- Do NOT use markdown formatting (no **, *, #, etc.)
- Do NOT include "html", "Default", or meta-text in the output

SECTION-AWARE WRITING RULES:
{_position_rules(index, total)}

TONE AND STYLE CONTROL:
- Maintain a {plan.tone} writing tone throughout
- Write as if speaking directly to one person, not a crowd
- Use active voice and include specific examples and concrete details
- Use transitions to connect ideas smoothly{build_preset_modifiers(request)}

CRITICAL: DO NOT USE GREETINGS OR REPETITIVE INTRODUCTIONS:
- DO NOT start with greetings like "Hey there", "Hello", "Welcome", "Hi everyone", etc.
- DO NOT include phrases like "Let's dive in", "Let's get started", "Here we go", "Today we're going to"
- Start directly with the content - this is section {number}, not a new conversation

WORD COUNT FLEXIBILITY:
- Target length: {length} ({WORD_BANDS.get(length, WORD_BANDS['medium'])})
- Allow natural variation - quality and value matter more than hitting exact word counts{instructions}

Write the section content for: "{section_plan.title}"
Goal: {section_plan.description}

Remember: Output ONLY the HTML content, no additional text, explanations, or meta-commentary."""


def wants_image(request: GenerationRequest, index: int) -> bool:
    """Whether the section at ``index`` receives an image."""
    if not request.include_images:
        return False
    return request.image_placement == ImagePlacement.ALL.value or (
        request.image_placement == ImagePlacement.HEADER.value and index == 0
    )


class SectionGenerator:
    """Generates section bodies sequentially, in plan order."""

    def __init__(self, providers: List[Provider], text_generator: TextGenerator = generate_text,
                 image_generator: ImageGenerator = generate_ai_image,
                 on_section: Optional[SectionCallback] = None):
        self.providers = providers
        self.text_generator = text_generator
        self.image_generator = image_generator
        self.on_section = on_section
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def generate_sections(self, plan: ContentPlan, research: str, knowledge: List[KnowledgeItem],
                          events: List[EventItem], request: GenerationRequest) -> List[Section]:
        """
        Generate every planned section.

        Sections are generated one after another so that each prompt can
        list the titles of the sections already written.

        Returns:
            One Section per planned stub, placeholders included
        """
        total = len(plan.sections)
        settings = {
            'temperature': SECTION_TEMPERATURE,
            'max_tokens': SECTION_TOKENS.get(request.section_length, SECTION_TOKENS['medium']),
        }
        sections: List[Section] = []

        self.logger.info(f"Generating {total} sections (requested: {request.num_sections})")

        for index, section_plan in enumerate(plan.sections):
            self.logger.info(f"Generating section {index + 1}/{total}: {section_plan.title}")

            prompt = build_section_prompt(
                request, plan, index, [section.title for section in sections],
                research, knowledge, events
            )
            result = first_success(
                self.providers,
                lambda provider: self.text_generator(provider, prompt, settings),
                f"Section {index + 1} generation"
            )

            if result.ok:
                section = Section(
                    id=f"section-{index + 1}",
                    type=section_plan.type,
                    title=section_plan.title,
                    content=result.value.strip(),
                    image_url=self._select_image(request, index, section_plan),
                    metadata=SectionMetadata(section_plan=section_plan)
                )
            else:
                self.logger.error(f"Failed to generate section {index + 1} with all providers: "
                                  f"{result.error.message}")
                section = self._placeholder_section(request, index, section_plan, result.error.message)

            sections.append(section)
            if self.on_section:
                self.on_section(index, total, section)

        return sections

    def _placeholder_section(self, request: GenerationRequest, index: int,
                             section_plan: SectionPlan, error: str) -> Section:
        return Section(
            id=f"section-{index + 1}",
            type=section_plan.type,
            title=section_plan.title,
            content=f"<p>This section about {section_plan.title} is being prepared.</p>"
                    f"<p>{section_plan.description}</p>",
            image_url=default_image_for_section(section_plan.type) if wants_image(request, index) else None,
            metadata=SectionMetadata(fallback_used=True, error=error, section_plan=section_plan)
        )

    def _select_image(self, request: GenerationRequest, index: int,
                      section_plan: SectionPlan) -> Optional[str]:
        if not wants_image(request, index):
            return None

        if request.image_source == ImageSource.AI.value:
            provider = self._image_provider()
            if provider is None:
                self.logger.warning("No OpenAI provider available for image generation, using catalog image")
            else:
                try:
                    return self.image_generator(provider.credential, section_plan.title, request.topic)
                except Exception as e:
                    self.logger.warning(f"AI image generation failed, using catalog image: {str(e)}")

        return select_catalog_image(request.topic, section_plan.title)

    def _image_provider(self) -> Optional[Provider]:
        for provider in self.providers:
            if provider.kind == ProviderKind.OPENAI and provider.has_credential:
                return provider
        return None
