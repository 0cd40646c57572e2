"""
Generation presets.

Each preset id maps to a fixed instruction paragraph that is embedded
verbatim into planning and section prompts.
"""

from typing import Dict, List, Tuple

from ..core.models.job import GenerationRequest

TONE_PRESETS: Dict[str, str] = {
    'professional': (
        'Use a professional, authoritative tone. Maintain formal language, clear structure, and '
        'business-appropriate vocabulary. Be confident and credible.'
    ),
    'conversational': (
        'Use a conversational, friendly tone as if speaking directly to a trusted colleague. Be warm, '
        'approachable, and engaging while maintaining professionalism. Use natural language and '
        'relatable examples.'
    ),
    'educational': (
        'Use an educational, instructive tone. Break down complex concepts clearly, provide helpful '
        'examples, and guide readers through information step-by-step. Be patient and thorough.'
    ),
    'persuasive': (
        'Use a persuasive, compelling tone. Emphasize benefits, create urgency when appropriate, and '
        'motivate readers to take action. Be confident and results-focused.'
    ),
    'inspirational': (
        'Use an inspirational, uplifting tone. Empower readers, highlight possibilities, and create '
        'enthusiasm. Be positive, energizing, and vision-focused.'
    ),
}

STYLE_PRESETS: Dict[str, str] = {
    'concise': (
        'Write in a concise, efficient style. Use short paragraphs (2-4 sentences), bullet points where '
        'appropriate, and get to the point quickly. Eliminate unnecessary words. Each section should be '
        'focused and scannable.'
    ),
    'detailed': (
        'Write in a detailed, comprehensive style. Provide thorough explanations, relevant context, '
        'supporting examples, and deeper analysis. Use longer paragraphs (4-6 sentences) to fully '
        'explore topics.'
    ),
    'story_driven': (
        'Write in a story-driven, narrative style. Use anecdotes, case studies, real-world examples, and '
        'storytelling techniques to illustrate points. Create a narrative arc that engages readers '
        'emotionally.'
    ),
    'data_driven': (
        'Write in a data-driven, analytical style. Emphasize facts, statistics, research findings, and '
        'evidence-based insights. Use numbers, percentages, and concrete data points to support claims.'
    ),
    'action_oriented': (
        'Write in an action-oriented, practical style. Focus on actionable takeaways, implementation '
        'steps, and concrete next actions. Include "how-to" elements and clear calls-to-action throughout.'
    ),
}

AUDIENCE_PRESETS: Dict[str, str] = {
    'beginners': (
        'Write for beginners who are new to this topic. Avoid jargon or explain it when necessary. '
        "Provide foundational context, define key terms, and don't assume prior knowledge. Use clear, "
        'simple language.'
    ),
    'professionals': (
        'Write for working professionals with moderate expertise. Assume basic familiarity with the '
        'field but explain advanced concepts. Balance accessibility with depth. Focus on practical '
        'applications relevant to their work.'
    ),
    'executives': (
        'Write for executives and senior decision-makers. Focus on strategic implications, business '
        'impact, and high-level insights. Be concise and emphasize ROI, competitive advantages, and '
        'organizational outcomes.'
    ),
    'general': (
        'Write for a general audience with varied backgrounds. Use accessible language, explain '
        'specialized terms, and provide context. Make content engaging and relevant to everyday life '
        'or common interests.'
    ),
    'technical': (
        'Write for technical experts with deep domain knowledge. Use industry-specific terminology, '
        'dive into technical details, discuss nuances, and provide advanced insights. Assume high '
        'level of expertise.'
    ),
}

CONTEXT_PRESETS: Dict[str, str] = {
    'industry_news': (
        "Frame content as industry news and current developments. Focus on what's new, what's "
        'changing, and why it matters now. Include timely insights and immediate relevance.'
    ),
    'how_to': (
        'Structure content as a how-to guide or tutorial. Provide clear step-by-step instructions, '
        'actionable advice, and practical implementation guidance. Focus on teaching readers how to '
        'do something specific.'
    ),
    'trend_analysis': (
        'Present content as trend analysis. Identify patterns, analyze implications, discuss future '
        'directions, and provide forward-looking insights. Help readers understand where things are '
        'heading.'
    ),
    'product_updates': (
        'Frame content as product updates and announcements. Highlight new features, improvements, '
        "benefits, and practical use cases. Focus on what's new and how it helps users."
    ),
    'educational_series': (
        'Present content as part of an educational series. Build on foundational concepts, create '
        'learning progression, and help readers develop deeper understanding over time. Reference '
        'how this fits into broader learning.'
    ),
}

GUIDE_PRESETS: Dict[str, str] = {
    'standard': (
        'Use standard newsletter structure with clear sections, balanced content distribution, and '
        'logical flow from introduction through main points to conclusion.'
    ),
    'highlight_focused': (
        'Lead with key highlights and main takeaways upfront. Put the most important information '
        'first, then provide supporting details and context.'
    ),
    'deep_dive': (
        'Structure as a deep dive into a single major topic. Provide comprehensive coverage, multiple '
        'angles, and thorough exploration rather than covering multiple separate topics.'
    ),
    'curated_list': (
        'Structure as a curated list or roundup. Present multiple distinct items, resources, or '
        'insights with concise explanations for each. Make it scannable and easy to navigate.'
    ),
    'problem_solution': (
        'Structure using problem-solution framework. Clearly identify challenges or pain points, then '
        'provide practical solutions, approaches, or strategies to address them.'
    ),
}

CUSTOMIZATION_HEADER = "CUSTOMIZATION REQUIREMENTS (PRIORITY LEVEL 2 - Apply these guidelines):"

# (request field, label, presets) in prompt order
_PRESET_GROUPS: List[Tuple[str, str, Dict[str, str]]] = [
    ('tone', 'TONE', TONE_PRESETS),
    ('style', 'STYLE', STYLE_PRESETS),
    ('audience', 'AUDIENCE', AUDIENCE_PRESETS),
    ('context', 'CONTEXT', CONTEXT_PRESETS),
    ('guide', 'STRUCTURE', GUIDE_PRESETS),
]


def build_preset_modifiers(request: GenerationRequest) -> str:
    """
    Render the selected presets as a prompt block.

    Unknown preset ids are ignored; an empty string is returned when no
    preset applies.
    """
    modifiers = []

    for field_name, label, presets in _PRESET_GROUPS:
        preset_id = getattr(request, field_name, None)
        if preset_id and preset_id in presets:
            modifiers.append(f"{label}: {presets[preset_id]}")

    if not modifiers:
        return ""

    return f"\n\n{CUSTOMIZATION_HEADER}\n" + "\n\n".join(modifiers)
