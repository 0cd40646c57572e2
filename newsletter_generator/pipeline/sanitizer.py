"""
Content sanitizer.

Cleans raw provider output into the lightweight HTML structure used by
newsletter sections. Cleanup is an ordered list of regex rules applied
in sequence; sections left without enough usable content are dropped.
"""

import logging
import re
from dataclasses import dataclass
from typing import List

from ..core.models.content import Section

logger = logging.getLogger(__name__)

MIN_MARKUP_LENGTH = 50
MIN_TEXT_LENGTH = 30
LONG_PARAGRAPH_CHARS = 800

# Whole words only: "Welcomed" or "Hellos" are prose
GREETINGS = r"(?:Hey there|Hello|Hi everyone|Hi there|Welcome|Greetings)\b"
OPENERS = r"(?:Let's dive in|Let's get started|Here we go|Today we're going to)\b"
TRAILING = r"[!,.\s]*"


@dataclass(frozen=True)
class SanitationRule:
    """A named regex substitution."""
    name: str
    pattern: "re.Pattern"
    replacement: str = ""

    def apply(self, content: str) -> str:
        return self.pattern.sub(self.replacement, content)


def _rule(name: str, pattern: str, replacement: str = "", flags: int = 0) -> SanitationRule:
    return SanitationRule(name, re.compile(pattern, flags), replacement)


# Applied in order
SANITATION_RULES: List[SanitationRule] = [
    _rule('html_fence_open', r"^```html\s*", flags=re.IGNORECASE),
    _rule('fence_open', r"^```\s*"),
    _rule('fence_close', r"\s*```$"),
    # A bare "html" leaked from a fence label, alone on a line or between tags
    _rule('format_name_token', r"(^|>)[ \t]*html[ \t]*(?=<|$)", r"\1", flags=re.IGNORECASE | re.MULTILINE),
    _rule('default_token', r"\bDefault\b"),
    _rule('greeting_paragraph', rf"<p>\s*{GREETINGS}{TRAILING}</p>", flags=re.IGNORECASE),
    _rule('opener_paragraph', rf"<p>\s*{OPENERS}{TRAILING}</p>", flags=re.IGNORECASE),
    _rule('paragraph_greeting', rf"(<p>)\s*{GREETINGS}{TRAILING}", r"\1", flags=re.IGNORECASE),
    _rule('paragraph_opener', rf"(<p>)\s*{OPENERS}{TRAILING}", r"\1", flags=re.IGNORECASE),
    _rule('document_greeting', rf"^\s*{GREETINGS}{TRAILING}", flags=re.IGNORECASE),
    _rule('document_opener', rf"^\s*{OPENERS}{TRAILING}", flags=re.IGNORECASE),
    _rule('nested_paragraph_open', r"<p>\s*<p>", "<p>"),
    _rule('nested_paragraph_close', r"</p>\s*</p>", "</p>"),
    _rule('empty_paragraph', r"<p>\s*</p>"),
    _rule('paragraph_spacing', r"(</p>)\s*(<p>)", r"\1\n\n\2"),
    _rule('split_long_paragraph', r"(<p>[^<]{200,}?[.!?])\s+([A-Z][^<]+</p>)", r"\1</p>\n\n<p>\2"),
]

_TAG = re.compile(r"<[^>]*>")
_PARAGRAPH = re.compile(r"<p>[\s\S]*?</p>")


def strip_tags(content: str) -> str:
    """Visible text of an HTML fragment."""
    return _TAG.sub("", content).strip()


def sanitize_content(content: str, title: str = "") -> str:
    """
    Clean one section's raw markup.

    Args:
        content: Raw provider output
        title: Section title, used in warnings

    Returns:
        Cleaned HTML
    """
    if not content:
        return ""

    for rule in SANITATION_RULES:
        content = rule.apply(content)

    for paragraph in _PARAGRAPH.findall(content):
        text_length = len(strip_tags(paragraph))
        if text_length > LONG_PARAGRAPH_CHARS:
            logger.warning(f"Long paragraph detected ({text_length} chars) in section \"{title}\"")

    content = content.strip()

    # Wrap in paragraph tags if not already markup
    if content and not content.startswith('<'):
        content = f"<p>{content}</p>"

    return content


def is_usable(section: Section) -> bool:
    """Whether a sanitized section has enough content to publish."""
    if len(section.content) < MIN_MARKUP_LENGTH:
        logger.warning(f"Section \"{section.title}\" has insufficient content ({len(section.content)} chars)")
        return False

    if not section.title.strip():
        logger.warning("Section missing title")
        return False

    if len(strip_tags(section.content)) < MIN_TEXT_LENGTH:
        logger.warning(f"Section \"{section.title}\" has insufficient text content after HTML removal")
        return False

    return True


def sanitize(sections: List[Section]) -> List[Section]:
    """
    Clean every section and drop those below the usable-content thresholds.

    The result may hold fewer sections than it was given.
    """
    cleaned = [
        section.model_copy(update={'content': sanitize_content(section.content, section.title)})
        for section in sections
    ]
    kept = [section for section in cleaned if is_usable(section)]

    if len(kept) != len(sections):
        logger.info(f"Dropped {len(sections) - len(kept)} sections during validation")

    return kept
