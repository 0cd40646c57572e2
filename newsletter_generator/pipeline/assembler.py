"""
Brand integration and final document assembly.
"""

import logging
from datetime import date
from typing import List, Optional

from ..core.models.content import (
    ContentPlan, DocumentFooter, DocumentHeader, FinalDocument, FooterLink, Section
)
from ..core.models.provider import BrandConfig

logger = logging.getLogger(__name__)

FOOTER_LINKS = ('Unsubscribe', 'Privacy Policy', 'Contact Us')


def apply_brand(sections: List[Section], brand: BrandConfig, topic: str,
                today: Optional[date] = None) -> List[Section]:
    """Attach brand metadata to every section."""
    year = (today or date.today()).year
    footer_text = brand.footer_text or f"© {year} {topic}. All rights reserved."
    colors = brand.colors.model_dump()

    return [
        section.model_copy(update={
            'metadata': section.metadata.model_copy(update={
                'brand_applied': True,
                'brand_template': brand.template,
                'brand_colors': colors,
                'footer_text': footer_text,
            })
        })
        for section in sections
    ]


def assemble_document(plan: ContentPlan, sections: List[Section], brand: BrandConfig,
                      topic: str, today: Optional[date] = None) -> FinalDocument:
    """
    Build the final newsletter document.

    Args:
        plan: Content plan supplying title and subtitle
        sections: Sanitized sections in order
        brand: Brand settings
        topic: Newsletter topic, used for default header text
        today: Date stamped on the header

    Returns:
        Immutable FinalDocument
    """
    today = today or date.today()
    title = plan.title or f"{topic} - Weekly Update"

    document = FinalDocument(
        header=DocumentHeader(
            title=title,
            subtitle=plan.subtitle or f"Latest insights and updates on {topic}",
            date=today.isoformat(),
            logo_url=brand.logo_url or ""
        ),
        sections=sections,
        footer=DocumentFooter(
            text=brand.footer_text or f"© {today.year} {title}. All rights reserved.",
            links=[FooterLink(text=text) for text in FOOTER_LINKS]
        )
    )

    logger.info(f"Assembled newsletter \"{title}\" with {len(sections)} sections")
    return document
