"""
Section image sources for Newsletter Generator.

Images come either from the OpenAI image API or from a fixed catalog
of royalty-free stock photos indexed by topic keyword. Catalog lookups
are deterministic: the same topic and section title always map to the
same image.
"""

import logging
from typing import Callable, Dict, List

from ..core.models.errors import ProviderError
from ..utils.config import get_config

logger = logging.getLogger(__name__)

ImageGenerator = Callable[[str, str, str], str]

_PEXELS = "https://images.pexels.com/photos"

DEFAULT_SECTION_IMAGES: Dict[str, str] = {
    'hero': f"{_PEXELS}/3985062/pexels-photo-3985062.jpeg?auto=compress&cs=tinysrgb&w=800",
    'article': f"{_PEXELS}/590022/pexels-photo-590022.jpeg?auto=compress&cs=tinysrgb&w=800",
    'events': f"{_PEXELS}/1181396/pexels-photo-1181396.jpeg?auto=compress&cs=tinysrgb&w=800",
    'knowledge': f"{_PEXELS}/159711/books-bookstore-book-reading-159711.jpeg?auto=compress&cs=tinysrgb&w=800",
    'summary': f"{_PEXELS}/3184360/pexels-photo-3184360.jpeg?auto=compress&cs=tinysrgb&w=800",
}

# Checked in order; the first keyword contained in topic + title wins
IMAGE_CATALOG: Dict[str, List[str]] = {
    'ai': [
        f"{_PEXELS}/8386440/pexels-photo-8386440.jpeg?auto=compress&cs=tinysrgb&w=1200",
        f"{_PEXELS}/3861969/pexels-photo-3861969.jpeg?auto=compress&cs=tinysrgb&w=1200",
        f"{_PEXELS}/8438918/pexels-photo-8438918.jpeg?auto=compress&cs=tinysrgb&w=1200",
    ],
    'business': [
        f"{_PEXELS}/3184287/pexels-photo-3184287.jpeg?auto=compress&cs=tinysrgb&w=1200",
        f"{_PEXELS}/3182773/pexels-photo-3182773.jpeg?auto=compress&cs=tinysrgb&w=1200",
        f"{_PEXELS}/3184465/pexels-photo-3184465.jpeg?auto=compress&cs=tinysrgb&w=1200",
    ],
    'technology': [
        f"{_PEXELS}/1181675/pexels-photo-1181675.jpeg?auto=compress&cs=tinysrgb&w=1200",
        f"{_PEXELS}/1181244/pexels-photo-1181244.jpeg?auto=compress&cs=tinysrgb&w=1200",
        f"{_PEXELS}/1181677/pexels-photo-1181677.jpeg?auto=compress&cs=tinysrgb&w=1200",
    ],
    'money': [
        f"{_PEXELS}/164527/pexels-photo-164527.jpeg?auto=compress&cs=tinysrgb&w=1200",
        f"{_PEXELS}/3943716/pexels-photo-3943716.jpeg?auto=compress&cs=tinysrgb&w=1200",
        f"{_PEXELS}/259027/pexels-photo-259027.jpeg?auto=compress&cs=tinysrgb&w=1200",
    ],
    'education': [
        f"{_PEXELS}/159844/books-student-study-education-159844.jpeg?auto=compress&cs=tinysrgb&w=1200",
        f"{_PEXELS}/159711/books-bookstore-book-reading-159711.jpeg?auto=compress&cs=tinysrgb&w=1200",
        f"{_PEXELS}/256455/pexels-photo-256455.jpeg?auto=compress&cs=tinysrgb&w=1200",
    ],
    'health': [
        f"{_PEXELS}/3768131/pexels-photo-3768131.jpeg?auto=compress&cs=tinysrgb&w=1200",
        f"{_PEXELS}/3683107/pexels-photo-3683107.jpeg?auto=compress&cs=tinysrgb&w=1200",
        f"{_PEXELS}/1640774/pexels-photo-1640774.jpeg?auto=compress&cs=tinysrgb&w=1200",
    ],
    'marketing': [
        f"{_PEXELS}/3183197/pexels-photo-3183197.jpeg?auto=compress&cs=tinysrgb&w=1200",
        f"{_PEXELS}/3184418/pexels-photo-3184418.jpeg?auto=compress&cs=tinysrgb&w=1200",
        f"{_PEXELS}/3184639/pexels-photo-3184639.jpeg?auto=compress&cs=tinysrgb&w=1200",
    ],
    'automation': [
        f"{_PEXELS}/3861969/pexels-photo-3861969.jpeg?auto=compress&cs=tinysrgb&w=1200",
        f"{_PEXELS}/159299/graphic-design-studio-tracfone-programming-html-159299.jpeg?auto=compress&cs=tinysrgb&w=1200",
        f"{_PEXELS}/3861958/pexels-photo-3861958.jpeg?auto=compress&cs=tinysrgb&w=1200",
    ],
}


def default_image_for_section(section_type: str) -> str:
    """Stock image for a section type."""
    return DEFAULT_SECTION_IMAGES.get(section_type, DEFAULT_SECTION_IMAGES['article'])


def select_catalog_image(topic: str, section_title: str) -> str:
    """
    Pick a stock image for a section.

    The keyword list is selected from the combined topic and title; the
    image within it is ``sum(code points of topic + title) % len(images)``.
    """
    haystack = f"{topic} {section_title}".lower()

    for keyword, images in IMAGE_CATALOG.items():
        if keyword in haystack:
            index = sum(ord(char) for char in topic + section_title) % len(images)
            return images[index]

    return default_image_for_section('article')


def generate_ai_image(api_key: str, section_title: str, topic: str) -> str:
    """
    Generate a section image with the OpenAI image API.

    Args:
        api_key: OpenAI credential
        section_title: Section the image illustrates
        topic: Newsletter topic

    Returns:
        URL of the generated image

    Raises:
        ProviderError: When the API fails or returns no image
    """
    import openai

    prompt = (
        f"A professional, high-quality image for a newsletter section about: {section_title}. "
        f"Topic: {topic}. Style: clean, modern, professional, suitable for business newsletter."
    )

    client = openai.OpenAI(api_key=api_key, timeout=get_config().PROVIDER_REQUEST_TIMEOUT, max_retries=0)
    try:
        response = client.images.generate(
            model="dall-e-3",
            prompt=prompt,
            n=1,
            size="1792x1024",
            quality="standard"
        )
    except openai.APIError as e:
        raise ProviderError(f"Image generation failed: {str(e)}", kind="openai") from e

    if not response.data or not response.data[0].url:
        raise ProviderError("Image generation returned no image URL", kind="openai")

    logger.info("Generated AI image for section")
    return response.data[0].url
