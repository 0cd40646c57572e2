"""
API schemas for Newsletter Generator.
"""

from .newsletter import NewsletterCreateResponse, NewsletterStatusResponse

__all__ = [
    'NewsletterCreateResponse',
    'NewsletterStatusResponse'
]
