"""
Knowledge and event retrieval.

Both lookups are optional context for section prompts; any failure
degrades to an empty list.
"""

import logging
from typing import Any, Dict, List

from pydantic import ValidationError as PydanticValidationError

from ..core.models.content import EventItem, KnowledgeItem
from ..integrations.supabase_store import NewsletterStore

logger = logging.getLogger(__name__)


def _to_items(rows: List[Dict[str, Any]], model) -> List[Any]:
    items = []
    for row in rows:
        try:
            items.append(model(**{key: value for key, value in row.items() if value is not None}))
        except (PydanticValidationError, TypeError) as e:
            logger.warning(f"Skipping malformed {model.__name__} row: {str(e)}")
    return items


class KnowledgeRetriever:
    """Query the organization's knowledge base for a topic."""

    def __init__(self, store: NewsletterStore, limit: int = 5):
        self.store = store
        self.limit = limit
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def retrieve(self, organization_id: str, topic: str) -> List[KnowledgeItem]:
        """
        Similarity search with a substring-match fallback.

        Returns:
            Matching knowledge items, or an empty list on total failure
        """
        try:
            rows = self.store.search_knowledge(organization_id, topic, self.limit)
        except Exception as e:
            self.logger.error(f"Vector search error: {str(e)}")
            try:
                rows = self.store.match_knowledge(organization_id, topic, self.limit)
            except Exception as fallback_error:
                self.logger.error(f"Knowledge base query failed: {str(fallback_error)}")
                return []

        items = _to_items(rows, KnowledgeItem)
        self.logger.info(f"Found {len(items)} knowledge items for topic")
        return items


def collect_events(store: NewsletterStore, organization_id: str, limit: int = 10) -> List[EventItem]:
    """Upcoming events ordered by relevance; empty on failure."""
    try:
        rows = store.fetch_upcoming_events(organization_id, limit)
    except Exception as e:
        logger.warning(f"Failed to fetch events for newsletter: {str(e)}")
        return []

    events = _to_items(rows, EventItem)
    logger.info(f"Found {len(events)} relevant events for newsletter")
    return events
