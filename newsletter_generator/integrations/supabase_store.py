"""
Supabase-backed newsletter store.

This module provides the persistence collaborator used by the pipeline:
newsletter job records, organization providers and brand settings,
knowledge retrieval and upcoming events, all stored in Supabase.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any
from supabase import create_client, Client

from ..core.models.errors import PersistenceError, ExternalServiceError, ConfigurationError
from ..core.models.job import JobStatus
from ..utils.config import get_config

logger = logging.getLogger(__name__)

NEWSLETTERS_TABLE = 'newsletters'
PROVIDERS_TABLE = 'ai_providers'
BRAND_TABLE = 'brand_configs'
KNOWLEDGE_TABLE = 'knowledge_items'
EVENTS_TABLE = 'events'
VECTOR_SEARCH_FUNCTION = 'vector-search'

# Cache for Supabase client
_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """
    Get or create Supabase client instance.

    Returns:
        Supabase client instance

    Raises:
        ConfigurationError: If credentials are not configured
    """
    global _supabase_client

    if _supabase_client is not None:
        return _supabase_client

    config = get_config()
    if not config.SUPABASE_URL or not config.SUPABASE_SERVICE_ROLE_KEY:
        raise ConfigurationError(
            "Supabase credentials not found (SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY required)",
            config_key='SUPABASE_URL'
        )

    _supabase_client = create_client(config.SUPABASE_URL, config.SUPABASE_SERVICE_ROLE_KEY)
    logger.info("Supabase client initialized successfully")
    return _supabase_client


class NewsletterStore(ABC):
    """Persistence operations the pipeline and the API depend on."""

    # Job records

    @abstractmethod
    def create_job(self, organization_id: str, title: str, first_log: str) -> str:
        """Insert a job in ``generating`` state and return its id."""

    @abstractmethod
    def get_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Return the raw job record or None."""

    @abstractmethod
    def update_progress(self, job_id: str, progress: int, logs: List[str]):
        """Persist progress and the full log list."""

    @abstractmethod
    def complete_job(self, job_id: str, content: Dict[str, Any], title: str, logs: List[str]):
        """Persist the final document and mark the job ready."""

    @abstractmethod
    def fail_job(self, job_id: str, logs: List[str]):
        """Mark the job failed."""

    # Organization configuration

    @abstractmethod
    def fetch_providers(self, organization_id: str) -> List[Dict[str, Any]]:
        """Active provider rows ordered by name."""

    @abstractmethod
    def fetch_brand_config(self, organization_id: str) -> Optional[Dict[str, Any]]:
        """Brand settings row or None."""

    # Reference content

    @abstractmethod
    def search_knowledge(self, organization_id: str, query: str, limit: int) -> List[Dict[str, Any]]:
        """Similarity search over the organization's knowledge items."""

    @abstractmethod
    def match_knowledge(self, organization_id: str, query: str, limit: int) -> List[Dict[str, Any]]:
        """Substring match over knowledge item titles and contents."""

    @abstractmethod
    def fetch_upcoming_events(self, organization_id: str, limit: int) -> List[Dict[str, Any]]:
        """Future events ordered by relevance."""


class SupabaseNewsletterStore(NewsletterStore):
    """NewsletterStore implementation over a Supabase client."""

    def __init__(self, client: Client):
        self.client = client
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def create_job(self, organization_id: str, title: str, first_log: str) -> str:
        try:
            response = self.client.table(NEWSLETTERS_TABLE).insert({
                'organization_id': organization_id,
                'title': title,
                'content': {},
                'status': JobStatus.GENERATING.value,
                'generation_progress': 0,
                'generation_logs': [first_log],
            }).execute()
        except Exception as e:
            raise PersistenceError(f"Failed to create newsletter record: {str(e)}", table=NEWSLETTERS_TABLE) from e

        if not response.data:
            raise PersistenceError("Newsletter record was not returned after insert", table=NEWSLETTERS_TABLE)

        job_id = str(response.data[0]['id'])
        self.logger.info(f"Newsletter record created: {job_id}")
        return job_id

    def get_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        try:
            response = self.client.table(NEWSLETTERS_TABLE).select('*').eq('id', job_id).limit(1).execute()
        except Exception as e:
            raise PersistenceError(f"Failed to read newsletter record: {str(e)}",
                                   table=NEWSLETTERS_TABLE, job_id=job_id) from e
        return response.data[0] if response.data else None

    def update_progress(self, job_id: str, progress: int, logs: List[str]):
        self._update(job_id, {
            'generation_progress': progress,
            'generation_logs': logs,
        })

    def complete_job(self, job_id: str, content: Dict[str, Any], title: str, logs: List[str]):
        self._update(job_id, {
            'status': JobStatus.READY.value,
            'generation_progress': 100,
            'content': content,
            'title': title,
            'generation_logs': logs,
        })

    def fail_job(self, job_id: str, logs: List[str]):
        self._update(job_id, {
            'status': JobStatus.FAILED.value,
            'generation_logs': logs,
        })

    def _update(self, job_id: str, values: Dict[str, Any]):
        try:
            self.client.table(NEWSLETTERS_TABLE).update(values).eq('id', job_id).execute()
        except Exception as e:
            raise PersistenceError(f"Failed to update newsletter record: {str(e)}",
                                   table=NEWSLETTERS_TABLE, job_id=job_id) from e

    def fetch_providers(self, organization_id: str) -> List[Dict[str, Any]]:
        try:
            response = (
                self.client.table(PROVIDERS_TABLE)
                .select('*')
                .eq('organization_id', organization_id)
                .eq('is_active', True)
                .order('name')
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Failed to load AI providers: {str(e)}", table=PROVIDERS_TABLE) from e
        return response.data or []

    def fetch_brand_config(self, organization_id: str) -> Optional[Dict[str, Any]]:
        try:
            response = (
                self.client.table(BRAND_TABLE)
                .select('*')
                .eq('organization_id', organization_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            self.logger.warning(f"Failed to load brand configuration, using defaults: {str(e)}")
            return None
        return response.data[0] if response.data else None

    def search_knowledge(self, organization_id: str, query: str, limit: int) -> List[Dict[str, Any]]:
        try:
            data = self.client.functions.invoke(
                VECTOR_SEARCH_FUNCTION,
                invoke_options={
                    'body': {
                        'query': query,
                        'organization_id': organization_id,
                        'limit': limit,
                    },
                    'responseType': 'json',
                }
            )
        except Exception as e:
            raise ExternalServiceError(f"Vector search failed: {str(e)}", service=VECTOR_SEARCH_FUNCTION) from e

        if isinstance(data, (bytes, str)):
            data = json.loads(data or '{}')
        return (data or {}).get('results') or []

    def match_knowledge(self, organization_id: str, query: str, limit: int) -> List[Dict[str, Any]]:
        # PostgREST filter syntax uses commas and parentheses as separators
        term = query.replace(',', ' ').replace('(', ' ').replace(')', ' ')
        try:
            response = (
                self.client.table(KNOWLEDGE_TABLE)
                .select('*')
                .eq('organization_id', organization_id)
                .or_(f"title.ilike.%{term}%,content.ilike.%{term}%")
                .limit(limit)
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Knowledge text search failed: {str(e)}", table=KNOWLEDGE_TABLE) from e
        return response.data or []

    def fetch_upcoming_events(self, organization_id: str, limit: int) -> List[Dict[str, Any]]:
        try:
            response = (
                self.client.table(EVENTS_TABLE)
                .select('*')
                .eq('organization_id', organization_id)
                .gte('date_start', datetime.now(timezone.utc).isoformat())
                .order('relevance_score', desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Failed to load events: {str(e)}", table=EVENTS_TABLE) from e
        return response.data or []


def create_newsletter_store() -> NewsletterStore:
    """Create the Supabase-backed store from configuration."""
    return SupabaseNewsletterStore(get_supabase_client())
