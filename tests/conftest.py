"""
Shared fixtures for Newsletter Generator tests.

Everything here runs without network access: the job store lives in
memory and providers are reached through scripted text generators.
"""

import base64
import json
import uuid
from typing import Any, Dict, List, Optional

import pytest

from newsletter_generator.core.models.job import GenerationRequest, JobStatus
from newsletter_generator.core.models.provider import Provider, ProviderCategory, ProviderKind
from newsletter_generator.integrations.supabase_store import NewsletterStore


ORGANIZATION_ID = "org-1"

SECTION_HTML = (
    "<p>Hospitals now use machine learning models to triage patients faster, "
    "cutting waiting times for the most urgent cases.</p>"
)


class InMemoryNewsletterStore(NewsletterStore):
    """NewsletterStore kept in dictionaries."""

    def __init__(self, providers: List[Dict[str, Any]] = None, brand: Dict[str, Any] = None,
                 knowledge: List[Dict[str, Any]] = None, events: List[Dict[str, Any]] = None):
        self.jobs: Dict[str, Dict[str, Any]] = {}
        self.providers = providers or []
        self.brand = brand
        self.knowledge = knowledge or []
        self.events = events or []
        self.vector_search_error: Optional[Exception] = None
        self.progress_history: List[int] = []

    def create_job(self, organization_id: str, title: str, first_log: str) -> str:
        job_id = str(uuid.uuid4())
        self.jobs[job_id] = {
            'id': job_id,
            'organization_id': organization_id,
            'title': title,
            'content': {},
            'status': JobStatus.GENERATING.value,
            'generation_progress': 0,
            'generation_logs': [first_log],
        }
        return job_id

    def get_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        return self.jobs.get(job_id)

    def update_progress(self, job_id: str, progress: int, logs: List[str]):
        self.progress_history.append(progress)
        self.jobs[job_id].update(generation_progress=progress, generation_logs=logs)

    def complete_job(self, job_id: str, content: Dict[str, Any], title: str, logs: List[str]):
        self.jobs[job_id].update(
            status=JobStatus.READY.value,
            generation_progress=100,
            content=content,
            title=title,
            generation_logs=logs
        )

    def fail_job(self, job_id: str, logs: List[str]):
        self.jobs[job_id].update(status=JobStatus.FAILED.value, generation_logs=logs)

    def fetch_providers(self, organization_id: str) -> List[Dict[str, Any]]:
        return list(self.providers)

    def fetch_brand_config(self, organization_id: str) -> Optional[Dict[str, Any]]:
        return self.brand

    def search_knowledge(self, organization_id: str, query: str, limit: int) -> List[Dict[str, Any]]:
        if self.vector_search_error:
            raise self.vector_search_error
        return self.knowledge[:limit]

    def match_knowledge(self, organization_id: str, query: str, limit: int) -> List[Dict[str, Any]]:
        term = query.lower()
        return [
            item for item in self.knowledge
            if term in item.get('title', '').lower() or term in item.get('content', '').lower()
        ][:limit]

    def fetch_upcoming_events(self, organization_id: str, limit: int) -> List[Dict[str, Any]]:
        return self.events[:limit]


class ScriptedGenerator:
    """
    Text generator standing in for real providers.

    Planning prompts get ``plan``; every other prompt gets ``section``.
    Providers named in ``failing`` raise instead.
    """

    def __init__(self, plan: Optional[Dict[str, Any]] = None, section: str = SECTION_HTML,
                 failing: Dict[str, str] = None):
        self.plan = plan
        self.section = section
        self.failing = failing or {}
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, provider: Provider, prompt: str, settings: Optional[Dict[str, Any]] = None) -> str:
        self.calls.append({'provider': provider.name, 'prompt': prompt, 'settings': settings})

        if provider.name in self.failing:
            raise RuntimeError(self.failing[provider.name])

        if is_plan_prompt(prompt):
            return json.dumps(self.plan) if self.plan is not None else "not json"
        return self.section

    def providers_called(self) -> List[str]:
        return [call['provider'] for call in self.calls]

    def section_prompts(self) -> List[str]:
        return [call['prompt'] for call in self.calls if not is_plan_prompt(call['prompt'])]


def is_plan_prompt(prompt: str) -> bool:
    return prompt.startswith("You are an expert newsletter content strategist")


def encode_key(key: str) -> str:
    return base64.b64encode(key.encode('utf-8')).decode('ascii')


def provider_row(name: str, key: Optional[str] = "sk-test", type: str = 'generation',
                 encrypted: Optional[str] = None, **extra) -> Dict[str, Any]:
    """An ``ai_providers`` row with a base64-encoded credential."""
    row = {
        'id': f"provider-{name.lower().replace(' ', '-')}",
        'organization_id': ORGANIZATION_ID,
        'name': name,
        'type': type,
        'api_key_encrypted': encrypted if encrypted is not None else (encode_key(key) if key else None),
        'is_active': True,
        'settings': {},
    }
    row.update(extra)
    return row


def make_provider(name: str, credential: str = "sk-test", kind: ProviderKind = ProviderKind.OPENAI,
                  category: ProviderCategory = ProviderCategory.GENERATION) -> Provider:
    return Provider(id=f"provider-{name}", name=name, category=category, kind=kind, credential=credential)


def make_request(**overrides) -> GenerationRequest:
    values = {
        'organization_id': ORGANIZATION_ID,
        'topic': "AI in Healthcare",
        'mode': 'quick',
        'num_sections': 3,
        'skip_research': True,
        'include_events': False,
        'include_knowledge': False,
    }
    values.update(overrides)
    return GenerationRequest(**values)


@pytest.fixture
def sample_plan() -> Dict[str, Any]:
    return {
        'title': "How AI Is Quietly Transforming Patient Care",
        'subtitle': "What clinicians and patients gain from smarter hospitals",
        'sections': [
            {'type': 'hero', 'title': "The Diagnostic Shift", 'description': "Opens the newsletter"},
            {'type': 'article', 'title': "Faster Triage", 'description': "How queues get shorter"},
            {'type': 'summary', 'title': "What Comes Next", 'description': "Takeaways for readers"},
        ],
        'tone': 'professional',
        'target_audience': "Healthcare leaders",
        'content_approach': 'insightful_analysis',
    }


@pytest.fixture
def store() -> InMemoryNewsletterStore:
    return InMemoryNewsletterStore()
