"""
Research clients for Newsletter Generator.

This module provides the research-category adapters: Perplexity,
Tavily and SerpAPI over HTTP, and a generic adapter that researches
through any generation model.
"""

import logging
import requests
from abc import ABC, abstractmethod
from typing import Dict, Any, Callable, Optional

from ..core.models.errors import ProviderError
from ..core.models.provider import Provider, ProviderKind
from ..utils.config import get_config
from .llm import generate_text, TextGenerator

logger = logging.getLogger(__name__)

RESEARCH_PROMPT = (
    'Research the latest information about "{topic}". Provide current news, trends, and '
    'developments from the past week. Focus on factual, recent information that would be '
    'valuable for a newsletter audience.'
)

LLM_RESEARCH_PROMPT = RESEARCH_PROMPT + ' Include specific examples, statistics, and actionable insights.'

RESEARCH_SAMPLING = {
    'temperature': 0.3,
    'max_tokens': 1500,
}

ResearchRunner = Callable[[Provider, str], str]


class ResearchAdapter(ABC):
    """Fetches current information about a topic."""

    service_name = "research"

    def __init__(self, timeout: int = 60):
        self.timeout = timeout
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @abstractmethod
    def research(self, provider: Provider, topic: str) -> str:
        """Return research text for a topic or raise ProviderError."""

    def _post(self, url: str, payload: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        return self._request("POST", url, json=payload, headers=headers)

    def _get(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("GET", url, params=params)

    def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        try:
            response = requests.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            raise ProviderError(f"{self.service_name} request timed out", kind=self.service_name.lower()) from e
        except requests.exceptions.RequestException as e:
            raise ProviderError(f"{self.service_name} request failed: {str(e)}", kind=self.service_name.lower()) from e
        return self._parse(response)

    def _parse(self, response: requests.Response) -> Dict[str, Any]:
        if response.status_code != 200:
            raise ProviderError(
                f"{self.service_name} API error: {response.status_code} - {_error_message(response)}",
                kind=self.service_name.lower(),
                status_code=response.status_code
            )
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(f"{self.service_name} returned invalid JSON", kind=self.service_name.lower()) from e


class PerplexityResearchAdapter(ResearchAdapter):
    """Online research through Perplexity chat completions."""

    service_name = "Perplexity"
    endpoint = "https://api.perplexity.ai/chat/completions"
    model = "llama-3.1-sonar-small-128k-online"

    def research(self, provider: Provider, topic: str) -> str:
        data = self._post(
            self.endpoint,
            {
                "model": provider.settings.get('model') or self.model,
                "messages": [{"role": "user", "content": RESEARCH_PROMPT.format(topic=topic)}],
                "max_tokens": RESEARCH_SAMPLING['max_tokens'],
                "temperature": RESEARCH_SAMPLING['temperature'],
            },
            headers={
                "Authorization": f"Bearer {provider.credential}",
                "Content-Type": "application/json",
            }
        )
        choices = data.get('choices') or []
        return (choices[0].get('message', {}).get('content') or '') if choices else ''


class TavilyResearchAdapter(ResearchAdapter):
    """Web search through Tavily with a synthesized answer."""

    service_name = "Tavily"
    endpoint = "https://api.tavily.com/search"

    def research(self, provider: Provider, topic: str) -> str:
        data = self._post(
            self.endpoint,
            {
                "api_key": provider.credential,
                "query": f"Latest news and developments about {topic} in the past week",
                "search_depth": "advanced",
                "include_answer": True,
                "include_raw_content": False,
                "max_results": 5,
            }
        )

        content = data.get('answer') or ''
        results = data.get('results') or []
        if results:
            content += '\n\nKey findings:\n'
            for index, result in enumerate(results[:3], start=1):
                content += f"{index}. {result.get('title', '')}: {(result.get('content') or '')[:200]}...\n"
        return content


class SerpApiResearchAdapter(ResearchAdapter):
    """Google results through SerpAPI."""

    service_name = "SerpAPI"
    endpoint = "https://serpapi.com/search.json"

    def research(self, provider: Provider, topic: str) -> str:
        data = self._get(
            self.endpoint,
            {
                "engine": "google",
                "q": f"{topic} news latest week",
                "api_key": provider.credential,
                "num": 5,
            }
        )

        results = data.get('organic_results') or []
        if not results:
            return ''

        content = f'Recent search results for "{topic}":\n\n'
        for index, result in enumerate(results[:5], start=1):
            content += f"{index}. {result.get('title', '')}\n"
            if result.get('snippet'):
                content += f"    {result['snippet']}\n"
            content += f"    Source: {result.get('link', '')}\n\n"
        return content


class ModelResearchAdapter(ResearchAdapter):
    """Research through a generation model when no search API is configured."""

    service_name = "Model research"

    def __init__(self, text_generator: TextGenerator = generate_text, timeout: int = 60):
        super().__init__(timeout)
        self.text_generator = text_generator

    def research(self, provider: Provider, topic: str) -> str:
        return self.text_generator(provider, LLM_RESEARCH_PROMPT.format(topic=topic), RESEARCH_SAMPLING)


def _error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200] or 'Unknown error'

    error = payload.get('error') if isinstance(payload, dict) else None
    if isinstance(error, dict):
        return error.get('message') or 'Unknown error'
    return error or (payload.get('message') if isinstance(payload, dict) else None) or 'Unknown error'


_timeout = get_config().PROVIDER_REQUEST_TIMEOUT

RESEARCH_ADAPTERS: Dict[ProviderKind, ResearchAdapter] = {
    ProviderKind.PERPLEXITY: PerplexityResearchAdapter(timeout=_timeout),
    ProviderKind.TAVILY: TavilyResearchAdapter(timeout=_timeout),
    ProviderKind.SERPAPI: SerpApiResearchAdapter(timeout=_timeout),
}


def research_topic(provider: Provider, topic: str, text_generator: TextGenerator = generate_text) -> str:
    """
    Research a topic with one provider.

    Search-API kinds use their dedicated adapter; every other kind
    researches through its generation model.

    Raises:
        ProviderError: When the provider fails or returns nothing usable
    """
    adapter = RESEARCH_ADAPTERS.get(provider.kind) or ModelResearchAdapter(text_generator)
    content = adapter.research(provider, topic)

    if not content or not content.strip():
        raise ProviderError(
            f"{adapter.service_name} returned no research results",
            provider=provider.name,
            kind=provider.kind.value
        )

    logger.info(f"Research from {provider.name} returned {len(content)} chars")
    return content
