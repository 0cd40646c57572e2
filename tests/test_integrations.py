"""
Tests for the research and generation adapters.

HTTP calls go through a patched ``requests.request`` and SDK clients are
replaced with stand-ins, so nothing leaves the process.
"""

from types import SimpleNamespace

import pytest
import requests

from newsletter_generator.core.models.errors import ProviderError
from newsletter_generator.core.models.provider import ProviderCategory, ProviderKind
from newsletter_generator.integrations import research
from newsletter_generator.integrations.llm import client
from tests.conftest import make_provider

TOPIC = "AI in Healthcare"


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self.payload = payload
        self.text = text

    def json(self):
        if self.payload is None:
            raise ValueError("No JSON object could be decoded")
        return self.payload


class FakeHTTP:
    """Stands in for ``requests.request`` and records every call."""

    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse(payload={})
        self.error = error
        self.calls = []

    def __call__(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error:
            raise self.error
        return self.response


@pytest.fixture
def http(monkeypatch):
    fake = FakeHTTP()
    monkeypatch.setattr(research.requests, 'request', fake)
    return fake


def search_provider(name, kind):
    return make_provider(name, credential="search-key", kind=kind, category=ProviderCategory.RESEARCH)


# Research adapters

def test_tavily_lists_answer_and_top_three_findings(http):
    http.response = FakeResponse(payload={
        'answer': "Hospitals are piloting ambient scribes.",
        'results': [{'title': f"Result {n}", 'content': "x" * 300} for n in range(1, 5)],
    })

    content = research.research_topic(search_provider("Tavily", ProviderKind.TAVILY), TOPIC)

    assert content.startswith("Hospitals are piloting ambient scribes.\n\nKey findings:\n")
    assert f"1. Result 1: {'x' * 200}...\n" in content
    assert "3. Result 3" in content
    assert "Result 4" not in content

    method, url, kwargs = http.calls[0]
    assert (method, url) == ("POST", research.TavilyResearchAdapter.endpoint)
    assert kwargs['json']['api_key'] == "search-key"
    assert kwargs['json']['include_answer'] is True


def test_serpapi_formats_organic_results(http):
    http.response = FakeResponse(payload={'organic_results': [
        {'title': "FDA clears triage model", 'snippet': "The agency approved...", 'link': "https://news.test/a"},
        {'title': "Nurses adopt scheduling AI", 'link': "https://news.test/b"},
    ]})

    content = research.research_topic(search_provider("SerpAPI", ProviderKind.SERPAPI), TOPIC)

    assert content == (
        f'Recent search results for "{TOPIC}":\n\n'
        "1. FDA clears triage model\n"
        "    The agency approved...\n"
        "    Source: https://news.test/a\n\n"
        "2. Nurses adopt scheduling AI\n"
        "    Source: https://news.test/b\n\n"
    )
    method, _, kwargs = http.calls[0]
    assert method == "GET"
    assert kwargs['params']['q'] == f"{TOPIC} news latest week"


def test_perplexity_returns_first_choice(http):
    http.response = FakeResponse(payload={'choices': [
        {'message': {'content': "Sepsis alerts now fire six hours earlier."}},
        {'message': {'content': "ignored"}},
    ]})

    content = research.research_topic(search_provider("Perplexity", ProviderKind.PERPLEXITY), TOPIC)

    assert content == "Sepsis alerts now fire six hours earlier."
    _, _, kwargs = http.calls[0]
    assert kwargs['headers']['Authorization'] == "Bearer search-key"
    assert kwargs['json']['model'] == research.PerplexityResearchAdapter.model


@pytest.mark.parametrize("response,message", [
    (FakeResponse(401, {'error': {'message': "Invalid API key"}}), "Tavily API error: 401 - Invalid API key"),
    (FakeResponse(429, {'message': "Too many requests"}), "Tavily API error: 429 - Too many requests"),
    (FakeResponse(500, None, "upstream down"), "Tavily API error: 500 - upstream down"),
])
def test_error_status_becomes_provider_error(http, response, message):
    http.response = response

    with pytest.raises(ProviderError) as exc_info:
        research.research_topic(search_provider("Tavily", ProviderKind.TAVILY), TOPIC)

    assert exc_info.value.message == message
    assert exc_info.value.status_code == response.status_code


def test_request_timeout_becomes_provider_error(http):
    http.error = requests.exceptions.Timeout("read timed out")

    with pytest.raises(ProviderError, match="SerpAPI request timed out"):
        research.research_topic(search_provider("SerpAPI", ProviderKind.SERPAPI), TOPIC)


def test_empty_research_raises_provider_error(http):
    http.response = FakeResponse(payload={'organic_results': []})

    with pytest.raises(ProviderError) as exc_info:
        research.research_topic(search_provider("My SerpAPI", ProviderKind.SERPAPI), TOPIC)

    assert exc_info.value.provider == "My SerpAPI"
    assert "returned no research results" in exc_info.value.message


def test_generation_providers_research_through_their_model(http):
    calls = []

    def text_generator(provider, prompt, settings=None):
        calls.append((provider.name, prompt, settings))
        return "Model research summary."

    provider = make_provider("OpenAI", kind=ProviderKind.OPENAI)
    content = research.research_topic(provider, TOPIC, text_generator)

    assert content == "Model research summary."
    assert calls == [("OpenAI", research.LLM_RESEARCH_PROMPT.format(topic=TOPIC), research.RESEARCH_SAMPLING)]
    assert http.calls == []


# Generation adapters

class FakeCompletions:
    def __init__(self, content="Generated text"):
        self.content = content
        self.params = None

    def create(self, **params):
        self.params = params
        choices = [] if self.content is None else [
            SimpleNamespace(message=SimpleNamespace(content=self.content))
        ]
        return SimpleNamespace(choices=choices)


class StubbedOpenAIAdapter(client.OpenAICompatibleAdapter):
    def __init__(self, completions: FakeCompletions):
        super().__init__(ProviderKind.OPENAI, "gpt-3.5-turbo")
        self.completions = completions

    def _create_client(self, api_key):
        return SimpleNamespace(chat=SimpleNamespace(completions=self.completions))


def test_merge_settings_precedence():
    provider = make_provider("OpenAI")
    provider.settings = {'model': "gpt-4o", 'temperature': 0.2}

    merged = client.merge_settings(provider, {'temperature': 0.9})

    assert merged == {'model': "gpt-4o", 'temperature': 0.9, 'max_tokens': client.DEFAULT_SETTINGS['max_tokens']}


@pytest.mark.parametrize("model,expected", [
    ("gpt-5-mini", True),
    ("o3", True),
    ("O1-preview", True),
    ("gpt-4o", False),
    ("gpt-3.5-turbo", False),
])
def test_is_reasoning_model(model, expected):
    assert client._is_reasoning_model(model) is expected


def test_reasoning_models_use_max_completion_tokens():
    completions = FakeCompletions()
    adapter = StubbedOpenAIAdapter(completions)

    adapter.generate("Write a hook", "sk-test", {'model': "o3-mini", 'temperature': 0.7, 'max_tokens': 800})

    assert completions.params['max_completion_tokens'] == 800
    assert 'max_tokens' not in completions.params
    assert 'temperature' not in completions.params


def test_chat_models_send_temperature_and_max_tokens():
    completions = FakeCompletions()
    adapter = StubbedOpenAIAdapter(completions)

    adapter.generate("Write a hook", "sk-test", {'model': "gpt-4o", 'temperature': 0.4, 'max_tokens': 500})

    assert completions.params['temperature'] == 0.4
    assert completions.params['max_tokens'] == 500
    assert completions.params['messages'] == [{"role": "user", "content": "Write a hook"}]


@pytest.mark.parametrize("api_key", ["", "   "])
def test_blank_credential_is_rejected_before_calling(api_key):
    completions = FakeCompletions()
    adapter = StubbedOpenAIAdapter(completions)

    with pytest.raises(ProviderError, match="API key is empty or invalid"):
        adapter.generate("Write a hook", api_key, {})

    assert completions.params is None


@pytest.mark.parametrize("content", [None, "", "  \n"])
def test_empty_response_raises_provider_error(content):
    adapter = StubbedOpenAIAdapter(FakeCompletions(content))

    with pytest.raises(ProviderError, match="OpenAI returned an empty response"):
        adapter.generate("Write a hook", "sk-test", {})


def test_generate_text_tags_errors_with_provider_name(monkeypatch):
    monkeypatch.setitem(client._ADAPTERS, ProviderKind.OPENAI, StubbedOpenAIAdapter(FakeCompletions("")))

    with pytest.raises(ProviderError) as exc_info:
        client.generate_text(make_provider("Team OpenAI"), "Write a hook")

    assert exc_info.value.provider == "Team OpenAI"
    assert exc_info.value.details['provider'] == "Team OpenAI"
