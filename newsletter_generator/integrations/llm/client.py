"""
Generation adapters for Newsletter Generator.

Every provider kind maps to one adapter exposing the same
``generate(prompt, api_key, settings) -> str`` call. Adapters use the
native SDKs; OpenAI-compatible vendors (DeepSeek, Grok, OpenRouter)
share the OpenAI SDK with a custom base URL.

Supports:
- OpenAI (openai SDK)
- Gemini (google-generativeai SDK)
- Anthropic (anthropic SDK)
- DeepSeek, Grok, OpenRouter (OpenAI-compatible APIs)
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, Callable

from ...core.models.errors import ProviderError
from ...core.models.provider import Provider, ProviderKind
from ...utils.config import get_config

logger = logging.getLogger(__name__)

# Sampling defaults, overridden by provider settings then by the caller
DEFAULT_SETTINGS = {
    'temperature': 0.7,
    'max_tokens': 1000,
}

TextGenerator = Callable[[Provider, str, Optional[Dict[str, Any]]], str]


class GenerationAdapter(ABC):
    """Uniform text generation capability for one provider kind."""

    def __init__(self, kind: ProviderKind, default_model: str, timeout: int = 60):
        self.kind = kind
        self.default_model = default_model
        self.timeout = timeout
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def label(self) -> str:
        return _LABELS.get(self.kind, self.kind.value)

    def generate(self, prompt: str, api_key: str, settings: Dict[str, Any]) -> str:
        """
        Generate text for a prompt.

        Args:
            prompt: Full prompt text
            api_key: Decrypted provider credential
            settings: Merged sampling settings (model, temperature, max_tokens)

        Returns:
            Generated text

        Raises:
            ProviderError: On missing credential, API failure or empty output
        """
        if not api_key or not api_key.strip():
            raise ProviderError(f"{self.label} API key is empty or invalid", kind=self.kind.value)

        model = settings.get('model') or self.default_model
        start_time = time.time()
        self.logger.info(f"Generating with {self.kind.value}/{model}")

        content = self._generate(prompt, api_key, model, settings)

        if not content or not content.strip():
            raise ProviderError(f"{self.label} returned an empty response", kind=self.kind.value)

        self.logger.info(f"Received {len(content)} chars from {self.kind.value}/{model} "
                         f"in {time.time() - start_time:.2f}s")
        return content

    @abstractmethod
    def _generate(self, prompt: str, api_key: str, model: str, settings: Dict[str, Any]) -> str:
        """Provider-specific call."""


class OpenAICompatibleAdapter(GenerationAdapter):
    """Adapter for OpenAI and every vendor exposing its chat completions API."""

    def __init__(self, kind: ProviderKind, default_model: str, base_url: Optional[str] = None,
                 default_headers: Optional[Dict[str, str]] = None, timeout: int = 60):
        super().__init__(kind, default_model, timeout)
        self.base_url = base_url
        self.default_headers = default_headers or {}

    def _create_client(self, api_key: str):
        import openai
        return openai.OpenAI(
            api_key=api_key,
            base_url=self.base_url,
            default_headers=self.default_headers or None,
            timeout=self.timeout,
            max_retries=0
        )

    def _generate(self, prompt: str, api_key: str, model: str, settings: Dict[str, Any]) -> str:
        import openai

        request_params = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
        }

        # Reasoning models reject temperature and use max_completion_tokens
        if _is_reasoning_model(model):
            self.logger.info(f"Reasoning model detected ({model}) - excluding temperature parameter")
            if settings.get('max_tokens'):
                request_params["max_completion_tokens"] = settings['max_tokens']
        else:
            request_params["temperature"] = settings.get('temperature')
            if settings.get('max_tokens'):
                request_params["max_tokens"] = settings['max_tokens']

        try:
            response = self._create_client(api_key).chat.completions.create(**request_params)
        except openai.APIStatusError as e:
            raise ProviderError(
                f"{self.label} API error: {e.status_code} - {e.message}",
                kind=self.kind.value,
                status_code=e.status_code
            ) from e
        except openai.APIError as e:
            raise ProviderError(f"{self.label} API error: {str(e)}", kind=self.kind.value) from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


class GeminiAdapter(GenerationAdapter):
    """Adapter for Google Gemini through google-generativeai."""

    def _generate(self, prompt: str, api_key: str, model: str, settings: Dict[str, Any]) -> str:
        import google.generativeai as genai

        genai.configure(api_key=api_key)
        model_instance = genai.GenerativeModel(model)

        generation_config = {}
        if settings.get('temperature') is not None:
            generation_config["temperature"] = settings['temperature']
        if settings.get('max_tokens'):
            generation_config["max_output_tokens"] = settings['max_tokens']

        try:
            response = model_instance.generate_content(
                prompt,
                generation_config=generation_config or None,
                request_options={"timeout": self.timeout}
            )
            content = response.text
        except ValueError as e:
            # response.text raises when the candidate was blocked or empty
            raise ProviderError(f"Gemini returned no usable text: {str(e)}", kind=self.kind.value) from e
        except Exception as e:
            raise ProviderError(f"Gemini API error: {str(e)}", kind=self.kind.value) from e

        return strip_code_fence(content or "")


class AnthropicAdapter(GenerationAdapter):
    """Adapter for Anthropic Claude models."""

    def _generate(self, prompt: str, api_key: str, model: str, settings: Dict[str, Any]) -> str:
        import anthropic

        client = anthropic.Anthropic(api_key=api_key, timeout=self.timeout, max_retries=0)
        try:
            response = client.messages.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                temperature=settings.get('temperature', DEFAULT_SETTINGS['temperature']),
                max_tokens=settings.get('max_tokens') or DEFAULT_SETTINGS['max_tokens']
            )
        except anthropic.APIStatusError as e:
            raise ProviderError(
                f"Anthropic API error: {e.status_code} - {e.message}",
                kind=self.kind.value,
                status_code=e.status_code
            ) from e
        except anthropic.APIError as e:
            raise ProviderError(f"Anthropic API error: {str(e)}", kind=self.kind.value) from e

        return "".join(block.text for block in response.content if getattr(block, 'text', None))


def strip_code_fence(content: str) -> str:
    """Remove a single code fence wrapping the whole response."""
    text = content.strip()
    if text.startswith("```") and text.endswith("```") and len(text) >= 6:
        text = text[3:-3]
        first_line, _, rest = text.partition("\n")
        # Drop a language tag such as ```json
        if rest and first_line.strip().isalpha():
            text = rest
        text = text.strip()
    return text


def _is_reasoning_model(model: str) -> bool:
    model_lower = model.lower()
    return model_lower.startswith(("gpt-5", "gpt-6", "o1", "o3", "o4"))


_LABELS = {
    ProviderKind.OPENAI: "OpenAI",
    ProviderKind.GEMINI: "Gemini",
    ProviderKind.ANTHROPIC: "Anthropic",
    ProviderKind.DEEPSEEK: "DeepSeek",
    ProviderKind.GROK: "Grok",
    ProviderKind.OPENROUTER: "OpenRouter",
    ProviderKind.PERPLEXITY: "Perplexity",
    ProviderKind.TAVILY: "Tavily",
    ProviderKind.SERPAPI: "SerpAPI",
}

_ADAPTERS: Dict[ProviderKind, GenerationAdapter] = {}


def register_adapter(adapter: GenerationAdapter):
    """Register (or replace) the adapter used for a provider kind."""
    _ADAPTERS[adapter.kind] = adapter
    logger.debug(f"Registered generation adapter for {adapter.kind.value}")


def get_adapter(kind: ProviderKind) -> GenerationAdapter:
    """Return the adapter for a kind; unknown kinds use the OpenAI adapter."""
    return _ADAPTERS.get(kind) or _ADAPTERS[ProviderKind.OPENAI]


def register_default_adapters(timeout: int = 60):
    """Register the built-in adapters."""
    register_adapter(OpenAICompatibleAdapter(ProviderKind.OPENAI, "gpt-3.5-turbo", timeout=timeout))
    register_adapter(OpenAICompatibleAdapter(
        ProviderKind.DEEPSEEK, "deepseek-chat",
        base_url="https://api.deepseek.com/v1", timeout=timeout
    ))
    register_adapter(OpenAICompatibleAdapter(
        ProviderKind.GROK, "grok-beta",
        base_url="https://api.x.ai/v1", timeout=timeout
    ))
    register_adapter(OpenAICompatibleAdapter(
        ProviderKind.OPENROUTER, "x-ai/grok-4-fast:free",
        base_url="https://openrouter.ai/api/v1",
        default_headers={
            "HTTP-Referer": "https://ai-newsletter.com",
            "X-Title": "AI Newsletter Platform",
        },
        timeout=timeout
    ))
    register_adapter(GeminiAdapter(ProviderKind.GEMINI, "gemini-2.0-flash-exp", timeout=timeout))
    register_adapter(AnthropicAdapter(ProviderKind.ANTHROPIC, "claude-3-5-sonnet-20241022", timeout=timeout))


def merge_settings(provider: Provider, settings: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Merge default, provider and call-level sampling settings."""
    return {
        **DEFAULT_SETTINGS,
        **(provider.settings or {}),
        **(settings or {}),
    }


def generate_text(provider: Provider, prompt: str, settings: Optional[Dict[str, Any]] = None) -> str:
    """
    Generate text with a configured provider.

    Args:
        provider: Provider to call
        prompt: Prompt text
        settings: Call-level sampling overrides

    Returns:
        Generated text
    """
    adapter = get_adapter(provider.kind)
    try:
        return adapter.generate(prompt, provider.credential, merge_settings(provider, settings))
    except ProviderError as e:
        e.provider = provider.name
        e.details["provider"] = provider.name
        raise


register_default_adapters(timeout=get_config().PROVIDER_REQUEST_TIMEOUT)
