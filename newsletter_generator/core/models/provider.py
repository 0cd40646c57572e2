"""
Provider and brand configuration models.

Providers are read-only to the pipeline: they are loaded once per job
from the organization's configuration store and resolved to a
ProviderKind before any stage runs.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional
from pydantic import BaseModel, Field


class ProviderCategory(str, Enum):
    """What a provider is used for."""
    RESEARCH = "research"
    GENERATION = "generation"


class ProviderKind(str, Enum):
    """Concrete provider integrations with a registered adapter."""
    OPENAI = "openai"
    GEMINI = "gemini"
    ANTHROPIC = "anthropic"
    DEEPSEEK = "deepseek"
    GROK = "grok"
    OPENROUTER = "openrouter"
    PERPLEXITY = "perplexity"
    TAVILY = "tavily"
    SERPAPI = "serpapi"

    @classmethod
    def resolve(cls, name: str, settings: Optional[Dict[str, Any]] = None) -> 'ProviderKind':
        """
        Resolve the kind of a configured provider.

        An explicit ``settings["kind"]`` wins; otherwise the display name is
        matched against known integrations. Anything unrecognised is treated
        as OpenAI-compatible.
        """
        explicit = (settings or {}).get('kind')
        if explicit:
            try:
                return cls(str(explicit).lower())
            except ValueError:
                pass

        name_lower = (name or '').lower()
        # openrouter must be checked before grok: "OpenRouter (Grok)" is common
        for kind, aliases in _NAME_ALIASES:
            if any(alias in name_lower for alias in aliases):
                return kind

        return cls.OPENAI


_NAME_ALIASES = (
    (ProviderKind.OPENROUTER, ('openrouter',)),
    (ProviderKind.PERPLEXITY, ('perplexity',)),
    (ProviderKind.TAVILY, ('tavily',)),
    (ProviderKind.SERPAPI, ('serpapi',)),
    (ProviderKind.GEMINI, ('gemini', 'google')),
    (ProviderKind.ANTHROPIC, ('anthropic', 'claude')),
    (ProviderKind.DEEPSEEK, ('deepseek',)),
    (ProviderKind.GROK, ('grok', 'xai', 'x.ai')),
    (ProviderKind.OPENAI, ('openai', 'gpt')),
)


@dataclass
class Provider:
    """A configured external content or research adapter."""
    id: str
    name: str
    category: ProviderCategory
    kind: ProviderKind
    credential: str = ""
    settings: Dict[str, Any] = field(default_factory=dict)
    active: bool = True

    @property
    def has_credential(self) -> bool:
        return bool(self.credential and self.credential.strip())


@dataclass
class ProviderSet:
    """Usable providers for one organization, split by category."""
    research: List[Provider] = field(default_factory=list)
    generation: List[Provider] = field(default_factory=list)


class BrandColors(BaseModel):
    """Brand color palette."""

    primary: str = Field(default="#3B82F6")
    secondary: str = Field(default="#8B5CF6")
    accent: str = Field(default="#F97316")


class BrandConfig(BaseModel):
    """Organization brand settings applied to the final document."""

    colors: BrandColors = Field(default_factory=BrandColors)
    font_family: str = Field(default="Inter")
    template: str = Field(default="modern")
    logo_url: Optional[str] = Field(default="")
    footer_text: Optional[str] = Field(default="")
