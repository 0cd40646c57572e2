"""
LLM integration module.

This module provides a uniform generation interface over the
supported Large Language Model providers.
"""

from .client import (
    GenerationAdapter,
    OpenAICompatibleAdapter,
    GeminiAdapter,
    AnthropicAdapter,
    TextGenerator,
    generate_text,
    get_adapter,
    register_adapter,
    strip_code_fence
)

__all__ = [
    'GenerationAdapter',
    'OpenAICompatibleAdapter',
    'GeminiAdapter',
    'AnthropicAdapter',
    'TextGenerator',
    'generate_text',
    'get_adapter',
    'register_adapter',
    'strip_code_fence'
]
