"""
Organization configuration loader.

Reads the organization's active providers and brand settings from the
store, decodes provider credentials, resolves each provider's kind once
and drops providers that end up without a usable credential.
"""

import base64
import binascii
import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from ..core.models.errors import ConfigurationError
from ..core.models.provider import BrandConfig, Provider, ProviderCategory, ProviderKind, ProviderSet
from ..integrations.supabase_store import NewsletterStore

logger = logging.getLogger(__name__)


def decrypt_credential(encrypted: Optional[str]) -> str:
    """
    Decode a stored provider credential.

    Credentials are stored base64-encoded; anything that does not decode
    yields an empty credential so the provider is filtered out.
    """
    if not encrypted:
        return ""
    try:
        return base64.b64decode(encrypted, validate=True).decode('utf-8').strip()
    except (binascii.Error, ValueError, UnicodeDecodeError) as e:
        logger.warning(f"Failed to decrypt API key: {str(e)}")
        return ""


def build_provider(row: Dict[str, Any]) -> Optional[Provider]:
    """Build a Provider from an ``ai_providers`` row, or None for unknown categories."""
    try:
        category = ProviderCategory(row.get('type'))
    except ValueError:
        logger.warning(f"Ignoring provider {row.get('name')} with unknown type {row.get('type')!r}")
        return None

    settings = row.get('settings') or {}
    name = row.get('name') or ''
    return Provider(
        id=str(row.get('id', '')),
        name=name,
        category=category,
        kind=ProviderKind.resolve(name, settings),
        credential=decrypt_credential(row.get('api_key_encrypted')),
        settings=settings,
        active=bool(row.get('is_active', True))
    )


def split_providers(rows: List[Dict[str, Any]]) -> ProviderSet:
    """Split active provider rows by category, keeping only usable credentials."""
    providers = ProviderSet()

    for row in rows:
        provider = build_provider(row)
        if provider is None or not provider.active:
            continue
        if not provider.has_credential:
            logger.warning(f"Dropping provider {provider.name}: credential is empty or undecodable")
            continue

        if provider.category == ProviderCategory.RESEARCH:
            providers.research.append(provider)
        else:
            providers.generation.append(provider)

    return providers


def build_brand_config(row: Optional[Dict[str, Any]]) -> BrandConfig:
    """Brand settings from a row, falling back to defaults."""
    if not row:
        return BrandConfig()

    values = {key: value for key, value in row.items() if value is not None}
    try:
        return BrandConfig(**values)
    except PydanticValidationError as e:
        logger.warning(f"Invalid brand configuration, using defaults: {str(e)}")
        return BrandConfig()


def load_configuration(store: NewsletterStore, organization_id: str,
                       require_generation: bool = True) -> Tuple[ProviderSet, BrandConfig]:
    """
    Load usable providers and brand settings for an organization.

    Args:
        store: Newsletter store
        organization_id: Organization to load
        require_generation: Fail when no generation provider is usable

    Returns:
        Tuple of (ProviderSet, BrandConfig)

    Raises:
        ConfigurationError: If no generation provider is usable
    """
    providers = split_providers(store.fetch_providers(organization_id))

    logger.info(
        f"Available providers: generation={[p.name for p in providers.generation]}, "
        f"research={[p.name for p in providers.research]}"
    )

    if require_generation and not providers.generation:
        raise ConfigurationError("No generation AI providers configured", config_key='ai_providers')

    return providers, build_brand_config(store.fetch_brand_config(organization_id))
