"""
Provider fallback executor.

Runs an operation against an ordered chain of providers, one at a time,
until one succeeds. Providers without a credential are skipped and do
not count as attempts. Calls are strictly sequential so that a second
provider is only billed after the first one failed.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Generic, List, Optional, TypeVar

from ..core.models.errors import ProviderExhaustedError, classify_provider_error
from ..core.models.provider import Provider

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class ProviderAttempt:
    """Outcome of invoking the operation with one provider."""
    provider: str
    error: Optional[str] = None
    terminal_category: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class ExecutionResult(Generic[T]):
    """Tagged success or failure of a fallback chain."""
    label: str
    value: Optional[T] = None
    provider: Optional[Provider] = None
    error: Optional[ProviderExhaustedError] = None
    attempts: List[ProviderAttempt] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or raise the aggregated failure."""
        if self.error is not None:
            raise self.error
        return self.value


def first_success(providers: List[Provider], operation: Callable[[Provider], T],
                  label: str) -> ExecutionResult[T]:
    """
    Try providers in order and return the first success.

    Args:
        providers: Ordered providers of one category
        operation: Callable invoked with a single provider; raising means failure
        label: Human-readable operation name used in logs and errors

    Returns:
        ExecutionResult holding either the value and the provider that produced
        it, or a ProviderExhaustedError carrying the most recent failure
    """
    result: ExecutionResult[T] = ExecutionResult(label=label)

    if not providers:
        logger.warning(f"{label}: no providers available")
        result.error = ProviderExhaustedError(label)
        return result

    logger.info(f"Starting {label} with {len(providers)} providers available")

    last_error: Optional[Exception] = None
    total = len(providers)

    for index, provider in enumerate(providers, start=1):
        if not provider.has_credential:
            logger.warning(f"Skipping provider {provider.name}: No API key configured")
            result.skipped.append(provider.name)
            continue

        logger.info(f"Trying {label} with provider: {provider.name} ({index}/{total})")
        try:
            value = operation(provider)
        except Exception as e:
            last_error = e
            category = classify_provider_error(str(e))
            result.attempts.append(ProviderAttempt(provider.name, str(e), category))
            logger.warning(f"{label} failed with provider {provider.name}: {str(e)}")

            if category:
                logger.warning(
                    f"Provider {provider.name} has account/{category} issues. Check the provider "
                    f"billing dashboard and ensure the account has available credits and a valid key."
                )
            continue

        result.attempts.append(ProviderAttempt(provider.name))
        result.value = value
        result.provider = provider
        logger.info(f"{label} successful with provider: {provider.name}")
        return result

    result.error = ProviderExhaustedError(
        label,
        last_error=last_error,
        attempts=len(result.attempts),
        skipped=result.skipped
    )
    logger.error(result.error.message)
    return result


def try_providers(providers: List[Provider], operation: Callable[[Provider], T], label: str) -> T:
    """
    Try providers in order and return the first successful value.

    Raises:
        ProviderExhaustedError: If the list is empty or every provider failed
    """
    return first_success(providers, operation, label).unwrap()
