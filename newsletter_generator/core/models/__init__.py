"""
Data models and schemas for Newsletter Generator.

This module contains all the data models, validation schemas, and
type definitions used throughout the system.
"""

from .job import (
    GenerationRequest,
    GenerationJob,
    GenerationMode,
    SectionLength,
    ImageSource,
    ImagePlacement,
    JobStatus
)

from .provider import (
    Provider,
    ProviderSet,
    ProviderKind,
    ProviderCategory,
    BrandConfig,
    BrandColors
)

from .content import (
    ContentPlan,
    SectionPlan,
    SectionType,
    Section,
    SectionMetadata,
    KnowledgeItem,
    EventItem,
    FinalDocument,
    DocumentHeader,
    DocumentFooter,
    FooterLink
)

from .errors import (
    NewsletterGeneratorError,
    ValidationError,
    ProviderError,
    ProviderExhaustedError,
    ConfigurationError,
    PersistenceError,
    TaskError,
    classify_provider_error
)

__all__ = [
    # Job models
    'GenerationRequest',
    'GenerationJob',
    'GenerationMode',
    'SectionLength',
    'ImageSource',
    'ImagePlacement',
    'JobStatus',

    # Provider models
    'Provider',
    'ProviderSet',
    'ProviderKind',
    'ProviderCategory',
    'BrandConfig',
    'BrandColors',

    # Content models
    'ContentPlan',
    'SectionPlan',
    'SectionType',
    'Section',
    'SectionMetadata',
    'KnowledgeItem',
    'EventItem',
    'FinalDocument',
    'DocumentHeader',
    'DocumentFooter',
    'FooterLink',

    # Error models
    'NewsletterGeneratorError',
    'ValidationError',
    'ProviderError',
    'ProviderExhaustedError',
    'ConfigurationError',
    'PersistenceError',
    'TaskError',
    'classify_provider_error'
]
