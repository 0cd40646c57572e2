"""
Configuration management for Newsletter Generator.

Settings are read from the environment (and a ``.env`` file when present)
into dataclasses. The Flask app loads them with ``from_object`` and the
Celery worker reads them directly.
"""

import os
from typing import Optional, List, FrozenSet
from dataclasses import dataclass, field
from dotenv import load_dotenv

load_dotenv()

DEFAULT_SECRET_KEY = 'dev-secret-key-change-in-production'


def _env_flag(name: str, default: bool) -> bool:
    return os.environ.get(name, str(default)).strip().lower() in ('1', 'true', 'yes')


def _env_int(name: str, default: int) -> int:
    return int(os.environ.get(name, default))


def _env_list(name: str, default: str = '') -> List[str]:
    return [item.strip() for item in os.environ.get(name, default).split(',') if item.strip()]


@dataclass
class Config:
    """Settings shared by every environment."""

    SECRET_KEY: str = os.environ.get('SECRET_KEY', DEFAULT_SECRET_KEY)
    DEBUG: bool = _env_flag('DEBUG', False)
    TESTING: bool = _env_flag('TESTING', False)
    MAX_CONTENT_LENGTH: int = _env_int('MAX_CONTENT_LENGTH', 1024 * 1024)

    # X-API-Key authentication
    API_KEY_HEADER: str = 'X-API-Key'
    API_KEYS: FrozenSet[str] = field(default_factory=lambda: frozenset(_env_list('API_KEYS')))
    CORS_ORIGINS: List[str] = field(default_factory=lambda: _env_list('CORS_ORIGINS', '*'))

    # flask-limiter reads the RATELIMIT_* keys
    RATELIMIT_ENABLED: bool = _env_flag('RATELIMIT_ENABLED', True)
    RATELIMIT_STORAGE_URL: str = os.environ.get('RATELIMIT_STORAGE_URL', 'memory://')
    RATELIMIT_DEFAULT: str = os.environ.get('RATELIMIT_DEFAULT', '1000 per hour')
    RATELIMIT_CREATE: str = os.environ.get('RATELIMIT_CREATE', '10 per minute')

    LOG_LEVEL: str = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FILE: str = os.environ.get('LOG_FILE', 'logs/newsletter_generator.log')
    LOG_MAX_BYTES: int = _env_int('LOG_MAX_BYTES', 10 * 1024 * 1024)
    LOG_BACKUP_COUNT: int = _env_int('LOG_BACKUP_COUNT', 5)
    LOG_REQUESTS: bool = _env_flag('LOG_REQUESTS', True)

    # Job records, providers, brand, knowledge and events all live in Supabase
    SUPABASE_URL: Optional[str] = os.environ.get('SUPABASE_URL')
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = (
        os.environ.get('SUPABASE_SERVICE_ROLE_KEY') or os.environ.get('SUPABASE_KEY')
    )

    CELERY_BROKER_URL: str = os.environ.get('CELERY_BROKER_URL', 'redis://localhost:6379/0')
    CELERY_RESULT_BACKEND: str = os.environ.get('CELERY_RESULT_BACKEND', 'redis://localhost:6379/0')
    CELERY_TASK_TIME_LIMIT: int = _env_int('CELERY_TASK_TIME_LIMIT', 30 * 60)
    CELERY_TASK_SOFT_TIME_LIMIT: int = _env_int('CELERY_TASK_SOFT_TIME_LIMIT', 28 * 60)
    CELERY_WORKER_PREFETCH_MULTIPLIER: int = _env_int('CELERY_WORKER_PREFETCH_MULTIPLIER', 1)
    CELERY_WORKER_MAX_TASKS_PER_CHILD: int = _env_int('CELERY_WORKER_MAX_TASKS_PER_CHILD', 200)

    # Pipeline
    PROVIDER_REQUEST_TIMEOUT: int = _env_int('PROVIDER_REQUEST_TIMEOUT', 60)
    KNOWLEDGE_RESULT_LIMIT: int = _env_int('KNOWLEDGE_RESULT_LIMIT', 5)
    EVENTS_RESULT_LIMIT: int = _env_int('EVENTS_RESULT_LIMIT', 10)


@dataclass
class DevelopmentConfig(Config):
    DEBUG: bool = True
    LOG_LEVEL: str = 'DEBUG'
    RATELIMIT_DEFAULT: str = '5000 per hour'


@dataclass
class ProductionConfig(Config):
    DEBUG: bool = False
    LOG_LEVEL: str = 'WARNING'


@dataclass
class TestingConfig(Config):
    TESTING: bool = True
    DEBUG: bool = True
    LOG_LEVEL: str = 'CRITICAL'
    LOG_FILE: str = ''
    LOG_REQUESTS: bool = False
    API_KEYS: FrozenSet[str] = field(default_factory=lambda: frozenset(['test-api-key']))
    RATELIMIT_ENABLED: bool = False


CONFIGS = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig
}


def get_config(config_name: str = None) -> Config:
    """
    Build the configuration for an environment.

    Args:
        config_name: development, production or testing; defaults to
            FLASK_ENV, and unknown names fall back to development

    Returns:
        Configuration object
    """
    name = (config_name or os.environ.get('FLASK_ENV', 'development')).lower()
    return CONFIGS.get(name, DevelopmentConfig)()


def validate_config(config: Config) -> List[str]:
    """List the settings that block a real deployment."""
    errors = []

    if not config.API_KEYS:
        errors.append("API_KEYS must be configured")

    if config.SECRET_KEY == DEFAULT_SECRET_KEY and not config.DEBUG:
        errors.append("SECRET_KEY must be changed in production")

    if not config.SUPABASE_URL:
        errors.append("SUPABASE_URL must be configured")
    elif not config.SUPABASE_SERVICE_ROLE_KEY:
        errors.append("SUPABASE_SERVICE_ROLE_KEY is required when SUPABASE_URL is set")

    for name in ('CELERY_BROKER_URL', 'CELERY_RESULT_BACKEND'):
        if not getattr(config, name):
            errors.append(f"{name} must be configured")

    return errors
