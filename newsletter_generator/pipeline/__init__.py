"""
Newsletter generation pipeline.

Stages run in a fixed order: configuration, planning, research,
knowledge retrieval, section generation, branding, sanitation and
assembly. Every stage that calls an external model goes through the
provider fallback executor.
"""

from .executor import ExecutionResult, ProviderAttempt, first_success, try_providers
from .config_loader import load_configuration
from .planner import TopicPlanner, plan_topic
from .research import gather_research
from .knowledge import KnowledgeRetriever, collect_events
from .sections import SectionGenerator
from .sanitizer import sanitize
from .reporter import JobContext, ProgressReporter
from .assembler import apply_brand, assemble_document

__all__ = [
    'ExecutionResult',
    'ProviderAttempt',
    'first_success',
    'try_providers',
    'load_configuration',
    'TopicPlanner',
    'plan_topic',
    'gather_research',
    'KnowledgeRetriever',
    'collect_events',
    'SectionGenerator',
    'sanitize',
    'JobContext',
    'ProgressReporter',
    'apply_brand',
    'assemble_document'
]
