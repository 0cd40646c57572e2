"""
Research aggregation stage.

Optional: a total failure of the research chain is logged and yields
empty research text so generation continues without it.
"""

import logging
from typing import List

from ..core.models.provider import Provider
from ..integrations.research import ResearchRunner, research_topic
from .executor import first_success

logger = logging.getLogger(__name__)


def gather_research(providers: List[Provider], topic: str,
                    runner: ResearchRunner = research_topic) -> str:
    """
    Research a topic through the research provider chain.

    Args:
        providers: Research providers in priority order
        topic: Newsletter topic
        runner: Callable researching the topic with a single provider

    Returns:
        Research text, or an empty string if every provider failed
    """
    result = first_success(providers, lambda provider: runner(provider, topic), "Research")

    if not result.ok:
        logger.warning(f"Research failed with all providers, continuing without research data: "
                       f"{result.error.message}")
        return ""

    return result.value
