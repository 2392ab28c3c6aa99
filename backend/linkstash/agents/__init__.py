"""Agents package - LLM clients and the cleanup and enrichment agents."""

from linkstash.agents.cleanup_agent import CleanedText, CleanupAgent
from linkstash.agents.enrichment_agent import EnrichmentAgent, EnrichmentResult
from linkstash.agents.llm import LLMClient, check_connection, get_llm_client, parse_llm_json

__all__ = [
    # LLM clients
    "LLMClient",
    "get_llm_client",
    "check_connection",
    "parse_llm_json",
    # Cleanup agent
    "CleanupAgent",
    "CleanedText",
    # Enrichment agent
    "EnrichmentAgent",
    "EnrichmentResult",
]
