"""
External integration services.

Handles third-party API calls with caching, retries, and graceful
degradation when services are unavailable.
"""

from skyatlas.services.enrichment import EnrichmentClient
from skyatlas.services.gemini_provider import GeminiProvider, InsightProvider
from skyatlas.services.live_feed import LiveFeedClient

__all__ = ['EnrichmentClient', 'GeminiProvider', 'InsightProvider', 'LiveFeedClient']
