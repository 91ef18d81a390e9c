"""
Data models for SkyAtlas.

Everything here is an in-memory value object:
1. Enrichment results (country insight, recommendations, interaction analysis)
2. Live flight positions for map snapshots
"""

from skyatlas.models.insight import (
    CountryInsight,
    Interaction,
    InteractionAnalysis,
    InteractionSummary,
    PlaceCategory,
    PlaceRecommendation,
)
from skyatlas.models.live_flight import Coordinate, LiveFlight

__all__ = [
    'CountryInsight',
    'Interaction',
    'InteractionAnalysis',
    'InteractionSummary',
    'PlaceCategory',
    'PlaceRecommendation',
    'Coordinate',
    'LiveFlight',
]
